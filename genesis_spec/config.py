"""
Configuration management for the chain spec builder.
"""
import json
import os
from dataclasses import dataclass, asdict, field

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_RES_DIR = os.path.join(PACKAGE_DIR, 'res')

POLKADOT_TELEMETRY_URL = 'wss://telemetry.polkadot.io/submit/'
CHAINX_TELEMETRY_URL = 'wss://telemetry.chainx.org/submit/'


@dataclass
class RuntimeConfig:
    """Code image per runtime family."""
    dev: str = "./runtime/dev_runtime.compact.wasm"
    malan: str = "./runtime/malan_runtime.compact.wasm"
    chainx: str = "./runtime/chainx_runtime.compact.wasm"

    def images(self) -> dict:
        return asdict(self)


@dataclass
class ResourceConfig:
    """Static genesis data tables."""
    res_dir: str = DEFAULT_RES_DIR


@dataclass
class TelemetryConfig:
    """Telemetry endpoints for the public networks."""
    mainnet: list = field(default_factory=lambda: [CHAINX_TELEMETRY_URL, POLKADOT_TELEMETRY_URL])
    testnet: list = field(default_factory=lambda: [CHAINX_TELEMETRY_URL])
    verbosity: int = 0


@dataclass
class BuilderConfig:
    """Main configuration."""
    runtime: RuntimeConfig
    resources: ResourceConfig
    telemetry: TelemetryConfig

    @classmethod
    def default(cls) -> 'BuilderConfig':
        """Create default configuration."""
        return cls(
            runtime=RuntimeConfig(),
            resources=ResourceConfig(),
            telemetry=TelemetryConfig(),
        )

    @classmethod
    def from_file(cls, path: str) -> 'BuilderConfig':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)

        return cls(
            runtime=RuntimeConfig(**data.get('runtime', {})),
            resources=ResourceConfig(**data.get('resources', {})),
            telemetry=TelemetryConfig(**data.get('telemetry', {})),
        )

    def to_file(self, path: str):
        """Save configuration to JSON file."""
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'runtime': asdict(self.runtime),
            'resources': asdict(self.resources),
            'telemetry': asdict(self.telemetry),
        }
