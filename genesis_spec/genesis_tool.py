"""
Chain Spec Generation Tool

Builds the chain spec for a network and writes it as JSON. Development and
local specs are assembled from seed-derived keys; the public networks are
read from their frozen snapshots unless a `new-*` id asks for a rebuild.
"""
import argparse
import logging
import os
import sys
from typing import Optional

from genesis_spec.chain_spec import is_byte_stable
from genesis_spec.config import BuilderConfig
from genesis_spec.errors import GenesisError, MissingResource
from genesis_spec.presets import frozen_bytes, load_spec
from genesis_spec.utils.encoding import to_hex

logger = logging.getLogger(__name__)


def _load_config(path: Optional[str]) -> BuilderConfig:
    if path is None:
        return BuilderConfig.default()
    print(f"Loading builder configuration from: {path}")
    try:
        return BuilderConfig.from_file(path)
    except (OSError, ValueError, TypeError, AttributeError) as e:
        raise MissingResource(f"Cannot load builder configuration {path}: {e}") from e


def build_spec(chain: str, output: Optional[str], config_path: Optional[str] = None):
    """
    Builds a chain spec and writes it to `output`, or to stdout.

    Args:
        chain (str): Chain id (dev, local, malan, new-malan, mainnet, new-mainnet) or spec file path.
        output (str): Destination file; None writes to stdout.
        config_path (str): Optional builder configuration JSON file.
    """
    envelope = load_spec(chain, _load_config(config_path))
    data = envelope.to_json_bytes()

    if output is None:
        sys.stdout.write(data.decode('utf-8'))
        return

    os.makedirs(os.path.dirname(output) or '.', exist_ok=True)
    with open(output, 'wb') as f:
        f.write(data)
    logger.info(f"Wrote chain spec '{envelope.name}' ({len(data)} bytes) to {output}")

    print(f"\nChain spec '{envelope.name}' ({envelope.id}) written to: {output}")
    if envelope.genesis_hash is not None:
        print(f"  - Genesis hash: {to_hex(envelope.genesis_hash)}")
    else:
        print("  - Frozen genesis, copied verbatim")


def check_frozen(chain: str, config_path: Optional[str] = None) -> bool:
    """Checks that a frozen spec decodes and re-encodes to identical bytes."""
    data = frozen_bytes(chain, _load_config(config_path))
    if is_byte_stable(data):
        print(f"Frozen spec '{chain}' is byte-stable ({len(data)} bytes)")
        return True
    logger.error(f"Frozen spec '{chain}' changes when re-encoded")
    return False


def generate_sample_config(output_path: str):
    """Writes the default builder configuration as a starting point."""
    BuilderConfig.default().to_file(output_path)
    print(f"\nGenerated sample builder configuration at: {output_path}")
    print("Point the runtime paths at the compiled wasm code images before building dynamic specs.")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Chain Spec Generation Tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Command to build a chain spec
    parser_build = subparsers.add_parser("build-spec", help="Build the chain spec for a network")
    parser_build.add_argument("--chain", type=str, default="dev", help="Chain id or spec file path")
    parser_build.add_argument("--output", type=str, default=None, help="Output file path (default: stdout)")
    parser_build.add_argument("--config", type=str, default=None, help="Path to builder config file")

    # Command to verify a frozen spec
    parser_check = subparsers.add_parser("check-frozen", help="Verify a frozen spec round-trips byte-identically")
    parser_check.add_argument("--chain", type=str, required=True, help="Frozen chain id or spec file path")
    parser_check.add_argument("--config", type=str, default=None, help="Path to builder config file")

    # Command to generate a sample config
    parser_sample = subparsers.add_parser("sample-config", help="Generate a sample builder config")
    parser_sample.add_argument("--output", type=str, default="genesis_spec.json", help="Output file path")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    try:
        if args.command == "build-spec":
            build_spec(args.chain, args.output, args.config)
        elif args.command == "check-frozen":
            if not check_frozen(args.chain, args.config):
                return 1
        elif args.command == "sample-config":
            generate_sample_config(args.output)
    except GenesisError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
