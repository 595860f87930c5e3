"""
Shared fixtures: code images, builder configuration and development genesis
inputs built from the packaged resource tables.
"""
import pytest

from genesis_spec.config import DEFAULT_RES_DIR, BuilderConfig, RuntimeConfig
from genesis_spec.endowment import allocate
from genesis_spec.genesis import Governance, assemble
from genesis_spec.keys import derive, get_account_id_from_seed
from genesis_spec.profiles import Profile, parameters_for
from genesis_spec.resources import ResourceLoader

# Smallest valid wasm module: magic number and version.
EMPTY_WASM = b"\x00asm\x01\x00\x00\x00"

DEV_AMOUNT = 50 * 10 ** 8


@pytest.fixture
def runtime_images(tmp_path):
    images = {}
    for name in ('dev', 'malan', 'chainx'):
        path = tmp_path / f"{name}_runtime.compact.wasm"
        path.write_bytes(EMPTY_WASM)
        images[name] = str(path)
    return images


@pytest.fixture
def builder_config(runtime_images):
    config = BuilderConfig.default()
    config.runtime = RuntimeConfig(**runtime_images)
    return config


@pytest.fixture
def resources():
    return ResourceLoader(DEFAULT_RES_DIR)


@pytest.fixture
def dev_inputs(resources):
    """Alice validating, Alice and Bob endowed, Alice as admin."""
    params = parameters_for(Profile.DEVELOPMENT)
    accounts = [get_account_id_from_seed(seed) for seed in ('Alice', 'Bob')]
    return dict(
        profile=Profile.DEVELOPMENT,
        code=EMPTY_WASM,
        authorities=[derive('Alice')],
        assets=resources.assets(),
        endowment=allocate(accounts, DEV_AMOUNT),
        trustee_candidates=resources.trustee_candidates('trustees_testnet.json'),
        anchor=resources.anchor(params.anchor_resource, params.btc_params),
        governance=Governance(admin_key=accounts[0]),
    )


@pytest.fixture
def dev_state(dev_inputs):
    return assemble(**dev_inputs)
