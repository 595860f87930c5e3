"""
Chain spec constructors for every network, and the selector that maps a
chain id onto one of them.

Development and local specs are assembled from seed-derived keys. The public
networks can be rebuilt from their published inputs (`new-malan`,
`new-mainnet`), but the specs nodes actually start from are the frozen
snapshots shipped under res/.
"""
import logging
import os
from typing import Callable, Optional

from genesis_spec.bitcoin import AnchorVerifier, BtcGenesisParams, HeaderHashVerifier
from genesis_spec.chain_spec import ChainSpecEnvelope, SpecMetadata, as_properties, from_json_bytes, wrap
from genesis_spec.config import BuilderConfig
from genesis_spec.endowment import allocate
from genesis_spec.errors import MalformedSnapshot, UnknownProfile
from genesis_spec.genesis import Governance, assemble
from genesis_spec.keys import derive, get_account_id_from_seed
from genesis_spec.profiles import NetworkType, Profile, ProfileParameters, parameters_for
from genesis_spec.resources import ResourceLoader
from genesis_spec.wasm_runtime import WASMRuntime

logger = logging.getLogger(__name__)

DEV_VALIDATORS = ('Alice',)
DEV_ENDOWED = ('Alice', 'Bob', 'Alice//stash', 'Bob//stash')

LOCAL_VALIDATORS = ('Alice', 'Bob')
LOCAL_ENDOWED = ('Alice', 'Bob', 'Charlie', 'Dave', 'Eve', 'Ferdie')

# Resource tables
TESTNET_TRUSTEES = 'trustees_testnet.json'
MAINNET_TRUSTEES = 'trustees_mainnet.json'
MALAN_AUTHORITIES = 'authorities_malan.json'
MAINNET_AUTHORITIES = 'authorities_mainnet.json'
TECHNICAL_COMMITTEE = 'technical_committee.json'
ADMIN_KEYS = 'admin_keys.json'
MALAN_SNAPSHOT = 'malan.json'
MAINNET_SNAPSHOT = 'chainx_regenesis.json'


class SpecBuilder:
    """
    Everything one spec construction reads: configuration, the static
    resource tables, runtime code images and the anchor verifier.
    """

    def __init__(self, config: Optional[BuilderConfig] = None,
                 verifier: Optional[AnchorVerifier] = None):
        self.config = config or BuilderConfig.default()
        self.resources = ResourceLoader(self.config.resources.res_dir)
        self.runtime = WASMRuntime(self.config.runtime.images())
        self.verifier = verifier or HeaderHashVerifier()

    def anchor(self, params: ProfileParameters) -> BtcGenesisParams:
        anchor = self.resources.anchor(params.anchor_resource, params.btc_params)
        self.verifier.verify(anchor)
        return anchor

    def telemetry(self, network: NetworkType) -> tuple:
        telemetry = self.config.telemetry
        urls = telemetry.mainnet if network is NetworkType.MAINNET else telemetry.testnet
        return tuple((url, telemetry.verbosity) for url in urls)

    def metadata(self, profile: Profile, name: str, spec_id: str, protocol_id: str,
                 telemetry: bool = False) -> SpecMetadata:
        params = parameters_for(profile)
        return SpecMetadata(
            name=name,
            id=spec_id,
            chain_type=params.capabilities.chain_type,
            telemetry_endpoints=self.telemetry(params.network) if telemetry else (),
            protocol_id=protocol_id,
            properties=as_properties(params.network),
        )

    def frozen(self, resource: str, metadata: SpecMetadata) -> ChainSpecEnvelope:
        return wrap(self.resources.read_bytes(resource), metadata)


def _seeded_spec(builder: SpecBuilder, profile: Profile, validators, endowed_seeds,
                 metadata: SpecMetadata) -> ChainSpecEnvelope:
    params = parameters_for(profile)
    accounts = [get_account_id_from_seed(seed) for seed in endowed_seeds]
    state = assemble(
        profile,
        code=builder.runtime.load(params.runtime),
        authorities=[derive(seed) for seed in validators],
        assets=builder.resources.assets(),
        endowment=allocate(accounts, params.endowment, params.reserved_stake),
        trustee_candidates=builder.resources.trustee_candidates(TESTNET_TRUSTEES),
        anchor=builder.anchor(params),
        governance=Governance(admin_key=get_account_id_from_seed(validators[0])),
    )
    return wrap(state, metadata)


def _published_spec(builder: SpecBuilder, profile: Profile, authorities_resource: str,
                    metadata: SpecMetadata) -> ChainSpecEnvelope:
    params = parameters_for(profile)
    network = params.network.value
    admin_key = builder.resources.admin_key(ADMIN_KEYS, network) if params.has_admin_key else None
    state = assemble(
        profile,
        code=builder.runtime.load(params.runtime),
        authorities=builder.resources.authorities(authorities_resource),
        assets=builder.resources.assets(),
        endowment=allocate([], params.endowment, params.reserved_stake),
        trustee_candidates=builder.resources.trustee_candidates(MAINNET_TRUSTEES),
        anchor=builder.anchor(params),
        governance=Governance(
            admin_key=admin_key,
            technical_members=builder.resources.accounts(TECHNICAL_COMMITTEE, network),
        ),
        genesis_builder_params=builder.resources.genesis_builder_params(),
    )
    return wrap(state, metadata)


def development_config(config: Optional[BuilderConfig] = None) -> ChainSpecEnvelope:
    """Single validator (Alice) with Alice as admin."""
    builder = SpecBuilder(config)
    metadata = builder.metadata(Profile.DEVELOPMENT, 'Development', 'dev', 'chainx-dev')
    return _seeded_spec(builder, Profile.DEVELOPMENT, DEV_VALIDATORS, DEV_ENDOWED, metadata)


def local_testnet_config(config: Optional[BuilderConfig] = None) -> ChainSpecEnvelope:
    """Alice and Bob validating; six well-known accounts and their stashes endowed."""
    builder = SpecBuilder(config)
    endowed = LOCAL_ENDOWED + tuple(f"{seed}//stash" for seed in LOCAL_ENDOWED)
    metadata = builder.metadata(Profile.LOCAL, 'ChainX Local Testnet', 'dev', 'pcx')
    return _seeded_spec(builder, Profile.LOCAL, LOCAL_VALIDATORS, endowed, metadata)


def _malan_metadata(builder: SpecBuilder) -> SpecMetadata:
    return builder.metadata(Profile.PUBLIC_TEST, 'ChainX-Malan', 'chainx-malan', 'pcx1', telemetry=True)


def _mainnet_metadata(builder: SpecBuilder) -> SpecMetadata:
    return builder.metadata(Profile.MAIN, 'ChainX', 'chainx', 'pcx1', telemetry=True)


def new_malan_config(config: Optional[BuilderConfig] = None) -> ChainSpecEnvelope:
    builder = SpecBuilder(config)
    return _published_spec(builder, Profile.PUBLIC_TEST, MALAN_AUTHORITIES, _malan_metadata(builder))


def malan_config(config: Optional[BuilderConfig] = None) -> ChainSpecEnvelope:
    builder = SpecBuilder(config)
    return builder.frozen(MALAN_SNAPSHOT, _malan_metadata(builder))


def new_mainnet_config(config: Optional[BuilderConfig] = None) -> ChainSpecEnvelope:
    builder = SpecBuilder(config)
    return _published_spec(builder, Profile.MAIN, MAINNET_AUTHORITIES, _mainnet_metadata(builder))


def mainnet_config(config: Optional[BuilderConfig] = None) -> ChainSpecEnvelope:
    builder = SpecBuilder(config)
    return builder.frozen(MAINNET_SNAPSHOT, _mainnet_metadata(builder))


CHAIN_SPECS: dict[str, Callable[[Optional[BuilderConfig]], ChainSpecEnvelope]] = {
    'dev': development_config,
    'local': local_testnet_config,
    'malan': malan_config,
    'testnet': malan_config,
    'new-malan': new_malan_config,
    'mainnet': mainnet_config,
    'chainx': mainnet_config,
    'new-mainnet': new_mainnet_config,
}

DYNAMIC_SPECS = {
    Profile.DEVELOPMENT: development_config,
    Profile.LOCAL: local_testnet_config,
    Profile.PUBLIC_TEST: new_malan_config,
    Profile.MAIN: new_mainnet_config,
}

FROZEN_SPECS = {
    Profile.PUBLIC_TEST: malan_config,
    Profile.MAIN: mainnet_config,
}

FROZEN_SNAPSHOTS = {
    'malan': MALAN_SNAPSHOT,
    'testnet': MALAN_SNAPSHOT,
    'mainnet': MAINNET_SNAPSHOT,
    'chainx': MAINNET_SNAPSHOT,
}


def build_spec(profile, frozen: bool = False,
               config: Optional[BuilderConfig] = None) -> ChainSpecEnvelope:
    """
    Builds the spec for a profile, either rebuilt from source or read from
    its frozen snapshot.

    Raises:
        UnknownProfile: the profile is unknown, or has no frozen snapshot
    """
    parameters_for(profile)
    profile = Profile(profile)
    if not frozen:
        return DYNAMIC_SPECS[profile](config)
    if profile not in FROZEN_SPECS:
        raise UnknownProfile(f"Profile {profile.value} has no frozen snapshot")
    return FROZEN_SPECS[profile](config)


def spec_from_file(path: str) -> ChainSpecEnvelope:
    """Reads a frozen spec from an arbitrary file."""
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise MalformedSnapshot(f"Cannot read chain spec {path}: {e}") from e
    envelope = from_json_bytes(data)
    logger.info(f"Loaded chain spec '{envelope.name}' ({envelope.id}) from {path}")
    return envelope


def load_spec(spec_id: str, config: Optional[BuilderConfig] = None) -> ChainSpecEnvelope:
    """
    Resolves a chain id, or the path of a spec file, to a chain spec.

    Raises:
        UnknownProfile: the id is neither a known chain nor an existing file
    """
    constructor = CHAIN_SPECS.get(spec_id)
    if constructor is not None:
        logger.info(f"Building chain spec '{spec_id}'")
        return constructor(config)
    if os.path.isfile(spec_id):
        return spec_from_file(spec_id)
    raise UnknownProfile(f"Unknown chain spec {spec_id!r}")


def frozen_bytes(spec_id: str, config: Optional[BuilderConfig] = None) -> bytes:
    """
    Raw bytes of a frozen spec, named by chain id or by file path.

    Raises:
        UnknownProfile: the id names no frozen spec
    """
    if spec_id in FROZEN_SNAPSHOTS:
        config = config or BuilderConfig.default()
        return ResourceLoader(config.resources.res_dir).read_bytes(FROZEN_SNAPSHOTS[spec_id])
    if os.path.isfile(spec_id):
        with open(spec_id, 'rb') as f:
            return f.read()
    raise UnknownProfile(f"{spec_id!r} is not a frozen chain spec")
