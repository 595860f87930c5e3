"""
Per-profile genesis constants.

Each deployment profile maps to exactly one ProfileParameters record. The
table is checked for exhaustiveness at import time, so adding a Profile
without parameters fails before any spec can be built.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from genesis_spec.errors import InvalidAnchor, UnknownProfile

# Native currency
PCX = 0
PCX_DECIMALS = 8
PCX_SYMBOL = 'PCX'
X_BTC = 1

DOLLARS = 10 ** PCX_DECIMALS
CENTS = DOLLARS // 100

# Block time
MILLISECS_PER_BLOCK = 6000
MINUTES = 60_000 // MILLISECS_PER_BLOCK
HOURS = MINUTES * 60
DAYS = HOURS * 24

ENDOWMENT = 10_000_000 * DOLLARS
STASH = 100 * DOLLARS  # Reserved per elected-council seat

DEFAULT_BASE_FEE_PER_GAS = 10_000_000_000
BASE_FEE_ELASTICITY = 125_000  # Parts per million


class Profile(Enum):
    DEVELOPMENT = 'development'
    LOCAL = 'local'
    PUBLIC_TEST = 'public-test'
    MAIN = 'main'


class NetworkType(Enum):
    MAINNET = 'mainnet'
    TESTNET = 'testnet'

    @property
    def ss58_format(self) -> int:
        return 44 if self is NetworkType.MAINNET else 42


class ChainType(Enum):
    DEVELOPMENT = 'Development'
    LOCAL = 'Local'
    LIVE = 'Live'


@dataclass(frozen=True)
class BtcParams:
    """Difficulty retargeting parameters of the bridged Bitcoin network."""
    max_bits: int
    block_max_future: int
    target_timespan_seconds: int
    target_spacing_seconds: int
    retargeting_factor: int

    def __post_init__(self):
        if self.target_spacing_seconds <= 0:
            raise InvalidAnchor("Target block spacing must be positive")
        if self.target_timespan_seconds % self.target_spacing_seconds:
            # Runtime header verification would reject every header.
            raise InvalidAnchor(
                f"Retarget window {self.target_timespan_seconds}s is not a multiple "
                f"of block spacing {self.target_spacing_seconds}s"
            )
        if self.retargeting_factor <= 0:
            raise InvalidAnchor("Retargeting factor must be positive")

    @property
    def retargeting_interval(self) -> int:
        return self.target_timespan_seconds // self.target_spacing_seconds

    @property
    def min_timespan(self) -> int:
        return self.target_timespan_seconds // self.retargeting_factor

    @property
    def max_timespan(self) -> int:
        return self.target_timespan_seconds * self.retargeting_factor

    def to_dict(self) -> dict:
        return {
            'maxBits': self.max_bits,
            'blockMaxFuture': self.block_max_future,
            'targetTimespanSeconds': self.target_timespan_seconds,
            'targetSpacingSeconds': self.target_spacing_seconds,
            'retargetingFactor': self.retargeting_factor,
            'retargetingInterval': self.retargeting_interval,
            'minTimespan': self.min_timespan,
            'maxTimespan': self.max_timespan,
        }


# Bitcoin mainnet
BTC_MAINNET_PARAMS = BtcParams(
    max_bits=486604799,
    block_max_future=2 * 60 * 60,
    target_timespan_seconds=2 * 7 * 24 * 60 * 60,
    target_spacing_seconds=10 * 60,
    retargeting_factor=4,
)

# Signet and regtest
BTC_TESTNET_PARAMS = BtcParams(
    max_bits=545259519,
    block_max_future=2 * 60 * 60,
    target_timespan_seconds=2 * 7 * 24 * 60 * 60,
    target_spacing_seconds=10 * 60,
    retargeting_factor=4,
)


@dataclass(frozen=True)
class ProfileCapabilities:
    """Which optional genesis sections a profile carries."""
    network: NetworkType
    chain_type: ChainType
    has_admin_key: bool
    # Governance seats derived from the endowed accounts rather than a resource.
    derives_governance: bool


@dataclass(frozen=True)
class ProfileParameters:
    capabilities: ProfileCapabilities
    runtime: str
    anchor_resource: str
    btc_params: BtcParams
    sessions_per_era: int
    evm_chain_id: int
    endowment: int
    validator_count: int = 40
    glob_dist_ratio: tuple = (12, 88)  # (Treasury, X-type Asset and Staking)
    mining_ratio: tuple = (10, 90)     # (Asset Mining, Staking)
    minimum_penalty: int = 100 * DOLLARS
    candidate_requirement: tuple = (100 * DOLLARS, 1_000 * DOLLARS)  # (self_bonded, total_bonded)
    minimum_validator_count: Optional[int] = None
    reserved_stake: int = STASH
    btc_withdrawal_fee: int = 500_000
    max_withdrawal_count: int = 100
    claim_restrictions: tuple = ((X_BTC, (10, DAYS * 7)),)
    mining_power_map: tuple = ((X_BTC, 400),)
    # (base, quote, pip_decimals, tick_decimals, latest_price, tradable)
    trading_pairs: tuple = ((PCX, X_BTC, 9, 2, 100_000, True),)
    # (c, allowed_slots)
    babe_epoch_config: tuple = ((1, 4), 'PrimaryAndSecondaryPlainSlots')

    @property
    def network(self) -> NetworkType:
        return self.capabilities.network

    @property
    def has_admin_key(self) -> bool:
        return self.capabilities.has_admin_key


PROFILE_PARAMETERS = {
    Profile.DEVELOPMENT: ProfileParameters(
        capabilities=ProfileCapabilities(
            network=NetworkType.TESTNET,
            chain_type=ChainType.DEVELOPMENT,
            has_admin_key=True,
            derives_governance=True,
        ),
        runtime='dev',
        anchor_resource='btc_genesis_params_testnet.json',
        btc_params=BTC_TESTNET_PARAMS,
        sessions_per_era=12,
        evm_chain_id=1503,
        endowment=ENDOWMENT,
    ),
    Profile.LOCAL: ProfileParameters(
        capabilities=ProfileCapabilities(
            network=NetworkType.TESTNET,
            chain_type=ChainType.LOCAL,
            has_admin_key=True,
            derives_governance=True,
        ),
        runtime='dev',
        anchor_resource='btc_genesis_params_testnet.json',
        btc_params=BTC_TESTNET_PARAMS,
        sessions_per_era=12,
        evm_chain_id=1503,
        endowment=ENDOWMENT,
    ),
    Profile.PUBLIC_TEST: ProfileParameters(
        capabilities=ProfileCapabilities(
            network=NetworkType.TESTNET,
            chain_type=ChainType.LIVE,
            has_admin_key=True,
            derives_governance=False,
        ),
        runtime='malan',
        anchor_resource='btc_genesis_params_testnet.json',
        btc_params=BTC_TESTNET_PARAMS,
        sessions_per_era=12,
        evm_chain_id=1502,
        endowment=0,
        minimum_validator_count=2,
    ),
    Profile.MAIN: ProfileParameters(
        capabilities=ProfileCapabilities(
            network=NetworkType.MAINNET,
            chain_type=ChainType.LIVE,
            has_admin_key=False,
            derives_governance=False,
        ),
        runtime='chainx',
        anchor_resource='btc_genesis_params_mainnet.json',
        btc_params=BTC_MAINNET_PARAMS,
        sessions_per_era=1,
        evm_chain_id=1501,
        endowment=0,
    ),
}

_unmapped = set(Profile) - set(PROFILE_PARAMETERS)
if _unmapped:
    raise RuntimeError(f"Profiles without parameters: {sorted(p.value for p in _unmapped)}")


def parameters_for(profile: Profile) -> ProfileParameters:
    """Returns the constants for a profile."""
    try:
        return PROFILE_PARAMETERS[Profile(profile)]
    except (KeyError, ValueError):
        raise UnknownProfile(f"Unknown profile {profile!r}") from None
