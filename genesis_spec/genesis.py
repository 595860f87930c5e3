"""
Genesis state assembly.

One assembler serves every profile; the profile's capabilities decide which
optional sections exist. Validator order is fixed once, in the ValidatorBinding
list, and every section that enumerates validators projects from that list.

All checks run before the state is created. A GenesisState that exists is
complete and internally consistent, and is never modified afterwards.
"""
import copy
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

import msgpack

from genesis_spec.assets import AssetDescriptor, AssetParams, AssetRestrictions, init_assets
from genesis_spec.bitcoin import (
    BtcGenesisParams,
    BtcNetwork,
    TrusteeCandidates,
    TrusteeSet,
    assemble_trustees,
)
from genesis_spec.crypto import generate_hash
from genesis_spec.endowment import Endowment
from genesis_spec.errors import (
    AdminKeyMismatch,
    DuplicateAuthority,
    IncompleteAuthority,
    InvalidAnchor,
    UnendowedValidator,
    UnknownAssetReference,
)
from genesis_spec.keys import AuthorityIdentity
from genesis_spec.profiles import (
    BASE_FEE_ELASTICITY,
    DEFAULT_BASE_FEE_PER_GAS,
    PCX,
    NetworkType,
    Profile,
    ProfileParameters,
    parameters_for,
)
from genesis_spec.utils.encoding import to_hex

logger = logging.getLogger(__name__)

BTC_TX_VERIFIER = 'Recover'


@dataclass(frozen=True)
class SessionKeys:
    babe: bytes
    grandpa: bytes
    im_online: bytes
    authority_discovery: bytes

    def to_dict(self) -> dict:
        return {
            'grandpa': to_hex(self.grandpa),
            'babe': to_hex(self.babe),
            'imOnline': to_hex(self.im_online),
            'authorityDiscovery': to_hex(self.authority_discovery),
        }


@dataclass(frozen=True)
class ValidatorBinding:
    """A validator's stash account bound to its four session keys."""
    stash: bytes
    referral: bytes
    keys: SessionKeys

    @classmethod
    def from_authority(cls, authority: AuthorityIdentity) -> 'ValidatorBinding':
        return cls(
            stash=authority.account,
            referral=authority.referral,
            keys=SessionKeys(
                babe=authority.babe,
                grandpa=authority.grandpa,
                im_online=authority.im_online,
                authority_discovery=authority.authority_discovery,
            ),
        )


@dataclass(frozen=True)
class Governance:
    """Governance inputs that do not come from the endowment."""
    admin_key: Optional[bytes] = None
    technical_members: tuple[bytes, ...] = ()


@dataclass(frozen=True)
class BridgeConfig:
    """Bitcoin gateway section: anchor plus the genesis committee."""
    trustees: TrusteeSet
    anchor: BtcGenesisParams
    withdrawal_fee: int
    max_withdrawal_count: int

    def to_dict(self) -> dict:
        anchor = self.anchor
        return {
            'genesisTrustees': [to_hex(k) for k in self.trustees.keys],
            'networkId': anchor.network.value,
            'confirmationNumber': anchor.confirmation_number,
            'genesisHash': to_hex(anchor.hash()),
            'genesisInfo': [anchor.header.to_dict(), anchor.height],
            'paramsInfo': anchor.params.to_dict(),
            'btcWithdrawalFee': self.withdrawal_fee,
            'maxWithdrawalCount': self.max_withdrawal_count,
            'verifier': BTC_TX_VERIFIER,
        }


@dataclass(frozen=True)
class GenesisState:
    profile: Profile
    params: ProfileParameters
    code: bytes
    validators: tuple[ValidatorBinding, ...]
    admin_key: Optional[bytes]
    balances: tuple[tuple[bytes, int], ...]
    total_endowed: int
    assets: tuple[AssetDescriptor, ...]
    asset_restrictions: Mapping[int, AssetRestrictions]
    assets_endowed: Mapping[int, tuple[tuple[bytes, int], ...]]
    technical_members: tuple[bytes, ...]
    elections_members: tuple[tuple[bytes, int], ...]
    trustee_candidates: tuple[TrusteeCandidates, ...]
    bridge: BridgeConfig
    genesis_builder_params: Mapping = field(default_factory=lambda: MappingProxyType({}))

    # --- Validator projections ---

    def session_keys(self) -> list:
        """(account, validator id, keys) per validator, in binding order."""
        return [(v.stash, v.stash, v.keys) for v in self.validators]

    def staking_candidates(self) -> list[tuple[bytes, bytes]]:
        """(stash, referral id) pairs registered as validator candidates."""
        return [(v.stash, v.referral) for v in self.validators]

    # --- Encoding ---

    def to_dict(self) -> dict:
        """The runtime genesis configuration, one entry per runtime section."""
        p = self.params
        config = {}
        if self.admin_key is not None:
            config['sudo'] = {'key': to_hex(self.admin_key)}
        config.update({
            'system': {'code': to_hex(self.code)},
            'babe': {'authorities': [], 'epochConfig': self._epoch_config()},
            'grandpa': {'authorities': []},
            'council': {'members': []},
            'technicalCommittee': {'members': []},
            'technicalMembership': {'members': [to_hex(m) for m in self.technical_members]},
            'democracy': {},
            'treasury': {},
            'elections': {'members': [[to_hex(m), stake] for m, stake in self.elections_members]},
            # Session populates these at block 0.
            'imOnline': {'keys': []},
            'authorityDiscovery': {'keys': []},
            'session': {'keys': [
                [to_hex(account), to_hex(validator), keys.to_dict()]
                for account, validator, keys in self.session_keys()
            ]},
            'balances': {'balances': [[to_hex(a), v] for a, v in self.balances]},
            'indices': {'indices': []},
            'xSystem': {'networkProps': p.network.value},
            'xAssetsRegistrar': {'assets': [a.to_list() for a in self.assets]},
            'xAssets': {
                'assetsRestrictions': [[i, int(r)] for i, r in self.asset_restrictions.items()],
                'endowed': {
                    str(i): [[to_hex(a), v] for a, v in entries]
                    for i, entries in self.assets_endowed.items()
                },
            },
            'xGatewayCommon': {'trustees': [c.to_list() for c in self.trustee_candidates]},
            'xGatewayBitcoin': self.bridge.to_dict(),
            'xStaking': self._staking_dict(),
            'xMiningAsset': {
                'claimRestrictions': [[i, list(r)] for i, r in p.claim_restrictions],
                'miningPowerMap': [list(m) for m in p.mining_power_map],
            },
            'xSpot': {'tradingPairs': [list(t) for t in p.trading_pairs]},
            'xGenesisBuilder': {
                'params': copy.deepcopy(dict(self.genesis_builder_params)),
                'initialAuthorities': [r.decode('utf-8') for _, r in self.staking_candidates()],
            },
            'ethereumChainId': {'chainId': p.evm_chain_id},
            'evm': {'accounts': {}},
            'ethereum': {},
            'baseFee': {
                'baseFeePerGas': DEFAULT_BASE_FEE_PER_GAS,
                'isActive': False,
                'elasticity': BASE_FEE_ELASTICITY,
            },
            'xAssetsBridge': {'adminKey': None},
            'xBtcLedger': {},
        })
        return config

    def _staking_dict(self) -> dict:
        p = self.params
        staking = {
            'validatorCount': p.validator_count,
            'sessionsPerEra': p.sessions_per_era,
            'globDistRatio': list(p.glob_dist_ratio),
            'miningRatio': list(p.mining_ratio),
            'minimumPenalty': p.minimum_penalty,
            'candidateRequirement': list(p.candidate_requirement),
        }
        if p.minimum_validator_count is not None:
            staking['minimumValidatorCount'] = p.minimum_validator_count
        return staking

    def _epoch_config(self) -> dict:
        c, allowed_slots = self.params.babe_epoch_config
        return {'c': list(c), 'allowed_slots': allowed_slots}

    def encode(self) -> bytes:
        """Canonical bytes of the genesis configuration."""
        return msgpack.packb(self.to_dict(), use_bin_type=True)

    @property
    def hash(self) -> bytes:
        return generate_hash(self.encode())


def _bind_validators(authorities: Sequence[AuthorityIdentity]) -> tuple[ValidatorBinding, ...]:
    if not authorities:
        raise IncompleteAuthority("At least one initial authority is required")
    bindings = []
    stashes = set()
    for index, authority in enumerate(authorities):
        missing = authority.missing_roles()
        if missing:
            raise IncompleteAuthority(
                f"Authority #{index} ({authority.referral.decode('utf-8', 'replace')}) "
                f"is missing keys: {', '.join(missing)}"
            )
        if authority.account in stashes:
            raise DuplicateAuthority(f"Stash {to_hex(authority.account)} bound twice")
        stashes.add(authority.account)
        bindings.append(ValidatorBinding.from_authority(authority))
    return tuple(bindings)


def _check_anchor(params: ProfileParameters, anchor: BtcGenesisParams):
    expected = BtcNetwork.MAINNET if params.network is NetworkType.MAINNET else BtcNetwork.TESTNET
    if anchor.network is not expected:
        raise InvalidAnchor(
            f"{params.network.value} genesis cannot anchor bitcoin {anchor.network.value}"
        )
    if anchor.params != params.btc_params:
        raise InvalidAnchor("Anchor retargeting parameters differ from the profile's")


def assemble(
    profile: Profile,
    code: bytes,
    authorities: Sequence[AuthorityIdentity],
    assets: Iterable[AssetParams],
    endowment: Endowment,
    trustee_candidates: Iterable[TrusteeCandidates],
    anchor: BtcGenesisParams,
    governance: Governance = Governance(),
    genesis_builder_params: Optional[Mapping] = None,
) -> GenesisState:
    """
    Composes a sealed genesis state for a profile.

    Args:
        profile: Deployment profile
        code: Runtime code image
        authorities: Initial validators; their order is the validator order
        assets: Non-native asset definitions
        endowment: Native balances, derived governance seats and non-native
            asset endowments
        trustee_candidates: Trustee candidate sets for every bridged chain
        anchor: Verified external chain anchor
        governance: Admin key and, for public profiles, technical members
        genesis_builder_params: Opaque migration data for the genesis builder

    Raises:
        GenesisError: on any inconsistency; nothing is returned in that case
    """
    params = parameters_for(profile)
    profile = Profile(profile)
    caps = params.capabilities

    validators = _bind_validators(authorities)

    registry, restrictions = init_assets(assets)

    assets_endowed = dict(endowment.assets)
    if assets_endowed.pop(PCX, None) is not None:
        logger.debug("Dropped native currency from asset endowments")
    for asset_id in assets_endowed:
        if asset_id not in restrictions:
            raise UnknownAssetReference(f"Endowment references unknown asset id {asset_id}")

    if endowment.native:
        endowed = set(endowment.accounts)
        for binding in validators:
            if binding.stash not in endowed:
                raise UnendowedValidator(
                    f"Validator {binding.referral.decode('utf-8', 'replace')} "
                    f"stash {to_hex(binding.stash)} has no native balance"
                )

    if caps.has_admin_key and governance.admin_key is None:
        raise AdminKeyMismatch(f"Profile {profile.value} requires an admin key")
    if not caps.has_admin_key and governance.admin_key is not None:
        raise AdminKeyMismatch(f"Profile {profile.value} must not have an admin key")

    if caps.derives_governance:
        technical_members = endowment.technical_members
        elections_members = endowment.elections_members
    else:
        technical_members = tuple(governance.technical_members)
        elections_members = ()

    _check_anchor(params, anchor)
    candidates = tuple(trustee_candidates)
    trustees = assemble_trustees(candidates, anchor)
    bridge = BridgeConfig(
        trustees=trustees,
        anchor=anchor,
        withdrawal_fee=params.btc_withdrawal_fee,
        max_withdrawal_count=params.max_withdrawal_count,
    )

    state = GenesisState(
        profile=profile,
        params=params,
        code=bytes(code),
        validators=validators,
        admin_key=governance.admin_key,
        balances=endowment.native,
        total_endowed=endowment.total_endowed,
        assets=tuple(registry),
        asset_restrictions=MappingProxyType(restrictions),
        assets_endowed=MappingProxyType(assets_endowed),
        technical_members=technical_members,
        elections_members=elections_members,
        trustee_candidates=candidates,
        bridge=bridge,
        genesis_builder_params=MappingProxyType(copy.deepcopy(dict(genesis_builder_params or {}))),
    )
    logger.info(
        f"Assembled {profile.value} genesis: {len(validators)} validators, "
        f"{len(state.balances)} endowed accounts (total {state.total_endowed}), "
        f"{len(trustees.keys)} {trustees.chain.value} trustees"
    )
    return state
