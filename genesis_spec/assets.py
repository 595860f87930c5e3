"""
Asset registry initialization.

A single declarative list of AssetParams is split into the registry entries
and the per-asset restriction map. The native currency id is reserved: its
balances live in the balances section, never in the asset registry.
"""
import logging
from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Iterable, Optional

from genesis_spec.errors import DuplicateAssetId, ReservedAssetId, UnknownAssetReference
from genesis_spec.profiles import PCX

logger = logging.getLogger(__name__)


class Chain(Enum):
    CHAINX = 'ChainX'
    BITCOIN = 'Bitcoin'
    ETHEREUM = 'Ethereum'
    POLKADOT = 'Polkadot'


class AssetRestrictions(IntFlag):
    """Operations that are *disallowed* for an asset."""
    NONE = 0
    MOVE = 1 << 0
    TRANSFER = 1 << 1
    DEPOSIT = 1 << 2
    WITHDRAW = 1 << 3
    DESTROY_WITHDRAWAL = 1 << 4
    DESTROY_USABLE = 1 << 5

    def allows(self, op: 'AssetRestrictions') -> bool:
        return not (self & op)

    @classmethod
    def from_names(cls, names: Iterable[str]) -> 'AssetRestrictions':
        flags = cls.NONE
        for name in names:
            try:
                flags |= cls[name]
            except KeyError:
                raise ValueError(f"Unknown asset restriction {name!r}") from None
        return flags


@dataclass(frozen=True)
class AssetInfo:
    token: str
    token_name: str
    chain: Chain
    decimals: int
    desc: str

    def to_dict(self) -> dict:
        return {
            'token': self.token,
            'tokenName': self.token_name,
            'chain': self.chain.value,
            'decimals': self.decimals,
            'desc': self.desc,
        }


@dataclass(frozen=True)
class AssetParams:
    """One declarative asset definition."""
    asset_id: int
    info: AssetInfo
    restrictions: AssetRestrictions
    is_online: bool = True
    has_mining_rights: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> 'AssetParams':
        return cls(
            asset_id=int(data['id']),
            info=AssetInfo(
                token=data['token'],
                token_name=data['token_name'],
                chain=Chain(data['chain']),
                decimals=int(data['decimals']),
                desc=data['desc'],
            ),
            restrictions=AssetRestrictions.from_names(data.get('restrictions', [])),
            is_online=bool(data.get('is_online', True)),
            has_mining_rights=bool(data.get('has_mining_rights', True)),
        )


@dataclass(frozen=True)
class AssetDescriptor:
    """A registry entry: (id, info, is_online, has_mining_rights)."""
    asset_id: int
    info: AssetInfo
    is_online: bool
    has_mining_rights: bool

    def to_list(self) -> list:
        return [self.asset_id, self.info.to_dict(), self.is_online, self.has_mining_rights]


def pcx() -> tuple[int, AssetInfo, AssetRestrictions]:
    """The native currency; only used for display and endowment bookkeeping."""
    return (
        PCX,
        AssetInfo(
            token='PCX',
            token_name='Polkadot ChainX',
            chain=Chain.CHAINX,
            decimals=8,
            desc="ChainX's crypto currency in Polkadot ecology",
        ),
        AssetRestrictions.DEPOSIT
        | AssetRestrictions.WITHDRAW
        | AssetRestrictions.DESTROY_WITHDRAWAL
        | AssetRestrictions.DESTROY_USABLE,
    )


def init_assets(
    assets: Iterable[AssetParams],
    extra_restrictions: Optional[Iterable[tuple[int, AssetRestrictions]]] = None,
) -> tuple[list[AssetDescriptor], dict[int, AssetRestrictions]]:
    """
    Splits asset definitions into registry entries and restrictions.

    Args:
        assets: Declarative asset definitions, in registration order
        extra_restrictions: Additional (asset_id, restrictions) overrides; each
            id must be one of the registered assets

    Returns:
        (registry entries, {asset_id: restrictions})

    Raises:
        DuplicateAssetId: two definitions share an id
        ReservedAssetId: a definition uses the native currency id
        UnknownAssetReference: an extra restriction names an unregistered id
    """
    registry = []
    restrictions = {}
    for params in assets:
        if params.asset_id == PCX:
            raise ReservedAssetId(
                f"Asset id {PCX} is reserved for the native currency ({params.info.token})"
            )
        if params.asset_id in restrictions:
            raise DuplicateAssetId(f"Asset id {params.asset_id} registered twice")
        registry.append(AssetDescriptor(
            asset_id=params.asset_id,
            info=params.info,
            is_online=params.is_online,
            has_mining_rights=params.has_mining_rights,
        ))
        restrictions[params.asset_id] = params.restrictions

    for asset_id, flags in extra_restrictions or ():
        if asset_id not in restrictions:
            raise UnknownAssetReference(f"Restriction references unknown asset id {asset_id}")
        restrictions[asset_id] = AssetRestrictions(flags)

    logger.debug(f"Initialized {len(registry)} assets: {[a.info.token for a in registry]}")
    return registry, restrictions
