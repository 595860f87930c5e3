"""
Initial native-currency balances and the governance seats derived from them.
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from genesis_spec.errors import DuplicateEndowment, InvalidEndowmentAmount, NegativeEndowment
from genesis_spec.profiles import STASH
from genesis_spec.utils.encoding import to_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Endowment:
    # Native balances are tracked by the balances section, everything else
    # by the asset section.
    native: tuple[tuple[bytes, int], ...]
    total_endowed: int
    technical_members: tuple[bytes, ...]
    elections_members: tuple[tuple[bytes, int], ...]
    assets: Mapping[int, tuple[tuple[bytes, int], ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def accounts(self) -> tuple[bytes, ...]:
        return tuple(account for account, _ in self.native)

    def to_dict(self) -> dict:
        return {
            'native': [[to_hex(a), v] for a, v in self.native],
            'totalEndowed': self.total_endowed,
            'assets': {
                str(asset_id): [[to_hex(a), v] for a, v in entries]
                for asset_id, entries in self.assets.items()
            },
        }


def _check_amount(amount, what: str):
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidEndowmentAmount(f"{what} endowment amount {amount!r} is not an integer")


def _check_entries(entries: Iterable[tuple[bytes, int]], what: str) -> tuple[tuple[bytes, int], ...]:
    seen = set()
    checked = []
    for account, amount in entries:
        _check_amount(amount, what)
        if amount < 0:
            raise NegativeEndowment(f"Negative {what} endowment {amount} for {to_hex(account)}")
        if account in seen:
            raise DuplicateEndowment(f"Account {to_hex(account)} endowed twice with {what}")
        seen.add(account)
        checked.append((bytes(account), amount))
    return tuple(checked)


def allocate_assets(
    endowed: Mapping[int, Iterable[tuple[bytes, int]]],
) -> Mapping[int, tuple[tuple[bytes, int], ...]]:
    """
    Validates an explicit {asset_id: [(account, amount)]} mapping for
    non-native assets. Ids are not checked against the registry here.
    """
    result = {}
    for asset_id in sorted(endowed):
        result[asset_id] = _check_entries(endowed[asset_id], f"asset {asset_id}")
    return MappingProxyType(result)


def allocate(
    accounts: Iterable[bytes],
    amount_per_account: int,
    reserved_stake: int = STASH,
    assets: Optional[Mapping[int, Iterable[tuple[bytes, int]]]] = None,
) -> Endowment:
    """
    Endows every account with the same native amount.

    The first ceil(n/2) accounts, in input order, become both the initial
    technical committee and the initial elected council; each council seat
    reserves `reserved_stake`.

    Raises:
        InvalidEndowmentAmount: amount_per_account is not an int
        NegativeEndowment: amount_per_account is negative
        DuplicateEndowment: an account is listed twice
    """
    _check_amount(amount_per_account, 'native')
    native = _check_entries(((a, amount_per_account) for a in accounts), 'native')
    total_endowed = sum(amount for _, amount in native)

    seats = (len(native) + 1) // 2
    notable = [account for account, _ in native[:seats]]

    endowment = Endowment(
        native=native,
        total_endowed=total_endowed,
        technical_members=tuple(notable),
        elections_members=tuple((account, reserved_stake) for account in notable),
        assets=allocate_assets(assets or {}),
    )
    logger.debug(
        f"Endowed {len(native)} accounts with {amount_per_account} each "
        f"(total {total_endowed}, {seats} governance seats)"
    )
    return endowment
