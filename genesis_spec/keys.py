"""
Deterministic authority identities derived from human-readable seeds.

A seed such as "Alice" is read as the derivation path "//Alice". Each signing
role derives its own key from that path under a distinct role tag, so no two
roles ever share key material.
"""
import re
from dataclasses import dataclass
from typing import Optional

import nacl.exceptions

from genesis_spec.crypto import derive_public_key
from genesis_spec.errors import IncompleteAuthority, InvalidSeed
from genesis_spec.utils.encoding import from_hex, to_hex

# Role tags double as the BLAKE2b key when deriving each role's secret.
ROLE_ACCOUNT = b'acco'
ROLE_BABE = b'babe'
ROLE_GRANDPA = b'gran'
ROLE_IM_ONLINE = b'imon'
ROLE_AUTHORITY_DISCOVERY = b'audi'

SESSION_ROLES = ('babe', 'grandpa', 'im_online', 'authority_discovery')

PUBLIC_KEY_LENGTH = 32

# "Alice", "Alice//stash", "Alice/soft"; no empty junctions, no "///" password.
_SEED_RE = re.compile(r'^[^/]+(//?[^/]+)*$')


@dataclass(frozen=True)
class AuthorityIdentity:
    """The five role keys of one validator plus its referral label."""
    account: bytes
    referral: bytes
    babe: bytes
    grandpa: bytes
    im_online: bytes
    authority_discovery: bytes

    def missing_roles(self) -> list[str]:
        """Names of roles whose key is absent or not a 32-byte public key."""
        missing = []
        for role in ('account',) + SESSION_ROLES:
            key = getattr(self, role)
            if not key or len(key) != PUBLIC_KEY_LENGTH:
                missing.append(role)
        return missing

    def is_complete(self) -> bool:
        return not self.missing_roles()

    def to_dict(self) -> dict:
        return {
            'account': to_hex(self.account),
            'referral': self.referral.decode('utf-8'),
            'babe': to_hex(self.babe),
            'grandpa': to_hex(self.grandpa),
            'im_online': to_hex(self.im_online),
            'authority_discovery': to_hex(self.authority_discovery),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AuthorityIdentity':
        """Builds an identity from published hex keys (public profiles)."""
        try:
            return cls(
                account=from_hex(data['account']),
                referral=data['referral'].encode('utf-8'),
                babe=from_hex(data.get('babe', '')),
                grandpa=from_hex(data.get('grandpa', '')),
                im_online=from_hex(data.get('im_online', '')),
                authority_discovery=from_hex(data.get('authority_discovery', '')),
            )
        except (KeyError, ValueError) as e:
            raise IncompleteAuthority(f"Malformed authority entry {data!r}: {e}") from e


def _path(seed: str) -> str:
    if not isinstance(seed, str) or not _SEED_RE.match(seed):
        raise InvalidSeed(f"Invalid seed {seed!r}")
    return f"//{seed}"


def get_from_seed(seed: str, role: bytes) -> bytes:
    """Public key for one role derived from a seed."""
    path = _path(seed)
    try:
        return derive_public_key(path, role)
    except (nacl.exceptions.CryptoError, ValueError) as e:
        raise InvalidSeed(f"Key derivation rejected seed {seed!r}: {e}") from e


def get_account_id_from_seed(seed: str) -> bytes:
    """Account (stash) identity derived from a seed."""
    return get_from_seed(seed, ROLE_ACCOUNT)


def derive(seed: str, referral: Optional[str] = None) -> AuthorityIdentity:
    """
    Derives the full authority identity for a seed.

    Args:
        seed: Human-readable seed, e.g. "Alice"
        referral: Referral label; defaults to the seed text

    Raises:
        InvalidSeed: if the seed is not a valid derivation path
    """
    return AuthorityIdentity(
        account=get_from_seed(seed, ROLE_ACCOUNT),
        referral=(referral if referral is not None else seed).encode('utf-8'),
        babe=get_from_seed(seed, ROLE_BABE),
        grandpa=get_from_seed(seed, ROLE_GRANDPA),
        im_online=get_from_seed(seed, ROLE_IM_ONLINE),
        authority_discovery=get_from_seed(seed, ROLE_AUTHORITY_DISCOVERY),
    )

