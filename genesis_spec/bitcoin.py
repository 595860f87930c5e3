"""
Bitcoin bridge genesis: the external chain anchor and the trustee committee.

The anchor is the Bitcoin header the bridge starts verifying from. Verifying
it is the job of an AnchorVerifier collaborator, which must run before the
trustee set is assembled; the assembler itself trusts the anchor as given.
"""
import json
import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from genesis_spec.assets import Chain
from genesis_spec.crypto import is_compressed_secp256k1_key, sha256d
from genesis_spec.errors import (
    InsufficientTrustees,
    InvalidAnchor,
    InvalidTrusteeKey,
    NoTrusteesForChain,
)
from genesis_spec.keys import get_account_id_from_seed
from genesis_spec.profiles import BtcParams
from genesis_spec.utils.encoding import from_hex, h256_from_rev_hex, h256_to_rev_hex, to_hex

logger = logging.getLogger(__name__)


class BtcNetwork(Enum):
    MAINNET = 'Mainnet'
    TESTNET = 'Testnet'


def compact_to_target(bits: int) -> int:
    """Expands Bitcoin's compact difficulty encoding into a 256-bit target."""
    exponent = bits >> 24
    mantissa = bits & 0x007fffff
    if bits & 0x00800000:
        raise InvalidAnchor(f"Negative compact target {bits:#x}")
    if exponent <= 3:
        return mantissa >> (8 * (3 - exponent))
    return mantissa << (8 * (exponent - 3))


@dataclass(frozen=True)
class BtcHeader:
    version: int
    previous_header_hash: bytes  # Internal byte order
    merkle_root_hash: bytes      # Internal byte order
    time: int
    bits: int
    nonce: int

    def __post_init__(self):
        for name in ('version', 'time', 'bits', 'nonce'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2 ** 32:
                raise InvalidAnchor(f"Header {name} must be a 32-bit unsigned integer, got {value!r}")
        for name in ('previous_header_hash', 'merkle_root_hash'):
            if len(getattr(self, name)) != 32:
                raise InvalidAnchor(f"Header {name} must be 32 bytes")

    def serialize(self) -> bytes:
        """The 80-byte wire encoding."""
        return (
            struct.pack('<I', self.version)
            + self.previous_header_hash
            + self.merkle_root_hash
            + struct.pack('<III', self.time, self.bits, self.nonce)
        )

    def hash(self) -> bytes:
        return sha256d(self.serialize())

    def to_dict(self) -> dict:
        return {
            'version': self.version,
            'previousHeaderHash': to_hex(self.previous_header_hash),
            'merkleRootHash': to_hex(self.merkle_root_hash),
            'time': self.time,
            'bits': self.bits,
            'nonce': self.nonce,
        }


@dataclass(frozen=True)
class BtcGenesisParams:
    """
    The external chain anchor: header, height, confirmation depth and the
    difficulty retargeting parameters of the bridged network.
    """
    network: BtcNetwork
    confirmation_number: int
    height: int
    declared_hash: bytes  # Internal byte order
    header: BtcHeader
    params: BtcParams

    chain = Chain.BITCOIN

    def hash(self) -> bytes:
        return self.declared_hash

    @property
    def display_hash(self) -> str:
        return h256_to_rev_hex(self.declared_hash)


def btc_genesis_params(res: Union[str, dict], params: BtcParams) -> BtcGenesisParams:
    """
    Parses an anchor resource.

    Args:
        res: JSON text, or its decoded object, with network,
            confirmation_number, height, hash, header_version and the other
            header fields; hashes are in display order
        params: Retargeting parameters for the network family

    Raises:
        InvalidAnchor: the resource is not a well-formed anchor
    """
    try:
        data = json.loads(res) if isinstance(res, str) else res
        header = BtcHeader(
            version=data['header_version'],
            previous_header_hash=h256_from_rev_hex(data['previous_header_hash']),
            merkle_root_hash=h256_from_rev_hex(data['merkle_root_hash']),
            time=data['time'],
            bits=data['bits'],
            nonce=data['nonce'],
        )
        anchor = BtcGenesisParams(
            network=BtcNetwork(data['network']),
            confirmation_number=int(data['confirmation_number']),
            height=int(data['height']),
            declared_hash=h256_from_rev_hex(data['hash']),
            header=header,
            params=params,
        )
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise InvalidAnchor(f"Malformed bitcoin genesis params: {e}") from e
    if anchor.confirmation_number <= 0:
        raise InvalidAnchor("Confirmation number must be positive")
    return anchor


class AnchorVerifier:
    """Checks an anchor before it is bound into genesis."""

    def verify(self, anchor: BtcGenesisParams) -> None:
        raise NotImplementedError


class HeaderHashVerifier(AnchorVerifier):
    """
    Recomputes the header hash and checks the header's proof of work against
    its own target and against the network's maximum target.
    """

    def verify(self, anchor: BtcGenesisParams) -> None:
        computed = anchor.header.hash()
        if computed != anchor.declared_hash:
            raise InvalidAnchor(
                f"Header hash {h256_to_rev_hex(computed)} does not match "
                f"declared hash {anchor.display_hash}"
            )
        target = compact_to_target(anchor.header.bits)
        if target > compact_to_target(anchor.params.max_bits):
            raise InvalidAnchor(
                f"Header bits {anchor.header.bits:#x} exceed max bits {anchor.params.max_bits:#x}"
            )
        if int.from_bytes(computed, 'little') > target:
            raise InvalidAnchor(f"Header {anchor.display_hash} does not meet its target")
        logger.debug(f"Verified bitcoin anchor {anchor.display_hash} at height {anchor.height}")


# --- Trustees ---

@dataclass(frozen=True)
class TrusteeInfoConfig:
    min_trustee_count: int
    max_trustee_count: int

    def to_dict(self) -> dict:
        return {
            'minTrusteeCount': self.min_trustee_count,
            'maxTrusteeCount': self.max_trustee_count,
        }


@dataclass(frozen=True)
class BtcTrusteeParams:
    account: bytes
    about: bytes
    hot_key: bytes
    cold_key: bytes

    def __post_init__(self):
        for name in ('hot_key', 'cold_key'):
            if not is_compressed_secp256k1_key(getattr(self, name)):
                raise InvalidTrusteeKey(
                    f"Trustee {self.about.decode('utf-8', 'replace')} has an invalid {name}"
                )

    def to_list(self) -> list:
        return [
            to_hex(self.account),
            self.about.decode('utf-8'),
            to_hex(self.hot_key),
            to_hex(self.cold_key),
        ]


@dataclass(frozen=True)
class TrusteeCandidates:
    """Candidate committee for one external chain."""
    chain: Chain
    config: TrusteeInfoConfig
    trustees: tuple[BtcTrusteeParams, ...]

    def to_list(self) -> list:
        return [self.chain.value, self.config.to_dict(), [t.to_list() for t in self.trustees]]


@dataclass(frozen=True)
class TrusteeSet:
    chain: Chain
    config: TrusteeInfoConfig
    trustees: tuple[BtcTrusteeParams, ...]

    @property
    def keys(self) -> tuple[bytes, ...]:
        """Ordered trustee accounts forming the genesis committee."""
        return tuple(t.account for t in self.trustees)


def trustee_candidates_from_dict(data: dict) -> TrusteeCandidates:
    """
    Parses one candidate set. A trustee entry names either a hex `account`
    or a `seed` from which the account is derived.
    """
    try:
        config = TrusteeInfoConfig(
            min_trustee_count=int(data['config']['min_trustee_count']),
            max_trustee_count=int(data['config']['max_trustee_count']),
        )
        trustees = []
        for entry in data['trustees']:
            if 'seed' in entry:
                account = get_account_id_from_seed(entry['seed'])
            else:
                account = from_hex(entry['account'])
            trustees.append(BtcTrusteeParams(
                account=account,
                about=entry['about'].encode('utf-8'),
                hot_key=from_hex(entry['hot_key']),
                cold_key=from_hex(entry['cold_key']),
            ))
        return TrusteeCandidates(chain=Chain(data['chain']), config=config, trustees=tuple(trustees))
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidTrusteeKey(f"Malformed trustee candidates: {e}") from e


def assemble_trustees(
    candidate_sets: Iterable[TrusteeCandidates],
    anchor: Optional[BtcGenesisParams] = None,
    chain: Chain = Chain.BITCOIN,
) -> TrusteeSet:
    """
    Selects the committee for the bridged chain.

    The chain is taken from the anchor when one is given. The first candidate
    set for that chain wins; sets for other chains are ignored.

    Raises:
        NoTrusteesForChain: no candidate set names the chain
        InsufficientTrustees: the set is outside the configured size bounds
    """
    if anchor is not None:
        chain = anchor.chain
    for candidates in candidate_sets:
        if candidates.chain != chain:
            continue
        count = len(candidates.trustees)
        config = candidates.config
        if count < config.min_trustee_count:
            raise InsufficientTrustees(
                f"{chain.value} has {count} trustees, at least "
                f"{config.min_trustee_count} required"
            )
        if count > config.max_trustee_count:
            raise InsufficientTrustees(
                f"{chain.value} has {count} trustees, at most "
                f"{config.max_trustee_count} allowed"
            )
        logger.debug(f"Selected {count} {chain.value} trustees")
        return TrusteeSet(chain=chain, config=config, trustees=candidates.trustees)
    raise NoTrusteesForChain(f"No trustee candidates configured for {chain.value}")
