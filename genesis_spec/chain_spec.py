"""
Chain spec envelope: a genesis state plus the network metadata clients need.

Dynamic profiles wrap a freshly assembled GenesisState. Published profiles
wrap a frozen snapshot file, which is decoded only far enough to check its
shape and is re-encoded from the decoded document, never rebuilt.

File format: UTF-8 JSON, two-space indent, trailing newline, with a leading
`formatVersion` field. Floats, NaN and duplicate keys are rejected so that
decoding and re-encoding a frozen file is byte-identical.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from genesis_spec.assets import pcx
from genesis_spec.errors import MalformedSnapshot
from genesis_spec.genesis import GenesisState
from genesis_spec.profiles import PCX_DECIMALS, ChainType, NetworkType

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

REQUIRED_FIELDS = ('formatVersion', 'name', 'id', 'chainType', 'genesis')


def as_properties(network: NetworkType) -> dict:
    """Display properties for wallets and explorers."""
    token = pcx()[1]
    return {
        'network': network.value,
        'ss58Format': network.ss58_format,
        'tokenDecimals': PCX_DECIMALS,
        'tokenSymbol': token.token,
    }


@dataclass(frozen=True)
class Extensions:
    """Client metadata carried alongside genesis."""
    fork_blocks: Optional[list] = None  # Block numbers with known hashes
    bad_blocks: Optional[list] = None   # Known bad block hashes
    light_sync_state: Optional[dict] = None

    def to_dict(self) -> dict:
        return {
            'forkBlocks': self.fork_blocks,
            'badBlocks': self.bad_blocks,
            'lightSyncState': self.light_sync_state,
        }


@dataclass(frozen=True)
class SpecMetadata:
    name: str
    id: str
    chain_type: ChainType
    boot_nodes: tuple = ()
    telemetry_endpoints: tuple = ()  # (url, verbosity) pairs
    protocol_id: Optional[str] = None
    properties: Optional[dict] = None
    extensions: Extensions = Extensions()


@dataclass(frozen=True)
class FrozenGenesis:
    """A published genesis, kept exactly as decoded."""
    data: Mapping


@dataclass(frozen=True)
class ChainSpecEnvelope:
    metadata: SpecMetadata
    genesis: Union[GenesisState, FrozenGenesis]
    code_substitutes: Mapping = field(default_factory=dict)
    # Decoded document of a frozen spec; re-encoded verbatim.
    source: Optional[Mapping] = None

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def is_frozen(self) -> bool:
        return isinstance(self.genesis, FrozenGenesis)

    @property
    def genesis_hash(self) -> Optional[bytes]:
        """Digest of the assembled genesis; None for frozen specs."""
        if self.is_frozen:
            return None
        return self.genesis.hash

    def to_dict(self) -> dict:
        if self.source is not None:
            return self.source
        m = self.metadata
        doc = {
            'formatVersion': FORMAT_VERSION,
            'name': m.name,
            'id': m.id,
            'chainType': m.chain_type.value,
            'bootNodes': list(m.boot_nodes),
            'telemetryEndpoints': (
                [[url, verbosity] for url, verbosity in m.telemetry_endpoints]
                if m.telemetry_endpoints else None
            ),
            'protocolId': m.protocol_id,
            'properties': m.properties,
        }
        doc.update(m.extensions.to_dict())
        doc['codeSubstitutes'] = dict(self.code_substitutes)
        if self.is_frozen:
            doc['genesis'] = self.genesis.data
        else:
            doc['genesis'] = {'runtime': self.genesis.to_dict()}
        return doc

    def to_json_bytes(self) -> bytes:
        return encode_document(self.to_dict())


def encode_document(doc: Mapping) -> bytes:
    return (json.dumps(doc, indent=2, ensure_ascii=False) + '\n').encode('utf-8')


def _reject_duplicates(pairs):
    obj = {}
    for key, value in pairs:
        if key in obj:
            raise MalformedSnapshot(f"Duplicate key {key!r}")
        obj[key] = value
    return obj


def _reject_float(value):
    raise MalformedSnapshot(f"Non-integer number {value}")


def decode_document(data: bytes) -> dict:
    try:
        text = data.decode('utf-8')
        doc = json.loads(
            text,
            object_pairs_hook=_reject_duplicates,
            parse_float=_reject_float,
            parse_constant=_reject_float,
        )
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedSnapshot(f"Chain spec is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise MalformedSnapshot("Chain spec must be a JSON object")
    return doc


def from_json_bytes(data: bytes) -> ChainSpecEnvelope:
    """
    Decodes a frozen chain spec.

    Raises:
        MalformedSnapshot: the document does not parse or lacks required fields
    """
    doc = decode_document(data)

    missing = [k for k in REQUIRED_FIELDS if k not in doc]
    if missing:
        raise MalformedSnapshot(f"Chain spec is missing fields: {', '.join(missing)}")
    if doc['formatVersion'] != FORMAT_VERSION:
        raise MalformedSnapshot(f"Unsupported chain spec format version {doc['formatVersion']!r}")
    try:
        chain_type = ChainType(doc['chainType'])
    except ValueError:
        raise MalformedSnapshot(f"Unknown chain type {doc['chainType']!r}") from None
    genesis = doc['genesis']
    if not isinstance(genesis, dict) or not ({'raw', 'runtime'} & set(genesis)):
        raise MalformedSnapshot("Chain spec genesis must hold a 'raw' or 'runtime' section")

    telemetry = doc.get('telemetryEndpoints') or []
    try:
        endpoints = tuple((url, int(verbosity)) for url, verbosity in telemetry)
    except (TypeError, ValueError) as e:
        raise MalformedSnapshot(f"Malformed telemetry endpoints: {e}") from e

    boot_nodes = doc.get('bootNodes')
    if boot_nodes is None:
        boot_nodes = []
    if not isinstance(boot_nodes, list) or not all(isinstance(node, str) for node in boot_nodes):
        raise MalformedSnapshot("bootNodes must be a list of multiaddr strings")

    metadata = SpecMetadata(
        name=doc['name'],
        id=doc['id'],
        chain_type=chain_type,
        boot_nodes=tuple(boot_nodes),
        telemetry_endpoints=endpoints,
        protocol_id=doc.get('protocolId'),
        properties=doc.get('properties'),
        extensions=Extensions(
            fork_blocks=doc.get('forkBlocks'),
            bad_blocks=doc.get('badBlocks'),
            light_sync_state=doc.get('lightSyncState'),
        ),
    )
    return ChainSpecEnvelope(
        metadata=metadata,
        genesis=FrozenGenesis(genesis),
        code_substitutes=doc.get('codeSubstitutes') or {},
        source=doc,
    )


def is_byte_stable(data: bytes) -> bool:
    """True when decoding then re-encoding yields the same bytes."""
    return from_json_bytes(data).to_json_bytes() == data


def wrap(
    genesis: Union[GenesisState, bytes],
    metadata: SpecMetadata,
) -> ChainSpecEnvelope:
    """
    Wraps an assembled genesis state, or the bytes of a frozen spec, with
    network metadata.

    For frozen bytes the file's own metadata is kept; the given metadata must
    agree with it on name and id.

    Raises:
        MalformedSnapshot: frozen bytes do not decode or disagree with metadata
    """
    if isinstance(genesis, GenesisState):
        logger.info(f"Wrapped {genesis.profile.value} genesis as '{metadata.name}' ({metadata.id})")
        return ChainSpecEnvelope(metadata=metadata, genesis=genesis)

    envelope = from_json_bytes(bytes(genesis))
    if (envelope.name, envelope.id) != (metadata.name, metadata.id):
        raise MalformedSnapshot(
            f"Frozen spec is '{envelope.name}' ({envelope.id}), "
            f"expected '{metadata.name}' ({metadata.id})"
        )
    logger.info(f"Loaded frozen spec '{envelope.name}' ({envelope.id})")
    return envelope
