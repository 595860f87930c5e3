"""
Chain spec envelope: dynamic wrapping and the frozen snapshot codec.
"""
import json

import pytest

from genesis_spec.chain_spec import (
    FORMAT_VERSION,
    SpecMetadata,
    as_properties,
    decode_document,
    encode_document,
    from_json_bytes,
    is_byte_stable,
    wrap,
)
from genesis_spec.errors import MalformedSnapshot
from genesis_spec.profiles import ChainType, NetworkType

FROZEN = ("chainx_regenesis.json", "malan.json")

TOP_LEVEL_KEYS = [
    "formatVersion", "name", "id", "chainType", "bootNodes", "telemetryEndpoints",
    "protocolId", "properties", "forkBlocks", "badBlocks", "lightSyncState",
    "codeSubstitutes", "genesis",
]


def minimal_doc(**overrides):
    doc = {
        "formatVersion": FORMAT_VERSION,
        "name": "Test",
        "id": "test",
        "chainType": "Live",
        "genesis": {"raw": {"top": {}, "childrenDefault": {}}},
    }
    doc.update(overrides)
    return doc


def dev_metadata(**overrides):
    fields = dict(
        name="Development",
        id="dev",
        chain_type=ChainType.DEVELOPMENT,
        protocol_id="chainx-dev",
        properties=as_properties(NetworkType.TESTNET),
    )
    fields.update(overrides)
    return SpecMetadata(**fields)


class TestFrozenSnapshots:
    @pytest.mark.parametrize("name", FROZEN)
    def test_packaged_snapshot_round_trips(self, resources, name):
        data = resources.read_bytes(name)
        assert is_byte_stable(data)
        assert from_json_bytes(data).to_json_bytes() == data

    def test_frozen_metadata(self, resources):
        envelope = from_json_bytes(resources.read_bytes("chainx_regenesis.json"))
        assert envelope.is_frozen
        assert envelope.genesis_hash is None
        assert envelope.name == "ChainX"
        assert envelope.id == "chainx"
        assert envelope.metadata.chain_type == ChainType.LIVE
        assert envelope.metadata.properties["ss58Format"] == 44
        assert envelope.metadata.telemetry_endpoints[0] == ("wss://telemetry.chainx.org/submit/", 0)
        assert "raw" in envelope.genesis.data

    def test_reformatted_file_is_not_stable(self, resources):
        doc = json.loads(resources.read_bytes("malan.json"))
        data = json.dumps(doc, indent=4).encode("utf-8")
        assert not is_byte_stable(data)

    def test_wrap_frozen_checks_identity(self, resources):
        data = resources.read_bytes("malan.json")
        metadata = dev_metadata(name="ChainX-Malan", id="chainx-malan", chain_type=ChainType.LIVE)
        assert wrap(data, metadata).to_json_bytes() == data
        with pytest.raises(MalformedSnapshot):
            wrap(data, dev_metadata())


class TestDecode:
    def test_minimal_document(self):
        envelope = from_json_bytes(encode_document(minimal_doc()))
        assert envelope.metadata.boot_nodes == ()
        assert envelope.metadata.telemetry_endpoints == ()
        assert envelope.code_substitutes == {}

    @pytest.mark.parametrize("data", [
        b"{",
        b"[]",
        b"\xff\xfe",
        b'{"a": 1, "a": 2}',
        b'{"formatVersion": 1.5}',
        b'{"value": NaN}',
    ])
    def test_rejects_malformed_bytes(self, data):
        with pytest.raises(MalformedSnapshot):
            from_json_bytes(data)

    def test_rejects_missing_fields(self):
        doc = minimal_doc()
        del doc["genesis"]
        with pytest.raises(MalformedSnapshot, match="genesis"):
            from_json_bytes(encode_document(doc))

    def test_rejects_other_versions(self):
        with pytest.raises(MalformedSnapshot, match="version"):
            from_json_bytes(encode_document(minimal_doc(formatVersion=2)))

    def test_rejects_unknown_chain_type(self):
        with pytest.raises(MalformedSnapshot):
            from_json_bytes(encode_document(minimal_doc(chainType="Staging")))

    def test_rejects_genesis_without_state(self):
        with pytest.raises(MalformedSnapshot):
            from_json_bytes(encode_document(minimal_doc(genesis={"other": {}})))

    def test_rejects_malformed_telemetry(self):
        with pytest.raises(MalformedSnapshot):
            from_json_bytes(encode_document(minimal_doc(telemetryEndpoints=[["wss://x", "loud"]])))

    @pytest.mark.parametrize("boot_nodes", [5, "/ip4/127.0.0.1/tcp/30333", [1, 2], {"a": "b"}, 0])
    def test_rejects_malformed_boot_nodes(self, boot_nodes):
        with pytest.raises(MalformedSnapshot, match="bootNodes"):
            from_json_bytes(encode_document(minimal_doc(bootNodes=boot_nodes)))

    def test_boot_nodes_kept(self):
        node = "/ip4/127.0.0.1/tcp/30333/p2p/12D3KooWEyoppNCUx8Yx66oV9fJnriXwCcXwDDUA2kj6vnc6iDEp"
        envelope = from_json_bytes(encode_document(minimal_doc(bootNodes=[node])))
        assert envelope.metadata.boot_nodes == (node,)

    def test_decode_keeps_key_order(self):
        doc = decode_document(b'{"b": 1, "a": 2}')
        assert list(doc) == ["b", "a"]


class TestDynamicEnvelope:
    def test_document_layout(self, dev_state):
        envelope = wrap(dev_state, dev_metadata())
        doc = envelope.to_dict()
        assert list(doc) == TOP_LEVEL_KEYS
        assert doc["formatVersion"] == 1
        assert doc["chainType"] == "Development"
        assert doc["telemetryEndpoints"] is None
        assert doc["bootNodes"] == []
        assert doc["genesis"] == {"runtime": dev_state.to_dict()}
        assert not envelope.is_frozen
        assert envelope.genesis_hash == dev_state.hash

    def test_properties(self):
        props = as_properties(NetworkType.MAINNET)
        assert list(props) == ["network", "ss58Format", "tokenDecimals", "tokenSymbol"]
        assert props == {"network": "mainnet", "ss58Format": 44, "tokenDecimals": 8, "tokenSymbol": "PCX"}

    def test_telemetry_endpoints(self, dev_state):
        metadata = dev_metadata(telemetry_endpoints=(("wss://telemetry.chainx.org/submit/", 0),))
        doc = wrap(dev_state, metadata).to_dict()
        assert doc["telemetryEndpoints"] == [["wss://telemetry.chainx.org/submit/", 0]]

    def test_encoded_dynamic_spec_can_be_frozen(self, dev_state):
        data = wrap(dev_state, dev_metadata()).to_json_bytes()
        assert data.endswith(b"\n")
        assert is_byte_stable(data)
        frozen = from_json_bytes(data)
        assert frozen.is_frozen
        assert frozen.genesis.data["runtime"]["system"]["code"] == "0x0061736d01000000"
