"""
Loader for the static genesis data tables under res/.

Every table is a JSON object with a `version` field. Files are read at most
once per loader.
"""
import json
import logging
import os

from genesis_spec.assets import AssetParams
from genesis_spec.bitcoin import (
    BtcGenesisParams,
    TrusteeCandidates,
    btc_genesis_params,
    trustee_candidates_from_dict,
)
from genesis_spec.errors import MissingResource
from genesis_spec.keys import AuthorityIdentity
from genesis_spec.profiles import BtcParams
from genesis_spec.utils.encoding import from_hex

logger = logging.getLogger(__name__)

RESOURCE_VERSION = 1


class ResourceLoader:
    def __init__(self, res_dir: str):
        self.res_dir = res_dir
        self._cache = {}

    def path(self, name: str) -> str:
        return os.path.join(self.res_dir, name)

    def read_bytes(self, name: str) -> bytes:
        path = self.path(name)
        if not os.path.isfile(path):
            raise MissingResource(f"Resource {name} not found in {self.res_dir}")
        with open(path, 'rb') as f:
            return f.read()

    def load_json(self, name: str) -> dict:
        if name in self._cache:
            return self._cache[name]
        try:
            data = json.loads(self.read_bytes(name).decode('utf-8'))
        except (UnicodeDecodeError, ValueError) as e:
            raise MissingResource(f"Resource {name} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MissingResource(f"Resource {name} is not a JSON object")
        if data.get('version') != RESOURCE_VERSION:
            raise MissingResource(f"Resource {name} has unsupported version {data.get('version')!r}")
        logger.debug(f"Loaded resource {name}")
        self._cache[name] = data
        return data

    def section(self, name: str, key: str):
        data = self.load_json(name)
        if key not in data:
            raise MissingResource(f"Resource {name} has no '{key}' section")
        return data[key]

    def anchor(self, name: str, params: BtcParams) -> BtcGenesisParams:
        return btc_genesis_params(self.load_json(name), params)

    def trustee_candidates(self, name: str) -> tuple[TrusteeCandidates, ...]:
        return tuple(trustee_candidates_from_dict(e) for e in self.section(name, 'candidates'))

    def assets(self, name: str = 'genesis_assets.json') -> list[AssetParams]:
        return [AssetParams.from_dict(e) for e in self.section(name, 'assets')]

    def authorities(self, name: str) -> list[AuthorityIdentity]:
        return [AuthorityIdentity.from_dict(e) for e in self.section(name, 'authorities')]

    def accounts(self, name: str, key: str) -> tuple[bytes, ...]:
        return tuple(from_hex(a) for a in self.section(name, key))

    def admin_key(self, name: str, network: str) -> bytes:
        try:
            return from_hex(self.section(name, 'admin_keys')[network])
        except KeyError:
            raise MissingResource(f"No admin key for {network} in {name}") from None

    def genesis_builder_params(self, name: str = 'genesis_builder_params.json') -> dict:
        return self.section(name, 'params')
