# genesis_spec/wasm_runtime.py
import logging
import os

import wasmtime

from genesis_spec.errors import MissingRuntimeImage

logger = logging.getLogger(__name__)


class WASMRuntime:
    """Loads runtime code images and checks they are valid wasm modules."""

    def __init__(self, images: dict):
        """
        Args:
            images: {runtime name: path to its code image}
        """
        self.images = images
        self.engine = wasmtime.Engine()
        self.image_cache = {}

    def load(self, runtime: str) -> bytes:
        if runtime in self.image_cache:
            return self.image_cache[runtime]

        path = self.images.get(runtime)
        if not path:
            raise MissingRuntimeImage(f"No code image configured for the {runtime} runtime")
        if not os.path.isfile(path):
            raise MissingRuntimeImage(f"{runtime} wasm binary not available at {path}")

        with open(path, 'rb') as f:
            wasm_bytes = f.read()
        try:
            wasmtime.Module.validate(self.engine, wasm_bytes)
        except wasmtime.WasmtimeError as e:
            raise MissingRuntimeImage(f"{runtime} code image at {path} is not valid wasm: {e}") from e

        logger.info(f"Loaded {runtime} runtime image ({len(wasm_bytes)} bytes) from {path}")
        self.image_cache[runtime] = wasm_bytes
        return wasm_bytes
