from setuptools import setup, find_namespace_packages

setup(
    name="genesis-spec",
    version="0.1.0",
    packages=find_namespace_packages(include=["genesis_spec", "genesis_spec.*"], exclude=["genesis_spec.res"]),
    package_data={"genesis_spec": ["res/*.json"]},
    python_requires=">=3.9",
    install_requires=[
        "wasmtime",        # runtime code image validation
        "msgpack",         # canonical genesis encoding
        "PyNaCl",          # ed25519 authority keys, blake2b derivation
        "pycryptodome",    # keccak genesis digest
        "cryptography",    # secp256k1 trustee keys
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "genesis-tool=genesis_spec.genesis_tool:main",
        ],
    },
)
