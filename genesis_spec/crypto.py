"""
Core cryptographic functions for the genesis builder.
"""
import hashlib
from cryptography.hazmat.primitives.asymmetric import ec
import nacl.encoding
import nacl.exceptions
import nacl.hash
import nacl.signing

# --- Seed-based Ed25519 keys using PyNaCl ---

def derive_signing_key(path: str, role: bytes) -> nacl.signing.SigningKey:
    """
    Derives a deterministic signing key from a derivation path.

    The 32-byte secret seed is BLAKE2b(path) keyed with the role tag, so the
    same path yields unrelated keys for different roles.
    """
    secret = nacl.hash.blake2b(
        path.encode('utf-8'),
        digest_size=32,
        key=role,
        encoder=nacl.encoding.RawEncoder,
    )
    return nacl.signing.SigningKey(secret)

def derive_public_key(path: str, role: bytes) -> bytes:
    """Returns the raw 32-byte Ed25519 public key for a derivation path."""
    return derive_signing_key(path, role).verify_key.encode()

def generate_hash(data: bytes) -> bytes:
    """Generates a Keccak-256 hash."""
    from Crypto.Hash import keccak
    return keccak.new(digest_bits=256, data=data).digest()

def sha256d(data: bytes) -> bytes:
    """Double SHA-256, as used for Bitcoin header hashes."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()

def is_compressed_secp256k1_key(key: bytes) -> bool:
    """Checks that the bytes are a compressed secp256k1 point on the curve."""
    if len(key) != 33 or key[0] not in (2, 3):
        return False
    try:
        ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), key)
        return True
    except ValueError:
        return False
