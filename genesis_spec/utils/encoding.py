"""
Hex helpers for genesis values.

Byte strings are written as `0x`-prefixed lower-case hex, the form the node
expects in chain spec JSON.
"""

def to_hex(b: bytes) -> str:
    """Encode bytes as a 0x-prefixed hex string."""
    return '0x' + bytes(b).hex()

def from_hex(s: str) -> bytes:
    """Decode a hex string, with or without the 0x prefix."""
    if s.startswith(('0x', '0X')):
        s = s[2:]
    return bytes.fromhex(s)

def h256_from_rev_hex(s: str) -> bytes:
    """
    Decode a 32-byte hash written in display order (most significant byte
    first) into internal byte order.
    Bitcoin prints block and merkle hashes reversed.
    """
    raw = from_hex(s)
    if len(raw) != 32:
        raise ValueError(f"Expected 32-byte hash, got {len(raw)} bytes")
    return raw[::-1]

def h256_to_rev_hex(b: bytes) -> str:
    """Inverse of h256_from_rev_hex, without the 0x prefix."""
    return b[::-1].hex()
