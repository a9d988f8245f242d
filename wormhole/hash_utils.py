# hash_utils.py
"""
Utilities for hashing.

Two hash families are used, and they must stay different functions:
1. COMMITMENT family: keccak-256 reduced into the BN254 scalar field.
   Used for deposit/change commitments, nullifiers and Merkle nodes.
2. BURN family: plain SHA-256.
   Used to derive burn addresses from secrets and for the anti-collision PoW.

Unspendability of a burn address relies on preimage resistance ACROSS the two
functions, so domain separation inside a single hash is not enough.
"""

import hashlib

from eth_utils import keccak

# BN254 scalar field modulus (shared with the Groth16 backend)
FIELD_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

WORD_BYTES = 32
SECRET_BYTES = 32
ADDRESS_BYTES = 20


def to_word(value: int) -> bytes:
    """
    Fixed-width (32 bytes) big-endian encoding of a non-negative integer.

    Raises ValueError for negative values or values that do not fit in 256 bits.
    """
    if value < 0 or value >= 1 << (8 * WORD_BYTES):
        raise ValueError(f"value does not fit in a 32-byte word: {value}")
    return value.to_bytes(WORD_BYTES, byteorder="big", signed=False)


def bytes_to_int(data: bytes) -> int:
    return int.from_bytes(data, byteorder="big", signed=False)


def field(val: int) -> int:
    """Reduce a Python int to a field element."""
    return val % FIELD_MODULUS


def keccak_to_field(*values: int) -> int:
    """
    Hash integers using keccak-256 and map into field (commitment family).

    Deterministic: same inputs always produce same output across runs.

    Args:
        *values: integers, each encoded as a 32-byte word

    Returns:
        integer in [0, FIELD_MODULUS)
    """
    payload = b"".join(to_word(v) for v in values)
    return field(bytes_to_int(keccak(payload)))


def merkle_hash2(left: int, right: int) -> int:
    """
    Merkle parent hash for arity=2.

    Used by the commitment tree, the privacy pool and the plaintext relation
    check, so a branch built by one verifies under the others.
    """
    return keccak_to_field(left, right)


def sha256_digest(*parts: bytes) -> bytes:
    """SHA-256 over the concatenation of parts (burn family)."""
    h = hashlib.sha256()
    for part in parts:
        h.update(part)
    return h.digest()


def check_secret(secret: bytes) -> bytes:
    if not isinstance(secret, (bytes, bytearray)) or len(secret) != SECRET_BYTES:
        raise ValueError(f"secret must be {SECRET_BYTES} bytes")
    return bytes(secret)


def address_to_int(address: bytes) -> int:
    if len(address) != ADDRESS_BYTES:
        raise ValueError(f"address must be {ADDRESS_BYTES} bytes, got {len(address)}")
    return bytes_to_int(address)


def hex_digest(value: int) -> str:
    """Render a field element the way logs and error envelopes show it."""
    return f"0x{value:064x}"
