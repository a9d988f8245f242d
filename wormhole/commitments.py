# commitments.py
"""
Hash commitment primitive: deposit leaves, change leaves, nullifiers and
burn addresses.

    deposit leaf  = H(DEPOSIT_TAG, sender, burn_address, value)
    change leaf   = H(CHANGE_TAG, H(salt, value))
    nullifier     = H(NULLIFIER_TAG, secret)
    burn address  = SHA-256(BURN_TAG || secret)[-20:]

H is the commitment family (keccak into the field). The burn address comes
from the other family, see hash_utils.
"""

from eth_utils import to_checksum_address

from wormhole.hash_utils import (
    ADDRESS_BYTES,
    address_to_int,
    bytes_to_int,
    check_secret,
    keccak_to_field,
    sha256_digest,
)

# Tags are small integers so they hash as ordinary 32-byte words.
DEPOSIT_TAG = 0x7503_0001
CHANGE_TAG = 0x7503_0002
NULLIFIER_TAG = 0x7503_0003

# Burn-family tags are byte prefixes
BURN_TAG = b"EIP-7503/burn"
POW_TAG = b"EIP-7503/pow"


def commit(tag: int, *fields: int) -> int:
    """
    Commit to a tagged tuple of field values.

    Deterministic and side-effect free; collision resistance is the same
    assumption the nullifier derivation rests on.
    """
    return keccak_to_field(tag, *fields)


def burn_address(secret: bytes) -> bytes:
    """
    Derive the 20-byte burn address for a secret.

    Nobody is believed to hold a private key for this address, so value sent
    to it is unspendable except through a withdrawal proof.
    """
    digest = sha256_digest(BURN_TAG, check_secret(secret))
    return digest[-ADDRESS_BYTES:]


def burn_address_checksum(secret: bytes) -> str:
    return to_checksum_address(burn_address(secret))


def deposit_commitment(sender: bytes, burn_addr: bytes, value: int) -> int:
    """Leaf for a standard deposit: value sent by `sender` to `burn_addr`."""
    return commit(DEPOSIT_TAG, address_to_int(sender), address_to_int(burn_addr), value)


def change_value_hash(salt: bytes, value: int) -> int:
    """Salted hash of the change amount, published in a withdrawal claim."""
    return keccak_to_field(bytes_to_int(check_secret(salt)), value)


def change_commitment(change_hash: int) -> int:
    """Leaf for the unwithdrawn remainder of a deposit."""
    return commit(CHANGE_TAG, change_hash)


def derive_nullifier(secret: bytes) -> int:
    """
    One nullifier per secret. For change leaves the salt is the secret.

    Unlinkable to the commitment without knowledge of the secret.
    """
    return commit(NULLIFIER_TAG, bytes_to_int(check_secret(secret)))
