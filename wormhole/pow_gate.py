# pow_gate.py
"""
Anti-collision gate.

A secret passes when SHA-256(POW_TAG || secret), read as a big-endian
integer, is divisible by 2^difficulty. Finding two secrets whose burn address
and commitment preimage collide then costs 2^difficulty more work per try.

This is a deterrent, not a correctness invariant.
"""

import logging
import secrets

from wormhole.commitments import POW_TAG
from wormhole.hash_utils import SECRET_BYTES, bytes_to_int, check_secret, sha256_digest

logger = logging.getLogger(__name__)


def passes_pow(secret: bytes, difficulty: int) -> bool:
    if difficulty < 0:
        raise ValueError("difficulty must be non-negative")
    work = bytes_to_int(sha256_digest(POW_TAG, check_secret(secret)))
    return work % (1 << difficulty) == 0


def find_secret(difficulty: int, max_tries: int = 1 << 32) -> bytes:
    """
    Sample random secrets until one passes the gate (wallet side).

    Expected number of tries is 2^difficulty.
    """
    for tries in range(1, max_tries + 1):
        candidate = secrets.token_bytes(SECRET_BYTES)
        if passes_pow(candidate, difficulty):
            logger.debug("Found secret passing difficulty %d after %d tries", difficulty, tries)
            return candidate
    raise RuntimeError(f"No secret found for difficulty {difficulty} in {max_tries} tries")


class AntiCollisionGate:
    """The gate at a fixed, configured difficulty."""

    def __init__(self, difficulty: int) -> None:
        if difficulty < 0:
            raise ValueError("difficulty must be non-negative")
        self.difficulty = difficulty

    def passes(self, secret: bytes) -> bool:
        return passes_pow(secret, self.difficulty)

    def find_secret(self) -> bytes:
        return find_secret(self.difficulty)
