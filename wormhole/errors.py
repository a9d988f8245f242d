"""Error kinds raised by the wormhole core.

Every rejection carries a stable code so hosts can surface it to the
submitter and telemetry can tell an attempted replay from a malformed proof:

    {
        "error": {
            "code": "ALREADY_SPENT",
            "message": "Human-readable description",
            "details": {...optional context...}
        }
    }
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


# ── Error Codes ──────────────────────────────────────────────────────────────


class ErrorCode(str, Enum):
    """Standard error codes attached to every withdrawal rejection."""

    PROOF_INVALID = "PROOF_INVALID"
    MALFORMED_BRANCH = "MALFORMED_BRANCH"
    ALREADY_SPENT = "ALREADY_SPENT"
    UNKNOWN_HISTORICAL_ROOT = "UNKNOWN_HISTORICAL_ROOT"
    CONSERVATION_VIOLATION = "CONSERVATION_VIOLATION"
    TREE_FULL = "TREE_FULL"
    CHAIN_MISMATCH = "CHAIN_MISMATCH"


# ── Exceptions ───────────────────────────────────────────────────────────────


class WormholeError(Exception):
    """Base class. Terminal for the withdrawal attempt that raised it."""

    code: ErrorCode = ErrorCode.PROOF_INVALID

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            body["details"] = self.details
        return {"error": body}


class ProofInvalid(WormholeError):
    """The proof system rejects the public/private input pairing."""

    code = ErrorCode.PROOF_INVALID


class MalformedBranch(ProofInvalid):
    """Wrong-depth or inconsistent Merkle branch inside a witness."""

    code = ErrorCode.MALFORMED_BRANCH


class AlreadySpent(WormholeError):
    """Nullifier reuse: an attempted replay or double mint."""

    code = ErrorCode.ALREADY_SPENT


class UnknownHistoricalRoot(WormholeError):
    code = ErrorCode.UNKNOWN_HISTORICAL_ROOT


class ConservationViolation(WormholeError):
    """Value mismatch, overflow or ceiling breach."""

    code = ErrorCode.CONSERVATION_VIOLATION


class TreeFull(WormholeError):
    code = ErrorCode.TREE_FULL


class ChainMismatch(WormholeError):
    code = ErrorCode.CHAIN_MISMATCH
