"""Private proof-of-burn ("wormhole") state-transition core."""

from wormhole.claims import Proof, ValueBalance, WithdrawalClaim, WithdrawalReceipt
from wormhole.config import Settings, get_settings
from wormhole.errors import (
    AlreadySpent,
    ChainMismatch,
    ConservationViolation,
    ErrorCode,
    MalformedBranch,
    ProofInvalid,
    TreeFull,
    UnknownHistoricalRoot,
    WormholeError,
)
from wormhole.merkle_tree import CommitmentTree
from wormhole.nullifier_registry import NullifierRegistry
from wormhole.state import WormholeState
from wormhole.validator import WithdrawalValidator

__all__ = [
    "AlreadySpent",
    "ChainMismatch",
    "CommitmentTree",
    "ConservationViolation",
    "ErrorCode",
    "MalformedBranch",
    "NullifierRegistry",
    "Proof",
    "ProofInvalid",
    "Settings",
    "TreeFull",
    "UnknownHistoricalRoot",
    "ValueBalance",
    "WithdrawalClaim",
    "WithdrawalReceipt",
    "WithdrawalValidator",
    "WormholeError",
    "WormholeState",
    "get_settings",
]
