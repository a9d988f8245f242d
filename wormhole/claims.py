"""Public data exchanged with the validator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from wormhole.hash_utils import address_to_int


@dataclass(frozen=True)
class WithdrawalClaim:
    """
    Public portion of a withdrawal proof. Consumed once, never stored.

    main_root:      main-tree root at some historical point
    nullifier:      H(NULLIFIER_TAG, secret)
    pool_root:      root of the withdrawer's privacy pool
    withdraw_value: value to release to `recipient`
    change_hash:    H(salt, change_value) for the change leaf
    recipient:      20-byte address receiving the minted value
    """

    main_root: int
    nullifier: int
    pool_root: int
    withdraw_value: int
    change_hash: int
    recipient: bytes

    def field_elements(self) -> List[int]:
        return [
            self.main_root,
            self.nullifier,
            self.pool_root,
            self.withdraw_value,
            self.change_hash,
            address_to_int(self.recipient),
        ]


@dataclass(frozen=True)
class ValueBalance:
    """The conservation relation a proof commits to."""

    deposit_value: int
    change_value: int


@dataclass(frozen=True)
class Proof:
    """
    A proof as handed to the validator.

    `payload` is backend specific (a Groth16 proof, or a plaintext witness for
    the relation verifier); the validator never looks inside it.
    """

    payload: Any
    balance: ValueBalance


@dataclass(frozen=True)
class WithdrawalReceipt:
    mint_amount: int
    recipient: bytes
    nullifier: int
    change_index: Optional[int]
    root: int
