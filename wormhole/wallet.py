"""Wallet-side helpers: spendable notes and withdrawal construction.

OFF-CIRCUIT work a prover does before proving: pick the leaf, extract both
openings, derive the nullifier and the change hash, and package the witness.
The result is a claim plus a proof whose payload is the plaintext witness,
accepted by `PlaintextVerifier`.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional, Tuple

from wormhole.circuit import LeafKind, Witness, spent_leaf
from wormhole.claims import Proof, ValueBalance, WithdrawalClaim
from wormhole.commitments import burn_address, change_value_hash, derive_nullifier
from wormhole.events import DepositEvent
from wormhole.hash_utils import SECRET_BYTES
from wormhole.merkle_tree import CommitmentTree
from wormhole.pow_gate import find_secret
from wormhole.privacy_pool import PrivacyPool


@dataclass(frozen=True)
class Note:
    """Everything needed to spend one leaf later."""

    kind: LeafKind
    secret: bytes
    value: int
    sender: Optional[bytes] = None

    @property
    def leaf(self) -> int:
        return spent_leaf(_bare_witness(self))

    @property
    def nullifier(self) -> int:
        return derive_nullifier(self.secret)

    @property
    def burn_address(self) -> bytes:
        return burn_address(self.secret)


def _bare_witness(note: Note) -> Witness:
    return Witness(
        kind=note.kind,
        secret=note.secret,
        value=note.value,
        main_index=0,
        main_branch=(),
        pool_index=0,
        pool_branch=(),
        change_salt=b"\x00" * SECRET_BYTES,
        change_value=0,
        recipient=bytes(20),
        sender=note.sender,
    )


def new_deposit(sender: bytes, value: int, pow_difficulty: int) -> Tuple[Note, DepositEvent]:
    """Pick a secret that passes the gate and describe the burn it needs."""
    secret = find_secret(pow_difficulty)
    note = Note(LeafKind.DEPOSIT, secret, value, sender)
    return note, DepositEvent(sender=sender, burn_address=note.burn_address, value=value)


def build_withdrawal(
    note: Note,
    main_tree: CommitmentTree,
    withdraw_value: int,
    recipient: bytes,
    pool: Optional[PrivacyPool] = None,
    change_salt: Optional[bytes] = None,
    deposit_value: Optional[int] = None,
) -> Tuple[WithdrawalClaim, Proof, Note]:
    """
    Build a claim and plaintext proof spending `note` against the current root.

    The privacy pool defaults to the whole main tree. `deposit_value` lets a
    caller claim a different conservation relation than the note encodes
    (used to exercise rejections).
    """
    leaf = note.leaf
    main_index = main_tree.index_of(leaf)
    if main_index is None:
        raise KeyError("Note leaf is not in the main tree")
    if pool is None:
        pool = PrivacyPool.from_leaves(main_tree, main_tree.leaves())
    pool_index = pool.index_of(leaf)
    if pool_index is None:
        raise KeyError("Note leaf is not in the privacy pool")

    value = note.value if deposit_value is None else deposit_value
    change_value = max(value - withdraw_value, 0)
    salt = change_salt or secrets.token_bytes(SECRET_BYTES)
    change_hash = change_value_hash(salt, change_value)

    witness = Witness(
        kind=note.kind,
        secret=note.secret,
        value=note.value,
        main_index=main_index,
        main_branch=main_tree.prove(main_index),
        pool_index=pool_index,
        pool_branch=pool.tree.prove(pool_index),
        change_salt=salt,
        change_value=change_value,
        recipient=recipient,
        sender=note.sender,
    )
    claim = WithdrawalClaim(
        main_root=main_tree.root(),
        nullifier=note.nullifier,
        pool_root=pool.root(),
        withdraw_value=withdraw_value,
        change_hash=change_hash,
        recipient=recipient,
    )
    proof = Proof(payload=witness, balance=ValueBalance(value, change_value))
    change_note = Note(LeafKind.CHANGE, salt, change_value)
    return claim, proof, change_note
