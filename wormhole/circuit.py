# circuit.py
"""
The withdrawal relation, stated over plaintext values.

This is what a withdrawal proof attests in zero knowledge. A real backend
proves it inside a circuit; here it is evaluated directly so the validator's
control flow can be exercised without a proof system.

Relation, for public claim (main_root, nullifier, pool_root, withdraw_value,
change_hash, recipient) and conservation (deposit_value, change_value):

1. leaf = deposit or change commitment re-derived from the secret
2. leaf opens to main_root at main_index          (Merkle membership)
3. leaf opens to pool_root at pool_index          (Merkle membership)
4. nullifier == H(NULLIFIER_TAG, secret)
5. passes_pow(secret)                             (deposit leaves only)
6. change_hash == H(change_salt, change_value)
7. recipient is the one the proof was made for
8. witness values equal the conservation relation

Value conservation itself (withdraw + change == deposit) is checked by the
validator against the relation, not here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from wormhole.claims import ValueBalance, WithdrawalClaim
from wormhole.commitments import (
    burn_address,
    change_commitment,
    change_value_hash,
    deposit_commitment,
    derive_nullifier,
)
from wormhole.errors import MalformedBranch, ProofInvalid
from wormhole.hash_utils import hex_digest
from wormhole.merkle_tree import Branch, as_branch, branch_is_well_formed, compute_root
from wormhole.pow_gate import passes_pow


class LeafKind(str, Enum):
    DEPOSIT = "deposit"
    CHANGE = "change"


@dataclass(frozen=True)
class Witness:
    """
    Private inputs of a withdrawal proof.

    For a change leaf `secret` is the salt the leaf was created with and
    `sender` is unused.
    """

    kind: LeafKind
    secret: bytes
    value: int
    main_index: int
    main_branch: Branch
    pool_index: int
    pool_branch: Branch
    change_salt: bytes
    change_value: int
    recipient: bytes
    sender: Optional[bytes] = None


def spent_leaf(witness: Witness) -> int:
    """Re-derive the commitment being spent."""
    if witness.kind == LeafKind.DEPOSIT:
        if witness.sender is None:
            raise ProofInvalid("Deposit witness without sender")
        return deposit_commitment(witness.sender, burn_address(witness.secret), witness.value)
    return change_commitment(change_value_hash(witness.secret, witness.value))


def check_opening(leaf: int, index: int, branch: Branch, root: int, depth: int, label: str) -> None:
    """
    Merkle opening check, same routing as the in-circuit gadget.

    Raises MalformedBranch for a branch that is not a sequence of
    (sibling, side) pairs, has the wrong depth or is side-inconsistent, and
    ProofInvalid when the branch is well formed but opens to another root.
    """
    nodes = as_branch(branch)
    if nodes is None or not branch_is_well_formed(index, nodes, depth):
        raise MalformedBranch(
            f"{label} branch is malformed",
            {"expected_depth": depth, "got_depth": None if nodes is None else len(nodes), "index": index},
        )
    if compute_root(leaf, nodes) != root:
        raise ProofInvalid(f"{label} branch does not open to the claimed root", {"root": hex_digest(root)})


def check_withdrawal(
    claim: WithdrawalClaim,
    balance: ValueBalance,
    witness: Witness,
    depth: int,
    pow_difficulty: int,
) -> None:
    """Raise ProofInvalid (or MalformedBranch) unless the relation holds."""
    leaf = spent_leaf(witness)

    check_opening(leaf, witness.main_index, witness.main_branch, claim.main_root, depth, "main")
    check_opening(leaf, witness.pool_index, witness.pool_branch, claim.pool_root, depth, "pool")

    if derive_nullifier(witness.secret) != claim.nullifier:
        raise ProofInvalid("Nullifier is not derived from the secret")

    if witness.kind == LeafKind.DEPOSIT and not passes_pow(witness.secret, pow_difficulty):
        raise ProofInvalid("Secret fails the anti-collision gate", {"difficulty": pow_difficulty})

    if change_value_hash(witness.change_salt, witness.change_value) != claim.change_hash:
        raise ProofInvalid("Change hash does not match the change value")

    if witness.recipient != claim.recipient:
        raise ProofInvalid("Proof is bound to a different recipient")

    if witness.value != balance.deposit_value or witness.change_value != balance.change_value:
        raise ProofInvalid("Witness values differ from the conservation relation")
