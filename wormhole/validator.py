"""Withdrawal validator and state transition.

Checks run in a fixed order and stop at the first failure:

    1. proof verifies for the public claim          -> ProofInvalid
    2. nullifier not yet spent                      -> AlreadySpent
    3. main root was produced at some past height   -> UnknownHistoricalRoot
    4. withdraw + change == deposit, no overflow,
       deposit within the ceiling                   -> ConservationViolation
    5. mint, transfer, mark spent, append change leaf

Step 5 runs inside one transaction over the tree, the registry and the
ledger: any exception reverts all three and is re-raised, and success
commits the registry and ledger journals.

Per nullifier the only transition is Unspent -> Spent.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from wormhole.claims import Proof, WithdrawalClaim, WithdrawalReceipt
from wormhole.commitments import change_commitment
from wormhole.config import Settings
from wormhole.errors import (
    AlreadySpent,
    ConservationViolation,
    ProofInvalid,
    UnknownHistoricalRoot,
    WormholeError,
)
from wormhole.hash_utils import hex_digest
from wormhole.ledger import WORMHOLE_HOLDER, Ledger
from wormhole.merkle_tree import CommitmentTree
from wormhole.nullifier_registry import NullifierRegistry
from wormhole.roots import RootOracle
from wormhole.verifier import Verifier

logger = logging.getLogger(__name__)


class WithdrawalValidator:
    """
    Applies withdrawal claims to the shared stores.

    The stores are passed in, not owned: their lifetime is the host chain's
    state. Callers must serialize `process_withdrawal` calls.
    """

    def __init__(
        self,
        settings: Settings,
        tree: CommitmentTree,
        registry: NullifierRegistry,
        verifier: Verifier,
        root_oracle: RootOracle,
        ledger: Ledger,
        holder: bytes = WORMHOLE_HOLDER,
    ) -> None:
        self.settings = settings
        self.tree = tree
        self.registry = registry
        self.verifier = verifier
        self.root_oracle = root_oracle
        self.ledger = ledger
        self.holder = holder

    def process_withdrawal(self, claim: WithdrawalClaim, proof: Proof) -> WithdrawalReceipt:
        """Validate `claim` and apply it, or raise the first rejection."""
        try:
            self._check(claim, proof)
            receipt = self._apply(claim, proof)
        except WormholeError as exc:
            logger.warning(
                "Withdrawal rejected: %s",
                exc.message,
                extra={"error_code": exc.code.value, "nullifier": hex_digest(claim.nullifier)},
            )
            raise

        logger.info(
            "Withdrawal applied",
            extra={
                "nullifier": hex_digest(claim.nullifier),
                "recipient": "0x" + claim.recipient.hex(),
                "amount": receipt.mint_amount,
                "leaf_index": receipt.change_index,
                "root": hex_digest(receipt.root),
            },
        )
        return receipt

    # Checks -----------------------------------------------------------------

    def _check(self, claim: WithdrawalClaim, proof: Proof) -> None:
        if not self.verifier.verify(claim, proof):
            raise ProofInvalid("Proof does not verify for the claimed public inputs")

        if self.registry.is_spent(claim.nullifier):
            raise AlreadySpent("Nullifier already spent", {"nullifier": hex_digest(claim.nullifier)})

        if not self.root_oracle.is_known_root(claim.main_root):
            raise UnknownHistoricalRoot(
                "Main-tree root was never produced",
                {"root": hex_digest(claim.main_root)},
            )

        self.check_conservation(claim.withdraw_value, proof.balance.change_value, proof.balance.deposit_value)

    def check_conservation(self, withdraw_value: int, change_value: int, deposit_value: int) -> None:
        """withdraw + change == deposit, in the configured width, under the ceiling."""
        if min(withdraw_value, change_value, deposit_value) < 0:
            raise ConservationViolation("Values must be non-negative")

        max_value = self.settings.max_value
        if withdraw_value > max_value or change_value > max_value or deposit_value > max_value:
            raise ConservationViolation("Value exceeds the integer width", {"bits": self.settings.value_bits})

        total = withdraw_value + change_value
        if total > max_value:
            raise ConservationViolation(
                "withdraw + change overflows",
                {"withdraw_value": withdraw_value, "change_value": change_value},
            )

        if total != deposit_value:
            raise ConservationViolation(
                "withdraw + change != deposit",
                {"withdraw_value": withdraw_value, "change_value": change_value, "deposit_value": deposit_value},
            )

        if deposit_value > self.settings.max_deposit_value:
            raise ConservationViolation(
                "Deposit exceeds the per-deposit ceiling",
                {"deposit_value": deposit_value, "ceiling": self.settings.max_deposit_value},
            )

    # Effects ----------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        marks = (self.tree.checkpoint(), self.registry.checkpoint(), self.ledger.checkpoint())
        try:
            yield
        except BaseException:
            self.ledger.revert(marks[2])
            self.registry.revert(marks[1])
            self.tree.revert(marks[0])
            raise
        self.registry.commit(marks[1])
        self.ledger.commit(marks[2])

    def _apply(self, claim: WithdrawalClaim, proof: Proof) -> WithdrawalReceipt:
        change_index: Optional[int] = None
        with self._transaction():
            self.ledger.mint(self.holder, claim.withdraw_value)
            self.ledger.transfer(self.holder, claim.recipient, claim.withdraw_value)
            self.registry.mark_spent(claim.nullifier)
            if proof.balance.change_value > 0 or self.settings.append_zero_change:
                change_index = self.tree.append(change_commitment(claim.change_hash))

        return WithdrawalReceipt(
            mint_amount=claim.withdraw_value,
            recipient=claim.recipient,
            nullifier=claim.nullifier,
            change_index=change_index,
            root=self.tree.root(),
        )
