"""Host facade over the wormhole stores.

One `WormholeState` per chain state. Writes (`apply_deposit`,
`apply_withdrawal`) are serialized by a lock so registry and tree mutations
are linearizable; reads go straight to the stores.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Union

from wormhole.claims import Proof, WithdrawalClaim, WithdrawalReceipt
from wormhole.commitments import CHANGE_TAG, DEPOSIT_TAG
from wormhole.config import Settings, get_settings
from wormhole.errors import ChainMismatch
from wormhole.events import ChangeEvent, DepositEvent, WithdrawalTransaction
from wormhole.hash_utils import hex_digest
from wormhole.ledger import InMemoryLedger, Ledger
from wormhole.merkle_tree import Branch, CommitmentTree
from wormhole.nullifier_registry import NullifierRegistry
from wormhole.roots import RootOracle, TreeRootHistory
from wormhole.validator import WithdrawalValidator
from wormhole.verifier import PlaintextVerifier, Verifier

logger = logging.getLogger(__name__)

_EVENT_TOPICS = {DepositEvent: DEPOSIT_TAG, ChangeEvent: CHANGE_TAG}


class WormholeState:
    """Main tree, nullifier registry and validator wired together."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        verifier: Optional[Verifier] = None,
        ledger: Optional[Ledger] = None,
        root_oracle: Optional[RootOracle] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.tree = CommitmentTree(self.settings.tree_depth)
        self.registry = NullifierRegistry()
        self.ledger = ledger if ledger is not None else InMemoryLedger()
        self.root_oracle = root_oracle or TreeRootHistory(self.tree, self.settings.root_history_size)
        self.verifier = verifier or PlaintextVerifier.from_settings(self.settings)
        self.validator = WithdrawalValidator(
            self.settings,
            self.tree,
            self.registry,
            self.verifier,
            self.root_oracle,
            self.ledger,
        )
        self._write_lock = threading.Lock()

    # Read interface ----------------------------------------------------------

    def is_spent(self, nullifier: int) -> bool:
        return self.registry.is_spent(nullifier)

    def root(self) -> int:
        return self.tree.root()

    def prove(self, index: int) -> Branch:
        return self.tree.prove(index)

    # Write interface ---------------------------------------------------------

    def apply_deposit(self, event: Union[DepositEvent, ChangeEvent]) -> int:
        """Index a deposit event as a main-tree leaf."""
        topic = getattr(event, "topic", None)
        if topic is None or _EVENT_TOPICS.get(type(event)) != topic:
            raise ValueError(f"Unexpected topic {topic!r} for {type(event).__name__}")
        with self._write_lock:
            index = self.tree.append(event.commitment())
            root = self.tree.root()
        logger.debug(
            "Indexed deposit event",
            extra={"leaf_index": index, "root": hex_digest(root)},
        )
        return index

    def process_withdrawal(self, claim: WithdrawalClaim, proof: Proof) -> WithdrawalReceipt:
        with self._write_lock:
            return self.validator.process_withdrawal(claim, proof)

    def apply_withdrawal(self, tx: WithdrawalTransaction) -> WithdrawalReceipt:
        if tx.chain_id != self.settings.chain_id:
            raise ChainMismatch(
                "Transaction is for another chain",
                {"expected": self.settings.chain_id, "got": tx.chain_id},
            )
        return self.process_withdrawal(tx.to_claim(), tx.proof)
