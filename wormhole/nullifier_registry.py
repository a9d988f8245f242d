"""
Nullifier registry
==================

Records which secrets have already funded a withdrawal. A nullifier is
"unspent" while absent and flips to spent exactly once:

    is_spent(nullifier: int) -> bool
    mark_spent(nullifier: int) -> None     # AlreadySpent on the second call

Marking is one-shot, NOT an idempotent set: a second `mark_spent` of the same
nullifier is a rejected replay, never a silent no-op.

`checkpoint`/`revert` exist so the validator can undo a mark made inside a
state transition that later fails; `commit` drops the undo entries once it
succeeds. Committed entries are never deleted.
"""

from __future__ import annotations

from typing import Iterator, List, Set

from wormhole.errors import AlreadySpent
from wormhole.hash_utils import hex_digest


class NullifierRegistry:
    """In-memory spent set with an undo journal for the open transition."""

    __slots__ = ("_spent", "_journal")

    def __init__(self) -> None:
        self._spent: Set[int] = set()
        self._journal: List[int] = []

    def is_spent(self, nullifier: int) -> bool:
        return nullifier in self._spent

    def mark_spent(self, nullifier: int) -> None:
        if nullifier in self._spent:
            raise AlreadySpent(
                "Nullifier already spent",
                {"nullifier": hex_digest(nullifier)},
            )
        self._spent.add(nullifier)
        self._journal.append(nullifier)

    def __contains__(self, nullifier: int) -> bool:
        return self.is_spent(nullifier)

    def __len__(self) -> int:
        return len(self._spent)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._spent))

    # Transitions -------------------------------------------------------------

    def checkpoint(self) -> int:
        return len(self._journal)

    def revert(self, checkpoint: int) -> None:
        """Unmark every nullifier marked after `checkpoint`."""
        while len(self._journal) > checkpoint:
            self._spent.discard(self._journal.pop())

    def commit(self, checkpoint: int) -> None:
        """Make marks after `checkpoint` permanent; they can no longer be reverted."""
        del self._journal[checkpoint:]
