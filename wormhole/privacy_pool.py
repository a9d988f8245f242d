"""Privacy pool: a withdrawer-curated subset of main-tree leaves.

The pool root is published in the withdrawal claim. It hides nothing by
itself; its only purpose is to widen the anonymity set the proof claims, so
its benefit grows with the number of distinct leaves it contains.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from wormhole.hash_utils import hex_digest
from wormhole.merkle_tree import Branch, CommitmentTree

logger = logging.getLogger(__name__)


class PrivacyPool:
    """A commitment tree whose leaves must already exist in the main tree."""

    def __init__(self, main_tree: CommitmentTree) -> None:
        self.main_tree = main_tree
        self.tree = CommitmentTree(main_tree.depth)

    @classmethod
    def from_leaves(cls, main_tree: CommitmentTree, leaves: Iterable[int]) -> "PrivacyPool":
        pool = cls(main_tree)
        for leaf in leaves:
            pool.add(leaf)
        logger.debug(
            "Built privacy pool with %d leaves",
            len(pool.tree),
            extra={"root": hex_digest(pool.root())},
        )
        return pool

    @classmethod
    def from_indices(cls, main_tree: CommitmentTree, indices: Iterable[int]) -> "PrivacyPool":
        return cls.from_leaves(main_tree, (main_tree.leaf(i) for i in indices))

    def add(self, leaf: int) -> int:
        if self.main_tree.index_of(leaf) is None:
            raise ValueError(f"Leaf {hex_digest(leaf)} is not in the main tree")
        return self.tree.append(leaf)

    def root(self) -> int:
        return self.tree.root()

    def index_of(self, leaf: int) -> Optional[int]:
        return self.tree.index_of(leaf)

    def prove(self, leaf: int) -> Branch:
        index = self.tree.index_of(leaf)
        if index is None:
            raise KeyError(f"Leaf {hex_digest(leaf)} is not in the pool")
        return self.tree.prove(index)

    @property
    def anonymity_set_size(self) -> int:
        """Number of distinct leaves in the pool."""
        return len(set(self.tree.leaves()))
