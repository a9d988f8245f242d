"""Historical root lookup.

The validator only asks one question: did the main tree ever produce this
root? On a real chain the answer comes from an indexed block-root oracle;
`TreeRootHistory` answers it from the tree's own root log.
"""

from __future__ import annotations

from typing import Optional, Protocol

from wormhole.merkle_tree import CommitmentTree


class RootOracle(Protocol):
    def is_known_root(self, root: int) -> bool: ...


class TreeRootHistory:
    """
    Root oracle backed by a commitment tree.

    With `window=None` every root the tree ever produced is accepted.
    With an int, only the latest `window` roots are, so a proof built against
    a root that has rolled out of the window must be rebuilt.
    """

    def __init__(self, tree: CommitmentTree, window: Optional[int] = None) -> None:
        if window is not None and window < 1:
            raise ValueError("window must be at least 1")
        self.tree = tree
        self.window = window

    def is_known_root(self, root: int) -> bool:
        if self.window is None:
            return self.tree.has_root(root)
        return root in self.tree.recent_roots(self.window)
