# merkle_tree.py
"""
Fixed-depth, append-only binary Merkle tree of commitments.

This is the "off-chain" / non-ZK part: the host appends leaves and wallets
ask for branches; the proof system only ever sees a branch as a private input.
Empty slots hold ZERO_LEAF and empty subtrees hold precomputed zero hashes,
so the root at height n is a pure function of the first n leaves.
"""

from collections import Counter
from enum import IntEnum
from functools import lru_cache
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from wormhole.errors import TreeFull
from wormhole.hash_utils import FIELD_MODULUS, merkle_hash2

ZERO_LEAF = 0


class Side(IntEnum):
    """Which child the path node is at a given level."""

    LEFT = 0
    RIGHT = 1


class BranchNode(NamedTuple):
    sibling: int
    side: Side


Branch = Tuple[BranchNode, ...]


@lru_cache(maxsize=None)
def zero_hashes(depth: int) -> Tuple[int, ...]:
    """
    zeros[h] is the root of an empty subtree of height h.

    zeros[0] = ZERO_LEAF, zeros[depth] = root of the empty tree.
    """
    zeros = [ZERO_LEAF]
    for _ in range(depth):
        zeros.append(merkle_hash2(zeros[-1], zeros[-1]))
    return tuple(zeros)


def as_branch(branch: Any) -> Optional[Branch]:
    """
    Coerce a sequence of (sibling, side) pairs into a Branch.

    Returns None when a node is not a pair, a sibling is not a field element,
    or a side is not 0 or 1.
    """
    try:
        nodes = tuple(branch)
    except TypeError:
        return None
    out: List[BranchNode] = []
    for node in nodes:
        try:
            sibling, side = node
        except (TypeError, ValueError):
            return None
        if isinstance(sibling, bool) or not isinstance(sibling, int):
            return None
        if not 0 <= sibling < FIELD_MODULUS:
            return None
        if isinstance(side, bool) or not isinstance(side, int) or side not in (0, 1):
            return None
        out.append(BranchNode(sibling, Side(side)))
    return tuple(out)


def compute_root(leaf: int, branch: Sequence[BranchNode]) -> int:
    """
    Walk a branch bottom-up and return the root it implies.

    Same routing as the in-circuit opening:
    - side == LEFT:  parent = H(needle, sibling)
    - side == RIGHT: parent = H(sibling, needle)
    """
    needle = leaf
    for sibling, side in branch:
        if side == Side.LEFT:
            needle = merkle_hash2(needle, sibling)
        else:
            needle = merkle_hash2(sibling, needle)
    return needle


def branch_is_well_formed(index: int, branch: Any, depth: int) -> bool:
    """
    A branch is well formed when it has exactly `depth` (sibling, side)
    nodes, every side is a bit, and the sides spell out `index` (least
    significant bit first).
    """
    nodes = as_branch(branch)
    if nodes is None or len(nodes) != depth:
        return False
    if isinstance(index, bool) or not isinstance(index, int):
        return False
    if index < 0 or index >= 1 << depth:
        return False
    return all(int(node.side) == (index >> h) & 1 for h, node in enumerate(nodes))


def verify_branch(root: int, index: int, leaf: int, branch: Any, depth: int) -> bool:
    """Pure membership check, no tree instance required."""
    nodes = as_branch(branch)
    if nodes is None or not branch_is_well_formed(index, nodes, depth):
        return False
    return compute_root(leaf, nodes) == root


class CommitmentTree:
    """
    Incremental binary Merkle tree (arity = 2) of fixed depth D.

    - levels[0] = appended leaves
    - levels[h] = filled nodes at height h (missing nodes are zero hashes)
    - the root is kept in an ordered log: roots[n] is the root after n leaves

    Single-writer: `append` is the only mutator besides transactional
    `revert`; `root`/`prove`/`verify` are reads.
    """

    def __init__(self, depth: int = 32) -> None:
        if depth < 1:
            raise ValueError("Tree depth must be at least 1")
        self.depth = depth
        self._zeros = zero_hashes(depth)
        self._levels: List[List[int]] = [[] for _ in range(depth)]
        self._roots: List[int] = [self._zeros[depth]]
        self._root_counts: Counter = Counter(self._roots)
        self._first_index: Dict[int, int] = {}

    # Reads ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return 1 << self.depth

    def __len__(self) -> int:
        return len(self._levels[0])

    def root(self) -> int:
        """Return the current root (a field element)."""
        return self._roots[-1]

    def roots(self) -> Tuple[int, ...]:
        """Every root this tree has produced, oldest first."""
        return tuple(self._roots)

    def has_root(self, root: int) -> bool:
        return self._root_counts[root] > 0

    def recent_roots(self, n: int) -> Tuple[int, ...]:
        """The latest `n` roots, oldest first. Costs O(n), not O(history)."""
        if n < 1:
            raise ValueError("n must be at least 1")
        return tuple(self._roots[-n:])

    def leaf(self, index: int) -> int:
        return self._levels[0][index]

    def leaves(self) -> Tuple[int, ...]:
        return tuple(self._levels[0])

    def index_of(self, leaf: int) -> Optional[int]:
        """Index of the first occurrence of `leaf`, or None."""
        return self._first_index.get(leaf)

    def prove(self, index: int) -> Branch:
        """
        Compute the branch for a leaf index.

        branch[h] = (sibling at height h, side of our node at height h).

        Example for a depth-2 tree with leaves [A, B, C] and prove(2):
                    root
                   /    \\
                 N1       N2
                /  \\     /  \\
               A    B   C    0
        - branch[0] = (0,  LEFT)   C is the left child, sibling is an empty slot
        - branch[1] = (N1, RIGHT)  N2 is the right child of the root
        """
        if index < 0 or index >= len(self):
            raise IndexError("Leaf index out of range")

        branch: List[BranchNode] = []
        idx = index
        for h in range(self.depth):
            layer = self._levels[h]
            sib_idx = idx ^ 1
            sib = layer[sib_idx] if sib_idx < len(layer) else self._zeros[h]
            branch.append(BranchNode(sib, Side(idx & 1)))
            idx //= 2
        return tuple(branch)

    def verify(self, root: int, index: int, leaf: int, branch: Sequence[BranchNode]) -> bool:
        """Check a branch of this tree's depth against `root`. No side effects."""
        return verify_branch(root, index, leaf, branch, self.depth)

    # Writes -----------------------------------------------------------------

    def append(self, leaf: int) -> int:
        """Append a leaf and return its index. Existing leaves never move."""
        index = len(self)
        if index >= self.capacity:
            raise TreeFull("Tree is full", {"capacity": self.capacity})

        self._levels[0].append(leaf)
        self._first_index.setdefault(leaf, index)

        node = leaf
        idx = index
        for h in range(self.depth):
            if idx % 2 == 0:
                node = merkle_hash2(node, self._zeros[h])
            else:
                node = merkle_hash2(self._levels[h][idx - 1], node)
            idx //= 2
            if h + 1 < self.depth:
                self._store(h + 1, idx, node)

        self._roots.append(node)
        self._root_counts[node] += 1
        return index

    def checkpoint(self) -> int:
        return len(self)

    def revert(self, checkpoint: int) -> None:
        """
        Drop leaves appended after `checkpoint`.

        Only for undoing an uncommitted state transition; committed history is
        never rewritten.
        """
        size = len(self)
        if checkpoint > size or checkpoint < 0:
            raise ValueError(f"Bad checkpoint {checkpoint} for tree of size {size}")
        if checkpoint == size:
            return

        for index in range(checkpoint, size):
            leaf = self._levels[0][index]
            if self._first_index.get(leaf) == index:
                del self._first_index[leaf]
        del self._levels[0][checkpoint:]

        # Only the right-most node of each level can cover a dropped leaf
        for h in range(1, self.depth):
            keep = (checkpoint + (1 << h) - 1) >> h
            layer = self._levels[h]
            del layer[keep:]
            if keep:
                j = keep - 1
                below = self._levels[h - 1]
                right = below[2 * j + 1] if 2 * j + 1 < len(below) else self._zeros[h - 1]
                layer[j] = merkle_hash2(below[2 * j], right)

        for root in self._roots[checkpoint + 1:]:
            self._root_counts[root] -= 1
        del self._roots[checkpoint + 1:]

    def _store(self, height: int, idx: int, node: int) -> None:
        layer = self._levels[height]
        if idx < len(layer):
            layer[idx] = node
        else:
            layer.append(node)
