"""Tests for the append-only commitment tree and the privacy pool."""

from __future__ import annotations

import pytest

from wormhole.errors import TreeFull
from wormhole.hash_utils import keccak_to_field, merkle_hash2
from wormhole.merkle_tree import (
    ZERO_LEAF,
    BranchNode,
    CommitmentTree,
    Side,
    as_branch,
    branch_is_well_formed,
    verify_branch,
    zero_hashes,
)
from wormhole.privacy_pool import PrivacyPool
from wormhole.roots import TreeRootHistory


def naive_root(leaves, depth):
    """Hash a fully padded layer up to the root."""
    layer = list(leaves) + [ZERO_LEAF] * ((1 << depth) - len(leaves))
    for _ in range(depth):
        layer = [merkle_hash2(layer[i], layer[i + 1]) for i in range(0, len(layer), 2)]
    return layer[0]


def make_leaves(n, start=0):
    return [keccak_to_field(i) for i in range(start, start + n)]


@pytest.fixture
def tree() -> CommitmentTree:
    return CommitmentTree(depth=4)


class TestAppendAndRoot:
    def test_empty_root_is_zero_subtree(self, tree):
        assert tree.root() == zero_hashes(4)[4]
        assert tree.root() == naive_root([], 4)
        assert len(tree) == 0

    def test_indices_strictly_increase(self, tree):
        assert [tree.append(leaf) for leaf in make_leaves(5)] == [0, 1, 2, 3, 4]

    def test_root_matches_full_tree(self, tree):
        leaves = make_leaves(11)
        for n, leaf in enumerate(leaves, start=1):
            tree.append(leaf)
            assert tree.root() == naive_root(leaves[:n], 4)

    def test_root_log_records_every_height(self, tree):
        leaves = make_leaves(3)
        for leaf in leaves:
            tree.append(leaf)
        assert tree.roots() == tuple(naive_root(leaves[:n], 4) for n in range(4))
        assert all(tree.has_root(r) for r in tree.roots())
        assert not tree.has_root(12345)

    def test_full_tree_rejects_append(self):
        tree = CommitmentTree(depth=2)
        for leaf in make_leaves(4):
            tree.append(leaf)
        with pytest.raises(TreeFull):
            tree.append(keccak_to_field(99))
        assert len(tree) == 4

    def test_recent_roots(self, tree):
        for leaf in make_leaves(5):
            tree.append(leaf)
        assert tree.recent_roots(2) == tree.roots()[-2:]
        assert tree.recent_roots(100) == tree.roots()
        with pytest.raises(ValueError):
            tree.recent_roots(0)

        history = TreeRootHistory(tree, window=3)
        assert [history.is_known_root(r) for r in tree.roots()] == [False] * 3 + [True] * 3
        assert all(TreeRootHistory(tree).is_known_root(r) for r in tree.roots())

    def test_index_of_first_occurrence(self, tree):
        leaf = keccak_to_field(7)
        tree.append(leaf)
        tree.append(keccak_to_field(8))
        tree.append(leaf)
        assert tree.index_of(leaf) == 0
        assert tree.index_of(keccak_to_field(9)) is None


class TestProveVerify:
    def test_round_trip_after_later_appends(self, tree):
        leaves = make_leaves(9)
        for n, leaf in enumerate(leaves):
            tree.append(leaf)
            root = tree.root()
            for i in range(n + 1):
                assert tree.verify(root, i, leaves[i], tree.prove(i))

    def test_old_branch_verifies_against_old_root(self, tree):
        leaves = make_leaves(3)
        for leaf in leaves:
            tree.append(leaf)
        old_root, old_branch = tree.root(), tree.prove(1)
        for leaf in make_leaves(4, start=10):
            tree.append(leaf)
        assert tree.verify(old_root, 1, leaves[1], old_branch)
        assert not tree.verify(tree.root(), 1, leaves[1], old_branch)

    def test_branch_has_fixed_depth(self, tree):
        tree.append(keccak_to_field(1))
        branch = tree.prove(0)
        assert len(branch) == 4
        assert all(isinstance(node, BranchNode) for node in branch)

    def test_prove_out_of_range(self, tree):
        tree.append(keccak_to_field(1))
        with pytest.raises(IndexError):
            tree.prove(1)
        with pytest.raises(IndexError):
            tree.prove(-1)

    def test_rejects_wrong_length_branch(self, tree):
        leaves = make_leaves(2)
        for leaf in leaves:
            tree.append(leaf)
        branch = tree.prove(0)
        assert not tree.verify(tree.root(), 0, leaves[0], branch[:-1])
        assert not tree.verify(tree.root(), 0, leaves[0], branch + (BranchNode(0, Side.LEFT),))

    def test_rejects_side_inconsistent_with_index(self, tree):
        leaves = make_leaves(2)
        for leaf in leaves:
            tree.append(leaf)
        branch = tree.prove(1)
        assert not tree.verify(tree.root(), 0, leaves[1], branch)

    def test_rejects_wrong_leaf_or_root(self, tree):
        leaves = make_leaves(3)
        for leaf in leaves:
            tree.append(leaf)
        branch = tree.prove(2)
        assert not tree.verify(tree.root(), 2, leaves[0], branch)
        assert not tree.verify(tree.roots()[1], 2, leaves[2], branch)

    def test_verify_branch_is_pure(self, tree):
        leaves = make_leaves(2)
        for leaf in leaves:
            tree.append(leaf)
        root, branch = tree.root(), tree.prove(1)
        assert verify_branch(root, 1, leaves[1], branch, 4)
        assert len(tree) == 2 and tree.root() == root

    def test_plain_pairs_verify(self, tree):
        leaves = make_leaves(3)
        for leaf in leaves:
            tree.append(leaf)
        pairs = [(node.sibling, int(node.side)) for node in tree.prove(2)]
        assert tree.verify(tree.root(), 2, leaves[2], pairs)
        assert as_branch(pairs) == tree.prove(2)

    @pytest.mark.parametrize(
        "branch",
        [None, 7, [None] * 4, [(0, 0, 0)] * 4, [(0, True)] * 4, [(-1, 0)] * 4, [(1 << 256, 0)] * 4],
    )
    def test_ill_typed_branch_does_not_verify(self, tree, branch):
        tree.append(keccak_to_field(1))
        assert not tree.verify(tree.root(), 0, keccak_to_field(1), branch)
        assert not branch_is_well_formed(0, branch, 4)

    def test_non_int_index(self, tree):
        tree.append(keccak_to_field(1))
        assert not tree.verify(tree.root(), "0", keccak_to_field(1), tree.prove(0))


class TestRevert:
    def test_revert_restores_root_and_branches(self, tree):
        base = make_leaves(5)
        for leaf in base:
            tree.append(leaf)
        mark = tree.checkpoint()
        root_before = tree.root()
        for leaf in make_leaves(6, start=50):
            tree.append(leaf)
        tree.revert(mark)

        fresh = CommitmentTree(depth=4)
        for leaf in base:
            fresh.append(leaf)
        assert tree.root() == root_before == fresh.root()
        assert tree.roots() == fresh.roots()
        assert [tree.prove(i) for i in range(5)] == [fresh.prove(i) for i in range(5)]
        assert tree.index_of(keccak_to_field(50)) is None

    def test_append_after_revert(self, tree):
        for leaf in make_leaves(3):
            tree.append(leaf)
        mark = tree.checkpoint()
        tree.append(keccak_to_field(77))
        tree.revert(mark)
        leaves = make_leaves(3) + [keccak_to_field(88)]
        assert tree.append(leaves[-1]) == 3
        assert tree.root() == naive_root(leaves, 4)
        assert not tree.has_root(naive_root(make_leaves(3) + [keccak_to_field(77)], 4))

    def test_bad_checkpoint(self, tree):
        with pytest.raises(ValueError):
            tree.revert(1)


class TestPrivacyPool:
    def test_pool_from_indices(self, tree):
        leaves = make_leaves(6)
        for leaf in leaves:
            tree.append(leaf)
        pool = PrivacyPool.from_indices(tree, [1, 3, 5])
        assert pool.anonymity_set_size == 3
        branch = pool.prove(leaves[3])
        assert pool.tree.verify(pool.root(), 1, leaves[3], branch)
        assert pool.root() != tree.root()

    def test_pool_rejects_foreign_leaf(self, tree):
        tree.append(keccak_to_field(1))
        with pytest.raises(ValueError):
            PrivacyPool.from_leaves(tree, [keccak_to_field(2)])

    def test_anonymity_set_counts_distinct_leaves(self, tree):
        leaf = keccak_to_field(1)
        tree.append(leaf)
        pool = PrivacyPool.from_leaves(tree, [leaf, leaf, leaf])
        assert pool.anonymity_set_size == 1

    def test_prove_missing_leaf(self, tree):
        leaves = make_leaves(2)
        for leaf in leaves:
            tree.append(leaf)
        pool = PrivacyPool.from_leaves(tree, leaves[:1])
        with pytest.raises(KeyError):
            pool.prove(leaves[1])
