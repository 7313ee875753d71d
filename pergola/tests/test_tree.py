# This file is part of Pergola.
# Licensed under MIT License.

"""Tests for pergola.core.tree."""

import numpy as np
import pytest
from numpy.testing import assert_array_equal
from scipy.cluster.hierarchy import leaves_list

from pergola.core.tree import ClusterTree, rf_linkage
from pergola.errors import EmptyGroupError, InvalidInputError


@pytest.fixture
def tree(ambiguous_rf):
    return ClusterTree.from_rf(ambiguous_rf, method='average')


class TestClusterTree:
    def test_shape(self, tree):
        assert len(tree) == 6
        assert tree.root == 10
        assert list(tree.internal_nodes()) == [6, 7, 8, 9, 10]

    def test_leaves_is_permutation(self, tree):
        assert sorted(tree.leaves()) == list(range(6))

    def test_matches_scipy_leaf_order(self, tree):
        assert_array_equal(leaves_list(tree.to_linkage()), tree.leaves())

    def test_average_topology(self, tree):
        # {0,1} and {2,3} join before {4,5} is attached
        root_left, root_right = tree.children(tree.root)
        groups = sorted([sorted(tree.leaves(root_left)), sorted(tree.leaves(root_right))])
        assert groups == [[0, 1, 2, 3], [4, 5]]

    def test_swap_reverses_children(self, tree):
        left, right = tree.children(tree.root)
        before = tree.leaves()
        tree.swap(tree.root)
        assert tree.children(tree.root) == (right, left)
        n_right = len(tree.leaves(right))
        assert tree.leaves() == before[-n_right:] + before[:-n_right]
        assert tree.swapped[tree.root - len(tree)]

    def test_swap_keeps_heights_and_sizes(self, tree):
        heights, sizes = tree.height.copy(), tree.sizes().copy()
        for node in tree.internal_nodes():
            tree.swap(node)
        assert_array_equal(tree.height, heights)
        assert_array_equal(tree.sizes(), sizes)

    def test_double_swap_is_identity(self, tree):
        before = tree.leaves()
        tree.swap(8)
        tree.swap(8)
        assert tree.leaves() == before
        assert not tree.swapped.any()

    def test_swapped_linkage_follows_order(self, tree):
        tree.swap(tree.root)
        tree.swap(6)
        assert_array_equal(leaves_list(tree.to_linkage()), tree.leaves())

    def test_swap_leaf_fails(self, tree):
        with pytest.raises(InvalidInputError):
            tree.swap(0)

    def test_single_leaf(self):
        t = ClusterTree.from_rf(np.zeros((1, 1)), labels=['m1'])
        assert len(t) == 1
        assert t.root == 0
        assert t.leaves() == [0]
        assert list(t.internal_nodes()) == []

    def test_label_count_checked(self, ambiguous_rf):
        with pytest.raises(InvalidInputError):
            ClusterTree.from_rf(ambiguous_rf, labels=['a', 'b'])


class TestLinkage:
    def test_unknown_method(self, ambiguous_rf):
        with pytest.raises(InvalidInputError):
            rf_linkage(ambiguous_rf, method='upgma')

    def test_too_few_markers(self):
        with pytest.raises(EmptyGroupError):
            rf_linkage(np.zeros((1, 1)))

    def test_merge_heights(self, ambiguous_rf):
        Z = rf_linkage(ambiguous_rf, method='average')
        assert Z.shape == (5, 4)
        assert Z[0, 2] == pytest.approx(0.02)
        assert Z[-1, 2] == pytest.approx(57 / 800)
