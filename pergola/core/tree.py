# This file is part of Pergola.
# Licensed under MIT License.

"""Arena representation of an agglomerative clustering tree.

Nodes are integer ids. Leaves are ``0..n-1`` (the marker positions of the
matrix the tree was built from); internal node ``n + i`` is the merge in
row ``i`` of a scipy linkage matrix. Children can be swapped in place, which
changes the leaf order but never the topology or merge heights.
"""

import numpy as np
from scipy.cluster.hierarchy import linkage
from scipy.spatial.distance import squareform

from ..errors import EmptyGroupError, InvalidInputError

# Methods whose merge heights are monotonic, so a tree cut yields exactly k groups
LINKAGE_METHODS = ('single', 'complete', 'average', 'weighted', 'ward')


def rf_linkage(values, method='average'):
    """Run agglomerative clustering on a square RF array.

    Raises:
        EmptyGroupError: Fewer than two markers.
    """
    if method not in LINKAGE_METHODS:
        raise InvalidInputError(f'Unknown linkage method {method!r}; choose from {LINKAGE_METHODS}')
    if values.shape[0] < 2:
        raise EmptyGroupError(f'Clustering needs at least 2 markers, got {values.shape[0]}')
    condensed = squareform(values, checks=False)
    return linkage(condensed, method=method)


class ClusterTree:
    """Binary clustering tree stored as parallel child/height arrays."""

    def __init__(self, left, right, height, labels=None):
        self.left = np.asarray(left, dtype=np.intp).copy()
        self.right = np.asarray(right, dtype=np.intp).copy()
        self.height = np.asarray(height, dtype=np.float64).copy()
        self.n_leaves = len(self.left) + 1
        self.swapped = np.zeros(len(self.left), dtype=bool)
        self.labels = list(labels) if labels is not None else list(range(self.n_leaves))
        if len(self.labels) != self.n_leaves:
            raise InvalidInputError(
                f'{len(self.labels)} labels given for a tree with {self.n_leaves} leaves')
        if np.any(self.height < 0):
            raise InvalidInputError('Merge heights must be non-negative')

    @classmethod
    def from_linkage(cls, Z, labels=None):
        Z = np.asarray(Z, dtype=np.float64)
        if Z.ndim != 2 or Z.shape[1] < 3:
            raise InvalidInputError(f'Linkage matrix must have shape (n-1, 4), got {Z.shape}')
        return cls(Z[:, 0].astype(np.intp), Z[:, 1].astype(np.intp), Z[:, 2], labels)

    @classmethod
    def from_rf(cls, values, method='average', labels=None):
        """Cluster a square RF array. A single marker yields a leaf-only tree."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape[0] == 1:
            return cls([], [], [], labels)
        return cls.from_linkage(rf_linkage(values, method), labels)

    @property
    def root(self):
        return 2 * self.n_leaves - 2 if self.n_leaves > 1 else 0

    def is_leaf(self, node):
        return node < self.n_leaves

    def children(self, node):
        i = node - self.n_leaves
        return self.left[i], self.right[i]

    def internal_nodes(self):
        """Internal node ids, children before parents."""
        return range(self.n_leaves, 2 * self.n_leaves - 1)

    def swap(self, node):
        """Exchange the two children of an internal node."""
        i = node - self.n_leaves
        if i < 0:
            raise InvalidInputError(f'Node {node} is a leaf')
        self.left[i], self.right[i] = self.right[i], self.left[i]
        self.swapped[i] = ~self.swapped[i]

    def leaves(self, node=None):
        """Leaf ids under *node* (default root) in current child order."""
        node = self.root if node is None else node
        out = []
        stack = [node]
        while stack:
            cur = stack.pop()
            if self.is_leaf(cur):
                out.append(cur)
            else:
                l, r = self.children(cur)
                stack.append(r)
                stack.append(l)
        return out

    def sizes(self):
        """Number of leaves under every node, indexed by node id."""
        size = np.ones(2 * self.n_leaves - 1, dtype=np.intp)
        for node in self.internal_nodes():
            l, r = self.children(node)
            size[node] = size[l] + size[r]
        return size

    def to_linkage(self):
        """Linkage matrix reflecting the current child order."""
        size = self.sizes()
        Z = np.empty((self.n_leaves - 1, 4), dtype=np.float64)
        Z[:, 0] = self.left
        Z[:, 1] = self.right
        Z[:, 2] = self.height
        Z[:, 3] = size[self.n_leaves:]
        return Z

    def __len__(self):
        return self.n_leaves

    def __repr__(self):
        return f'<ClusterTree leaves={self.n_leaves}>'
