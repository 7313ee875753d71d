# This file is part of Pergola.
# Licensed under MIT License.

"""Leaf ordering of linkage groups.

The search space is every leaf order reachable by swapping the two children
of internal nodes of the group's clustering tree. Within that space:

1. A bottom-up dynamic programme finds the order with minimum SARF (n=1).
   The state of a subtree is the pair of leaves at its two ends; merging
   two children is a pair of min-plus products over the boundary RF block.
   Ties keep the first minimum found.
2. A local search over single child swaps then moves between orders of
   equal SARF (n=1), accepting a swap only if it strictly lowers the SARF
   over a wider window. This separates orders that the immediate-neighbour
   cost cannot distinguish.

The chosen swaps are written into the :class:`ClusterTree`, so
``tree.leaves()`` is the final order.
"""

import functools
import logging as lg
from dataclasses import dataclass
from multiprocessing import Pool

import numpy as np
import pandas as pd

from ..errors import InvalidInputError
from ..utils.helpers import as_matrix
from .grouping import UNASSIGNED
from .recombination import validate_rf
from .sarf import sarf_values
from .tree import ClusterTree

# Upper bound on cells of the temporary min-plus block
_MAX_BLOCK_CELLS = 2 ** 22

# Float tolerance when comparing SARF values
_TOL = 1e-9


@dataclass(frozen=True, eq=False)
class GroupOrder:
    """Ordered markers of one linkage group."""
    group: int
    markers: list                 # marker names in order
    indices: np.ndarray           # positions in the full RF matrix
    rf: pd.DataFrame              # RF submatrix in marker order
    sarf: float                   # SARF (n=1) of the order
    tree: ClusterTree = None      # reordered tree, None for groups < 2


def _min_plus(X, Y):
    """``out[a, l] = min_k X[a, k] + Y[k, l]`` and the first minimising ``k``."""
    rows = X.shape[0]
    out = np.empty((rows, Y.shape[1]), dtype=np.float64)
    arg = np.empty((rows, Y.shape[1]), dtype=np.intp)
    step = max(1, _MAX_BLOCK_CELLS // max(1, X.shape[1] * Y.shape[1]))
    for start in range(0, rows, step):
        stop = min(rows, start + step)
        block = X[start:stop, :, None] + Y[None, :, :]
        idx = block.argmin(axis=1)
        arg[start:stop] = idx
        out[start:stop] = np.take_along_axis(block, idx[:, None, :], axis=1)[:, 0, :]
    return out, arg


def _end_costs(node_cost, split, size):
    """Square end-pair cost matrix of a subtree, inf for pairs on the same side."""
    if node_cost is None:
        return np.zeros((1, 1), dtype=np.float64)
    full = np.full((size, size), np.inf)
    full[:split, split:] = node_cost
    full[split:, :split] = node_cost.T
    return full


def _optimal_order(values, tree):
    """Tree-restricted minimum SARF (n=1) order via dynamic programming.

    Returns:
        (order, swaps, cost): leaf ids in order, internal nodes whose
        children must be swapped to realise it, and its SARF.
    """
    n = tree.n_leaves
    if n == 1:
        return [0], [], 0.0

    leaves = {leaf: np.array([leaf]) for leaf in range(n)}
    cost, split, arg_k, arg_l, kids = {}, {}, {}, {}, {}

    for node in tree.internal_nodes():
        c1, c2 = tree.children(node)
        kids[node] = (c1, c2)
        s1, s2 = len(leaves[c1]), len(leaves[c2])
        C1 = _end_costs(cost.pop(c1, None), split.get(c1), s1)
        C2 = _end_costs(cost.pop(c2, None), split.get(c2), s2)
        D = values[np.ix_(leaves[c1], leaves[c2])]
        # P[a, l]: best c1 ordering starting at a, joined to l in c2
        P, arg_k[node] = _min_plus(C1, D)
        # Q[a, b]: ... continuing through c2 to end at b
        cost[node], arg_l[node] = _min_plus(P, C2)
        split[node] = s1
        leaves[node] = np.concatenate([leaves.pop(c1), leaves.pop(c2)])

    root = tree.root
    Q = cost[root]
    a, b = np.unravel_index(np.argmin(Q), Q.shape)
    best = float(Q[a, b])

    order, swaps = [], []
    stack = [(root, a, split[root] + b)]
    while stack:
        node, start, end = stack.pop()
        if tree.is_leaf(node):
            order.append(node)
            continue
        c1, c2 = kids[node]
        s1 = split[node]
        if start < s1:
            a, b = start, end - s1
            l = arg_l[node][a, b]
            k = arg_k[node][a, l]
            first, second = (c1, a, k), (c2, l, b)
        else:
            a, b = end, start - s1
            l = arg_l[node][a, b]
            k = arg_k[node][a, l]
            first, second = (c2, b, l), (c1, k, a)
            swaps.append(node)
        stack.append(second)
        stack.append(first)
    return order, swaps, best


def _window_search(values, tree, window, max_passes):
    """Swap children while SARF(1) stays optimal and SARF(window) drops."""
    order = np.array(tree.leaves(), dtype=np.intp)
    m = len(order)
    pos = np.empty(m, dtype=np.intp)
    pos[order] = np.arange(m)
    sizes = tree.sizes()
    accepted = 0

    for _pass in range(max_passes):
        improved = False
        for node in tree.internal_nodes():
            left, _right = tree.children(node)
            first_leaf = tree.leaves(node)[0]
            i = pos[first_leaf]
            s, sl = sizes[node], sizes[left]
            lo, hi = max(0, i - window), min(m, i + s + window)

            current = order[lo:hi]
            candidate = current.copy()
            seg = order[i:i + s]
            candidate[i - lo:i - lo + s] = np.concatenate([seg[sl:], seg[:sl]])

            old1, new1 = sarf_values(values, current, 1), sarf_values(values, candidate, 1)
            if new1 > old1 + _TOL:
                continue
            oldn, newn = sarf_values(values, current, window), sarf_values(values, candidate, window)
            if new1 < old1 - _TOL or newn < oldn - _TOL:
                order[lo:hi] = candidate
                pos[candidate] = np.arange(lo, hi)
                tree.swap(node)
                improved = True
                accepted += 1
        if not improved:
            break
    lg.debug(f'Window search accepted {accepted} swaps')
    return order


def order_tree(rf, tree, window=2, max_passes=20):
    """Reorder *tree* in place and return the resulting marker order.

    Args:
        rf: RF matrix whose rows correspond to the tree's leaves.
        tree: :class:`ClusterTree` over the same markers.
        window: SARF window used to break ties between orders of equal
            immediate-neighbour SARF. ``1`` disables the local search.
        max_passes: Maximum local search sweeps over the internal nodes.

    Returns:
        Integer array of leaf positions in order.
    """
    values, _, _ = as_matrix(rf)
    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise InvalidInputError(f'RF matrix must be square, got shape {values.shape}')
    if values.shape[0] != tree.n_leaves:
        raise InvalidInputError(
            f'RF matrix has {values.shape[0]} markers but tree has {tree.n_leaves} leaves')
    if window < 1:
        raise InvalidInputError(f'window must be a positive integer, got {window!r}')

    order, swaps, best = _optimal_order(values, tree)
    for node in swaps:
        tree.swap(node)
    assert tree.leaves() == order, 'Tree swaps do not reproduce the optimal order'
    lg.debug(f'Tree-optimal SARF {best:.6f} over {tree.n_leaves} markers')

    if window > 1 and tree.n_leaves > 2:
        return _window_search(values, tree, window, max_passes)
    return np.array(order, dtype=np.intp)


def _order_group(values, labels, task, method='average', window=2):
    group, members = task
    members = np.asarray(members, dtype=np.intp)
    names = [labels[i] for i in members]
    if len(members) < 2:
        sub = values[np.ix_(members, members)]
        return GroupOrder(group, names, members, pd.DataFrame(sub, index=names, columns=names), 0.0)

    sub = values[np.ix_(members, members)]
    tree = ClusterTree.from_rf(sub, method=method, labels=names)
    local = order_tree(sub, tree, window=window)
    indices = members[local]
    ordered = [labels[i] for i in indices]
    sub_rf = pd.DataFrame(values[np.ix_(indices, indices)], index=ordered, columns=ordered)
    return GroupOrder(group, ordered, indices, sub_rf, sarf_values(values, indices, 1), tree)


def sort_leafs(rf, groups=None, method='average', window=2, ncpu=1):
    """Order the markers of every linkage group.

    Args:
        rf: Full RF matrix (DataFrame or square array).
        groups: Series of group ids indexed by marker name (as returned by
            :func:`split_chr`) or a sequence aligned with the matrix rows.
            *None* orders all markers as a single group ``1``. Group ``0``
            is skipped.
        method: Linkage criterion for the per-group trees.
        window: SARF window for tie-breaking.
        ncpu: Number of worker processes; groups are independent.

    Returns:
        dict ``{group: GroupOrder}`` sorted by group id.
    """
    values, labels = validate_rf(rf)
    n_markers = values.shape[0]

    if groups is None:
        assignment = np.ones(n_markers, dtype=np.int64)
    elif isinstance(groups, pd.Series):
        aligned = groups.reindex(labels)
        if aligned.isna().any():
            raise InvalidInputError(
                '{} markers of the RF matrix have no group'.format(int(aligned.isna().sum())))
        assignment = aligned.to_numpy(dtype=np.int64)
    else:
        assignment = np.asarray(groups, dtype=np.int64)
        if assignment.shape != (n_markers,):
            raise InvalidInputError(
                f'Group vector has shape {assignment.shape}, expected ({n_markers},)')

    tasks = [(int(g), np.flatnonzero(assignment == g))
             for g in np.unique(assignment) if g != UNASSIGNED]
    lg.info(f'Ordering {len(tasks)} linkage groups (window={window}, ncpu={ncpu})')

    _func = functools.partial(_order_group, values, labels, method=method, window=window)
    if ncpu > 1 and len(tasks) > 1:
        with Pool(processes=min(ncpu, len(tasks))) as pool:
            results = pool.map(_func, tasks)
    else:
        results = [_func(t) for t in tasks]
    return {r.group: r for r in results}
