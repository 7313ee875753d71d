# This file is part of Pergola.
# Licensed under MIT License.

"""Split markers into linkage groups by cutting a clustering tree.

Group ids start at 1 and follow the first appearance of a member in the
input marker order. Id 0 is reserved for filtered-out markers.
"""

import logging as lg

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import cut_tree, fcluster

from ..errors import EmptyGroupError, InvalidInputError
from .recombination import validate_rf
from .tree import rf_linkage

UNASSIGNED = 0


def _relabel(raw):
    """Renumber cluster labels 1..k by first appearance."""
    mapping = {}
    out = np.empty(len(raw), dtype=np.int64)
    for i, c in enumerate(raw):
        if c not in mapping:
            mapping[c] = len(mapping) + 1
        out[i] = mapping[c]
    return out


def _filter_isolated(values, groups, isolation):
    """Unassign markers whose RF to every other group member exceeds *isolation*."""
    out = groups.copy()
    for g in np.unique(groups):
        members = np.flatnonzero(groups == g)
        if len(members) < 2:
            continue
        sub = values[np.ix_(members, members)].copy()
        np.fill_diagonal(sub, np.inf)
        isolated = members[sub.min(axis=1) > isolation]
        out[isolated] = UNASSIGNED
    return out


def _filter_duplicates(values, groups, duplicates):
    """Unassign markers within *duplicates* RF of an earlier kept group member."""
    out = groups.copy()
    for g in np.unique(groups):
        if g == UNASSIGNED:
            continue
        kept = []
        for m in np.flatnonzero(groups == g):
            if kept and values[m, kept].min() <= duplicates:
                out[m] = UNASSIGNED
            else:
                kept.append(m)
    return out


def split_chr(rf, n_groups=None, threshold=None, method='average', isolation=None, duplicates=None):
    """Assign every marker to a linkage group.

    Args:
        rf: Recombination frequency matrix (DataFrame or square array).
        n_groups: Cut the tree into exactly this many groups.
        threshold: Alternatively, cut the tree at this merge height.
        method: scipy linkage criterion.
        isolation: If set, markers whose RF to every other member of their
            group exceeds this value are moved to group 0.
        duplicates: If set, markers within this RF of an earlier kept member
            of the same group are moved to group 0.

    Returns:
        Series mapping marker name to group id.
    """
    if (n_groups is None) == (threshold is None):
        raise InvalidInputError('Specify exactly one of n_groups or threshold')
    values, markers = validate_rf(rf)
    n_markers = values.shape[0]
    if n_markers == 0:
        raise InvalidInputError('RF matrix is empty')

    if n_groups is not None:
        if n_groups < 1 or n_groups > n_markers:
            raise InvalidInputError(f'n_groups must be in 1..{n_markers}, got {n_groups}')
        if n_markers == 1:
            raw = np.zeros(1, dtype=np.int64)
        else:
            Z = rf_linkage(values, method)
            raw = cut_tree(Z, n_clusters=n_groups).ravel()
    else:
        if threshold < 0:
            raise InvalidInputError(f'threshold must be non-negative, got {threshold}')
        if n_markers == 1:
            raw = np.zeros(1, dtype=np.int64)
        else:
            Z = rf_linkage(values, method)
            raw = fcluster(Z, t=threshold, criterion='distance')

    groups = _relabel(raw)
    lg.info('Split {} markers into {} groups ({} linkage)'.format(
        n_markers, len(np.unique(groups)), method))

    if isolation is not None:
        groups = _filter_isolated(values, groups, isolation)
    if duplicates is not None:
        groups = _filter_duplicates(values, groups, duplicates)
    n_filtered = int(np.sum(groups == UNASSIGNED))
    if n_filtered:
        lg.info(f'{n_filtered} markers filtered into group {UNASSIGNED}')

    return pd.Series(groups, index=markers, name='group')


def group_members(groups, group):
    """Marker names assigned to *group*, in input order."""
    return list(groups.index[groups.to_numpy() == group])


def group_rf(rf, members):
    """RF submatrix for *members*.

    Raises:
        EmptyGroupError: Fewer than two members.
    """
    if len(members) < 2:
        raise EmptyGroupError(f'A group RF matrix needs at least 2 members, got {len(members)}')
    if isinstance(rf, pd.DataFrame):
        return rf.loc[members, members]
    values = np.asarray(rf)
    return values[np.ix_(members, members)]
