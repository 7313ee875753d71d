# This file is part of Pergola.
# Licensed under MIT License.

"""Genetic maps from ordered linkage groups.

Adjacent recombination frequencies along each order are converted to
centimorgan distances with a mapping function and accumulated.
"""

import logging as lg

import numpy as np
import pandas as pd

from ..errors import InvalidInputError

# Frequencies at or above 0.5 have no finite map distance
MAX_RF = 0.499


def haldane(r):
    """Haldane mapping function (no interference), in cM."""
    return -50.0 * np.log(1.0 - 2.0 * r)


def kosambi(r):
    """Kosambi mapping function, in cM."""
    return 25.0 * np.log((1.0 + 2.0 * r) / (1.0 - 2.0 * r))


def identity(r):
    """Recombination frequency scaled to cM without correction."""
    return 100.0 * r


MAPPING_FUNCTIONS = {
    'haldane': haldane,
    'kosambi': kosambi,
    'none': identity,
}


def get_mapping_function(fun):
    if callable(fun):
        return fun
    try:
        return MAPPING_FUNCTIONS[fun]
    except KeyError:
        raise InvalidInputError(
            f'Unknown mapping function {fun!r}; choose from {sorted(MAPPING_FUNCTIONS)}') from None


def adjacent_rf(rf_values, order):
    """RF between consecutive markers of *order*."""
    order = np.asarray(order, dtype=np.intp)
    if len(order) < 2:
        return np.zeros(0, dtype=np.float64)
    return rf_values[order[:-1], order[1:]]


def pull_map(orders, fun='haldane'):
    """Build a genetic map from ordered groups.

    Args:
        orders: dict ``{group: GroupOrder}`` from :func:`sort_leafs`.
        fun: Mapping function name (``'haldane'``, ``'kosambi'``,
            ``'none'``) or a callable taking an RF array and returning cM.

    Returns:
        DataFrame with columns ``marker``, ``group``, ``position`` (cM),
        groups in ascending id, positions starting at 0 in each group.
    """
    func = get_mapping_function(fun)
    frames = []
    for group in sorted(orders):
        go = orders[group]
        sub = go.rf.to_numpy(dtype=np.float64)
        steps = np.clip(adjacent_rf(sub, np.arange(len(go.markers))), 0.0, MAX_RF)
        distances = np.asarray(func(steps), dtype=np.float64)
        if np.any(distances < 0) or not np.all(np.isfinite(distances)):
            raise InvalidInputError('Mapping function returned negative or non-finite distances')
        positions = np.concatenate([[0.0], np.cumsum(distances)]) if len(go.markers) else []
        frames.append(pd.DataFrame({
            'marker': go.markers,
            'group': group,
            'position': positions,
        }))
    if not frames:
        return pd.DataFrame(columns=['marker', 'group', 'position'])
    result = pd.concat(frames, ignore_index=True)
    lg.info('Map: {} markers on {} groups'.format(len(result), len(frames)))
    return result
