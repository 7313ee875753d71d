# This file is part of Pergola.
# Licensed under MIT License.

"""Sum of Adjacent Recombination Frequencies (SARF).

For an order ``o`` of length ``m`` and window ``n``::

    SARF = sum_{k} sum_{d=1..n} RF[o[k], o[k+d]]    (k + d < m)

``n = 1`` is the classic sum over immediate neighbours; wider windows also
penalise markers that are close in the order but far apart genetically.
"""

import numpy as np

from ..errors import InvalidInputError
from ..utils.helpers import as_matrix


def _check_order(order, size):
    order = np.asarray(order)
    if order.ndim == 1 and order.size == 0:
        return order.astype(np.intp)
    if order.ndim != 1 or not np.issubdtype(order.dtype, np.integer):
        raise InvalidInputError('Order must be a 1-D sequence of integer positions')
    if order.size and (order.min() < 0 or order.max() >= size):
        raise InvalidInputError(f'Order positions must lie in 0..{size - 1}')
    if len(np.unique(order)) != len(order):
        raise InvalidInputError('Order contains duplicate positions')
    return order


def sarf_values(values, order, n=1):
    """SARF on a plain array without validation. Used by the optimiser."""
    total = 0.0
    m = len(order)
    for d in range(1, min(n, m - 1) + 1):
        total += values[order[:-d], order[d:]].sum()
    return float(total)


def calc_sarf(rf, order=None, n=1):
    """Compute the SARF of *order* over a window of *n* neighbours.

    Args:
        rf: RF matrix (DataFrame or square array).
        order: Integer positions into *rf*; *None* keeps the matrix order.
            Need not cover every marker.
        n: Window size, ``n >= 1``.

    Returns:
        float
    """
    if not isinstance(n, (int, np.integer)) or n < 1:
        raise InvalidInputError(f'SARF window must be a positive integer, got {n!r}')
    values, _, _ = as_matrix(rf)
    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise InvalidInputError(f'RF matrix must be square, got shape {values.shape}')
    if order is None:
        order = np.arange(values.shape[0])
    else:
        order = _check_order(order, values.shape[0])
    return sarf_values(values, order, n)
