# This file is part of Pergola.
# Licensed under MIT License.

"""Numba-accelerated pairwise recombination counting.

Each row ``i`` compares marker ``i`` against all later markers, so rows are
independent and run under ``prange``. Only the upper triangle is computed
and mirrored afterwards.
"""

import numpy as np
from numba import njit, prange


@njit(parallel=True, cache=True)
def _pairwise_kernel(dosage, ploidy, allow_repulsion):
    n_markers, n_samples = dosage.shape
    counts = np.zeros((n_markers, n_markers), dtype=np.float64)
    valid = np.zeros((n_markers, n_markers), dtype=np.int64)
    for i in prange(n_markers):
        for j in range(i + 1, n_markers):
            coupling = 0.0
            repulsion = 0.0
            n = 0
            for s in range(n_samples):
                x = dosage[i, s]
                y = dosage[j, s]
                if np.isnan(x) or np.isnan(y):
                    continue
                coupling += abs(x - y)
                repulsion += abs(x - (ploidy - y))
                n += 1
            if allow_repulsion and repulsion < coupling:
                counts[i, j] = repulsion
            else:
                counts[i, j] = coupling
            valid[i, j] = n
    return counts, valid


def pairwise_counts_numba(dosage, ploidy, allow_repulsion=True, ncpu=1):
    """Minimum recombination totals and valid sample counts per marker pair.

    ``ncpu`` is accepted for signature parity; Numba's own thread pool
    parallelises the rows.
    """
    counts, valid = _pairwise_kernel(
        np.ascontiguousarray(dosage, dtype=np.float64), float(ploidy), bool(allow_repulsion))
    counts = counts + counts.T
    valid = valid + valid.T
    return counts, valid
