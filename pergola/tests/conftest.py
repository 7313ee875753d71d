# This file is part of Pergola.
# Licensed under MIT License.

"""Shared fixtures: simulated polyploid backcross populations."""

import numpy as np
import pandas as pd
import pytest

from pergola.compute.backend import BackendInfo

# Six-marker matrix with two orders of equal SARF(1) but different SARF(2)
AMBIGUOUS_RF = np.array([
    [0, 2, 4, 6, 8, 12],
    [2, 0, 4, 4, 7, 10],
    [4, 4, 0, 2, 4, 7],
    [6, 4, 2, 0, 4, 5],
    [8, 7, 4, 4, 0, 3],
    [12, 10, 7, 5, 3, 0],
], dtype=np.float64) / 100


def simulate_backcross(rng, n_chr=7, n_markers=15, n_samples=200, ploidy=4, r=0.01):
    """Dosage table of independent chromosomes.

    Every sample carries ``ploidy`` allele indicators per chromosome; walking
    along the chromosome each indicator flips with probability ``r`` between
    adjacent markers. Dosage is the indicator sum.

    Returns:
        (dosages, truth): DataFrame markers x samples and a Series of the
        true chromosome per marker. Markers are in true map order.
    """
    rows, names, truth = [], [], []
    for c in range(n_chr):
        state = rng.integers(0, 2, size=(n_samples, ploidy))
        for m in range(n_markers):
            if m:
                flips = rng.random((n_samples, ploidy)) < r
                state = np.where(flips, 1 - state, state)
            rows.append(state.sum(axis=1))
            names.append('chr{}_m{:02d}'.format(c + 1, m + 1))
            truth.append(c + 1)
    samples = ['S{:03d}'.format(i + 1) for i in range(n_samples)]
    dosages = pd.DataFrame(np.array(rows, dtype=np.float64), index=names, columns=samples)
    return dosages, pd.Series(truth, index=names, name='chromosome')


@pytest.fixture(scope='module')
def sim_tetra():
    return simulate_backcross(np.random.default_rng(20240611))


@pytest.fixture
def stock_backend():
    return BackendInfo(name='cpu_stock')


@pytest.fixture
def ambiguous_rf():
    return AMBIGUOUS_RF.copy()
