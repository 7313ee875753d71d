# This file is part of Pergola.
# Licensed under MIT License.

"""Pairwise recombination frequencies from encoded dosages.

For each marker pair and each sample observed at both markers, the minimum
number of allele exchanges that turns dosage ``x`` into dosage ``y`` is
``|x - y|``. With ``allow_repulsion`` the pair is also scored against the
reflected dosage ``ploidy - y`` and the smaller total is kept. The frequency
is the total divided by ``valid_samples * ploidy``.

No likelihood model is fitted; this is a deterministic minimum count.
"""

import logging as lg
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd

from ..compute.backend import get_backend, get_rec_kernel
from ..errors import InvalidInputError, UndefinedFrequencyError
from ..utils.helpers import as_matrix

# Recombination frequency of unlinked loci
UNLINKED_RF = 0.5


def _row_counts(dosage, observed, ploidy, allow_repulsion, rows):
    """Counts for the given row indices against every marker."""
    filled = np.where(observed, dosage, 0.0)
    reflected = np.where(observed, ploidy - dosage, 0.0)
    counts = np.empty((len(rows), dosage.shape[0]), dtype=np.float64)
    valid = np.empty((len(rows), dosage.shape[0]), dtype=np.int64)
    for out, i in enumerate(rows):
        both = observed[i] & observed
        coupling = np.where(both, np.abs(filled[i] - filled), 0.0).sum(axis=1)
        if allow_repulsion:
            repulsion = np.where(both, np.abs(filled[i] - reflected), 0.0).sum(axis=1)
            coupling = np.minimum(coupling, repulsion)
        counts[out] = coupling
        valid[out] = both.sum(axis=1)
    return counts, valid


def pairwise_counts_numpy(dosage, ploidy, allow_repulsion=True, ncpu=1):
    """Minimum recombination totals and valid sample counts per marker pair.

    Each row is vectorised over markers and samples. With ``ncpu > 1`` the
    rows are split into contiguous chunks evaluated on a thread pool (numpy
    releases the GIL inside the reductions).
    """
    dosage = np.asarray(dosage, dtype=np.float64)
    observed = ~np.isnan(dosage)
    n_markers = dosage.shape[0]
    if ncpu > 1 and n_markers > 1:
        chunks = [c for c in np.array_split(np.arange(n_markers), ncpu) if len(c)]
        with ThreadPoolExecutor(max_workers=ncpu) as executor:
            parts = list(executor.map(
                lambda rows: _row_counts(dosage, observed, ploidy, allow_repulsion, rows),
                chunks))
        counts = np.vstack([p[0] for p in parts])
        valid = np.vstack([p[1] for p in parts])
    else:
        counts, valid = _row_counts(dosage, observed, ploidy, allow_repulsion, np.arange(n_markers))

    # Mirror the upper triangle so RF[i, j] and RF[j, i] are bitwise equal
    counts = np.triu(counts, 1)
    valid = np.triu(valid, 1)
    return counts + counts.T, valid + valid.T


def calc_rec(genotypes, ploidy, cap=UNLINKED_RF, allow_repulsion=True,
             on_undefined='cap', ncpu=1, backend=None):
    """Compute the recombination frequency matrix.

    Args:
        genotypes: Encoded dosage matrix (markers x samples), DataFrame or
            2-D array. NaN marks missing values.
        ploidy: Positive integer ploidy level.
        cap: Upper bound for every frequency; also the value given to pairs
            with no valid sample comparison.
        allow_repulsion: Also score each pair in repulsion phase and keep
            the smaller count.
        on_undefined: ``'cap'`` substitutes ``cap`` for undefined pairs,
            ``'raise'`` raises :class:`UndefinedFrequencyError`.
        ncpu: Worker threads for the numpy backend.
        backend: :class:`BackendInfo`; defaults to the active backend.

    Returns:
        Symmetric DataFrame (markers x markers) with zero diagonal, labelled
        by marker names.
    """
    if not isinstance(ploidy, (int, np.integer)) or ploidy < 1:
        raise InvalidInputError('ploidy must be a positive integer, got {!r}'.format(ploidy))
    if on_undefined not in ('cap', 'raise'):
        raise InvalidInputError(f'on_undefined must be "cap" or "raise", got {on_undefined!r}')
    if cap <= 0:
        raise InvalidInputError(f'cap must be positive, got {cap!r}')

    try:
        dosage, markers, _samples = as_matrix(genotypes)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f'Genotype matrix must be numeric: {exc}') from exc
    if dosage.ndim != 2:
        raise InvalidInputError(f'Genotype matrix must be 2-dimensional, got {dosage.ndim} dims')

    observed = dosage[~np.isnan(dosage)]
    if observed.size and (observed.min() < 0 or observed.max() > ploidy):
        raise InvalidInputError(
            'Dosages must lie in 0..{}; found range {}..{}. Was the table encoded?'.format(
                ploidy, observed.min(), observed.max()))

    backend = backend or get_backend()
    kernel = get_rec_kernel(backend)
    lg.info('Computing recombination frequencies for {} markers x {} samples ({})'.format(
        dosage.shape[0], dosage.shape[1], backend.name))
    counts, valid = kernel(dosage, ploidy, allow_repulsion, ncpu)

    with np.errstate(divide='ignore', invalid='ignore'):
        rf = counts / (valid * float(ploidy))

    undefined = valid == 0
    np.fill_diagonal(undefined, False)
    if undefined.any():
        pairs = [(markers[i], markers[j]) for i, j in zip(*np.nonzero(np.triu(undefined)))]
        if on_undefined == 'raise':
            raise UndefinedFrequencyError(pairs)
        lg.warning('{} marker pair(s) without valid samples; set to {}'.format(len(pairs), cap))
        rf[undefined] = cap

    rf = np.minimum(rf, cap)
    np.fill_diagonal(rf, 0.0)
    return pd.DataFrame(rf, index=markers, columns=markers)


def validate_rf(rf, atol=1e-8):
    """Check that *rf* is a usable recombination frequency matrix.

    Returns:
        ``(values, labels)`` as a float array and a list of marker labels.

    Raises:
        InvalidInputError: If the matrix is not square, not symmetric, has a
            nonzero diagonal, or holds negative or non-finite values.
    """
    try:
        values, rows, cols = as_matrix(rf)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f'RF matrix must be numeric: {exc}') from exc
    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise InvalidInputError(f'RF matrix must be square, got shape {values.shape}')
    if isinstance(rf, pd.DataFrame) and rows != cols:
        raise InvalidInputError('RF matrix row and column labels differ')
    if not np.all(np.isfinite(values)):
        raise InvalidInputError('RF matrix contains NaN or infinite values')
    if np.any(values < 0):
        raise InvalidInputError('RF matrix contains negative values')
    if not np.allclose(values, values.T, atol=atol, rtol=0):
        raise InvalidInputError('RF matrix is not symmetric')
    if not np.allclose(np.diag(values), 0, atol=atol, rtol=0):
        raise InvalidInputError('RF matrix diagonal must be zero')
    return values, rows
