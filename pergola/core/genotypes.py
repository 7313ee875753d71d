# This file is part of Pergola.
# Licensed under MIT License.

"""Genotype encoding: collapse per-allele columns into one dosage per sample.

Raw genotype tables carry ``ploidy`` columns per sample, one per allele (or
haplotype bit), optionally preceded by columns that are not offspring data
(e.g. the parents). Encoding sums the allele indicators of each block.
"""

import logging as lg

import numpy as np
import pandas as pd

from ..errors import InvalidInputError


def _indicators(block, allele, missing):
    """Convert a raw (markers x cols) object block into float indicators."""
    isna = pd.isna(block)
    if missing is not None:
        isna |= (block == missing)
    if allele is not None:
        values = (block == allele).astype(np.float64)
    else:
        try:
            values = np.where(isna, 0, block).astype(np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(
                'Non-numeric genotype values found; pass `allele` to encode '
                'allele symbols ({})'.format(exc)) from exc
    values[isna] = np.nan
    return values


def encode_genotypes(raw, ploidy, ignore_columns=0, allele=None, missing=None):
    """Encode a raw allele table into a dosage matrix.

    Args:
        raw: DataFrame or 2-D array, rows = markers. After the first
            ``ignore_columns`` columns, every ``ploidy`` consecutive columns
            belong to one sample.
        ploidy: Positive integer ploidy level.
        ignore_columns: Number of leading columns to drop.
        allele: If given, a cell counts as 1 when equal to ``allele`` and 0
            otherwise (for tables of allele symbols). Numeric tables are summed
            directly.
        missing: Extra value treated as missing, besides NaN/None.

    Returns:
        DataFrame (markers x samples) of float dosages in ``0..ploidy`` with
        NaN for missing. A sample is missing at a marker if any of its allele
        columns is missing. Columns are labelled by the first column of each
        block.

    Raises:
        InvalidInputError: On invalid parameters or when the number of data
            columns is not a multiple of ``ploidy``.
    """
    if not isinstance(ploidy, (int, np.integer)) or ploidy < 1:
        raise InvalidInputError('ploidy must be a positive integer, got {!r}'.format(ploidy))
    if not isinstance(ignore_columns, (int, np.integer)) or ignore_columns < 0:
        raise InvalidInputError(
            'ignore_columns must be a non-negative integer, got {!r}'.format(ignore_columns))

    if isinstance(raw, pd.DataFrame):
        frame = raw
    else:
        arr = np.asarray(raw, dtype=object)
        if arr.ndim != 2:
            raise InvalidInputError('Genotype table must be 2-dimensional, got {} dims'.format(arr.ndim))
        frame = pd.DataFrame(arr)

    data = frame.iloc[:, ignore_columns:]
    ncols = data.shape[1]
    if ncols == 0 or ncols % ploidy != 0:
        raise InvalidInputError(
            '{} data columns (after ignoring {}) is not a positive multiple of ploidy {}'.format(
                ncols, ignore_columns, ploidy))

    nsamples = ncols // ploidy
    values = _indicators(data.to_numpy(dtype=object), allele, missing)
    # (markers, samples, ploidy) -> sum alleles; NaN propagates
    dosage = values.reshape(values.shape[0], nsamples, ploidy).sum(axis=2)

    if allele is None:
        observed = dosage[~np.isnan(dosage)]
        if observed.size and (observed.min() < 0 or observed.max() > ploidy):
            raise InvalidInputError(
                'Encoded dosages must lie in 0..{}; found range {}..{}'.format(
                    ploidy, observed.min(), observed.max()))

    samples = list(data.columns[::ploidy])
    lg.debug('Encoded {} markers x {} samples (ploidy {})'.format(
        dosage.shape[0], nsamples, ploidy))
    return pd.DataFrame(dosage, index=frame.index, columns=samples)
