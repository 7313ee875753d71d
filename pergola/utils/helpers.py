# This file is part of Pergola.
# Licensed under MIT License.

import numpy as np
import pandas as pd


def format_minutes(seconds):
    mins = int(seconds // 60)
    secs = seconds - mins * 60
    return '{:d} minutes and {:.2f} secs.'.format(mins, secs)


def as_matrix(data, dtype=np.float64):
    """Split a DataFrame or array-like into ``(values, row_labels, col_labels)``.

    Labels default to integer positions when *data* is not a DataFrame.
    """
    if isinstance(data, pd.DataFrame):
        return data.to_numpy(dtype=dtype), list(data.index), list(data.columns)
    values = np.asarray(data, dtype=dtype)
    if values.ndim != 2:
        return values, None, None
    return values, list(range(values.shape[0])), list(range(values.shape[1]))


def shuffle_markers(genotypes, rng):
    """Return a copy of *genotypes* with its marker rows randomly permuted.

    Args:
        genotypes: DataFrame or 2-D array, rows are markers.
        rng: ``numpy.random.Generator``. Pass a seeded generator for
            reproducible shuffles.
    """
    perm = rng.permutation(len(genotypes))
    if isinstance(genotypes, pd.DataFrame):
        return genotypes.iloc[perm].copy()
    return np.asarray(genotypes)[perm].copy()
