# This file is part of Pergola.
# Licensed under MIT License.

"""Tests for pergola.core.genotypes."""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_array_equal

from pergola.core.genotypes import encode_genotypes
from pergola.errors import InvalidInputError


@pytest.fixture
def raw_tetra():
    """2 markers, 2 parent columns, then 3 samples x 4 alleles."""
    return pd.DataFrame(
        [
            [1, 0, 1, 0, 0, 0, 1, 1, 0, 0, 1, 1, 1, 0],
            [0, 1, 1, 1, 1, 0, 1, 0, 0, 0, 0, 0, 0, 0],
        ],
        index=['m1', 'm2'],
        columns=['P1', 'P2'] + ['s{}_{}'.format(s, a) for s in range(1, 4) for a in range(1, 5)],
    )


class TestEncode:
    def test_sums_allele_blocks(self, raw_tetra):
        enc = encode_genotypes(raw_tetra, ploidy=4, ignore_columns=2)
        assert enc.shape == (2, 3)
        assert_array_equal(enc.to_numpy(), [[1, 2, 3], [3, 1, 0]])

    def test_labels(self, raw_tetra):
        enc = encode_genotypes(raw_tetra, ploidy=4, ignore_columns=2)
        assert list(enc.index) == ['m1', 'm2']
        assert list(enc.columns) == ['s1_1', 's2_1', 's3_1']

    def test_plain_array(self):
        raw = np.array([[0, 1, 1, 1], [1, 1, 0, 0]])
        enc = encode_genotypes(raw, ploidy=2)
        assert_array_equal(enc.to_numpy(), [[1, 2], [2, 0]])

    def test_ploidy_one_is_identity(self):
        raw = np.array([[0, 1, 1], [1, 0, 1]])
        enc = encode_genotypes(raw, ploidy=1)
        assert_array_equal(enc.to_numpy(), raw)

    def test_allele_symbols(self):
        raw = pd.DataFrame([['A', 'B', 'A', 'A'], ['B', 'B', 'A', 'B']])
        enc = encode_genotypes(raw, ploidy=2, allele='A')
        assert_array_equal(enc.to_numpy(), [[1, 2], [0, 1]])

    def test_missing_propagates_to_sample(self):
        raw = np.array([[1, np.nan, 1, 1], [0, 0, 1, 0]])
        enc = encode_genotypes(raw, ploidy=2)
        assert np.isnan(enc.iloc[0, 0])
        assert enc.iloc[0, 1] == 2
        assert enc.iloc[1, 0] == 0

    def test_missing_sentinel(self):
        raw = np.array([[1, -9, 1, 1]])
        enc = encode_genotypes(raw, ploidy=2, missing=-9)
        assert np.isnan(enc.iloc[0, 0])
        assert enc.iloc[0, 1] == 2


class TestEncodeErrors:
    def test_columns_not_multiple_of_ploidy(self, raw_tetra):
        with pytest.raises(InvalidInputError):
            encode_genotypes(raw_tetra, ploidy=4, ignore_columns=1)

    def test_columns_not_multiple_without_ignore(self):
        with pytest.raises(InvalidInputError):
            encode_genotypes(np.zeros((3, 7)), ploidy=4)

    def test_all_columns_ignored(self):
        with pytest.raises(InvalidInputError):
            encode_genotypes(np.zeros((3, 4)), ploidy=4, ignore_columns=4)

    @pytest.mark.parametrize('ploidy', [0, -2, 2.5])
    def test_bad_ploidy(self, ploidy):
        with pytest.raises(InvalidInputError):
            encode_genotypes(np.zeros((2, 4)), ploidy=ploidy)

    def test_negative_ignore(self):
        with pytest.raises(InvalidInputError):
            encode_genotypes(np.zeros((2, 4)), ploidy=2, ignore_columns=-1)

    def test_symbols_without_allele(self):
        with pytest.raises(InvalidInputError):
            encode_genotypes(pd.DataFrame([['A', 'B']]), ploidy=2)

    def test_dosage_out_of_range(self):
        with pytest.raises(InvalidInputError):
            encode_genotypes(np.array([[2, 1, 0, 0]]), ploidy=2)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            encode_genotypes(np.zeros((3, 5)), ploidy=2)
