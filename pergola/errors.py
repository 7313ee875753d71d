# This file is part of Pergola.
# Licensed under MIT License.

"""Exceptions raised by the Pergola core."""


class PergolaError(Exception):
    """Base class for all Pergola errors."""


class InvalidInputError(PergolaError, ValueError):
    """Malformed dimensions, ploidy mismatch or an RF matrix that is not a
    square, symmetric, zero-diagonal distance matrix."""


class UndefinedFrequencyError(PergolaError, ArithmeticError):
    """A marker pair has no sample where both markers were observed."""

    def __init__(self, pairs):
        self.pairs = list(pairs)
        super().__init__(
            '{} marker pair(s) without valid sample comparisons, e.g. {}'.format(
                len(self.pairs), self.pairs[:3]))


class EmptyGroupError(PergolaError, ValueError):
    """A linkage group has too few members for the requested computation."""
