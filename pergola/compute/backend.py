# -*- coding: utf-8 -*-

# This file is part of Pergola.
# Licensed under MIT License.

"""Backend abstraction for Pergola compute acceleration.

Provides auto-detection of Numba and returns the pairwise recombination
counting function for the active backend.
"""
import logging as lg
from dataclasses import dataclass


@dataclass
class BackendInfo:
    """Information about the active compute backend."""
    name: str = 'cpu_stock'
    has_numba: bool = False


# Module-level singleton
_active_backend: BackendInfo = None


def _detect_numba():
    """Check if numba is available and functional."""
    try:
        import numba  # noqa: F401
        return True
    except ImportError:
        return False


def configure(name=None):
    """Configure the compute backend based on available libraries.

    Args:
        name: Force ``'cpu_stock'`` or ``'cpu_optimized'``. *None* picks
            ``cpu_optimized`` whenever Numba is importable.
    """
    global _active_backend

    has_numba = _detect_numba()

    if name is None:
        name = 'cpu_optimized' if has_numba else 'cpu_stock'
    if name not in ('cpu_stock', 'cpu_optimized'):
        raise ValueError(f'Unknown backend: {name!r}')
    if name == 'cpu_optimized' and not has_numba:
        lg.warning('Backend cpu_optimized requested but numba is not importable, using cpu_stock')
        name = 'cpu_stock'

    if name == 'cpu_optimized':
        lg.info('Backend: cpu_optimized (numba prange kernel)')
    else:
        lg.info('Backend: cpu_stock (numpy only)')

    _active_backend = BackendInfo(name=name, has_numba=has_numba)
    return _active_backend


def get_backend():
    """Return the active backend info. Defaults to cpu_stock if unconfigured."""
    global _active_backend
    if _active_backend is None:
        _active_backend = BackendInfo()
    return _active_backend


def get_rec_kernel(backend=None):
    """Return the pairwise recombination counting function for *backend*.

    The function has signature ``f(dosage, ploidy, allow_repulsion, ncpu)``
    and returns ``(counts, valid)`` float/int matrices (markers x markers).
    """
    backend = backend or get_backend()
    if backend.name == 'cpu_optimized' and backend.has_numba:
        from .kernels import pairwise_counts_numba
        return pairwise_counts_numba
    from ..core.recombination import pairwise_counts_numpy
    return pairwise_counts_numpy


def display_name(be):
    """Human-readable backend name for console output."""
    names = {
        'cpu_optimized': 'CPU-Optimized (Numba)',
        'cpu_stock': 'CPU (numpy)',
    }
    return names.get(be.name, be.name)
