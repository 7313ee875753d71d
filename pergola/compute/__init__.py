# This file is part of Pergola.
# Licensed under MIT License.

"""Compute backend selection for the pairwise recombination kernel.

- **cpu_optimized** -- Numba ``prange`` kernel over marker rows
- **cpu_stock** -- row-vectorised numpy, optionally chunked over threads
"""

from .backend import BackendInfo, configure, get_backend  # noqa: F401
