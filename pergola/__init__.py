# -*- coding: utf-8 -*-

# This file is part of Pergola.
# Licensed under MIT License.

__version__ = '0.1.0'

from .core.genotypes import encode_genotypes  # noqa: F401,E402
from .core.recombination import calc_rec, validate_rf  # noqa: F401,E402
from .core.grouping import split_chr  # noqa: F401,E402
from .core.sarf import calc_sarf  # noqa: F401,E402
from .core.ordering import sort_leafs, order_tree  # noqa: F401,E402
from .core.mapping import pull_map  # noqa: F401,E402
