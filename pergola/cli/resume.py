# -*- coding: utf-8 -*-

# This file is part of Pergola.
# Licensed under MIT License.

""" Pergola resume

Re-runs grouping, ordering and map construction on the RF matrix stored in a
checkpoint, e.g. with a different number of groups or SARF window.
"""
import os
from time import time
import logging as lg

from . import configure_logging, REPORTING_OPTS, GROUPING_OPTS, ORDERING_OPTS
from .build import PergolaOptions, finish
from .console import Stopwatch
from ..utils.helpers import format_minutes as fmtmins
from ..core.model import Pergola


class ResumeOptions(PergolaOptions):
    OPTS = """
- Input Options:
    - checkpoint:
        positional: True
        help: Path to a checkpoint written by pergola map.
""" + REPORTING_OPTS + GROUPING_OPTS + ORDERING_OPTS + """
- Performance Options:
    - ncpu:
        default: 1
        type: int
        help: Number of processes used to order groups.
"""


def run(args):
    opts = ResumeOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))
    total_time = time()
    stopwatch = Stopwatch()

    console.banner(opts.version)
    console.section('Input')
    console.item('Checkpoint', os.path.basename(opts.checkpoint))
    console.blank()

    stopwatch.start('Loading')
    pg = Pergola.load(opts.checkpoint, opts)
    console.status('Loading checkpoint... done ({:,} markers)'.format(len(pg.rf)))

    os.makedirs(opts.outdir, exist_ok=True)
    finish(pg, opts, console, stopwatch, total_time)
    lg.info('pergola resume complete (%s)' % fmtmins(time() - total_time))
