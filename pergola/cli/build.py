# -*- coding: utf-8 -*-

# This file is part of Pergola.
# Licensed under MIT License.

""" Pergola map

"""
import sys
import os
from time import time
import logging as lg

from . import (SubcommandOptions, configure_logging,
               REPORTING_OPTS, GROUPING_OPTS, ORDERING_OPTS)
from .console import Stopwatch
from ..utils.helpers import format_minutes as fmtmins
from ..core.grouping import UNASSIGNED
from ..core.model import Pergola
from ..compute import backend


class PergolaOptions(SubcommandOptions):

    def __init__(self, args):
        super().__init__(args)
        if getattr(self, 'logfile', None) is None:
            self.logfile = sys.stderr
        if hasattr(self, 'n_groups') and (self.n_groups is None) == (self.threshold is None):
            raise SystemExit('error: specify exactly one of --n_groups or --threshold')

    def outfile_path(self, suffix):
        basename = '%s-%s' % (self.exp_tag, suffix)
        return os.path.join(self.outdir, basename)


class MapOptions(PergolaOptions):

    OPTS = """
- Input Options:
    - genofile:
        positional: True
        help: Path to the genotype table (tab-separated). The first column
              holds unique marker names, followed by --ignore_columns
              columns that are skipped (e.g. parents) and then --ploidy
              allele columns per sample.
    - ploidy:
        type: int
        default: 4
        help: Ploidy level of the population.
    - ignore_columns:
        type: int
        default: 0
        help: Number of leading data columns to ignore.
    - allele:
        type: str
        help: Allele symbol counted as 1 when the table holds allele
              symbols instead of 0/1 indicators.
""" + REPORTING_OPTS + """
- Reporting Options:
    - write_rf:
        action: store_true
        help: Also write the recombination frequency matrix.
""" + GROUPING_OPTS + ORDERING_OPTS + """
- Model Parameters:
    - cap:
        type: float
        default: 0.5
        help: Maximum recombination frequency. Pairs without shared
              observations get this value.
    - coupling_only:
        action: store_true
        help: Do not consider repulsion phase when counting recombinations.
- Performance Options:
    - ncpu:
        default: 1
        type: int
        help: Threads for the RF matrix and processes for ordering groups.
    - backend:
        default: auto
        choices:
            - auto
            - cpu_stock
            - cpu_optimized
        help: Compute backend for the recombination matrix.
"""


def configure_backend(opts):
    _name = None if opts.backend == 'auto' else opts.backend
    return backend.configure(_name)


def group_rows(pg):
    """``(group, n_markers, sarf, length_cm, first, last)`` per ordered group."""
    lengths = pg.genetic_map.groupby('group')['position'].max()
    for g, go in pg.orders.items():
        yield g, len(go.markers), go.sarf, float(lengths.get(g, 0.0)), go.markers[0], go.markers[-1]


def finish(pg, opts, console, stopwatch, total_time):
    """Group, order, map and report. Shared by ``map`` and ``resume``."""
    stopwatch.start('Grouping')
    stime = time()
    pg.split()
    lg.info('Split markers in {}'.format(fmtmins(time() - stime)))
    console.status('Grouping... done ({} groups, {} unassigned)'.format(
        pg.run_info['groups'], pg.run_info['unassigned']))

    stopwatch.start('Ordering')
    stime = time()
    pg.order()
    lg.info('Ordered groups in {}'.format(fmtmins(time() - stime)))
    console.status('Ordering... done (total SARF {:.4f})'.format(pg.run_info['total_sarf']))

    stopwatch.start('Map')
    pg.build_map()
    pg.print_summary(lg.INFO)

    console.blank()
    console.section('Linkage groups')
    console.group_table(group_rows(pg))
    if pg.run_info['unassigned']:
        console.detail('{} markers left in group {}'.format(pg.run_info['unassigned'], UNASSIGNED))

    stopwatch.start('Reports')
    _files = [
        opts.outfile_path('groups.tsv'),
        opts.outfile_path('order.tsv'),
        opts.outfile_path('map.tsv'),
    ]
    _rf_file = opts.outfile_path('rf.tsv') if getattr(opts, 'write_rf', False) else None
    pg.output_report(*_files, rf_filename=_rf_file)
    stopwatch.stop()

    console.blank()
    console.section('Output')
    for f in _files + ([_rf_file] if _rf_file else []):
        console.output_file(os.path.basename(f))
    console.blank()
    console.timing_table(stopwatch)
    console.status('Completed in {:.1f}s'.format(time() - total_time))
    console.blank()


def run(args):
    """Genotype table -> RF matrix -> linkage groups -> orders -> map."""
    opts = MapOptions(args)
    console = configure_logging(opts)
    _be = configure_backend(opts)
    lg.info('\n{}\n'.format(opts))
    total_time = time()
    stopwatch = Stopwatch()

    console.banner(opts.version)
    console.section('Input')
    console.item('Genotypes', os.path.basename(opts.genofile))
    console.item('Ploidy', opts.ploidy)
    console.item('Backend', backend.display_name(_be))
    console.blank()

    pg = Pergola(opts)

    stopwatch.start('Loading')
    stime = time()
    pg.load_genotypes(opts.genofile)
    console.status('Loading genotypes... done ({:,} markers, {:,} samples)'.format(
        pg.run_info['markers'], pg.run_info['samples']))
    if pg.run_info['missing_values']:
        console.verbose('{:,} missing genotype values'.format(pg.run_info['missing_values']))
    lg.info('Loaded genotypes in {}'.format(fmtmins(time() - stime)))

    stopwatch.start('Recombination')
    stime = time()
    pg.calc_rec(_be)
    _rec_elapsed = time() - stime
    lg.info('Computed RF matrix in {}'.format(fmtmins(_rec_elapsed)))
    console.status('Recombination frequencies... done ({:.1f}s)'.format(_rec_elapsed))

    os.makedirs(opts.outdir, exist_ok=True)
    _checkpoint = opts.outfile_path('checkpoint.npz')
    pg.save(_checkpoint)
    console.verbose('Checkpoint written to {}'.format(os.path.basename(_checkpoint)))

    finish(pg, opts, console, stopwatch, total_time)
    lg.info('pergola map complete (%s)' % fmtmins(time() - total_time))
