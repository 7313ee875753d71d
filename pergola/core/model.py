# This file is part of Pergola.
# Licensed under MIT License.

"""Pergola pipeline: genotype loading, RF matrix, grouping and ordering.

Map construction is in mapping.py.
Report generation helpers are in reporter.py.
"""

import logging as lg
from collections import OrderedDict

import numpy as np
import pandas as pd

from ..errors import InvalidInputError
from .genotypes import encode_genotypes
from .grouping import UNASSIGNED, split_chr
from .mapping import pull_map
from .ordering import sort_leafs
from .recombination import calc_rec
from .reporter import output_report as _output_report_func


def _str2num(s):
    for conv in (int, float):
        try:
            return conv(s)
        except ValueError:
            pass
    return s


class Pergola:
    """Marker ordering pipeline for one genotype table."""

    def __init__(self, opts):

        self.opts = opts  # Command line options
        self.run_info = OrderedDict()  # Information about the run
        self.genotypes = None  # Encoded dosages, markers x samples
        self.rf = None  # Recombination frequency matrix
        self.groups = None  # Series marker -> group
        self.orders = None  # {group: GroupOrder}
        self.genetic_map = None

        self.run_info['version'] = getattr(self.opts, 'version', None)
        self.run_info['ploidy'] = self.opts.ploidy

    def load_genotypes(self, filename):
        """Read a tab-separated allele table (first column = marker names)."""
        raw = pd.read_csv(filename, sep='\t', index_col=0)
        lg.info('Read {} markers x {} columns from {}'.format(raw.shape[0], raw.shape[1], filename))
        if raw.index.has_duplicates:
            raise InvalidInputError('Marker names in {} are not unique'.format(filename))
        self.genotypes = encode_genotypes(
            raw,
            self.opts.ploidy,
            ignore_columns=getattr(self.opts, 'ignore_columns', 0),
            allele=getattr(self.opts, 'allele', None),
        )
        _n_missing = int(self.genotypes.isna().to_numpy().sum())
        self.run_info['markers'] = self.genotypes.shape[0]
        self.run_info['samples'] = self.genotypes.shape[1]
        self.run_info['missing_values'] = _n_missing
        return self.genotypes

    def calc_rec(self, backend=None):
        self.rf = calc_rec(
            self.genotypes,
            self.opts.ploidy,
            cap=getattr(self.opts, 'cap', 0.5),
            allow_repulsion=not getattr(self.opts, 'coupling_only', False),
            ncpu=getattr(self.opts, 'ncpu', 1),
            backend=backend,
        )
        return self.rf

    def split(self):
        self.groups = split_chr(
            self.rf,
            n_groups=getattr(self.opts, 'n_groups', None),
            threshold=getattr(self.opts, 'threshold', None),
            method=self.opts.linkage,
            isolation=getattr(self.opts, 'isolation', None),
            duplicates=getattr(self.opts, 'duplicates', None),
        )
        self.run_info['groups'] = int(len(set(self.groups.to_numpy()) - {UNASSIGNED}))
        self.run_info['unassigned'] = int(np.sum(self.groups.to_numpy() == UNASSIGNED))
        return self.groups

    def order(self):
        self.orders = sort_leafs(
            self.rf,
            self.groups,
            method=self.opts.linkage,
            window=self.opts.window,
            ncpu=getattr(self.opts, 'ncpu', 1),
        )
        self.run_info['total_sarf'] = round(sum(go.sarf for go in self.orders.values()), 6)
        return self.orders

    def build_map(self):
        self.genetic_map = pull_map(self.orders, fun=self.opts.mapping_function)
        return self.genetic_map

    def save(self, filename):
        np.savez(
            filename,
            _run_info=np.array([(k, str(v)) for k, v in self.run_info.items()], dtype=str),
            _markers=np.array([str(m) for m in self.rf.index], dtype=str),
            _rf=self.rf.to_numpy(),
        )

    @classmethod
    def load(cls, filename, opts=None):
        loader = np.load(filename)
        obj = cls.__new__(cls)
        obj.opts = opts
        obj.run_info = OrderedDict()
        for r in range(loader['_run_info'].shape[0]):
            k = loader['_run_info'][r, 0]
            obj.run_info[k] = _str2num(loader['_run_info'][r, 1])
        markers = [str(m) for m in loader['_markers']]
        _rf = loader['_rf']
        assert _rf.shape == (len(markers), len(markers))
        obj.rf = pd.DataFrame(_rf, index=markers, columns=markers)
        obj.genotypes = None
        obj.groups = None
        obj.orders = None
        obj.genetic_map = None
        return obj

    def output_report(self, groups_filename, order_filename, map_filename, rf_filename=None):
        """Write TSV reports. Delegates to reporter.output_report()."""
        return _output_report_func(
            self.run_info,
            self.groups,
            self.orders,
            self.genetic_map,
            groups_filename,
            order_filename,
            map_filename,
            rf=self.rf if rf_filename else None,
            rf_filename=rf_filename,
        )

    def print_summary(self, loglev=lg.WARNING):
        _d = dict(self.run_info)
        lg.log(loglev, 'Run Summary:')
        lg.log(loglev, '    {} markers, {} samples (ploidy {}).'.format(
            _d.get('markers', len(self.rf) if self.rf is not None else 0),
            _d.get('samples', '?'), _d.get('ploidy', '?')))
        lg.log(loglev, '        {} missing genotype values.'.format(_d.get('missing_values', 0)))
        lg.log(loglev, '--')
        lg.log(loglev, '    {} linkage groups.'.format(_d.get('groups', 0)))
        lg.log(loglev, '        {} markers unassigned.'.format(_d.get('unassigned', 0)))
        if self.orders:
            for g, go in self.orders.items():
                lg.log(loglev, '        group {}: {} markers, SARF {:.4f}'.format(g, len(go.markers), go.sarf))
        lg.log(loglev, '\n')

    def __str__(self):
        if hasattr(self.opts, 'genofile'):
            return f'<Pergola genofile={self.opts.genofile}, ploidy={self.opts.ploidy}>'
        elif hasattr(self.opts, 'checkpoint'):
            return f'<Pergola checkpoint={self.opts.checkpoint}>'
        else:
            return '<Pergola>'
