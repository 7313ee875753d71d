# This file is part of Pergola.
# Licensed under MIT License.

"""Report generation for Pergola.

Functions accept individual data pieces rather than full Pergola objects,
so they can be called on results computed outside the pipeline.
"""

import logging as lg

import pandas as pd


def _write_tsv(df, filename, run_info=None, index=False):
    with open(filename, 'w') as outh:
        if run_info is not None:
            _comment = ['## RunInfo']
            _comment += ['{}:{}'.format(*tup) for tup in run_info.items()]
            outh.write('\t'.join(_comment) + '\n')
        df.to_csv(outh, sep='\t', index=index)
    lg.info('Wrote {}'.format(filename))


def orders_table(orders):
    """Long table of ``group``, ``rank`` and ``marker`` for every ordered marker."""
    rows = []
    for group in sorted(orders):
        for rank, marker in enumerate(orders[group].markers, start=1):
            rows.append((group, rank, marker))
    return pd.DataFrame(rows, columns=['group', 'rank', 'marker'])


def output_report(run_info, groups, orders, genetic_map,
                  groups_filename, order_filename, map_filename,
                  rf=None, rf_filename=None):
    """Generate TSV reports.

    Args:
        run_info: OrderedDict of run statistics, written as a comment header
        groups: Series marker -> group id
        orders: dict {group: GroupOrder}
        genetic_map: DataFrame from pull_map()
        groups_filename: Path for the group assignment TSV
        order_filename: Path for the marker order TSV
        map_filename: Path for the genetic map TSV
        rf: Optional RF matrix DataFrame, written to rf_filename
        rf_filename: Path for the RF matrix TSV
    """
    _groups = groups.rename_axis('marker').reset_index()
    _write_tsv(_groups, groups_filename, run_info)
    _write_tsv(orders_table(orders), order_filename)
    _write_tsv(genetic_map.round({'position': 4}), map_filename)
    if rf is not None and rf_filename is not None:
        _write_tsv(rf.round(6), rf_filename, index=True)
