# This file is part of Pergola.
# Licensed under MIT License.

"""Tests for the command line interface."""

import argparse
import logging
import os

import pandas as pd
import pytest

import pergola
from pergola.__main__ import generate_test_command
from pergola.cli import REPORTING_OPTS, SubcommandOptions, configure_logging
from pergola.cli import build as cli_build
from pergola.cli import resume as cli_resume
from pergola.cli.console import Console, Stopwatch

DATA = os.path.join(os.path.dirname(pergola.__file__), 'data', 'sim_tetra.tsv')


def _parse(options_cls, argv):
    parser = argparse.ArgumentParser()
    options_cls.add_arguments(parser)
    args = parser.parse_args(argv)
    args.version = 'test'
    return args


@pytest.fixture
def map_run(tmp_path):
    args = _parse(cli_build.MapOptions, [
        DATA, '--ploidy', '4', '--ignore_columns', '8', '--n_groups', '7',
        '--outdir', str(tmp_path), '--backend', 'cpu_stock', '--write_rf', '--quiet',
    ])
    cli_build.run(args)
    return tmp_path


class TestMapCommand:
    def test_writes_reports(self, map_run):
        for suffix in ('groups.tsv', 'order.tsv', 'map.tsv', 'rf.tsv', 'checkpoint.npz'):
            assert (map_run / 'pergola-{}'.format(suffix)).exists()

    def test_group_count(self, map_run):
        groups = pd.read_csv(map_run / 'pergola-groups.tsv', sep='\t', skiprows=1)
        assert len(groups) == 70
        assert groups['group'].nunique() == 7

    def test_order_covers_markers(self, map_run):
        order = pd.read_csv(map_run / 'pergola-order.tsv', sep='\t')
        assert sorted(order['marker']) == sorted(
            pd.read_csv(DATA, sep='\t', index_col=0).index)

    def test_requires_one_cut_criterion(self, tmp_path):
        args = _parse(cli_build.MapOptions, [DATA, '--outdir', str(tmp_path)])
        with pytest.raises(SystemExit):
            cli_build.MapOptions(args)

    def test_options_str(self):
        opts = cli_build.MapOptions(_parse(cli_build.MapOptions, [DATA, '--threshold', '0.2']))
        text = str(opts)
        assert 'Grouping Options' in text
        assert 'threshold:' in text

    def test_outfile_path(self, tmp_path):
        opts = cli_build.MapOptions(_parse(cli_build.MapOptions, [
            DATA, '--n_groups', '2', '--outdir', str(tmp_path), '--exp_tag', 'run1']))
        assert opts.outfile_path('map.tsv') == os.path.join(str(tmp_path), 'run1-map.tsv')


class TestOptions:
    def test_shared_groups_merged(self):
        _, groups = cli_build.MapOptions._parse_yaml_opts(cli_build.MapOptions.OPTS)
        assert list(groups['Reporting Options'])[-2:] == ['exp_tag', 'write_rf']
        assert 'window' in groups['Ordering Options']

    def test_resume_shares_grouping(self):
        _, resume = cli_resume.ResumeOptions._parse_yaml_opts(cli_resume.ResumeOptions.OPTS)
        _, build = cli_build.MapOptions._parse_yaml_opts(cli_build.MapOptions.OPTS)
        assert resume['Grouping Options'] == build['Grouping Options']
        assert 'write_rf' not in resume['Reporting Options']

    def test_duplicate_option_rejected(self):
        opts = REPORTING_OPTS + REPORTING_OPTS
        with pytest.raises(ValueError):
            SubcommandOptions._parse_yaml_opts(opts)

    @pytest.mark.parametrize('flags, console_level, log_level', [
        ([], Console.NORMAL, logging.WARNING),
        (['--quiet'], Console.QUIET, logging.WARNING),
        (['--verbose'], Console.VERBOSE, logging.INFO),
        (['--debug'], Console.DEBUG, logging.DEBUG),
    ])
    def test_configure_logging(self, flags, console_level, log_level):
        opts = cli_build.MapOptions(_parse(cli_build.MapOptions, [DATA, '--n_groups', '2'] + flags))
        console = configure_logging(opts)
        assert console.level == console_level
        assert logging.getLogger().level == log_level

    def test_verbose_run_lists_groups(self, tmp_path, capsys):
        args = _parse(cli_build.MapOptions, [
            DATA, '--ploidy', '4', '--ignore_columns', '8', '--n_groups', '7',
            '--outdir', str(tmp_path), '--backend', 'cpu_stock', '--verbose',
        ])
        cli_build.run(args)
        out = capsys.readouterr().out
        assert 'Linkage groups' in out
        assert 'Length cM' in out
        assert out.count(' .. ') == 7


class TestResumeCommand:
    def test_regroup_from_checkpoint(self, map_run):
        args = _parse(cli_resume.ResumeOptions, [
            str(map_run / 'pergola-checkpoint.npz'), '--n_groups', '3',
            '--outdir', str(map_run), '--exp_tag', 'again', '--quiet',
        ])
        cli_resume.run(args)
        groups = pd.read_csv(map_run / 'again-groups.tsv', sep='\t', skiprows=1)
        assert groups['group'].nunique() == 3
        assert (map_run / 'again-map.tsv').exists()
        assert not (map_run / 'again-rf.tsv').exists()


class TestConsole:
    def test_banner(self, capsys):
        Console().banner('1.2.3')
        assert 'Pergola v1.2.3' in capsys.readouterr().out

    def test_quiet(self, capsys):
        Console(level=Console.QUIET).status('hidden')
        assert capsys.readouterr().out == ''

    def test_timing_table(self, capsys):
        sw = Stopwatch()
        sw.start('Loading')
        sw.start('Ordering')
        sw.stop()
        Console().timing_table(sw)
        out = capsys.readouterr().out
        assert 'Loading' in out
        assert 'Total' in out

    def test_stopwatch_stages(self):
        sw = Stopwatch()
        sw.start('Loading')
        sw.start('Ordering')
        sw.stop()
        assert [name for name, _ in sw.timings] == ['Loading', 'Ordering']

    def test_group_table(self, capsys):
        rows = [(1, 10, 0.1234, 21.5, 'm01', 'm10')]
        Console().group_table(rows)
        out = capsys.readouterr().out
        assert '0.1234' in out
        assert '21.50' in out
        assert 'm01 .. m10' not in out

    def test_group_table_verbose(self, capsys):
        rows = [(1, 10, 0.1234, 21.5, 'm01', 'm10')]
        Console(level=Console.VERBOSE).group_table(rows)
        assert 'm01 .. m10' in capsys.readouterr().out

    def test_group_table_quiet(self, capsys):
        Console(level=Console.QUIET).group_table([(1, 2, 0.1, 1.0, 'a', 'b')])
        assert capsys.readouterr().out == ''


def test_generate_test_command(capsys):
    generate_test_command(None)
    out = capsys.readouterr().out
    assert out.startswith('pergola map ')
    assert '--n_groups 7' in out
