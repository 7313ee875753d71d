# This file is part of Pergola.
# Licensed under MIT License.

"""Command line plumbing shared by the Pergola subcommands.

Options are declared as YAML lists of argument groups. The fragments below
are shared by ``map`` and ``resume``; a subcommand concatenates the ones it
needs, and groups that appear more than once are merged in order.
"""

import argparse
import logging
from collections import OrderedDict

import yaml

from .console import Console

# Safe type lookup for YAML-defined CLI options
_SAFE_TYPES = {
    'int': int,
    'float': float,
    'str': str,
    "argparse.FileType('w')": argparse.FileType('w'),
}

REPORTING_OPTS = """
- Reporting Options:
    - quiet:
        action: store_true
        help: Silence (most) output.
    - verbose:
        action: store_true
        help: Show detailed progress, including the end markers of every group.
    - debug:
        action: store_true
        help: Print debug messages.
    - logfile:
        type: argparse.FileType('w')
        help: Log output to this file.
    - outdir:
        default: .
        help: Output directory.
    - exp_tag:
        default: pergola
        help: Prefix of every output file.
"""

GROUPING_OPTS = """
- Grouping Options:
    - n_groups:
        type: int
        help: Number of linkage groups (chromosomes) to split into.
    - threshold:
        type: float
        help: Alternatively, cut the clustering tree at this height.
    - linkage:
        default: average
        choices:
            - average
            - complete
            - single
            - weighted
            - ward
        help: Hierarchical clustering linkage criterion, used for both
              grouping and ordering.
    - isolation:
        type: float
        help: Unassign markers whose RF to every other member of their
              group exceeds this value.
    - duplicates:
        type: float
        help: Unassign markers within this RF of an earlier member of the
              same group.
"""

ORDERING_OPTS = """
- Ordering Options:
    - window:
        type: int
        default: 2
        help: SARF window used to break ties between orders with equal
              sum of adjacent recombination frequencies.
    - mapping_function:
        default: haldane
        choices:
            - haldane
            - kosambi
            - none
        help: Function converting recombination frequencies to cM.
"""


class SubcommandOptions:
    """Attribute bag built from parsed arguments, described by ``OPTS``."""

    OPTS = REPORTING_OPTS

    def __init__(self, args):
        self.opt_names, self.opt_groups = self._parse_yaml_opts(self.OPTS)
        for k, v in vars(args).items():
            setattr(self, k, v)

    @classmethod
    def add_arguments(cls, parser):
        _, opt_groups = cls._parse_yaml_opts(cls.OPTS)
        for group_name, args in opt_groups.items():
            argparse_grp = parser.add_argument_group(group_name, '')
            for arg_name, arg_d in args.items():
                _d = dict(arg_d)
                if _d.pop('positional', False):
                    _arg_name = arg_name
                else:
                    _arg_name = f'--{arg_name}'

                if 'type' in _d:
                    _type_str = _d['type']
                    if _type_str not in _SAFE_TYPES:
                        raise ValueError(
                            f"Unsupported type '{_type_str}' in CLI option '{arg_name}'. "
                            f'Allowed: {list(_SAFE_TYPES.keys())}'
                        )
                    _d['type'] = _SAFE_TYPES[_type_str]

                argparse_grp.add_argument(_arg_name, **_d)

    @staticmethod
    def _parse_yaml_opts(opts_yaml):
        """Return ``(names, groups)``; repeated group names are merged."""
        _opt_names = []
        _opt_groups = OrderedDict()
        for grp in yaml.load(opts_yaml, Loader=yaml.SafeLoader):
            grp_name, args = list(grp.items())[0]
            _group = _opt_groups.setdefault(grp_name, OrderedDict())
            for arg in args:
                arg_name, d = list(arg.items())[0]
                if arg_name in _group:
                    raise ValueError(f"CLI option '{arg_name}' declared twice in '{grp_name}'")
                _group[arg_name] = d
                _opt_names.append(arg_name)
        return _opt_names, _opt_groups

    def __str__(self):
        ret = []
        if hasattr(self, 'version'):
            ret.append('{:34}{}'.format('Version:', self.version))
        for group_name, args in self.opt_groups.items():
            ret.append(f'{group_name}')
            for arg_name in args:
                v = getattr(self, arg_name, 'Not set')
                v = v.name if hasattr(v, 'name') else v
                ret.append('    {:30}{}'.format(arg_name + ':', v))
        return '\n'.join(ret)


_LOG_FMT = '%(asctime)s %(levelname)-8s %(message)s'
_DEBUG_FMT = '%(asctime)s %(levelname)-8s %(message)-60s (%(funcName)s in %(filename)s:%(lineno)d)'

# flag -> (console level, logging level, log format); first set flag wins
_VERBOSITY = OrderedDict([
    ('quiet', (Console.QUIET, logging.WARNING, _LOG_FMT)),
    ('debug', (Console.DEBUG, logging.DEBUG, _DEBUG_FMT)),
    ('verbose', (Console.VERBOSE, logging.INFO, _LOG_FMT)),
])


def configure_logging(opts):
    """Configure logging and create the Console for progress output.

    Logging goes to ``opts.logfile`` (stderr by default) at WARNING unless
    ``--verbose`` or ``--debug`` is given. ``--quiet`` silences the console
    but keeps warnings.

    Returns:
        Console instance writing to stdout.
    """
    console_level, loglev, logfmt = Console.NORMAL, logging.WARNING, _LOG_FMT
    for flag, levels in _VERBOSITY.items():
        if getattr(opts, flag, False):
            console_level, loglev, logfmt = levels
            break

    logging.basicConfig(level=loglev, format=logfmt, datefmt='%Y-%m-%d %H:%M:%S',
                        stream=getattr(opts, 'logfile', None), force=True)
    return Console(level=console_level)
