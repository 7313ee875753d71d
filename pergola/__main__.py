#! /usr/bin/env python
# -*- coding: utf-8 -*-

# This file is part of Pergola.
# Licensed under MIT License.

""" Main functionality of Pergola

"""
import sys
import os
import argparse
import errno

from pergola import __version__
from .cli import build as cli_build
from .cli import resume as cli_resume


USAGE = ''' %(prog)s <command> [<args>]

The most commonly used commands are:
   map            Order markers into linkage groups and build a genetic map
   resume         Re-group and re-order markers from a checkpoint file
   test           Generate a command line for testing

'''

def generate_test_command(args):
    _base = os.path.dirname(os.path.abspath(__file__))
    _genopath = os.path.join(_base, 'data', 'sim_tetra.tsv')
    if not os.path.exists(_genopath):
        raise FileNotFoundError(
            errno.ENOENT, os.strerror(errno.ENOENT), _genopath
        )
    print('pergola map %s --ploidy 4 --ignore_columns 8 --n_groups 7' % _genopath, file=sys.stdout)

def main():
    if len(sys.argv) == 1:
        empty_parser = argparse.ArgumentParser(
            description='Deterministic marker ordering for polyploids',
            usage=USAGE,
        )
        empty_parser.print_help(sys.stderr)
        sys.exit(1)

    parser = argparse.ArgumentParser(
        description='Deterministic marker ordering for polyploids',
    )
    parser.add_argument('--version',
        action='version',
        version=__version__,
        default=__version__,
    )

    subparser = parser.add_subparsers(help='Sub-command help', dest='subcommand')

    ''' Parser for map '''
    map_parser = subparser.add_parser('map',
        description='''Order markers into linkage groups and build a genetic map''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_build.MapOptions.add_arguments(map_parser)
    map_parser.set_defaults(func=cli_build.run)

    ''' Parser for resume '''
    resume_parser = subparser.add_parser('resume',
        description='''Re-group and re-order markers from a checkpoint file''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_resume.ResumeOptions.add_arguments(resume_parser)
    resume_parser.set_defaults(func=cli_resume.run)

    ''' Parser for test '''
    test_parser = subparser.add_parser('test',
        description='''Print a test command''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    test_parser.set_defaults(func=generate_test_command)

    args = parser.parse_args()
    args.func(args)

if __name__ == '__main__':
    main()
