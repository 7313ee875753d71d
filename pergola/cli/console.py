# -*- coding: utf-8 -*-

# This file is part of Pergola.
# Licensed under MIT License.

"""Human-readable progress output for the Pergola CLI.

Logging goes to stderr (or ``--logfile``); the Console writes the stage
progress, the linkage group table and the timing summary to stdout.
"""

import sys
from time import perf_counter


class Stopwatch:
    """Wall-clock time of consecutive pipeline stages."""

    def __init__(self):
        self._timings = []        # [(stage, elapsed)]
        self._start = None
        self._active = None       # (stage, started)

    def start(self, name):
        """Close the running stage, if any, and start timing *name*."""
        now = perf_counter()
        self.stop(now)
        self._active = (name, now)
        if self._start is None:
            self._start = now

    def stop(self, now=None):
        """Close the running stage."""
        if self._active:
            now = perf_counter() if now is None else now
            self._timings.append((self._active[0], now - self._active[1]))
            self._active = None

    @property
    def total(self):
        return perf_counter() - self._start if self._start else 0.0

    @property
    def timings(self):
        return list(self._timings)


class Console:
    """Stdout writer with quiet / normal / verbose / debug levels."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3

    def __init__(self, level=NORMAL, stream=None):
        self.level = level
        self.stream = stream or sys.stdout
        self._use_color = hasattr(self.stream, 'isatty') and self.stream.isatty()

    def banner(self, version):
        """Print the program name and version."""
        if self.level < self.NORMAL:
            return
        name = '\033[1mPergola v{}\033[0m' if self._use_color else 'Pergola v{}'
        self._write('')
        self._write((name + ' -- Polyploid Marker Ordering').format(version))
        self._write('')

    def section(self, title):
        """Print a section header."""
        if self.level < self.NORMAL:
            return
        self._write('  {}'.format(title))

    def item(self, label, value):
        """Print a ``label: value`` line of the input summary."""
        if self.level < self.NORMAL:
            return
        self._write('    {:<14}{}'.format(label + ':', value))

    def status(self, message):
        """Print a stage completion message."""
        if self.level < self.NORMAL:
            return
        self._write('  {}'.format(message))

    def detail(self, message):
        """Print an indented line under the current section."""
        if self.level < self.NORMAL:
            return
        self._write('    {}'.format(message))

    def verbose(self, message):
        """Print an indented line in verbose or debug mode only."""
        if self.level < self.VERBOSE:
            return
        self._write('      {}'.format(message))

    def group_table(self, rows):
        """Print one line per linkage group.

        Args:
            rows: Iterable of ``(group, n_markers, sarf, length_cm, first,
                last)``. The end markers are shown in verbose mode.
        """
        self.detail('{:>5}  {:>7}  {:>8}  {:>10}'.format('Group', 'Markers', 'SARF', 'Length cM'))
        for group, n_markers, sarf, length, first, last in rows:
            self.detail('{:>5}  {:>7}  {:>8.4f}  {:>10.2f}'.format(group, n_markers, sarf, length))
            self.verbose('{} .. {}'.format(first, last))

    def output_file(self, path):
        """Print an output file name."""
        if self.level < self.NORMAL:
            return
        self._write('    {}'.format(path))

    def blank(self):
        """Print an empty line."""
        if self.level < self.NORMAL:
            return
        self._write('')

    def timing_table(self, stopwatch):
        """Print stage durations and their share of the total."""
        if self.level < self.NORMAL or not stopwatch.timings:
            return
        total = stopwatch.total
        self.section('Timing')
        for name, elapsed in stopwatch.timings:
            share = elapsed / total * 100 if total > 0 else 0.0
            self._write('    {:<18}{:>6.1f}s{:>6.0f}%'.format(name, elapsed, share))
        self._write('    ' + '-' * 31)
        self._write('    {:<18}{:>6.1f}s'.format('Total', total))

    def _write(self, text):
        print(text, file=self.stream)
