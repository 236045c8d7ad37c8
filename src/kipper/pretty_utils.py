"""
Internal utilities for progress bars, pretty printing, and log output.
"""
import logging
import sys
import typing as t

import rich.console
import rich.progress
from rich.logging import RichHandler


T = t.TypeVar('T')

_consoles = {
    'stdout': rich.console.Console(file=sys.stdout),
    'stderr': rich.console.Console(file=sys.stderr),
}


def track_progress(iterable: t.Iterable[T], desc: str) -> t.Iterable[T]:
    """
    Progress tracker showing a rich progress bar on stdout.
    """
    yield from rich.progress.track(iterable, desc, console=_consoles['stdout'])


def print_with_style(*args, sep=' ', end='\n', file: str = 'stdout', style=None):
    """
    print() replacement writing to a rich console with an optional style.
    """
    _consoles[file].print(*args, sep=sep, end=end, style=style)


def configure_logging(verbose: bool = False):
    """
    Route log records through a rich handler on stderr. @verbose enables
    debug output.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(message)s',
        datefmt='[%X]',
        handlers=[RichHandler(console=_consoles['stderr'], show_path=False)],
    )
