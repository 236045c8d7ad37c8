"""
Kipper's command line interface: loads a config, builds the site, and
optionally serves the result.
"""
from __future__ import annotations

import argparse
import importlib
import logging
import runpy
import sys
import typing as t
from pathlib import Path

from .config import SiteConfig
from .core import (
    DEFAULT_INCLUDES_DIR, BuildError, BuildSettings, Context, InputBuildSettings, make_settings,
)
from .pretty_utils import configure_logging, print_with_style

Configure = t.Callable[[SiteConfig], t.Any]

DEFAULT_CONFIG_MODULE = 'kipper.blog'
SETTINGS_KEYS = ('root_dir', 'input_dir', 'output_dir', 'includes_dir', 'purge_dirs')

logger = logging.getLogger(__name__)


def add_settings_arguments(parser: argparse.ArgumentParser):
    """
    Add build settings arguments to @parser. Every argument defaults to None
    so that values from a config file's SETTINGS can fill in the gaps.
    """
    parser.add_argument('-r', '--root',
                        help='project directory that passthrough copies and globs are relative to',
                        type=Path,
                        dest='root_dir')
    parser.add_argument('-i', '--input',
                        help='input directory with source files; defaults to ROOT/site',
                        type=Path,
                        dest='input_dir')
    parser.add_argument('-o', '--output',
                        help='output directory for built files; defaults to ROOT/_site',
                        type=Path,
                        dest='output_dir')
    parser.add_argument('--includes',
                        help=f'layout directory, relative to the input directory; defaults to {DEFAULT_INCLUDES_DIR}',
                        dest='includes_dir')
    parser.add_argument('--purge',
                        help='empty the output directory before building (default)',
                        action=argparse.BooleanOptionalAction,
                        dest='purge_dirs')


def to_build_settings(args: argparse.Namespace, settings: InputBuildSettings | None = None) -> BuildSettings:
    """
    Combine parsed arguments with an instance of InputBuildSettings into a
    Context-ready BuildSettings. Explicit arguments win over @settings, which
    win over the defaults.
    """
    merged: dict[str, t.Any] = dict(settings or {})
    merged.update({
        key: value for key in SETTINGS_KEYS
        if (value := getattr(args, key, None)) is not None
    })
    return make_settings(
        Path(merged.get('root_dir', '.')),
        input_dir=merged.get('input_dir'),
        output_dir=merged.get('output_dir'),
        includes_dir=merged.get('includes_dir', DEFAULT_INCLUDES_DIR),
        purge_dirs=merged.get('purge_dirs', True),
    )


def parse_settings_args(settings: InputBuildSettings | None = None, argv: list[str] | None = None, **kw):
    """
    Parse only build settings arguments from @argv, for project-specific
    scripts that supply their own configure function.
    """
    parser = argparse.ArgumentParser(**kw)
    add_settings_arguments(parser)
    return to_build_settings(parser.parse_args(argv), settings)


def load_config(configure: Configure) -> SiteConfig:
    """
    Create a SiteConfig and let @configure register everything into it.
    """
    config = SiteConfig()
    configure(config)
    return config


def run_from_config(settings: BuildSettings, configure: Configure, context_cls: t.Type[Context] = Context):
    """
    Build a new Context from settings and a configure function, then execute
    a build using it.
    """
    context = context_cls(settings, load_config(configure))
    context.run()
    return context


def main(arguments: list[str] | None = None):
    """
    Kipper main function. Loads a config file or module exposing
    `configure(config)`, falling back to the built-in blog configuration,
    then builds the site described by it and the command line arguments.
    """
    parser = argparse.ArgumentParser(description='Build a Kipper site.')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('-m',
                       help='import path of a config module to build',
                       type=importlib.import_module,
                       dest='module',
                       default=None)
    group.add_argument('config_file',
                       nargs='?',
                       help='file path to a config file to build',
                       type=Path,
                       default=None)
    parser.add_argument('-v', '--verbose',
                        help='show debug logging',
                        action='store_true')
    parser.add_argument('-s', '--serve',
                        help='serve the output directory over HTTP after building',
                        action='store_true')
    parser.add_argument('-p', '--port',
                        help='port to serve from',
                        type=int,
                        default=8080)
    add_settings_arguments(parser)

    args = parser.parse_args(arguments)
    configure_logging(args.verbose)

    if args.config_file:
        label = str(args.config_file)
        namespace = runpy.run_path(label)
        configure: Configure | None = namespace.get('configure')
        settings: InputBuildSettings | None = namespace.get('SETTINGS')
    else:
        module = args.module or importlib.import_module(DEFAULT_CONFIG_MODULE)
        label = f'-m {module.__name__}'
        configure = getattr(module, 'configure', None)
        settings = getattr(module, 'SETTINGS', None)

    if not callable(configure):
        print_with_style(
            'Kipper config files must have a configure() function!',
            file='stderr',
            style='red'
        )
        sys.exit(1)

    logger.debug('Using configuration from %s', label)
    build_settings = to_build_settings(args, settings)
    try:
        context = run_from_config(build_settings, configure)
    except BuildError as e:
        print_with_style(str(e), file='stderr', style='red')
        if e.__cause__:
            print_with_style(f'{type(e.__cause__).__name__}: {e.__cause__}', file='stderr', style='red')
        sys.exit(1)

    print_with_style(
        f'Wrote {len(context.written)} files to {build_settings["output_dir"]}',
        style='green'
    )

    if args.serve:
        from .server import serve
        serve(args.port, build_settings['output_dir'])
