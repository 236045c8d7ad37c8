"""
Core classes and types for the Kipper build pipeline.
"""
from __future__ import annotations

import abc
import logging
import shutil
import typing as t
from pathlib import Path

from .pretty_utils import track_progress

if t.TYPE_CHECKING:
    from .config import SiteConfig
    from .content import ContentItem


T = t.TypeVar('T')
T2 = t.TypeVar('T2')
ContextDir = t.Literal['root_dir', 'input_dir', 'output_dir']

CONTEXT_DIR_KEYS: set[ContextDir] = {'root_dir', 'input_dir', 'output_dir'}
DEFAULT_INPUT_DIR = 'site'
DEFAULT_OUTPUT_DIR = '_site'
DEFAULT_INCLUDES_DIR = '_includes'

logger = logging.getLogger(__name__)


class InputBuildSettings(t.TypedDict, total=False):
    """
    TypedDict for defining build settings in a Kipper config file.
    """
    root_dir: Path
    input_dir: Path
    output_dir: Path
    includes_dir: str
    purge_dirs: bool


class BuildSettings(t.TypedDict):
    """
    TypedDict for processed build settings ready for passing to Context.
    """
    root_dir: Path
    input_dir: Path
    output_dir: Path
    includes_dir: str
    purge_dirs: bool


def make_settings(root_dir: Path,
                  input_dir: Path | None = None,
                  output_dir: Path | None = None,
                  includes_dir: str = DEFAULT_INCLUDES_DIR,
                  purge_dirs: bool = True):
    """
    Build a complete BuildSettings, placing the input and output directories
    inside @root_dir unless given explicitly.
    """
    return BuildSettings(
        root_dir=root_dir,
        input_dir=input_dir or root_dir / DEFAULT_INPUT_DIR,
        output_dir=output_dir or root_dir / DEFAULT_OUTPUT_DIR,
        includes_dir=includes_dir,
        purge_dirs=purge_dirs,
    )


def _rm_children(path: Path):
    if not path.exists():
        return
    for child in path.iterdir():
        if child.is_dir():
            shutil.rmtree(child)
        else:
            child.unlink()


class Context:
    """
    The host build engine: discovers inputs, loads content items and
    collections, and runs the Steps of the Rules produced by a SiteConfig.
    """
    def __init__(self, settings: BuildSettings, config: SiteConfig):
        self.settings = settings
        self.config = config
        self.items: dict[Path, ContentItem] = {}
        self.collections: dict[str, list[ContentItem]] = {}
        self.written: list[Path] = []
        self.rules: list[Rule] = []
        for rule in config.build_rules(settings):
            self.rules.append(rule)
            self.bind(rule.step)

    @t.overload
    def __getitem__(self, key: ContextDir) -> Path: ...
    @t.overload
    def __getitem__(self, key: t.Literal['includes_dir']) -> str: ...
    @t.overload
    def __getitem__(self, key: t.Literal['purge_dirs']) -> bool: ...
    def __getitem__(self, key):
        return self.settings[key]

    def bind(self, step: Step | None):
        """
        Bind a Step to this Context.
        """
        if step:
            step.bind(self)

    def find_inputs(self, path: Path):
        """
        Overridable function to get paths to process based on a given @path.
        Default behavior is to recursively search for files in sorted order,
        excluding the directories themselves.
        """
        if path.is_file():
            yield path
            return
        for candidate in sorted(path.iterdir()):
            if candidate.is_dir():
                yield from self.find_inputs(candidate)
            else:
                yield candidate

    def discover(self) -> list[Path]:
        """
        Find every input of a build: the input directory tree plus any
        passthrough copies living outside of it.
        """
        found = list(self.find_inputs(self['input_dir']))
        for copy in self.config.passthrough_copies:
            source = self['root_dir'] / copy
            if source.exists() and not source.is_relative_to(self['input_dir']):
                found.extend(self.find_inputs(source))
        return list(dict.fromkeys(found))

    def match_paths(self, input_paths: list[Path]):
        """
        Match a set of input paths against the Context's defined Rules, and
        associate them with the Steps of those Rules.
        """
        # We want to handle tasks in the order they're defined!
        tasks: dict[Step, list[tuple[Path, list[Path]]]]
        tasks = {r.step: [] for r in self.rules if r.step}

        for path in input_paths:
            for rule in self.rules:
                if match := rule.matcher(self, path):
                    # None halts further rule processing.
                    if not rule.step:
                        break
                    output_paths: list[Path] = []
                    for pathcalc in rule.path_calcs:
                        # None in the path calculators also halts further
                        # rule processing after this one.
                        if not pathcalc:
                            break
                        output_paths.append(pathcalc(self, path, match))
                    else:
                        tasks[rule.step].append((path, output_paths))
                        continue
                    tasks[rule.step].append((path, output_paths))
                    break

        return tasks

    def load_content(self, input_paths: list[Path], tasks: dict[Step, list[tuple[Path, list[Path]]]]):
        """
        Build ContentItems for every input handled by a content-rendering Step,
        in discovery order, then compute this build's collections from them.
        """
        from .content import ContentItem, build_collections

        outputs = {
            path: output_paths
            for step, paths in tasks.items() if step.renders_content
            for path, output_paths in paths
        }
        self.items = {}
        for path in input_paths:
            if not outputs.get(path):
                continue
            try:
                self.items[path] = ContentItem.load(self, path, outputs[path][0])
            except Exception as e:
                raise BuildError(path, outputs[path]) from e
        try:
            self.collections = build_collections(self.items.values(), self.config.collections)
        except Exception as e:
            raise BuildError(self['input_dir'], [], 'Failed to build collections') from e
        logger.debug('Loaded %d content items into %d collections',
                     len(self.items), len(self.collections))

    def process(self, input_paths: list[Path] | None = None):
        """
        Process a set of files using the Context's defined rules. If
        @input_paths is empty or None, `self.discover()` will be used to get a
        tree of files to process.
        """
        input_paths = input_paths or self.discover()

        tasks = self.match_paths(input_paths)
        self.load_content(input_paths, tasks)

        flattened: list[tuple[Step, Path, list[Path]]] = []
        for step, paths in tasks.items():
            flattened.extend((step, p, ops) for p, ops in paths)

        for step, path, output_paths in track_progress(flattened, 'Building...'):
            logger.debug('%s: %s -> %s', type(step).__name__, path,
                         ', '.join(str(p) for p in output_paths))
            try:
                step(path, output_paths)
            except Exception as e:
                raise BuildError(path, output_paths) from e
            self.written.extend(output_paths)

    def run(self, input_paths: list[Path] | None = None):
        """
        Check the input directory, purge the output directory if configured
        to, then call `self.process()` with @input_paths.
        """
        if not self['input_dir'].is_dir():
            raise BuildError(
                self['input_dir'], [],
                f'Input directory {self["input_dir"]} does not exist!'
            )
        if self['purge_dirs']:
            _rm_children(self['output_dir'])
        self.written = []
        self.process(input_paths)


class Matcher(t.Generic[T], abc.ABC):
    """
    Abstract base class for Path Matchers. Provides pre-baked ability to
    combine Matchers with | and &.
    """
    @abc.abstractmethod
    def __call__(self, context: Context, path: Path) -> T:
        ...

    def __or__(self, other: Matcher[T2]):
        return _OrMatcher(self, other)

    def __and__(self, other: Matcher[T2]):
        return _AndMatcher(self, other)


class _OrMatcher(Matcher[T | T2]):
    def __init__(self, left: Matcher[T], right: Matcher[T2]):
        self.left = left
        self.right = right

    def __call__(self, context: Context, path: Path):
        return self.left(context, path) or self.right(context, path)


class _AndMatcher(Matcher[T | T2]):
    def __init__(self, left: Matcher[T], right: Matcher[T2]):
        self.left = left
        self.right = right

    def __call__(self, context: Context, path: Path):
        return self.left(context, path) and self.right(context, path)


class PathCalc(t.Generic[T], abc.ABC):
    """
    Abstract base class for path calculators which use `Matcher` match data to
    determine output paths from input paths.
    """
    @abc.abstractmethod
    def __call__(self, context: Context, path: Path, match: T) -> Path:
        ...


class Rule(t.Generic[T]):
    """
    A single rule for Kipper file processing, with a matcher, output path
    calculators, and an optional Step to run.
    """
    def __init__(self,
                 matcher: Matcher[T],
                 path_calc: t.Sequence[PathCalc[T] | None] | PathCalc[T] | None,
                 step: Step | None = None):
        self.matcher = matcher
        self.step = step
        if not isinstance(path_calc, t.Sequence):
            path_calc = [path_calc]
        self.path_calcs = list(path_calc)


class Step(abc.ABC):
    """
    Abstract base class for Steps, the individual processing stages a Rule
    hands its matched paths to.
    """
    context: Context
    # Steps which render content get a ContentItem for each of their inputs.
    renders_content = False

    def bind(self, context: Context):
        """
        Bind this Step to a Context.
        """
        self.context = context

    @abc.abstractmethod
    def __call__(self, path: Path, output_paths: list[Path]) -> None:
        ...


class BuildError(Exception):
    """
    Exception raised when an input could not be built. The original error, if
    any, is available as `__cause__`.
    """
    def __init__(self, path: Path, output_paths: list[Path], message: str | None = None):
        self.path = path
        self.output_paths = output_paths
        super().__init__(message or f'Failed to build {path}')
