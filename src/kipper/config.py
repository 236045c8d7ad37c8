"""
The registration API config files use to describe a site: transforms,
filters, collections, passthrough copies, and template formats.
"""
from __future__ import annotations

import logging
import re
import typing as t
from pathlib import Path, PurePosixPath

from .core import BuildSettings, Rule
from .jinja import JinjaPageStep, MarkdownRenderStep
from .paths import OutputDirPathCalc, PagePathCalc, REMatcher
from .simple import DirectCopyStep

if t.TYPE_CHECKING:
    from .content import CollectionFunc


Transform = t.Callable[[str, Path], str]
Filter = t.Callable[..., t.Any]

MARKDOWN_FORMAT = 'md'
TEMPLATE_FORMAT = 'jinja'
DEFAULT_TEMPLATE_FORMATS = (MARKDOWN_FORMAT, TEMPLATE_FORMAT)

logger = logging.getLogger(__name__)


class SiteConfig:
    """
    Collects the callbacks and declarations a config file registers, and
    turns them into the Rules the build engine runs.
    """
    def __init__(self):
        self.transforms: dict[str, Transform] = {}
        self.filters: dict[str, Filter] = {}
        self.collections: dict[str, CollectionFunc] = {}
        self.passthrough_copies: list[str] = []
        self.template_formats: list[str] = list(DEFAULT_TEMPLATE_FORMATS)

    def _register(self, registry: dict[str, t.Any], kind: str, name: str, func: t.Callable):
        if not callable(func):
            raise TypeError(f'{kind.capitalize()} {name!r} must be callable, not {type(func).__name__}!')
        if name in registry:
            logger.debug('Replacing %s %r', kind, name)
        registry[name] = func

    def add_transform(self, name: str, func: Transform):
        """
        Register a transform, called as `func(content, output_path)` on every
        rendered artifact before it is written. Transforms run in
        registration order.
        """
        self._register(self.transforms, 'transform', name, func)

    def add_filter(self, name: str, func: Filter):
        """
        Register a Jinja filter available to every template as @name.
        """
        self._register(self.filters, 'filter', name, func)

    def add_collection(self, name: str, func: CollectionFunc):
        """
        Register a collection, computed each build as `func(collection_api)`
        and exposed to templates as `collections[name]`.
        """
        self._register(self.collections, 'collection', name, func)

    def add_passthrough_copy(self, path: str | PurePosixPath):
        """
        Declare a project-relative file or directory to be copied verbatim to
        the output directory.
        """
        normalized = PurePosixPath(path).as_posix()
        if normalized not in self.passthrough_copies:
            self.passthrough_copies.append(normalized)

    def set_template_formats(self, formats: str | t.Iterable[str]):
        """
        Restrict processing to files with the given extensions. `md` and
        `jinja` are rendered; any other format is copied through untouched.
        Accepts an iterable or a comma-separated string.
        """
        if isinstance(formats, str):
            formats = formats.split(',')
        self.template_formats = list(dict.fromkeys(
            cleaned for fmt in formats if (cleaned := fmt.strip().lstrip('.').lower())
        ))

    def apply_transforms(self, content: str, output_path: Path) -> str:
        """
        Run @content through every registered transform.
        """
        for name, transform in self.transforms.items():
            logger.debug('Applying transform %r to %s', name, output_path)
            content = transform(content, output_path)
        return content

    def build_rules(self, settings: BuildSettings) -> list[Rule]:
        """
        Produce the ordered Rules for a build. The first matching Rule wins.
        """
        rules: list[Rule] = [
            Rule(
                REMatcher(rf'{re.escape(copy)}(/.*)?$', parent_dir='root_dir'),
                [OutputDirPathCalc(), None],
                DirectCopyStep()
            )
            for copy in self.passthrough_copies
        ]
        # Ignore dotfiles and layouts.
        rules.append(Rule(
            (
                REMatcher(r'(.*/)*\..*', parent_dir='input_dir')
                | REMatcher(rf'{re.escape(settings["includes_dir"])}/.*', parent_dir='input_dir')
            ),
            None
        ))

        copy_step = DirectCopyStep()
        for fmt in self.template_formats:
            matcher = REMatcher(rf'.*\.{re.escape(fmt)}$', re.IGNORECASE, parent_dir='input_dir')
            if fmt == MARKDOWN_FORMAT:
                rules.append(Rule(matcher, [PagePathCalc(), None], MarkdownRenderStep()))
            elif fmt == TEMPLATE_FORMAT:
                rules.append(Rule(matcher, [PagePathCalc(keep_inner_ext=True), None], JinjaPageStep()))
            else:
                rules.append(Rule(matcher, [OutputDirPathCalc(), None], copy_step))
        return rules
