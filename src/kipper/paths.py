"""
Practical implementations of Matchers and PathCalcs.
"""
import fnmatch
import re
import typing as t
from pathlib import Path, PurePosixPath

from .core import Context, ContextDir, Matcher, PathCalc


T = t.TypeVar('T')


def glob_match(path: str | PurePosixPath, pattern: str) -> bool:
    """
    Check whether a posix-style relative @path matches the glob @pattern in
    full. Matching happens segment by segment, so `*` never crosses a `/`.
    """
    path_parts = PurePosixPath(path).parts
    pattern_parts = PurePosixPath(pattern).parts
    return len(path_parts) == len(pattern_parts) and all(
        fnmatch.fnmatchcase(part, glob) for part, glob in zip(path_parts, pattern_parts)
    )


def relative_source(context: Context, path: Path) -> Path:
    """
    Return @path relative to the input directory, or to the project root for
    paths living outside of the input directory.
    """
    if path.is_relative_to(context['input_dir']):
        return path.relative_to(context['input_dir'])
    return path.relative_to(context['root_dir'])


class OutputDirPathCalc(PathCalc[T]):
    """
    PathCalc which mirrors its input paths into the Context's output
    directory. Inputs are placed relative to the input directory, or to the
    project root if they live outside of it. If @ext is specified, it will
    replace the extension of input paths.
    """
    def __init__(self, ext: str | None = None):
        self.ext = ext

    def __call__(self, context: Context, path: Path, match: T) -> Path:
        new_path = context['output_dir'] / relative_source(context, path)
        if self.ext is not None:
            new_path = new_path.with_suffix(self.ext)
        return new_path


class PagePathCalc(PathCalc[T]):
    """
    PathCalc for rendered pages, nesting them into an index structure so that
    file extensions can be omitted in URLs: `a/b.md` becomes `a/b/index.html`
    while `a/index.md` becomes `a/index.html`.

    If @keep_inner_ext is set, templates which name their own output type,
    like `feed.xml.jinja`, are written under that name instead.
    """
    index_base = 'index'

    def __init__(self,
                 ext: str = '.html',
                 keep_inner_ext: bool = False,
                 index_base: str | None = None):
        self.ext = ext
        self.keep_inner_ext = keep_inner_ext
        self.index_base = index_base or self.index_base

    def __call__(self, context: Context, path: Path, match: T) -> Path:
        stem = relative_source(context, path).with_suffix('')
        if self.keep_inner_ext and stem.suffix:
            rel = stem
        elif stem.name == self.index_base:
            rel = stem.with_suffix(self.ext)
        else:
            rel = stem / f'{self.index_base}{self.ext}'
        return context['output_dir'] / rel


class REMatcher(Matcher[re.Match | None]):
    """
    Path Matcher using regular expressions. @re_flags will be passed to
    `re.compile()`. @parent_dir, if specified, should be a key to a configured
    directory, not a Path, and will be used to handle matching the beginning of
    Paths; this can be used to avoid pitfalls with unexpected characters in
    the project directories.
    """
    def __init__(self, re_string: str, re_flags: int = 0, parent_dir: ContextDir | None = None):
        self.regex = re.compile(re_string, re_flags)
        self.parent_dir: ContextDir | None = parent_dir

    def __call__(self, context: Context, path: Path):
        if self.parent_dir:
            if not path.is_relative_to(context[self.parent_dir]):
                return None
            path = path.relative_to(context[self.parent_dir])
        return self.regex.match(path.as_posix())
