"""
Content items, front matter parsing, and collections.
"""
from __future__ import annotations

import typing as t
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from ruamel.yaml import YAML

from .filters import to_utc
from .paths import glob_match

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from .core import Context


FRONT_MATTER_DELIMITER = '---'

CollectionFunc = t.Callable[['CollectionAPI'], t.Iterable['ContentItem']]


def split_front_matter(text: str) -> tuple[dict[str, t.Any], str]:
    """
    Split a leading YAML front matter block, delimited by `---` lines, from
    the body of a document. Documents without a complete block are all body.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return {}, text

    for i, line in enumerate(lines[1:], 1):
        if line.strip() == FRONT_MATTER_DELIMITER:
            data = YAML(typ='safe').load(''.join(lines[1:i])) or {}
            if not isinstance(data, dict):
                raise ValueError(f'Front matter must be a mapping, not {type(data).__name__}!')
            return data, ''.join(lines[i + 1:])

    return {}, text


def output_url(rel_output: PurePosixPath) -> str:
    """
    Turn an output path relative to the output directory into the URL it is
    served from, dropping `index.html`.
    """
    if rel_output.name == 'index.html':
        parent = rel_output.parent.as_posix()
        return '/' if parent == '.' else f'/{parent}/'
    return f'/{rel_output.as_posix()}'


def _normalize_tags(tags: t.Any) -> list[str]:
    if not tags:
        return []
    if isinstance(tags, str):
        return [tags]
    return [str(tag) for tag in tags]


class ContentItem:
    """
    A markdown or template source document along with its front matter and
    the location it will be written to.
    """
    def __init__(self,
                 input_path: Path,
                 path: str,
                 output_path: Path,
                 url: str,
                 data: dict[str, t.Any],
                 body: str,
                 date: datetime):
        self.input_path = input_path
        self.path = path
        self.output_path = output_path
        self.url = url
        self.data = data
        self.body = body
        self.date = date
        self.tags = _normalize_tags(data.get('tags'))

    def __repr__(self):
        return f'{self.__class__.__name__}({self.path!r})'

    @classmethod
    def load(cls, context: Context, path: Path, output_path: Path, encoding: str = 'utf-8'):
        """
        Read a ContentItem from @path, which will be rendered to @output_path.
        """
        data, body = split_front_matter(path.read_text(encoding))

        root = context['root_dir']
        rel = path.relative_to(root).as_posix() if path.is_relative_to(root) else path.as_posix()

        if 'date' in data:
            date = to_utc(data['date'])
        else:
            date = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

        return cls(
            input_path=path,
            path=rel,
            output_path=output_path,
            url=output_url(PurePosixPath(output_path.relative_to(context['output_dir']).as_posix())),
            data=data,
            body=body,
            date=date,
        )


class CollectionAPI:
    """
    Read-only view over every content item of a build, handed to collection
    functions.
    """
    def __init__(self, items: Iterable[ContentItem]):
        self.items = list(items)

    def get_all(self):
        return list(self.items)

    def get_filtered_by_glob(self, pattern: str):
        """
        Return the items whose project-relative source path matches the glob
        @pattern, in discovery order.
        """
        return [item for item in self.items if glob_match(item.path, pattern)]

    def get_filtered_by_tag(self, tag: str):
        return [item for item in self.items if tag in item.tags]


def build_collections(items: Iterable[ContentItem],
                      registered: Mapping[str, CollectionFunc]) -> dict[str, list[ContentItem]]:
    """
    Compute all collections of a build: `all`, one per tag, and then every
    registered collection, which take precedence over tags of the same name.
    """
    api = CollectionAPI(items)
    collections = {'all': api.get_all()}
    for item in api.items:
        for tag in item.tags:
            # `all` is reserved and already holds every item.
            if tag != 'all':
                collections.setdefault(tag, []).append(item)
    for name, func in registered.items():
        collections[name] = list(func(api))
    return collections
