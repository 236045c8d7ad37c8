"""
Steps for rendering pages with Jinja templates, including Markdown pages
wrapped in Jinja layouts.
"""
from __future__ import annotations

import abc
import typing as t
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markdown_it import MarkdownIt
from markupsafe import Markup
from mdit_py_plugins.anchors import anchors_plugin

from .simple import BaseStandardStep

if t.TYPE_CHECKING:
    from .content import ContentItem

MDProcessor = t.Callable[[str], str]

AUTOESCAPE_EXTENSIONS = ('html', 'htm', 'xml', 'jinja')


class JinjaRenderStep(BaseStandardStep):
    """
    Base class for Steps rendering content items with Jinja.
    """
    renders_content = True

    def __init__(self,
                 env: Environment | None = None,
                 extra_globals: dict[str, t.Any] | None = None):
        self._env = env
        self._extra_globals = extra_globals

    @property
    def env(self):
        """
        Returns the Jinja `Environment` for this Step, creating and caching it
        if necessary. Registered filters and the `collections` and `site_config`
        globals are installed on every access.
        """
        if not self._env:
            self._env = Environment(
                loader=FileSystemLoader(self.context['input_dir']),
                autoescape=select_autoescape(AUTOESCAPE_EXTENSIONS),
            )
        self._env.filters.update(self.context.config.filters)
        self._env.globals.update(collections=self.context.collections, site_config=self.context.config)
        if self._extra_globals:
            self._env.globals.update(self._extra_globals)
        return self._env

    def page_variables(self, item: ContentItem, content: str | None = None) -> dict[str, t.Any]:
        """
        Template variables for rendering @item: its front matter, the item
        itself as `page`, the build's `collections`, and the rendered
        `content` when wrapping it in a layout.
        """
        variables = dict(item.data)
        variables |= {'page': item, 'collections': self.context.collections}
        if content is not None:
            variables['content'] = Markup(content)
        return variables

    def apply_layout(self, item: ContentItem, content: str) -> str:
        """
        Wrap @content in the layout named by the item's front matter, if any.
        Layouts are looked up in the includes directory.
        """
        layout = item.data.get('layout')
        if not layout:
            return content
        template = self.env.get_template(f'{self.context["includes_dir"]}/{layout}')
        return template.render(self.page_variables(item, content))

    @abc.abstractmethod
    def render_item(self, item: ContentItem) -> str:
        """
        Render the body of @item, before any layout is applied.
        """

    def __call__(self, path: Path, output_paths: list[Path]):
        item = self.context.items[path]
        self.write_artifact(self.apply_layout(item, self.render_item(item)), output_paths)


class JinjaPageStep(JinjaRenderStep):
    """
    A Step rendering a page whose body is itself a Jinja template.
    """
    def render_item(self, item: ContentItem):
        return self.env.from_string(item.body).render(self.page_variables(item))


class MarkdownRenderStep(JinjaRenderStep):
    """
    A Step rendering Markdown pages to HTML, parsing according to CommonMark
    with tables, strikethrough, and heading anchors.
    """
    def __init__(self,
                 md_processor: MDProcessor | None = None,
                 env: Environment | None = None,
                 extra_globals: dict[str, t.Any] | None = None,
                 anchor_levels: int = 3):
        super().__init__(env, extra_globals)
        self._md_processor = md_processor
        self.anchor_levels = anchor_levels

    @property
    def md_processor(self):
        """
        Returns the markdown processor for this Step, creating it if necessary.
        """
        if not self._md_processor:
            processor = MarkdownIt('commonmark')
            processor.enable(['strikethrough', 'table'])
            if self.anchor_levels:
                anchors_plugin(processor, max_level=self.anchor_levels)
            self._md_processor = processor.render
        return self._md_processor

    def render_item(self, item: ContentItem):
        return self.md_processor(item.body.strip()).strip()
