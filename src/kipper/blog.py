"""
Build configuration for the blog: minified HTML output, a `cssmin` filter for
inlined styles, an HTML date filter, the `posts` collection, and verbatim
copying of site assets.
"""
from __future__ import annotations

from pathlib import Path

from .config import SiteConfig
from .content import CollectionAPI
from .filters import html_date_string
from .minify import minify_css, minify_html_document


ASSETS_DIR = 'site/assets'
POSTS_GLOB = 'site/blog/*/*.md'
TEMPLATE_FORMATS = ('md', 'jinja', 'jpg')


def htmlmin(content: str, output_path: Path | str) -> str:
    """
    Minify HTML artifacts; anything not written to a `.html` path is returned
    unchanged.
    """
    if str(output_path).endswith('.html'):
        return minify_html_document(content)
    return content


def cssmin(code: str) -> str:
    return minify_css(code)


def posts(collection_api: CollectionAPI):
    return collection_api.get_filtered_by_glob(POSTS_GLOB)


def configure(config: SiteConfig):
    config.add_transform('htmlmin', htmlmin)
    config.add_filter('cssmin', cssmin)
    config.add_filter('htmlDateString', html_date_string)
    config.add_collection('posts', posts)
    config.add_passthrough_copy(ASSETS_DIR)
    config.set_template_formats(TEMPLATE_FORMATS)
    return config
