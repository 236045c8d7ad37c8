"""
HTML and CSS minification, using minify-html and lightningcss.
"""
from __future__ import annotations

import re
from collections.abc import Sequence

import lightningcss
import minify_html


SHORT_DOCTYPE = '<!doctype html>'
DOCTYPE_RE = re.compile(r'^\s*<!doctype\b[^>]*>', re.IGNORECASE)


def minify_html_document(content: str,
                         minify_css: bool = False,
                         minify_js: bool = False) -> str:
    """
    Minify an HTML document: collapse whitespace and strip comments. A leading
    doctype of any flavor is replaced with the short HTML5 doctype.
    """
    doctype = DOCTYPE_RE.match(content)
    if doctype:
        content = content[doctype.end():]

    minified = minify_html.minify(
        content,
        minify_css=minify_css,
        minify_js=minify_js,
        keep_comments=False,
        keep_closing_tags=True,
        keep_html_and_head_opening_tags=True,
        allow_noncompliant_unquoted_attribute_values=False,
        allow_removing_spaces_between_attributes=False,
    )
    return SHORT_DOCTYPE + minified if doctype else minified


def minify_css(code: str,
               filename: str = '<template>',
               error_recovery: bool = False,
               parser_flags: dict[str, bool] | None = None,
               browsers_list: Sequence[str] | None = ('defaults',)) -> str:
    """
    Minify a CSS stylesheet with lightningcss. Parse errors are raised unless
    @error_recovery is set.
    """
    return lightningcss.process_stylesheet(
        str(code),
        filename=filename,
        error_recovery=error_recovery,
        parser_flags=lightningcss.calc_parser_flags(**(parser_flags or {})),
        unused_symbols=None,
        browsers_list=list(browsers_list) if browsers_list else None,
        minify=True,
    )
