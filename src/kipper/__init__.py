"""
Kipper is a small static site generator driven by Python config files that
register transforms, template filters, collections, and passthrough copies.
"""
from .config import SiteConfig
from .content import CollectionAPI, ContentItem
from .core import BuildError, BuildSettings, Context, InputBuildSettings, Matcher, PathCalc, Rule, Step, make_settings
from .jinja import JinjaPageStep, JinjaRenderStep, MarkdownRenderStep
from .paths import OutputDirPathCalc, PagePathCalc, REMatcher
from .simple import BaseStandardStep, DirectCopyStep
