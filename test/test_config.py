from __future__ import annotations

import logging
from pathlib import Path

import pytest

from kipper.config import SiteConfig
from kipper.core import Context, make_settings
from kipper.jinja import JinjaPageStep, MarkdownRenderStep
from kipper.simple import DirectCopyStep


def upper(content: str, output_path: Path):
    return content.upper()


def tag_path(content: str, output_path: Path):
    return f'{content}:{output_path.name}'


def test_register_callbacks():
    config = SiteConfig()
    config.add_transform('upper', upper)
    config.add_filter('shout', str.upper)
    config.add_collection('everything', lambda api: api.get_all())
    assert list(config.transforms) == ['upper']
    assert config.filters['shout'] is str.upper
    assert list(config.collections) == ['everything']


@pytest.mark.parametrize('method', ['add_transform', 'add_filter', 'add_collection'])
def test_register_not_callable(method: str):
    with pytest.raises(TypeError):
        getattr(SiteConfig(), method)('broken', 'not a function')


def test_register_replaces(caplog: pytest.LogCaptureFixture):
    config = SiteConfig()
    config.add_transform('t', upper)
    with caplog.at_level(logging.DEBUG, logger='kipper.config'):
        config.add_transform('t', tag_path)
    assert config.transforms == {'t': tag_path}
    assert "Replacing transform 't'" in caplog.text


def test_apply_transforms_in_order():
    config = SiteConfig()
    config.add_transform('upper', upper)
    config.add_transform('tag_path', tag_path)
    assert config.apply_transforms('abc', Path('out/index.html')) == 'ABC:index.html'


def test_apply_transforms_empty():
    assert SiteConfig().apply_transforms('abc', Path('out/index.html')) == 'abc'


def test_passthrough_copies_normalized():
    config = SiteConfig()
    config.add_passthrough_copy('site/assets/')
    config.add_passthrough_copy(Path('site') / 'assets')
    config.add_passthrough_copy('./static')
    assert config.passthrough_copies == ['site/assets', 'static']


@pytest.mark.parametrize('formats,expected', [
    (['md', 'jinja', 'jpg'], ['md', 'jinja', 'jpg']),
    ('md, .JPG,,jinja', ['md', 'jpg', 'jinja']),
    (('md', 'md'), ['md']),
])
def test_set_template_formats(formats, expected: list[str]):
    config = SiteConfig()
    config.set_template_formats(formats)
    assert config.template_formats == expected


def test_default_template_formats():
    assert SiteConfig().template_formats == ['md', 'jinja']


@pytest.fixture
def blog_context(tmp_path: Path):
    config = SiteConfig()
    config.add_passthrough_copy('site/assets')
    config.set_template_formats(['md', 'jinja', 'jpg'])
    return Context(make_settings(tmp_path), config)


def test_build_rules_routing(blog_context: Context, tmp_path: Path):
    site = tmp_path / 'site'
    out = tmp_path / '_site'
    paths = [
        site / 'about.md',
        site / 'index.jinja',
        site / 'feed.xml.jinja',
        site / 'photo.JPG',
        site / 'assets' / 'css' / 'site.css',
        site / 'assets' / 'notes.md',
        site / '_includes' / 'base.jinja',
        site / '.hidden.md',
        site / 'notes.txt',
    ]
    tasks = blog_context.match_paths(paths)
    routed = {
        path: (type(step), outputs)
        for step, entries in tasks.items()
        for path, outputs in entries
    }
    assert routed == {
        site / 'about.md': (MarkdownRenderStep, [out / 'about' / 'index.html']),
        site / 'index.jinja': (JinjaPageStep, [out / 'index.html']),
        site / 'feed.xml.jinja': (JinjaPageStep, [out / 'feed.xml']),
        site / 'photo.JPG': (DirectCopyStep, [out / 'photo.JPG']),
        site / 'assets' / 'css' / 'site.css': (DirectCopyStep, [out / 'assets' / 'css' / 'site.css']),
        site / 'assets' / 'notes.md': (DirectCopyStep, [out / 'assets' / 'notes.md']),
    }


def test_build_rules_passthrough_outside_input(tmp_path: Path):
    config = SiteConfig()
    config.add_passthrough_copy('static')
    (tmp_path / 'site').mkdir()
    (tmp_path / 'static').mkdir()
    (tmp_path / 'static' / 'robots.txt').write_text('User-agent: *')

    context = Context(make_settings(tmp_path), config)
    context.run()
    assert (tmp_path / '_site' / 'static' / 'robots.txt').read_text() == 'User-agent: *'
