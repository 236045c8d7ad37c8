from pathlib import Path

import pytest

from kipper.config import SiteConfig
from kipper.core import BuildError, BuildSettings, Context, Matcher, PathCalc, Rule, Step, make_settings


class DummyStep(Step):
    def __call__(self, path: Path, output_paths: list[Path]):
        pass


class FailingStep(Step):
    def __call__(self, path: Path, output_paths: list[Path]):
        raise ValueError('broken markup')


class AllMatcher(Matcher[Path]):
    def __call__(self, context: Context, path: Path):
        return path


class BMatcher(Matcher[Path]):
    def __call__(self, context: Context, path: Path):
        if path.name.startswith('b'):
            return path


class DummyPathCalc(PathCalc[Path]):
    def __call__(self, context: Context, path: Path, match: Path) -> Path:
        return context['output_dir'] / path.relative_to(context['input_dir'])


class RulesConfig(SiteConfig):
    def __init__(self, rules: list[Rule]):
        super().__init__()
        self.rules = rules

    def build_rules(self, settings: BuildSettings):
        return self.rules


@pytest.fixture
def build_settings(tmp_path):
    return make_settings(tmp_path, purge_dirs=False)


def test_make_settings_defaults(tmp_path: Path):
    settings = make_settings(tmp_path)
    assert settings == {
        'root_dir': tmp_path,
        'input_dir': tmp_path / 'site',
        'output_dir': tmp_path / '_site',
        'includes_dir': '_includes',
        'purge_dirs': True,
    }


def test_context_match_paths(build_settings: BuildSettings):
    i_a = build_settings['input_dir'] / 'a'
    i_b = build_settings['input_dir'] / 'b'
    i_c = build_settings['input_dir'] / 'c'
    o_a = build_settings['output_dir'] / 'a'
    o_b = build_settings['output_dir'] / 'b'
    o_c = build_settings['output_dir'] / 'c'

    paths = [i_a, i_b, i_c]
    b_step = DummyStep()
    all_step = DummyStep()
    context = Context(build_settings, RulesConfig([
        Rule(BMatcher(), DummyPathCalc(), b_step),
        Rule(AllMatcher(), DummyPathCalc(), all_step),
    ]))
    tasks = context.match_paths(paths)
    assert tasks == {
        b_step: [
            (i_b, [o_b]),
        ],
        all_step: [
            (i_a, [o_a]),
            (i_b, [o_b]),
            (i_c, [o_c]),
        ],
    }


def test_context_match_paths_stop_matching(build_settings: BuildSettings):
    i_a = build_settings['input_dir'] / 'a'
    i_b = build_settings['input_dir'] / 'b'
    i_c = build_settings['input_dir'] / 'c'
    o_a = build_settings['output_dir'] / 'a'
    o_b = build_settings['output_dir'] / 'b'
    o_c = build_settings['output_dir'] / 'c'

    paths = [i_a, i_b, i_c]

    b_step = DummyStep()
    all_step = DummyStep()
    context = Context(build_settings, RulesConfig([
        Rule(BMatcher(), [DummyPathCalc(), None], b_step),
        Rule(AllMatcher(), DummyPathCalc(), all_step),
    ]))
    tasks = context.match_paths(paths)
    assert tasks == {
        b_step: [
            (i_b, [o_b]),
        ],
        all_step: [
            (i_a, [o_a]),
            (i_c, [o_c]),
        ],
    }


def test_context_ignore_rule(build_settings: BuildSettings):
    i_a = build_settings['input_dir'] / 'a'
    i_b = build_settings['input_dir'] / 'b'
    all_step = DummyStep()
    context = Context(build_settings, RulesConfig([
        Rule(BMatcher(), None),
        Rule(AllMatcher(), DummyPathCalc(), all_step),
    ]))
    assert context.match_paths([i_a, i_b]) == {
        all_step: [(i_a, [build_settings['output_dir'] / 'a'])],
    }


def test_find_inputs_sorted(build_settings: BuildSettings):
    input_dir = build_settings['input_dir']
    for name in ['b/z.md', 'b/a.md', 'a.md', 'c.md']:
        (input_dir / name).parent.mkdir(parents=True, exist_ok=True)
        (input_dir / name).write_text('')
    context = Context(build_settings, RulesConfig([]))
    found = [p.relative_to(input_dir).as_posix() for p in context.find_inputs(input_dir)]
    assert found == ['a.md', 'b/a.md', 'b/z.md', 'c.md']


def test_run_missing_input_dir(build_settings: BuildSettings):
    context = Context(build_settings, RulesConfig([]))
    with pytest.raises(BuildError) as exc_info:
        context.run()
    assert exc_info.value.path == build_settings['input_dir']


def test_run_wraps_step_errors(build_settings: BuildSettings):
    build_settings['input_dir'].mkdir()
    (build_settings['input_dir'] / 'page.html').write_text('<p>')
    context = Context(build_settings, RulesConfig([
        Rule(AllMatcher(), DummyPathCalc(), FailingStep()),
    ]))
    with pytest.raises(BuildError) as exc_info:
        context.run()
    assert exc_info.value.path == build_settings['input_dir'] / 'page.html'
    assert exc_info.value.output_paths == [build_settings['output_dir'] / 'page.html']
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_run_purges_output(tmp_path: Path):
    settings = make_settings(tmp_path, purge_dirs=True)
    settings['input_dir'].mkdir()
    stale = settings['output_dir'] / 'old' / 'index.html'
    stale.parent.mkdir(parents=True)
    stale.write_text('stale')
    Context(settings, RulesConfig([])).run()
    assert not stale.exists()
    assert settings['output_dir'].exists()


def test_run_wraps_content_errors(build_settings: BuildSettings):
    build_settings['input_dir'].mkdir()
    (build_settings['input_dir'] / 'page.md').write_text('---\n- a\n- b\n---\nbody\n')
    context = Context(build_settings, SiteConfig())
    with pytest.raises(BuildError) as exc_info:
        context.run()
    assert exc_info.value.path == build_settings['input_dir'] / 'page.md'
    assert exc_info.value.output_paths == [build_settings['output_dir'] / 'page' / 'index.html']
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_run_wraps_collection_errors(build_settings: BuildSettings):
    build_settings['input_dir'].mkdir()
    (build_settings['input_dir'] / 'page.md').write_text('body\n')
    config = SiteConfig()
    config.add_collection('broken', lambda api: 1 / 0)
    with pytest.raises(BuildError) as exc_info:
        Context(build_settings, config).run()
    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)
