import os

import mock
import pytest

from autocmd.commandset import CommandSet
from autocmd.config import ConfigReloader, parse_config
from autocmd.errors import ConfigFileError, GlobPatternError
from autocmd.output import Reporter
from tests.conftest import touch


def test_parse_config_collects_watch_patterns():
    text = '\n'.join([
        '# leading comment',
        '',
        'watch: src/*.py',
        '   watch:   docs/.../*.rst  ',
    ])

    patterns, warnings = parse_config(text)

    assert patterns == ['src/*.py', 'docs/.../*.rst']
    assert warnings == []


def test_parse_config_warns_and_skips_bad_lines():
    text = 'watch: a\nnot a pair\nignore: b\nwatch:\nwatch: c\n'

    patterns, warnings = parse_config(text, 'my.conf')

    assert patterns == ['a', 'c']
    assert [w.lineno for w in warnings] == [2, 3, 4]
    assert 'my.conf:3' in str(warnings[1])
    assert 'unknown key' in str(warnings[1])


def test_value_may_contain_colon():
    patterns, _ = parse_config('watch: C:/src/*.c')

    assert patterns == ['C:/src/*.c']


@pytest.fixture
def reporter():
    return mock.Mock(spec=Reporter)


def make_reloader(tmpdir, reporter, contents='watch: *.py\n'):
    config = tmpdir.join('autocmd.conf')
    if contents is not None:
        config.write(contents)
    command_set = CommandSet(['static/*'], ['make'])
    reloader = ConfigReloader(config.strpath, command_set, reporter=reporter)
    return config, command_set, reloader


def test_load_appends_config_patterns_and_file(tmpdir, reporter):
    config, command_set, reloader = make_reloader(tmpdir, reporter)

    reloader.load()

    assert command_set.patterns == ['static/*', '*.py', config.strpath]


def test_load_missing_config_is_fatal(tmpdir, reporter):
    _, _, reloader = make_reloader(tmpdir, reporter, contents=None)

    with pytest.raises(ConfigFileError):
        reloader.load()


def test_check_is_noop_until_config_changes(tmpdir, reporter):
    _, command_set, reloader = make_reloader(tmpdir, reporter)
    reloader.load()

    assert not reloader.check()
    assert not reloader.check()


def test_check_rewrites_patterns_on_change(tmpdir, reporter):
    config, command_set, reloader = make_reloader(tmpdir, reporter)
    reloader.load()

    config.write('watch: *.txt\nwatch: *.md\n')
    touch(config)

    assert reloader.check()
    assert command_set.patterns == [
        'static/*', '*.txt', '*.md', config.strpath]
    assert not reloader.check()


def test_reload_reports_warnings(tmpdir, reporter):
    config, command_set, reloader = make_reloader(tmpdir, reporter)
    reloader.load()

    config.write('watch: *.txt\nbogus line\n')
    touch(config)
    reloader.check()

    assert command_set.patterns == ['static/*', '*.txt', config.strpath]
    assert reporter.warning.call_count == 1


def test_vanished_config_keeps_patterns(tmpdir, reporter):
    config, command_set, reloader = make_reloader(tmpdir, reporter)
    reloader.load()
    before = command_set.patterns

    config.remove()

    assert not reloader.check()
    assert command_set.patterns == before
    assert reporter.warning.called


def test_bad_glob_in_config_is_fatal(tmpdir, reporter):
    config, _, reloader = make_reloader(tmpdir, reporter)
    reloader.load()

    config.write('watch: src/[oops\n')
    touch(config)

    with pytest.raises(GlobPatternError):
        reloader.check()


def test_config_edit_triggers_command_set(tmpdir, reporter):
    tmpdir.join('a.py').write('x')
    config = tmpdir.join('autocmd.conf')
    config.write('watch: %s\n' % os.path.join(tmpdir.strpath, '*.py'))
    command_set = CommandSet([], ['make'])
    reloader = ConfigReloader(config.strpath, command_set, reporter=reporter)
    reloader.load()
    assert command_set.evaluate()
    assert not command_set.evaluate()

    config.write('watch: %s\n' % os.path.join(tmpdir.strpath, '*.txt'))
    touch(config)
    reloader.check()

    assert command_set.evaluate()
    assert list(command_set.snapshot) == [config.strpath]


def test_config_name_with_glob_characters_is_watched(tmpdir, reporter):
    config = tmpdir.join('conf[1].txt')
    config.write('# no patterns yet\n')
    command_set = CommandSet([], ['make'])
    reloader = ConfigReloader(config.strpath, command_set, reporter=reporter)
    reloader.load()

    assert command_set.evaluate()
    assert list(command_set.snapshot) == [config.strpath]

    config.write('# still no patterns\n')
    touch(config)
    assert reloader.check()
    assert command_set.evaluate()
