import os

import pytest

from autocmd.errors import GlobPatternError
from autocmd.watcher.shared import ADDED, DELETED, MODIFIED
from autocmd.watcher.stat import StatFileObserver
from tests.conftest import touch


def remove_prefix(prefix, targets):
    return {target[len(prefix.strpath) + 1:] for target in targets}


def observer_for(tmpdir, *patterns, **kwargs):
    patterns = [os.path.join(tmpdir.strpath, p) for p in patterns]
    return StatFileObserver(patterns, verbose=True, **kwargs)


def test_does_return_new_file(tmpdir):
    stater = observer_for(tmpdir, '*.txt')
    stater.check()
    tmpdir.join('foo.txt').write('foobarbaz')

    result = stater.check()
    changes = remove_prefix(tmpdir, result.paths(ADDED))

    assert result.changed
    assert changes == {'foo.txt'}


def test_does_find_subdirectory_files(tmpdir):
    tmpdir.join('foo.txt').write('foo')
    tmpdir.mkdir('sub').join('bar.txt').write('bar')
    stater = observer_for(tmpdir, '.../*.txt')

    result = stater.check()
    changes = remove_prefix(tmpdir, result.paths(ADDED))

    assert changes == {'foo.txt', 'sub/bar.txt'}


def test_does_return_updated_file(tmpdir):
    foo = tmpdir.join('foo.txt')
    foo.write('foo')
    stater = observer_for(tmpdir, '*.txt')

    stater.check()
    touch(foo)
    result = stater.check()
    changes = remove_prefix(tmpdir, result.paths(MODIFIED))

    assert changes == {'foo.txt'}


def test_does_return_updated_nested_file(tmpdir):
    foo = tmpdir.join('foo.txt')
    foo.write('foo')
    bar = tmpdir.mkdir('sub').join('bar.txt')
    bar.write('bar')
    stater = observer_for(tmpdir, '.../*.txt')

    stater.check()
    touch(foo)
    touch(bar)
    result = stater.check()
    changes = remove_prefix(tmpdir, result.paths(MODIFIED))

    assert changes == {'foo.txt', 'sub/bar.txt'}


def test_does_return_deleted_file(tmpdir):
    foo = tmpdir.join('foo.txt')
    foo.write('foo')
    stater = observer_for(tmpdir, '*.txt')

    stater.check()
    foo.remove()
    result = stater.check()

    assert result.changed
    assert remove_prefix(tmpdir, result.paths(DELETED)) == {'foo.txt'}


def test_is_unchanged_when_no_updates(tmpdir):
    foo = tmpdir.join('foo.txt')
    foo.write('foo')
    bar = tmpdir.mkdir('sub').join('bar.txt')
    bar.write('bar')
    stater = observer_for(tmpdir, '.../*.txt')

    stater.check()
    first = stater.snapshot
    assert not stater.check().changed
    assert not stater.check().changed
    assert stater.snapshot == first


def test_directories_are_never_in_snapshot(tmpdir):
    tmpdir.mkdir('adir')
    tmpdir.join('afile').write('x')
    stater = observer_for(tmpdir, '*')

    stater.check()

    assert remove_prefix(tmpdir, stater.snapshot) == {'afile'}


def test_empty_pattern_list_never_changes(tmpdir):
    stater = StatFileObserver([])

    assert not stater.check().changed
    assert not stater.check().changed
    assert stater.snapshot == {}


def test_pattern_without_matches_is_not_an_error(tmpdir):
    stater = observer_for(tmpdir, '*.nothing')

    assert not stater.check().changed


def test_forget_reports_everything_as_added(tmpdir):
    tmpdir.join('foo.txt').write('foo')
    stater = observer_for(tmpdir, '*.txt')
    stater.check()

    stater.forget()
    result = stater.check()

    assert result.changed
    assert remove_prefix(tmpdir, result.paths(ADDED)) == {'foo.txt'}


def test_git_directories_skipped_unless_requested(tmpdir):
    tmpdir.mkdir('.git').join('HEAD').write('ref')
    tmpdir.join('main.txt').write('x')

    default = observer_for(tmpdir, '.../*')
    with_git = observer_for(tmpdir, '.../*', include_git=True)

    assert remove_prefix(tmpdir, default.take_snapshot()) == {'main.txt'}
    assert remove_prefix(tmpdir, with_git.take_snapshot()) == {
        'main.txt', '.git/HEAD'}


def test_bad_pattern_is_rejected():
    with pytest.raises(GlobPatternError):
        StatFileObserver(['src/[abc.py'])


def test_bad_pattern_rejected_when_patterns_replaced(tmpdir):
    stater = observer_for(tmpdir, '*.txt')

    with pytest.raises(GlobPatternError):
        stater.patterns = ['[]']
