import glob
import os
import re
import stat

from typing import Iterator, List, Optional  # noqa

from autocmd.errors import GlobPatternError, UsageError


RECURSIVE_TOKEN = '...'
_DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}
_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|ms|s|m|h)')


class OSUtils(object):
    def stat(self, path):
        # type: (str) -> Optional[os.stat_result]
        try:
            return os.stat(path)
        except OSError:
            return None

    def get_file_contents(self, filename):
        # type: (str) -> str
        with open(filename) as f:
            return f.read()

    def glob(self, pattern):
        # type: (str) -> List[str]
        return glob.glob(pattern)

    def walk_dirs(self, top, include_git=False):
        # type: (str, bool) -> Iterator[str]
        if not os.path.isdir(top):
            return
        for dirpath, dirnames, _ in os.walk(top):
            if not include_git:
                dirnames[:] = [d for d in dirnames if d != '.git']
            dirnames.sort()
            yield dirpath


def validate_pattern(pattern):
    # type: (str) -> None
    """Reject glob patterns that cannot be matched reliably.

    Python's ``glob`` silently treats a malformed character class as a
    literal, which would make a typo watch nothing at all.  The checks
    here mirror what a strict matcher refuses: an unterminated ``[``, an
    empty ``[]`` class and a trailing escape character.
    """
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == '\\' and os.sep != '\\':
            if i + 1 >= n:
                raise GlobPatternError(pattern, 'trailing escape character')
            i += 2
            continue
        if c == '[':
            j = i + 1
            if j < n and pattern[j] in '!^':
                j += 1
            if j < n and pattern[j] == ']':
                raise GlobPatternError(pattern, 'empty character class')
            close = pattern.find(']', j)
            if close < 0:
                raise GlobPatternError(pattern, 'unterminated character class')
            i = close + 1
            continue
        i += 1


def expand_pattern(pattern, osutils=None, include_git=False):
    # type: (str, Optional[OSUtils], bool) -> List[str]
    """Expand at most one ``...`` token into one pattern per directory.

    ``pre/.../post`` becomes ``dir/post`` for ``pre`` and every directory
    below it.  A pattern without the token is returned unchanged.
    """
    if osutils is None:
        osutils = OSUtils()
    pattern = os.path.normpath(pattern)
    token = RECURSIVE_TOKEN
    sep = os.sep
    if pattern == token:
        pre, post = '', '*'
    elif pattern.startswith(token + sep):
        pre, post = '', pattern[len(token) + 1:]
    elif pattern.endswith(sep + token):
        pre, post = pattern[:-len(token) - 1], '*'
    else:
        index = pattern.find(sep + token + sep)
        if index < 0:
            return [pattern]
        pre, post = pattern[:index], pattern[index + len(token) + 2:]
    if not pre:
        pre = '.'
    return [os.path.join(path, post)
            for path in osutils.walk_dirs(pre, include_git=include_git)]


def is_directory_mode(mode):
    # type: (int) -> bool
    return stat.S_ISDIR(mode)


def parse_duration(value):
    # type: (str) -> float
    """Parse a duration such as ``500ms``, ``1m30s`` or ``2`` into seconds."""
    text = value.strip()
    if not text:
        raise UsageError('invalid duration: %r' % value)
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not 0 <= seconds < float('inf'):
            raise UsageError('invalid duration: %r' % value)
        return seconds
    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise UsageError('invalid duration: %r' % value)
    return total
