"""Live pattern reloading from a config file.

The config file feeds extra watch patterns into one command set::

    # comments and blank lines are ignored
    watch: src/.../*.py
    watch: templates/*.html

Only the ``watch`` key contributes patterns.  Lines with another key or
without a ``key: value`` shape are reported and skipped.
"""
import glob
import logging

from typing import List, Optional, Tuple  # noqa

from autocmd.commandset import CommandSet  # noqa
from autocmd.errors import ConfigFileError, ConfigParseWarning
from autocmd.output import Reporter
from autocmd.utils import OSUtils
from autocmd.watcher.shared import FileFingerprint


LOG = logging.getLogger(__name__)

WATCH_KEY = 'watch'


def parse_config(text, path='<config>'):
    # type: (str, str) -> Tuple[List[str], List[ConfigParseWarning]]
    patterns = []  # type: List[str]
    warnings = []  # type: List[ConfigParseWarning]
    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        parts = line.split(':', 1)
        if len(parts) != 2:
            warnings.append(ConfigParseWarning(
                path, lineno, line, 'expected "key: value"'))
            continue
        key, value = parts[0].strip(), parts[1].strip()
        if key != WATCH_KEY:
            warnings.append(ConfigParseWarning(
                path, lineno, line, 'unknown key %r' % key))
            continue
        if not value:
            warnings.append(ConfigParseWarning(
                path, lineno, line, 'missing pattern'))
            continue
        patterns.append(value)
    return patterns, warnings


class ConfigReloader(object):
    """Rewrites one command set's patterns whenever its config changes.

    The set watches ``static_patterns``, the patterns read from the config
    and the config file itself, so an edit to the config both reloads the
    pattern list and triggers a rerun.
    """

    def __init__(self, path, command_set, static_patterns=None,
                 osutils=None, reporter=None):
        # type: (str, CommandSet, Optional[List[str]], Optional[OSUtils], Optional[Reporter]) -> None
        if osutils is None:
            osutils = OSUtils()
        if reporter is None:
            reporter = Reporter()
        if static_patterns is None:
            static_patterns = command_set.patterns
        self._path = path
        self._set = command_set
        self._static = list(static_patterns)
        self._osutils = osutils
        self._reporter = reporter
        self._fingerprint = None  # type: Optional[FileFingerprint]

    @property
    def path(self):
        # type: () -> str
        return self._path

    def load(self):
        # type: () -> None
        """Read the config for the first time; failure here is fatal."""
        st = self._osutils.stat(self._path)
        if st is None:
            raise ConfigFileError('cannot read config file %s' % self._path)
        try:
            text = self._read()
        except (IOError, OSError, UnicodeDecodeError) as e:
            raise ConfigFileError('cannot read config file %s: %s'
                                  % (self._path, e))
        self._fingerprint = FileFingerprint.from_stat(st)
        self._apply(text)

    def check(self):
        # type: () -> bool
        st = self._osutils.stat(self._path)
        if st is None:
            if self._fingerprint is not None:
                self._reporter.warning(
                    'Config file %s disappeared, keeping patterns %s',
                    self._path, ' '.join(self._set.patterns))
            self._fingerprint = None
            return False
        fingerprint = FileFingerprint.from_stat(st)
        if fingerprint == self._fingerprint:
            return False
        try:
            text = self._read()
        except (IOError, OSError, UnicodeDecodeError) as e:
            self._reporter.warning('Cannot reload %s: %s', self._path, e)
            return False
        self._fingerprint = fingerprint
        self._apply(text)
        return True

    def _read(self):
        # type: () -> str
        return self._osutils.get_file_contents(self._path)

    def _apply(self, text):
        # type: (str) -> None
        patterns, warnings = parse_config(text, self._path)
        for warning in warnings:
            self._reporter.warning('%s', warning)
        self._set.patterns = self._static + patterns + [glob.escape(self._path)]
        LOG.debug('Patterns for %s are now %s', self._set.command,
                  self._set.patterns)
        self._reporter.debug('Reloaded %s: %d patterns', self._path,
                             len(patterns))
