import logging

from typing import Dict, List, Optional  # noqa

from autocmd.utils import OSUtils, expand_pattern, validate_pattern
from autocmd.utils import is_directory_mode
from autocmd.watcher.shared import DiffResult, FileFingerprint
from autocmd.watcher.shared import diff_snapshots


LOG = logging.getLogger(__name__)


class StatFileObserver(object):
    def __init__(self, patterns, osutils=None, verbose=False,
                 include_git=False):
        # type: (List[str], Optional[OSUtils], bool, bool) -> None
        if osutils is None:
            osutils = OSUtils()
        self._osutils = osutils
        self._verbose = verbose
        self._include_git = include_git
        self._patterns = []  # type: List[str]
        self._snapshot = {}  # type: Dict[str, FileFingerprint]
        self.patterns = patterns

    @property
    def patterns(self):
        # type: () -> List[str]
        return list(self._patterns)

    @patterns.setter
    def patterns(self, patterns):
        # type: (List[str]) -> None
        for pattern in patterns:
            validate_pattern(pattern)
        self._patterns = list(patterns)

    @property
    def snapshot(self):
        # type: () -> Dict[str, FileFingerprint]
        return dict(self._snapshot)

    def forget(self):
        # type: () -> None
        self._snapshot = {}

    def take_snapshot(self):
        # type: () -> Dict[str, FileFingerprint]
        matches = []  # type: List[str]
        for pattern in self._patterns:
            for expanded in expand_pattern(pattern, self._osutils,
                                           self._include_git):
                matches.extend(self._osutils.glob(expanded))
        snapshot = {}  # type: Dict[str, FileFingerprint]
        for path in sorted(set(matches)):
            st = self._osutils.stat(path)
            if st is None or is_directory_mode(st.st_mode):
                continue
            snapshot[path] = FileFingerprint.from_stat(st)
        return snapshot

    def check(self):
        # type: () -> DiffResult
        current = self.take_snapshot()
        result = diff_snapshots(self._snapshot, current, self._verbose)
        self._snapshot = current
        LOG.debug('Checked %d files, changed=%s', len(current),
                  result.changed)
        return result
