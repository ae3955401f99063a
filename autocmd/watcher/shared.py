import os
from collections import namedtuple

from typing import Dict, List  # noqa


ADDED = '+'
MODIFIED = '*'
DELETED = '-'
UNCHANGED = '='


class FileFingerprint(namedtuple('FileFingerprint', ['size', 'mtime'])):
    """Size and modification time of a file at one point in time."""

    @classmethod
    def from_stat(cls, st):
        # type: (os.stat_result) -> FileFingerprint
        return cls(size=st.st_size, mtime=st.st_mtime_ns)


ChangeEvent = namedtuple('ChangeEvent', ['kind', 'path'])


class DiffResult(object):
    def __init__(self, changed, events):
        # type: (bool, List[ChangeEvent]) -> None
        self.changed = changed
        self.events = events

    def paths(self, kind):
        # type: (str) -> List[str]
        return [event.path for event in self.events if event.kind == kind]

    def format(self):
        # type: () -> List[str]
        return ['%s %s' % (event.kind, event.path) for event in self.events]


def diff_snapshots(previous, current, verbose=False):
    # type: (Dict[str, FileFingerprint], Dict[str, FileFingerprint], bool) -> DiffResult
    """Compare two snapshots.

    ``current`` is walked in sorted path order, consuming the matching
    entry of ``previous`` as it goes.  Whatever is left of ``previous``
    afterwards has been deleted.  Unless ``verbose`` is set the walk stops
    at the first added or modified path, which is enough to decide that
    the snapshot changed.
    """
    remaining = dict(previous)
    events = []  # type: List[ChangeEvent]
    changed = False
    for path in sorted(current):
        fingerprint = current[path]
        old = remaining.pop(path, None)
        if old is None:
            kind = ADDED
        elif old != fingerprint:
            kind = MODIFIED
        else:
            events.append(ChangeEvent(UNCHANGED, path))
            continue
        events.append(ChangeEvent(kind, path))
        changed = True
        if not verbose:
            return DiffResult(changed, events)
    if remaining:
        changed = True
        if verbose:
            for path in sorted(remaining):
                events.append(ChangeEvent(DELETED, path))
    return DiffResult(changed, events)
