import os
import sys
import time

import pytest


posix_only = pytest.mark.skipif(
    sys.platform.startswith('win'),
    reason='Needs POSIX processes and signals')


def touch(path, offset=1):
    """Bump a file's mtime so a change is visible at any timestamp resolution.
    """
    mtime = time.time() + offset
    os.utime(str(path), (mtime, mtime))


class FakeClock(object):
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
