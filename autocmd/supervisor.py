"""Process supervision: start, reap and descendant-aware kill.

At most one ``ActiveProcess`` exists at a time.  Each one gets a reaper
thread that blocks in ``wait()`` and sets the process' ``finished`` event
when the command exits.  Killing discovers the process tree through the
OS process table at kill time, sends SIGKILL to every member and keeps
retrying on a fixed interval until every pid is confirmed gone.
"""
import logging
import signal
import subprocess
import threading
import time

import psutil

from typing import Callable, List, Optional, Set  # noqa

from autocmd.errors import ProcessDeathError, TransientSpawnError
from autocmd.output import Reporter, format_elapsed


LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3600.0
DEFAULT_KILL_INTERVAL = 0.1


class ProcessTree(object):
    """Platform capability used to find and kill descendants."""

    def list_descendants(self, pid):
        # type: (int) -> List[int]
        raise NotImplementedError('list_descendants')

    def force_kill(self, pid):
        # type: (int) -> None
        raise NotImplementedError('force_kill')

    def is_alive(self, pid):
        # type: (int) -> bool
        raise NotImplementedError('is_alive')


class PsutilProcessTree(ProcessTree):
    """Walks the process table with ``psutil``.

    Zombies count as dead: they hold no resources and whoever owns them
    is the one who must reap them.
    """

    def list_descendants(self, pid):
        # type: (int) -> List[int]
        try:
            children = psutil.Process(pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            return []
        return [child.pid for child in children]

    def force_kill(self, pid):
        # type: (int) -> None
        try:
            psutil.Process(pid).send_signal(signal.SIGKILL)
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            pass
        except psutil.AccessDenied:
            LOG.debug('Not allowed to kill pid %d', pid)

    def is_alive(self, pid):
        # type: (int) -> bool
        try:
            return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            return False


class ActiveProcess(object):
    def __init__(self, popen, argv, start_time, timeout):
        # type: (subprocess.Popen, List[str], float, float) -> None
        self.popen = popen
        self.argv = list(argv)
        self.start_time = start_time
        self.deadline = start_time + timeout
        self.finished = threading.Event()
        self.returncode = None  # type: Optional[int]
        self.reaper = None  # type: Optional[threading.Thread]

    @property
    def pid(self):
        # type: () -> int
        return self.popen.pid

    def is_finished(self):
        # type: () -> bool
        return self.finished.is_set()

    def is_overdue(self, now):
        # type: (float) -> bool
        return not self.is_finished() and now > self.deadline


class ProcessSupervisor(object):
    def __init__(self, reporter=None, timeout=DEFAULT_TIMEOUT,
                 kill_interval=DEFAULT_KILL_INTERVAL, process_tree=None,
                 on_exit=None, clock=time.time, sleep=time.sleep,
                 popen=subprocess.Popen):
        # type: (Optional[Reporter], float, float, Optional[ProcessTree], Optional[Callable[[ActiveProcess], None]], Callable[[], float], Callable[[float], None], Callable[..., subprocess.Popen]) -> None
        if reporter is None:
            reporter = Reporter()
        if process_tree is None:
            process_tree = PsutilProcessTree()
        self._reporter = reporter
        self._timeout = timeout
        self._kill_interval = kill_interval
        self._tree = process_tree
        self._on_exit = on_exit
        self._clock = clock
        self._sleep = sleep
        self._popen = popen
        self._lock = threading.Lock()
        self._active = None  # type: Optional[ActiveProcess]

    @property
    def active(self):
        # type: () -> Optional[ActiveProcess]
        with self._lock:
            return self._active

    def start(self, argv):
        # type: (List[str]) -> Optional[ActiveProcess]
        with self._lock:
            if self._active is not None:
                raise RuntimeError(
                    'pid %d must be killed and reaped before starting %s'
                    % (self._active.pid, argv))
        self._reporter.info('Starting %s', ' '.join(argv))
        try:
            popen = self._popen(argv)
        except OSError as e:
            error = TransientSpawnError(argv, e)
            self._reporter.error('%s', error)
            return None
        active = ActiveProcess(popen, argv, self._clock(), self._timeout)
        reaper = threading.Thread(target=self._reap, args=(active,))
        reaper.daemon = True
        active.reaper = reaper
        with self._lock:
            self._active = active
        reaper.start()
        return active

    def _reap(self, active):
        # type: (ActiveProcess) -> None
        returncode = active.popen.wait()
        active.returncode = returncode
        elapsed = format_elapsed(self._clock() - active.start_time)
        if returncode == 0:
            self._reporter.info('Command exited after %s', elapsed)
        else:
            self._reporter.info('%s after %s',
                                ProcessDeathError(active.argv, returncode),
                                elapsed)
        active.finished.set()
        if self._on_exit is not None:
            self._on_exit(active)

    def wait(self, active=None):
        # type: (Optional[ActiveProcess]) -> Optional[int]
        if active is None:
            active = self.active
        if active is None:
            return None
        active.finished.wait()
        if active.reaper is not None:
            active.reaper.join()
        self._release(active)
        return active.returncode

    def release_finished(self):
        # type: () -> Optional[ActiveProcess]
        """Drop the active handle if its process has exited on its own."""
        active = self.active
        if active is not None and active.is_finished():
            self.wait(active)
            return active
        return None

    def kill_tree(self, active=None):
        # type: (Optional[ActiveProcess]) -> None
        if active is None:
            active = self.active
        if active is None:
            return
        if not active.is_finished():
            self._kill_all(active.pid)
        self.wait(active)

    def _kill_all(self, pid):
        # type: (int) -> None
        pending = set([pid])  # type: Set[int]
        pending.update(self._tree.list_descendants(pid))
        attempt = 0
        while pending:
            attempt += 1
            # Children of a live pid may have been forked since last pass.
            for alive in list(pending):
                pending.update(self._tree.list_descendants(alive))
            for target in sorted(pending):
                self._tree.force_kill(target)
            self._sleep(self._kill_interval)
            pending = set(p for p in pending if self._is_alive(pid, p))
            if pending:
                LOG.debug('Kill attempt %d, still alive: %s', attempt,
                          sorted(pending))

    def _is_alive(self, root, pid):
        # type: (int, int) -> bool
        if pid == root:
            active = self.active
            if active is not None and active.pid == root and \
                    active.is_finished():
                return False
        return self._tree.is_alive(pid)

    def _release(self, active):
        # type: (ActiveProcess) -> None
        with self._lock:
            if self._active is active:
                self._active = None
