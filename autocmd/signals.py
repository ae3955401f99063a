import logging
import queue
import signal

from collections import namedtuple

from typing import Dict, List, Optional  # noqa


LOG = logging.getLogger(__name__)

SIGNAL = 'signal'
PROCESS_EXIT = 'exit'

ControlEvent = namedtuple('ControlEvent', ['kind', 'value'])


def _available(names):
    # type: (List[str]) -> List[int]
    return [getattr(signal, name) for name in names if hasattr(signal, name)]


INTERRUPT_SIGNALS = _available(['SIGINT'])
RERUN_SIGNALS = _available(['SIGTSTP'])
QUIT_SIGNALS = _available(['SIGHUP', 'SIGQUIT', 'SIGTERM', 'SIGABRT'])
HANDLED_SIGNALS = INTERRUPT_SIGNALS + RERUN_SIGNALS + QUIT_SIGNALS


class SignalControl(object):
    """Funnels OS signals and process exits into one control queue.

    Handlers only enqueue; the scheduler drains the queue from its own
    thread, so nothing is ever mutated from signal context.  The queue is
    a ``SimpleQueue`` because ``put`` has to be reentrant when it is
    called from a signal handler that interrupted a blocked ``get``.
    """

    def __init__(self, events=None, signal_module=signal):
        # type: (Optional[queue.SimpleQueue], object) -> None
        if events is None:
            events = queue.SimpleQueue()
        self.events = events
        self._signal = signal_module
        self._previous = {}  # type: Dict[int, object]

    def install(self, signums=None):
        # type: (Optional[List[int]]) -> None
        if signums is None:
            signums = HANDLED_SIGNALS
        for signum in signums:
            self._previous[signum] = self._signal.signal(
                signum, self._handle)
        LOG.debug('Handling signals %s', signums)

    def restore(self):
        # type: () -> None
        for signum, handler in self._previous.items():
            self._signal.signal(signum, handler)
        self._previous = {}

    def _handle(self, signum, frame):
        self.deliver(signum)

    def deliver(self, signum):
        # type: (int) -> None
        self.events.put(ControlEvent(SIGNAL, signum))

    def process_exited(self, active):
        # type: (object) -> None
        self.events.put(ControlEvent(PROCESS_EXIT, active))

    def get(self, timeout):
        # type: (float) -> Optional[ControlEvent]
        if timeout <= 0:
            return self.get_nowait()
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None

    def get_nowait(self):
        # type: () -> Optional[ControlEvent]
        try:
            return self.events.get_nowait()
        except queue.Empty:
            return None

    def drain(self):
        # type: () -> List[ControlEvent]
        events = []
        while True:
            event = self.get_nowait()
            if event is None:
                return events
            events.append(event)
