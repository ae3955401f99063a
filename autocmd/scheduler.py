import logging
import time

from typing import Callable, List, Optional  # noqa

from autocmd.commandset import CommandSet  # noqa
from autocmd.config import ConfigReloader  # noqa
from autocmd.output import Reporter
from autocmd.signals import ControlEvent, SignalControl  # noqa
from autocmd.signals import INTERRUPT_SIGNALS, PROCESS_EXIT, RERUN_SIGNALS
from autocmd.supervisor import ProcessSupervisor  # noqa


LOG = logging.getLogger(__name__)

IDLE = 'idle'
RUNNING = 'running'
OVERDUE = 'overdue'
TERMINATING = 'terminating'

DEFAULT_FREQUENCY = 0.5
QUIT_RC = 0


class Scheduler(object):
    """Drives the command sets on a fixed tick.

    Every tick services queued control events, kills a runaway command,
    reloads the config driven patterns and then evaluates the command
    sets in registration order.  The first set that changed kills whatever
    is still running and starts its own command; the remaining sets wait
    for the next tick.
    """

    def __init__(self, command_sets, supervisor, control, reporter=None,
                 frequency=DEFAULT_FREQUENCY, config_reloader=None,
                 clock=time.time):
        # type: (List[CommandSet], ProcessSupervisor, SignalControl, Optional[Reporter], float, Optional[ConfigReloader], Callable[[], float]) -> None
        if reporter is None:
            reporter = Reporter()
        self._sets = list(command_sets)
        self._supervisor = supervisor
        self._control = control
        self._reporter = reporter
        self._frequency = frequency
        self._config_reloader = config_reloader
        self._clock = clock
        self.state = IDLE
        self.prompting = False

    @property
    def control(self):
        # type: () -> SignalControl
        return self._control

    @property
    def command_sets(self):
        # type: () -> List[CommandSet]
        return list(self._sets)

    def prime(self):
        # type: () -> None
        """Take the initial snapshots without running anything."""
        if self._config_reloader is not None:
            self._config_reloader.check()
        for command_set in self._sets:
            command_set.evaluate()

    def run(self, wait=False):
        # type: (bool) -> int
        if wait:
            self.prime()
        next_tick = self._clock() + self._frequency
        while True:
            wake = next_tick
            active = self._supervisor.active
            if active is not None and not active.is_finished():
                wake = min(wake, active.deadline)
            event = self._control.get(wake - self._clock())
            if event is not None:
                rc = self.handle_event(event)
                if rc is not None:
                    return rc
                continue
            now = self._clock()
            if now < next_tick:
                # Woken by the running command's deadline.
                self._check_deadline()
                continue
            next_tick += self._frequency
            if next_tick <= now:
                # Ticks missed while a kill was in progress are dropped.
                next_tick = now + self._frequency
            rc = self.tick()
            if rc is not None:
                return rc

    def tick(self):
        # type: () -> Optional[int]
        for event in self._control.drain():
            rc = self.handle_event(event)
            if rc is not None:
                return rc
        self._check_deadline()
        if self._config_reloader is not None:
            self._config_reloader.check()
        for command_set in self._sets:
            if command_set.evaluate():
                self._launch(command_set)
                break
        return None

    def handle_event(self, event):
        # type: (ControlEvent) -> Optional[int]
        if event.kind == PROCESS_EXIT:
            self._collect_finished()
            return None
        signum = event.value
        LOG.debug('Received signal %d in state %s', signum, self.state)
        if signum in INTERRUPT_SIGNALS:
            if self.prompting:
                return QUIT_RC
            self._stop_active()
            self.prompting = True
            self._reporter.info('Interrupt again to exit')
            return None
        if signum in RERUN_SIGNALS:
            for command_set in self._sets:
                command_set.forget()
            self._reporter.info('Rerun requested')
            return None
        self._stop_active()
        return QUIT_RC

    def shutdown(self):
        # type: () -> None
        self._stop_active()

    def _collect_finished(self):
        # type: () -> None
        if self._supervisor.release_finished() is not None:
            self.state = IDLE

    def _check_deadline(self):
        # type: () -> None
        self._collect_finished()
        active = self._supervisor.active
        if active is None:
            self.state = IDLE
            return
        if active.is_overdue(self._clock()):
            self.state = OVERDUE
            self._reporter.info('Killing runaway')
            self._supervisor.kill_tree(active)
            self.state = IDLE

    def _stop_active(self):
        # type: () -> None
        active = self._supervisor.active
        if active is None:
            return
        self.state = TERMINATING
        self._reporter.info('Killing old command')
        self._supervisor.kill_tree(active)
        self.state = IDLE

    def _launch(self, command_set):
        # type: (CommandSet) -> None
        self.prompting = False
        if self._supervisor.active is not None:
            self._stop_active()
        self._reporter.clear_screen()
        self._reporter.flush_changes()
        active = command_set.run(self._supervisor)
        if active is None:
            self.state = IDLE
        else:
            self.state = RUNNING
