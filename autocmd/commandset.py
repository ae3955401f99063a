from typing import List, Optional  # noqa

from autocmd.errors import UsageError
from autocmd.output import Reporter  # noqa
from autocmd.watcher.stat import StatFileObserver


COMMAND_SEPARATOR = '--'
SET_SEPARATOR = '---'


class CommandSet(object):
    """A list of watch patterns bound to the command they trigger."""

    def __init__(self, patterns, command, observer=None, reporter=None):
        # type: (List[str], List[str], Optional[StatFileObserver], Optional[Reporter]) -> None
        if observer is None:
            observer = StatFileObserver(patterns)
        self.command = list(command)
        self._observer = observer
        self._reporter = reporter

    @property
    def patterns(self):
        # type: () -> List[str]
        return self._observer.patterns

    @patterns.setter
    def patterns(self, patterns):
        # type: (List[str]) -> None
        self._observer.patterns = patterns

    @property
    def snapshot(self):
        return self._observer.snapshot

    def evaluate(self):
        # type: () -> bool
        result = self._observer.check()
        if self._reporter is not None:
            self._reporter.record_changes(result.format())
        return result.changed

    def forget(self):
        # type: () -> None
        self._observer.forget()

    def run(self, supervisor):
        """Start this set's command, returning the ActiveProcess or None."""
        return supervisor.start(self.command)

    def __repr__(self):
        return 'CommandSet(patterns=%r, command=%r)' % (
            self.patterns, self.command)


def split_command_sets(args):
    # type: (List[str]) -> List[tuple]
    """Split ``PATTERN... -- CMD... [--- PATTERN... -- CMD...]``.

    Returns a list of ``(patterns, command)`` pairs, one per set.
    """
    pairs = []
    remaining = list(args)
    while True:
        if COMMAND_SEPARATOR not in remaining:
            raise UsageError('missing %s between patterns and command'
                             % COMMAND_SEPARATOR)
        index = remaining.index(COMMAND_SEPARATOR)
        patterns, command = remaining[:index], remaining[index + 1:]
        for pattern in patterns:
            if pattern.startswith('-'):
                raise UsageError('unknown option %s' % pattern)
        rest = None
        if SET_SEPARATOR in command:
            index = command.index(SET_SEPARATOR)
            command, rest = command[:index], command[index + 1:]
        if not command:
            raise UsageError('no command given for patterns %s'
                             % ' '.join(patterns))
        pairs.append((patterns, command))
        if rest is None:
            return pairs
        remaining = rest


def parse_command_sets(args, observer_factory=None, reporter=None,
                       first_patterns_optional=False):
    # type: (List[str], Optional[callable], Optional[Reporter], bool) -> List[CommandSet]
    if observer_factory is None:
        observer_factory = StatFileObserver
    sets = []
    for i, (patterns, command) in enumerate(split_command_sets(args)):
        if not patterns and not (i == 0 and first_patterns_optional):
            raise UsageError('no patterns given for command %s'
                             % ' '.join(command))
        sets.append(CommandSet(patterns, command,
                               observer=observer_factory(patterns),
                               reporter=reporter))
    return sets
