import logging
import sys

from typing import IO, List, Optional  # noqa


LOGGER_NAME = 'autocmd'
LOG_FORMAT = '%(asctime)s %(message)s'
CLEAR_SCREEN = '\033[H\033[2J\033[3J'


def setup_logging(verbose=False, quiet=False, stream=None):
    # type: (bool, bool, Optional[IO[str]]) -> logging.Logger
    if stream is None:
        stream = sys.stdout
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)
    return logger


class Reporter(object):
    """Sink for everything the user gets to see.

    Normal messages go out at INFO, verbose ones at DEBUG, so the level of
    the underlying logger decides what ``--silent`` and ``--verbose`` show.
    Change logs are held back until the set that produced them actually
    runs its command.
    """

    def __init__(self, logger=None, clear=False, stream=None):
        # type: (Optional[logging.Logger], bool, Optional[IO[str]]) -> None
        if logger is None:
            logger = logging.getLogger(LOGGER_NAME)
        if stream is None:
            stream = sys.stdout
        self._logger = logger
        self._clear = clear
        self._stream = stream
        self._pending_changes = []  # type: List[str]

    @property
    def verbose(self):
        # type: () -> bool
        return self._logger.isEnabledFor(logging.DEBUG)

    def info(self, msg, *args):
        # type: (str, *object) -> None
        self._logger.info(msg, *args)

    def debug(self, msg, *args):
        # type: (str, *object) -> None
        self._logger.debug(msg, *args)

    def warning(self, msg, *args):
        # type: (str, *object) -> None
        self._logger.warning(msg, *args)

    def error(self, msg, *args):
        # type: (str, *object) -> None
        self._logger.error(msg, *args)

    def record_changes(self, lines):
        # type: (List[str]) -> None
        self._pending_changes = list(lines)

    def flush_changes(self):
        # type: () -> None
        lines, self._pending_changes = self._pending_changes, []
        if self.verbose:
            for line in lines:
                self.debug('%s', line)

    def clear_screen(self):
        # type: () -> None
        if self._clear:
            self._stream.write(CLEAR_SCREEN)
            self._stream.flush()


def format_elapsed(seconds):
    # type: (float) -> str
    if seconds < 1:
        return '%dms' % (seconds * 1000)
    if seconds < 60:
        return '%.2fs' % seconds
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return '%dm%02ds' % (minutes, seconds)
    hours, minutes = divmod(minutes, 60)
    return '%dh%02dm%02ds' % (hours, minutes, seconds)
