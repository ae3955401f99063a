import signal


class AutocmdError(Exception):
    pass


class FatalConfigError(AutocmdError):
    """The watch configuration is unusable and the process must exit."""
    exit_code = 1


class UsageError(FatalConfigError):
    pass


class GlobPatternError(FatalConfigError):
    def __init__(self, pattern, reason):
        # type: (str, str) -> None
        super(GlobPatternError, self).__init__(
            'syntax error in pattern %r: %s' % (pattern, reason))
        self.pattern = pattern
        self.reason = reason


class ConfigFileError(FatalConfigError):
    pass


class TransientSpawnError(AutocmdError):
    """The command could not be started, the next change will retry."""
    def __init__(self, argv, error):
        # type: (list, OSError) -> None
        super(TransientSpawnError, self).__init__(
            'unable to start %s: %s' % (' '.join(argv), error))
        self.argv = argv
        self.error = error


class ProcessDeathError(AutocmdError):
    def __init__(self, argv, returncode):
        # type: (list, int) -> None
        self.argv = argv
        self.returncode = returncode
        super(ProcessDeathError, self).__init__(self._describe())

    def _describe(self):
        # type: () -> str
        if self.returncode < 0:
            return 'Command died with signal %s' % _signal_name(
                -self.returncode)
        return 'Command died with exit status %d' % self.returncode


class ConfigParseWarning(AutocmdError):
    def __init__(self, path, lineno, line, reason):
        # type: (str, int, str, str) -> None
        super(ConfigParseWarning, self).__init__(
            '%s:%d: %s: %r' % (path, lineno, reason, line))
        self.path = path
        self.lineno = lineno


def _signal_name(signum):
    # type: (int) -> str
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)
