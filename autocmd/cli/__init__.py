"""Command line interface for autocmd.

Usage::

    autocmd [OPTIONS] PATTERN... -- CMD... [--- PATTERN... -- CMD...]

Each ``---`` separated segment declares another command set with its own
patterns.  For example::

    autocmd grammar.y -- goyacc -o grammar.go grammar.y \\
        --- .../*.go -- go build

runs goyacc when grammar.y changes and go build when any .go file
changes, so an edit to grammar.y ends up running both, one tick apart.
"""
import logging
import sys

import click

from typing import List, Optional  # noqa

from autocmd import __version__
from autocmd.commandset import COMMAND_SEPARATOR, parse_command_sets
from autocmd.config import ConfigReloader
from autocmd.errors import FatalConfigError, UsageError
from autocmd.output import Reporter, setup_logging
from autocmd.scheduler import DEFAULT_FREQUENCY, Scheduler
from autocmd.signals import SignalControl
from autocmd.supervisor import DEFAULT_KILL_INTERVAL, DEFAULT_TIMEOUT
from autocmd.supervisor import ProcessSupervisor
from autocmd.utils import OSUtils, parse_duration
from autocmd.watcher.stat import StatFileObserver


LOG = logging.getLogger(__name__)

GO_PATTERN = './.../*.go'
USAGE = ('Usage: autocmd [OPTIONS] PATTERN [...] -- CMD [...] '
         '[--- PATTERN [...] -- CMD [...] ...]')
# click swallows a bare "--" that comes before any positional argument.
_SEPARATOR_PLACEHOLDER = '\x00' + COMMAND_SEPARATOR


class SeparatorCommand(click.Command):
    def parse_args(self, ctx, args):
        args = [_SEPARATOR_PLACEHOLDER if arg == COMMAND_SEPARATOR else arg
                for arg in args]
        try:
            return super(SeparatorCommand, self).parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = UsageError.exit_code
            raise


def _restore_separators(args):
    # type: (List[str]) -> List[str]
    return [COMMAND_SEPARATOR if arg == _SEPARATOR_PLACEHOLDER else arg
            for arg in args]


def build_scheduler(args, go=False, verbose=False, include_git=False,
                    timeout=DEFAULT_TIMEOUT, clear=False,
                    frequency=DEFAULT_FREQUENCY, config=None,
                    kill_interval=DEFAULT_KILL_INTERVAL, reporter=None,
                    control=None, osutils=None):
    # type: (List[str], bool, bool, bool, float, bool, float, Optional[str], float, Optional[Reporter], Optional[SignalControl], Optional[OSUtils]) -> Scheduler
    if not args:
        raise UsageError('no patterns or command given')
    if osutils is None:
        osutils = OSUtils()
    if reporter is None:
        reporter = Reporter(clear=clear or go)
    if control is None:
        control = SignalControl()
    if go:
        if args and args[0] == COMMAND_SEPARATOR:
            args = args[1:]
        args = [GO_PATTERN, COMMAND_SEPARATOR] + list(args)

    def observer_factory(patterns):
        return StatFileObserver(patterns, osutils=osutils, verbose=verbose,
                                include_git=include_git)

    sets = parse_command_sets(args, observer_factory=observer_factory,
                              reporter=reporter,
                              first_patterns_optional=config is not None)
    reloader = None
    if config is not None:
        reloader = ConfigReloader(config, sets[0], osutils=osutils,
                                  reporter=reporter)
        reloader.load()
    supervisor = ProcessSupervisor(reporter=reporter, timeout=timeout,
                                   kill_interval=kill_interval,
                                   on_exit=control.process_exited)
    return Scheduler(sets, supervisor, control, reporter=reporter,
                     frequency=frequency, config_reloader=reloader)


@click.command(cls=SeparatorCommand, context_settings=dict(
    allow_interspersed_args=False,
    help_option_names=['-h', '--help']))
@click.version_option(version=__version__, prog_name='autocmd')
@click.option('--git', 'include_git', is_flag=True,
              help='Do not ignore .git directories expanded by ...')
@click.option('--go', is_flag=True,
              help="Shorthand for '--clear ./.../*.go --'.")
@click.option('-v', '--verbose', is_flag=True, help='Be verbose.')
@click.option('-s', '--silent', is_flag=True, help='Be very very quiet.')
@click.option('-t', '--timeout', default='1h',
              metavar='DUR', help='Set timeout for commands.')
@click.option('-c', '--clear', is_flag=True,
              help='Clear display before executing a command.')
@click.option('--wait', is_flag=True, help='Wait for first change.')
@click.option('-f', '--frequency', default='500ms',
              metavar='DUR', help='Set time to delay between checks.')
@click.option('--config', type=click.Path(dir_okay=False),
              help='Read extra watch patterns for the first set from FILE.')
@click.option('--kill-interval', default='100ms',
              metavar='DUR', help='Set time between kill attempts.')
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
def main(args, include_git, go, verbose, silent, timeout, clear, wait,
         frequency, config, kill_interval):
    """Run a command whenever the files matching PATTERN change."""
    setup_logging(verbose=verbose, quiet=silent)
    try:
        scheduler = build_scheduler(
            _restore_separators(list(args)), go=go, verbose=verbose,
            include_git=include_git,
            timeout=parse_duration(timeout), clear=clear,
            frequency=parse_duration(frequency), config=config,
            kill_interval=parse_duration(kill_interval))
    except UsageError as e:
        click.echo(USAGE, err=True)
        click.echo('Error: %s' % e, err=True)
        sys.exit(e.exit_code)
    except FatalConfigError as e:
        click.echo('Error: %s' % e, err=True)
        sys.exit(e.exit_code)
    scheduler.control.install()
    try:
        rc = scheduler.run(wait=wait)
    except FatalConfigError as e:
        scheduler.shutdown()
        click.echo('Error: %s' % e, err=True)
        rc = e.exit_code
    finally:
        scheduler.control.restore()
    LOG.debug('Exiting with %d', rc)
    sys.exit(rc)
