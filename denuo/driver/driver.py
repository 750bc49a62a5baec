# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''The compiler driver.'''

import argparse
import logging
import os
import shlex
import sys
import traceback
from argparse import Namespace
from dataclasses import dataclass

from ..basic import DenuoError, ErrorKind, Host, Input
from ..cpp import TranslationUnit
from ..diagnostics import DiagnosticEngine, UnicodeTerminal
from .session import Session


__all__ = ['Driver', 'Environment', 'main_cli']


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Environment:
    '''The command line and environment variables passed to denuocc.'''
    # Command line arguments
    command_line: Namespace
    # A dictionary of environment variables
    variables: dict


class Driver:
    '''Drives the translation of one or more inputs through a session's passes.

    The exit code of a run is 0 on success, 1 if a source error was diagnosed, 2 for a
    runtime error such as a bad command line or an unreadable file, and 3 for an internal
    error.
    '''

    def __init__(self, session=None, *, host=None):
        self.host = host or Host.host()
        self.session = session
        self.engine = DiagnosticEngine()
        self.units = []

    def parser(self):
        parser = argparse.ArgumentParser(
            prog='denuocc',
            description='The translation-phase front end of a C compiler',
        )

        parser.add_argument('files', metavar='files', nargs='*', default=['-'],
                            help='files to translate; - reads standard input')
        parser.add_argument('-v', dest='verbose', action='count', default=0,
                            help='log progress; repeat for more detail')
        session_group = parser.add_argument_group(title='session')
        diag_group = parser.add_argument_group(title='diagnostics')
        Session.add_arguments(session_group)
        DiagnosticEngine.add_arguments(diag_group)
        UnicodeTerminal.add_arguments(diag_group)
        return parser

    def environment(self, argv, environ):
        parser = self.parser()
        command_line = parser.parse_args(argv)
        environ = os.environ if environ is None else environ
        return Environment(command_line, environ)

    def configure(self, env):
        verbose = env.command_line.verbose
        level = logging.DEBUG if verbose > 1 else logging.INFO if verbose else logging.WARNING
        logging.basicConfig(level=level, stream=sys.stderr,
                            format='%(name)s: %(levelname)s: %(message)s')
        self.session = Session.from_environment(env, self.host)
        self.engine = DiagnosticEngine.from_environment(env)
        self.engine.add_diagnostic_consumer(UnicodeTerminal(env, host=self.host))

    def add_input(self, source):
        if self.session is None:
            self.session = Session(host=self.host)
        unit = TranslationUnit(self.session, source)
        self.units.append(unit)
        return unit

    def add_input_str(self, name, content):
        '''Add a translation unit for in-memory text.'''
        return self.add_input(Input(name, content))

    def add_input_file(self, filename):
        '''Add a translation unit for a file; - reads standard input.'''
        if filename == '-':
            return self.add_input(Input('<stdin>', self.host.read_stdin()))
        try:
            content = self.host.read_file_contents(filename)
        except (OSError, UnicodeDecodeError) as e:
            raise DenuoError(ErrorKind.input_file, filename=filename, error=e) from None
        return self.add_input(Input(filename, content, filename))

    def run_units(self):
        '''Translate every unit added and pass its diagnostics on.  Return the exit code.'''
        exit_code = 0
        for unit in self.units:
            logger.info('translating %s', unit.input.name)
            if not unit.run():
                exit_code = 1
            self.engine.emit(unit.diagnostics)
        self.engine.emit_error_count()
        return exit_code

    def run(self, argv=None, environ=None):
        assert isinstance(argv, (str, list, type(None)))
        if isinstance(argv, str):
            argv = shlex.split(argv)
        elif argv is None:
            argv = sys.argv[1:]
        try:
            env = self.environment(argv, environ)
            self.configure(env)
            for filename in env.command_line.files:
                self.add_input_file(filename)
            return self.run_units()
        except DenuoError as e:
            print(f'denuocc: error: {e.message()}', file=sys.stderr)
            logger.debug('error raised at:\n%s', e.backtrace)
            return 2
        except Exception:
            traceback.print_exc()
            return 3


def main_cli():
    driver = Driver()
    sys.exit(driver.run())
