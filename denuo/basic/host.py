# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''The host abstraction.  Everything denuocc asks of the operating system, the file system
and the terminal goes through a Host.'''

import abc
import os
import stat
import sys

__all__ = ['Host']


class Host(abc.ABC):
    '''Base class of the host abstraction.'''

    @staticmethod
    def host():
        '''Return an instance of Host.'''
        if os.name == 'posix':
            return HostPosix()
        elif os.name == 'nt':
            return HostWindows()
        else:
            raise RuntimeError('unsupported host')

    def is_a_tty(self, file):
        '''Return True if file is connected to a terminal device.'''
        try:
            return file.isatty()
        except (AttributeError, ValueError):
            return False

    def terminal_width(self, file):
        '''Return the terminal width.'''
        return os.get_terminal_size(file.fileno()).columns

    def terminal_supports_colours(self, variables):
        '''Return True if the environment variables (a dict) indicate that the terminal
        supports colours.
        '''
        term = variables.get('TERM', '')
        if term in 'ansi cygwin linux'.split():
            return True
        if any(term.startswith(prefix) for prefix in 'screen xterm vt100 rxvt'.split()):
            return True
        return term.endswith('color')

    def current_directory(self):
        return os.getcwd()

    def path_dirname(self, path):
        return os.path.dirname(path)

    def path_is_absolute(self, path):
        return os.path.isabs(path)

    def path_join(self, lhs, rhs):
        return os.path.join(lhs, rhs)

    def stat(self, path):
        try:
            return os.stat(path, follow_symlinks=True)
        except (OSError, ValueError):
            return None

    def stat_is_directory(self, stat_result):
        return stat_result is not None and stat.S_ISDIR(stat_result.st_mode)

    def stat_is_regular_file(self, stat_result):
        return stat_result is not None and stat.S_ISREG(stat_result.st_mode)

    def read_file_contents(self, path):
        '''Return the contents of the file at path as text.  Raises OSError if the file
        cannot be read and UnicodeDecodeError if it is not valid UTF-8.'''
        with open(path, 'rb') as f:
            return f.read().decode()

    def read_stdin(self):
        return sys.stdin.read()


class HostPosix(Host):
    pass


class HostWindows(Host):
    pass
