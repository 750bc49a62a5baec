# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Sessions.  A session holds what is shared by every translation unit of a compilation:
the passes to run and the include file resolver.'''

from ..basic import Host
from ..cpp import FileManager
from .passes import DEFAULT_PASSES, parse_passes


__all__ = ['Session']


class Session:

    def __init__(self, passes=None, *, extra_files=None, host=None):
        '''passes is a list of pass flags; the default pipeline is used if it is None.
        extra_files maps header names to their contents.'''
        self.host = host or Host.host()
        self.passes = parse_passes(DEFAULT_PASSES if passes is None else passes)
        self.file_manager = FileManager(self.host, extra_files)

    @classmethod
    def add_arguments(cls, group):
        '''Add command line arguments to the group.'''
        group.add_argument('--pass', dest='passes', metavar='PASS', action='append',
                           help='a pass to run, NAME or NAME(ARG,...); several may be '
                           'separated with ";"')
        FileManager.add_arguments(group)

    @classmethod
    def from_environment(cls, env, host=None):
        session = cls(env.command_line.passes, host=host)
        session.file_manager.configure(env)
        return session

    def add_extra_file(self, name, contents):
        self.file_manager.add_extra_file(name, contents)
