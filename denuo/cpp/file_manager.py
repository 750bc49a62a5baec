# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''The file manager.'''

import logging
from dataclasses import dataclass
from enum import IntEnum, auto

from ..basic import Input


__all__ = ['FileManager', 'DirectoryKind']


logger = logging.getLogger(__name__)


class DirectoryKind(IntEnum):
    quoted = auto()
    angled = auto()
    system = auto()


@dataclass(slots=True)
class IncludeDirectory:
    '''This describes a directory on a search path.'''
    path: str
    kind: DirectoryKind
    exists: bool


@dataclass(slots=True)
class SearchResult:
    '''This describes the result of a header search.'''
    # The include directory it was found in.  None for extra files and absolute header
    # names.
    directory: IncludeDirectory
    # The header name as written in the #include directive
    name: str
    # The path of the header file found, or None for an extra file
    path: str


class FileManager:
    '''The file manager maintains the include file search paths and the extra files, and
    looks up header names.

    Extra files are named in-memory pseudo-files.  They are searched before any directory
    for both quoted and angled header names.  A quoted header name is then searched for in
    the directory of the including file, then the -iquote directories, and finally as an
    angled header name in the -I and -isystem directories.
    '''
    def __init__(self, host, extra_files=None):
        self.host = host
        # Map from header name to file contents
        self.extra_files = dict(extra_files or {})
        # Lists of include directories
        self.user_quoted = []       # -iquote.   for "" searches only
        self.user_angled = []       # -I.  <> searches start here
        self.user_system = []       # -isystem
        # Cache.  Map from a search key to a SearchResult or None
        self.cache = {}

    @classmethod
    def add_arguments(cls, group):
        '''Add command line arguments to the group.'''
        group.add_argument('-I', dest='angled_dirs', metavar='DIR', action='append',
                           default=[], help='add a directory to the angled include path')
        group.add_argument('-iquote', dest='quoted_dirs', metavar='DIR', action='append',
                           default=[], help='add a directory to the quoted include path')
        group.add_argument('-isystem', dest='system_dirs', metavar='DIR', action='append',
                           default=[], help='add a directory to the system include path')

    def configure(self, env):
        command_line = env.command_line
        for path in command_line.quoted_dirs:
            self.add_search_path(path, DirectoryKind.quoted)
        for path in command_line.angled_dirs:
            self.add_search_path(path, DirectoryKind.angled)
        for path in command_line.system_dirs:
            self.add_search_path(path, DirectoryKind.system)

    def add_extra_file(self, name, contents):
        self.extra_files[name] = contents

    def add_search_path(self, path, kind):
        '''Add path to the include search path list for kind, a DirectoryKind.'''
        if kind == DirectoryKind.quoted:
            dir_list = self.user_quoted
        elif kind == DirectoryKind.angled:
            dir_list = self.user_angled
        else:
            dir_list = self.user_system

        stat_result = self.host.stat(path)
        exists = self.host.stat_is_directory(stat_result)
        if not exists:
            logger.warning('include directory %s does not exist', path)
        dir_list.append(IncludeDirectory(path, kind, exists))
        self.cache.clear()

    def cache_lookup(self, search_key, search_cache_miss):
        result = self.cache.get(search_key, False)
        if result is False:
            result = search_cache_miss(search_key[0])
            self.cache[search_key] = result
        return result

    def lookup_in_directory(self, header_name, directory):
        if directory:
            path = self.host.path_join(directory.path, header_name)
        else:
            path = header_name

        # Only accept regular files
        stat_result = self.host.stat(path)
        if not self.host.stat_is_regular_file(stat_result):
            return None
        logger.debug('found %s at %s', header_name, path)
        return SearchResult(directory, header_name, path)

    def search_directory(self, header_name, directory):
        if directory and not directory.exists:
            return None
        return self.lookup_in_directory(header_name, directory)

    def search_directory_lists(self, header_name, dir_lists):
        for dir_list in dir_lists:
            for directory in dir_list:
                result = self.search_directory(header_name, directory)
                if result:
                    return result
        return None

    #
    # Absolute filenames
    #

    def search_absolute_cache_miss(self, header_name):
        return self.search_directory(header_name, None)

    def search_absolute(self, header_name):
        return self.cache_lookup((header_name, DirectoryKind.system, None),
                                 self.search_absolute_cache_miss)

    #
    # Angled headers
    #

    def search_angled_cache_miss(self, header_name):
        return self.search_directory_lists(header_name, [self.user_angled, self.user_system])

    def search_angled_header(self, header_name):
        if self.host.path_is_absolute(header_name):
            return self.search_absolute(header_name)
        return self.cache_lookup((header_name, DirectoryKind.angled, None),
                                 self.search_angled_cache_miss)

    #
    # Quoted headers
    #

    def search_quoted_dirlists_cache_miss(self, header_name):
        # Try quoted header directory list
        result = self.search_directory_lists(header_name, [self.user_quoted])
        if result:
            return result
        # Finally, search as an angled header
        return self.search_angled_header(header_name)

    def search_quoted_header(self, header_name, including):
        '''Search for a quoted header name.  including is the Input containing the
        #include directive.'''
        if self.host.path_is_absolute(header_name):
            return self.search_absolute(header_name)

        # Search in the directory of the including file; inputs without a path are taken
        # to be in the current directory
        if including.path is None:
            dirname = self.host.current_directory()
        else:
            dirname = self.host.path_dirname(including.path)

        def search_quoted_cache_miss(header_name):
            directory = IncludeDirectory(dirname, DirectoryKind.quoted, True)
            result = self.search_directory(header_name, directory)
            if result:
                return result
            return self.cache_lookup((header_name, DirectoryKind.quoted, None),
                                     self.search_quoted_dirlists_cache_miss)

        return self.cache_lookup((header_name, DirectoryKind.quoted, dirname),
                                 search_quoted_cache_miss)

    def search(self, header_name, system, including):
        '''Look up a header name.  system is True for an angled name.  Return a
        SearchResult, or None if the header cannot be found.'''
        if header_name in self.extra_files:
            return SearchResult(None, header_name, None)
        if system:
            return self.search_angled_header(header_name)
        return self.search_quoted_header(header_name, including)

    def read_input(self, search_result):
        '''Return a new Input for a search result, or None if the file cannot be read.'''
        if search_result.path is None:
            return Input(search_result.name, self.extra_files[search_result.name])
        try:
            contents = self.host.read_file_contents(search_result.path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning('cannot read %s: %s', search_result.path, e)
            return None
        return Input(search_result.name, contents, search_result.path)

    def find_input(self, header_name, system, including):
        '''Search for and read a header.  Return an Input or None.'''
        search_result = self.search(header_name, system, including)
        if search_result is None:
            logger.info('header %s not found', header_name)
            return None
        return self.read_input(search_result)
