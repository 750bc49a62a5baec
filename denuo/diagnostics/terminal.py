# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Handle the details of outputting diagnostics to an ASCII, or unicode-aware,
terminal.'''

import argparse
import sys
import unicodedata
from dataclasses import dataclass

from ..basic import Host
from .diagnostic import DiagnosticConsumer


__all__ = ['UnicodeTerminal', 'SourceLine']


class UnicodeTerminal(DiagnosticConsumer):
    '''Write formatted diagnostics to stderr, in a way that they should be suitable for
    display on a Unicode-enabled terminal.
    '''

    DEFAULT_DENUO_COLOURS = (
        'error=1;31:warning=1;35:info=1;36:'
        'path=1:caret=1;32:locus=1;32:quote=1:unprintable=7'
    )

    def __init__(self, env, *, file=None, host=None):
        '''Diagnostics are written to file, with colour formatting information if the
        command line and environment permit.  Source file tabs are space-expanded to the
        given tabstop.'''
        self.file = file or sys.stderr
        self.host = host or Host.host()
        self.nested_indent = 4
        self.terminal_width = 120
        self.tabstop = env.command_line.tabstop
        self.enhancement_codes = {}
        if env.command_line.colours:
            self.enhancement_codes = self.parse_colours(env.variables)
        if self.host.is_a_tty(self.file):
            self.terminal_width = self.host.terminal_width(self.file)

    @classmethod
    def add_arguments(cls, group):
        '''Add command line arguments to the group.'''
        group.add_argument('--tabstop', nargs='?', default=8, type=int)
        group.add_argument('--colours', action=argparse.BooleanOptionalAction, default=True)

    def parse_colours(self, variables):
        '''Parse the DENUO_COLOURS environment variable.'''
        def colour_assignments():
            '''A generator returning colour assignments for specified colour hint names.'''
            if self.host.terminal_supports_colours(variables):
                colours = variables.get('DENUO_COLOURS', self.DEFAULT_DENUO_COLOURS)
                for part in colours.split(':'):
                    vals = part.split('=', maxsplit=1)
                    if len(vals) == 2:
                        yield vals

        return {kind: value for kind, value in colour_assignments()}

    def enhance_text(self, text, kind):
        '''Emit enhanced text if an enhancement has been assigned for the hint kind.'''
        code = self.enhancement_codes.get(kind)
        if code:
            return f'\x1b[{code}m{text}\x1b[0;39m'
        return text

    def emit(self, elaborated_diag):
        '''Emit a diagnostic.'''
        self.emit_recursive(elaborated_diag, 0)

    def emit_recursive(self, elaborated_diag, indent):
        '''Emit the top-level diagnostic at the given indentation level.  Then emit nested
        diagnostics at an increased indentation level.
        '''
        for line in self.diagnostic_lines(elaborated_diag):
            print(f'{" " * indent}{line}', file=self.file)
        for nested in elaborated_diag.nested_diagnostics:
            self.emit_recursive(nested, indent + self.nested_indent)

    def diagnostic_lines(self, elaborated_diag):
        '''Generate all the lines to display for the diagnostic - one for the message, and
        perhaps a source line and its highlight.
        '''
        yield ''.join(self.enhance_text(*part) for part in elaborated_diag.message_parts)

        location = elaborated_diag.location
        if location is not None:
            yield from self.show_highlighted_source(location)

    def show_highlighted_source(self, location):
        '''Generate the source line of the location followed by a line highlighting the
        part of the line at issue.'''
        margin = f'{location.line:5d}'
        margins = margin + ' | ', ' ' * len(margin) + ' | '

        line = SourceLine.from_input(location.input, location.line, self.tabstop)
        start = location.column - 1
        # Highlight to the end of the span or of the line, whichever is first
        end = start + max(location.span.len, 1)
        end = min(end, len(line.out_widths))
        room = self.terminal_width - 1 - len(margins[0])
        text, highlight = self.source_and_highlight_lines(line, start, end, room)
        yield margins[0] + text
        yield margins[1] + highlight

    def source_and_highlight_lines(self, line, start, end, room):
        '''Return a (source_line, highlight_line) pair of strings.  start and end are
        character offsets on the line.'''
        start_col = line.output_column(start)
        end_col = line.output_column(end)
        removed, text = line.truncate(room, start_col)
        start_col -= removed
        end_col -= removed

        def highlight_parts():
            yield ' ' * start_col
            yield self.enhance_text('^', 'caret')
            if end_col > start_col + 1:
                yield self.enhance_text('~' * (end_col - start_col - 1), 'locus')

        return text, ''.join(highlight_parts())


@dataclass(slots=True)
class SourceLine:
    # The source line as printable text.  Unprintable characters are replaced with <U+XXXX>
    # sequences and tabs are replaced with spaces.  There is no terminating newline.
    text: str
    # The width on a terminal of each source character's replacement text
    out_widths: list

    def output_column(self, offset):
        '''Return the terminal column where the source character at offset begins.'''
        return sum(self.out_widths[:offset])

    def truncate(self, max_width, required_column):
        '''Returns (initial output width removed, text).  The text is at most max_width
        wide and includes required_column.'''
        if len(self.text) <= max_width:
            return 0, self.text
        left = max(0, min(required_column - max_width // 2, len(self.text) - max_width))
        return left, self.text[left: left + max_width]

    @classmethod
    def from_input(cls, source, line_number, tabstop=8):
        '''Return a SourceLine object for the indicated line of an Input.'''
        parts = []
        out_widths = []
        column = 0
        for c in source.line_text(line_number):
            if c == '\t':
                out_text = ' ' * (tabstop - column % tabstop)
            elif c.isprintable():
                out_text = c
            else:
                out_text = f'<U+{ord(c):04X}>'
            width = len(out_text)
            if unicodedata.east_asian_width(c) in 'WF':
                width = 2
            parts.append(out_text)
            out_widths.append(width)
            column += width
        return cls(''.join(parts), out_widths)
