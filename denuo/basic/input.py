# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Source inputs and positions within them.  Should have no dependencies on other
modules.'''

from bisect import bisect_left
from dataclasses import dataclass


__all__ = ['Input', 'IncludedFrom', 'TextPosition', 'TextSpan']


@dataclass(slots=True, frozen=True)
class TextPosition:
    '''A position in one input.'''
    # The id of the input in its translation unit's input list
    input: int
    # Offset of the character in the input's content
    absolute: int


@dataclass(slots=True, frozen=True)
class TextSpan:
    '''A half-open range of characters within a single input.'''
    pos: TextPosition
    len: int

    @classmethod
    def of(cls, input_id, start, length):
        return cls(TextPosition(input_id, start), length)

    @property
    def input(self):
        return self.pos.input

    @property
    def start(self):
        return self.pos.absolute

    @property
    def end(self):
        return self.pos.absolute + self.len

    def until(self, other):
        '''Return the span from the start of this span to the end of other, which must be
        in the same input.'''
        assert self.input == other.input
        return TextSpan(self.pos, max(other.end - self.start, 0))

    def at_end(self):
        '''Return a zero-width span at the end of this span.'''
        return TextSpan(TextPosition(self.input, self.end), 0)

    def __repr__(self):
        return f'TextSpan({self.input}:{self.start}+{self.len})'


@dataclass(slots=True)
class IncludedFrom:
    '''Records where an included input was included from.'''
    # The including Input
    input: 'Input'
    # Span of the #include directive in the including input
    span: TextSpan


class Input:
    '''An immutable source buffer.  Inputs are created when a source file is read or an
    #include directive resolves, and live as long as their translation unit.
    '''

    def __init__(self, name, content, path=None):
        # The id is assigned when the input is registered with a translation unit
        self.id = 0
        self.name = name
        self.content = content
        # Filesystem path, or None for standard input and in-memory inputs
        self.path = path
        # An IncludedFrom object, or None for the root input
        self.included_from = None
        # Include nesting depth; 0 for the root input
        self.depth = 0
        # Offsets of every '\n' in content, in increasing order
        self.newlines = [n for n, c in enumerate(content) if c == '\n']

    def __repr__(self):
        return f'Input(id={self.id}, name={self.name!r}, depth={self.depth})'

    def get_line_column(self, offset):
        '''Convert an offset into a 1-based (line, column) pair.  A newline character belongs
        to the line it ends.'''
        line_index = bisect_left(self.newlines, offset)
        line_start = self.newlines[line_index - 1] + 1 if line_index else 0
        return line_index + 1, offset - line_start + 1

    def line_count(self):
        return len(self.newlines) + 1

    def line_text(self, line_number):
        '''Return the text of a 1-based line without its newline.'''
        if not 1 <= line_number <= self.line_count():
            raise ValueError(f'line {line_number} out of range')
        start = self.newlines[line_number - 2] + 1 if line_number > 1 else 0
        if line_number <= len(self.newlines):
            end = self.newlines[line_number - 1]
        else:
            end = len(self.content)
        return self.content[start:end]

    def whole_span(self):
        return TextSpan.of(self.id, 0, len(self.content))
