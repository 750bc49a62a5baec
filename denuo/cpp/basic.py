# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#

'''Basic definitions needed by all the translation phases, that don't depend on other
objects.

Should not import other cpp modules.
'''

from dataclasses import dataclass
from enum import IntEnum, auto

from ..basic import TextSpan


__all__ = [
    'CharToken', 'PPTokenKind', 'PPToken', 'MacroResult', 'chartokens_from_input',
    'chartokens_to_string', 'is_source_origin', 'trim_whitespace', 'filter_whitespace',
    'tokens_to_string', 'loose_equal', 'assert_loose_equal',
]


@dataclass(slots=True)
class CharToken:
    '''A character of source text with the span it was read from.  After trigraph
    replacement the span of a single character can cover three source characters.'''
    value: str
    span: TextSpan


def chartokens_from_input(source):
    '''Return a list of CharTokens, one per character of an Input's content.'''
    input_id = source.id
    return [CharToken(c, TextSpan.of(input_id, n, 1)) for n, c in enumerate(source.content)]


def chartokens_to_string(tokens):
    return ''.join(token.value for token in tokens)


class PPTokenKind(IntEnum):
    EOF = auto()                         # end-of-file
    WHITESPACE = auto()                  # spaces, tabs, newlines and comments
    IDENTIFIER = auto()                  # abc
    IDENTIFIER_NON_EXPANDABLE = auto()   # an identifier painted blue
    NUMBER = auto()                      # 1.2f
    CHARACTER_CONSTANT = auto()          # 'c'
    STRING_LITERAL = auto()              # "str"
    PUNCTUATOR = auto()                  # += ...
    OTHER = auto()                       # a character that is not another token

    def __str__(self):
        return token_kind_names[self]


token_kind_names = {
    PPTokenKind.EOF: 'end-of-file',
    PPTokenKind.WHITESPACE: 'whitespace',
    PPTokenKind.IDENTIFIER: 'identifier',
    PPTokenKind.IDENTIFIER_NON_EXPANDABLE: 'identifier',
    PPTokenKind.NUMBER: 'number',
    PPTokenKind.CHARACTER_CONSTANT: 'character-constant',
    PPTokenKind.STRING_LITERAL: 'string-literal',
    PPTokenKind.PUNCTUATOR: 'punctuator',
    PPTokenKind.OTHER: 'other',
}

identifier_kinds = {PPTokenKind.IDENTIFIER, PPTokenKind.IDENTIFIER_NON_EXPANDABLE}


def is_source_origin(origin):
    '''A token origin is either a TextSpan in an input or a MacroResult.'''
    return isinstance(origin, TextSpan)


@dataclass(slots=True, frozen=True)
class MacroResult:
    '''The expansion coordinate of a token produced by macro expansion.

    in_index below ARGUMENT_LIMIT is an index into the invocation's argument tokens,
    counting across parameters in order and then __VA_ARGS__.  Otherwise in_index -
    ARGUMENT_LIMIT is an index into the macro's replacement list.
    '''
    # Index into the translation unit's macro invocation log
    invocation: int
    in_index: int
    # Position in the expansion's output, or NOT_PLACED
    out_index: int = 0xFFFF

    ARGUMENT_LIMIT = 0x8000
    NOT_PLACED = 0xFFFF

    @classmethod
    def new_param(cls, invocation, index):
        assert index < cls.ARGUMENT_LIMIT
        return cls(invocation, index)

    @classmethod
    def new_body(cls, invocation, index):
        assert index < cls.ARGUMENT_LIMIT
        return cls(invocation, cls.ARGUMENT_LIMIT + index)

    def is_param(self):
        return self.in_index < self.ARGUMENT_LIMIT

    def placed(self, out_index):
        return MacroResult(self.invocation, self.in_index, out_index)

    def origin(self, tuctx):
        '''Return the origin of the token this result was copied from: the argument token's
        origin, or that of the replacement list token in the macro definition.'''
        invocation = tuctx.macro_invocations[self.invocation]
        if self.is_param():
            return invocation.argument_token(self.in_index).origin
        return invocation.definition.replacement[self.in_index - self.ARGUMENT_LIMIT].origin

    def root_span(self, tuctx):
        '''Return the source span of the outermost macro use this result derives from.'''
        origin = tuctx.macro_invocations[self.invocation].name.origin
        while not is_source_origin(origin):
            origin = tuctx.macro_invocations[origin.invocation].name.origin
        return origin


@dataclass(slots=True, eq=False)
class PPToken:
    '''A preprocessing token.  origin is a TextSpan for tokens lexed from an input, or a
    MacroResult for tokens produced by macro expansion.  Equality ignores the origin and
    the hide set.'''
    kind: PPTokenKind
    value: str
    origin: object
    # Names of the macros whose expansion produced this token
    hide_set: frozenset = frozenset()

    def __eq__(self, other):
        if not isinstance(other, PPToken):
            return NotImplemented
        if self.value != other.value:
            return False
        return self.kind == other.kind or (self.kind in identifier_kinds
                                           and other.kind in identifier_kinds)

    def __repr__(self):
        return f'PPToken({self.kind.name}, {self.value!r}, {self.origin!r})'

    def with_origin(self, origin):
        return PPToken(self.kind, self.value, origin, self.hide_set)

    def is_ident(self):
        return self.kind in identifier_kinds

    def is_expandable(self):
        return self.kind == PPTokenKind.IDENTIFIER

    def is_whitespace(self):
        return self.kind == PPTokenKind.WHITESPACE

    def is_newline(self):
        return self.kind == PPTokenKind.WHITESPACE and self.value == '\n'

    def is_whitespace_not_newline(self):
        return self.kind == PPTokenKind.WHITESPACE and self.value != '\n'

    def is_eof(self):
        return self.kind == PPTokenKind.EOF

    def is_punct(self, value):
        return self.kind == PPTokenKind.PUNCTUATOR and self.value == value

    def root_span(self, tuctx):
        '''Return the source span of this token, or of its outermost macro use.'''
        if is_source_origin(self.origin):
            return self.origin
        return self.origin.root_span(tuctx)


def trim_whitespace(tokens):
    '''Return a copy of tokens without leading and trailing whitespace.'''
    start = 0
    end = len(tokens)
    while start < end and tokens[start].is_whitespace():
        start += 1
    while end > start and tokens[end - 1].is_whitespace():
        end -= 1
    return tokens[start:end]


def filter_whitespace(tokens):
    return [token for token in tokens if not token.is_whitespace()]


def tokens_to_string(tokens):
    return ''.join(token.value for token in tokens)


def loose_equal(lhs, rhs):
    '''Return True if the token lists are equal ignoring whitespace.  End-of-file tokens
    take part in the comparison.'''
    return filter_whitespace(lhs) == filter_whitespace(rhs)


def assert_loose_equal(lhs, rhs):
    if not loose_equal(lhs, rhs):
        raise AssertionError(f'token lists differ:\n  {tokens_to_string(lhs)!r}\n'
                             f'  {tokens_to_string(rhs)!r}')
