# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Translation phase 3: categorize characters into preprocessing tokens.

Each rule of the table is tried at the current position.  The longest match wins, and
a tie goes to the rule listed later, so punctuators outrank "other" characters.
'''

import logging
import re

from ..basic import TextSpan
from ..diagnostics import DID
from .basic import PPToken, PPTokenKind, chartokens_to_string


__all__ = ['Lexer', 'lex', 'lex_one_token', 'PUNCTUATORS']


logger = logging.getLogger(__name__)


# Longer punctuators must precede their prefixes
PUNCTUATORS = [
    '[', ']', '(', ')', '{', '}', '->', '++', '--', '<=', '>=', '==', '!=', '&&', '||',
    '?', ';', '...', '*=', '/=', '%=', '+=', '-=', '<<=', '>>=', '&=', '^=', '|=', ',',
    '##', '#', '<:', ':>', '<%', '%>', '%:%:', '%:', '<<', '>>', '<', '>', '!', ':', '&',
    '*', '+', '-', '~', '/', '%', '^', '|', '=', '.',
]

TOKEN_RULES = [
    (r'.', PPTokenKind.OTHER),
    (r'[ \f\r\t\v]+|\n', PPTokenKind.WHITESPACE),
    (r'//[^\n]*|/\*.*?\*/', PPTokenKind.WHITESPACE),
    (r'[A-Za-z_][A-Za-z0-9_]*', PPTokenKind.IDENTIFIER),
    (r'\.?[0-9]([eEpP][+-]|[A-Za-z0-9_]|\.)*', PPTokenKind.NUMBER),
    (r"[LuU]?'([^'\\\n]|\\'|\\)*?'", PPTokenKind.CHARACTER_CONSTANT),
    (r'(u8|u|U|L)?"([^"\\\n]|\\"|\\)*?"', PPTokenKind.STRING_LITERAL),
    ('|'.join(re.escape(punctuator) for punctuator in PUNCTUATORS), PPTokenKind.PUNCTUATOR),
]

compiled_rules = [(re.compile(pattern, re.DOTALL), kind) for pattern, kind in TOKEN_RULES]


def lex_one_token(text, pos=0):
    '''Categorize the token of text starting at pos, which must be before the end of text.
    Return a pair (length, kind).'''
    best_length = 0
    best_kind = None
    for regex, kind in compiled_rules:
        match = regex.match(text, pos)
        if match:
            length = match.end() - pos
            # Ties go to the later rule
            if length >= best_length:
                best_length = length
                best_kind = kind
    assert best_kind is not None
    return best_length, best_kind


class Lexer:
    '''Converts the CharTokens of one input into PPTokens.'''

    def __init__(self, tuctx, source):
        self.tuctx = tuctx
        # The Input being lexed
        self.source = source

    def lex(self, chartokens):
        '''Return a list of PPTokens ending with a single end-of-file token.'''
        text = chartokens_to_string(chartokens)
        limit = len(text)
        result = []
        cursor = 0

        while cursor < limit:
            length, kind = lex_one_token(text, cursor)
            first = chartokens[cursor]
            last = chartokens[cursor + length - 1]
            value = text[cursor: cursor + length]
            cursor += length

            if kind == PPTokenKind.OTHER and value in ('\'', '"'):
                # A terminated literal would have matched its own rule
                self.tuctx.emit_message(first.span, DID.missing_terminator, [value])
                # Resynchronize at the next newline
                while cursor < limit and text[cursor] != '\n':
                    cursor += 1
                continue

            # Characters may have a span greater than one because of trigraphs and splices
            span = TextSpan(first.span.pos, last.span.end - first.span.start)
            result.append(PPToken(kind, value, span))

        if result:
            eof_span = result[-1].origin
        else:
            eof_span = TextSpan.of(self.source.id, 0, 0)
        result.append(PPToken(PPTokenKind.EOF, '', eof_span))

        logger.debug('lexed %d tokens from %s', len(result), self.source.name)
        return result


def lex(tuctx, chartokens, source):
    '''Lex the CharTokens of an Input.'''
    return Lexer(tuctx, source).lex(chartokens)
