# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Translation phases 1 and 2: trigraph replacement and line splicing.  Both operate on
lists of CharTokens.'''

import logging

from ..basic import TextSpan
from ..diagnostics import DID
from .basic import CharToken


__all__ = ['replace_trigraphs', 'splice_lines', 'TRIGRAPHS']


logger = logging.getLogger(__name__)

# Map the third character of a trigraph to its replacement
TRIGRAPHS = {
    '=': '#',
    ')': ']',
    '!': '|',
    '(': '[',
    "'": '^',
    '>': '}',
    '/': '\\',
    '<': '{',
    '-': '~',
}


def replace_trigraphs(tokens):
    '''Replace each trigraph with its single character.  The replacement's span covers all
    three source characters.'''
    result = []
    count = len(tokens)
    n = 0
    while n < count - 2:
        first = tokens[n]
        if first.value == '?' and tokens[n + 1].value == '?':
            third = tokens[n + 2]
            replacement = TRIGRAPHS.get(third.value)
            if replacement:
                span = TextSpan(first.span.pos, third.span.end - first.span.start)
                result.append(CharToken(replacement, span))
                n += 3
                continue
        result.append(first)
        n += 1

    # Fewer than three characters remain; they cannot form a trigraph
    result.extend(tokens[n:])
    return result


def splice_lines(tokens, tuctx):
    '''Delete every backslash immediately followed by a newline, joining physical source
    lines into logical lines.  Diagnose a file whose last character is a backslash, or
    whose last line is spliced.'''
    result = []
    count = len(tokens)
    n = 0
    while n < count - 1:
        token = tokens[n]
        if token.value == '\\' and tokens[n + 1].value == '\n':
            n += 2
            if n == count:
                tuctx.emit_message(token.span, DID.file_ending_with_backslash)
            continue
        result.append(token)
        n += 1

    if n < count:
        last = tokens[n]
        if last.value == '\\':
            tuctx.emit_message(last.span, DID.file_ending_with_backslash)
        else:
            result.append(last)

    logger.debug('spliced %d characters into %d', count, len(result))
    return result
