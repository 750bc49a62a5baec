# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Translation phases 5 and 6: escape sequences in character constants and string
literals, and concatenation of adjacent string literals.'''

import logging
from dataclasses import dataclass
from enum import Enum

from ..diagnostics import DID
from .basic import PPToken, PPTokenKind


__all__ = [
    'Encoding', 'SIMPLE_ESCAPES', 'unescape', 'unescape_token', 'translate_escapes',
    'concatenate', 'split_literal',
]


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class EncodingInfo:
    prefix: str
    # Size in bytes of one element
    size_bytes: int
    # The C type of an element
    type_str: str
    # Name shown in diagnostics
    name: str


class Encoding(Enum):
    '''The encoding prefix of a character constant or string literal.'''
    DEFAULT = EncodingInfo('', 1, 'unsigned char', 'default')
    UTF8 = EncodingInfo('u8', 1, 'unsigned char', 'utf-8')
    CHAR16 = EncodingInfo('u', 2, 'char16_t', 'universal 16')
    CHAR32 = EncodingInfo('U', 4, 'char32_t', 'universal 32')
    WCHAR = EncodingInfo('L', 4, 'wchar_t', 'wide')

    @classmethod
    def from_prefix(cls, prefix):
        return encodings_by_prefix[prefix]

    @property
    def prefix(self):
        return self.value.prefix

    @property
    def size_bytes(self):
        return self.value.size_bytes

    @property
    def type_str(self):
        return self.value.type_str

    def combine(self, other):
        '''Return the encoding of a concatenation of a literal of this encoding followed by
        one of the other encoding, or None if they are incompatible.'''
        if self is Encoding.DEFAULT:
            return other
        if other is Encoding.DEFAULT or other is self:
            return self
        return None

    def __str__(self):
        return self.value.name


encodings_by_prefix = {encoding.prefix: encoding for encoding in Encoding}

SIMPLE_ESCAPES = {
    '\\': '\\',
    '?': '?',
    "'": "'",
    '"': '"',
    'a': '\a',
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
    'v': '\v',
}

OCTAL_DIGITS = set('01234567')
HEX_DIGITS = set('0123456789abcdefABCDEF')


def split_literal(value, delimiter):
    '''Split the spelling of a character constant or string literal into a pair (prefix,
    contents) where contents excludes the delimiters.'''
    start = value.index(delimiter)
    return value[:start], value[start + 1: -1]


class EscapeTranslator:
    '''Translates the escape sequences of one literal's contents, diagnosing invalid
    ones.  An invalid escape sequence is kept as written.'''

    def __init__(self, tuctx, origin, encoding):
        self.tuctx = tuctx
        self.origin = origin
        self.encoding = encoding

    def diag(self, did, args=None):
        self.tuctx.emit_message(self.origin, did, args)

    def digits(self, text, cursor, valid_digits, max_len):
        '''Return the run of digits starting at cursor, at most max_len long.'''
        end = cursor
        limit = len(text) if max_len is None else min(len(text), cursor + max_len)
        while end < limit and text[end] in valid_digits:
            end += 1
        return text[cursor:end]

    def numeric_escape(self, prefix, digits):
        '''Return the character of a numeric escape, or None if it is invalid.  prefix is
        the letter after the backslash, or '' for octal escapes.'''
        if not digits:
            self.diag(DID.escape_empty)
            return None
        if prefix in ('u', 'U'):
            expected = 4 if prefix == 'u' else 8
            if len(digits) < expected:
                self.diag(DID.escape_incomplete, [expected, prefix, len(digits)])
                return None
        elif prefix == 'x' and len(digits) > self.encoding.size_bytes * 2:
            self.diag(DID.escape_out_of_range, [prefix, digits, self.encoding.type_str])
            return None

        value = int(digits, 8 if prefix == '' else 16)
        if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
            self.diag(DID.escape_invalid, [prefix, digits])
            return None
        return chr(value)

    def translate(self, text):
        '''Return the translated contents, or None if text has no escape sequences.'''
        if '\\' not in text:
            return None

        parts = []
        cursor = 0
        limit = len(text)
        while cursor < limit:
            c = text[cursor]
            cursor += 1
            if c != '\\':
                parts.append(c)
                continue

            start = cursor - 1
            if cursor == limit:
                self.diag(DID.escape_empty)
                parts.append(c)
                continue

            c = text[cursor]
            if c in ('x', 'u', 'U'):
                max_len = {'x': None, 'u': 4, 'U': 8}[c]
                digits = self.digits(text, cursor + 1, HEX_DIGITS, max_len)
                cursor += 1 + len(digits)
                result = self.numeric_escape(c, digits)
            elif c in OCTAL_DIGITS:
                digits = self.digits(text, cursor, OCTAL_DIGITS, 3)
                cursor += len(digits)
                result = self.numeric_escape('', digits)
            else:
                cursor += 1
                result = SIMPLE_ESCAPES.get(c)
                if result is None:
                    self.diag(DID.escape_unrecognized, [c])

            parts.append(text[start:cursor] if result is None else result)

        return ''.join(parts)


def translate_escapes(tuctx, text, origin, encoding):
    '''Translate the escape sequences in the contents of a literal.  Returns None if there
    were none.'''
    return EscapeTranslator(tuctx, origin, encoding).translate(text)


def unescape_token(tuctx, token, delimiter):
    '''Process the escape sequences of a character constant or string literal in place.'''
    prefix, contents = split_literal(token.value, delimiter)
    translated = translate_escapes(tuctx, contents, token.origin, Encoding.from_prefix(prefix))
    if translated is not None:
        token.value = f'{prefix}{delimiter}{translated}{delimiter}'


def unescape(tuctx, tokens):
    '''Phase 5: process escape sequences of every character constant and string literal.
    The tokens are modified in place.'''
    for token in tokens:
        if token.kind == PPTokenKind.STRING_LITERAL:
            unescape_token(tuctx, token, '"')
        elif token.kind == PPTokenKind.CHARACTER_CONSTANT:
            unescape_token(tuctx, token, "'")
    return tokens


def concatenate(tuctx, tokens):
    '''Phase 6: remove whitespace and concatenate runs of adjacent string literals.  A
    literal whose encoding is incompatible with its run is diagnosed and begins a new
    run.'''
    result = []
    run = None

    def finish_run():
        if run is not None:
            first, encoding, parts = run
            result.append(PPToken(PPTokenKind.STRING_LITERAL,
                                  f'{encoding.prefix}"{"".join(parts)}"', first.origin))

    for token in tokens:
        if token.is_whitespace():
            continue
        if token.kind != PPTokenKind.STRING_LITERAL:
            finish_run()
            run = None
            result.append(token)
            continue

        prefix, contents = split_literal(token.value, '"')
        encoding = Encoding.from_prefix(prefix)
        if run is not None:
            combined = run[1].combine(encoding)
            if combined is not None:
                run = (run[0], combined, run[2] + [contents])
                continue
            tuctx.emit_message(token.origin, DID.incompatible_encoding,
                               [str(run[1]), str(encoding)])
            finish_run()
        run = (token, encoding, [contents])

    finish_run()
    logger.debug('concatenation produced %d tokens from %d', len(result), len(tokens))
    return result
