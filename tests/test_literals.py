# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#

import pytest

from denuo.cpp import Encoding, PPTokenKind, split_literal


PHASE5_PASSES = ['state_read_input', 'phase1', 'phase2', 'phase3', 'phase5']
PHASE6_PASSES = PHASE5_PASSES + ['phase6']


def _literals(unit):
    return [token.value for token in unit.state.tokens
            if token.kind in (PPTokenKind.STRING_LITERAL, PPTokenKind.CHARACTER_CONSTANT)]


class TestEncoding:

    @pytest.mark.parametrize('prefix, encoding', [
        ('', Encoding.DEFAULT), ('u8', Encoding.UTF8), ('u', Encoding.CHAR16),
        ('U', Encoding.CHAR32), ('L', Encoding.WCHAR),
    ])
    def test_from_prefix(self, prefix, encoding):
        assert Encoding.from_prefix(prefix) is encoding
        assert encoding.prefix == prefix

    def test_combine(self):
        assert Encoding.DEFAULT.combine(Encoding.WCHAR) is Encoding.WCHAR
        assert Encoding.UTF8.combine(Encoding.DEFAULT) is Encoding.UTF8
        assert Encoding.CHAR16.combine(Encoding.CHAR16) is Encoding.CHAR16
        assert Encoding.CHAR16.combine(Encoding.CHAR32) is None

    def test_names(self):
        assert str(Encoding.DEFAULT) == 'default'
        assert str(Encoding.WCHAR) == 'wide'
        assert Encoding.CHAR16.type_str == 'char16_t'

    def test_split_literal(self):
        assert split_literal('u8"abc"', '"') == ('u8', 'abc')
        assert split_literal("'x'", "'") == ('', 'x')


class TestEscapes:

    @pytest.mark.parametrize('text, expected', [
        ('"a\\tb"', '"a\tb"'),
        ('"\\n\\r\\a\\b\\f\\v"', '"\n\r\a\b\f\v"'),
        ('"\\\\ \\? \\\' \\""', '"\\ ? \' ""'),
        ("'\\n'", "'\n'"),
        ('"\\101\\0"', '"A\x00"'),
        ('"\\1011"', '"A1"'),
        ('"\\x41g"', '"Ag"'),
        ('"\\u00e9"', '"é"'),
        ('"\\U0001F600"', '"\U0001F600"'),
        ('L"\\x100"', 'L"Ā"'),
        ('u"\\x263A"', 'u"☺"'),
        ('"plain"', '"plain"'),
    ])
    def test_translation(self, translate, text, expected):
        unit = translate(text, PHASE5_PASSES)
        assert unit.messages() == []
        assert _literals(unit) == [expected]

    @pytest.mark.parametrize('text, message', [
        ('"\\q"', '`\\q` is not a valid escape'),
        ('"\\x"', 'expected character after escape sequence'),
        ('"\\u12"', 'expected 4 digits after `\\u`; found 2'),
        ('"\\U1234"', 'expected 8 digits after `\\U`; found 4'),
        ('"\\x100"', '`\\x100` exceeds range of type (unsigned char)'),
        ('u"\\x12345"', '`\\x12345` exceeds range of type (char16_t)'),
        ('"\\U00110000"', '`\\U00110000` cannot be represented'),
        ('"\\uD800"', '`\\uD800` cannot be represented'),
    ])
    def test_invalid(self, translate, text, message):
        unit = translate(text, PHASE5_PASSES)
        assert unit.messages() == [f'<case>:1:1: {message}']
        # Invalid escapes are kept as written
        assert _literals(unit) == [text]

    def test_invalid_among_valid(self, translate):
        unit = translate('x = "\\t\\q\\n";', PHASE5_PASSES)
        assert unit.messages() == ['<case>:1:5: `\\q` is not a valid escape']
        assert _literals(unit) == ['"\t\\q\n"']

    def test_several_diagnostics(self, translate):
        unit = translate('"\\q\\w"', PHASE5_PASSES)
        assert len(unit.messages()) == 2

    def test_token_without_backslash_unchanged(self, tokens):
        result = tokens('"abc" \'d\'', PHASE5_PASSES)
        assert [token.value for token in result[:3]] == ['"abc"', ' ', "'d'"]


class TestConcatenation:

    @pytest.mark.parametrize('text, expected', [
        ('"a" "b"', ['"ab"']),
        ('"a"\n"b"  "c"', ['"abc"']),
        ('L"a" "b"', ['L"ab"']),
        ('"a" u8"b"', ['u8"ab"']),
        ('U"a" U"b"', ['U"ab"']),
        ('x "a" y "b" "c"', ['x', '"a"', 'y', '"bc"']),
        ("'a' 'b'", ["'a'", "'b'"]),
        ('', []),
    ])
    def test_concatenation(self, translate, text, expected):
        unit = translate(text, PHASE6_PASSES)
        assert unit.messages() == []
        values = [token.value for token in unit.state.tokens]
        assert values == expected + ['']

    def test_whitespace_removed(self, tokens):
        result = tokens('a  b\n', PHASE6_PASSES)
        assert [token.value for token in result] == ['a', 'b', '']

    def test_incompatible(self, translate):
        unit = translate('u"a" U"b" "c"', PHASE6_PASSES)
        assert unit.messages() == [
            '<case>:1:6: incompatible encoding when concatenating; previously '
            '`universal 16` but found `universal 32`'
        ]
        values = [token.value for token in unit.state.tokens]
        assert values == ['u"a"', 'U"bc"', '']

    def test_escapes_then_concatenation(self, tokens):
        result = tokens('"\\x41" "\\102"', PHASE6_PASSES)
        assert result[0].value == '"AB"'
