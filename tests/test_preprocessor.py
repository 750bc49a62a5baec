# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#

import pytest

from denuo.cpp import PPTokenKind, assert_loose_equal, loose_equal
from denuo.diagnostics import DID


def case(text, output='', messages=(), extra_files=None, id=None):
    return pytest.param(text, output, list(messages), extra_files, id=id)


DEFINITIONS = [
    case('#define a', id='object-like'),
    case('#define test()', id='no-params'),
    case('#define test(a)', id='one-param'),
    case('#define test(...)', id='vararg-only'),
    case('#define test(a, b, ...)', id='params-and-vararg'),
    case('#define\n',
         messages=['<case>:1:8: expected identifier token; found whitespace token'],
         id='missing-name'),
    case('#define test(a b)\ntest(a)\n', 'test(a)',
         ['<case>:1:16: expected `,`; found `b`'], id='missing-comma'),
    case('#define test(..., a) __VA_ARGS__\ntest(a)\n', 'test(a)',
         ['<case>:1:17: expected `)`; found `,`'], id='param-after-vararg'),
    case('#define test(a,)\n',
         messages=['<case>:1:16: expected identifier or `...`; found `)`'],
         id='trailing-comma'),
    case('#define test(a\nx\n', 'x',
         messages=['<case>:1:15: expected `)`; found newline'], id='unclosed-params'),
    case('#define macro(a, a) a',
         messages=['<case>:1:18: macro parameter `a` repeated'], id='repeated-param'),
    case('#define one(a) ## a\n#define two(a) a ##\n',
         messages=['<case>:1:16: a macro cannot begin nor end with `##`',
                   '<case>:2:18: a macro cannot begin nor end with `##`'],
         id='hash-hash-at-ends'),
    case('#define one(a) # nonparam\n#define two(a) #\n#define three(a) # # a\n',
         messages=['<case>:1:16: the `#` operator must be followed by a macro parameter',
                   '<case>:2:16: the `#` operator must be followed by a macro parameter',
                   '<case>:3:18: the `#` operator must be followed by a macro parameter'],
         id='hash-not-param'),
    case('#define test A B C\n#define test A B C\n#define test A  B   C\n'
         '#define test different\n',
         messages=['<case>:4:9: macro `test` redefined differently',
                   '<case>:1:9: macro `test` first defined here'],
         id='redefinition'),
]


EXPANSIONS = [
    case('#define stringy(a) # a\nstringy(3 + 2)\nstringy(  three   +   two  )\n'
         'stringy("a" + "b")\n',
         '"3 + 2"\n"three + two"\n"\\"a\\" + \\"b\\""\n', id='stringize'),
    case('#define concat(a, b) a ## b\nconcat(one, two)\nconcat(one, 2)\nconcat(a, "2")\n',
         'onetwo\none2\n',
         ['<case>:4:1: concatenating `a` and `"2"` does not result in a valid '
          'preprocessor token'], id='concatenate'),
    case('#define FUNC(a) a\nFUNC(3\n',
         messages=['<case>:2:7: expected `)` to end invocation of macro `FUNC`',
                   '<case>:2:5: macro `FUNC` invocation opened here'],
         id='unclosed-invocation'),
    case('#define abc def\nabc abcdef\n', 'def abcdef', id='object-like'),
    case('#define z z[0]\nz\n', 'z[0]', id='self-reference'),
    case('#define test()\ntest()\n', '', id='empty-function-like'),
    case('#define func(a) a\nfunc(1)\nfunc (2)\nfunc\n(3)\nfunc (\n  4\n)\n', '1 2 3 4',
         id='invocation-spacing'),
    case('#define noparams() 123\nnoparams( )\n', '123', id='no-params'),
    case('#define add(a, b) a + b\nadd(1, 3)\n', '1 + 3', id='two-params'),
    case('#define object value\n#define func() value\nobject(3)\nfunc\n', 'value(3) func',
         id='function-like-without-invocation'),
    case('#define add(a, b) a + b\nadd(1)\n',
         messages=['<case>:2:4: `add` expects exactly 2 arguments; found 1'],
         id='too-few-arguments'),
    case('#define add(a, b) a + b\nadd(1,2,3)\n',
         messages=['<case>:2:4: `add` expects exactly 2 arguments; found 3'],
         id='too-many-arguments'),
    case('#define add(a, b) a + b\nadd(add(1,2), 3)\n', '1 + 2 + 3', id='nested'),
    case('#define add(a, b, ...) a + b\nadd(1,2,3,4)\n', '1 + 2', id='vararg-ignored'),
    case('#define test(a, b, ...) __VA_ARGS__\ntest(1,2,3,4)\n', '3,4', id='va-args'),
    case('#define a b\n#define m(a) a\na m(1) a\n', 'b 1 b', id='param-shadows-macro'),
    case('#define v(...) __VA_ARGS__\nv()\nv(1)\nv(2, 3)\n', '1 2 , 3',
         id='empty-va-args'),
    case('#define v(a, ...) a\nv()\nv(0)\nv(1, 2)\n', '0 1', id='optional-va-args'),
    case('#define v(a, b, ...) a\nv()\nv(0)\nv(1, 2)\n',
         messages=['<case>:2:2: `v` expects at least 2 arguments; found 1',
                   '<case>:3:2: `v` expects at least 2 arguments; found 1'],
         id='vararg-arity'),
    case('#define v(a) a\nv()\nv(0)\n', '0', id='empty-argument'),
    case('#define A B\n#define B A\nA B\n', 'A B', id='mutual-recursion'),
    case('#define multicat(a,b,c,d) start a ## b ## c ## d end\nmulticat(,,,)\n'
         'multicat(,,1,2)\n', 'start end start 12 end', id='multicat'),
    case('#define func(a) <a>\nfunc     (1)\nfunc     (\n2)\nfunc\n(3)\n', '<1> <2> <3>',
         id='invocation-across-lines'),
    case('#define multiline(a) yes\nmultiline (\n#ifdef multiline\n)\n#endif\n', 'yes',
         id='invocation-across-if-section'),
    case('#define test(a) <a>\ntest (\n#define b 1\n  b\n)\ntest (\n  c\n#define c 2\n'
         '  c\n)\ntest (\n  d\n#define d 3\n  d\n#undef d\n)\n',
         '<1>\n<2 2>\n<d d>\n', id='definitions-inside-invocation'),
    case('#define NIL(xxx) xxx\n#define G_0(arg) NIL(G_1)(arg)\n#define G_1(arg) NIL(arg)\n'
         'G_0(42)\n', '42', id='nil'),
    case('#define function() 123\n#define concat(a,b) a ## b\nconcat(func,tion)()\n', '123',
         id='pasted-name-invoked'),
    case('#define open (\n#define opena (a\n#define openacomma (a,\nopen\nopena\n'
         'openacomma\n', '(\n(a\n(a,\n', id='unbalanced-replacements'),
    case('#define boo() 123\n#define foo(y) boo y )\n#define open (\nfoo(open)\n', '123',
         id='invocation-from-argument'),
    case('#define boo() 123\n#define foo(x) x #x\n\nfoo(boo())\n', '123 "boo()"',
         id='stringize-unexpanded'),
    case('#define recur4(C, T, E) C-T-E\n#define recur3(X) [ X ]\n'
         '#define recur2(C, X) recur4(C(X), recur4(C(X), ,),) |C|\n'
         '#define recur1(F, X) F(recur3, X)\nrecur1(recur2, recur1(recur2, 1))\n',
         '[ [ 1 ]-[ 1 ]- - - |recur3| ]-[ [ 1 ]-[ 1 ]- - - |recur3| ]- - - |recur3|\n',
         id='recursion'),
]


UNDEFINITIONS = [
    case('#define a b\na\n#undef a\na\n', 'b a', id='undef'),
    case('#undef 3\n', messages=['<case>:1:8: expected identifier token; found number token'],
         id='number'),
    case('#undef \n',
         messages=['<case>:1:8: expected identifier token; found whitespace token'],
         id='missing-name'),
    case('#undef UNDEFINED\n', messages=['<case>:1:8: macro `UNDEFINED` does not exist'],
         id='undefined'),
    case('#undef a b\n', messages=['<case>:1:10: expected newline; found identifier token'],
         id='extra-tokens'),
]


STANDARD = [
    case('#define hash_hash # ## #\n'
         'hash_hash // now our implementation results in ## but not gcc/clang...\n'
         'a\n'
         'b hash_hash c // should result in `b ## c`\n',
         '## a b ## c', id='hash-hash'),
    case('#define hash_hash # ## #\n'
         '#define mkstr(a) # a\n'
         '#define in_between(a) mkstr(a)\n'
         '#define join(c, d) in_between(c hash_hash d)\n'
         'join(x, y) // equivalent to "x ## y"\n',
         '"x ## y"', id='join'),
    case('#define m(a) a(w)\n#define w 0,1\nm(m)\n', 'm(0,1)', id='m-of-m'),
    case(r'''#define x 3
#define f(a) f(x * (a))
#undef x
#define x 2
#define g f
#define z z[0]
#define h g(\~{ }
#define m(a) a(w)
#define w 0,1
#define t(a) a
#define p() int
#define q(x) x
#define r(x,y) x ## y
#define str(x) # x
f(y+1) + f(f(z)) % t(t(g)(0) + t)(1);
g(x+(3,4)-w) | h 5) & m
      (f)^m(m);
p() i[q()] = { q(1), r(2,3), r(4,), r(,5), r(,) };
char c[2][6] = { str(hello), str() };
''', r'''f(2 * (y+1)) + f(2 * (f(2 * (z[0])))) % f(2 * (0)) + t(1);
f(2 * (2+(3,4)-0,1)) | f(2 * (\~{ } 5)) & f(2 * (0,1))^m(0,1);
int i[] = { 1, 23, 4, 5, };
char c[2][6] = { "hello", "" };
''', id='rescanning'),
    case(r'''#define str(s) # s
#define xstr(s) str(s)
#define debug(s, t) printf("x" # s "= %d, x" # t "= %s", \
                           x ## s, x ## t)
#define INCFILE(n) vers ## n
#define glue(a, b) a ## b
#define xglue(a, b) glue(a, b)
#define HIGHLOW "hello"
#define LOW LOW ", world"
debug(1, 2);
fputs(str(strncmp("abc\0d", "abc", '\4') // this goes away
      == 0) str(: @\n), s);
xstr(INCFILE(2).h)
glue(HIGH, LOW);
xglue(HIGH, LOW)
''', r'''printf("x" "1" "= %d, x" "2" "= %s", x1, x2);
fputs(
"strncmp(\"abc\\0d\", \"abc\", '\\4') == 0" ": @\n",
s);
"vers2.h"
"hello";
"hello" ", world"
''', id='stringize-and-paste'),
    case('#define t(x,y,z) x ## y ## z\n'
         'int j[] = { t(1,2,3), t(,4,5), t(6,,7), t(8,9,),\n'
         '            t(10,,),  t(,11,), t(,,12), t(,,) };\n',
         'int j[] = { 123, 45, 67, 89,\n            10, 11, 12, };\n', id='placemarkers'),
    case('#define OBJ_LIKE (1-1)\n'
         '#define OBJ_LIKE /* white space */ (1-1) /* other */\n'
         '#define FUNC_LIKE(a) ( a )\n'
         '#define FUNC_LIKE( a )( /* note the white space */ \\\n'
         '                  a /* other stuff on this line\n'
         '                  */ )\n',
         id='valid-redefinitions'),
    case('#define OBJ_LIKE (1-1)\n'
         '#define FUNC_LIKE(a) ( a )\n'
         '#define OBJ_LIKE (0) // different token sequence\n'
         '#define OBJ_LIKE (1 - 1) // different white space\n'
         '#define FUNC_LIKE(b) ( a ) // different parameter usage\n'
         '#define FUNC_LIKE(b) ( b ) // different parameter spelling\n',
         messages=['<case>:3:9: macro `OBJ_LIKE` redefined differently',
                   '<case>:1:9: macro `OBJ_LIKE` first defined here',
                   '<case>:4:9: macro `OBJ_LIKE` redefined differently',
                   '<case>:1:9: macro `OBJ_LIKE` first defined here',
                   '<case>:5:9: macro `FUNC_LIKE` redefined differently',
                   '<case>:2:9: macro `FUNC_LIKE` first defined here',
                   '<case>:6:9: macro `FUNC_LIKE` redefined differently',
                   '<case>:2:9: macro `FUNC_LIKE` first defined here'],
         id='invalid-redefinitions'),
    case(r'''#define debug(...) fprintf(stderr, __VA_ARGS__)
#define showlist(...) puts(#__VA_ARGS__)
#define report(test, ...) ((test)?puts(#test):\
                          printf(__VA_ARGS__))
debug("Flag");
debug("X = %d\n", x);
showlist(The first, second, and third items.);
report(x>y, "x is %d but y is %d", x, y);
''', r'''fprintf(stderr, "Flag" );
fprintf(stderr, "X = %d\n", x );
puts( "The first, second, and third items." );
((x>y)?puts("x>y"):
printf("x is %d but y is %d", x, y));
''', id='variadic'),
]


INCLUDES = [
    case('#include',
         messages=['<case>:1:9: expected `<FILENAME>`, `"FILENAME"`, or a macro that '
                   'expands to either of those'], id='empty'),
    case('#include 3',
         messages=['<case>:1:10: expected `<FILENAME>`, `"FILENAME"`, or a macro that '
                   'expands to either of those'], id='number'),
    case('#define macro 3\n#include macro\n',
         messages=['<case>:2:10: expected `<FILENAME>`, `"FILENAME"`, or a macro that '
                   'expands to either of those'], id='macro-to-number'),
    case('#include <a>\n#include <b>\n#include <a>\n', 'A B A',
         extra_files={'a': 'A', 'b': 'B'}, id='extra-files'),
    case('#include <definitions>\nfoo\n', 'bar',
         extra_files={'definitions': '#define foo bar'}, id='definitions'),
    case('#define hmm(a) #a\n#include <macro>\n)\n', '"interesting"',
         extra_files={'macro': 'hmm (\ninteresting\n'}, id='invocation-spans-include'),
    case('#include <a>',
         messages=['c:1:10: maximum nested include depth exceeded'],
         extra_files={'a': '#include <b>', 'b': '#include <c>', 'c': '#include <a>'},
         id='depth'),
    case('#include "a"', messages=['<case>:1:10: could not include `a`: file not found'],
         id='quoted-not-found'),
    case('#include <a>', messages=['<case>:1:10: could not include `a`: file not found'],
         id='angled-not-found'),
    case('#include <invalid>',
         messages=['invalid:1:9: expected identifier token; found number token'],
         extra_files={'invalid': '#define 3'}, id='error-in-included-file'),
    case('#define HEADER <a>\n#include HEADER\n', 'A', extra_files={'a': 'A'},
         id='macro-header-name'),
    case('#include "a"\n', 'A', extra_files={'a': 'A'}, id='quoted-extra-file'),
    case('#include <a\n',
         messages=['<case>:1:12: expected `>` to close corresponding `<` after `#include`'],
         id='unclosed'),
    case('#include <a> b\nc\n', 'A c',
         messages=['<case>:1:14: expected newline after <FILENAME>; found identifier'],
         extra_files={'a': 'A'}, id='extra-tokens'),
    case('#define F(x) <x>\n#include F(\n',
         messages=['<case>:2:11: expected `)` to end invocation of macro `F`',
                   '<case>:2:11: macro `F` invocation opened here',
                   '<case>:2:12: expected `<FILENAME>`, `"FILENAME"`, or a macro that '
                   'expands to either of those'],
         id='include-unclosed-invocation'),
    case('#define F(x) x\n#define L <\n#include L F(\n',
         messages=['<case>:3:13: expected `)` to end invocation of macro `F`',
                   '<case>:3:13: macro `F` invocation opened here',
                   '<case>:3:14: expected `>` to close corresponding `<` after `#include`'],
         id='include-unclosed-invocation-after-angle'),
]


CONDITIONALS = [
    case('#if 1\na\n#elif 1\nb\n#else\nc\n#endif\n', 'a', id='if'),
    case('#if 0\na\n#elif 1\nb\n#else\nc\n#endif\n', 'b', id='elif'),
    case('#if 0\na\n#elif 0\nb\n#else\nc\n#endif\n', 'c', id='else'),
    case('#if 0\na\n#else\nb\n#endif\n', 'b', id='if-else'),
    case('#ifdef UNDEFINED\na\n#else\nb\n#endif\n', 'b', id='ifdef-undefined'),
    case('#define DEFINED\n#ifdef DEFINED\na\n#else\nb\n#endif\n', 'a', id='ifdef-defined'),
    case('#ifndef X\na\n#endif\n#define X\n#ifndef X\nb\n#endif\n', 'a', id='ifndef'),
    case('#ifdef 3\n#endif\n#ifndef 2\n#else\n#endif\n',
         messages=['<case>:1:8: expected identifier; found number token',
                   '<case>:3:9: expected identifier; found number token'],
         id='ifdef-number'),
    case('#ifdef test /* whitespace */\n#endif\n#ifdef test // whitespace\n#endif\n',
         id='trailing-comments'),
    case('#if defined a\n1\n#endif\n\n#if defined(a)\n2\n#endif\n\n#if defined ( a )\n3\n'
         '#endif\n\n#define a\n\n#if defined a\n4\n#endif\n#if defined(a)\n5\n#endif\n'
         '#if defined ( a )\n6\n#endif\n', '4 5 6', id='defined-forms'),
    case('#if !defined X\na\n#endif\n#if !defined(X)\nb\n#endif\n', 'a b',
         id='not-defined'),
    case('#if 0x10\na\n#endif\n#if 00\nb\n#endif\n#if 1UL\nc\n#endif\n', 'a c',
         id='integers'),
    case('#if 1\n#if 0\na\n#else\nb\n#endif\n#endif\n', 'b', id='nested'),
    case('#if 0\n#if 1\na\n#else\nb\n#endif\n#else\nc\n#endif\n', 'c', id='nested-skipped'),
    case('#if 0\n#bogus\n#endif\n', id='skipped-directives-ignored'),
    case('#if 1\na\n',
         messages=['<case>:2:2: expected `endif` directive; found end-of-file token'],
         id='missing-endif'),
    case('#if 1\na\n#else\nb\n#else\nc\n#endif\n',
         messages=['<case>:5:2: expected `endif` directive; found `else` directive'],
         id='else-after-else'),
    case('#if 0\n#else junk\nb\n#endif\n', 'b',
         messages=['<case>:2:7: expected newline; found identifier token'],
         id='else-junk'),
    case('#if 1/0\na\n#endif\n',
         messages=['<case>:1:5: only `defined` forms and integers are supported in `if` '
                      'conditions'], id='unsupported'),
    case('#if defined + a\n#endif\n',
         messages=['<case>:1:13: expected identifier or left-paren after define operator'],
         id='defined-malformed'),
    case('#if defined ( 5 )\n#endif\n',
         messages=['<case>:1:15: expected identifier; found number token'],
         id='defined-number'),
    case('#if defined ( a x\n#endif\n',
         messages=['<case>:1:17: expected `)`; found identifier token'],
         id='defined-unclosed'),
]


DIRECTIVES = [
    case('#endif\n', messages=['<case>:1:2: unexpected directive `endif`'], id='stray-endif'),
    case('#else\n', messages=['<case>:1:2: unexpected directive `else`'], id='stray-else'),
    case('#elif 1\n', messages=['<case>:1:2: unexpected directive `elif`'], id='stray-elif'),
    case('#pragma once\nx\n', 'x', messages=['<case>:1:2: invalid directive `pragma`'],
         id='invalid'),
    case('#\nx\n  #  \n', 'x', id='null-directive'),
    case('  #  define X 1\nX\n', '1', id='spaced-directive'),
]


@pytest.mark.parametrize('text, output, messages, extra_files',
                         DEFINITIONS + EXPANSIONS + UNDEFINITIONS + STANDARD + INCLUDES
                         + CONDITIONALS + DIRECTIVES)
def test_phase4(translate, text, output, messages, extra_files):
    unit = translate(text, extra_files=extra_files)
    assert unit.messages() == messages
    expected = translate(output, extra_files=extra_files).state.tokens
    result = unit.state.tokens
    assert_loose_equal(result, expected)


class TestPreprocessor:

    def test_empty_output_differs(self, tokens):
        assert not loose_equal(tokens(''), tokens('no'))

    def test_output_ends_with_eof(self, tokens):
        result = tokens('#define f(a) a\nf(1)\n')
        assert result[-1].kind == PPTokenKind.EOF
        assert sum(token.is_eof() for token in result) == 1

    def test_unclosed_invocation_keeps_eof(self, tokens):
        result = tokens('#define f(a) a\nf(1\n')
        assert result[-1].kind == PPTokenKind.EOF

    def test_self_reference_painted(self, tokens):
        result = [token for token in tokens('#define z z[0]\nz\n') if not token.is_whitespace()]
        assert result[0].value == 'z'
        assert result[0].kind == PPTokenKind.IDENTIFIER_NON_EXPANDABLE

    def test_fatal_stops_passes(self, translate):
        unit = translate('#if 1/0\n#endif\n', ['state_read_input', 'phase1', 'phase2',
                                                'phase3', 'phase4', 'state_save(x)'])
        assert not unit.success
        assert 'x' not in unit.saved_states
        assert unit.diagnostics[0].did == DID.if_expression_unsupported

    def test_warning_is_success(self, translate):
        unit = translate('#undef X\n')
        assert unit.success
        assert len(unit.diagnostics) == 1

    def test_macro_origins(self, translate):
        unit = translate('#define f(a) [a]\nf(x)\n')
        values = [token.value for token in unit.state.tokens if not token.is_whitespace()]
        assert values == ['[', 'x', ']', '']
