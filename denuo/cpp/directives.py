# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Line segmentation and directive parsing: the first half of phase 4.

The token stream of an input is broken into lines, and the lines are collated into a
list of directives.  Runs of ordinary lines become a single Text directive.  The bodies
of an if-section are kept as unparsed lines; they are parsed only if their branch is
selected.
'''

import logging
from dataclasses import dataclass, field
from enum import IntEnum, auto

from ..basic import TextSpan
from ..diagnostics import DID, ExpectedFoundPart
from .basic import PPToken, PPTokenKind, trim_whitespace
from .macros import MacroDef, VA_ARGS


__all__ = [
    'Text', 'Define', 'Undefine', 'Include', 'IfSection', 'IfCondition', 'IfConditionKind',
    'DirectiveParser', 'parse_lines', 'parse_directives', 'directive_name',
    'skip_whitespace_not_newline',
]


logger = logging.getLogger(__name__)


class IfConditionKind(IntEnum):
    plain = auto()       # #if and #elif
    defined = auto()     # #ifdef
    undefined = auto()   # #ifndef
    empty = auto()       # placeholder for a section whose condition failed to parse


@dataclass(slots=True)
class IfCondition:
    kind: IfConditionKind
    # The tokens following the directive name for plain conditions, otherwise the
    # identifier alone.  Empty for an empty condition.
    tokens: list
    # The directive name token
    directive: PPToken = None

    @property
    def identifier(self):
        return self.tokens[0]


@dataclass(slots=True)
class Text:
    '''One or more lines of text.'''
    tokens: list


@dataclass(slots=True)
class Define:
    macro: MacroDef


@dataclass(slots=True)
class Undefine:
    # The macro name token
    name: PPToken


@dataclass(slots=True)
class Include:
    # The tokens following the directive name, including the newline
    content: list
    # From the '#' to the end of the last token before the newline
    span: TextSpan


@dataclass(slots=True)
class IfSection:
    condition: IfCondition
    # Each body is a list of lines
    main_body: list
    # A list of (condition, body) pairs
    elifs: list = field(default_factory=list)
    # None if there is no #else
    else_body: list = None


def parse_lines(tokens, source):
    '''Break the output of the lexer for source into lines.  Every line ends with a newline
    token; a zero-width one is added if the input does not end with a newline.  The final
    line holds a single end-of-file token located at the last newline.'''
    tokens = [token for token in tokens if not token.is_eof()]
    if not tokens:
        tokens.append(PPToken(PPTokenKind.WHITESPACE, '\n', TextSpan.of(source.id, 0, 0)))
    elif not tokens[-1].is_newline():
        # Zero-width because it is not in the input's content
        tokens.append(PPToken(PPTokenKind.WHITESPACE, '\n', tokens[-1].origin.at_end()))

    lines = []
    line = []
    for token in tokens:
        line.append(token)
        if token.is_newline():
            lines.append(line)
            line = []

    lines.append([PPToken(PPTokenKind.EOF, '', lines[-1][-1].origin)])
    return lines


def is_eof_line(line):
    return line[0].is_eof()


def directive_name(line):
    '''If the line is a directive return its name, otherwise None.  The name of the null
    directive, a '#' alone on a line, is the empty string.'''
    tokens = [token for token in line if not token.is_whitespace()]
    if len(tokens) == 1 and tokens[0].is_punct('#'):
        return ''
    if len(tokens) >= 2 and tokens[0].is_punct('#') and tokens[1].is_ident():
        return tokens[1].value
    return None


def directive_name_index(line):
    '''Return the index of the directive name token in a directive line.'''
    count = 0
    for n, token in enumerate(line):
        if not token.is_whitespace():
            if count == 1:
                return n
            count += 1
    raise ValueError('not a directive line')


def skip_whitespace_not_newline(tokens, index):
    while index < len(tokens) and tokens[index].is_whitespace_not_newline():
        index += 1
    return index


class ParamState(IntEnum):
    lparen = auto()
    comma = auto()
    ident = auto()
    vararg = auto()


class DirectiveParser:
    '''Collates the lines of one input into directives.'''

    directive_names = 'define undef include if ifdef ifndef elif else endif'.split()
    conditional_directives = ('if', 'ifdef', 'ifndef')

    def __init__(self, tuctx, lines):
        self.tuctx = tuctx
        self.lines = lines
        self.cursor = 0
        self.directives = []
        self.handlers = {name: getattr(self, f'on_{name}') for name in self.directive_names}

    def diag(self, did, origin, args=None):
        self.tuctx.emit_message(origin, did, args)

    def expected_found(self, origin, expected, found):
        self.diag(DID.expected_found, origin, [expected, found])

    def peek_line(self):
        if self.cursor < len(self.lines):
            return self.lines[self.cursor]
        return None

    def next_line(self):
        line = self.lines[self.cursor]
        self.cursor += 1
        return line

    def parse(self):
        '''Return the list of directives.'''
        while True:
            line = self.peek_line()
            if line is None or is_eof_line(line):
                break
            self.cursor += 1
            name = directive_name(line)
            if name is None:
                self.on_text(line)
            elif not name:
                logger.debug('skipping null directive')
            else:
                name_token = line[directive_name_index(line)]
                self.handlers.get(name, self.invalid_directive)(line, name_token)
        return self.directives

    def on_text(self, line):
        tokens = list(line)
        while True:
            line = self.peek_line()
            if line is None or is_eof_line(line) or directive_name(line) is not None:
                break
            tokens.extend(self.next_line())
        self.directives.append(Text(tokens))

    def invalid_directive(self, line, name_token):
        self.diag(DID.invalid_directive, name_token.origin, [name_token.value])

    def unexpected_directive(self, line, name_token):
        self.diag(DID.unexpected_directive, name_token.origin, [name_token.value])

    on_elif = on_else = on_endif = unexpected_directive

    def content_index(self, line):
        '''Return the index of the first token after the directive name and any following
        horizontal whitespace.'''
        return skip_whitespace_not_newline(line, directive_name_index(line) + 1)

    def on_define(self, line, name_token):
        n = self.content_index(line)
        name = line[n]
        n += 1
        if not name.is_ident():
            self.expected_found(name.origin, ExpectedFoundPart.pptoken(PPTokenKind.IDENTIFIER),
                                ExpectedFoundPart.pptoken(name.kind))
            return

        params = None
        vararg = False
        # A function-like macro has a '(' immediately after its name
        if line[n].is_punct('('):
            params, vararg, n = self.read_macro_parameter_list(line, n + 1)
            if params is None:
                return
            if not self.check_stringize_operators(line[n:], params, vararg):
                return

        replacement = trim_whitespace(line[n:])
        if replacement:
            for token in (replacement[0], replacement[-1]):
                if token.is_punct('##'):
                    self.diag(DID.illegal_double_hash, token.origin)
                    return

        macro = MacroDef(name.value, replacement, name.origin, params, vararg)
        logger.debug('parsed definition of macro %s', macro.name)
        self.directives.append(Define(macro))

    # parameter-list:
    #    lparen identifier-list[opt] )
    #    lparen ... )
    #    lparen identifier-list, ... )
    def read_macro_parameter_list(self, line, n):
        '''Return a triple (params, vararg, index) where index follows the closing
        parenthesis.  params is None on error.  The opening parenthesis has been consumed.'''
        params = []
        vararg = False
        state = ParamState.lparen
        expected = {
            ParamState.lparen: 'identifier or `...`',
            ParamState.comma: 'identifier or `...`',
            ParamState.ident: '`,`',
            ParamState.vararg: '`)`',
        }

        while n < len(line):
            token = line[n]
            n += 1
            if token.is_whitespace_not_newline():
                continue
            if token.is_punct(')') and state != ParamState.comma:
                return params, vararg, n
            if token.is_newline():
                self.expected_found(token.origin, ExpectedFoundPart.plain('`)`'),
                                    ExpectedFoundPart.plain('newline'))
                break

            if state in (ParamState.lparen, ParamState.comma):
                if token.kind == PPTokenKind.IDENTIFIER:
                    state = ParamState.ident
                    if token.value in params:
                        self.diag(DID.repeated_macro_parameter, token.origin, [token.value])
                    else:
                        params.append(token.value)
                    continue
                if token.is_punct('...'):
                    state = ParamState.vararg
                    vararg = True
                    continue
            elif state == ParamState.ident and token.is_punct(','):
                state = ParamState.comma
                continue

            self.expected_found(token.origin, ExpectedFoundPart.plain(expected[state]),
                                ExpectedFoundPart.plain(f'`{token.value}`'))
            break

        return None, False, n

    def check_stringize_operators(self, tokens, params, vararg):
        '''Check that each '#' is followed by a parameter.  tokens includes the newline, so
        a '#' ending the line is caught.'''
        hash_token = None
        for token in tokens:
            if token.is_whitespace_not_newline():
                continue
            if hash_token is not None:
                if not (token.value in params or (vararg and token.value == VA_ARGS)):
                    self.diag(DID.illegal_single_hash, hash_token.origin)
                    return False
                hash_token = None
            elif token.is_punct('#'):
                hash_token = token
        return True

    def get_identifier_and_newline(self, line, expected):
        '''Return the identifier following the directive name, or None.  A diagnostic is
        issued if there is not one, or if it is followed by anything but a newline.'''
        n = self.content_index(line)
        identifier = line[n]
        if not identifier.is_ident():
            self.expected_found(identifier.origin, expected,
                                ExpectedFoundPart.pptoken(identifier.kind))
            return None

        n = skip_whitespace_not_newline(line, n + 1)
        if not line[n].is_newline():
            self.expected_found(line[n].origin, ExpectedFoundPart.plain('newline'),
                                ExpectedFoundPart.pptoken(line[n].kind))
            return None
        return identifier

    def on_undef(self, line, name_token):
        identifier = self.get_identifier_and_newline(
            line, ExpectedFoundPart.pptoken(PPTokenKind.IDENTIFIER))
        if identifier is not None:
            self.directives.append(Undefine(identifier))

    def on_include(self, line, name_token):
        hash_token = line[skip_whitespace_not_newline(line, 0)]
        content = line[self.content_index(line):]
        if content[0].is_newline():
            self.diag(DID.include_begin, content[0].origin)
            return
        # The newline is not part of the span
        span = hash_token.origin.until(content[-2].origin)
        self.directives.append(Include(content, span))

    def plain_condition(self, line, name_token):
        tokens = line[directive_name_index(line) + 1:]
        return IfCondition(IfConditionKind.plain, tokens, name_token)

    def on_if(self, line, name_token):
        self.read_if_section(self.plain_condition(line, name_token))

    def on_ifdef(self, line, name_token):
        self.identifier_if_section(line, name_token, IfConditionKind.defined)

    def on_ifndef(self, line, name_token):
        self.identifier_if_section(line, name_token, IfConditionKind.undefined)

    def identifier_if_section(self, line, name_token, kind):
        identifier = self.get_identifier_and_newline(line, ExpectedFoundPart.plain('identifier'))
        if identifier is None:
            # Consume the section anyway so that its #else and #endif are not diagnosed
            self.read_if_section(IfCondition(IfConditionKind.empty, [], name_token),
                                 discard=True)
        else:
            self.read_if_section(IfCondition(kind, [identifier], name_token))

    def collect_if_body(self):
        '''Return the lines up to the #elif, #else or #endif ending the current body.'''
        body = []
        depth = 0
        while True:
            line = self.peek_line()
            if line is None or is_eof_line(line):
                break
            name = directive_name(line)
            if depth == 0 and name in ('elif', 'else', 'endif'):
                break
            if name in self.conditional_directives:
                depth += 1
            elif name == 'endif':
                depth -= 1
            body.append(self.next_line())
        return body

    def read_if_section(self, condition, discard=False):
        section = IfSection(condition, None)
        # The condition of the current #elif; None for the main body and #else
        elif_condition = None
        in_else = False

        while True:
            body = self.collect_if_body()
            line = self.peek_line()
            if line is None or is_eof_line(line):
                origin = line[0].origin if line else self.lines[-1][-1].origin
                self.expected_found(origin, ExpectedFoundPart.directive('endif'),
                                    ExpectedFoundPart.pptoken(PPTokenKind.EOF))
                return
            self.next_line()

            if in_else:
                section.else_body = body
            elif elif_condition is not None:
                section.elifs.append((elif_condition, body))
            else:
                section.main_body = body

            name_index = directive_name_index(line)
            name_token = line[name_index]
            name = name_token.value
            if name == 'endif':
                break
            if in_else:
                # Only #endif may follow #else.  Consume the rest of the section.
                self.expected_found(name_token.origin, ExpectedFoundPart.directive('endif'),
                                    ExpectedFoundPart.directive(name))
                discard = True
                continue
            if name == 'elif':
                elif_condition = self.plain_condition(line, name_token)
            else:
                n = skip_whitespace_not_newline(line, name_index + 1)
                if not line[n].is_newline():
                    self.expected_found(line[n].origin, ExpectedFoundPart.plain('newline'),
                                        ExpectedFoundPart.pptoken(line[n].kind))
                elif_condition = None
                in_else = True

        if not discard:
            self.directives.append(section)


def parse_directives(tuctx, lines):
    '''Collate lines into a list of directives.'''
    return DirectiveParser(tuctx, lines).parse()
