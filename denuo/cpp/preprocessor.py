# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Translation phase 4: execute preprocessing directives and expand macros.

Processing happens in two stages.  The first stage resolves conditional sections and
#include directives, leaving a flat list of Text, Define and Undefine directives; it
keeps its own macro table so that conditions and #include lines see the definitions in
force.  The second stage, the Expander, starts afresh with an empty macro table and
expands the flat list.

The separation means a function-like macro invocation can span a conditional section
or an included file:

   #define test(a) a
   test(
   #if 1
   hello)
   #endif

expands to "hello".
'''

import logging

from ..basic import IncludedFrom
from ..diagnostics import DID
from .basic import PPTokenKind, chartokens_from_input
from .conditions import evaluate_condition
from .directives import (
    Define, Include, IfSection, Text, Undefine, parse_directives, parse_lines,
    skip_whitespace_not_newline,
)
from .expander import Expander
from .lexer import lex
from .phases import replace_trigraphs, splice_lines


__all__ = ['Preprocessor', 'preprocess', 'MAX_INCLUDE_DEPTH']


logger = logging.getLogger(__name__)

MAX_INCLUDE_DEPTH = 32


class Preprocessor:

    def __init__(self, tuctx):
        self.tuctx = tuctx

    def diag(self, did, origin, args=None):
        self.tuctx.emit_message(origin, did, args)

    def preprocess(self, tokens):
        '''Preprocess the phase 3 output of the translation unit's main input.'''
        lines = parse_lines(tokens, self.tuctx.original_input())
        eof = lines[-1][0]

        directives = self.process_lines(lines, {})
        # The end-of-file token must come last so that an unclosed macro invocation
        # sees it
        if directives and isinstance(directives[-1], Text):
            directives[-1] = Text(directives[-1].tokens + [eof])
        else:
            directives.append(Text([eof]))

        logger.debug('expanding %d directives', len(directives))
        return Expander.from_directives(self.tuctx, {}, directives).expand()

    def process_lines(self, lines, defines):
        '''Parse lines into directives, select conditional sections and inline included
        files.  Return the flat list of Text, Define and Undefine directives.'''
        result = []
        for directive in parse_directives(self.tuctx, lines):
            if isinstance(directive, IfSection):
                body = self.select_body(directive, defines)
                if body:
                    result.extend(self.process_lines(body, defines))
            elif isinstance(directive, Define):
                defines.setdefault(directive.macro.name, directive.macro)
                result.append(directive)
            elif isinstance(directive, Undefine):
                defines.pop(directive.name.value, None)
                result.append(directive)
            elif isinstance(directive, Include):
                lines = self.include_file(directive, defines)
                if lines:
                    result.extend(self.process_lines(lines, defines))
            else:
                result.append(directive)
        return result

    def select_body(self, section, defines):
        '''Return the lines of the selected branch of an if-section, or None.'''
        if evaluate_condition(self.tuctx, section.condition, defines):
            return section.main_body
        for condition, body in section.elifs:
            if evaluate_condition(self.tuctx, condition, defines):
                return body
        return section.else_body

    def include_file(self, directive, defines):
        '''Resolve an #include directive.  Return the lines of the included file, or None
        if there is nothing to include.'''
        tokens = directive.content
        if tokens[0].kind == PPTokenKind.IDENTIFIER:
            tokens = Expander.from_tokens(self.tuctx, defines, tokens).expand()
            # An unclosed invocation swallows the directive's newline
            if not tokens or not tokens[-1].is_newline():
                tokens = tokens + [directive.content[-1]]

        first = tokens[0]
        if first.is_punct('<'):
            system = True
            parts = []
            n = 1
            while True:
                token = tokens[n]
                n += 1
                if token.is_newline():
                    self.diag(DID.include_unclosed, token.origin)
                    return None
                if token.is_punct('>'):
                    break
                parts.append(token.value)
            desired_file = ''.join(parts)
        elif first.kind == PPTokenKind.STRING_LITERAL and first.value.startswith('"'):
            system = False
            desired_file = first.value[1:-1]
            n = 1
        else:
            self.diag(DID.include_begin, first.origin)
            return None

        n = skip_whitespace_not_newline(tokens, n)
        if n < len(tokens) and not tokens[n].is_newline():
            # Not serious enough to abandon the inclusion
            self.diag(DID.include_extra, tokens[n].origin, [str(tokens[n].kind)])

        tuctx = self.tuctx
        including = tuctx.inputs[first.root_span(tuctx).input]
        if including.depth > MAX_INCLUDE_DEPTH:
            self.diag(DID.include_depth, first.origin)
            return None

        source = tuctx.add_include(desired_file, system, IncludedFrom(including, directive.span))
        if source is None:
            self.diag(DID.include_not_found, first.origin, [desired_file])
            return None

        logger.info('including %s from %s', source.name, including.name)
        chartokens = replace_trigraphs(chartokens_from_input(source))
        chartokens = splice_lines(chartokens, tuctx)
        return parse_lines(lex(tuctx, chartokens, source), source)


def preprocess(tuctx, tokens):
    '''Perform phase 4 on the phase 3 output of a translation unit.'''
    return Preprocessor(tuctx).preprocess(tokens)
