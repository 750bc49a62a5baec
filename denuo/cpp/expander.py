# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Macro expansion: the second half of phase 4.

The Expander consumes the flattened directive list produced by the include pass.  It
applies #define and #undef directives in stream order and expands macros in text lines,
so a function-like macro invocation may span lines, conditional sections and included
files.

Tokens come from the rescan stack first, then the current line, then the next Text
directive.  Recursion is prevented with hide sets, as in the algorithm of X3J11/86-196:
each token produced by an expansion carries the names of the macros that produced it,
and an identifier in its own hide set is marked non-expandable.
'''

import logging

from ..diagnostics import DID, Diagnostic
from .basic import MacroResult, PPToken, PPTokenKind, trim_whitespace, tokens_to_string
from .directives import Define, Text, Undefine, skip_whitespace_not_newline
from .lexer import lex_one_token
from .macros import MacroInvocation, VA_ARGS, stringize


__all__ = ['Expander']


logger = logging.getLogger(__name__)


def relabel_arguments(tokens, invocation, start):
    '''Return a copy of tokens with origins naming argument slots of the invocation,
    numbered from start.'''
    return [token.with_origin(MacroResult.new_param(invocation, start + n))
            for n, token in enumerate(tokens)]


def relabel_body(tokens, invocation):
    return [token.with_origin(MacroResult.new_body(invocation, n))
            for n, token in enumerate(tokens)]


def finish_expansion(tokens, invocation, hide_set):
    '''Place the tokens of an expansion's output and add hide_set to each.  Identifiers
    in their own hide set are painted non-expandable.'''
    result = []
    for n, token in enumerate(tokens):
        origin = token.origin
        if isinstance(origin, MacroResult) and origin.invocation == invocation:
            origin = origin.placed(n)
        token_hide_set = token.hide_set | hide_set
        kind = token.kind
        if kind == PPTokenKind.IDENTIFIER and token.value in token_hide_set:
            kind = PPTokenKind.IDENTIFIER_NON_EXPANDABLE
        result.append(PPToken(kind, token.value, origin, token_hide_set))
    return result


class Expander:
    '''Expands macros in a directive list, or in a single list of tokens.'''

    def __init__(self, tuctx, defines, directives=(), tokens=()):
        self.tuctx = tuctx
        # The live macro table, a map from name to MacroDef.  Shared with sub-expanders.
        self.defines = defines
        self.output = []
        # Tokens to rescan, in reverse order so the next one is at the end
        self.rescan = []
        # The current text line and a cursor into it
        self.line = list(tokens)
        self.line_cursor = 0
        self.directives = iter(directives)

    @classmethod
    def from_directives(cls, tuctx, defines, directives):
        return cls(tuctx, defines, directives=directives)

    @classmethod
    def from_tokens(cls, tuctx, defines, tokens):
        return cls(tuctx, defines, tokens=tokens)

    def diag(self, did, origin, args=None):
        self.tuctx.emit_message(origin, did, args)

    def push_rescan(self, tokens):
        '''The next call to next_token() returns the first of tokens.'''
        self.rescan.extend(reversed(tokens))

    def add_define(self, macro):
        original = self.defines.get(macro.name)
        if original is None:
            logger.debug('defining macro %s', macro.name)
            self.defines[macro.name] = macro
        elif not original.equivalent(macro):
            note = Diagnostic(DID.macro_first_defined, original.origin, [macro.name])
            self.tuctx.emit_message_with_children(
                macro.origin, DID.macro_redefinition_different, [macro.name], [note])

    def remove_define(self, name):
        if self.defines.pop(name.value, None) is None:
            self.diag(DID.undefine_invalid_macro, name.origin, [name.value])
        else:
            logger.debug('undefined macro %s', name.value)

    def next_token(self):
        '''Return the next token to be processed, or None at the end of the input.'''
        if self.rescan:
            return self.rescan.pop()
        while self.line_cursor == len(self.line):
            directive = next(self.directives, None)
            if directive is None:
                return None
            if isinstance(directive, Define):
                self.add_define(directive.macro)
            elif isinstance(directive, Undefine):
                self.remove_define(directive.name)
            elif isinstance(directive, Text):
                self.line = directive.tokens
                self.line_cursor = 0
            else:
                raise RuntimeError(f'unexpected directive {directive!r} in expansion')
        token = self.line[self.line_cursor]
        self.line_cursor += 1
        return token

    def expand(self):
        '''Expand macros until the input is exhausted and return the output tokens.'''
        while True:
            token = self.next_token()
            if token is None:
                break
            if token.kind == PPTokenKind.IDENTIFIER and token.value in self.defines:
                self.expand_identifier(token)
            else:
                self.output.append(token)
        return self.output

    def expand_argument(self, tokens):
        '''Fully macro-expand an argument in isolation.'''
        return Expander.from_tokens(self.tuctx, self.defines, tokens).expand()

    def expand_identifier(self, token):
        macro = self.defines[token.value]
        if not macro.is_function_like():
            invocation = self.tuctx.add_macro_invocation(MacroInvocation(macro, token))
            logger.debug('expanding object-like macro %s', macro.name)
            replaced = self.replace(False, relabel_body(macro.replacement, invocation), {})
            hide_set = token.hide_set | {macro.name}
            self.push_rescan(finish_expansion(replaced, invocation, hide_set))
            return

        # Whitespace between the name and the '(' of an invocation is dropped; if there
        # is no invocation it is output unchanged.
        whitespace = []
        while True:
            next_token = self.next_token()
            if next_token is None or not next_token.is_whitespace():
                break
            whitespace.append(next_token)

        if next_token is None or not next_token.is_punct('('):
            self.output.append(token)
            self.output.extend(whitespace)
            if next_token is not None:
                # An identifier may yet begin an invocation
                if next_token.kind == PPTokenKind.IDENTIFIER:
                    self.rescan.append(next_token)
                else:
                    self.output.append(next_token)
            return

        collected = self.collect_arguments(macro, token, next_token)
        if collected is None:
            return
        arguments, close_paren = collected

        invocation = self.tuctx.add_macro_invocation(MacroInvocation(macro, token, arguments))
        logger.debug('expanding function-like macro %s with %d arguments', macro.name,
                     len(arguments))
        parameters = {}
        in_index = 0
        for param in macro.param_names():
            parameters[param] = relabel_arguments(arguments[param], invocation, in_index)
            in_index += len(arguments[param])

        replaced = self.replace(True, relabel_body(macro.replacement, invocation), parameters)
        hide_set = (token.hide_set & close_paren.hide_set) | {macro.name}
        self.push_rescan(finish_expansion(replaced, invocation, hide_set))

    def collect_arguments(self, macro, name, open_paren):
        '''Collect the arguments of a function-like macro invocation.  The '(' has been
        consumed.  Return a pair (arguments, close_paren) where arguments maps parameter
        names to trimmed token lists, or None on error.'''
        params = macro.params
        depth = 0
        arguments = []
        current = []
        while True:
            token = self.next_token()
            if token is None or token.is_eof():
                origin = token.origin if token is not None else open_paren.origin
                note = Diagnostic(DID.macro_invocation_opening, open_paren.origin, [macro.name])
                self.tuctx.emit_message_with_children(
                    origin, DID.unclosed_macro_invocation, [macro.name], [note])
                if token is not None:
                    # Leave the end-of-file token for the output
                    self.rescan.append(token)
                return None

            if token.is_punct(',') and depth == 0:
                if macro.vararg and len(arguments) == len(params):
                    # Everything after the named arguments forms __VA_ARGS__
                    current.append(token)
                else:
                    arguments.append(current)
                    current = []
            elif token.is_punct('('):
                current.append(token)
                depth += 1
            elif token.is_punct(')'):
                if depth == 0:
                    close_paren = token
                    break
                current.append(token)
                depth -= 1
            else:
                current.append(token)

        # An empty argument list is no arguments for a macro without parameters
        if trim_whitespace(current) or params:
            arguments.append(current)
        arguments = [trim_whitespace(argument) for argument in arguments]

        variable = None
        if macro.vararg:
            variable = arguments.pop() if len(arguments) > len(params) else []

        if len(arguments) != len(params):
            self.diag(DID.macro_arity, open_paren.origin,
                      [macro.name, int(macro.vararg), len(params), len(arguments)])
            return None

        result = dict(zip(params, arguments))
        if variable is not None:
            result[VA_ARGS] = variable
        return result, close_paren

    def replace(self, function_like, tokens, parameters):
        '''Substitute parameters and perform the # and ## operators on a relabeled
        replacement list.'''
        output = []
        skip_rhs_of_concat = False
        n = 0
        limit = len(tokens)
        while n < limit:
            token = tokens[n]
            n += 1

            argument = parameters.get(token.value) if token.is_ident() else None
            if argument is not None:
                whitespace = []
                while n < limit and tokens[n].is_whitespace():
                    whitespace.append(tokens[n])
                    n += 1

                if n < limit and tokens[n].is_punct('##'):
                    if argument:
                        # The '##' is handled on the next iteration
                        output.extend(argument)
                        skip_rhs_of_concat = False
                    else:
                        # An empty left operand: drop it and the '##'
                        n = skip_whitespace_not_newline(tokens, n + 1)
                        rhs = tokens[n]
                        # A parameter right operand is substituted without expansion
                        skip_rhs_of_concat = rhs.is_ident() and rhs.value in parameters
                elif skip_rhs_of_concat:
                    skip_rhs_of_concat = False
                    output.extend(argument)
                    output.extend(whitespace)
                else:
                    output.extend(self.expand_argument(argument))
                    output.extend(whitespace)
            elif token.is_punct('#') and function_like:
                n = skip_whitespace_not_newline(tokens, n)
                param = tokens[n]
                n += 1
                output.append(stringize(parameters[param.value], token.origin))
            elif token.is_punct('##'):
                n = self.concatenate(token, tokens, n, output, parameters)
            else:
                output.append(token)

        return output

    def concatenate(self, operator, tokens, n, output, parameters):
        '''Perform a ## operator.  The left operand is the last non-whitespace token of
        output; the right operand starts at tokens[n].  Return the index following the
        right operand.'''
        lhs = None
        while output:
            candidate = output.pop()
            if not candidate.is_whitespace():
                lhs = candidate
                break

        n = skip_whitespace_not_newline(tokens, n)
        rhs = tokens[n]
        n += 1
        remainder = []
        if rhs.is_ident() and rhs.value in parameters:
            argument = parameters[rhs.value]
            if not argument:
                # Nothing to concatenate with
                if lhs is not None:
                    output.append(lhs)
                return n
            rhs, remainder = argument[0], argument[1:]

        if lhs is None:
            output.append(rhs)
            output.extend(remainder)
            return n

        spelling = lhs.value + rhs.value
        length, kind = lex_one_token(spelling)
        if length == len(spelling):
            output.append(PPToken(kind, spelling, operator.origin, lhs.hide_set & rhs.hide_set))
            output.extend(remainder)
            logger.debug('concatenated %s', tokens_to_string([lhs, rhs]))
        else:
            self.diag(DID.bad_concatenation, operator.origin, [lhs.value, rhs.value])
        return n
