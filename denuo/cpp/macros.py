# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Macro definitions and invocations.'''

from dataclasses import dataclass, field

from .basic import PPToken, PPTokenKind, trim_whitespace


__all__ = ['MacroDef', 'MacroInvocation', 'stringize', 'VA_ARGS']


VA_ARGS = '__VA_ARGS__'


def same_tokens(lhs, rhs):
    '''Compare two replacement lists.  Leading and trailing whitespace is insignificant,
    and a run of internal whitespace tokens compares equal to any other such run.'''
    def collapsed(tokens):
        result = []
        for token in trim_whitespace(tokens):
            if token.is_whitespace():
                if result and result[-1] is None:
                    continue
                result.append(None)
            else:
                result.append((token.kind, token.value))
        return result

    return collapsed(lhs) == collapsed(rhs)


@dataclass(slots=True)
class MacroDef:
    '''Records the details of a macro definition.'''
    name: str
    # The replacement list, trimmed of leading and trailing whitespace
    replacement: list
    # Origin of the macro name in the definition
    origin: object
    # Parameter names of a function-like macro; None for an object-like macro
    params: list = None
    # True if the parameter list ends with '...'
    vararg: bool = False

    def is_function_like(self):
        return self.params is not None

    def param_names(self):
        '''Return the parameter names in argument order.  The variable arguments of a
        variadic macro appear last as __VA_ARGS__.'''
        if self.params is None:
            return []
        if self.vararg:
            return self.params + [VA_ARGS]
        return list(self.params)

    def equivalent(self, other):
        '''Return True if other is a valid redefinition of this macro.'''
        return (self.params == other.params
                and self.vararg == other.vararg
                and same_tokens(self.replacement, other.replacement))


@dataclass(slots=True)
class MacroInvocation:
    '''One expansion of a macro.  The translation unit keeps a log of these; a token
    produced by the expansion refers to its entry by index.'''
    definition: MacroDef
    # The identifier that invoked the macro
    name: PPToken
    # Map from parameter name to the argument tokens as they appeared in the invocation
    arguments: dict = field(default_factory=dict)

    def argument_token(self, index):
        '''Return an argument token by its index counting across the parameters in order,
        then __VA_ARGS__.'''
        for param in self.definition.param_names():
            tokens = self.arguments[param]
            if index < len(tokens):
                return tokens[index]
            index -= len(tokens)
        raise IndexError('macro argument index out of range')


def escape_literal(value):
    '''Escape a string literal or character constant for placing inside a string
    literal.'''
    return value.replace('\\', '\\\\').replace('"', '\\"')


def stringize(tokens, origin):
    '''Return a string literal token spelling the argument tokens.  Runs of whitespace
    become a single space.'''
    parts = ['"']
    for token in trim_whitespace(tokens):
        if token.is_whitespace():
            if parts[-1] != ' ':
                parts.append(' ')
        elif token.kind in (PPTokenKind.STRING_LITERAL, PPTokenKind.CHARACTER_CONSTANT):
            parts.append(escape_literal(token.value))
        else:
            parts.append(token.value)
    parts.append('"')
    return PPToken(PPTokenKind.STRING_LITERAL, ''.join(parts), origin)
