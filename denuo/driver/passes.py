# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Passes.  A session runs a list of passes over each translation unit; each pass takes
the unit's state, transforms it and sets the new state.

A pass is named on the command line as NAME or NAME(ARG, ...).
'''

import logging
import re
import sys
from dataclasses import dataclass, field

from ..basic import DenuoError, ErrorKind
from ..cpp import (
    TUState, chartokens_from_input, concatenate, lex, preprocess, replace_trigraphs,
    splice_lines, unescape,
)


__all__ = ['Pass', 'parse_pass', 'parse_passes', 'pass_table', 'DEFAULT_PASSES']


logger = logging.getLogger(__name__)

DEFAULT_PASSES = [
    'state_read_input', 'phase1', 'phase2', 'phase3', 'phase4', 'phase5', 'phase6',
    'state_print',
]

# Map from pass name to a (function, argument count) pair
pass_table = {}


def register(name, arity=0):
    def decorator(func):
        pass_table[name] = (func, arity)
        return func
    return decorator


@dataclass(slots=True)
class Pass:
    '''A named pass and its arguments.'''
    name: str
    args: list = field(default_factory=list)

    def __str__(self):
        if self.args:
            return f'{self.name}({", ".join(self.args)})'
        return self.name

    def run(self, tuctx):
        func, arity = pass_table[self.name]
        if len(self.args) != arity:
            raise DenuoError(ErrorKind.pass_arity, pass_name=self.name, expects=arity,
                             got=len(self.args))
        func(tuctx, *self.args)


pass_syntax = re.compile(r'^([A-Za-z]\w+)(\([^)]+\))?$')


def parse_pass(text):
    '''Parse a pass flag of the form NAME or NAME(ARG, ...).'''
    match = pass_syntax.match(text.strip())
    if not match:
        raise DenuoError(ErrorKind.unknown_pass, message=f'malformed pass `{text}`')
    name, args = match.groups()
    if name not in pass_table:
        raise DenuoError(ErrorKind.unknown_pass, message=f'unknown pass `{name}`')
    args = [arg.strip() for arg in args[1:-1].split(',')] if args else []
    return Pass(name, args)


def parse_passes(flags):
    '''Parse a list of --pass flags, each holding one or more ';'-separated passes.'''
    return [parse_pass(text) for flag in flags for text in flag.split(';') if text.strip()]


#
# Translation phases
#

@register('phase1')
def phase1(tuctx):
    tokens = tuctx.take_state().chartokens()
    tuctx.set_state(TUState.from_chartokens(replace_trigraphs(tokens)))


@register('phase2')
def phase2(tuctx):
    tokens = tuctx.take_state().chartokens()
    tuctx.set_state(TUState.from_chartokens(splice_lines(tokens, tuctx)))


@register('phase3')
def phase3(tuctx):
    tokens = tuctx.take_state().chartokens()
    tuctx.set_state(TUState.from_pptokens(lex(tuctx, tokens, tuctx.original_input())))


@register('phase4')
def phase4(tuctx):
    tokens = tuctx.take_state().pptokens()
    tuctx.set_state(TUState.from_pptokens(preprocess(tuctx, tokens)))


@register('phase5')
def phase5(tuctx):
    tokens = tuctx.take_state().pptokens()
    tuctx.set_state(TUState.from_pptokens(unescape(tuctx, tokens)))


@register('phase6')
def phase6(tuctx):
    tokens = tuctx.take_state().pptokens()
    tuctx.set_state(TUState.from_pptokens(concatenate(tuctx, tokens)))


#
# State passes
#

@register('state_read_input')
def state_read_input(tuctx):
    '''Read the unit's input.  This must be the first pass.'''
    tuctx.set_state(TUState.from_chartokens(chartokens_from_input(tuctx.original_input())))


@register('state_save', 1)
def state_save(tuctx, name):
    tuctx.save_state(name)


@register('state_print')
def state_print(tuctx):
    print(tuctx.get_state(), file=sys.stderr)


@register('state_print_debug')
def state_print_debug(tuctx):
    sys.stderr.write(tuctx.get_state().debug_string())


def write_file(filename, text):
    try:
        with open(filename, 'w') as f:
            f.write(text)
    except OSError as e:
        raise DenuoError(ErrorKind.output_file, filename=filename, error=e) from None
    logger.info('wrote state to %s', filename)


@register('state_write', 1)
def state_write(tuctx, filename):
    write_file(filename, str(tuctx.get_state()))


@register('state_write_debug', 1)
def state_write_debug(tuctx, filename):
    write_file(filename, tuctx.get_state().debug_string())
