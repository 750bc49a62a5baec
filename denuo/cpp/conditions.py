# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Evaluation of if-section conditions.

#ifdef and #ifndef conditions test the macro table.  #if and #elif conditions are
limited to the forms

   defined X        defined ( X )
   !defined X       !defined ( X )
   integer-constant

Any other expression is diagnosed as unsupported, and the branch is taken to be false.
'''

import logging
import re

from ..diagnostics import DID, ExpectedFoundPart
from .basic import PPTokenKind
from .directives import IfConditionKind


__all__ = ['evaluate_condition', 'integer_value']


logger = logging.getLogger(__name__)

integer_suffix = re.compile('(?:[uU](?:ll|LL|[lL])?|(?:ll|LL|[lL])[uU]?)$')


def integer_value(spelling):
    '''Return the value of an integer constant spelling, or None if it is not one.'''
    digits = integer_suffix.sub('', spelling, count=1)
    if digits[:2] in ('0x', '0X'):
        base = 16
        digits = digits[2:]
    elif digits[:1] == '0':
        base = 8
    else:
        base = 10
    try:
        return int(digits, base)
    except ValueError:
        return None


class ConditionEvaluator:

    def __init__(self, tuctx, defines):
        self.tuctx = tuctx
        self.defines = defines

    def diag(self, did, origin, args=None):
        self.tuctx.emit_message(origin, did, args)

    def evaluate(self, condition):
        kind = condition.kind
        if kind == IfConditionKind.defined:
            return condition.identifier.value in self.defines
        if kind == IfConditionKind.undefined:
            return condition.identifier.value not in self.defines
        if kind == IfConditionKind.plain:
            return self.evaluate_plain(condition)
        raise RuntimeError('an empty condition cannot be evaluated')

    def unsupported(self, condition, tokens):
        origin = tokens[0].origin if tokens else condition.directive.origin
        self.diag(DID.if_expression_unsupported, origin, [condition.directive.value])
        return False

    def evaluate_plain(self, condition):
        tokens = [token for token in condition.tokens if not token.is_whitespace()]
        negate = (len(tokens) > 1 and tokens[0].is_punct('!')
                  and tokens[1].is_ident() and tokens[1].value == 'defined')
        if negate:
            tokens = tokens[1:]

        if tokens and tokens[0].is_ident() and tokens[0].value == 'defined':
            result = self.evaluate_defined(condition, tokens)
            if result is None:
                return False
            return not result if negate else result

        if len(tokens) == 1 and tokens[0].kind == PPTokenKind.NUMBER:
            value = integer_value(tokens[0].value)
            if value is not None:
                return value != 0
        return self.unsupported(condition, tokens)

    def evaluate_defined(self, condition, tokens):
        '''Evaluate a defined operator and its operand, which must be all of tokens.  Return
        None if there was an error.'''
        operator = tokens[0]
        rest = tokens[1:]
        if rest and rest[0].is_ident():
            identifier = rest[0]
            rest = rest[1:]
        elif rest and rest[0].is_punct('('):
            paren = rest[0]
            if len(rest) < 2 or not rest[1].is_ident():
                found = rest[1] if len(rest) > 1 else paren
                self.diag(DID.expected_found, found.origin,
                          [ExpectedFoundPart.plain('identifier'),
                           ExpectedFoundPart.pptoken(found.kind)])
                return None
            identifier = rest[1]
            if len(rest) < 3 or not rest[2].is_punct(')'):
                found = rest[2] if len(rest) > 2 else identifier
                self.diag(DID.expected_found, found.origin,
                          [ExpectedFoundPart.plain('`)`'), ExpectedFoundPart.pptoken(found.kind)])
                return None
            rest = rest[3:]
        else:
            self.diag(DID.define_operator, rest[0].origin if rest else operator.origin)
            return None

        if rest:
            self.unsupported(condition, rest)
            return None
        return identifier.value in self.defines


def evaluate_condition(tuctx, condition, defines):
    '''Return the truth of an if-section condition against the macro table defines.'''
    result = ConditionEvaluator(tuctx, defines).evaluate(condition)
    logger.debug('condition of #%s evaluated to %s', condition.directive.value, result)
    return result
