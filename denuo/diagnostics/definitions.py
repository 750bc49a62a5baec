# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Diagnostic identifiers, their severities and their message texts.

Message texts use these substitutions:

   %N                 the Nth argument as text
   %qN                the Nth argument in backquotes
   %select{a|b}N      the Nth argument selects a choice; it must be an integer
   %plural{1:x|:y}N   the Nth argument followed by a matching plural form
'''

from dataclasses import dataclass
from enum import IntEnum, auto


__all__ = ['DID', 'DiagnosticSeverity', 'DiagnosticDefinition', 'diagnostic_definitions']


class DiagnosticSeverity(IntEnum):
    '''Diagnostic severities.  Comparisons are meaningful; error and fatal diagnostics
    cause compilation to fail.'''
    none = auto()
    info = auto()
    warning = auto()
    error = auto()
    fatal = auto()


class DID(IntEnum):
    '''Diagnostic identifiers.'''
    # Severity labels
    severity_info = auto()
    severity_warning = auto()
    severity_error = auto()
    severity_fatal = auto()

    # Summary
    errors_generated = auto()

    # Generic
    expected_found = auto()

    # Phases 1 to 3
    file_ending_with_backslash = auto()
    missing_terminator = auto()

    # Phase 4 directives
    unexpected_directive = auto()
    invalid_directive = auto()
    define_operator = auto()
    if_expression_unsupported = auto()
    repeated_macro_parameter = auto()
    illegal_single_hash = auto()
    illegal_double_hash = auto()

    # Phase 4 macro expansion
    macro_arity = auto()
    macro_redefinition_different = auto()
    macro_first_defined = auto()
    undefine_invalid_macro = auto()
    unclosed_macro_invocation = auto()
    macro_invocation_opening = auto()
    bad_concatenation = auto()

    # Phase 4 includes
    include_begin = auto()
    include_unclosed = auto()
    include_extra = auto()
    include_depth = auto()
    include_not_found = auto()

    # Phase 5
    escape_empty = auto()
    escape_out_of_range = auto()
    escape_invalid = auto()
    escape_incomplete = auto()
    escape_unrecognized = auto()

    # Phase 6
    incompatible_encoding = auto()


@dataclass(slots=True)
class DiagnosticDefinition:
    severity: DiagnosticSeverity
    text: str


def error(text):
    return DiagnosticDefinition(DiagnosticSeverity.error, text)


def warning(text):
    return DiagnosticDefinition(DiagnosticSeverity.warning, text)


def info(text):
    return DiagnosticDefinition(DiagnosticSeverity.info, text)


def fatal(text):
    return DiagnosticDefinition(DiagnosticSeverity.fatal, text)


def label(text):
    return DiagnosticDefinition(DiagnosticSeverity.none, text)


diagnostic_definitions = {
    DID.severity_info: label('info'),
    DID.severity_warning: label('warning'),
    DID.severity_error: label('error'),
    DID.severity_fatal: label('fatal error'),

    DID.errors_generated: label('%plural{1:error|:errors}0 generated'),

    DID.expected_found: error('expected %0; found %1'),

    DID.file_ending_with_backslash: error('file cannot end with a backslash'),
    DID.missing_terminator: error('missing closing %0 terminator'),

    DID.unexpected_directive: error('unexpected directive %q0'),
    DID.invalid_directive: error('invalid directive %q0'),
    DID.define_operator: error('expected identifier or left-paren after define operator'),
    DID.if_expression_unsupported: fatal('only `defined` forms and integers are supported '
                                         'in %q0 conditions'),
    DID.repeated_macro_parameter: error('macro parameter %q0 repeated'),
    DID.illegal_single_hash: error('the `#` operator must be followed by a macro parameter'),
    DID.illegal_double_hash: error('a macro cannot begin nor end with `##`'),

    DID.macro_arity: error('%q0 expects %select{exactly|at least}1 '
                           '%plural{1:argument|:arguments}2; found %3'),
    DID.macro_redefinition_different: error('macro %q0 redefined differently'),
    DID.macro_first_defined: info('macro %q0 first defined here'),
    DID.undefine_invalid_macro: warning('macro %q0 does not exist'),
    DID.unclosed_macro_invocation: error('expected `)` to end invocation of macro %q0'),
    DID.macro_invocation_opening: info('macro %q0 invocation opened here'),
    DID.bad_concatenation: error('concatenating %q0 and %q1 does not result in a valid '
                                 'preprocessor token'),

    DID.include_begin: error('expected `<FILENAME>`, `"FILENAME"`, or a macro that expands '
                             'to either of those'),
    DID.include_unclosed: error('expected `>` to close corresponding `<` after `#include`'),
    DID.include_extra: error('expected newline after <FILENAME>; found %0'),
    DID.include_depth: fatal('maximum nested include depth exceeded'),
    DID.include_not_found: fatal('could not include %q0: file not found'),

    DID.escape_empty: error('expected character after escape sequence'),
    DID.escape_out_of_range: error('`\\%0%1` exceeds range of type (%2)'),
    DID.escape_invalid: error('`\\%0%1` cannot be represented'),
    DID.escape_incomplete: error('expected %0 digits after `\\%1`; found %2'),
    DID.escape_unrecognized: error('`\\%0` is not a valid escape'),

    DID.incompatible_encoding: error('incompatible encoding when concatenating; '
                                     'previously %q0 but found %q1'),
}
