# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Translation units and the context passes run in.

A TranslationUnit is the permanent record of translating one input: its diagnostics,
saved states and final state.  A TUCtx holds the transient state of one run over the
unit: the current pass state, the inputs registered so far and the macro invocation log.
'''

import logging
from dataclasses import dataclass
from enum import IntEnum, auto

from ..basic import DenuoError, ErrorKind
from ..diagnostics import Diagnostic, DiagnosticEngine, DiagnosticLocation, DiagnosticSeverity
from .basic import chartokens_to_string, is_source_origin, tokens_to_string


__all__ = ['TUState', 'TUStateKind', 'TranslationUnit', 'TUCtx']


logger = logging.getLogger(__name__)


class TUStateKind(IntEnum):
    chartokens = auto()
    pptokens = auto()

    def __str__(self):
        return state_kind_names[self]


state_kind_names = {
    TUStateKind.chartokens: 'CharTokens',
    TUStateKind.pptokens: 'PPTokens',
}


@dataclass(slots=True)
class TUState:
    '''The value passed from one pass to the next.'''
    kind: TUStateKind
    tokens: list

    @classmethod
    def from_chartokens(cls, tokens):
        return cls(TUStateKind.chartokens, tokens)

    @classmethod
    def from_pptokens(cls, tokens):
        return cls(TUStateKind.pptokens, tokens)

    def expect(self, kind):
        if self.kind != kind:
            raise DenuoError(ErrorKind.state_type, current_type=str(self.kind),
                             expected_type=str(kind))
        return self.tokens

    def chartokens(self):
        return self.expect(TUStateKind.chartokens)

    def pptokens(self):
        return self.expect(TUStateKind.pptokens)

    def copy(self):
        return TUState(self.kind, list(self.tokens))

    def debug_string(self):
        '''One repr per token, one per line.'''
        return ''.join(f'{token!r}\n' for token in self.tokens)

    def __str__(self):
        if self.kind == TUStateKind.chartokens:
            return chartokens_to_string(self.tokens)
        return tokens_to_string(self.tokens)


class TranslationUnit:
    '''Permanent data for a translation unit.'''

    def __init__(self, session, source):
        self.session = session
        # The root Input
        self.input = source
        # Diagnostic objects generated during translation, enriched with locations
        self.diagnostics = []
        # Map from name to a list of TUState objects saved by the state_save pass
        self.saved_states = {}
        # The state after the last pass, or None
        self.state = None
        # True if translation ran without error
        self.success = False

    def saved(self, name):
        '''Return the states saved under name.'''
        return self.saved_states[name]

    def error_count(self):
        return sum(diagnostic.severity >= DiagnosticSeverity.error
                   for diagnostic in self.diagnostics)

    def messages(self):
        '''Return the diagnostics and their children, flattened, as strings.'''
        return [str(d) for diagnostic in self.diagnostics for d in diagnostic.flatten()]

    def run(self):
        '''Run the session's passes over the unit.  Return True on success.'''
        self.success = TUCtx(self, self.session).run()
        return self.success


class TUCtx:
    '''The context of one run of a session's passes over a translation unit.'''

    def __init__(self, unit, session):
        self.unit = unit
        self.session = session
        self.state = None
        # Inputs indexed by their id; the root input is first
        unit.input.id = 0
        unit.input.depth = 0
        self.inputs = [unit.input]
        # The log of macro expansions; MacroResult origins index it
        self.macro_invocations = []
        # Set when a fatal diagnostic is emitted
        self.fatal_error = False

    def original_input(self):
        return self.unit.input

    #
    # Pass state
    #

    def get_state(self):
        if self.state is None:
            raise DenuoError(ErrorKind.state_absent)
        return self.state

    def take_state(self):
        state = self.get_state()
        self.state = None
        return state

    def set_state(self, state):
        self.state = state

    def save_state(self, name):
        state = self.get_state().copy()
        self.unit.saved_states.setdefault(name, []).append(state)

    #
    # Diagnostics
    #

    def emit_message(self, origin, did, args=None):
        self.add_diagnostic(Diagnostic(did, origin, args))

    def emit_message_with_children(self, origin, did, args, children):
        self.add_diagnostic(Diagnostic(did, origin, list(args or []) + children))

    def add_diagnostic(self, diagnostic):
        if diagnostic.severity == DiagnosticSeverity.fatal:
            self.fatal_error = True
        self.unit.diagnostics.append(diagnostic)

    def diagnostic_location(self, origin):
        '''Resolve a token origin to the position of its outermost macro use.'''
        span = origin if is_source_origin(origin) else origin.root_span(self)
        source = self.inputs[span.input]
        line, column = source.get_line_column(span.start)
        return DiagnosticLocation(source, span, line, column)

    #
    # Macros and includes
    #

    def add_macro_invocation(self, invocation):
        '''Log a macro invocation and return its index.'''
        self.macro_invocations.append(invocation)
        return len(self.macro_invocations) - 1

    def add_include(self, name, system, included_from):
        '''Find and register the input for an #include directive.  Return the Input, or
        None if it cannot be found.'''
        source = self.session.file_manager.find_input(name, system, included_from.input)
        if source is None:
            return None
        source.id = len(self.inputs)
        source.included_from = included_from
        source.depth = included_from.input.depth + 1
        self.inputs.append(source)
        logger.debug('registered input %r', source)
        return source

    #
    # Running
    #

    def run(self):
        '''Apply the session's passes in order, stopping after a pass that emitted a fatal
        diagnostic.  Return True if no error was diagnosed.  Runtime errors propagate.'''
        for pass_ in self.session.passes:
            logger.info('%s: running pass %s', self.unit.input.name, pass_)
            pass_.run(self)
            if self.fatal_error:
                logger.info('%s: stopping after fatal error in pass %s',
                            self.unit.input.name, pass_)
                break

        engine = DiagnosticEngine()
        for diagnostic in self.unit.diagnostics:
            engine.enrich(diagnostic, self)
        self.unit.state = self.state
        return self.unit.error_count() == 0
