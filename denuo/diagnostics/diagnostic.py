# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''The diagnostic subsystem.'''

import logging
import re
import sys
from dataclasses import dataclass
from enum import IntEnum, auto

from .definitions import DID, DiagnosticSeverity, diagnostic_definitions


__all__ = [
    'Diagnostic', 'DiagnosticEngine', 'DiagnosticConsumer', 'DiagnosticCollector',
    'DiagnosticPrinter', 'DiagnosticLocation', 'ElaboratedDiagnostic', 'ExpectedFoundPart',
    'Translations',
]


logger = logging.getLogger(__name__)


# Note: column numbers, like line numbers, are 1-based.  A column counts characters
# (code points) from the start of the line, so a tab counts as one column.


class PartKind(IntEnum):
    plain = auto()
    pptoken = auto()
    directive = auto()


@dataclass(slots=True, frozen=True)
class ExpectedFoundPart:
    '''One side of an expected_found diagnostic.'''
    kind: PartKind
    text: str

    @classmethod
    def plain(cls, text):
        return cls(PartKind.plain, text)

    @classmethod
    def pptoken(cls, token_kind):
        '''token_kind is a PPTokenKind; its str() is its display name.'''
        return cls(PartKind.pptoken, str(token_kind))

    @classmethod
    def directive(cls, name):
        return cls(PartKind.directive, name)

    def __str__(self):
        if self.kind == PartKind.pptoken:
            return f'{self.text} token'
        if self.kind == PartKind.directive:
            return f'`{self.text}` directive'
        return self.text


@dataclass(slots=True)
class DiagnosticLocation:
    '''The resolved position of a diagnostic: the outermost macro use of its origin.'''
    # The Input the position lies in
    input: object
    # The TextSpan in that input
    span: object
    # 1-based line and column of the start of the span
    line: int
    column: int

    def __str__(self):
        return f'{self.input.name}:{self.line}:{self.column}'


class Diagnostic:
    '''Diagnostic captures the details of a diagnostic emitted by a translation phase.

    origin is the TokenOrigin the diagnostic is about, or None for diagnostics without a
    source location.  Arguments are substituted into the diagnostic's text; arguments
    that are themselves Diagnostic objects are child diagnostics giving supplementary
    locations.
    '''

    def __init__(self, did, origin, args=None):
        self.did = did
        self.origin = origin
        self.arguments = args or []
        # A DiagnosticLocation, filled in when the diagnostic is enriched
        self.location = None
        assert all(isinstance(arg, (int, str, ExpectedFoundPart, Diagnostic))
                   for arg in self.arguments)

    def __eq__(self, other):
        return (isinstance(other, Diagnostic)
                and self.did == other.did
                and self.origin == other.origin
                and self.arguments == other.arguments)

    def __repr__(self):
        return f'Diagnostic(did={self.did!r}, origin={self.origin!r}, args={self.arguments!r})'

    def __str__(self):
        if self.location is None:
            return self.headline()
        return f'{self.location}: {self.headline()}'

    @property
    def severity(self):
        return diagnostic_definitions[self.did].severity

    def substitutions(self):
        return [str(arg) if isinstance(arg, ExpectedFoundPart) else arg
                for arg in self.arguments if not isinstance(arg, Diagnostic)]

    def children(self):
        return [arg for arg in self.arguments if isinstance(arg, Diagnostic)]

    def flatten(self):
        '''Yield this diagnostic followed by its children, depth first.'''
        yield self
        for child in self.children():
            yield from child.flatten()

    def headline(self, translations=None):
        '''The diagnostic text with its arguments substituted.'''
        engine = DiagnosticEngine(translations)
        parts = engine.substitute_arguments(engine.translations.diagnostic_text(self.did),
                                            self.substitutions())
        return ''.join(text for text, _kind in parts)


@dataclass(slots=True)
class ElaboratedDiagnostic:
    '''A processed diagnostic, ready for a consumer to present.'''
    did: DID
    severity: DiagnosticSeverity
    # A DiagnosticLocation, or None
    location: DiagnosticLocation
    # The message as a list of (text, kind) pairs.  kind is formatting information:
    # 'message' for standard parts, 'quote' for quoted source text, 'path' for the
    # location, and a severity hint ('error', 'warning', 'info') for the severity.
    message_parts: list
    # A list of zero or more nested ElaboratedDiagnostics
    nested_diagnostics: list


class Translations:
    '''Manages translating diagnostic strings.'''

    def __init__(self, texts=None):
        self.texts = texts or {}

    def diagnostic_text(self, did):
        return self.texts.get(did, diagnostic_definitions[did].text)


class DiagnosticConsumer:
    '''This interface determines what happens when a diagnostic is emitted.  For example,
    UnicodeTerminal writes text to stderr.
    '''
    # If False, emit() is passed Diagnostic objects, otherwise ElaboratedDiagnostic objects.
    elaborate = True

    def emit(self, diagnostic):
        pass


class DiagnosticCollector(DiagnosticConsumer):
    '''A diagnostic consumer that simply collects the emitted diagnostics.'''

    elaborate = False

    def __init__(self):
        self.diagnostics = []

    def emit(self, diagnostic):
        self.diagnostics.append(diagnostic)

    def messages(self):
        '''Return the flattened diagnostics as strings.'''
        return [str(d) for diagnostic in self.diagnostics for d in diagnostic.flatten()]


class DiagnosticPrinter(DiagnosticConsumer):
    '''Print each diagnostic and its children on one line each, without source excerpts.'''

    def __init__(self, file=sys.stderr):
        self.file = file

    def emit(self, elaborated_diag):
        self.emit_recursive(elaborated_diag, 0)

    def emit_recursive(self, elaborated_diag, indent):
        text = ''.join(text for text, _kind in elaborated_diag.message_parts)
        print(f'{" " * indent}{text}', file=self.file)
        for nested in elaborated_diag.nested_diagnostics:
            self.emit_recursive(nested, indent + 2)


class DiagnosticEngine:

    formatting_code = re.compile('%(([a-z]+)({[^}]*})?)?([0-9]?)')
    severity_map = {
        DiagnosticSeverity.info: (DID.severity_info, 'info'),
        DiagnosticSeverity.warning: (DID.severity_warning, 'warning'),
        DiagnosticSeverity.error: (DID.severity_error, 'error'),
        DiagnosticSeverity.fatal: (DID.severity_fatal, 'error'),
    }

    def __init__(self, translations=None, *, inhibit_warnings=False):
        self.translations = translations or Translations()
        self.inhibit_warnings = inhibit_warnings
        self.diagnostic_consumers = []
        self.error_count = 0
        self.fatal_count = 0

    @classmethod
    def add_arguments(cls, group):
        '''Add command line arguments to the group.'''
        group.add_argument('-w', dest='inhibit_warnings', action='store_true', default=False,
                           help='inhibit all warning messages')

    @classmethod
    def from_environment(cls, env):
        return cls(inhibit_warnings=env.command_line.inhibit_warnings)

    def add_diagnostic_consumer(self, consumer):
        self.diagnostic_consumers.append(consumer)

    def enrich(self, diagnostic, locator):
        '''Resolve the location of the diagnostic and its children.  locator must provide a
        diagnostic_location(origin) method.'''
        if diagnostic.origin is not None and diagnostic.location is None:
            diagnostic.location = locator.diagnostic_location(diagnostic.origin)
        for child in diagnostic.children():
            self.enrich(child, locator)

    def emit(self, diagnostics):
        '''Emit one or more diagnostics.  diagnostics is a single Diagnostic or a list of them.'''
        if not isinstance(diagnostics, list):
            diagnostics = [diagnostics]
        for diagnostic in diagnostics:
            severity = diagnostic.severity
            if severity == DiagnosticSeverity.warning and self.inhibit_warnings:
                continue
            if severity == DiagnosticSeverity.fatal:
                self.fatal_count += 1
            elif severity == DiagnosticSeverity.error:
                self.error_count += 1
            logger.debug('emitting diagnostic %s', diagnostic)
            elaborated = None
            for consumer in self.diagnostic_consumers:
                if consumer.elaborate:
                    if elaborated is None:
                        elaborated = self.elaborate(diagnostic)
                    consumer.emit(elaborated)
                else:
                    consumer.emit(diagnostic)

    def emit_error_count(self):
        count = self.error_count + self.fatal_count
        if count:
            self.emit(Diagnostic(DID.errors_generated, None, [count]))

    def elaborate(self, diagnostic):
        '''Returns an ElaboratedDiagnostic instance.'''
        nested_diagnostics = [self.elaborate(child) for child in diagnostic.children()]
        return ElaboratedDiagnostic(diagnostic.did, diagnostic.severity, diagnostic.location,
                                    self.message_parts(diagnostic), nested_diagnostics)

    def message_parts(self, diagnostic):
        '''Convert a diagnostic into a list of (text, kind) pairs.'''
        text_parts = []
        if diagnostic.location is not None:
            text_parts.append((f'{diagnostic.location}: ', 'path'))
        severity = diagnostic.severity
        # Add the severity text unless it is none
        if severity != DiagnosticSeverity.none:
            severity_did, hint = self.severity_map[severity]
            text_parts.append((self.translations.diagnostic_text(severity_did) + ': ', hint))
        text = self.translations.diagnostic_text(diagnostic.did)
        text_parts.extend(self.substitute_arguments(text, diagnostic.substitutions()))
        return text_parts

    def substitute_arguments(self, format_text, arguments):
        def select(text, arg):
            assert isinstance(arg, int)
            parts = text.split('|')
            if not (0 <= arg < len(parts)):
                raise RuntimeError(f'diagnostic select{text} passed out-of-range value {arg}')
            return (parts[arg], 'message')

        def plural(text, arg):
            assert isinstance(arg, int)
            parts = text.split('|')
            for part in parts:
                expr, text = part.split(':')
                if not expr:
                    break
                if int(expr) == arg:
                    break
            else:
                raise RuntimeError('bad diagnostic format')
            return (f'{arg:,d} {text}', 'message')

        def quote(text, arg):
            assert not (text and arg)
            return (f'`{text or arg}`', 'quote')

        def substitute_match(match):
            func, func_arg, arg_index = match.groups()[1:]
            if func_arg:
                # Drop the {}
                func_arg = func_arg[1:-1]
            if arg_index == '':
                argument = None
            else:
                argument = arguments[int(arg_index)]
            if func == 'select':
                return select(func_arg, argument)
            if func == 'plural':
                return plural(func_arg, argument)
            if func == 'q':
                return quote(func_arg, argument)
            assert not func
            assert isinstance(argument, (str, int))
            return (str(argument), 'message')

        def parts(format_text):
            cursor = 0
            for match in self.formatting_code.finditer(format_text):
                yield (format_text[cursor: match.start()], 'message')
                yield substitute_match(match)
                cursor = match.end()

            yield (format_text[cursor:], 'message')

        return [part for part in parts(format_text) if part[0]]
