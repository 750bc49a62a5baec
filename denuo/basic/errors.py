# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''Runtime errors.  These are failures of the compiler's configuration or environment,
for example an unreadable input file or a misconfigured pass, as opposed to diagnostics
about the source code being compiled.'''

import traceback
from enum import IntEnum, auto


__all__ = ['ErrorKind', 'DenuoError']


class ErrorKind(IntEnum):
    command_line = auto()
    input_file = auto()
    output_file = auto()
    state_absent = auto()
    state_type = auto()
    pass_arity = auto()
    unknown_pass = auto()


error_texts = {
    ErrorKind.command_line: '{message}',
    ErrorKind.input_file: 'cannot read file `{filename}`: {error}',
    ErrorKind.output_file: 'cannot write file `{filename}`: {error}',
    ErrorKind.state_absent: 'no input state for pass',
    ErrorKind.state_type: ('mismatched input state for pass; got `{current_type}`; '
                           'expected `{expected_type}`'),
    ErrorKind.pass_arity: 'pass `{pass_name}` takes {expects} arguments; received {got}',
    ErrorKind.unknown_pass: 'invalid argument for --pass flag: {message}',
}


class DenuoError(Exception):
    '''A runtime error.  kind is an ErrorKind; details are substituted into the kind's
    message text.  The stack at the point of construction is captured in backtrace.'''

    def __init__(self, kind, **details):
        self.kind = kind
        self.details = details
        self.backtrace = ''.join(traceback.format_stack()[:-1])
        super().__init__(self.message())

    def message(self):
        return error_texts[self.kind].format(**self.details)

    def __eq__(self, other):
        return (isinstance(other, DenuoError) and self.kind == other.kind
                and self.details == other.details)

    __hash__ = Exception.__hash__
