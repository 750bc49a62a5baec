# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#

import pytest

from denuo.basic import Input
from denuo.cpp import TranslationUnit
from denuo.driver import Session


PHASE4_PASSES = ['state_read_input', 'phase1', 'phase2', 'phase3', 'phase4']


def _translate(text, passes=None, *, extra_files=None, name='<case>'):
    '''Run passes over text and return the TranslationUnit.  The passes default to phases
    1 to 4.'''
    session = Session(PHASE4_PASSES if passes is None else passes, extra_files=extra_files)
    unit = TranslationUnit(session, Input(name, text))
    unit.run()
    return unit


@pytest.fixture
def translate():
    return _translate


@pytest.fixture
def tokens():
    '''Return a function giving the final tokens of text run through the passes.'''
    def tokens(text, passes=None, **kwargs):
        return _translate(text, passes, **kwargs).state.tokens
    return tokens


@pytest.fixture
def messages():
    '''Return a function giving the flattened diagnostic strings for text.'''
    def messages(text, passes=None, **kwargs):
        return _translate(text, passes, **kwargs).messages()
    return messages
