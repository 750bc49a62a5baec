# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#
'''denuo - the translation-phase front end of a C compiler, written in Python 3.'''

__version__ = '0.1.0'
