# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#

from .basic import *
from .conditions import *
from .directives import *
from .expander import *
from .file_manager import *
from .lexer import *
from .literals import *
from .macros import *
from .phases import *
from .preprocessor import *
from .tuctx import *
