# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#

from .definitions import *
from .diagnostic import *
from .terminal import *
