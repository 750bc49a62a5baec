# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#

from .driver import *
from .passes import *
from .session import *
