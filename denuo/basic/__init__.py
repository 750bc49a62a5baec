# Copyright (c) 2025, Neil Booth.
#
# All rights reserved.
#

from .errors import *
from .host import *
from .input import *
