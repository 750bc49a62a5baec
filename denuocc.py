#!/usr/bin/env python
#
# Copyright (c) 2025 Neil Booth.
#
# The translation phases of a C compiler in Python 3.
#

import sys

from denuo.driver import Driver


def main():
    driver = Driver()
    sys.exit(driver.run())


if __name__ == '__main__':
    main()
