#!/usr/bin/env python3
"""
LumenPath - a Python path tracer

Main entry point for rendering scenes.
"""

import sys

from lumenpath.cli import main


if __name__ == '__main__':
    sys.exit(main())
