#!/usr/bin/env python3
"""
spheretrace - A Python Ray Tracing Renderer

Main entry point for rendering scenes.
"""

import sys

from spheretrace.cli import main


if __name__ == '__main__':
    sys.exit(main())
