#!/usr/bin/env python3
"""
Launch script for the Crumb Chase viewer with Qt environment setup.
Environment variables must be set before PySide6 is imported.
"""

import os
import sys

os.environ['QT_AUTO_SCREEN_SCALE_FACTOR'] = '0'
os.environ['QT_SCALE_FACTOR'] = '1'
os.environ['QT_LOGGING_RULES'] = '*=false;qt.qpa.backingstore=false;qt.qpa.drawing=false'

from crumbchase.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
