#!/usr/bin/env python3
"""
BigPdfMerge - Entry point for python -m bigpdfmerge

This module allows the package to be run as a module:
    python -m bigpdfmerge
"""

import sys

from bigpdfmerge import main

if __name__ == "__main__":
    sys.exit(main())
