"""
BigPdfMerge - Python package for combining pages of PDF files

This package lets a user import PDF documents, reorder, rotate and
discard individual pages, and export the result as a single PDF.
"""

import sys

__version__ = "1.0.0"
__author__ = "BigLinux Team"
__license__ = "GPL-3.0"


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application.

    Returns:
        The application exit code.
    """
    from bigpdfmerge.cli import main as cli_main

    return cli_main(argv)


__all__ = ["main", "__version__", "__author__", "__license__"]


if __name__ == "__main__":
    sys.exit(main())
