"""
BigPdfMerge - Utils Package

Utility modules for the application.
"""

from bigpdfmerge.utils.i18n import _
from bigpdfmerge.utils.logger import logger

__all__ = [
    "logger",
    "_",
]
