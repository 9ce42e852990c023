"""
BigPdfMerge - Configuration Module

This module contains the configuration constants and the in-memory
settings used by the application.
"""

import logging
from dataclasses import dataclass
from typing import Final

from bigpdfmerge.constants import PREVIEW_SCALE, THUMBNAIL_CACHE_SIZE, THUMBNAIL_SCALE

# ============================================================================
# Application Constants
# ============================================================================

APP_NAME: Final[str] = "Big PDF Merge"
APP_VERSION: Final[str] = "1.0.0"
APP_DESCRIPTION: Final[str] = "Combine, reorder and rotate pages from several PDF files"


# ============================================================================
# Document Format
# ============================================================================

ACCEPTED_MEDIA_TYPE: Final[str] = "application/pdf"
OUTPUT_EXTENSION: Final[str] = ".pdf"
DEFAULT_OUTPUT_NAME: Final[str] = f"merged{OUTPUT_EXTENSION}"


# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL: int = logging.INFO
LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME: Final[str] = "BigPdfMerge"


@dataclass
class MergeSettings:
    """In-memory parameters of a merge session.

    Attributes:
        thumbnail_scale: Scale used for grid thumbnails
        preview_scale: Scale used for the enlarged preview
        thumbnail_cache_size: Maximum number of cached thumbnails
        output_name: Suggested filename for the exported document
    """

    thumbnail_scale: float = THUMBNAIL_SCALE
    preview_scale: float = PREVIEW_SCALE
    thumbnail_cache_size: int = THUMBNAIL_CACHE_SIZE
    output_name: str = DEFAULT_OUTPUT_NAME

    def __post_init__(self) -> None:
        if self.thumbnail_scale <= 0 or self.preview_scale <= 0:
            raise ValueError("Render scales must be positive")
        if self.thumbnail_cache_size < 0:
            raise ValueError("thumbnail_cache_size must be >= 0")
        if not self.output_name.lower().endswith(OUTPUT_EXTENSION):
            self.output_name += OUTPUT_EXTENSION
