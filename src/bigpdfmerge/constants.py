"""
BigPdfMerge - Numeric Constants

Simple numeric constants with ZERO internal imports to avoid circular dependencies.
For application-level constants (strings, paths), use config.py.
"""

from typing import Final

# ============================================================================
# Rotation
# ============================================================================

VALID_ROTATIONS: Final[tuple[int, ...]] = (0, 90, 180, 270)
ROTATION_STEP: Final[int] = 90

# ============================================================================
# Rendering
# ============================================================================

# Scale factors relative to the page size in PDF points (72 dpi)
THUMBNAIL_SCALE: Final[float] = 0.5
PREVIEW_SCALE: Final[float] = 1.5

THUMBNAIL_CACHE_SIZE: Final[int] = 200

# MuPDF contexts are not thread-safe
RENDER_WORKERS: Final[int] = 1

# ============================================================================
# Export
# ============================================================================

EXPORT_WORKERS: Final[int] = 1

# ============================================================================
# Import
# ============================================================================

INSPECT_WORKERS: Final[int] = 4
