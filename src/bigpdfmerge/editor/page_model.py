"""
BigPdfMerge - Page Model

Data models for imported source documents and the page records drawn
from them.
"""

import hashlib
import io
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bigpdfmerge.constants import VALID_ROTATIONS
from bigpdfmerge.utils.format_utils import format_page_label

if TYPE_CHECKING:
    from PIL import Image


def normalize_rotation(degrees: int) -> int:
    """Normalize an angle into [0, 360), snapping to the nearest right angle."""
    rotation = degrees % 360
    if rotation not in VALID_ROTATIONS:
        # Round to nearest valid rotation
        rotation = round(rotation / 90) * 90 % 360
    return rotation


def content_key(data: bytes) -> str:
    """Identity key of a source document: the SHA-256 digest of its bytes."""
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class SourceDocument:
    """An imported whole document from which pages are drawn.

    Attributes:
        key: Content digest, the identity used for deduplication
        filename: Original filename, kept for display and error messages
        data: Immutable bytes of the whole original document
    """

    key: str
    filename: str
    data: bytes = field(repr=False)

    @classmethod
    def from_bytes(cls, filename: str, data: bytes) -> "SourceDocument":
        return cls(key=content_key(data), filename=filename, data=bytes(data))

    @property
    def size(self) -> int:
        return len(self.data)

    def open_stream(self) -> io.BytesIO:
        """Return an independent stream over the document bytes.

        Every parser gets its own stream so no two consumers ever share
        a read cursor.
        """
        return io.BytesIO(self.data)


@dataclass(eq=False)
class PageRecord:
    """One page of one source document, as placed in the collection.

    Attributes:
        id: Unique, stable id; never reused and never positional
        source: The owning source document (shared between records)
        source_page_index: Zero-based page index within the source
        source_page_count: Total pages in the source (display only)
        rotation: Absolute clockwise rotation (0, 90, 180, 270)
        thumbnail: Cached thumbnail for the current rotation (None until rendered)
        thumbnail_failed: Whether the last render for this rotation failed
    """

    id: int
    source: SourceDocument
    source_page_index: int
    source_page_count: int
    rotation: int = 0
    thumbnail: "Image.Image | None" = field(default=None, repr=False)
    thumbnail_failed: bool = False

    def __post_init__(self) -> None:
        """Validate and normalize rotation angle."""
        self.rotation = normalize_rotation(self.rotation)

    @property
    def filename(self) -> str:
        return self.source.filename

    @property
    def page_number(self) -> int:
        """1-based page number within the source document."""
        return self.source_page_index + 1

    @property
    def label(self) -> str:
        return format_page_label(self.filename, self.page_number, self.source_page_count)

    def set_rotation(self, degrees: int) -> bool:
        """Set the rotation and invalidate the thumbnail when it changes.

        Returns:
            True if the stored rotation changed
        """
        rotation = normalize_rotation(degrees)
        if rotation == self.rotation:
            return False
        self.rotation = rotation
        self.invalidate_thumbnail()
        return True

    def invalidate_thumbnail(self) -> None:
        self.thumbnail = None
        self.thumbnail_failed = False

    def to_dict(self) -> dict:
        """Convert to dictionary for display or logging.

        Returns:
            Dictionary representation of the page record
        """
        return {
            "id": self.id,
            "filename": self.filename,
            "source_key": self.source.key,
            "page_number": self.page_number,
            "page_count": self.source_page_count,
            "rotation": self.rotation,
            "has_thumbnail": self.thumbnail is not None,
        }


@dataclass(frozen=True)
class PageRef:
    """Immutable view of a page record, taken when an export starts."""

    id: int
    source: SourceDocument
    source_page_index: int
    rotation: int

    @classmethod
    def from_record(cls, record: PageRecord) -> "PageRef":
        return cls(
            id=record.id,
            source=record.source,
            source_page_index=record.source_page_index,
            rotation=record.rotation,
        )

    @property
    def filename(self) -> str:
        return self.source.filename

    @property
    def page_number(self) -> int:
        return self.source_page_index + 1
