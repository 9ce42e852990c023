"""
BigPdfMerge - Page Editor Module

In-memory model of the document being assembled: imported sources, the
ordered page records drawn from them, and the preview of a single page.

Main Components:
- SourceStore: Deduplicated registry of imported source documents
- PageCollection: Ordered, mutable list of page records
- ThumbnailRenderer: Cached background thumbnail rendering
- PreviewController: Enlarged preview with navigation and rotation
"""

from bigpdfmerge.editor.events import CollectionEvent, EventKind
from bigpdfmerge.editor.page_collection import PageCollection
from bigpdfmerge.editor.page_model import PageRecord, PageRef, SourceDocument
from bigpdfmerge.editor.preview_controller import PreviewController
from bigpdfmerge.editor.source_store import SourceStore
from bigpdfmerge.editor.thumbnail_renderer import ThumbnailRenderer

__all__ = [
    "CollectionEvent",
    "EventKind",
    "PageCollection",
    "PageRecord",
    "PageRef",
    "PreviewController",
    "SourceDocument",
    "SourceStore",
    "ThumbnailRenderer",
]
