"""
BigPdfMerge - Source Store

Holds the raw bytes of every imported source document, deduplicated by
content.
"""

from collections.abc import Iterable, Iterator

from bigpdfmerge.editor.page_model import SourceDocument, content_key
from bigpdfmerge.utils.logger import logger


class SourceStore:
    """Registry of imported source documents keyed by content digest.

    Registering bytes that are already present returns the existing
    document; the buffer is neither copied nor parsed again.
    """

    def __init__(self) -> None:
        self._documents: dict[str, SourceDocument] = {}

    def register(self, filename: str, data: bytes) -> SourceDocument:
        """Register a source document and return its shared instance.

        Args:
            filename: Original filename (display only)
            data: Whole-document bytes

        Returns:
            The SourceDocument for this content
        """
        key = content_key(data)
        existing = self._documents.get(key)
        if existing is not None:
            if existing.filename != filename:
                logger.debug(f"{filename} has the same content as {existing.filename}, reusing it")
            return existing

        document = SourceDocument(key=key, filename=filename, data=bytes(data))
        self._documents[key] = document
        logger.debug(f"Registered source {filename} ({len(data)} bytes, key={key[:12]})")
        return document

    def get(self, key: str) -> SourceDocument | None:
        return self._documents.get(key)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, SourceDocument):
            return self._documents.get(item.key) is item
        return item in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[SourceDocument]:
        return iter(list(self._documents.values()))

    def release_unreferenced(self, live_keys: Iterable[str]) -> list[SourceDocument]:
        """Drop documents no live page refers to.

        Args:
            live_keys: Keys of sources still referenced by page records

        Returns:
            The released documents
        """
        keep = set(live_keys)
        released = [doc for key, doc in self._documents.items() if key not in keep]
        for doc in released:
            del self._documents[doc.key]
        if released:
            logger.debug(f"Released {len(released)} unreferenced source(s)")
        return released

    def clear(self) -> None:
        """Release every source document."""
        count = len(self._documents)
        self._documents.clear()
        logger.debug(f"Cleared {count} source(s)")
