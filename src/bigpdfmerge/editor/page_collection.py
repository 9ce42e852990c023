"""
BigPdfMerge - Page Collection

The ordered, mutable list of page records that becomes the merged
document. Order in the collection is exactly the export order.
"""

import itertools
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING

from bigpdfmerge.constants import ROTATION_STEP
from bigpdfmerge.editor.events import CollectionEvent, EventEmitter, EventKind, Listener
from bigpdfmerge.editor.page_model import PageRecord, PageRef, SourceDocument
from bigpdfmerge.editor.source_store import SourceStore
from bigpdfmerge.utils.exceptions import PageIndexError, PageNotFoundError
from bigpdfmerge.utils.logger import logger

if TYPE_CHECKING:
    from PIL import Image

    from bigpdfmerge.editor.thumbnail_renderer import ThumbnailRenderer


class PageCollection:
    """Ordered sequence of page records drawn from one or more sources.

    Mutations happen on the event-loop thread only. Thumbnail renders run
    in the background and are written back through ``_on_thumbnail``,
    which discards results for records that were removed or rotated
    again in the meantime.
    """

    def __init__(
        self,
        store: SourceStore | None = None,
        thumbnails: "ThumbnailRenderer | None" = None,
    ) -> None:
        """Initialize the collection.

        Args:
            store: Source store the records' documents live in
            thumbnails: Optional thumbnail renderer; without one, records
                simply keep ``thumbnail = None``
        """
        self._store = store if store is not None else SourceStore()
        self._thumbnails = thumbnails
        self._records: list[PageRecord] = []
        self._by_id: dict[int, PageRecord] = {}
        self._ids = itertools.count(1)
        self._events = EventEmitter()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def store(self) -> SourceStore:
        return self._store

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PageRecord]:
        return iter(list(self._records))

    def __getitem__(self, index: int) -> PageRecord:
        self._check_index(index)
        return self._records[index]

    def get(self, page_id: int) -> PageRecord | None:
        return self._by_id.get(page_id)

    def index_of(self, page_id: int) -> int:
        record = self._by_id.get(page_id)
        if record is None:
            raise PageNotFoundError(page_id)
        return self._records.index(record)

    def ids(self) -> list[int]:
        return [r.id for r in self._records]

    def sources_in_use(self) -> list[SourceDocument]:
        """Distinct sources referenced by live records, in first-use order."""
        seen: dict[str, SourceDocument] = {}
        for record in self._records:
            seen.setdefault(record.source.key, record.source)
        return list(seen.values())

    def snapshot(self) -> tuple[PageRef, ...]:
        """Immutable copy of the current order, used by exports."""
        return tuple(PageRef.from_record(r) for r in self._records)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._events.subscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._events.unsubscribe(listener)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append(
        self,
        source: SourceDocument,
        page_count: int,
        rotations: Sequence[int] | None = None,
    ) -> list[PageRecord]:
        """Append one record per page of ``source`` at the tail.

        Args:
            source: Registered source document
            page_count: Number of pages in the source
            rotations: Optional initial rotation per page

        Returns:
            The new records, in ascending page order
        """
        if source not in self._store:
            raise ValueError(f"{source.filename} is not registered in the source store")
        if page_count < 0:
            raise ValueError("page_count must be >= 0")
        if rotations is not None and len(rotations) != page_count:
            raise ValueError("rotations must have one entry per page")

        records = [
            PageRecord(
                id=next(self._ids),
                source=source,
                source_page_index=index,
                source_page_count=page_count,
                rotation=rotations[index] if rotations is not None else 0,
            )
            for index in range(page_count)
        ]
        self._records.extend(records)
        for record in records:
            self._by_id[record.id] = record

        logger.info(f"Added {page_count} page(s) from {source.filename}")
        self._events.emit(
            CollectionEvent(EventKind.PAGES_ADDED, page_ids=tuple(r.id for r in records))
        )

        for record in records:
            self._request_thumbnail(record)
        return records

    def remove(self, page_id: int) -> PageRecord:
        """Remove the record with ``page_id``.

        Raises:
            PageNotFoundError: If no record has that id
        """
        index = self.index_of(page_id)
        record = self._records.pop(index)
        del self._by_id[page_id]
        self._store.release_unreferenced(r.source.key for r in self._records)

        logger.debug(f"Removed page {record.label} (id={page_id}) at position {index}")
        self._events.emit(
            CollectionEvent(EventKind.PAGE_REMOVED, page_ids=(page_id,), old_index=index)
        )
        return record

    def move(self, old_index: int, new_index: int) -> None:
        """Move the record at ``old_index`` so that it ends up at ``new_index``.

        ``new_index`` is a position in the list after removal, as with a
        list splice. Both indices must be valid positions in the current
        collection.

        Raises:
            PageIndexError: If either index is out of range
        """
        self._check_index(old_index)
        self._check_index(new_index)
        if old_index == new_index:
            return

        record = self._records.pop(old_index)
        self._records.insert(new_index, record)

        logger.debug(f"Moved page id={record.id} from {old_index} to {new_index}")
        self._events.emit(
            CollectionEvent(
                EventKind.PAGE_MOVED,
                page_ids=(record.id,),
                old_index=old_index,
                new_index=new_index,
            )
        )

    def rotate(self, page_id: int, degrees: int) -> int:
        """Rotate a record by ``degrees`` (a multiple of 90, clockwise when positive).

        Returns:
            The record's new rotation

        Raises:
            PageNotFoundError: If no record has that id
            ValueError: If ``degrees`` is not a multiple of 90
        """
        record = self._by_id.get(page_id)
        if record is None:
            raise PageNotFoundError(page_id)
        if degrees % ROTATION_STEP:
            raise ValueError(f"Rotation must be a multiple of {ROTATION_STEP} degrees, got {degrees}")

        if record.set_rotation(record.rotation + degrees):
            logger.debug(f"Rotated page id={page_id} to {record.rotation}°")
            self._events.emit(
                CollectionEvent(
                    EventKind.PAGE_ROTATED, page_ids=(page_id,), rotation=record.rotation
                )
            )
            self._request_thumbnail(record)
        return record.rotation

    def clear(self) -> None:
        """Remove every record and release all source documents."""
        count = len(self._records)
        self._records.clear()
        self._by_id.clear()
        self._store.clear()
        if self._thumbnails is not None:
            self._thumbnails.clear()

        logger.info(f"Cleared {count} page(s)")
        self._events.emit(CollectionEvent(EventKind.CLEARED))

    # ------------------------------------------------------------------
    # Thumbnails
    # ------------------------------------------------------------------

    async def refresh_thumbnails(self) -> None:
        """Request every missing thumbnail and wait until all renders finish."""
        if self._thumbnails is None:
            return
        for record in self._records:
            if record.thumbnail is None:
                self._request_thumbnail(record)
        await self._thumbnails.drain()

    def _request_thumbnail(self, record: PageRecord) -> None:
        if self._thumbnails is not None:
            self._thumbnails.schedule(record, self._on_thumbnail)

    def _on_thumbnail(
        self,
        page_id: int,
        rotation: int,
        image: "Image.Image | None",
        error: str | None,
    ) -> None:
        record = self._by_id.get(page_id)
        if record is None or record.rotation != rotation:
            logger.debug(f"Discarding stale thumbnail for page id={page_id}")
            return

        if image is not None:
            record.thumbnail = image
            record.thumbnail_failed = False
            self._events.emit(CollectionEvent(EventKind.THUMBNAIL_READY, page_ids=(page_id,)))
        else:
            record.thumbnail = None
            record.thumbnail_failed = True
            self._events.emit(
                CollectionEvent(EventKind.THUMBNAIL_FAILED, page_ids=(page_id,), error=error)
            )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._records):
            raise PageIndexError(index, len(self._records))
