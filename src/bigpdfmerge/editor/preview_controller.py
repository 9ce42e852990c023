"""
BigPdfMerge - Preview Controller

Tracks which page is shown enlarged, lets the user step through the
collection and rotate the shown page, and keeps the preview bitmap in
sync with that page's rotation.
"""

from typing import TYPE_CHECKING

from bigpdfmerge.constants import PREVIEW_SCALE
from bigpdfmerge.editor.events import CollectionEvent, EventKind
from bigpdfmerge.editor.page_collection import PageCollection
from bigpdfmerge.editor.page_model import PageRecord
from bigpdfmerge.utils.exceptions import PageIndexError, RenderFailure
from bigpdfmerge.utils.format_utils import format_counter
from bigpdfmerge.utils.logger import logger

if TYPE_CHECKING:
    from PIL import Image

    from bigpdfmerge.services.page_renderer import PageRenderer


class PreviewController:
    """High-resolution preview of one page of the collection.

    The shown page is tracked by id, so it stays the same page while
    other pages are moved or removed. ``current_index`` is derived from it.
    """

    def __init__(
        self,
        collection: PageCollection,
        renderer: "PageRenderer",
        scale: float = PREVIEW_SCALE,
    ) -> None:
        self._collection = collection
        self._renderer = renderer
        self._scale = scale
        self._current_id: int | None = None
        # Bumped on every render request; older results are dropped
        self._generation = 0
        self.preview: "Image.Image | None" = None
        self.last_error: str | None = None
        collection.subscribe(self._on_collection_event)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._current_id is not None

    @property
    def current_index(self) -> int | None:
        if self._current_id is None:
            return None
        return self._collection.index_of(self._current_id)

    @property
    def current_page(self) -> PageRecord | None:
        if self._current_id is None:
            return None
        return self._collection.get(self._current_id)

    @property
    def has_previous(self) -> bool:
        index = self.current_index
        return index is not None and index > 0

    @property
    def has_next(self) -> bool:
        index = self.current_index
        return index is not None and index < len(self._collection) - 1

    @property
    def counter_text(self) -> str:
        return format_counter(self.current_index, len(self._collection))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def show(self, index: int) -> None:
        """Show the page at ``index`` and render it at preview scale.

        Raises:
            PageIndexError: If ``index`` is outside the collection
        """
        record = self._collection[index]
        self._current_id = record.id
        await self._render_current()

    async def advance(self, step: int) -> bool:
        """Move the preview by ``step`` pages; no wraparound.

        Returns:
            True if the preview moved
        """
        index = self.current_index
        if index is None:
            return False
        target = index + step
        if not 0 <= target < len(self._collection):
            return False
        await self.show(target)
        return True

    async def rotate_current(self, degrees: int) -> int:
        """Rotate the shown page in the collection and re-render it.

        Returns:
            The page's new rotation
        """
        record = self.current_page
        if record is None:
            raise PageIndexError(-1, len(self._collection))
        rotation = self._collection.rotate(record.id, degrees)
        await self._render_current()
        return rotation

    async def refresh(self) -> None:
        """Re-render the shown page, e.g. after it was rotated elsewhere."""
        await self._render_current()

    def close(self) -> None:
        self._generation += 1
        self._current_id = None
        self.preview = None
        self.last_error = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _render_current(self) -> None:
        record = self.current_page
        if record is None:
            return

        self._generation += 1
        generation = self._generation
        try:
            image = await self._renderer.render_async(
                record.source.data, record.source_page_index, self._scale, record.rotation
            )
        except RenderFailure as e:
            if generation == self._generation:
                logger.warning(f"Preview of {record.label} failed: {e}")
                self.preview = None
                self.last_error = str(e)
            return

        if generation != self._generation:
            logger.debug(f"Dropping superseded preview of {record.label}")
            return
        self.preview = image
        self.last_error = None

    def _on_collection_event(self, event: CollectionEvent) -> None:
        if self._current_id is None:
            return
        if event.kind == EventKind.CLEARED:
            self.close()
        elif event.kind == EventKind.PAGE_REMOVED and self._current_id in event.page_ids:
            self.close()
        elif event.kind == EventKind.PAGE_ROTATED and self._current_id in event.page_ids:
            # The bitmap no longer matches the page until it is re-rendered
            self._generation += 1
            self.preview = None
