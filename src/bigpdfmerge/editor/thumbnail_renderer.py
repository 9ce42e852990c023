"""
BigPdfMerge - Thumbnail Renderer

Schedules thumbnail renders for page records on the running event loop
and keeps the results in an LRU cache.
"""

import asyncio
from collections import OrderedDict
from collections.abc import Callable
from typing import TYPE_CHECKING

from bigpdfmerge.constants import THUMBNAIL_CACHE_SIZE, THUMBNAIL_SCALE
from bigpdfmerge.editor.page_model import PageRecord, SourceDocument
from bigpdfmerge.utils.exceptions import RenderFailure
from bigpdfmerge.utils.logger import logger

if TYPE_CHECKING:
    from PIL import Image

    from bigpdfmerge.services.page_renderer import PageRenderer

# (page_id, rotation, image, error)
ThumbnailCallback = Callable[[int, int, "Image.Image | None", "str | None"], None]

_CacheKey = tuple[str, int, float, int]


class ThumbnailRenderer:
    """Renders page thumbnails with caching and request coalescing.

    Requests for a key that is already being rendered do not start a
    second render; their callbacks are queued and all of them receive
    the same result.
    """

    def __init__(
        self,
        renderer: "PageRenderer",
        scale: float = THUMBNAIL_SCALE,
        cache_size: int = THUMBNAIL_CACHE_SIZE,
    ) -> None:
        """Initialize the thumbnail renderer.

        Args:
            renderer: Page rasterizer used for the actual renders
            scale: Thumbnail scale relative to 72 dpi
            cache_size: Maximum number of thumbnails to cache
        """
        self._renderer = renderer
        self._scale = scale
        self._cache_size = cache_size
        self._cache: OrderedDict[_CacheKey, "Image.Image"] = OrderedDict()
        self._waiters: dict[_CacheKey, list[Callable[["Image.Image | None", "str | None"], None]]] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def pending(self) -> int:
        """Number of renders currently in flight."""
        return len(self._waiters)

    def _get_cache_key(self, source: SourceDocument, page_index: int, rotation: int) -> _CacheKey:
        return (source.key, page_index, self._scale, rotation)

    def _evict_cache(self) -> None:
        """Evict oldest items from cache."""
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)

    def cached(self, record: PageRecord) -> "Image.Image | None":
        key = self._get_cache_key(record.source, record.source_page_index, record.rotation)
        return self._cache.get(key)

    def schedule(self, record: PageRecord, callback: ThumbnailCallback) -> asyncio.Task | None:
        """Request a thumbnail for ``record`` at its current rotation.

        Cache hits are delivered immediately. Otherwise the render runs as
        a task on the running loop and ``callback`` fires on completion.

        Returns:
            The render task, or None when nothing new was started
        """
        page_id, rotation = record.id, record.rotation
        key = self._get_cache_key(record.source, record.source_page_index, rotation)

        if key in self._cache:
            self._cache.move_to_end(key)
            callback(page_id, rotation, self._cache[key], None)
            return None

        def waiter(image, error):
            callback(page_id, rotation, image, error)

        # Already being rendered; share that result
        if key in self._waiters:
            self._waiters[key].append(waiter)
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop, deferring thumbnail for {record.label}")
            return None

        self._waiters[key] = [waiter]
        task = loop.create_task(
            self._render(record.source, record.source_page_index, rotation, key)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _render(
        self,
        source: SourceDocument,
        page_index: int,
        rotation: int,
        key: _CacheKey,
    ) -> None:
        image = None
        error = None
        try:
            image = await self._renderer.render_async(source.data, page_index, self._scale, rotation)
        except RenderFailure as e:
            logger.warning(f"Thumbnail for {source.filename} page {page_index + 1} failed: {e}")
            error = str(e)
        except Exception as e:
            logger.error(f"Unexpected error rendering {source.filename} page {page_index + 1}: {e}")
            error = str(e)
        else:
            self._cache[key] = image
            self._evict_cache()
        finally:
            waiters = self._waiters.pop(key, [])

        for waiter in waiters:
            waiter(image, error)

    async def drain(self) -> None:
        """Wait until every scheduled render has completed."""
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Thumbnail render task failed: {result}")

    def clear(self) -> None:
        """Clear all cached thumbnails."""
        self._cache.clear()
