"""
BigPdfMerge - Merge Session

Wires the page collection, its renderers, the importer and the export
pipeline together for one editing session. Front-ends (CLI or GUI) hold
a session and call its commands; nothing here is global.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from bigpdfmerge.config import MergeSettings
from bigpdfmerge.editor.page_collection import PageCollection
from bigpdfmerge.editor.preview_controller import PreviewController
from bigpdfmerge.editor.source_store import SourceStore
from bigpdfmerge.editor.thumbnail_renderer import ThumbnailRenderer
from bigpdfmerge.services.export_pipeline import ExportPipeline, ExportResult, Opener
from bigpdfmerge.services.import_service import ImportReport, ImportService, InputFile
from bigpdfmerge.services.page_renderer import PageRenderer

logger = logging.getLogger(__name__)


class MergeSession:
    """One page-merging session.

    Usable as an async context manager, which releases the worker pools
    on exit.
    """

    def __init__(
        self,
        settings: MergeSettings | None = None,
        renderer: PageRenderer | None = None,
        opener: Opener | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            settings: Scales, cache size and output name
            renderer: Page rasterizer (defaults to PyMuPDF)
            opener: Source opener used by exports (defaults to pikepdf)
        """
        self.settings = settings or MergeSettings()
        self.renderer = renderer or PageRenderer()
        self.thumbnails = ThumbnailRenderer(
            self.renderer,
            scale=self.settings.thumbnail_scale,
            cache_size=self.settings.thumbnail_cache_size,
        )
        self.store = SourceStore()
        self.collection = PageCollection(self.store, self.thumbnails)
        self.importer = ImportService(self.collection)
        self.exporter = ExportPipeline(opener=opener, output_name=self.settings.output_name)
        self.preview = PreviewController(
            self.collection, self.renderer, scale=self.settings.preview_scale
        )

    async def __aenter__(self) -> "MergeSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.thumbnails.drain()
        self.close()

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    async def import_files(self, files: Iterable[InputFile]) -> ImportReport:
        return await self.importer.import_files(files)

    async def import_paths(self, paths: Iterable[str | Path]) -> ImportReport:
        return await self.importer.import_paths(paths)

    async def wait_for_thumbnails(self) -> None:
        await self.collection.refresh_thumbnails()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def remove(self, page_id: int) -> None:
        self.collection.remove(page_id)

    def move(self, old_index: int, new_index: int) -> None:
        self.collection.move(old_index, new_index)

    def rotate(self, page_id: int, degrees: int) -> int:
        return self.collection.rotate(page_id, degrees)

    def clear(self) -> None:
        self.collection.clear()
        self.importer.forget()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    @property
    def can_export(self) -> bool:
        """Whether an export may start now (pages present, none in flight)."""
        return len(self.collection) > 0 and not self.exporter.busy

    async def export(self) -> ExportResult:
        return await self.exporter.export_async(self.collection)

    async def export_to(self, destination: str | Path) -> Path:
        """Export and write the result to ``destination`` (file or directory)."""
        result = await self.export()
        return self.exporter.save(result.data, destination, result.filename)

    def close(self) -> None:
        self.preview.close()
        self.renderer.close()
        self.importer.close()
        self.exporter.close()
        logger.debug("Merge session closed")
