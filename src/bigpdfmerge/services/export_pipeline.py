"""
BigPdfMerge - Export Pipeline

Assembles the pages of a collection, in collection order, into one new
PDF and returns its bytes. Each distinct source is opened at most once
per export. Any failing page aborts the whole export; no partial output
is ever produced.
"""

import asyncio
import io
import logging
import os
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

import pikepdf

from bigpdfmerge.config import DEFAULT_OUTPUT_NAME
from bigpdfmerge.constants import EXPORT_WORKERS
from bigpdfmerge.editor.page_collection import PageCollection
from bigpdfmerge.editor.page_model import PageRecord, PageRef, SourceDocument
from bigpdfmerge.services.pdf_operations import friendly_error, resolve_page_rotation
from bigpdfmerge.utils.exceptions import (
    EmptyCollectionError,
    ExportInProgressError,
    InvalidSourceDataError,
    PageExportError,
    PageOutOfRangeError,
)

logger = logging.getLogger(__name__)

Opener = Callable[[SourceDocument], pikepdf.Pdf]


def open_source(source: SourceDocument) -> pikepdf.Pdf:
    """Open a source document on its own stream."""
    return pikepdf.open(source.open_stream())


def _apply_rotation(page: pikepdf.Page, rotation: int) -> None:
    """Set the absolute rotation of a copied page."""
    if rotation:
        page.obj.Rotate = rotation
    elif resolve_page_rotation(page):
        page.obj.Rotate = 0


def _as_refs(pages: PageCollection | Iterable[PageRecord | PageRef]) -> tuple[PageRef, ...]:
    if isinstance(pages, PageCollection):
        return pages.snapshot()
    return tuple(p if isinstance(p, PageRef) else PageRef.from_record(p) for p in pages)


@dataclass
class ExportResult:
    """Result of a successful export.

    Attributes:
        data: Serialized output document
        page_count: Pages written
        sources_opened: Distinct source documents opened
        filename: Suggested filename for the output
    """

    data: bytes = field(repr=False)
    page_count: int
    sources_opened: int
    filename: str = DEFAULT_OUTPUT_NAME

    @property
    def size(self) -> int:
        return len(self.data)


class ExportPipeline:
    """Merges page records into a single output document."""

    def __init__(
        self,
        opener: Opener | None = None,
        output_name: str = DEFAULT_OUTPUT_NAME,
    ) -> None:
        """Initialize the pipeline.

        Args:
            opener: Function that opens a source into a pikepdf handle
            output_name: Suggested filename for exported documents
        """
        self._opener = opener or open_source
        self._output_name = output_name
        self._pool = ThreadPoolExecutor(max_workers=EXPORT_WORKERS, thread_name_prefix="export")
        self._busy = False

    @property
    def busy(self) -> bool:
        """Whether an asynchronous export is in flight."""
        return self._busy

    def export(self, pages: PageCollection | Iterable[PageRecord | PageRef]) -> bytes:
        """Export pages synchronously and return the output bytes."""
        return self.build(_as_refs(pages)).data

    async def export_async(
        self, pages: PageCollection | Iterable[PageRecord | PageRef]
    ) -> ExportResult:
        """Export pages on the worker pool.

        The page order is captured before the first suspension point, so
        edits made while the export runs do not affect its output.

        Raises:
            ExportInProgressError: If another export has not finished yet
        """
        if self._busy:
            raise ExportInProgressError()
        refs = _as_refs(pages)
        if not refs:
            raise EmptyCollectionError()

        self._busy = True
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._pool, self.build, refs)
        finally:
            self._busy = False

    def build(self, refs: tuple[PageRef, ...]) -> ExportResult:
        """Copy every referenced page, in order, into a new document.

        Raises:
            EmptyCollectionError: If there are no pages
            PageExportError: If any page fails; carries filename and page number
        """
        if not refs:
            raise EmptyCollectionError()

        handles: dict[str, pikepdf.Pdf] = {}
        output = pikepdf.Pdf.new()
        try:
            for ref in refs:
                handle = self._resolve_handle(ref, handles)

                page_count = len(handle.pages)
                if not 0 <= ref.source_page_index < page_count:
                    raise PageOutOfRangeError(ref.filename, ref.page_number, page_count)

                try:
                    output.pages.append(handle.pages[ref.source_page_index])
                    _apply_rotation(output.pages[-1], ref.rotation)
                except (pikepdf.PdfError, pikepdf.ForeignObjectError, ValueError, TypeError) as e:
                    raise PageExportError(ref.filename, ref.page_number, str(e)) from e

            buffer = io.BytesIO()
            output.save(buffer)
        except PageExportError as e:
            logger.error("Export aborted: %s", e)
            raise
        except pikepdf.PdfError as e:
            logger.error("Export aborted while writing the output: %s", e)
            raise
        finally:
            for handle in handles.values():
                handle.close()
            output.close()

        logger.info(
            "Exported %d page(s) from %d source(s), %d bytes",
            len(refs),
            len(handles),
            buffer.tell(),
        )
        return ExportResult(
            data=buffer.getvalue(),
            page_count=len(refs),
            sources_opened=len(handles),
            filename=self._output_name,
        )

    def _resolve_handle(self, ref: PageRef, handles: dict[str, pikepdf.Pdf]) -> pikepdf.Pdf:
        handle = handles.get(ref.source.key)
        if handle is not None:
            return handle

        if not ref.source.data:
            raise InvalidSourceDataError(ref.filename, ref.page_number, "the document data is empty")
        try:
            handle = self._opener(ref.source)
        except (pikepdf.PdfError, OSError, ValueError) as e:
            raise InvalidSourceDataError(ref.filename, ref.page_number, friendly_error(e)) from e

        handles[ref.source.key] = handle
        logger.debug("Opened %s for export (%d pages)", ref.filename, len(handle.pages))
        return handle

    def save(self, data: bytes, destination: str | Path, filename: str | None = None) -> Path:
        """Write exported bytes to disk.

        Args:
            data: Output of an export
            destination: Target directory, or a full file path
            filename: Filename when ``destination`` is a directory

        Returns:
            Path of the written file
        """
        destination = Path(destination)
        if destination.is_dir():
            destination = destination / (filename or self._output_name)
        destination.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = destination.with_name(destination.name + ".part")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, destination)
        logger.info("Saved merged PDF to %s", destination)
        return destination

    def close(self) -> None:
        self._pool.shutdown(wait=True)
