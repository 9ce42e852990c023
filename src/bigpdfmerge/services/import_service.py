"""
BigPdfMerge - Import Service

Turns input files into source documents and page records. Files are
inspected concurrently but their pages are appended in input order, so
the resulting collection order never depends on which file finished
parsing first. A file that fails to import is reported and skipped;
the remaining files still go through.
"""

import asyncio
import logging
import mimetypes
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from bigpdfmerge.config import ACCEPTED_MEDIA_TYPE
from bigpdfmerge.constants import INSPECT_WORKERS
from bigpdfmerge.editor.page_collection import PageCollection
from bigpdfmerge.editor.page_model import PageRecord, SourceDocument, content_key
from bigpdfmerge.services.pdf_operations import PDFInfo, inspect_pdf
from bigpdfmerge.utils.exceptions import ImportFailure
from bigpdfmerge.utils.i18n import _

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputFile:
    """A document handed to the importer: its name and its bytes."""

    name: str
    data: bytes = field(repr=False)

    @classmethod
    def from_path(cls, path: str | Path) -> "InputFile":
        path = Path(path)
        return cls(name=path.name, data=path.read_bytes())

    @property
    def media_type(self) -> str | None:
        return mimetypes.guess_type(self.name)[0]

    @property
    def is_pdf(self) -> bool:
        return self.media_type == ACCEPTED_MEDIA_TYPE


@dataclass
class ImportReport:
    """Outcome of one import batch."""

    added: list[PageRecord] = field(default_factory=list)
    sources: list[SourceDocument] = field(default_factory=list)
    failures: list[ImportFailure] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def page_count(self) -> int:
        return len(self.added)


class ImportService:
    """Imports PDF files into a page collection."""

    def __init__(self, collection: PageCollection, max_workers: int = INSPECT_WORKERS) -> None:
        self._collection = collection
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="import")
        # Inspection results by content key; a document is parsed only once
        self._known: dict[str, PDFInfo] = {}

    async def import_files(self, files: Iterable[InputFile]) -> ImportReport:
        """Import a batch of files.

        Args:
            files: Input files, in the order their pages should be appended

        Returns:
            ImportReport listing added records, failures and skipped files
        """
        report = ImportReport()
        accepted: list[InputFile] = []
        for f in files:
            if f.is_pdf:
                accepted.append(f)
            else:
                logger.info("Skipping %s: not a PDF (%s)", f.name, f.media_type)
                report.skipped.append(f.name)

        keys = [content_key(f.data) for f in accepted]
        to_inspect: dict[str, InputFile] = {}
        for key, f in zip(keys, accepted):
            if key not in self._known and key not in to_inspect:
                to_inspect[key] = f

        loop = asyncio.get_running_loop()
        results = await asyncio.gather(
            *(
                loop.run_in_executor(self._pool, inspect_pdf, f.name, f.data)
                for f in to_inspect.values()
            ),
            return_exceptions=True,
        )

        errors: dict[str, ImportFailure] = {}
        for key, result in zip(to_inspect, results):
            if isinstance(result, PDFInfo):
                self._known[key] = result
            elif isinstance(result, ImportFailure):
                errors[key] = result
            elif isinstance(result, Exception):
                errors[key] = ImportFailure(to_inspect[key].name, str(result))
            else:
                raise result

        for key, f in zip(keys, accepted):
            if key in errors:
                failure = errors[key]
                if failure.filename != f.name:
                    failure = ImportFailure(f.name, failure.reason)
                logger.warning("Import failed: %s", failure)
                report.failures.append(failure)
                continue

            info = self._known[key]
            source = self._collection.store.register(f.name, f.data)
            records = self._collection.append(source, info.page_count, info.page_rotations)
            report.added.extend(records)
            report.sources.append(source)

        logger.info(
            "Imported %d page(s) from %d file(s); %d failed, %d skipped",
            report.page_count,
            len(report.sources),
            len(report.failures),
            len(report.skipped),
        )
        return report

    async def import_paths(self, paths: Iterable[str | Path]) -> ImportReport:
        """Read files from disk and import them.

        Files that cannot be read are reported as failures.
        """
        loop = asyncio.get_running_loop()
        paths = [Path(p) for p in paths]
        results = await asyncio.gather(
            *(loop.run_in_executor(self._pool, InputFile.from_path, p) for p in paths),
            return_exceptions=True,
        )

        files: list[InputFile] = []
        read_failures: list[ImportFailure] = []
        for path, result in zip(paths, results):
            if isinstance(result, InputFile):
                files.append(result)
            elif isinstance(result, OSError):
                logger.warning("Cannot read %s: %s", path, result)
                read_failures.append(ImportFailure(path.name, _("Could not read the file")))
            else:
                raise result

        report = await self.import_files(files)
        report.failures[:0] = read_failures
        return report

    def forget(self) -> None:
        """Drop cached inspection results (after the collection is cleared)."""
        self._known.clear()

    def close(self) -> None:
        self._pool.shutdown(wait=True)
