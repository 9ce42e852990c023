"""
BigPdfMerge - Custom Exceptions Module

This module defines custom exception classes for specific error cases
in the BigPdfMerge page collection, rendering and export pipeline.
"""


class BigPdfMergeError(Exception):
    """Base exception for all BigPdfMerge errors.

    All custom exceptions should inherit from this class to allow
    catching any BigPdfMerge-specific error.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional technical details for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ImportFailure(BigPdfMergeError):
    """Raised when a source document's bytes cannot be opened or parsed."""

    def __init__(self, filename: str, reason: str | None = None) -> None:
        """Initialize the exception.

        Args:
            filename: Name of the file that failed to import
            reason: Optional reason why the file was rejected
        """
        self.filename = filename
        self.reason = reason
        msg = f"Could not import {filename}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg, details=f"file={filename}")


class RenderFailure(BigPdfMergeError):
    """Raised when a page cannot be rasterized."""

    def __init__(self, page_index: int, reason: str | None = None) -> None:
        self.page_index = page_index
        self.reason = reason
        msg = f"Could not render page {page_index + 1}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


class EmptyCollectionError(BigPdfMergeError):
    """Raised when an export is requested for a collection with no pages."""

    def __init__(self) -> None:
        super().__init__("There are no pages to merge")


class ExportInProgressError(BigPdfMergeError):
    """Raised when an export is started while another one is still running."""

    def __init__(self) -> None:
        super().__init__("An export is already in progress")


class PageExportError(BigPdfMergeError):
    """Raised when a single page aborts the export.

    Carries the originating filename and 1-based page number so the
    caller can point the user at the offending page.
    """

    def __init__(self, filename: str, page_number: int, reason: str | None = None) -> None:
        """Initialize the exception.

        Args:
            filename: Source document the page belongs to
            page_number: 1-based page number within that source
            reason: Optional reason for the failure
        """
        self.filename = filename
        self.page_number = page_number
        self.reason = reason

        msg = f"Failed to export page {page_number} of {filename}"
        if reason:
            msg += f": {reason}"

        super().__init__(msg, details=f"file={filename}, page={page_number}")


class InvalidSourceDataError(PageExportError):
    """Raised when a source's bytes are empty or corrupt at export time."""


class PageOutOfRangeError(PageExportError):
    """Raised when a page index exceeds its source's actual page count."""

    def __init__(self, filename: str, page_number: int, page_count: int) -> None:
        self.page_count = page_count
        super().__init__(
            filename,
            page_number,
            reason=f"the document has only {page_count} page(s)",
        )


class PageNotFoundError(BigPdfMergeError):
    """Raised when no page record has the requested id."""

    def __init__(self, page_id: int) -> None:
        self.page_id = page_id
        super().__init__(f"No page with id {page_id}")


class PageIndexError(BigPdfMergeError, IndexError):
    """Raised when a position is outside the current collection bounds."""

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(
            f"Page position {index} is out of range",
            details=f"length={length}",
        )


# Exception hierarchy summary:
# BigPdfMergeError (base)
# ├── ImportFailure
# ├── RenderFailure
# ├── EmptyCollectionError
# ├── ExportInProgressError
# ├── PageExportError
# │   ├── InvalidSourceDataError
# │   └── PageOutOfRangeError
# ├── PageNotFoundError
# └── PageIndexError
