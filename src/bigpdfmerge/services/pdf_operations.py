"""
BigPdfMerge - PDF Operations Service

Pure-Python helpers around pikepdf for opening source documents from
memory and inspecting them. No UI dependencies - can be used from the
CLI, a GUI, or scripts.
"""

import io
import logging
from dataclasses import dataclass

import pikepdf

from bigpdfmerge.editor.page_model import normalize_rotation
from bigpdfmerge.utils.exceptions import ImportFailure
from bigpdfmerge.utils.i18n import _

logger = logging.getLogger(__name__)


def friendly_error(e: Exception) -> str:
    """Map common exceptions to user-friendly messages."""
    if isinstance(e, pikepdf.PasswordError):
        return _("This PDF is password-protected. Remove the password first.")
    if isinstance(e, pikepdf.PdfError):
        return _("The PDF file appears to be damaged or invalid: {error}").format(error=e)
    return str(e)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PDFInfo:
    """Basic information about an in-memory PDF document."""

    filename: str
    page_count: int
    file_size_bytes: int
    page_rotations: tuple[int, ...] = ()
    pdf_version: str = ""


# ---------------------------------------------------------------------------
# Opening / Inspection
# ---------------------------------------------------------------------------


def open_pdf_bytes(data: bytes) -> pikepdf.Pdf:
    """Open PDF bytes on a stream of their own.

    Raises:
        ValueError: If ``data`` is empty.
        pikepdf.PdfError: If the bytes are not a readable PDF.
    """
    if not data:
        raise ValueError("empty document")
    return pikepdf.open(io.BytesIO(data))


def resolve_page_rotation(page: pikepdf.Page) -> int:
    """Resolve the effective /Rotate of a page, including inherited values."""
    node = page.obj
    while node is not None:
        if "/Rotate" in node:
            try:
                return normalize_rotation(int(node["/Rotate"]))
            except (TypeError, ValueError):
                logger.warning("Ignoring malformed /Rotate value %r", node["/Rotate"])
                return 0
        node = node.get("/Parent")
    return 0


def inspect_pdf(filename: str, data: bytes) -> PDFInfo:
    """Read the page count and per-page rotation of a PDF.

    Args:
        filename: Name used in messages.
        data: Whole-document bytes.

    Returns:
        PDFInfo for the document.

    Raises:
        ImportFailure: If the bytes cannot be opened or hold no pages.
    """
    try:
        with open_pdf_bytes(data) as pdf:
            rotations = tuple(resolve_page_rotation(page) for page in pdf.pages)
            info = PDFInfo(
                filename=filename,
                page_count=len(rotations),
                file_size_bytes=len(data),
                page_rotations=rotations,
                pdf_version=str(pdf.pdf_version),
            )
    except (pikepdf.PdfError, ValueError, OSError) as e:
        raise ImportFailure(filename, friendly_error(e)) from e

    if info.page_count == 0:
        raise ImportFailure(filename, _("The document has no pages"))

    logger.debug("Inspected %s: %d pages, PDF %s", filename, info.page_count, info.pdf_version)
    return info
