"""
BigPdfMerge - Page Renderer

Rasterizes single PDF pages to Pillow images with PyMuPDF. Every call
opens its own document from the immutable source bytes, so renders never
share parser state with each other or with an export.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

import fitz  # PyMuPDF
from PIL import Image

from bigpdfmerge.constants import RENDER_WORKERS
from bigpdfmerge.editor.page_model import normalize_rotation
from bigpdfmerge.utils.exceptions import RenderFailure

logger = logging.getLogger(__name__)

# Clockwise rotation expressed as Pillow transposes (which turn counter-clockwise)
_CLOCKWISE_TRANSPOSE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


def apply_rotation(image: Image.Image, rotation: int) -> Image.Image:
    """Rotate an image clockwise by a multiple of 90 degrees."""
    rot = normalize_rotation(rotation)
    if rot == 0:
        return image
    return image.transpose(_CLOCKWISE_TRANSPOSE[rot])


class PageRenderer:
    """Renders PDF pages to bitmaps on a private worker pool.

    ``rotation`` turns the output clockwise. Rotation 0 is the page's
    natural orientation: its content without any ``/Rotate`` the page
    itself declares, because page records already fold that value into
    their own rotation at import.
    """

    def __init__(self, max_workers: int = RENDER_WORKERS) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="render")

    def render(
        self,
        data: bytes,
        page_index: int,
        scale: float,
        rotation: int = 0,
    ) -> Image.Image:
        """Render one page synchronously.

        Args:
            data: Whole-document PDF bytes
            page_index: Zero-based page index
            scale: Zoom factor relative to 72 dpi
            rotation: Clockwise rotation in degrees

        Returns:
            RGB image of the page

        Raises:
            RenderFailure: If the document or the page cannot be rendered
        """
        if scale <= 0:
            raise ValueError("scale must be positive")
        if not data:
            raise RenderFailure(page_index, "the document is empty")

        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                if not 0 <= page_index < doc.page_count:
                    raise RenderFailure(
                        page_index, f"the document has {doc.page_count} page(s)"
                    )
                page = doc.load_page(page_index)
                if page.rotation:
                    page.set_rotation(0)
                pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
                image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        except RenderFailure:
            raise
        except (RuntimeError, ValueError) as e:
            raise RenderFailure(page_index, str(e)) from e

        return apply_rotation(image, rotation)

    async def render_async(
        self,
        data: bytes,
        page_index: int,
        scale: float,
        rotation: int = 0,
    ) -> Image.Image:
        """Render one page on the worker pool without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._pool, self.render, data, page_index, scale, rotation
        )

    def close(self) -> None:
        """Shut down the worker pool, dropping renders that have not started."""
        self._pool.shutdown(wait=True, cancel_futures=True)
