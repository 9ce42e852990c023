"""Pytest configuration for bigpdfmerge tests.

Provides helpers that build small in-memory PDFs with pikepdf. Every page
gets a distinct MediaBox width so tests can tell pages apart after they
have been copied into a merged document.
"""

import io

import pikepdf
import pytest
from PIL import Image

from bigpdfmerge.editor.page_collection import PageCollection
from bigpdfmerge.editor.source_store import SourceStore

PAGE_HEIGHT = 300


def make_pdf(widths: list[int], rotations: list[int] | None = None) -> bytes:
    """Create a PDF whose page ``i`` is ``widths[i]`` points wide."""
    pdf = pikepdf.Pdf.new()
    for i, width in enumerate(widths):
        page = pikepdf.Page(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Page,
                MediaBox=[0, 0, width, PAGE_HEIGHT],
                Contents=pdf.make_stream(f"BT /F1 12 Tf 10 10 Td (Page {i + 1}) Tj ET".encode()),
            )
        )
        pdf.pages.append(page)
        if rotations and rotations[i]:
            pdf.pages[-1].obj.Rotate = rotations[i]
    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def page_widths(data: bytes) -> list[int]:
    """MediaBox width of every page of a PDF, in order."""
    with pikepdf.open(io.BytesIO(data)) as pdf:
        return [int(page.obj.MediaBox[2]) for page in pdf.pages]


def page_rotations(data: bytes) -> list[int]:
    """Declared /Rotate of every page of a PDF, in order (0 if absent)."""
    with pikepdf.open(io.BytesIO(data)) as pdf:
        return [int(page.obj.get("/Rotate", 0)) for page in pdf.pages]


class FakeRenderer:
    """Stand-in for PageRenderer that records calls.

    The returned image encodes the request: width is the page index + 10,
    height is the rotation + 10.
    """

    def __init__(self, fail_pages: set[int] | None = None) -> None:
        self.calls: list[tuple[int, float, int]] = []
        self.fail_pages = fail_pages or set()

    async def render_async(self, data, page_index, scale, rotation=0):
        import asyncio

        from bigpdfmerge.utils.exceptions import RenderFailure

        self.calls.append((page_index, scale, rotation))
        await asyncio.sleep(0)
        if page_index in self.fail_pages:
            raise RenderFailure(page_index, "broken page")
        return Image.new("RGB", (page_index + 10, rotation + 10))

    def close(self) -> None:
        pass


@pytest.fixture
def three_page_pdf() -> bytes:
    return make_pdf([101, 102, 103])


@pytest.fixture
def store() -> SourceStore:
    return SourceStore()


@pytest.fixture
def collection(store) -> PageCollection:
    return PageCollection(store)


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()
