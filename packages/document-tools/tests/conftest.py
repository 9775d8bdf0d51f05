"""Fixtures for document extraction tests.

PDFs are generated in memory with PyMuPDF so no binary fixtures are needed.
"""

import io

import fitz
import pytest
from PIL import Image

from hazmat_documents import OcrEngine

TEXT_PAGE = (
    "SECTION 14: Transport information. UN number: UN1263. "
    "Proper shipping name: Paint. Hazard class: 3. Packing group: II."
)


def make_text_pdf(pages: list[str]) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_textbox(fitz.Rect(72, 72, 540, 720), text, fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


def make_blank_pdf(page_count: int) -> bytes:
    doc = fitz.open()
    for _ in range(page_count):
        doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


def make_png(size: tuple[int, int] = (200, 80)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format="PNG")
    return buffer.getvalue()


class FakeOcrEngine(OcrEngine):
    """Records lifecycle calls and returns canned text per image."""

    def __init__(self, fail_on_start=False, fail_on_page=None):
        self.fail_on_start = fail_on_start
        self.fail_on_page = fail_on_page
        self.started = False
        self.close_calls = 0
        self.recognized = []

    async def start(self):
        if self.fail_on_start:
            raise RuntimeError("tesseract not installed")
        self.started = True

    async def recognize(self, image: bytes) -> str:
        page = len(self.recognized) + 1
        if self.fail_on_page == page:
            raise RuntimeError("recognition crashed")
        self.recognized.append(image)
        return f"recognized page {page}"

    async def close(self):
        self.close_calls += 1


@pytest.fixture
def text_pdf() -> bytes:
    """Three pages, each well above the scan threshold."""
    return make_text_pdf([f"Page {i}. {TEXT_PAGE}" for i in range(1, 4)])


@pytest.fixture
def scanned_pdf() -> bytes:
    """Two pages with no text layer."""
    return make_blank_pdf(2)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def fake_engine() -> FakeOcrEngine:
    return FakeOcrEngine()


@pytest.fixture
def pdf_builder():
    """Builders for in-memory PDFs: ``pdf_builder.text([...])``, ``pdf_builder.blank(n)``."""

    class Builder:
        text = staticmethod(make_text_pdf)
        blank = staticmethod(make_blank_pdf)

    return Builder


@pytest.fixture
def make_engine():
    """Factory for FakeOcrEngine with failure knobs."""
    return FakeOcrEngine
