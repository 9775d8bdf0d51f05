"""PyMuPDF-based PDF text extraction and page rasterization.

Extracts the embedded text layer page by page. Scanned documents carry no
text layer, so pages can also be rendered to PNG for OCR.
"""

from dataclasses import dataclass

import fitz  # PyMuPDF

from hazmat_common import get_logger

logger = get_logger(__name__)


@dataclass
class ExtractedPage:
    """Single page of extracted content."""

    page_num: int
    text: str
    char_count: int


@dataclass
class ExtractedDocument:
    """Complete text layer of a document."""

    name: str
    total_pages: int
    pages: list[ExtractedPage]
    total_chars: int


def open_pdf(data: bytes, name: str = "document.pdf") -> fitz.Document:
    """Open a PDF from memory.

    Raises:
        ValueError: If PDF is corrupted or encrypted
    """
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise ValueError(f"Failed to open PDF (corrupted or encrypted?): {e}") from e

    if doc.needs_pass:
        doc.close()
        raise ValueError(f"PDF is encrypted: {name}")

    if doc.page_count == 0:
        doc.close()
        raise ValueError(f"PDF has no pages (corrupted?): {name}")

    return doc


def extract_text_layer(data: bytes, name: str = "document.pdf") -> ExtractedDocument:
    """Extract the embedded text layer from an in-memory PDF.

    Args:
        data: PDF bytes
        name: Display name for logs

    Returns:
        ExtractedDocument with text and page numbers

    Raises:
        ValueError: If PDF is corrupted or encrypted

    Example:
        >>> doc = extract_text_layer(pdf_bytes, "sds.pdf")
        >>> print(f"Extracted {doc.total_pages} pages, {doc.total_chars} chars")
    """
    logger.info("extracting_text_layer", name=name, size=len(data))

    doc = open_pdf(data, name)
    pages = []
    total_chars = 0

    try:
        for page_num in range(len(doc)):
            text = doc[page_num].get_text()
            text = text.replace("\x00", "")

            # Strip excessive whitespace but preserve line breaks
            text = "\n".join(line.strip() for line in text.split("\n") if line.strip())

            total_chars += len(text)
            pages.append(
                ExtractedPage(page_num=page_num + 1, text=text, char_count=len(text))
            )
    finally:
        doc.close()

    logger.info("text_layer_extracted", name=name, pages=len(pages), chars=total_chars)

    return ExtractedDocument(
        name=name,
        total_pages=len(pages),
        pages=pages,
        total_chars=total_chars,
    )


def get_full_text(document: ExtractedDocument) -> str:
    """Get complete document text as single string.

    Returns:
        All pages concatenated with double newline separator
    """
    return "\n\n".join(page.text for page in document.pages)


def rasterize_page(data: bytes, page_index: int, scale: float = 2.0) -> bytes:
    """Render one page to PNG bytes at ``scale`` times its natural size.

    Args:
        data: PDF bytes
        page_index: 0-based page index
        scale: Upscale factor (2.0 improves OCR accuracy)

    Returns:
        PNG image bytes
    """
    doc = open_pdf(data)
    try:
        pixmap = doc[page_index].get_pixmap(matrix=fitz.Matrix(scale, scale))
        return pixmap.tobytes("png")
    finally:
        doc.close()
