"""Hazmat KB Document Tools - PDF and image text extraction.

Provides:
- Text layer extraction and page rasterization (PyMuPDF)
- OCR engine sessions (Tesseract)
- DocumentExtractionService with text-layer fast path and OCR fallback
"""

from hazmat_documents.extraction_service import (
    DEFAULT_MIN_TEXT_CHARS,
    DEFAULT_RASTER_SCALE,
    DocumentExtractionService,
    ProgressCallback,
)
from hazmat_documents.ocr_engine import OcrEngine, TesseractEngine
from hazmat_documents.pymupdf_extractor import (
    ExtractedDocument,
    ExtractedPage,
    extract_text_layer,
    get_full_text,
    rasterize_page,
)
from hazmat_documents.uploads import PDF_MEDIA_TYPE, UploadedFile

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_MIN_TEXT_CHARS",
    "DEFAULT_RASTER_SCALE",
    "DocumentExtractionService",
    "ProgressCallback",
    "OcrEngine",
    "TesseractEngine",
    "ExtractedDocument",
    "ExtractedPage",
    "extract_text_layer",
    "get_full_text",
    "rasterize_page",
    "PDF_MEDIA_TYPE",
    "UploadedFile",
]
