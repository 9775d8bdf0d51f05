"""Document Extraction Service.

Turns an uploaded PDF or image into plain text. PDFs with an embedded text
layer take the fast path; scans and images go through OCR.

Flow:
    1. Reject unsupported media types (no I/O)
    2. PDF: extract the text layer, return it if it is long enough
    3. Otherwise: start OCR engine, rasterize each page, recognize each page
    4. Release the OCR engine on every path
"""

import asyncio
from typing import Callable, Optional

from hazmat_common import ExtractionFailure, InputRejected, get_logger
from hazmat_common.config import get_settings
from hazmat_contracts import ExtractionPhase, ProgressEvent

from hazmat_documents.ocr_engine import OcrEngine, TesseractEngine
from hazmat_documents.pymupdf_extractor import (
    extract_text_layer,
    get_full_text,
    rasterize_page,
)
from hazmat_documents.uploads import UploadedFile

logger = get_logger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]

# Below this many characters a text layer is treated as a scan
DEFAULT_MIN_TEXT_CHARS = 50
DEFAULT_RASTER_SCALE = 2.0


class DocumentExtractionService:
    """Extract text from uploaded documents.

    Example:
        >>> service = DocumentExtractionService(lambda: TesseractEngine("eng"))
        >>> text = await service.extract_text(UploadedFile.from_path("sds.pdf"))
    """

    def __init__(
        self,
        ocr_engine_factory: Callable[[], OcrEngine],
        min_text_chars: int = DEFAULT_MIN_TEXT_CHARS,
        raster_scale: float = DEFAULT_RASTER_SCALE,
    ):
        self.ocr_engine_factory = ocr_engine_factory
        self.min_text_chars = min_text_chars
        self.raster_scale = raster_scale

    @classmethod
    def from_settings(cls) -> "DocumentExtractionService":
        settings = get_settings()
        return cls(
            ocr_engine_factory=lambda: TesseractEngine(language=settings.ocr_language),
            min_text_chars=settings.ocr_min_text_chars,
            raster_scale=settings.ocr_raster_scale,
        )

    async def extract_text(
        self,
        upload: UploadedFile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Extract text from a PDF or image.

        Args:
            upload: File to extract
            on_progress: Optional callback receiving ProgressEvents

        Returns:
            Extracted text

        Raises:
            InputRejected: If the media type is neither an image nor a PDF
            ExtractionFailure: If any extraction phase fails
        """
        if not upload.is_supported:
            logger.warning(
                "upload_rejected", name=upload.name, media_type=upload.media_type
            )
            raise InputRejected(
                f"Unsupported file type '{upload.media_type}': upload a PDF or an image"
            )

        emit = _emitter(on_progress)
        emit(ExtractionPhase.INITIALIZING, "Initializing extraction")

        page_count = 1
        if upload.is_page_document:
            try:
                document = await asyncio.to_thread(
                    extract_text_layer, upload.data, upload.name
                )
            except ValueError as e:
                logger.error("text_layer_failed", name=upload.name, error=str(e))
                raise ExtractionFailure(
                    f"Could not read PDF: {e}", phase=ExtractionPhase.TEXT_LAYER
                ) from e

            text = get_full_text(document)
            if len(text.strip()) >= self.min_text_chars:
                logger.info("text_layer_used", name=upload.name, chars=len(text))
                return text

            logger.info(
                "text_layer_sparse",
                name=upload.name,
                chars=len(text.strip()),
                threshold=self.min_text_chars,
            )
            page_count = document.total_pages

        return await self._extract_with_ocr(upload, page_count, emit)

    async def _extract_with_ocr(
        self,
        upload: UploadedFile,
        page_count: int,
        emit: Callable[..., None],
    ) -> str:
        emit(ExtractionPhase.INITIALIZING, "Initializing OCR engine")
        engine = self.ocr_engine_factory()

        try:
            try:
                await engine.start()
            except Exception as e:
                logger.error("ocr_init_failed", name=upload.name, error=str(e))
                raise ExtractionFailure(
                    f"OCR engine failed to initialize: {e}",
                    phase=ExtractionPhase.INITIALIZING,
                ) from e

            if upload.is_page_document:
                images = await self._rasterize(upload, page_count, emit)
            else:
                images = [upload.data]

            texts = []
            total = len(images)
            for index, image in enumerate(images):
                emit(
                    ExtractionPhase.RECOGNIZING,
                    f"Scanning page {index + 1} of {total}",
                    page=index + 1,
                    total_pages=total,
                    percent=round(index * 100 / total),
                )
                try:
                    texts.append(await engine.recognize(image))
                except Exception as e:
                    logger.error(
                        "ocr_recognition_failed",
                        name=upload.name,
                        page=index + 1,
                        error=str(e),
                    )
                    raise ExtractionFailure(
                        f"Text recognition failed on page {index + 1}: {e}",
                        phase=ExtractionPhase.RECOGNIZING,
                    ) from e

            emit(
                ExtractionPhase.RECOGNIZING,
                "Scanning complete",
                total_pages=total,
                percent=100,
            )
        finally:
            await engine.close()

        text = "\n\n".join(t.strip() for t in texts if t.strip())
        logger.info("ocr_extracted", name=upload.name, pages=total, chars=len(text))
        return text

    async def _rasterize(
        self,
        upload: UploadedFile,
        page_count: int,
        emit: Callable[..., None],
    ) -> list[bytes]:
        images = []
        for index in range(page_count):
            emit(
                ExtractionPhase.RASTERIZING,
                f"Converting page {index + 1} of {page_count} to image",
                page=index + 1,
                total_pages=page_count,
            )
            try:
                images.append(
                    await asyncio.to_thread(
                        rasterize_page, upload.data, index, self.raster_scale
                    )
                )
            except Exception as e:
                logger.error(
                    "rasterize_failed", name=upload.name, page=index + 1, error=str(e)
                )
                raise ExtractionFailure(
                    f"Could not render page {index + 1}: {e}",
                    phase=ExtractionPhase.RASTERIZING,
                ) from e
        return images


def _emitter(on_progress: Optional[ProgressCallback]) -> Callable[..., None]:
    def emit(phase: ExtractionPhase, message: str, **fields) -> None:
        if on_progress is not None:
            on_progress(ProgressEvent(phase=phase, message=message, **fields))

    return emit
