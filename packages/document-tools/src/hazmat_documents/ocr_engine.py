"""OCR engine abstraction.

An engine session is opened once per extraction, used for every page and
then released. ``TesseractEngine`` runs pytesseract on a dedicated worker
thread so recognition never blocks the event loop.
"""

import asyncio
import io
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import pytesseract
from PIL import Image

from hazmat_common import get_logger

logger = get_logger(__name__)


class OcrEngine(ABC):
    """Abstract OCR engine session."""

    @abstractmethod
    async def start(self) -> None:
        """Initialize the engine. Called once before any recognition."""

    @abstractmethod
    async def recognize(self, image: bytes) -> str:
        """Recognize text in one encoded image (PNG, JPEG, ...)."""

    @abstractmethod
    async def close(self) -> None:
        """Release the engine. Must be safe to call more than once."""

    async def __aenter__(self) -> "OcrEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class TesseractEngine(OcrEngine):
    """Tesseract OCR via pytesseract.

    Example:
        >>> async with TesseractEngine(language="eng") as engine:
        ...     text = await engine.recognize(png_bytes)
    """

    def __init__(self, language: str = "eng", config: str = ""):
        self.language = language
        self.config = config
        self._executor: Optional[ThreadPoolExecutor] = None

    async def start(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="tesseract"
        )
        try:
            version = await self._run(pytesseract.get_tesseract_version)
        except Exception:
            await self.close()
            raise
        logger.info("ocr_engine_started", engine="tesseract", version=str(version))

    async def recognize(self, image: bytes) -> str:
        if self._executor is None:
            raise RuntimeError("OCR engine not started")
        return await self._run(self._recognize_sync, image)

    async def close(self) -> None:
        if self._executor is None:
            return
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._executor = None
        logger.debug("ocr_engine_closed", engine="tesseract")

    def _recognize_sync(self, image: bytes) -> str:
        with Image.open(io.BytesIO(image)) as img:
            return pytesseract.image_to_string(
                img, lang=self.language, config=self.config
            ) or ""

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)
