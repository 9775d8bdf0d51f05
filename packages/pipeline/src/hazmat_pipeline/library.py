"""Local reference document library."""

from typing import Optional

from hazmat_common import InputRejected, get_logger
from hazmat_contracts import DocumentType, LocalDocumentRecord
from hazmat_documents import DocumentExtractionService, ProgressCallback, UploadedFile
from hazmat_storage import DocumentStore

logger = get_logger(__name__)


class DocumentLibrary:
    """Add uploaded files to the local document store.

    Plain text is stored as-is; PDFs and images go through the extraction
    service first.
    """

    def __init__(self, extraction: DocumentExtractionService):
        self.extraction = extraction

    async def add(
        self,
        upload: UploadedFile,
        weight: int = 50,
        on_progress: Optional[ProgressCallback] = None,
    ) -> LocalDocumentRecord:
        """Extract and store a document.

        Raises:
            InputRejected: If the file type is unsupported or has no text
            ExtractionFailure: If extraction fails
        """
        if upload.media_type.startswith("text/"):
            content = upload.data.decode("utf-8", errors="replace")
            doc_type = DocumentType.TEXT
        else:
            content = await self.extraction.extract_text(upload, on_progress)
            doc_type = DocumentType.PDF if upload.is_page_document else DocumentType.TEXT

        if not content.strip():
            raise InputRejected(f"No readable text in {upload.name}")

        record = await DocumentStore.create(
            name=upload.name, content=content, weight=weight, type=doc_type
        )
        logger.info(
            "library_document_added",
            document_id=record.id,
            name=record.name,
            chars=len(content),
            type=doc_type.value,
        )
        return record
