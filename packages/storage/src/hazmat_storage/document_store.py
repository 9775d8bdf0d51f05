"""DocumentStore - CRUD operations for the local reference documents.

Provides:
- Create and save document records
- Retrieve documents by ID, or all documents newest first
- Update a document's ranking weight
- Delete documents
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import aiosqlite
from hazmat_common import StorageError, get_logger
from hazmat_contracts import DocumentType, LocalDocumentRecord

from hazmat_storage.connection import get_connection

logger = get_logger(__name__)


class DocumentStore:
    """Storage operations for LocalDocumentRecord entities.

    All operations use the global connection.
    """

    @staticmethod
    async def create(
        name: str,
        content: str,
        weight: int = 50,
        type: DocumentType = DocumentType.TEXT,
    ) -> LocalDocumentRecord:
        """Create a new document record with a generated id and timestamp.

        Args:
            name: Display name (usually the file name)
            content: Extracted text
            weight: Ranking hint for context aggregation (0-100)
            type: Document kind

        Returns:
            Created LocalDocumentRecord

        Example:
            >>> doc = await DocumentStore.create(
            ...     name="fedex-dg-guide.pdf",
            ...     content="...",
            ...     weight=80,
            ...     type=DocumentType.PDF,
            ... )
        """
        doc = LocalDocumentRecord(
            id=uuid4().hex,
            name=name,
            content=content,
            weight=weight,
            type=type,
            timestamp=datetime.now(timezone.utc),
        )
        await DocumentStore.save(doc)
        return doc

    @staticmethod
    async def save(doc: LocalDocumentRecord) -> None:
        """Insert or replace a document record.

        Raises:
            StorageError: If the write fails
        """
        conn = await get_connection()

        try:
            await conn.execute(
                """
                INSERT OR REPLACE INTO documents (id, name, content, weight, type, timestamp)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    doc.id,
                    doc.name,
                    doc.content,
                    doc.weight,
                    doc.type.value,
                    _encode_timestamp(doc.timestamp),
                ),
            )
            await conn.commit()
        except Exception as e:
            logger.error("document_save_failed", document_id=doc.id, error=str(e))
            raise StorageError(f"Failed to save document: {e}") from e

        logger.info(
            "document_saved",
            document_id=doc.id,
            name=doc.name,
            chars=len(doc.content),
            weight=doc.weight,
        )

    @staticmethod
    async def get(document_id: str) -> Optional[LocalDocumentRecord]:
        """Retrieve document by ID.

        Returns:
            LocalDocumentRecord if found, None otherwise
        """
        conn = await get_connection()

        try:
            async with conn.execute(
                "SELECT * FROM documents WHERE id = ?", (document_id,)
            ) as cursor:
                row = await cursor.fetchone()
        except Exception as e:
            logger.error("document_get_failed", document_id=document_id, error=str(e))
            raise StorageError(f"Failed to retrieve document: {e}") from e

        return _row_to_document(row) if row is not None else None

    @staticmethod
    async def get_all() -> list[LocalDocumentRecord]:
        """Retrieve every document, newest first."""
        conn = await get_connection()

        try:
            async with conn.execute(
                "SELECT * FROM documents ORDER BY timestamp DESC, rowid DESC"
            ) as cursor:
                rows = await cursor.fetchall()
        except Exception as e:
            logger.error("document_list_failed", error=str(e))
            raise StorageError(f"Failed to list documents: {e}") from e

        return [_row_to_document(row) for row in rows]

    @staticmethod
    async def update_weight(document_id: str, weight: int) -> LocalDocumentRecord:
        """Change a document's ranking weight in place.

        Raises:
            ValueError: If weight is outside 0-100
            StorageError: If the document doesn't exist or the write fails
        """
        if not 0 <= weight <= 100:
            raise ValueError(f"weight must be between 0 and 100, got {weight}")

        conn = await get_connection()

        try:
            cursor = await conn.execute(
                "UPDATE documents SET weight = ? WHERE id = ?", (weight, document_id)
            )
            await conn.commit()
        except Exception as e:
            logger.error("document_update_failed", document_id=document_id, error=str(e))
            raise StorageError(f"Failed to update document: {e}") from e

        if cursor.rowcount == 0:
            raise StorageError(f"Document not found: {document_id}")

        logger.info("document_weight_updated", document_id=document_id, weight=weight)
        doc = await DocumentStore.get(document_id)
        if doc is None:
            raise StorageError(f"Document not found: {document_id}")
        return doc

    @staticmethod
    async def delete(document_id: str) -> bool:
        """Delete a document.

        Returns:
            True if a document was deleted, False if it didn't exist
        """
        conn = await get_connection()

        try:
            cursor = await conn.execute(
                "DELETE FROM documents WHERE id = ?", (document_id,)
            )
            await conn.commit()
        except Exception as e:
            logger.error("document_delete_failed", document_id=document_id, error=str(e))
            raise StorageError(f"Failed to delete document: {e}") from e

        deleted = cursor.rowcount > 0
        logger.info("document_deleted", document_id=document_id, deleted=deleted)
        return deleted


def _encode_timestamp(value: datetime) -> str:
    # Fixed-width UTC text so lexical order matches chronological order
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _row_to_document(row: aiosqlite.Row) -> LocalDocumentRecord:
    return LocalDocumentRecord(
        id=row["id"],
        name=row["name"],
        content=row["content"],
        weight=row["weight"],
        type=DocumentType(row["type"]),
        timestamp=datetime.fromisoformat(row["timestamp"]),
    )
