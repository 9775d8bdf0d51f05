"""Tests for DocumentLibrary and shipment loading."""

import pytest
from pydantic import ValidationError

from hazmat_common import InputRejected
from hazmat_contracts import DocumentType
from hazmat_documents import UploadedFile
from hazmat_pipeline import DocumentLibrary, apply_defaults, load_shipment
from hazmat_storage import DocumentStore, SettingsStore


class TestDocumentLibrary:
    """Adding reference documents."""

    @pytest.mark.asyncio
    async def test_text_file_stored_directly(self, test_db, extraction):
        library = DocumentLibrary(extraction)
        upload = UploadedFile("sop.txt", "text/plain", "Check PG before booking.".encode())

        record = await library.add(upload, weight=80)

        assert record.type == DocumentType.TEXT
        assert record.content == "Check PG before booking."
        extraction.extract_text.assert_not_awaited()
        assert (await DocumentStore.get(record.id)).weight == 80

    @pytest.mark.asyncio
    async def test_pdf_extracted(self, test_db, extraction):
        library = DocumentLibrary(extraction)
        upload = UploadedFile("sds.pdf", "application/pdf", b"%PDF-1.7")

        record = await library.add(upload)

        assert record.type == DocumentType.PDF
        assert record.weight == 50
        assert record.content.startswith("SECTION 14")
        extraction.extract_text.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_image_stored_as_text(self, test_db, extraction):
        library = DocumentLibrary(extraction)

        record = await library.add(UploadedFile("label.png", "image/png", b"\x89PNG"))

        assert record.type == DocumentType.TEXT

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, test_db, extraction):
        extraction.extract_text.return_value = "  \n "
        library = DocumentLibrary(extraction)

        with pytest.raises(InputRejected, match="No readable text"):
            await library.add(UploadedFile("scan.pdf", "application/pdf", b"%PDF"))

        assert await DocumentStore.get_all() == []


class TestShipmentDefaults:
    """Stored defaults fill blank shipment fields."""

    def test_user_values_win(self):
        merged = apply_defaults(
            {"signatoryName": "Ana"}, {"signatory_name": "Default", "signatory_title": "Lead"}
        )

        assert merged == {"signatoryName": "Ana", "signatoryTitle": "Lead"}

    def test_blank_snake_case_replaced(self):
        merged = apply_defaults({"emergency_phone": ""}, {"emergency_phone": "1-800-424-9300"})

        assert merged == {"emergencyPhone": "1-800-424-9300"}

    @pytest.mark.asyncio
    async def test_load_shipment_with_defaults(self, test_db, shipment_payload):
        del shipment_payload["signatoryPlace"]
        await SettingsStore.set_shipment_default("signatory_place", "Louisville, KY")

        shipment = await load_shipment(shipment_payload)

        assert shipment.signatory_place == "Louisville, KY"

    @pytest.mark.asyncio
    async def test_load_shipment_invalid(self, test_db, shipment_payload):
        shipment_payload["unNumber"] = "12345"

        with pytest.raises(ValidationError, match="UNxxxx"):
            await load_shipment(shipment_payload)
