"""Shared test fixtures for hazmat-kb repository.

Provides:
- Database fixture with a fresh SQLite file per test
- Sample shipment data
- Mock LLM client
- --run-tesseract gate for tests that need a Tesseract binary
"""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from hazmat_contracts import ShipmentData
from hazmat_inference import GenerationResult
from hazmat_storage import DatabaseConfig, close_connection, get_connection


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-tesseract",
        action="store_true",
        default=False,
        help="Run tests that require a Tesseract OCR binary",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "tesseract: requires a Tesseract OCR binary")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-tesseract"):
        return
    skip_tesseract = pytest.mark.skip(reason="needs --run-tesseract")
    for item in items:
        if "tesseract" in item.keywords:
            item.add_marker(skip_tesseract)


@pytest_asyncio.fixture(scope="function")
async def test_db(tmp_path) -> AsyncGenerator:
    """Provide a clean database for each test.

    This fixture:
    - Resets the global connection
    - Opens a new database file under tmp_path (schema created on connect)
    - Yields the connection to the test
    - Closes the connection after the test completes

    Usage:
        async def test_my_feature(test_db):
            doc = await DocumentStore.create(...)
    """
    await close_connection()

    conn = await get_connection(DatabaseConfig(path=str(tmp_path / "test.db")))

    yield conn

    await close_connection()


@pytest.fixture
def shipment_payload() -> dict:
    """A valid FedEx Air shipment as camelCase JSON."""
    return {
        "carrier": "FedEx",
        "mode": "Air",
        "service": "Priority Overnight",
        "weight": 4.5,
        "weightUnit": "kg",
        "unNumber": "UN1263",
        "properShippingName": "Paint",
        "hazardClass": "3",
        "packingGroup": "II",
        "quantity": 4,
        "quantityUnit": "L",
        "packagingType": "1 Fibreboard Box x 4 L",
        "emergencyPhone": "1-800-424-9300",
        "packingInstruction": "353",
        "signatoryName": "Jo Smith",
        "signatoryTitle": "Shipping Lead",
        "signatoryPlace": "Memphis, TN",
    }


@pytest.fixture
def shipment(shipment_payload) -> ShipmentData:
    return ShipmentData.model_validate(shipment_payload)


@pytest.fixture
def mock_llm_client():
    """Mock LLM client returning a passing verdict.

    Usage:
        async def test_validate(mock_llm_client):
            mock_llm_client.generate.return_value = GenerationResult(text="...")
    """
    client = AsyncMock()
    client.generate = AsyncMock(
        return_value=GenerationResult(
            text='{"status": "Pass", "issues": []}',
            model_id="gemini-2.5-flash",
            prompt_tokens=1200,
            candidate_tokens=300,
            total_tokens=1500,
        )
    )
    client.close = AsyncMock()
    return client
