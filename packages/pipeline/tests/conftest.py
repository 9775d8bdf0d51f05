"""Fixtures for pipeline tests.

The knowledge connector and extraction service are mocks; the settings and
document stores are real, backed by the per-test SQLite database.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from hazmat_contracts import SourceContext, SourceType
from hazmat_pipeline import ContextBuilder, ValidationPipeline
from hazmat_storage import SettingsStore

REMOTE_CONTEXT = SourceContext(
    source_name="Regs (FedEx Air variations)",
    source_type=SourceType.REMOTE_SERVER,
    content="FedEx variation FX-02: Class 3 PG II requires Priority Overnight.",
    weight=60,
    uri="regs://fedex/air",
)


@pytest_asyncio.fixture
async def configured_db(test_db):
    """Database with an API key stored."""
    await SettingsStore.set_api_key("test-key")
    yield test_db


@pytest.fixture
def connector():
    connector = MagicMock()
    connector.fetch_context_from_servers = AsyncMock(return_value=[REMOTE_CONTEXT])
    connector.fetch_tool_context = AsyncMock(return_value=[])
    return connector


@pytest.fixture
def extraction():
    service = MagicMock()
    service.extract_text = AsyncMock(
        return_value="SECTION 14: UN1263 Paint, Class 3, PG II"
    )
    return service


@pytest.fixture
def client_factory(mock_llm_client):
    return MagicMock(return_value=mock_llm_client)


@pytest.fixture
def pipeline(connector, extraction, client_factory):
    return ValidationPipeline(
        context=ContextBuilder(connector),
        extraction=extraction,
        client_factory=client_factory,
        sds_max_chars=30000,
    )


async def _wait_for_stage(request, stage, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while request.stage != stage:
        if loop.time() > deadline:
            raise AssertionError(f"stage stuck at {request.stage.value}, wanted {stage.value}")
        await asyncio.sleep(0.01)


@pytest.fixture
def wait_for_stage():
    return _wait_for_stage
