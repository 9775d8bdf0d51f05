"""Fixtures for CLI testing."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from hazmat_common import get_settings
from hazmat_contracts import (
    Severity,
    UsageInfo,
    ValidationIssue,
    ValidationResult,
    ValidationStatus,
)


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def skip_logging_setup():
    """Keep CLI invocations from rebinding log output to the runner's streams."""
    with patch("hazmat_cli.main.setup"):
        yield


@pytest.fixture
def cli_db(tmp_path, monkeypatch):
    """Point the CLI at a fresh database with no API key configured."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.db"))
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    get_settings.cache_clear()
    yield tmp_path / "cli.db"
    get_settings.cache_clear()


@pytest.fixture
def shipment_file(tmp_path, shipment_payload):
    path = tmp_path / "shipment.json"
    path.write_text(json.dumps(shipment_payload))
    return path


@pytest.fixture
def fake_run():
    """Build an asyncio.run replacement that discards the coroutine.

    Usage:
        with patch("hazmat_cli.main.asyncio.run", side_effect=fake_run(result)):
            ...
    """

    def build(value=None, error=None):
        def run(coro):
            coro.close()
            if error is not None:
                raise error
            return value

        return run

    return build


@pytest.fixture
def fail_result():
    return ValidationResult(
        status=ValidationStatus.FAIL,
        issues=[
            ValidationIssue(
                description="Class 3 PG II not permitted on FedEx Economy",
                confidence=94,
                regulation_reference="per Regs (FedEx Air variations)",
                recommendation="Ship with Priority Overnight",
                severity=Severity.CRITICAL,
                explanation="Accessible DG require premium services.",
            ),
            ValidationIssue(
                description="Emergency phone should include 24h contact name",
                confidence=60,
                severity=Severity.WARNING,
            ),
        ],
        metadata={"model_status": "Warnings"},
        usage=UsageInfo(
            model_id="gemini-2.5-flash",
            prompt_tokens=1200,
            candidate_tokens=300,
            total_tokens=1500,
            input_cost=0.00036,
            output_cost=0.00075,
            estimated_cost=0.00111,
        ),
    )
