"""Shared setup for CLI commands: logging, database and pipeline lifetime."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, NoReturn

import typer

from hazmat_common import (
    HazmatKBError,
    configure_logging,
    get_settings,
    init_telemetry,
)
from hazmat_contracts import ProgressEvent
from hazmat_knowledge import KnowledgeSessionPool
from hazmat_pipeline import ValidationPipeline
from hazmat_storage import DatabaseConfig, close_connection, get_connection


def setup(verbose: bool = False) -> None:
    """Configure logging and tracing from settings."""
    settings = get_settings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_output=settings.log_format == "json",
    )
    init_telemetry(service_name="hazmat-kb-cli", console_export=settings.otel_console_export)


@asynccontextmanager
async def database() -> AsyncIterator[None]:
    await get_connection(DatabaseConfig())
    try:
        yield
    finally:
        await close_connection()


@asynccontextmanager
async def pipeline_session() -> AsyncIterator[ValidationPipeline]:
    """Database, knowledge session pool and pipeline for one command."""
    settings = get_settings()
    async with database():
        async with KnowledgeSessionPool(
            default_timeout_ms=settings.knowledge_connect_timeout_ms
        ) as pool:
            yield ValidationPipeline.from_settings(pool)


def echo_progress(event: ProgressEvent) -> None:
    """Print extraction progress to stderr."""
    parts = [f"[{event.phase.value}]"]
    if event.percent is not None:
        parts.append(f"{event.percent}%")
    if event.message:
        parts.append(event.message)
    typer.echo(" ".join(parts), err=True)


def exit_with_error(error: Exception) -> NoReturn:
    if isinstance(error, HazmatKBError):
        typer.echo(f"Error ({error.category}): {error}", err=True)
    else:
        typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1)


def run_with_database(operation):
    """Run ``operation()`` (a coroutine factory) with the database open.

    Errors are reported and end the command.
    """

    async def with_database():
        async with database():
            return await operation()

    try:
        return asyncio.run(with_database())
    except Exception as e:
        exit_with_error(e)
