"""Hazmat KB CLI - Main entry point.

Provides the `hazmat-kb` command-line interface.

Usage:
    hazmat-kb validate shipment.json --document sds.pdf --format markdown
"""

import asyncio
import json
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from hazmat_documents import UploadedFile
from hazmat_pipeline import load_shipment

from hazmat_cli.configure import app as config_app
from hazmat_cli.documents import app as docs_app
from hazmat_cli.formatters import (
    format_json,
    format_result_markdown,
    format_sds_markdown,
    format_suggestions_markdown,
)
from hazmat_cli.runtime import echo_progress, exit_with_error, pipeline_session, setup
from hazmat_cli.servers import app as servers_app


class OutputFormat(str, Enum):
    """Output format options."""

    markdown = "markdown"
    json = "json"


# Create the Typer app
app = typer.Typer(
    name="hazmat-kb",
    help="Validate dangerous goods shipments against carrier rules and reference context.",
    add_completion=False,
)

app.add_typer(docs_app, name="docs")
app.add_typer(servers_app, name="servers")
app.add_typer(config_app, name="config")


@app.callback()
def cli_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    setup(verbose)


def read_shipment_file(path: Path) -> dict:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


@app.command()
def validate(
    shipment_file: Path = typer.Argument(..., help="Shipment JSON file"),
    document: Optional[Path] = typer.Option(
        None,
        "--document",
        "-d",
        help="Supporting SDS or shipping document (PDF or image)",
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.markdown,
        "--format",
        "-f",
        help="Output format",
    ),
):
    """Validate a shipment against carrier rules and reference context.

    Shipment fields may use camelCase or snake_case keys. Blank signatory,
    emergency phone and offeror fields are filled from stored defaults.

    Examples:

        hazmat-kb validate shipment.json

        hazmat-kb validate shipment.json --document sds.pdf --format json
    """

    async def run_validation():
        payload = read_shipment_file(shipment_file)
        upload = UploadedFile.from_path(document) if document else None
        async with pipeline_session() as pipeline:
            shipment = await load_shipment(payload)
            return await pipeline.validate_shipment(
                shipment, upload, on_progress=echo_progress
            )

    try:
        result = asyncio.run(run_validation())
    except Exception as e:
        exit_with_error(e)

    if format == OutputFormat.json:
        typer.echo(format_json(result))
    else:
        typer.echo(format_result_markdown(result))


@app.command()
def screenshot(
    image: Path = typer.Argument(..., help="Screenshot of a Dangerous Goods screen"),
    format: OutputFormat = typer.Option(
        OutputFormat.markdown,
        "--format",
        "-f",
        help="Output format",
    ),
):
    """Validate the declaration shown in a shipping application screenshot."""

    async def run_screenshot():
        upload = UploadedFile.from_path(image)
        async with pipeline_session() as pipeline:
            return await pipeline.validate_screenshot(upload)

    try:
        result = asyncio.run(run_screenshot())
    except Exception as e:
        exit_with_error(e)

    if format == OutputFormat.json:
        typer.echo(format_json(result))
    else:
        typer.echo(format_result_markdown(result))


@app.command()
def sds(
    file: Path = typer.Argument(..., help="Safety Data Sheet (PDF or image)"),
    format: OutputFormat = typer.Option(
        OutputFormat.markdown,
        "--format",
        "-f",
        help="Output format",
    ),
):
    """Extract shipping fields from a Safety Data Sheet."""

    async def run_sds():
        upload = UploadedFile.from_path(file)
        async with pipeline_session() as pipeline:
            return await pipeline.parse_sds(upload, on_progress=echo_progress)

    try:
        extraction = asyncio.run(run_sds())
    except Exception as e:
        exit_with_error(e)

    if format == OutputFormat.json:
        typer.echo(format_json(extraction))
    else:
        typer.echo(format_sds_markdown(extraction, file.name))


@app.command()
def suggest(
    shipment_file: Path = typer.Argument(..., help="Shipment JSON file"),
    field: str = typer.Argument(..., help="Field to suggest values for (e.g. packingInstruction)"),
    format: OutputFormat = typer.Option(
        OutputFormat.markdown,
        "--format",
        "-f",
        help="Output format",
    ),
):
    """Suggest likely values for one shipment field."""

    async def run_suggest():
        payload = read_shipment_file(shipment_file)
        async with pipeline_session() as pipeline:
            shipment = await load_shipment(payload)
            return await pipeline.suggest_field(shipment, field)

    try:
        suggestions = asyncio.run(run_suggest())
    except Exception as e:
        exit_with_error(e)

    if format == OutputFormat.json:
        typer.echo(format_json(suggestions))
    else:
        typer.echo(format_suggestions_markdown(field, suggestions))


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
