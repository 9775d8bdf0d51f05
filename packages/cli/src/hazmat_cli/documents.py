"""Local reference document commands.

Usage:
    hazmat-kb docs add carrier-letter.pdf --weight 80
    hazmat-kb docs list
"""

from pathlib import Path

import typer

from hazmat_common import StorageError
from hazmat_documents import DocumentExtractionService, UploadedFile
from hazmat_pipeline import DocumentLibrary
from hazmat_storage import DocumentStore

from hazmat_cli.formatters import format_documents
from hazmat_cli.runtime import echo_progress, exit_with_error, run_with_database

app = typer.Typer(help="Manage local reference documents")

WEIGHT_HELP = "Ranking weight for context aggregation (0-100)"


@app.command(name="add")
def add(
    file: Path = typer.Argument(..., help="PDF, image or text file"),
    weight: int = typer.Option(50, "--weight", "-w", min=0, max=100, help=WEIGHT_HELP),
):
    """Extract a document's text and add it to the local store."""

    async def add_document():
        upload = UploadedFile.from_path(file)
        library = DocumentLibrary(DocumentExtractionService.from_settings())
        return await library.add(upload, weight=weight, on_progress=echo_progress)

    record = run_with_database(add_document)
    typer.echo(f"Added {record.name} ({len(record.content):,} chars) as {record.id}")


@app.command(name="list")
def list_documents():
    """List local documents, newest first."""
    records = run_with_database(DocumentStore.get_all)
    typer.echo(format_documents(records))


@app.command(name="remove")
def remove(document_id: str = typer.Argument(..., help="Document id")):
    """Delete a document from the local store."""
    deleted = run_with_database(lambda: DocumentStore.delete(document_id))
    if not deleted:
        exit_with_error(StorageError(f"Document not found: {document_id}"))
    typer.echo(f"Removed {document_id}")


@app.command(name="weight")
def set_weight(
    document_id: str = typer.Argument(..., help="Document id"),
    weight: int = typer.Argument(..., min=0, max=100, help=WEIGHT_HELP),
):
    """Change a document's ranking weight."""
    run_with_database(lambda: DocumentStore.update_weight(document_id, weight))
    typer.echo(f"Set weight of {document_id} to {weight}")
