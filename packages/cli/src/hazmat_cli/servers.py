"""Knowledge server configuration commands.

Usage:
    hazmat-kb servers add regs http://localhost:8000/sse --weight 80
    hazmat-kb servers disable regs
"""

import typer

from hazmat_common import StorageError
from hazmat_contracts import KnowledgeServerConfig
from hazmat_storage import SettingsStore

from hazmat_cli.formatters import format_servers
from hazmat_cli.runtime import exit_with_error, run_with_database

app = typer.Typer(help="Manage knowledge servers")


def _require_found(found: bool, name: str) -> None:
    if not found:
        exit_with_error(StorageError(f"Knowledge server not found: {name}"))


@app.command(name="add")
def add(
    name: str = typer.Argument(..., help="Display name (used in source citations)"),
    url: str = typer.Argument(..., help="Server SSE endpoint"),
    weight: int = typer.Option(50, "--weight", "-w", min=0, max=100, help="Ranking weight (0-100)"),
    disabled: bool = typer.Option(False, "--disabled", help="Add without enabling"),
):
    """Register a knowledge server."""
    run_with_database(
        lambda: SettingsStore.add_server(
            KnowledgeServerConfig(name=name, url=url, weight=weight, enabled=not disabled)
        )
    )
    typer.echo(f"Added knowledge server {name} ({url})")


@app.command(name="list")
def list_servers():
    """List configured knowledge servers."""
    servers = run_with_database(SettingsStore.get_servers)
    typer.echo(format_servers(servers))


@app.command(name="remove")
def remove(name: str = typer.Argument(..., help="Server name")):
    """Remove a knowledge server."""
    found = run_with_database(lambda: SettingsStore.remove_server(name))
    _require_found(found, name)
    typer.echo(f"Removed knowledge server {name}")


@app.command(name="enable")
def enable(name: str = typer.Argument(..., help="Server name")):
    """Include a server's context in validations."""
    found = run_with_database(lambda: SettingsStore.set_server_enabled(name, True))
    _require_found(found, name)
    typer.echo(f"Enabled {name}")


@app.command(name="disable")
def disable(name: str = typer.Argument(..., help="Server name")):
    """Stop using a server without removing it."""
    found = run_with_database(lambda: SettingsStore.set_server_enabled(name, False))
    _require_found(found, name)
    typer.echo(f"Disabled {name}")


@app.command(name="weight")
def set_weight(
    name: str = typer.Argument(..., help="Server name"),
    weight: int = typer.Argument(..., min=0, max=100, help="Ranking weight (0-100)"),
):
    """Change a server's ranking weight."""
    found = run_with_database(lambda: SettingsStore.update_server(name, weight=weight))
    _require_found(found, name)
    typer.echo(f"Set weight of {name} to {weight}")
