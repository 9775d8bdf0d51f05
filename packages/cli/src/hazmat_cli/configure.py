"""Persisted settings commands: API key, models, checks and shipment defaults.

Usage:
    hazmat-kb config set-key
    hazmat-kb config set-model validation gemini-2.5-pro
    hazmat-kb config show
"""

from typing import Optional

import typer

from hazmat_common import get_settings
from hazmat_contracts import VALIDATION_CHECKS
from hazmat_storage import SHIPMENT_DEFAULT_KEYS, ModelTask, SettingsStore

from hazmat_cli.runtime import run_with_database

app = typer.Typer(help="Manage stored settings")


def mask_key(api_key: Optional[str]) -> str:
    """Show only the ends of a credential."""
    if not api_key:
        return "(not set)"
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:4]}...{api_key[-4:]}"


@app.command(name="set-key")
def set_key(
    api_key: Optional[str] = typer.Argument(
        None, help="Gemini API key (prompted without echo when omitted)"
    ),
):
    """Store the Gemini API key."""
    if api_key is None:
        api_key = typer.prompt("Gemini API key", hide_input=True)
    if not api_key.strip():
        typer.echo("Error: API key must not be empty", err=True)
        raise typer.Exit(1)

    run_with_database(lambda: SettingsStore.set_api_key(api_key))
    typer.echo(f"Stored API key {mask_key(api_key.strip())}")


@app.command(name="set-model")
def set_model(
    task: ModelTask = typer.Argument(..., help="Task the model is used for"),
    model_id: str = typer.Argument(..., help="Model id (e.g. gemini-2.5-flash)"),
):
    """Choose the model for one task."""
    run_with_database(lambda: SettingsStore.set_model(task, model_id))
    typer.echo(f"{task.value} model set to {model_id}")


@app.command(name="set-check")
def set_check(
    check_id: str = typer.Argument(..., help=f"One of: {', '.join(VALIDATION_CHECKS)}"),
    enabled: bool = typer.Option(True, "--on/--off", help="Enable or disable the check"),
):
    """Toggle one validation check."""
    run_with_database(lambda: SettingsStore.set_rule_toggle(check_id, enabled))
    typer.echo(f"{check_id}: {'on' if enabled else 'off'}")


@app.command(name="set-default")
def set_default(
    field: str = typer.Argument(..., help=f"One of: {', '.join(SHIPMENT_DEFAULT_KEYS)}"),
    value: str = typer.Argument(..., help="Default value"),
):
    """Store a default used when a shipment leaves the field blank."""
    run_with_database(lambda: SettingsStore.set_shipment_default(field, value))
    typer.echo(f"Default {field} set")


@app.command(name="show")
def show():
    """Show stored settings."""

    async def load():
        return {
            "api_key": await SettingsStore.get_api_key(),
            "models": {task: await SettingsStore.get_model(task) for task in ModelTask},
            "checks": await SettingsStore.get_rule_toggles(),
            "defaults": await SettingsStore.get_shipment_defaults(),
            "servers": await SettingsStore.get_servers(),
        }

    stored = run_with_database(load)
    settings = get_settings()

    key_source = "stored"
    api_key = stored["api_key"]
    if not api_key and settings.google_api_key:
        api_key, key_source = settings.google_api_key, "environment"

    typer.echo(f"Database: {settings.database_path}")
    typer.echo(f"API key: {mask_key(api_key)}" + (f" ({key_source})" if api_key else ""))

    typer.echo("\nModels:")
    for task, model_id in stored["models"].items():
        typer.echo(f"  {task.value:12} {model_id}")

    typer.echo("\nChecks:")
    for check_id, enabled in stored["checks"].items():
        typer.echo(f"  [{'on ' if enabled else 'off'}] {check_id}")

    typer.echo("\nShipment defaults:")
    if not stored["defaults"]:
        typer.echo("  (none)")
    for field, value in stored["defaults"].items():
        typer.echo(f"  {field:16} {value}")

    enabled = sum(1 for s in stored["servers"] if s.enabled)
    typer.echo(f"\nKnowledge servers: {len(stored['servers'])} ({enabled} enabled)")


@app.command(name="clear")
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Remove the stored API key and model selections."""
    if not yes:
        typer.confirm("Remove the stored API key and model selections?", abort=True)

    run_with_database(SettingsStore.clear_ai_config)
    typer.echo("Cleared AI configuration")
