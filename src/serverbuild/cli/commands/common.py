"""Helpers shared by CLI commands."""

import typer

from serverbuild.application.config import ConfigError


def display_load_error(error: ConfigError) -> None:
    """Display a build file loading error."""
    typer.echo("Errors:", err=True)
    if error.error_type == "file_not_found":
        typer.echo(f"  File not found: {error.path}", err=True)
    elif error.error_type == "json_parse":
        typer.echo("  Invalid JSON syntax", err=True)
        for detail in error.details:
            line = detail.get("line", "?")
            column = detail.get("column", "?")
            message = detail.get("message", "Unknown error")
            typer.echo(f"    Line {line}, Column {column}: {message}", err=True)
    elif error.error_type == "validation":
        for detail in error.details:
            path = detail.get("path", "unknown")
            message = detail.get("message", "Unknown error")
            typer.echo(f"  {path}: {message}", err=True)
            value = detail.get("value")
            if value is not None:
                typer.echo(f"    Value: {value!r}", err=True)
    else:
        typer.echo(f"  {error.message}", err=True)

    typer.echo()
    typer.echo("Validation failed.", err=True)
