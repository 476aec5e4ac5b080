"""Validate command for checking server build files.

This module provides the `validate` command that loads a build file, places
its components and runs the validator pipeline over the result.
"""

from pathlib import Path
from typing import Annotated

import typer

from serverbuild.application.builds import validate_build
from serverbuild.application.config import ConfigError, load_build
from serverbuild.application.validation import ValidationResult

from .common import display_load_error


def validate_command(
    build_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON build file to validate"),
    ],
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Validation profile (see 'serverbuild profiles')"),
    ] = "full",
    validator: Annotated[
        list[str] | None,
        typer.Option("--validator", help="Run only this validator (repeatable)"),
    ] = None,
    report: Annotated[
        bool,
        typer.Option("--report", help="Print the full validation report"),
    ] = False,
) -> None:
    """Validate a server build file.

    Checks the build file for:
    - JSON syntax errors
    - Schema errors (unknown component types, missing uuids, extra fields)
    - Components the compatibility check refuses to place
    - Every validator in the selected profile

    Exit codes:
        0 - Build is valid with no warnings
        1 - Build has errors
        2 - Build is valid but has warnings

    Example:
        serverbuild validate web-01.json --profile storage
    """
    typer.echo(f"Validating {build_file}...")
    typer.echo()

    try:
        build = load_build(build_file)
    except ConfigError as e:
        display_load_error(e)
        raise typer.Exit(code=1)

    try:
        result = validate_build(build, profile=profile, validators=validator)
    except ValueError as e:
        typer.echo("Errors:", err=True)
        typer.echo(f"  {e}", err=True)
        raise typer.Exit(code=1)
    except KeyError as e:
        typer.echo("Errors:", err=True)
        typer.echo(f"  {e.args[0]}", err=True)
        raise typer.Exit(code=1)

    if report:
        typer.echo(result.get_report())
    else:
        display_validation_result(result)

    raise typer.Exit(code=result.exit_code)


def display_validation_result(result: ValidationResult) -> None:
    """Display validation errors, warnings and a one-line summary."""
    if result.errors:
        typer.echo("Errors:", err=True)
        for error in result.errors:
            typer.echo(f"  [{error.code}] {error.message}", err=True)
        typer.echo()

    if result.warnings:
        typer.echo("Warnings:")
        for warning in result.warnings:
            typer.echo(f"  [{warning.code}] {warning.message}")
        typer.echo()

    if result.errors:
        typer.echo(
            f"Validation failed: {result.error_count} error(s), "
            f"{result.warning_count} warning(s)",
            err=True,
        )
    elif result.warnings:
        typer.echo(f"Validation passed with {result.warning_count} warning(s)")
    else:
        typer.echo("Validation passed. Build is valid.")
