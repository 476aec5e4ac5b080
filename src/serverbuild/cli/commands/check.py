"""Check command: would a component fit into a build?"""

from pathlib import Path
from typing import Annotated

import typer

from serverbuild.application.builds import assemble_build
from serverbuild.application.config import ConfigError, load_build
from serverbuild.domain.value_objects import ComponentType

from .common import display_load_error


def check_command(
    build_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON build file holding the current components"),
    ],
    component_type: Annotated[
        ComponentType,
        typer.Argument(help="Type of the candidate component"),
    ],
    uuid: Annotated[
        str,
        typer.Argument(help="Catalog uuid of the candidate component"),
    ],
    parent_nic: Annotated[
        str | None,
        typer.Option("--parent-nic", help="NIC uuid to plug an SFP module into"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", min=1, help="NIC port index for an SFP module"),
    ] = None,
) -> None:
    """Check whether a catalog component can be added to a build.

    The candidate's specification must be in the build file's catalog. Nothing
    is written back to the file.

    Exit codes:
        0 - Compatible with no warnings
        1 - Incompatible
        2 - Compatible with warnings

    Example:
        serverbuild check web-01.json nic nic-25g-2p
    """
    try:
        assembled = assemble_build(load_build(build_file))
    except ConfigError as e:
        display_load_error(e)
        raise typer.Exit(code=1)

    options: dict[str, object] = {}
    if parent_nic is not None:
        options["parent_nic_uuid"] = parent_nic
    if port is not None:
        options["port_index"] = port
    decision = assembled.service.check_component_addition(
        assembled.config_id, component_type, uuid, **options
    )

    label = f"{component_type.label} {uuid}"
    if decision.issues:
        typer.echo("Errors:", err=True)
        for issue in decision.issues:
            typer.echo(f"  {issue}", err=True)
        typer.echo()
    if decision.warnings:
        typer.echo("Warnings:")
        for warning in decision.warnings:
            typer.echo(f"  {warning}")
        typer.echo()
    if decision.recommendations:
        typer.echo("Recommendations:")
        for recommendation in decision.recommendations:
            typer.echo(f"  {recommendation}")
        typer.echo()

    if not decision.compatible:
        typer.echo(f"{label} is not compatible with this build.", err=True)
        raise typer.Exit(code=1)

    if decision.assigned_slot is not None:
        typer.echo(f"Would be placed in slot {decision.assigned_slot}")
    if decision.assigned_port is not None:
        nic_uuid, port_index = decision.assigned_port
        typer.echo(f"Would be plugged into port {port_index} of NIC {nic_uuid}")
    typer.echo(f"{label} is compatible with this build.")
    raise typer.Exit(code=2 if decision.warnings else 0)
