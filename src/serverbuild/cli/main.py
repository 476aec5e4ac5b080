"""Typer CLI for server configuration building."""

import logging
from typing import Annotated

import typer

from serverbuild.cli.commands import check_command, profiles_command, validate_command

app = typer.Typer(
    name="serverbuild",
    help="Check and validate server hardware configurations.",
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Check and validate server hardware configurations."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


app.command(name="validate")(validate_command)
app.command(name="check")(check_command)
app.command(name="profiles")(profiles_command)


if __name__ == "__main__":
    app()
