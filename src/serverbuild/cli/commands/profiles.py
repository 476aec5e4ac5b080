"""Profiles command listing the named validator selections."""

import typer

from serverbuild.application.factory import get_factory


def profiles_command() -> None:
    """List validation profiles and the validators each one runs.

    Example:
        serverbuild profiles
    """
    orchestrators = get_factory().get_orchestrator_factory()
    profiles = orchestrators.available_profiles()

    typer.echo("Available profiles:")
    typer.echo()

    max_name_width = max(len(name) for name in profiles) if profiles else 0
    for name in profiles:
        description = orchestrators.get_profile_description(name)
        typer.echo(f"  {name:<{max_name_width}}  - {description}")
        validators = orchestrators.get_profile_validators(name)
        if validators:
            typer.echo(f"  {'':<{max_name_width}}    {', '.join(validators)}")

    typer.echo()
    typer.echo("Use 'serverbuild validate BUILD_FILE --profile <name>' to run a profile.")
