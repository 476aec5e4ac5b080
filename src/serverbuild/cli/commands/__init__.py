"""CLI command implementations for the serverbuild application.

This package contains subcommands for the serverbuild CLI:
- validate: Validate a build file
- check: Check whether a component can join a build
- profiles: List validation profiles
"""

from serverbuild.cli.commands.check import check_command
from serverbuild.cli.commands.profiles import profiles_command
from serverbuild.cli.commands.validate import validate_command

__all__ = ["check_command", "profiles_command", "validate_command"]
