"""Application layer - configuration workflow and orchestration."""

from .builds import AssembledBuild, assemble_build, validate_build
from .factory import ServiceFactory, get_factory, reset_factory, set_factory
from .service import (
    AdditionDecision,
    ComponentRejectedError,
    ComponentRemovalError,
    ConfigurationService,
)

__all__ = [
    "AdditionDecision",
    "AssembledBuild",
    "ComponentRejectedError",
    "ComponentRemovalError",
    "ConfigurationService",
    "ServiceFactory",
    "assemble_build",
    "get_factory",
    "reset_factory",
    "set_factory",
    "validate_build",
]
