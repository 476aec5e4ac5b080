"""Assembling and validating build files.

Both the CLI and the REST API treat a build file the same way: its catalog
seeds a fresh ServiceFactory, its components are added in order and the
resulting configuration is validated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from serverbuild.infrastructure.catalog import InMemoryCatalog

from .factory import ServiceFactory
from .validation import ValidationProfile

if TYPE_CHECKING:
    from serverbuild.domain.entities import ServerConfiguration

    from .config import BuildFile
    from .service import AdditionDecision, ConfigurationService
    from .validation import ValidationResult

logger = logging.getLogger(__name__)

PLACEMENT_CODE = "placement"


@dataclass
class AssembledBuild:
    """A build file loaded into its own service and configuration."""

    service: ConfigurationService
    configuration: ServerConfiguration
    decisions: list[AdditionDecision] = field(default_factory=list)

    @property
    def config_id(self) -> str:
        return self.configuration.config_id

    @property
    def rejected(self) -> list[AdditionDecision]:
        return [d for d in self.decisions if not d.compatible]


def assemble_build(build: BuildFile) -> AssembledBuild:
    """Place a build file's components into a fresh configuration.

    Rejected components are still recorded (without slot or port) so that
    validation reports on the build as written.
    """
    factory = ServiceFactory(catalog=InMemoryCatalog(build.catalog_data()))
    service = factory.get_configuration_service()
    config = service.create_configuration(name=build.name)
    decisions = service.import_components(config.config_id, build.components)
    assembled = AssembledBuild(service=service, configuration=config, decisions=decisions)
    logger.debug(
        f"Assembled build '{build.name}' with {len(decisions)} components "
        f"({len(assembled.rejected)} rejected)"
    )
    return assembled


def validate_build(
    build: BuildFile,
    profile: ValidationProfile | str = ValidationProfile.FULL,
    validators: list[str] | None = None,
) -> ValidationResult:
    """Assemble and validate a build file.

    Components the compatibility check refused to place are reported as
    warnings coded ``placement``.

    Raises:
        ValueError: If the profile is unknown.
        KeyError: If a validator name is unknown.
    """
    assembled = assemble_build(build)
    result = assembled.service.validate_configuration(
        assembled.config_id, profile=profile, validators=validators
    )
    for decision in assembled.rejected:
        reasons = "; ".join(decision.issues) or "incompatible"
        result.add_warning(
            f"{decision.component_type.label} {decision.uuid} could not be placed: {reasons}",
            code=PLACEMENT_CODE,
        )
    result.set_metadata("config_id", assembled.config_id)
    return result
