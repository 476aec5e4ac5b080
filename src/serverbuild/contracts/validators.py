"""Validator protocol for server configuration validation.

This module defines the protocol that all validators must implement,
enabling consistent validation across different rule domains.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from serverbuild.application.validation.context import ValidationContext
    from serverbuild.application.validation.result import ValidationResult
    from serverbuild.domain.value_objects import ComponentType


@runtime_checkable
class Validator(Protocol):
    """Protocol for server configuration validators.

    Validators inspect a ValidationContext snapshot and return a
    ValidationResult containing any errors, warnings or infos found.

    Attributes:
        name: Unique identifier for the validator (e.g., "socket_compatibility").
        priority: 0-100, higher runs first.

    Example:
        class MyValidator:
            name = "my_validator"
            priority = 50

            def can_run(self, context: ValidationContext) -> bool:
                return context.has_component(ComponentType.CPU)

            def required_components(self) -> list[ComponentType]:
                return [ComponentType.CPU]

            def validate(self, context: ValidationContext) -> ValidationResult:
                result = ValidationResult()
                if problem_found:
                    result.add_error("Description of problem")
                return result
    """

    @property
    def name(self) -> str:
        """Return the unique name/identifier for this validator."""
        ...

    @property
    def priority(self) -> int:
        """Return the execution priority (higher runs first)."""
        ...

    def can_run(self, context: ValidationContext) -> bool:
        """Cheap precondition; False skips the validator without affecting results."""
        ...

    def required_components(self) -> list[ComponentType]:
        """Component types this validator inspects (diagnostic hint)."""
        ...

    def validate(self, context: ValidationContext) -> ValidationResult:
        """Validate the given configuration snapshot.

        Args:
            context: A ValidationContext to inspect.

        Returns:
            ValidationResult containing any findings.
        """
        ...
