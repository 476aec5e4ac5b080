"""Validation pipeline for server configurations.

A ValidationContext snapshot is passed through a ValidatorOrchestrator,
which runs validators in descending priority and merges their
ValidationResult objects. OrchestratorFactory assembles orchestrators from
named profiles.
"""

from .base import BaseValidator, compare_values, normalize_value
from .context import ValidationContext
from .factory import OrchestratorFactory, ValidationProfile
from .orchestrator import ValidatorOrchestrator
from .registry import ValidatorRegistry, build_default_registry
from .result import SYSTEM_CODE, ValidationInfo, ValidationIssue, ValidationResult

__all__ = [
    "BaseValidator",
    "OrchestratorFactory",
    "SYSTEM_CODE",
    "ValidationContext",
    "ValidationInfo",
    "ValidationIssue",
    "ValidationProfile",
    "ValidationResult",
    "ValidatorOrchestrator",
    "ValidatorRegistry",
    "build_default_registry",
    "compare_values",
    "normalize_value",
]
