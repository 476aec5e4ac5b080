"""Add-time compatibility checks."""

from .engine import CompatibilityEngine, Inventory
from .result import CompatibilityResult
from .sfp import SFPAssignmentResult, SFPCompatibilityResolver, SFPValidation

__all__ = [
    "CompatibilityEngine",
    "CompatibilityResult",
    "Inventory",
    "SFPAssignmentResult",
    "SFPCompatibilityResolver",
    "SFPValidation",
]
