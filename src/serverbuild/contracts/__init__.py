"""Contracts module - protocols for cross-layer communication.

By depending on protocols rather than concrete implementations, the
application layer stays independent of where specifications and
configurations actually live.

Example:
    ```python
    from serverbuild.contracts import SpecificationLookup

    def describe(lookup: SpecificationLookup, uuid: str) -> str:
        spec = lookup.get_component_specs("cpu", uuid) or {}
        return spec.get("model", "unknown")
    ```
"""

from .lookup import ConfigurationStore as ConfigurationStore
from .lookup import SpecificationLookup as SpecificationLookup
from .validators import Validator as Validator

__all__ = [
    "ConfigurationStore",
    "SpecificationLookup",
    "Validator",
]
