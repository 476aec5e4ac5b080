"""Infrastructure layer - catalog, spec cache and configuration storage."""

from .catalog import CatalogError, InMemoryCatalog
from .spec_cache import DEFAULT_TTL_SECONDS, SpecificationCache
from .store import (
    AllocationConflictError,
    ComponentNotFoundError,
    ConfigurationNotFoundError,
    InMemoryConfigurationStore,
)

__all__ = [
    "AllocationConflictError",
    "CatalogError",
    "ComponentNotFoundError",
    "ConfigurationNotFoundError",
    "DEFAULT_TTL_SECONDS",
    "InMemoryCatalog",
    "InMemoryConfigurationStore",
    "SpecificationCache",
]
