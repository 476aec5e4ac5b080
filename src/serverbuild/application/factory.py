"""Service factory for dependency injection."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from serverbuild.infrastructure.spec_cache import DEFAULT_TTL_SECONDS

if TYPE_CHECKING:
    from serverbuild.application.allocation import (
        ConfigurationLocks,
        NICPortTracker,
        UnifiedSlotTracker,
    )
    from serverbuild.application.compatibility import (
        CompatibilityEngine,
        SFPCompatibilityResolver,
    )
    from serverbuild.application.service import ConfigurationService
    from serverbuild.application.validation import OrchestratorFactory, ValidatorRegistry
    from serverbuild.contracts.lookup import ConfigurationStore, SpecificationLookup
    from serverbuild.infrastructure.spec_cache import SpecificationCache

logger = logging.getLogger(__name__)


@dataclass
class ServiceFactory:
    """Factory for creating service instances.

    Every collaborator is created on first use and shared afterwards, so the
    trackers, the engine and the service all see the same store, the same
    lock table and the same specification cache.

    Args:
        catalog: Specification source; an empty InMemoryCatalog when omitted.
        store: Configuration store; an InMemoryConfigurationStore when omitted.
        spec_cache_ttl: Seconds a looked-up specification stays cached.

    Example:
        factory = ServiceFactory(catalog=InMemoryCatalog(data))
        service = factory.get_configuration_service()
    """

    catalog: "SpecificationLookup | None" = None
    store: "ConfigurationStore | None" = None
    spec_cache_ttl: float = DEFAULT_TTL_SECONDS

    _spec_cache: "SpecificationCache | None" = field(default=None, init=False, repr=False)
    _locks: "ConfigurationLocks | None" = field(default=None, init=False, repr=False)
    _slot_tracker: "UnifiedSlotTracker | None" = field(default=None, init=False, repr=False)
    _port_tracker: "NICPortTracker | None" = field(default=None, init=False, repr=False)
    _engine: "CompatibilityEngine | None" = field(default=None, init=False, repr=False)
    _sfp_resolver: "SFPCompatibilityResolver | None" = field(
        default=None, init=False, repr=False
    )
    _registry: "ValidatorRegistry | None" = field(default=None, init=False, repr=False)
    _orchestrator_factory: "OrchestratorFactory | None" = field(
        default=None, init=False, repr=False
    )
    _configuration_service: "ConfigurationService | None" = field(
        default=None, init=False, repr=False
    )

    def get_catalog(self) -> "SpecificationLookup":
        """Get or create the raw specification source."""
        if self.catalog is None:
            from serverbuild.infrastructure.catalog import InMemoryCatalog

            self.catalog = InMemoryCatalog()
        return self.catalog

    def get_spec_cache(self) -> "SpecificationCache":
        """Get or create the caching lookup every service reads through."""
        if self._spec_cache is None:
            from serverbuild.infrastructure.spec_cache import SpecificationCache

            self._spec_cache = SpecificationCache(self.get_catalog(), ttl=self.spec_cache_ttl)
        return self._spec_cache

    def get_store(self) -> "ConfigurationStore":
        if self.store is None:
            from serverbuild.infrastructure.store import InMemoryConfigurationStore

            self.store = InMemoryConfigurationStore()
        return self.store

    def get_locks(self) -> "ConfigurationLocks":
        if self._locks is None:
            from serverbuild.application.allocation import ConfigurationLocks

            self._locks = ConfigurationLocks()
        return self._locks

    def get_slot_tracker(self) -> "UnifiedSlotTracker":
        if self._slot_tracker is None:
            from serverbuild.application.allocation import UnifiedSlotTracker

            self._slot_tracker = UnifiedSlotTracker(
                self.get_store(), self.get_spec_cache(), self.get_locks()
            )
        return self._slot_tracker

    def get_port_tracker(self) -> "NICPortTracker":
        if self._port_tracker is None:
            from serverbuild.application.allocation import NICPortTracker

            self._port_tracker = NICPortTracker(
                self.get_store(), self.get_spec_cache(), self.get_locks()
            )
        return self._port_tracker

    def get_compatibility_engine(self) -> "CompatibilityEngine":
        if self._engine is None:
            from serverbuild.application.compatibility import CompatibilityEngine

            self._engine = CompatibilityEngine(
                self.get_spec_cache(),
                slot_tracker=self.get_slot_tracker(),
                port_tracker=self.get_port_tracker(),
            )
        return self._engine

    def get_sfp_resolver(self) -> "SFPCompatibilityResolver":
        if self._sfp_resolver is None:
            from serverbuild.application.compatibility import SFPCompatibilityResolver

            self._sfp_resolver = SFPCompatibilityResolver(
                self.get_spec_cache(), self.get_port_tracker()
            )
        return self._sfp_resolver

    def get_validator_registry(self) -> "ValidatorRegistry":
        if self._registry is None:
            from serverbuild.application.validation import build_default_registry

            self._registry = build_default_registry()
        return self._registry

    def get_orchestrator_factory(self) -> "OrchestratorFactory":
        if self._orchestrator_factory is None:
            from serverbuild.application.validation import OrchestratorFactory

            self._orchestrator_factory = OrchestratorFactory(self.get_validator_registry())
        return self._orchestrator_factory

    def get_configuration_service(self) -> "ConfigurationService":
        """Get or create the configuration service wired to the shared collaborators."""
        if self._configuration_service is None:
            from serverbuild.application.service import ConfigurationService

            self._configuration_service = ConfigurationService(
                store=self.get_store(),
                lookup=self.get_spec_cache(),
                engine=self.get_compatibility_engine(),
                slot_tracker=self.get_slot_tracker(),
                port_tracker=self.get_port_tracker(),
                sfp_resolver=self.get_sfp_resolver(),
                orchestrator_factory=self.get_orchestrator_factory(),
                locks=self.get_locks(),
            )
        return self._configuration_service


CATALOG_ENV_VAR = "SERVERBUILD_CATALOG"

_default_factory: ServiceFactory | None = None


def get_factory() -> ServiceFactory:
    """Get the default service factory.

    When ``SERVERBUILD_CATALOG`` names a JSON catalog file, the default
    factory reads specifications from it.
    """
    global _default_factory
    if _default_factory is None:
        catalog = None
        catalog_path = os.environ.get(CATALOG_ENV_VAR)
        if catalog_path:
            from serverbuild.infrastructure.catalog import InMemoryCatalog

            catalog = InMemoryCatalog.from_json_file(catalog_path)
            logger.info(f"Loaded catalog from {catalog_path}")
        _default_factory = ServiceFactory(catalog=catalog)
    return _default_factory


def set_factory(factory: ServiceFactory | None) -> None:
    """Set a custom factory (for testing)."""
    global _default_factory
    _default_factory = factory


def reset_factory() -> None:
    """Reset the factory to default (for testing cleanup)."""
    global _default_factory
    _default_factory = None
