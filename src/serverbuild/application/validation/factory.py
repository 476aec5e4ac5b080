"""Profile-driven construction of validator orchestrators."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .orchestrator import ValidatorOrchestrator
from .registry import ValidatorRegistry, build_default_registry

logger = logging.getLogger(__name__)


class ValidationProfile(str, Enum):
    """Named validator selections."""

    FULL = "full"
    QUICK = "quick"
    STORAGE = "storage"
    NETWORK = "network"
    THERMAL = "thermal"
    CUSTOM = "custom"


# Profile -> validator names; FULL uses every enabled validator, CUSTOM the caller's list
PROFILE_VALIDATORS: dict[ValidationProfile, list[str]] = {
    ValidationProfile.QUICK: ["cpu", "motherboard", "ram", "chassis", "storage"],
    ValidationProfile.STORAGE: [
        "storage",
        "chassis_backplane",
        "motherboard_storage",
        "hba_requirement",
        "storage_bay",
        "nvme_slot",
        "caddy",
        "form_factor_lock",
    ],
    ValidationProfile.NETWORK: ["nic", "pcie_card", "hba", "socket_compatibility"],
    ValidationProfile.THERMAL: ["chassis", "cpu", "ram", "storage"],
}

PROFILE_DESCRIPTIONS: dict[ValidationProfile, str] = {
    ValidationProfile.FULL: "All validators - comprehensive validation",
    ValidationProfile.QUICK: "Essential validators only - fast validation",
    ValidationProfile.STORAGE: "Storage and HBA validators - storage-focused validation",
    ValidationProfile.NETWORK: "Network and PCIe validators - networking-focused validation",
    ValidationProfile.THERMAL: "Thermal and cooling validators - thermal analysis",
    ValidationProfile.CUSTOM: "User-defined validator set - custom validation",
}


class OrchestratorFactory:
    """Builds and caches ValidatorOrchestrator instances per profile.

    Example:
        factory = OrchestratorFactory()
        orchestrator = factory.create("storage")
        custom = factory.create_custom(["cpu", "ram"])
    """

    def __init__(self, registry: ValidatorRegistry | None = None) -> None:
        self._registry = registry or build_default_registry()
        self._cache: dict[ValidationProfile, ValidatorOrchestrator] = {}
        self._hits = 0
        self._misses = 0

    @property
    def registry(self) -> ValidatorRegistry:
        return self._registry

    def create(
        self, profile: ValidationProfile | str = ValidationProfile.FULL
    ) -> ValidatorOrchestrator:
        """Get the orchestrator for a named profile.

        Args:
            profile: One of the profile names except ``custom``.

        Returns:
            A cached orchestrator for the profile.

        Raises:
            ValueError: If the profile is unknown or is ``custom``.
        """
        resolved = self._parse_profile(profile)
        if resolved is ValidationProfile.CUSTOM:
            raise ValueError("Use create_custom() for the custom profile")

        if resolved in self._cache:
            self._hits += 1
            return self._cache[resolved]

        self._misses += 1
        if resolved is ValidationProfile.FULL:
            validators = self._registry.enabled()
        else:
            validators = self._registry.resolve(PROFILE_VALIDATORS[resolved])
        orchestrator = ValidatorOrchestrator(validators)
        self._cache[resolved] = orchestrator
        logger.debug(
            f"Built '{resolved.value}' orchestrator with {len(validators)} validators"
        )
        return orchestrator

    def create_custom(self, names: list[str]) -> ValidatorOrchestrator:
        """Build an uncached orchestrator from explicit validator names.

        Raises:
            KeyError: If any name is not a registered validator.
        """
        return ValidatorOrchestrator(self._registry.resolve(names))

    def available_profiles(self) -> list[str]:
        return [profile.value for profile in ValidationProfile]

    def get_profile_description(self, profile: ValidationProfile | str) -> str:
        try:
            return PROFILE_DESCRIPTIONS[ValidationProfile(profile)]
        except ValueError:
            return "Unknown profile"

    def get_profile_validators(self, profile: ValidationProfile | str) -> list[str]:
        """Validator names a profile runs (empty for ``custom``)."""
        resolved = self._parse_profile(profile)
        if resolved is ValidationProfile.FULL:
            return [validator.name for validator in self._registry.enabled()]
        return list(PROFILE_VALIDATORS.get(resolved, []))

    def is_valid_profile(self, name: str) -> bool:
        return name in self.available_profiles()

    def clear_cache(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def cache_stats(self) -> dict[str, Any]:
        return {
            "cached_profiles": [profile.value for profile in self._cache],
            "size": len(self._cache),
            "hits": self._hits,
            "misses": self._misses,
        }

    def list_validators(self) -> list[dict[str, Any]]:
        """Describe every registered validator, highest priority first."""
        validators = sorted(
            (self._registry.get(name) for name in self._registry.available()),
            key=lambda v: -v.priority,
        )
        return [
            {
                "name": v.name,
                "priority": v.priority,
                "enabled": self._registry.is_enabled(v.name),
                "required_components": [c.value for c in v.required_components()],
            }
            for v in validators
        ]

    @staticmethod
    def _parse_profile(profile: ValidationProfile | str) -> ValidationProfile:
        try:
            return ValidationProfile(profile)
        except ValueError:
            raise ValueError(
                f"Unknown validation profile '{profile}'. "
                f"Available profiles: {', '.join(p.value for p in ValidationProfile)}"
            ) from None
