"""Validator registry for server configuration validators.

The registry maps validator names to instances and tracks which ones are
disabled. Orchestrators are assembled from it by name.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .validators import DEFAULT_VALIDATORS

if TYPE_CHECKING:
    from serverbuild.contracts.validators import Validator

logger = logging.getLogger(__name__)


class ValidatorRegistry:
    """Registry of validator instances keyed by name.

    The registry supports:
    - Registering validator instances
    - Enabling/disabling specific validators
    - Listing validators in declaration order
    - Clearing for testing purposes

    Example:
        registry = build_default_registry()
        registry.disable("caddy")
        names = registry.enabled()
    """

    def __init__(self) -> None:
        self._validators: dict[str, Validator] = {}
        self._disabled: set[str] = set()

    def register(self, validator: Validator) -> None:
        """Register a validator instance.

        Args:
            validator: The validator instance to register.

        Note:
            If a validator with the same name is already registered,
            it will be overwritten with a warning logged.
        """
        name = validator.name
        if name in self._validators:
            logger.warning(f"Overwriting existing validator '{name}'")
        self._validators[name] = validator
        logger.debug(f"Registered validator '{name}': {type(validator).__name__}")

    def get(self, name: str) -> Validator:
        """Get a validator by name.

        Raises:
            KeyError: If no validator is registered with that name.
        """
        if name not in self._validators:
            available = ", ".join(sorted(self._validators.keys()))
            raise KeyError(
                f"No validator registered with name '{name}'. "
                f"Available validators: {available or 'none'}"
            )
        return self._validators[name]

    def available(self) -> list[str]:
        """Sorted list of registered validator names."""
        return sorted(self._validators.keys())

    def is_registered(self, name: str) -> bool:
        return name in self._validators

    def enable(self, name: str) -> None:
        """Enable a validator by name.

        Raises:
            KeyError: If no validator is registered with that name.
        """
        if name not in self._validators:
            raise KeyError(f"No validator registered with name '{name}'")
        self._disabled.discard(name)
        logger.debug(f"Enabled validator '{name}'")

    def disable(self, name: str) -> None:
        """Disable a validator by name.

        Disabled validators are left out of ``enabled()`` and therefore out
        of the ``full`` profile.

        Raises:
            KeyError: If no validator is registered with that name.
        """
        if name not in self._validators:
            raise KeyError(f"No validator registered with name '{name}'")
        self._disabled.add(name)
        logger.debug(f"Disabled validator '{name}'")

    def is_enabled(self, name: str) -> bool:
        return name in self._validators and name not in self._disabled

    def enabled(self) -> list[Validator]:
        """Enabled validators in registration order."""
        return [
            validator
            for name, validator in self._validators.items()
            if name not in self._disabled
        ]

    def resolve(self, names: list[str]) -> list[Validator]:
        """Look up several validators by name, preserving the given order.

        Raises:
            KeyError: If any name is not registered.
        """
        return [self.get(name) for name in names]

    def clear(self) -> None:
        """Clear all registered validators and disabled states."""
        self._validators.clear()
        self._disabled.clear()

    def reset_disabled(self) -> None:
        """Re-enable every registered validator."""
        self._disabled.clear()

    def __len__(self) -> int:
        return len(self._validators)


def build_default_registry() -> ValidatorRegistry:
    """Create a registry holding one instance of every built-in validator."""
    registry = ValidatorRegistry()
    for validator_cls in DEFAULT_VALIDATORS:
        registry.register(validator_cls())
    return registry
