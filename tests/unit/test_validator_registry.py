"""Unit tests for the validator registry."""

import pytest

from serverbuild.application.validation.base import BaseValidator
from serverbuild.application.validation.registry import (
    ValidatorRegistry,
    build_default_registry,
)
from serverbuild.application.validation.result import ValidationResult
from serverbuild.application.validation.validators import DEFAULT_VALIDATORS
from serverbuild.contracts.validators import Validator

BUILT_IN_NAMES = [
    "caddy",
    "chassis",
    "chassis_backplane",
    "cpu",
    "form_factor",
    "form_factor_lock",
    "hba",
    "hba_requirement",
    "motherboard",
    "motherboard_storage",
    "nic",
    "nvme_slot",
    "pcie_adapter",
    "pcie_card",
    "ram",
    "slot_availability",
    "socket_compatibility",
    "storage",
    "storage_bay",
]


class DummyValidator(BaseValidator):
    name = "dummy"
    priority = 42

    def validate(self, context):
        return ValidationResult()


class TestValidatorRegistry:
    """Tests for ValidatorRegistry."""

    def test_register_and_get(self) -> None:
        registry = ValidatorRegistry()
        validator = DummyValidator()

        registry.register(validator)

        assert registry.get("dummy") is validator
        assert registry.is_registered("dummy")
        assert len(registry) == 1

    def test_get_unknown_lists_available(self) -> None:
        """An unknown name should raise KeyError naming what is registered."""
        registry = ValidatorRegistry()
        registry.register(DummyValidator())

        with pytest.raises(KeyError, match="Available validators: dummy"):
            registry.get("nope")

    def test_get_unknown_on_empty_registry(self) -> None:
        with pytest.raises(KeyError, match="none"):
            ValidatorRegistry().get("nope")

    def test_register_overwrites(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = ValidatorRegistry()
        registry.register(DummyValidator())
        replacement = DummyValidator()

        registry.register(replacement)

        assert registry.get("dummy") is replacement
        assert "Overwriting existing validator 'dummy'" in caplog.text

    def test_disable_and_enable(self) -> None:
        registry = build_default_registry()

        registry.disable("caddy")
        assert not registry.is_enabled("caddy")
        assert "caddy" not in [v.name for v in registry.enabled()]

        registry.enable("caddy")
        assert registry.is_enabled("caddy")

    def test_disable_unknown_raises(self) -> None:
        with pytest.raises(KeyError):
            ValidatorRegistry().disable("ghost")
        with pytest.raises(KeyError):
            ValidatorRegistry().enable("ghost")

    def test_reset_disabled(self) -> None:
        registry = build_default_registry()
        registry.disable("cpu")
        registry.disable("ram")

        registry.reset_disabled()

        assert len(registry.enabled()) == len(registry)

    def test_resolve_keeps_order(self) -> None:
        registry = build_default_registry()
        names = [v.name for v in registry.resolve(["ram", "cpu", "caddy"])]
        assert names == ["ram", "cpu", "caddy"]

    def test_resolve_unknown_raises(self) -> None:
        with pytest.raises(KeyError):
            build_default_registry().resolve(["cpu", "ghost"])

    def test_clear(self) -> None:
        registry = build_default_registry()
        registry.disable("cpu")

        registry.clear()

        assert len(registry) == 0
        assert registry.available() == []
        assert not registry.is_enabled("cpu")


class TestDefaultRegistry:
    """Tests for the built-in validator set."""

    def test_all_built_ins_registered(self) -> None:
        registry = build_default_registry()
        assert len(registry) == 19
        assert registry.available() == BUILT_IN_NAMES

    def test_enabled_keeps_declaration_order(self) -> None:
        registry = build_default_registry()
        assert [type(v) for v in registry.enabled()] == list(DEFAULT_VALIDATORS)

    def test_built_ins_satisfy_protocol(self) -> None:
        for validator in build_default_registry().enabled():
            assert isinstance(validator, Validator)
            assert 0 <= validator.priority <= 100

    def test_priorities_are_distinct(self) -> None:
        priorities = [v.priority for v in build_default_registry().enabled()]
        assert len(set(priorities)) == len(priorities)

    def test_repr(self) -> None:
        validator = build_default_registry().get("socket_compatibility")
        assert repr(validator) == (
            "SocketCompatibilityValidator(name='socket_compatibility', priority=100)"
        )
