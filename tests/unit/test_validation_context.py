"""Unit tests for ValidationContext."""

import pytest

from serverbuild.application.validation.context import ValidationContext
from serverbuild.domain.entities import Component
from serverbuild.domain.specs import CPUSpec
from serverbuild.domain.value_objects import ComponentType

from conftest import spec_of


@pytest.fixture
def context() -> ValidationContext:
    ctx = ValidationContext()
    ctx.add_component(ComponentType.CPU, 0, spec_of("cpu", "cpu-xeon"))
    ctx.add_component(ComponentType.MOTHERBOARD, 0, spec_of("motherboard", "mb-x13"))
    ctx.add_component(ComponentType.RAM, 0, spec_of("ram", "ram-1"))
    ctx.add_component(ComponentType.RAM, 1, spec_of("ram", "ram-2"))
    return ctx


class TestComponentStorage:
    """Tests for adding and reading components."""

    def test_get_component(self, context: ValidationContext) -> None:
        cpu = context.get_component("cpu")
        assert cpu is not None
        assert cpu["socket"] == "LGA4677"

    def test_missing_index_returns_none(self, context: ValidationContext) -> None:
        assert context.get_component(ComponentType.RAM, 5) is None
        assert context.get_component(ComponentType.PSU) is None

    def test_counts(self, context: ValidationContext) -> None:
        assert context.count_components(ComponentType.RAM) == 2
        assert context.count_components(ComponentType.NIC) == 0
        assert context.has_component(ComponentType.RAM, 1)
        assert not context.has_component(ComponentType.RAM, 2)

    def test_overwrite_at_index(self, context: ValidationContext) -> None:
        context.add_component(ComponentType.RAM, 0, {"type": "DDR4"})
        assert context.get_component(ComponentType.RAM, 0) == {"type": "DDR4"}
        assert context.count_components(ComponentType.RAM) == 2

    def test_gap_raises(self, context: ValidationContext) -> None:
        """Placing past the end should raise IndexError."""
        with pytest.raises(IndexError, match="Cannot place storage at index 1; 0 present"):
            context.add_component(ComponentType.STORAGE, 1, {"interface": "SATA"})

    def test_stored_data_is_copied(self) -> None:
        data = {"socket": "AM5"}
        ctx = ValidationContext()
        ctx.add_component("cpu", 0, data)
        data["socket"] = "LGA1700"
        assert ctx.get_component("cpu")["socket"] == "AM5"

    def test_summary(self, context: ValidationContext) -> None:
        assert context.get_summary() == {"cpu": 1, "motherboard": 1, "ram": 2}

    def test_get_all_components(self, context: ValidationContext) -> None:
        everything = context.get_all_components()
        assert set(everything) == {
            ComponentType.CPU,
            ComponentType.MOTHERBOARD,
            ComponentType.RAM,
        }
        assert len(everything[ComponentType.RAM]) == 2

    def test_from_components(self) -> None:
        """from_components should keep per-type order and fill in the uuid."""
        ctx = ValidationContext.from_components(
            [
                Component(ComponentType.RAM, "ram-1", spec_of("ram", "ram-1")),
                Component(ComponentType.CPU, "cpu-xeon", spec_of("cpu", "cpu-xeon")),
                Component(ComponentType.RAM, "ram-2", spec_of("ram", "ram-2")),
            ]
        )

        assert [r["uuid"] for r in ctx.get_components("ram")] == ["ram-1", "ram-2"]
        assert ctx.get_component("cpu")["uuid"] == "cpu-xeon"


class TestSpecValues:
    """Tests for dot-path lookups and typed specs."""

    def test_dot_path(self, context: ValidationContext) -> None:
        context.set_component_type("motherboard")
        assert context.component_type is ComponentType.MOTHERBOARD
        assert context.get_spec_value("socket") == "LGA4677"
        assert context.get_spec_value("expansion_slots.riser_slots") == [
            {"type": "PCIe 5.0 x16", "count": 2}
        ]

    def test_missing_path_returns_default(self, context: ValidationContext) -> None:
        context.set_component_type("cpu")
        assert context.get_spec_value("cooling.fans", "none") == "none"
        assert context.get_spec_value("socket.inner", 0) == 0

    def test_no_component_type(self, context: ValidationContext) -> None:
        assert context.get_spec_value("socket", "unset") == "unset"

    def test_cache_cleared_on_mutation(self, context: ValidationContext) -> None:
        """A cached value should be refreshed after the component changes."""
        context.set_component_type("cpu")
        assert context.get_spec_value("socket") == "LGA4677"

        context.add_component("cpu", 0, {"socket": "SP5"})

        assert context.get_spec_value("socket") == "SP5"

    def test_typed_spec(self, context: ValidationContext) -> None:
        cpu = context.spec("cpu")
        assert isinstance(cpu, CPUSpec)
        assert cpu.socket == "LGA4677"
        assert context.spec("cpu", 3) is None
        assert len(context.specs("ram")) == 2

    def test_typed_specs_for_absent_type(self, context: ValidationContext) -> None:
        assert context.specs("nic") == []
        assert context.spec("nic") is None


class TestContextUtilities:
    """Tests for metadata, cloning and integrity checks."""

    def test_metadata(self, context: ValidationContext) -> None:
        context.set_metadata("config_id", "abc")
        assert context.get_metadata("config_id") == "abc"
        assert context.get_metadata("missing", 1) == 1

    def test_clone_is_deep(self, context: ValidationContext) -> None:
        context.set_metadata("tags", ["a"])
        cloned = context.clone()

        cloned.get_component("cpu")["socket"] = "SP5"
        cloned.get_metadata("tags").append("b")

        assert context.get_component("cpu")["socket"] == "LGA4677"
        assert context.get_metadata("tags") == ["a"]

    def test_integrity_valid(self, context: ValidationContext) -> None:
        assert context.validate_integrity() == {"valid": True, "issues": []}

    def test_integrity_reports_empty_and_non_mapping(self) -> None:
        ctx = ValidationContext()
        ctx.add_component("cpu", 0, {})
        ctx.add_component("ram", 0, ["not", "a", "mapping"])

        report = ctx.validate_integrity()

        assert not report["valid"]
        assert "Component 'cpu[0]' is empty" in report["issues"]
        assert "Component 'ram[0]' is not a mapping" in report["issues"]
