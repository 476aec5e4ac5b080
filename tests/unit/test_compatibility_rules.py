"""Unit tests for compatibility lookup tables, predicates and results."""

import pytest

from serverbuild.application.compatibility import CompatibilityResult
from serverbuild.application.compatibility.rules import (
    card_slot_size,
    drive_bay_size,
    hba_supported_interfaces,
    hba_supports,
    normalize_caddy_size,
    normalize_protocol,
    storage_bus,
)
from serverbuild.domain.specs import HBASpec, NICSpec, PCIeCardSpec, StorageSpec
from serverbuild.domain.value_objects import ComponentType


def drive(**fields) -> StorageSpec:
    return StorageSpec.model_validate(fields)


class TestHBAProtocols:
    """Tests for HBA protocol handling."""

    @pytest.mark.parametrize(
        "protocol,expected",
        [
            ("Tri-Mode", "TRI-MODE"),
            ("SAS/SATA", "SAS/SATA"),
            ("SAS 12Gb/s", "SAS"),
            ("sata", "SATA"),
            ("NVMe", "NVME"),
            (None, "SAS/SATA"),
            ("Fibre Channel", "SAS/SATA"),
        ],
    )
    def test_normalize(self, protocol, expected) -> None:
        """Unknown or missing protocols default to SAS/SATA."""
        assert normalize_protocol(protocol) == expected

    def test_sas_hba_supports_sata(self) -> None:
        assert hba_supported_interfaces("SAS") == ("SAS", "SATA")
        assert hba_supports("SAS", drive(interface="SATA"))

    def test_sata_hba_refuses_sas(self) -> None:
        assert not hba_supports("SATA", drive(interface="SAS"))

    def test_tri_mode_supports_nvme(self) -> None:
        assert hba_supports("Tri-Mode", drive(interface="NVMe", form_factor="U.2"))


class TestStorageBus:
    """Tests for storage bus detection."""

    @pytest.mark.parametrize(
        "fields,bus",
        [
            ({"interface": "NVMe", "form_factor": "M.2"}, "NVME"),
            ({"interface": "NVMe", "form_factor": "U.2"}, "U.2"),
            ({"interface": "SAS"}, "SAS"),
            ({}, "SATA"),
            ({"interface": "M.2"}, "NVME"),
        ],
    )
    def test_bus(self, fields, bus) -> None:
        assert storage_bus(drive(**fields)) == bus


class TestSizes:
    """Tests for caddy and bay size normalization."""

    @pytest.mark.parametrize(
        "value,expected",
        [('2.5"', "2.5-inch"), ("3.5 inch", "3.5-inch"), ("2.5-inch", "2.5-inch"), ("m.2", "M.2"), (None, "")],
    )
    def test_normalize_caddy_size(self, value, expected) -> None:
        assert normalize_caddy_size(value) == expected

    def test_drive_bay_size(self) -> None:
        """Only 2.5 and 3.5 inch drives occupy bays."""
        assert drive_bay_size(drive(form_factor='3.5"')) == "3.5-inch"
        assert drive_bay_size(drive(form_factor="M.2")) is None


class TestCardSlotSize:
    """Tests for card slot width resolution."""

    def test_from_interface(self) -> None:
        card = PCIeCardSpec.model_validate({"interface": "PCIe 3.0 x4"})
        assert card_slot_size(ComponentType.PCIE_CARD, card) == "x4"

    def test_nic_falls_back_to_lanes(self) -> None:
        nic = NICSpec.model_validate({"pcie_lanes": 16})
        assert card_slot_size(ComponentType.NIC, nic) == "x16"

    def test_defaults(self) -> None:
        assert card_slot_size(ComponentType.HBA_CARD, HBASpec.model_validate({})) == "x8"
        assert card_slot_size(ComponentType.PCIE_CARD, PCIeCardSpec.model_validate({})) == "x16"


class TestCompatibilityResult:
    """Tests for CompatibilityResult."""

    def test_issue_makes_incompatible(self) -> None:
        result = CompatibilityResult().add_issue("bad", "fix it")
        assert not result.compatible
        assert result.recommendations == ["fix it"]

    def test_warning_keeps_compatible(self) -> None:
        result = CompatibilityResult().add_warning("careful").summarize()
        assert result.compatible
        assert result.compatibility_summary == "Compatible with warnings"

    def test_recommendations_deduplicated(self) -> None:
        result = CompatibilityResult()
        result.add_recommendation("a").add_recommendation("a")
        assert result.recommendations == ["a"]

    def test_merge(self) -> None:
        left = CompatibilityResult().add_detail("checked").add_recommendation("r")
        right = CompatibilityResult().add_issue("bad", "r").add_warning("w")
        left.merge(right)
        assert not left.compatible
        assert left.issues == ["bad"]
        assert left.warnings == ["w"]
        assert left.recommendations == ["r"]
        assert left.details == ["checked"]

    def test_summarize_keeps_explicit_summary(self) -> None:
        result = CompatibilityResult(compatibility_summary="Compatible - pending NIC assignment")
        assert result.summarize().compatibility_summary == "Compatible - pending NIC assignment"

    def test_summaries(self) -> None:
        assert CompatibilityResult().summarize().compatibility_summary == "Compatible"
        failed = CompatibilityResult().add_issue("bad").summarize()
        assert failed.to_dict()["compatibility_summary"] == "Incompatible - see issues"
