"""Unit tests for the slot utilization validator."""

import pytest

from serverbuild.application.validation.validators import SlotAvailabilityValidator, SlotUsage
from serverbuild.domain.specs import MotherboardSpec

from conftest import context_of, spec_of


def messages(entries) -> list[str]:
    return [entry.message for entry in entries]


class TestSlotUsage:
    """Tests for SlotUsage."""

    @pytest.mark.parametrize(
        "used, total, percent",
        [(0, 0, 0), (1, 8, 13), (1, 2, 50), (3, 4, 75), (4, 4, 100)],
    )
    def test_percent_rounds_half_up(self, used: int, total: int, percent: int) -> None:
        assert SlotUsage("k", "Label", total, used).percent == percent


class TestSlotAvailabilityValidator:
    """Tests for SlotAvailabilityValidator."""

    def test_usage_report(self) -> None:
        context = context_of(
            ("motherboard", "mb-x13"),
            ("ram", "ram-1"),
            ("ram", "ram-2"),
            ("storage", "nvme-1"),
            ("storage", "sata-1"),
            ("nic", "nic-sfp28"),
        )

        result = SlotAvailabilityValidator().validate(context)

        assert result.success
        assert not result.has_warnings
        assert messages(result.infos) == [
            "=== Slot Usage Report ===",
            "PCIe Slots: 1/4 used (25%) - expansion_cards: 0, network_cards: 1, hba_cards: 0",
            "RAM Slots: 2/16 used (13%)",
            "M.2 Slots: 1/2 used (50%)",
            "SATA Ports: 1/8 used (13%)",
        ]

    def test_exhausted_resource(self) -> None:
        context = context_of(("motherboard", "mb-small"), ("storage", "nvme-1"))

        result = SlotAvailabilityValidator().validate(context)

        assert "=== Resource Utilization ===" in messages(result.infos)
        assert messages(result.errors) == ["CRITICAL: m2_slots fully utilized (1/1)"]
        assert result.errors[0].code == "slot_exhausted"

    def test_nearly_full_warning(self) -> None:
        context = context_of(("motherboard", "mb-x13"), *[("ram", "ram-1")] * 15)
        result = SlotAvailabilityValidator().validate(context)
        assert messages(result.warnings) == ["WARNING: ram_slots nearly full (15/16)"]

    def test_well_utilized_info(self) -> None:
        context = context_of(("motherboard", "mb-x13"), *[("ram", "ram-1")] * 12)
        result = SlotAvailabilityValidator().validate(context)
        assert "INFO: ram_slots well-utilized (12/16)" in messages(result.infos)
        assert not result.has_warnings

    def test_calculate_usage_counts_riser_slots(self) -> None:
        context = context_of(
            ("motherboard", "mb-x13"),
            ("pciecard", "rc-a"),
            ("pciecard", "gpu-1"),
            ("hbacard", "hba-sas"),
        )
        motherboard = MotherboardSpec.model_validate(spec_of("motherboard", "mb-x13"))

        pcie, ram, m2, sata, u2 = SlotAvailabilityValidator.calculate_usage(motherboard, context)

        assert (pcie.total, pcie.used) == (6, 2)
        assert pcie.details == {"expansion_cards": 1, "network_cards": 0, "hba_cards": 1}
        assert (ram.total, m2.total, sata.total, u2.total) == (16, 2, 8, 0)
