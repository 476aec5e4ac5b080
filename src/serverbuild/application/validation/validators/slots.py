"""Final catch-all: motherboard slot and port utilization."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from serverbuild.domain.value_objects import ComponentType

from ..base import BaseValidator
from ..result import ValidationResult
from .expansion import is_riser_card

if TYPE_CHECKING:
    from serverbuild.domain.specs import MotherboardSpec

    from ..context import ValidationContext

# Utilization thresholds, percent
CRITICAL_UTILIZATION = 100
HIGH_UTILIZATION = 90
NOTABLE_UTILIZATION = 75


@dataclass
class SlotUsage:
    """Used versus total for one kind of slot or port."""

    key: str
    label: str
    total: int
    used: int = 0
    details: dict[str, int] = field(default_factory=dict)

    @property
    def percent(self) -> int:
        """Utilization rounded half up."""
        if self.total <= 0:
            return 0
        return int(self.used * 100 / self.total + 0.5)


class SlotAvailabilityValidator(BaseValidator):
    """Validator reporting slot usage and flagging exhausted resources.

    Runs last. Utilization at or above 100% is an error, at or above 90% a
    warning and at or above 75% an info.
    """

    name = "slot_availability"
    priority = 0
    requires = (ComponentType.MOTHERBOARD,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        usage = self.calculate_usage(context.spec(ComponentType.MOTHERBOARD), context)

        result.add_info("=== Slot Usage Report ===")
        for slot in usage:
            if slot.total <= 0:
                continue
            message = f"{slot.label}: {slot.used}/{slot.total} used ({slot.percent}%)"
            if slot.details:
                message += " - " + ", ".join(f"{k}: {v}" for k, v in slot.details.items())
            result.add_info(message)

        bottlenecks = [slot for slot in usage if slot.total > 0 and slot.percent >= NOTABLE_UTILIZATION]
        if bottlenecks:
            result.add_info("=== Resource Utilization ===")
        for slot in bottlenecks:
            ratio = f"({slot.used}/{slot.total})"
            utilization = slot.used * 100 / slot.total
            if utilization >= CRITICAL_UTILIZATION:
                result.add_error(
                    f"CRITICAL: {slot.key} fully utilized {ratio}", code="slot_exhausted"
                )
            elif utilization >= HIGH_UTILIZATION:
                result.add_warning(f"WARNING: {slot.key} nearly full {ratio}")
            elif utilization >= NOTABLE_UTILIZATION:
                result.add_info(f"INFO: {slot.key} well-utilized {ratio}")
        return result

    @staticmethod
    def calculate_usage(
        motherboard: MotherboardSpec, context: ValidationContext
    ) -> list[SlotUsage]:
        """Compute usage for PCIe, RAM, M.2, SATA and U.2 resources."""
        cards = context.specs(ComponentType.PCIE_CARD)
        risers = [card for card in cards if is_riser_card(card)]
        expansion = len(cards) - len(risers)
        nics = context.count_components(ComponentType.NIC)
        hbas = context.count_components(ComponentType.HBA_CARD)

        pcie = SlotUsage(
            "pcie_slots",
            "PCIe Slots",
            motherboard.total_pcie_slots + sum(r.pcie_slots for r in risers),
            expansion + nics + hbas,
            {"expansion_cards": expansion, "network_cards": nics, "hba_cards": hbas},
        )
        ram = SlotUsage(
            "ram_slots",
            "RAM Slots",
            motherboard.ram_slots,
            context.count_components(ComponentType.RAM),
        )
        m2 = SlotUsage("m2_slots", "M.2 Slots", motherboard.m2_slots)
        sata = SlotUsage("sata_ports", "SATA Ports", motherboard.sata_ports)
        u2 = SlotUsage("u2_ports", "U.2 Ports", motherboard.u2_ports)

        by_interface = {"NVME": m2, "SATA": sata, "U.2": u2}
        for drive in context.specs(ComponentType.STORAGE):
            slot = by_interface.get(drive.interface_family)
            if slot is not None:
                slot.used += 1
        return [pcie, ram, m2, sata, u2]
