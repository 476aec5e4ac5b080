"""Expansion card validators: PCIe slot budget, NICs and HBAs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from serverbuild.domain.value_objects import (
    ComponentType,
    has_riser_uuid_prefix,
    is_riser_subtype,
)

from ..base import BaseValidator
from ..result import ValidationResult

if TYPE_CHECKING:
    from serverbuild.domain.specs import (
        HBASpec,
        MotherboardSpec,
        NICSpec,
        PCIeCardSpec,
        StorageSpec,
    )

    from ..context import ValidationContext

MAX_CARD_SLOTS = 16
MAX_PCIE_LANES = 16
FAST_NIC_GBPS = 25
FAST_NIC_MIN_LANES = 4
GEN4_NIC_GBPS = 100
HIGH_HBA_PORT_COUNT = 32

# SAS generation -> link speed in Gbps
SAS_SPEEDS: dict[str, int] = {
    "SAS1": 3,
    "SAS1.1": 3,
    "SAS2": 6,
    "SAS2.1": 6,
    "SAS3": 12,
    "SAS3.1": 12,
    "SAS4": 22,
}


def is_riser_card(card: PCIeCardSpec) -> bool:
    """Riser detection: catalog subtype first, legacy UUID prefix second."""
    if is_riser_subtype(card.component_subtype):
        return True
    uuid: Any = getattr(card, "uuid", None)
    return isinstance(uuid, str) and has_riser_uuid_prefix(uuid)


def recommended_nic_lanes(speed_gbps: float) -> int:
    """Lane count a NIC of the given speed usually needs."""
    if speed_gbps <= 1:
        return 1
    if speed_gbps <= 10:
        return 4
    if speed_gbps <= 25:
        return 8
    return 16


def sas_speed(generation: str | None) -> int | None:
    """Link speed of a SAS generation label, or None when unknown."""
    if not generation:
        return None
    return SAS_SPEEDS.get(generation.replace(" ", "").upper())


def _sas_rank(generation: str) -> tuple[int, ...]:
    digits = generation.upper().replace("SAS", "").strip() or "0"
    try:
        return tuple(int(part) for part in digits.split("."))
    except ValueError:
        return (0,)


class PCIeCardValidator(BaseValidator):
    """Validator for the PCIe slot budget and per-card sanity.

    Riser cards do not consume motherboard PCIe slots; they sit in riser
    slots and add the slots they provide to the budget.
    """

    name = "pcie_card"
    priority = 60
    requires = (ComponentType.PCIE_CARD,)

    def can_run(self, context: ValidationContext) -> bool:
        return any(
            context.has_component(ctype)
            for ctype in (ComponentType.PCIE_CARD, ComponentType.NIC, ComponentType.HBA_CARD)
        )

    def required_components(self) -> list[ComponentType]:
        return [ComponentType.PCIE_CARD, ComponentType.NIC, ComponentType.HBA_CARD]

    def validate(self, context: ValidationContext) -> ValidationResult:
        """Check slot demand against supply, then each card.

        Args:
            context: Snapshot holding at least one PCIe card, NIC or HBA

        Returns:
            ValidationResult with slot usage and per-card findings
        """
        result = ValidationResult()
        motherboard: MotherboardSpec | None = context.spec(ComponentType.MOTHERBOARD)
        if motherboard is None:
            return result.add_warning("No motherboard found - cannot validate PCIe slots")

        cards: list[PCIeCardSpec] = context.specs(ComponentType.PCIE_CARD)
        nics: list[NICSpec] = context.specs(ComponentType.NIC)
        hbas: list[HBASpec] = context.specs(ComponentType.HBA_CARD)
        risers = [card for card in cards if is_riser_card(card)]
        expansion = [card for card in cards if not is_riser_card(card)]

        available = motherboard.total_pcie_slots + sum(r.pcie_slots for r in risers)
        if available == 0:
            return result.add_error(
                "Motherboard has no PCIe slots but configuration includes PCIe cards"
            )

        self._check_riser_slots(risers, motherboard, result)

        needed = sum(max(1, card.pcie_slots) for card in expansion) + len(nics) + len(hbas)
        if needed > available:
            result.add_error(
                f"Configuration needs {needed} PCIe slots but motherboard has {available}"
            )
        else:
            result.add_info(f"PCIe slot usage: {needed}/{available} slots required")

        for index, card in enumerate(cards):
            self._validate_card(index, card, motherboard, result)
        for index, nic in enumerate(nics):
            self._validate_nic(index, nic, result)
        for index, hba in enumerate(hbas):
            self._validate_hba(index, hba, result)
        return result

    def _check_riser_slots(
        self,
        risers: list[PCIeCardSpec],
        motherboard: MotherboardSpec,
        result: ValidationResult,
    ) -> None:
        if not risers:
            return
        slots = motherboard.expansion_slots
        riser_slots = sum(group.count for group in slots.riser_slots)
        if not riser_slots and slots.riser_compatibility is not None:
            riser_slots = slots.riser_compatibility.max_risers
        if len(risers) > riser_slots:
            result.add_error(
                f"Configuration has {len(risers)} riser cards but motherboard has "
                f"{riser_slots} riser slots"
            )

    def _validate_card(
        self,
        index: int,
        card: PCIeCardSpec,
        motherboard: MotherboardSpec,
        result: ValidationResult,
    ) -> None:
        if not card.model:
            result.add_warning(f"PCIe card {index}: model not specified")
        if not 1 <= card.pcie_slots <= MAX_CARD_SLOTS:
            result.add_warning(f"PCIe card {index}: unusual slot count ({card.pcie_slots})")
        generation = card.generation
        if generation and generation > motherboard.pcie_generation:
            result.add_warning(
                f"PCIe card {index} (Gen {generation}) exceeds motherboard capability "
                f"(Gen {motherboard.pcie_generation}) - will run at reduced speed"
            )

    def _validate_nic(self, index: int, nic: NICSpec, result: ValidationResult) -> None:
        if not nic.model:
            result.add_warning(f"NIC {index}: model not specified")
        speed = nic.max_speed_gbps
        if not speed:
            result.add_warning(f"NIC {index}: network speed not specified")
        if not 1 <= nic.pcie_lanes <= MAX_PCIE_LANES:
            result.add_warning(f"NIC {index}: unusual PCIe lane requirement ({nic.pcie_lanes})")
        if speed and speed >= FAST_NIC_GBPS and nic.pcie_lanes < FAST_NIC_MIN_LANES:
            result.add_warning(
                f"NIC {index}: {speed:g}Gbps NIC with {nic.pcie_lanes} lanes may be insufficient"
            )

    def _validate_hba(self, index: int, hba: HBASpec, result: ValidationResult) -> None:
        if not hba.model:
            result.add_warning(f"HBA card {index}: model not specified")
        if hba.port_count < 1:
            result.add_warning(f"HBA card {index}: invalid port count")
        if hba.sas_generation:
            result.add_info(
                f"HBA card {index}: SAS {hba.sas_generation} with {hba.port_count} ports"
            )
        if hba.raid_support and not hba.battery_backup:
            result.add_warning(
                f"HBA card {index}: RAID-capable card without battery backup may risk "
                "data loss on power failure"
            )


class NICValidator(BaseValidator):
    """Validator for network interface cards.

    Checks:
    - Model, speed and port count per card
    - PCIe lane count against the speed heuristic
    - 100G+ cards on pre-Gen4 boards
    - Feature infos and a redundancy summary
    """

    name = "nic"
    priority = 15
    requires = (ComponentType.NIC,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        nics: list[NICSpec] = context.specs(ComponentType.NIC)
        motherboard: MotherboardSpec | None = context.spec(ComponentType.MOTHERBOARD)

        for index, nic in enumerate(nics):
            self._validate_nic(index, nic, motherboard, result)

        total_ports = sum(nic.port_count for nic in nics)
        total_speed = sum((nic.max_speed_gbps or 0) * nic.port_count for nic in nics)
        if len(nics) == 1:
            result.add_info(
                f"Single NIC configuration: {total_ports} port(s) at {total_speed:g}Gbps total"
            )
        else:
            result.add_info(
                f"Dual NIC redundancy: {len(nics)} cards, {total_ports} port(s) at "
                f"{total_speed:g}Gbps total"
            )
            chassis = context.spec(ComponentType.CHASSIS)
            enclosure = (chassis.form_factor or "").upper() if chassis is not None else ""
            if "RACK" in enclosure or "SERVER" in enclosure:
                result.add_info("Server configuration with dual NICs - supports network failover")
        return result

    def _validate_nic(
        self,
        index: int,
        nic: NICSpec,
        motherboard: MotherboardSpec | None,
        result: ValidationResult,
    ) -> None:
        if not nic.model:
            result.add_warning(f"NIC {index}: model not specified")

        speed = nic.max_speed_gbps
        if speed is None:
            result.add_error(f"NIC {index}: network speed not specified")
            return
        if speed <= 0:
            result.add_error(f"NIC {index}: invalid speed ({speed:g}Gbps)")
        if nic.port_count < 1:
            result.add_error(f"NIC {index}: must have at least 1 port")

        recommended = recommended_nic_lanes(speed)
        if nic.pcie_lanes < recommended:
            result.add_warning(
                f"NIC {index}: {speed:g}Gbps typically requires {recommended} lanes "
                f"but only has {nic.pcie_lanes}"
            )
        if motherboard is not None and speed >= GEN4_NIC_GBPS and motherboard.pcie_generation < 4:
            result.add_warning(
                f"NIC {index}: {speed:g}Gbps NIC requires PCIe Gen 4+ but motherboard is "
                f"Gen {motherboard.pcie_generation}"
            )

        if nic.tcp_offload or nic.rss:
            result.add_info(f"NIC {index}: has hardware offload capabilities")
        if nic.sriov:
            result.add_info(f"NIC {index}: supports SR-IOV virtualization")
        if nic.ipmi:
            result.add_info(f"NIC {index}: has integrated management (IPMI)")
        if nic.wol:
            result.add_info(f"NIC {index}: supports Wake-on-LAN")

        result.add_info(f"NIC {index}: {nic.port_count}× {speed:g}Gbps ({nic.pcie_lanes} lanes)")


class HBAValidator(BaseValidator):
    """Validator for host bus adapters."""

    name = "hba"
    priority = 10
    requires = (ComponentType.HBA_CARD,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        hbas: list[HBASpec] = context.specs(ComponentType.HBA_CARD)
        drives: list[StorageSpec] = context.specs(ComponentType.STORAGE)

        for index, hba in enumerate(hbas):
            self._validate_hba(index, hba, drives, result)

        if len(hbas) == 1:
            result.add_info("Single HBA configuration")
        elif len(hbas) > 1:
            result.add_info(
                f"Multiple HBA configuration - {len(hbas)} cards for expanded storage"
            )
            models = [hba.model for hba in hbas]
            if len(models) != len(set(models)):
                result.add_warning("Multiple HBA cards with same model - may share resources")

        motherboard: MotherboardSpec | None = context.spec(ComponentType.MOTHERBOARD)
        if motherboard is not None and len(hbas) > motherboard.total_pcie_slots:
            result.add_error(
                f"More HBA cards ({len(hbas)}) than motherboard PCIe slots "
                f"({motherboard.total_pcie_slots})"
            )
        return result

    def _validate_hba(
        self,
        index: int,
        hba: HBASpec,
        drives: list[StorageSpec],
        result: ValidationResult,
    ) -> None:
        if not hba.model:
            result.add_warning(f"HBA {index}: model not specified")
        if hba.port_count <= 0:
            result.add_error(f"HBA {index}: must have at least 1 port")
            return
        if hba.port_count > HIGH_HBA_PORT_COUNT:
            result.add_info(
                f"HBA {index}: high port count ({hba.port_count}) - requires powerful backplane"
            )

        if not hba.sas_generation:
            result.add_warning(f"HBA {index}: SAS generation not specified")
        else:
            self._check_generation(index, hba.sas_generation, drives, result)

        if hba.cache_memory_mb:
            result.add_info(f"HBA {index}: {hba.cache_memory_mb:g}MB cache memory")
        else:
            result.add_warning(f"HBA {index}: no cache memory specified")

        if hba.battery_backup:
            result.add_info(f"HBA {index}: battery-backed cache for data protection")
        else:
            result.add_warning(f"HBA {index}: no battery backup - data at risk on power loss")

        if hba.raid_support:
            if hba.raid_levels:
                result.add_info(f"HBA {index}: supports RAID {', '.join(hba.raid_levels)}")
            else:
                result.add_info(f"HBA {index}: RAID support enabled")

    def _check_generation(
        self,
        index: int,
        generation: str,
        drives: list[StorageSpec],
        result: ValidationResult,
    ) -> None:
        speed = sas_speed(generation)
        if speed is None:
            result.add_warning(f"HBA {index}: unknown SAS generation '{generation}'")
            return
        for drive in drives:
            if drive.sas_generation and _sas_rank(drive.sas_generation) > _sas_rank(generation):
                result.add_warning(
                    f"SAS drive requires {drive.sas_generation} but HBA {index} is {generation}"
                )
        result.add_info(f"HBA {index}: SAS {generation} ({speed}Gbps)")
