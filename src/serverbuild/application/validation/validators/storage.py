"""Storage validators.

Covers the drives themselves and everything they plug into: motherboard
ports, chassis backplane and bays, HBA controllers and adapters. Drives are
bucketed by ``StorageSpec.interface_family``.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from serverbuild.domain.value_objects import ComponentType

from ..base import BaseValidator
from ..result import ValidationResult

if TYPE_CHECKING:
    from serverbuild.domain.specs import ChassisSpec, MotherboardSpec, StorageSpec

    from ..context import ValidationContext

VALID_INTERFACES = ("NVME", "SATA", "SAS", "U.2", "M.2")
VALID_FORM_FACTORS = ('2.5"', '3.5"', "M.2", "2.5", "3.5")
MAX_TOTAL_STORAGE_GB = 100_000

# Backplane type -> drive interfaces it carries
BACKPLANE_SUPPORT: dict[str, list[str]] = {
    "SATA": ["SATA"],
    "SAS": ["SAS", "SATA"],
    "SAS3": ["SAS", "SATA"],
    "NVME": ["NVME"],
    "HYBRID": ["SATA", "SAS", "NVME"],
    "MULTIPORT": ["SATA", "SAS", "NVME", "U.2"],
}

# NVMe drives above this sequential speed need cooling
NVME_THROTTLE_SPEED_MBPS = 6000


def interface_counts(drives: list[StorageSpec]) -> Counter[str]:
    """Count drives per interface family."""
    return Counter(drive.interface_family for drive in drives)


class StorageValidator(BaseValidator):
    """Validator for storage devices and the overall storage layout.

    Two conditions are blocking: more NVMe drives than motherboard M.2 slots,
    and SAS drives with no HBA to drive them.
    """

    name = "storage"
    priority = 65
    requires = (ComponentType.STORAGE,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        """Validate each drive, then the aggregate layout.

        Args:
            context: Snapshot holding at least one storage device

        Returns:
            ValidationResult with per-drive findings and a summary info
        """
        result = ValidationResult()
        drives: list[StorageSpec] = context.specs(ComponentType.STORAGE)
        for index, drive in enumerate(drives):
            self._validate_drive(index, drive, result)
        self._validate_layout(drives, context, result)
        return result

    def _validate_drive(self, index: int, drive: StorageSpec, result: ValidationResult) -> None:
        for field_name in ("capacity_gb", "interface", "form_factor"):
            if getattr(drive, field_name) in (None, ""):
                result.add_error(
                    f"Storage device {index}: field '{field_name}' is required but missing"
                )

        if (drive.capacity_gb or 0) <= 0:
            result.add_error(f"Storage device {index}: capacity must be greater than 0 GB")

        interface = drive.interface_family
        if interface not in VALID_INTERFACES:
            result.add_warning(f"Storage device {index}: unknown interface '{interface}'")

        form_factor = drive.form_factor_upper
        if form_factor not in VALID_FORM_FACTORS and "M.2" not in form_factor:
            result.add_warning(
                f"Storage device {index}: unusual form factor '{form_factor}'"
            )

        if interface == "NVME" and "M.2" not in form_factor:
            result.add_error(
                f"Storage device {index}: NVMe interface requires M.2 form factor"
            )
        if interface == "SATA" and "M.2" in form_factor:
            result.add_warning(
                f"Storage device {index}: SATA interface with M.2 form factor is unusual"
            )

    def _validate_layout(
        self,
        drives: list[StorageSpec],
        context: ValidationContext,
        result: ValidationResult,
    ) -> None:
        total_capacity = sum(drive.capacity_gb or 0 for drive in drives)
        counts = interface_counts(drives)
        nvme, sata, sas = counts["NVME"], counts["SATA"], counts["SAS"]

        if total_capacity > MAX_TOTAL_STORAGE_GB:
            result.add_warning(
                f"Very large total storage capacity: {total_capacity:g}GB "
                "- ensure proper cooling and power"
            )

        motherboard: MotherboardSpec | None = context.spec(ComponentType.MOTHERBOARD)
        if motherboard is not None:
            if nvme and 0 < motherboard.m2_slots < nvme:
                result.add_error(
                    f"More NVMe drives ({nvme}) than motherboard M.2 slots "
                    f"({motherboard.m2_slots})",
                    code="m2_capacity",
                )
                result.set_blocking()
            if sata and 0 < motherboard.sata_ports < sata:
                result.add_warning(
                    f"More SATA drives ({sata}) than motherboard SATA ports "
                    f"({motherboard.sata_ports}) - may need adapter"
                )

        if sas and not context.has_component(ComponentType.HBA_CARD):
            result.add_error(
                "SAS drives present but no HBA card found - SAS drives require HBA controller",
                code="hba_required",
            )
            result.set_blocking()

        result.add_info(
            f"Storage summary: {nvme} NVMe, {sata} SATA, {sas} SAS drives "
            f"- Total: {total_capacity:g}GB"
        )


class ChassisBackplaneValidator(BaseValidator):
    """Validator for chassis backplane support of the installed drives."""

    name = "chassis_backplane"
    priority = 55
    requires = (ComponentType.CHASSIS,)

    def can_run(self, context: ValidationContext) -> bool:
        return context.has_component(ComponentType.CHASSIS) and (
            context.has_component(ComponentType.STORAGE)
            or context.has_component(ComponentType.HBA_CARD)
        )

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        chassis: ChassisSpec = context.spec(ComponentType.CHASSIS)
        drives: list[StorageSpec] = context.specs(ComponentType.STORAGE)

        required = list(dict.fromkeys(drive.interface_family for drive in drives))
        if not required:
            return result
        if not chassis.backplane_type:
            return result.add_warning(
                "Chassis backplane type not specified - cannot validate storage compatibility"
            )

        backplane = chassis.backplane_type.strip().upper()
        supported = BACKPLANE_SUPPORT.get(backplane, [])
        for interface in required:
            if interface not in supported:
                result.add_error(
                    f"Chassis backplane type '{backplane}' does not support {interface} storage"
                )
        if supported:
            result.add_info(f"Chassis backplane '{backplane}' supports: {', '.join(supported)}")

        needs_hot_swap = any(drive.is_sas or drive.is_enterprise for drive in drives)
        if needs_hot_swap and not chassis.hot_swap_capable:
            result.add_warning(
                "Configuration includes enterprise storage but chassis does not support hot-swap"
            )
        if chassis.hot_swap_capable:
            result.add_info(
                "Chassis supports hot-swap - drives can be replaced without powering down"
            )
        return result


class MotherboardStorageValidator(BaseValidator):
    """Validator for onboard SATA, M.2 and U.2 connectivity."""

    name = "motherboard_storage"
    priority = 50
    requires = (ComponentType.MOTHERBOARD, ComponentType.STORAGE)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        motherboard: MotherboardSpec = context.spec(ComponentType.MOTHERBOARD)
        drives: list[StorageSpec] = context.specs(ComponentType.STORAGE)
        counts = interface_counts(drives)

        sata, ports = counts["SATA"], motherboard.sata_ports
        if sata and ports == 0:
            result.add_error("Configuration includes SATA drives but motherboard has no SATA ports")
        elif sata > ports > 0:
            result.add_error(
                f"Configuration needs {sata} SATA ports but motherboard only has {ports}"
            )

        nvme, m2_slots = counts["NVME"], motherboard.m2_slots
        if nvme and m2_slots == 0:
            result.add_error("Configuration includes NVMe drives but motherboard has no M.2 slots")
        elif nvme > m2_slots > 0:
            result.add_error(
                f"Configuration needs {nvme} M.2 slots but motherboard only has {m2_slots}"
            )

        u2, u2_ports = counts["U.2"], motherboard.u2_ports
        if u2 and u2_ports == 0:
            result.add_warning("Configuration includes U.2 drives but motherboard has no U.2 ports")
        elif u2 > u2_ports > 0:
            result.add_error(
                f"Configuration needs {u2} U.2 ports but motherboard only has {u2_ports}"
            )

        if nvme and "SATA" in motherboard.m2_slot_type.upper():
            for _ in range(nvme):
                result.add_warning("NVMe drive but motherboard M.2 slots are SATA only")
        return result


class HBARequirementValidator(BaseValidator):
    """Validator for whether the storage layout needs an HBA, and whether it has one.

    SAS drives, enterprise or datacenter models and drives assigned to a RAID
    group all require a controller.
    """

    name = "hba_requirement"
    priority = 45
    requires = (ComponentType.STORAGE,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        drives: list[StorageSpec] = context.specs(ComponentType.STORAGE)
        has_hba = context.has_component(ComponentType.HBA_CARD)
        requires_hba = any(
            drive.interface_family == "SAS" or drive.is_enterprise or drive.raid_group
            for drive in drives
        )

        if requires_hba and not has_hba:
            result.add_error("Storage configuration requires HBA card but none is present")
        elif requires_hba:
            result.add_info("HBA card present for enterprise storage support")
            self._validate_hba(context, drives, result)
        elif has_hba:
            result.add_info("HBA card present but not required for current storage configuration")
        return result

    def _validate_hba(
        self,
        context: ValidationContext,
        drives: list[StorageSpec],
        result: ValidationResult,
    ) -> None:
        hba = context.spec(ComponentType.HBA_CARD)
        ports = hba.port_count
        sas = sum(1 for drive in drives if drive.interface_family == "SAS")
        raid_required = any(drive.raid_group for drive in drives)

        if sas and ports == 0:
            result.add_error("HBA card has no SAS ports but SAS drives are present")
        elif sas > ports:
            result.add_error(f"SAS drives ({sas}) exceed HBA port count ({ports})")

        if raid_required and not hba.raid_support:
            result.add_warning(
                "RAID configuration requires RAID-capable HBA but card does not support RAID"
            )
        if raid_required and not hba.battery_backup:
            result.add_warning(
                "RAID configuration recommended to use battery-backed cache for data protection"
            )
        result.add_info(f"HBA card has {ports} ports for {sas} SAS devices")


class PCIeAdapterValidator(BaseValidator):
    """Validator for drives that can only be attached through an adapter.

    Adapter kinds:
    - sata_to_m2: SATA drives in M.2 form factor
    - nvme_to_pcie: NVMe drives on a board without M.2 slots
    - u2_adapter: U.2 drives on a board without U.2 ports
    """

    name = "pcie_adapter"
    priority = 40
    requires = (ComponentType.MOTHERBOARD, ComponentType.STORAGE)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        motherboard: MotherboardSpec = context.spec(ComponentType.MOTHERBOARD)
        needs = self.adapter_needs(context.specs(ComponentType.STORAGE), motherboard)

        if needs["sata_to_m2"]:
            if motherboard.m2_slots > 0:
                result.add_warning(
                    "SATA drives with M.2 form factor need adapter - ensure M.2 slots support SATA"
                )
            else:
                result.add_error(
                    "SATA drives with M.2 form factor need adapter but no M.2 slots available"
                )

        if needs["nvme_to_pcie"]:
            if motherboard.pcie_bifurcation:
                result.add_info(
                    "Motherboard supports PCIe bifurcation - NVMe to PCIe adapter should work"
                )
            else:
                result.add_warning(
                    "NVMe drives need PCIe adapter but motherboard may not support PCIe bifurcation"
                )

        if needs["u2_adapter"]:
            if motherboard.total_pcie_slots > 1:
                result.add_warning(
                    "U.2 drives need PCIe adapter - PCIe slots available for adapter"
                )
            else:
                result.add_error("U.2 drives need PCIe adapter but insufficient PCIe slots")
        return result

    @staticmethod
    def adapter_needs(
        drives: list[StorageSpec], motherboard: MotherboardSpec
    ) -> Counter[str]:
        """Count the adapters each kind of drive would need on this board."""
        needs: Counter[str] = Counter()
        for drive in drives:
            interface = drive.interface_family
            if interface == "SATA" and "M.2" in drive.form_factor_upper and motherboard.sata_ports > 0:
                needs["sata_to_m2"] += 1
            if interface == "NVME" and motherboard.m2_slots == 0:
                needs["nvme_to_pcie"] += 1
            if interface == "U.2" and motherboard.u2_ports == 0:
                needs["u2_adapter"] += 1
        return needs


class StorageBayValidator(BaseValidator):
    """Validator for chassis bay capacity.

    Drives are bucketed into 2.5", 3.5", M.2 and U.2 bays. Only 2.5" and
    3.5" drives count against ``drive_bays``; the per-size limits are
    advisories.
    """

    name = "storage_bay"
    priority = 35
    requires = (ComponentType.CHASSIS, ComponentType.STORAGE)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        chassis: ChassisSpec = context.spec(ComponentType.CHASSIS)
        buckets = Counter(self.bay_type(drive) for drive in context.specs(ComponentType.STORAGE))

        small, large = buckets["2.5"], buckets["3.5"]
        drives = small + large
        if drives > chassis.drive_bays:
            result.add_error(
                f"Configuration needs {drives} drive bays but chassis has {chassis.drive_bays}"
            )
        elif drives:
            result.add_info(f"Drive bay usage: {drives}/{chassis.drive_bays} bays used")

        if chassis.bays_2_5 or chassis.bays_3_5:
            bays_small = chassis.bays_2_5 or 0
            bays_large = chassis.bays_3_5 or 0
            if small > bays_small > 0:
                result.add_warning(
                    f'{small} 2.5" drives but chassis has only {bays_small} 2.5" bays'
                )
            if large > bays_large > 0:
                result.add_warning(
                    f'{large} 3.5" drives but chassis has only {bays_large} 3.5" bays'
                )

        self._check_dedicated(buckets["M.2"], chassis.m2_bays or 0, "M.2", "dedicated M.2 bays", result)
        self._check_dedicated(buckets["U.2"], chassis.u2_bays or 0, "U.2", "U.2 bays", result)
        return result

    @staticmethod
    def bay_type(drive: StorageSpec) -> str:
        """Bay bucket a drive occupies."""
        form_factor = drive.form_factor_upper or '2.5"'
        if "M.2" in form_factor:
            return "M.2"
        if drive.interface_family == "U.2":
            return "U.2"
        if "3.5" in form_factor:
            return "3.5"
        return "2.5"

    @staticmethod
    def _check_dedicated(
        needed: int, bays: int, kind: str, none_label: str, result: ValidationResult
    ) -> None:
        if not needed:
            return
        if bays == 0:
            result.add_warning(f"{needed} {kind} drives but chassis has no {none_label}")
        elif needed > bays:
            result.add_warning(f"{needed} {kind} drives but chassis has only {bays} {kind} bays")


class NVMeSlotValidator(BaseValidator):
    """Validator for NVMe drive placement in M.2 slots.

    Runs whenever an NVMe drive is present, even without a motherboard, so
    the missing board is reported.
    """

    name = "nvme_slot"
    priority = 25
    requires = (ComponentType.STORAGE,)

    def can_run(self, context: ValidationContext) -> bool:
        return any(
            drive.interface_family == "NVME" for drive in context.specs(ComponentType.STORAGE)
        )

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        motherboard: MotherboardSpec | None = context.spec(ComponentType.MOTHERBOARD)
        if motherboard is None:
            return result.add_warning("No motherboard found - cannot validate M.2 slots")

        drives = [
            drive
            for drive in context.specs(ComponentType.STORAGE)
            if drive.interface_family == "NVME"
        ]
        if not drives:
            return result

        m2_slots = motherboard.m2_slots
        if m2_slots == 0:
            return result.add_error("No M.2 slots on motherboard but NVMe drives present")
        if len(drives) > m2_slots:
            result.add_error(f"More NVMe drives ({len(drives)}) than M.2 slots ({m2_slots})")

        sata_only = "SATA" in motherboard.m2_slot_type.upper()
        for index, drive in enumerate(drives):
            self._validate_drive(index, drive, sata_only, result)

        m2_gen, board_gen = motherboard.m2_pcie_generation, motherboard.pcie_generation
        if m2_gen < board_gen - 1:
            result.add_warning(
                f"M.2 slots are PCIe Gen {m2_gen} but motherboard supports Gen {board_gen}"
            )
        for drive in drives:
            if drive.pcie_generation and drive.pcie_generation > m2_gen:
                result.add_warning(
                    f"NVMe drive requires PCIe Gen {drive.pcie_generation} but M.2 slots "
                    f"are only Gen {m2_gen}"
                )
        result.add_info(f"M.2 slots support PCIe Gen {m2_gen}")
        return result

    def _validate_drive(
        self, index: int, drive: StorageSpec, sata_only: bool, result: ValidationResult
    ) -> None:
        form_factor = drive.form_factor_upper or "M.2"
        if "M.2" not in form_factor:
            result.add_error(
                f"NVMe drive {index}: unusual form factor '{form_factor}' (should be M.2)"
            )
        capacity = drive.capacity_gb or 0
        if capacity <= 0:
            result.add_error(f"NVMe drive {index}: invalid capacity")

        speed = drive.speed_mbps
        if speed and speed > NVME_THROTTLE_SPEED_MBPS and not drive.thermal_pads:
            result.add_warning(
                f"NVMe drive {index}: high-speed ({speed:g}Mbps) without thermal pads "
                "may thermal throttle"
            )
        if sata_only:
            result.add_warning(
                f"NVMe drive {index} in SATA-only M.2 slot - may not work or work at limited speed"
            )
        suffix = f" ({speed:g}Mbps)" if speed else ""
        result.add_info(f"NVMe drive {index}: {capacity:g}GB{suffix}")
