"""Add-time compatibility rules for server components.

The engine answers one question: may this component join a configuration
that already holds these components? Every check loads the candidate's
specification through the injected lookup and compares it against the
typed specifications of the existing components.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Callable

from serverbuild.domain.specs import (
    CaddySpec,
    ChassisSpec,
    ComponentSpec,
    CPUSpec,
    HBASpec,
    MotherboardSpec,
    NICSpec,
    PCIeCardSpec,
    PSUSpec,
    RAMSpec,
    SFPSpec,
    SpecificationError,
    StorageSpec,
    parse_spec,
)
from serverbuild.domain.value_objects import (
    SLOT_COMPATIBILITY,
    ComponentType,
    has_riser_uuid_prefix,
    is_riser_subtype,
)

from ..allocation.ports import NICPortTracker, normalize_port_type
from ..allocation.slots import UnifiedSlotTracker
from ..validation.base import normalize_value
from ..validation.validators.chassis import caddy_fits_drive
from ..validation.validators.platform import FORM_FACTOR_COMPATIBILITY, PSU_TDP_RATIO_LIMIT
from .result import CompatibilityResult
from .rules import (
    card_slot_size,
    drive_bay_size,
    hba_supported_interfaces,
    normalize_caddy_size,
    normalize_protocol,
    storage_bus,
)

if TYPE_CHECKING:
    from serverbuild.contracts.lookup import SpecificationLookup

logger = logging.getLogger(__name__)

_PLURALS: dict[ComponentType, str] = {
    ComponentType.CPU: "CPUs",
    ComponentType.MOTHERBOARD: "motherboards",
    ComponentType.RAM: "RAM",
    ComponentType.STORAGE: "storage",
    ComponentType.CHASSIS: "chassis",
    ComponentType.HBA_CARD: "HBA cards",
    ComponentType.NIC: "NICs",
    ComponentType.PCIE_CARD: "PCIe cards",
    ComponentType.CADDY: "caddies",
    ComponentType.PSU: "PSUs",
    ComponentType.SFP: "SFP modules",
}


class Inventory:
    """Typed view of the components already in a configuration.

    Accepts any objects carrying ``component_type`` and ``uuid``; a non-empty
    ``spec`` attribute is used as-is, otherwise the spec is looked up.
    Components whose specification is unknown are left out and reported in
    ``missing``.
    """

    def __init__(self, lookup: SpecificationLookup, existing: Iterable[Any]) -> None:
        self._items: list[tuple[ComponentType, str, ComponentSpec]] = []
        self.missing: list[tuple[ComponentType, str]] = []
        self.total = 0
        for component in existing:
            self.total += 1
            component_type = ComponentType(component.component_type)
            raw = getattr(component, "spec", None) or lookup.get_component_specs(
                component_type, component.uuid
            )
            if raw is None:
                self.missing.append((component_type, component.uuid))
                continue
            try:
                spec = parse_spec(component_type, raw)
            except SpecificationError as e:
                logger.warning(f"Skipping unreadable {component_type.value} {component.uuid}: {e}")
                self.missing.append((component_type, component.uuid))
                continue
            self._items.append((component_type, component.uuid, spec))

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def entries(self, component_type: ComponentType) -> list[tuple[str, Any]]:
        """``(uuid, spec)`` pairs of one type in insertion order."""
        return [(uuid, spec) for ctype, uuid, spec in self._items if ctype == component_type]

    def specs(self, component_type: ComponentType) -> list[Any]:
        return [spec for _, spec in self.entries(component_type)]

    def first(self, component_type: ComponentType) -> Any | None:
        specs = self.specs(component_type)
        return specs[0] if specs else None

    def count(self, component_type: ComponentType) -> int:
        """Count of recorded components, including ones with unknown specs."""
        known = len(self.entries(component_type))
        return known + sum(1 for ctype, _ in self.missing if ctype == component_type)

    def find(self, uuid: str) -> tuple[ComponentType, Any] | None:
        for ctype, item_uuid, spec in self._items:
            if item_uuid == uuid:
                return ctype, spec
        return None


class CompatibilityEngine:
    """Decides whether a candidate component may be added to a configuration.

    When a slot or port tracker and a ``config_id`` are supplied, PCIe and
    SFP checks consult live allocation state; otherwise they fall back to a
    counting budget over the existing components.

    Example:
        engine = CompatibilityEngine(catalog, slot_tracker, port_tracker)
        result = engine.check("cpu", "cpu-1", config.components, config_id=config.config_id)
        if not result.compatible:
            print(result.issues)
    """

    def __init__(
        self,
        lookup: SpecificationLookup,
        slot_tracker: UnifiedSlotTracker | None = None,
        port_tracker: NICPortTracker | None = None,
    ) -> None:
        self._lookup = lookup
        self._slot_tracker = slot_tracker
        self._port_tracker = port_tracker
        self._checks: dict[ComponentType, Callable[..., None]] = {
            ComponentType.CPU: self.check_cpu_compatibility,
            ComponentType.MOTHERBOARD: self.check_motherboard_compatibility,
            ComponentType.RAM: self.check_ram_compatibility,
            ComponentType.STORAGE: self.check_storage_compatibility,
            ComponentType.CHASSIS: self.check_chassis_compatibility,
            ComponentType.HBA_CARD: self.check_hba_compatibility,
            ComponentType.NIC: self.check_nic_compatibility,
            ComponentType.PCIE_CARD: self.check_pcie_card_compatibility,
            ComponentType.CADDY: self.check_caddy_compatibility,
            ComponentType.PSU: self.check_psu_compatibility,
            ComponentType.SFP: self.check_sfp_compatibility,
        }

    def check(
        self,
        component_type: ComponentType | str,
        uuid: str,
        existing: Iterable[Any],
        config_id: str | None = None,
        **options: Any,
    ) -> CompatibilityResult:
        """Check one candidate against the existing components.

        Args:
            component_type: Type of the candidate.
            uuid: Inventory uuid of the candidate.
            existing: Components already in the configuration.
            config_id: Configuration id, enabling live slot and port checks.
            **options: Type-specific options (``parent_nic_uuid``,
                ``port_index`` for SFP modules).

        Returns:
            The compatibility outcome with a filled summary.
        """
        component_type = ComponentType(component_type)
        result = CompatibilityResult()
        label = component_type.label

        raw = self._lookup.get_component_specs(component_type, uuid)
        if raw is None:
            result.add_issue(
                f"{label} specifications not found",
                "Verify the component UUID exists in the specification catalog",
            )
            result.compatibility_summary = f"{label} specifications not found"
            return result
        try:
            spec = parse_spec(component_type, raw)
        except SpecificationError as e:
            result.add_issue(str(e))
            return result.summarize()

        inventory = Inventory(self._lookup, existing)
        for missing_type, missing_uuid in inventory.missing:
            result.add_warning(
                f"Existing {missing_type.label} {missing_uuid} specifications not found "
                "- skipped in compatibility checks"
            )

        if inventory.is_empty and component_type != ComponentType.SFP:
            result.add_detail(f"No existing components - all {_PLURALS[component_type]} compatible")
            return result.summarize()

        logger.debug(f"Checking {component_type.value} {uuid} against {inventory.total} components")
        self._checks[component_type](
            result, uuid, spec, inventory, config_id=config_id, **options
        )
        return result.summarize()

    # -- platform ------------------------------------------------------------

    def check_cpu_compatibility(
        self, result: CompatibilityResult, uuid: str, cpu: CPUSpec, inventory: Inventory, **_: Any
    ) -> None:
        motherboard: MotherboardSpec | None = inventory.first(ComponentType.MOTHERBOARD)
        if motherboard is None:
            result.add_detail("Socket check deferred until a motherboard is added")
        elif cpu.socket and motherboard.socket:
            if normalize_value(cpu.socket) != normalize_value(motherboard.socket):
                result.add_issue(
                    f"CPU socket ({cpu.socket}) does not match motherboard socket "
                    f"({motherboard.socket})",
                    "Choose a CPU matching the motherboard socket",
                )
            else:
                result.add_detail(f"CPU socket ({cpu.socket}) matches motherboard socket")
        else:
            result.add_warning("Socket information missing - socket compatibility not verified")

        if motherboard is not None:
            cpu_count = inventory.count(ComponentType.CPU) + 1
            if cpu_count > motherboard.socket_count:
                result.add_issue(
                    f"CPU count ({cpu_count}) exceeds motherboard socket capacity "
                    f"({motherboard.socket_count})"
                )

        for existing in inventory.specs(ComponentType.CPU):
            if cpu.socket and existing.socket and (
                normalize_value(cpu.socket) != normalize_value(existing.socket)
            ):
                result.add_issue(
                    f"CPU socket mismatch: new CPU ({cpu.socket}) vs existing CPU "
                    f"({existing.socket})"
                )
                break

        supported = {t.upper() for t in cpu.memory_types}
        rams: list[RAMSpec] = inventory.specs(ComponentType.RAM)
        for ram in rams:
            generation = ram.ddr_generation
            if supported and generation and generation not in supported:
                result.add_issue(
                    f"CPU does not support required memory type: {generation} "
                    f"(CPU supports: {', '.join(cpu.memory_types)})"
                )
                break
        fastest = max((ram.speed_mhz or 0 for ram in rams), default=0)
        if cpu.max_memory_speed and fastest > cpu.max_memory_speed:
            result.add_warning(
                f"Existing RAM rated {fastest}MHz will run at "
                f"{cpu.max_memory_speed}MHz with this CPU"
            )

    def check_motherboard_compatibility(
        self,
        result: CompatibilityResult,
        uuid: str,
        motherboard: MotherboardSpec,
        inventory: Inventory,
        **_: Any,
    ) -> None:
        if inventory.count(ComponentType.MOTHERBOARD):
            result.add_issue(
                "Server already has a motherboard - only one motherboard allowed per configuration",
                "Remove the existing motherboard first",
            )
            return

        cpus: list[CPUSpec] = inventory.specs(ComponentType.CPU)
        for cpu in cpus:
            if cpu.socket and motherboard.socket and (
                normalize_value(cpu.socket) != normalize_value(motherboard.socket)
            ):
                result.add_issue(
                    f"Motherboard socket ({motherboard.socket}) does not match CPU socket "
                    f"({cpu.socket})"
                )
                break
        cpu_count = inventory.count(ComponentType.CPU)
        if cpu_count > motherboard.socket_count:
            result.add_issue(
                f"CPU count ({cpu_count}) exceeds motherboard socket capacity "
                f"({motherboard.socket_count})"
            )

        supported = {t.upper() for t in motherboard.memory_types}
        rams: list[RAMSpec] = inventory.specs(ComponentType.RAM)
        for ram in rams:
            generation = ram.ddr_generation
            if supported and generation and generation not in supported:
                result.add_issue(
                    f"Motherboard does not support required memory type: {generation} "
                    f"(supported: {', '.join(motherboard.memory_types)})"
                )
                break
        ram_count = inventory.count(ComponentType.RAM)
        if motherboard.ram_slots and ram_count > motherboard.ram_slots:
            result.add_issue(
                f"Motherboard has {motherboard.ram_slots} RAM slots but configuration "
                f"holds {ram_count} modules"
            )

        chassis: ChassisSpec | None = inventory.first(ComponentType.CHASSIS)
        if chassis is not None:
            self._check_board_fits_chassis(result, motherboard, chassis)

    def check_chassis_compatibility(
        self,
        result: CompatibilityResult,
        uuid: str,
        chassis: ChassisSpec,
        inventory: Inventory,
        **_: Any,
    ) -> None:
        if inventory.count(ComponentType.CHASSIS):
            result.add_issue(
                "Server already has a chassis - only one chassis allowed per configuration",
                "Remove the existing chassis first",
            )
            return

        motherboard = inventory.first(ComponentType.MOTHERBOARD)
        if motherboard is not None:
            self._check_board_fits_chassis(result, motherboard, chassis)

        bay_sizes = self._chassis_bay_sizes(chassis)
        if bay_sizes is not None:
            for drive in inventory.specs(ComponentType.STORAGE):
                size = drive_bay_size(drive)
                if size and size not in bay_sizes:
                    result.add_issue(
                        f"Storage form factor {size} requires {size} chassis bays "
                        "(strict matching)"
                    )
                    break

        supported_psu = [ff.upper() for ff in chassis.supported_psu_form_factors]
        for psu in inventory.specs(ComponentType.PSU):
            if supported_psu and psu.form_factor and psu.form_factor.upper() not in supported_psu:
                result.add_issue(
                    f"Existing PSU form factor ({psu.form_factor}) not supported by chassis "
                    f"(supported: {', '.join(chassis.supported_psu_form_factors)})"
                )

    def _check_board_fits_chassis(
        self, result: CompatibilityResult, motherboard: MotherboardSpec, chassis: ChassisSpec
    ) -> None:
        board = (motherboard.form_factor or "").upper()
        accepted = [ff.upper() for ff in [chassis.form_factor, *chassis.supported_form_factors] if ff]
        if not board or not accepted:
            result.add_warning("Form factor information missing - chassis fit not verified")
            return
        fits_into = FORM_FACTOR_COMPATIBILITY.get(board, [board])
        if any(ff in fits_into for ff in accepted):
            result.add_detail(f"Motherboard form factor {board} fits chassis")
        else:
            result.add_issue(
                f"Motherboard form factor ({board}) not supported by chassis "
                f"(supported: {', '.join(accepted)})"
            )

    # -- memory --------------------------------------------------------------

    def check_ram_compatibility(
        self, result: CompatibilityResult, uuid: str, ram: RAMSpec, inventory: Inventory, **_: Any
    ) -> None:
        generation = ram.ddr_generation
        motherboard: MotherboardSpec | None = inventory.first(ComponentType.MOTHERBOARD)
        cpus: list[CPUSpec] = inventory.specs(ComponentType.CPU)

        sources: list[tuple[str, list[str]]] = []
        if motherboard is not None and motherboard.memory_types:
            sources.append(("motherboard", motherboard.memory_types))
        sources.extend(("CPU", cpu.memory_types) for cpu in cpus if cpu.memory_types)
        if generation:
            for owner, types in sources:
                if generation not in {t.upper() for t in types}:
                    result.add_issue(
                        f"Memory type {generation} not supported by {owner} "
                        f"(supported: {', '.join(types)})"
                    )
                    break

        limits = [cpu.max_memory_speed for cpu in cpus if cpu.max_memory_speed]
        if motherboard is not None and motherboard.max_memory_speed:
            limits.append(motherboard.max_memory_speed)
        if ram.speed_mhz and limits:
            effective = min(limits)
            if ram.speed_mhz > effective:
                result.add_warning(
                    f"RAM rated {ram.speed_mhz}MHz will run at {effective}MHz "
                    "(limited by existing components)"
                )
                result.add_recommendation("Memory will run at the system's maximum supported speed")

        if motherboard is not None:
            if ram.is_ecc and not motherboard.ecc_support:
                result.add_warning("ECC memory on a motherboard without ECC support")
            used = inventory.count(ComponentType.RAM)
            if motherboard.ram_slots and used >= motherboard.ram_slots:
                result.add_issue(
                    f"All RAM slots occupied ({used}/{motherboard.ram_slots} used)",
                    "Remove a memory module or choose a motherboard with more slots",
                )

        for existing in inventory.specs(ComponentType.RAM):
            if ram.form_factor and existing.form_factor and (
                normalize_value(ram.form_factor) != normalize_value(existing.form_factor)
            ):
                result.add_issue(
                    f"Form factor mismatch: new RAM ({ram.form_factor}) vs existing RAM "
                    f"({existing.form_factor})"
                )
                break
            if ram.module_type and existing.module_type and (
                normalize_value(ram.module_type) != normalize_value(existing.module_type)
            ):
                result.add_issue(
                    f"Module type mismatch: new RAM ({ram.module_type}) vs existing RAM "
                    f"({existing.module_type}). UDIMM, RDIMM, and LRDIMM cannot be mixed."
                )
                break
            if generation and existing.ddr_generation and generation != existing.ddr_generation:
                result.add_issue(
                    f"Memory type mismatch: new RAM ({generation}) vs existing RAM "
                    f"({existing.ddr_generation})"
                )
                break
            if ram.is_ecc != existing.is_ecc:
                result.add_warning("Mixing ECC and non-ECC memory modules")
                break

    # -- storage ---------------------------------------------------------------

    def check_storage_compatibility(
        self,
        result: CompatibilityResult,
        uuid: str,
        drive: StorageSpec,
        inventory: Inventory,
        **_: Any,
    ) -> None:
        bus = storage_bus(drive)
        motherboard: MotherboardSpec | None = inventory.first(ComponentType.MOTHERBOARD)
        hbas: list[HBASpec] = inventory.specs(ComponentType.HBA_CARD)
        drives: list[StorageSpec] = inventory.specs(ComponentType.STORAGE)
        same_bus = sum(1 for d in drives if storage_bus(d) == bus)
        hba_capable = [h for h in hbas if bus in hba_supported_interfaces(h.protocol)]

        if bus == "SAS":
            if not hbas:
                result.add_detail("SAS drive accepted; an HBA card is required before finalizing")
                result.add_recommendation("Add a SAS-capable HBA card to connect SAS drives")
            elif not hba_capable:
                self._hba_protocol_issue(result, drive, hbas[0])
            else:
                self._check_hba_ports(result, hba_capable, drives, motherboard)
        elif bus == "NVME":
            if motherboard is not None:
                if same_bus >= motherboard.m2_slots:
                    result.add_issue(
                        f"No free M.2 slots for NVMe drive ({same_bus}/{motherboard.m2_slots} used)",
                        "Use a PCIe NVMe adapter or a motherboard with more M.2 slots",
                    )
            else:
                result.add_detail("M.2 slot check deferred until a motherboard is added")
        elif bus in ("SATA", "U.2"):
            onboard = 0
            if motherboard is not None:
                onboard = motherboard.sata_ports if bus == "SATA" else motherboard.u2_ports
            port_label = "SATA ports" if bus == "SATA" else "U.2 ports"
            if motherboard is None and not hbas:
                result.add_detail(f"{port_label} check deferred until a motherboard is added")
            elif same_bus < onboard:
                result.add_detail(f"Drive uses motherboard {port_label} ({same_bus + 1}/{onboard})")
            elif hba_capable:
                self._check_hba_ports(result, hba_capable, drives, motherboard)
            elif hbas:
                self._hba_protocol_issue(result, drive, hbas[0])
            else:
                result.add_issue(
                    f"No free {port_label} ({same_bus}/{onboard} used)",
                    "Add an HBA card to provide additional SATA/SAS connectivity",
                )

        chassis: ChassisSpec | None = inventory.first(ComponentType.CHASSIS)
        size = drive_bay_size(drive)
        if chassis is not None and size:
            bay_sizes = self._chassis_bay_sizes(chassis)
            if bay_sizes is not None and size not in bay_sizes:
                result.add_issue(
                    f"Storage form factor {size} requires {size} chassis bays (strict matching)"
                )
            bayed = sum(1 for d in drives if drive_bay_size(d))
            if chassis.drive_bays and bayed >= chassis.drive_bays:
                result.add_issue(f"Chassis drive bays exhausted: {chassis.drive_bays} bays, all used")

    def _hba_protocol_issue(
        self, result: CompatibilityResult, drive: StorageSpec, hba: HBASpec
    ) -> None:
        protocol = hba.protocol or normalize_protocol(hba.protocol)
        result.add_issue(
            f"Storage interface '{drive.interface_upper}' is incompatible with HBA protocol "
            f"'{protocol}'",
            "Use storage with compatible interface (e.g., tri-mode HBA supports SAS/SATA/NVMe) "
            "OR replace HBA with compatible model",
        )
        result.add_detail(f"HBA supports: {', '.join(hba_supported_interfaces(hba.protocol))}")

    def _check_hba_ports(
        self,
        result: CompatibilityResult,
        hbas: list[HBASpec],
        drives: list[StorageSpec],
        motherboard: MotherboardSpec | None,
    ) -> None:
        ports = sum(h.port_count for h in hbas)
        if not ports:
            return
        sata_ports = motherboard.sata_ports if motherboard else 0
        u2_ports = motherboard.u2_ports if motherboard else 0
        buses = [storage_bus(d) for d in drives]
        used = (
            buses.count("SAS")
            + max(0, buses.count("SATA") - sata_ports)
            + max(0, buses.count("U.2") - u2_ports)
        )
        if used >= ports:
            result.add_issue(f"HBA card ports exhausted ({ports} ports, all used)")

    @staticmethod
    def _chassis_bay_sizes(chassis: ChassisSpec) -> set[str] | None:
        """Bay sizes a chassis offers, or None when the catalog gives no breakdown."""
        if chassis.bays_2_5 is None and chassis.bays_3_5 is None:
            return None
        sizes = set()
        if chassis.bays_2_5:
            sizes.add("2.5-inch")
        if chassis.bays_3_5:
            sizes.add("3.5-inch")
        return sizes

    # -- expansion cards -------------------------------------------------------

    def check_pcie_card_compatibility(
        self,
        result: CompatibilityResult,
        uuid: str,
        card: PCIeCardSpec,
        inventory: Inventory,
        config_id: str | None = None,
        **_: Any,
    ) -> None:
        if is_riser_subtype(card.component_subtype):
            self._check_riser(result, card, inventory, config_id)
            return
        if has_riser_uuid_prefix(uuid):
            result.add_warning(
                f"Riser card {uuid} identified by UUID prefix only; catalog "
                "component_subtype should be 'Riser Card'"
            )
            self._check_riser(result, card, inventory, config_id)
            return
        self._check_slotted_card(result, ComponentType.PCIE_CARD, card, inventory, config_id)

    def check_nic_compatibility(
        self,
        result: CompatibilityResult,
        uuid: str,
        nic: NICSpec,
        inventory: Inventory,
        config_id: str | None = None,
        **_: Any,
    ) -> None:
        if nic.onboard:
            result.add_detail("Onboard NIC - no PCIe slot required")
            return
        self._check_slotted_card(result, ComponentType.NIC, nic, inventory, config_id)

    def check_hba_compatibility(
        self,
        result: CompatibilityResult,
        uuid: str,
        hba: HBASpec,
        inventory: Inventory,
        config_id: str | None = None,
        **_: Any,
    ) -> None:
        self._check_slotted_card(result, ComponentType.HBA_CARD, hba, inventory, config_id)
        supported = hba_supported_interfaces(hba.protocol)
        for drive in inventory.specs(ComponentType.STORAGE):
            if storage_bus(drive) == "SAS" and "SAS" not in supported:
                result.add_issue(
                    f"Storage interface '{drive.interface_upper}' is incompatible with HBA "
                    f"protocol '{hba.protocol or normalize_protocol(hba.protocol)}'",
                    "Choose an HBA supporting the SAS drives already in the configuration",
                )
                break

    def _check_riser(
        self,
        result: CompatibilityResult,
        card: PCIeCardSpec,
        inventory: Inventory,
        config_id: str | None,
    ) -> None:
        motherboard: MotherboardSpec | None = inventory.first(ComponentType.MOTHERBOARD)
        if motherboard is None:
            result.add_detail("Riser slot check deferred until a motherboard is added")
            return
        size = card.riser_slot_size or "x16"

        if self._slot_tracker is not None and config_id is not None:
            availability = self._slot_tracker.get_riser_slot_availability(config_id)
            total = availability.total_count
            free = availability.available_count
            fits = availability.success and availability.first_free(size) is not None
        else:
            pool = UnifiedSlotTracker.motherboard_riser_slots(motherboard)
            total = sum(len(ids) for ids in pool.values())
            installed = [
                c for u, c in inventory.entries(ComponentType.PCIE_CARD)
                if is_riser_subtype(c.component_subtype) or has_riser_uuid_prefix(u)
            ]
            free = max(0, total - len(installed))
            compatible = sum(len(pool.get(s, [])) for s in SLOT_COMPATIBILITY.get(size, [size]))
            fits = free > 0 and compatible > 0

        if total == 0:
            result.add_issue("Motherboard does not support riser cards")
        elif free == 0:
            result.add_issue(f"All riser slots occupied (0/{total} available)")
        elif not fits:
            result.add_issue(
                f"Riser card requires {size} slot, but no compatible slots available"
            )
        else:
            result.add_detail(f"Riser slot available for {size} riser card")

    def _check_slotted_card(
        self,
        result: CompatibilityResult,
        component_type: ComponentType,
        card: Any,
        inventory: Inventory,
        config_id: str | None,
    ) -> None:
        label = component_type.label
        motherboard: MotherboardSpec | None = inventory.first(ComponentType.MOTHERBOARD)
        if motherboard is None:
            result.add_detail(f"{label} will be compatible once motherboard is added")
            return
        size = card_slot_size(component_type, card)

        if self._slot_tracker is not None and config_id is not None:
            availability = self._slot_tracker.get_slot_availability(config_id)
            if not availability.success:
                result.add_issue(availability.error or f"No available PCIe slots for {label}")
            elif availability.first_free(size) is None:
                free_sizes = [s for s, ids in availability.available_slots.items() if ids]
                self._report_no_slot(
                    result,
                    label,
                    size,
                    motherboard,
                    availability.total_count,
                    len(availability.used_slots),
                    free_sizes,
                )
            else:
                result.add_detail(f"{size} slot available for {label}")
        else:
            total = motherboard.total_pcie_slots
            used = 0
            for card_uuid, other in inventory.entries(ComponentType.PCIE_CARD):
                if is_riser_subtype(other.component_subtype) or has_riser_uuid_prefix(card_uuid):
                    total += other.pcie_slots
                else:
                    used += other.pcie_slots
            used += sum(1 for nic in inventory.specs(ComponentType.NIC) if not nic.onboard)
            used += inventory.count(ComponentType.HBA_CARD)
            needed = card.pcie_slots if isinstance(card, PCIeCardSpec) else 1
            if used + needed > total:
                self._report_no_slot(result, label, size, motherboard, total, used, [])
            else:
                result.add_detail(f"PCIe slot budget: {used + needed}/{total} after adding {label}")

        if card.generation and card.generation > motherboard.pcie_generation:
            result.add_warning(
                f"{label} is PCIe Gen {card.generation} but motherboard supports Gen "
                f"{motherboard.pcie_generation} - card will run at reduced speed"
            )
            result.add_recommendation("Consider upgrading motherboard for full PCIe performance")

    @staticmethod
    def _report_no_slot(
        result: CompatibilityResult,
        label: str,
        size: str,
        motherboard: MotherboardSpec,
        total: int,
        used: int,
        free_sizes: list[str],
    ) -> None:
        if not free_sizes:
            result.add_issue(f"All PCIe slots occupied ({used}/{total} used)")
            if any(UnifiedSlotTracker.motherboard_riser_slots(motherboard).values()):
                result.add_recommendation("Add a riser card to expand PCIe slot capacity")
            else:
                result.add_recommendation("Remove existing PCIe components to free slots")
        else:
            result.add_issue(
                f"No available {size} slot on motherboard for {label}",
                f"Use a card that requires {max(free_sizes, key=lambda s: int(s[1:]))} "
                "or smaller slot",
            )

    # -- small parts -------------------------------------------------------------

    def check_caddy_compatibility(
        self, result: CompatibilityResult, uuid: str, caddy: CaddySpec, inventory: Inventory, **_: Any
    ) -> None:
        size = normalize_caddy_size(caddy.form_factor)
        chassis: ChassisSpec | None = inventory.first(ComponentType.CHASSIS)
        if chassis is None:
            result.add_detail(
                "No chassis in configuration - caddy will be validated when chassis is added"
            )
        else:
            bay_sizes = self._chassis_bay_sizes(chassis)
            if bay_sizes is not None and size in ("2.5-inch", "3.5-inch"):
                if size in bay_sizes:
                    result.add_detail(f"Caddy size {size} matches chassis bay configuration")
                else:
                    available = ", ".join(sorted(bay_sizes)) or "no"
                    result.add_issue(
                        f"Cannot add {size} caddy - chassis only has {available} bays "
                        "(strict matching required)",
                        f"Use a caddy matching chassis bay size ({available}) OR remove current chassis",
                    )

        drives: list[StorageSpec] = inventory.specs(ComponentType.STORAGE)
        if drives and not any(caddy_fits_drive(caddy.form_factor, d.form_factor) for d in drives):
            result.add_warning(f"No storage in configuration fits a {size} caddy")

    def check_psu_compatibility(
        self, result: CompatibilityResult, uuid: str, psu: PSUSpec, inventory: Inventory, **_: Any
    ) -> None:
        existing = inventory.count(ComponentType.PSU)
        if existing:
            result.add_warning(
                f"Configuration already has {existing} PSU(s) - verify redundancy and chassis support"
            )

        chassis: ChassisSpec | None = inventory.first(ComponentType.CHASSIS)
        if chassis is not None and chassis.supported_psu_form_factors and psu.form_factor:
            supported = [ff.upper() for ff in chassis.supported_psu_form_factors]
            if psu.form_factor.upper() not in supported:
                result.add_issue(
                    f"PSU form factor ({psu.form_factor}) not supported by chassis "
                    f"(supported: {', '.join(chassis.supported_psu_form_factors)})"
                )

        tdp = sum(cpu.tdp_watts or 0 for cpu in inventory.specs(ComponentType.CPU))
        if psu.wattage and tdp > psu.wattage * PSU_TDP_RATIO_LIMIT:
            result.add_warning(
                f"CPU TDP ({tdp:g}W) is high relative to PSU wattage ({psu.wattage:g}W)"
            )

    # -- SFP modules -------------------------------------------------------------

    def check_sfp_compatibility(
        self,
        result: CompatibilityResult,
        uuid: str,
        sfp: SFPSpec,
        inventory: Inventory,
        config_id: str | None = None,
        parent_nic_uuid: str | None = None,
        port_index: int | None = None,
        **_: Any,
    ) -> None:
        sfp_type = normalize_port_type(sfp.type)
        nics: list[tuple[str, NICSpec]] = inventory.entries(ComponentType.NIC)

        if parent_nic_uuid is None and port_index is not None:
            result.add_issue(
                "SFP port index given without a parent NIC",
                "Specify parent_nic_uuid together with port_index",
            )
            return

        if parent_nic_uuid is not None:
            self._check_sfp_placement(
                result, sfp, inventory, parent_nic_uuid, port_index, config_id
            )
        elif not nics and inventory.count(ComponentType.NIC) == 0:
            result.add_detail(
                "No NICs in configuration - SFP will be held unassigned until a "
                "compatible NIC is added"
            )
            result.compatibility_summary = "Compatible - pending NIC assignment"
        else:
            matching = [
                nic_uuid
                for nic_uuid, nic in nics
                if NICPortTracker.is_compatible(nic.port_type, sfp_type)
                and NICPortTracker.validate_speed_compatibility(nic.max_speed_gbps, sfp.speed)
            ]
            if matching:
                result.add_detail(f"Compatible NICs: {', '.join(matching)}")
            else:
                port_types = sorted({normalize_port_type(nic.port_type) or "unknown" for _, nic in nics})
                result.add_issue(
                    f"SFP type {sfp_type or 'unknown'} is not compatible with any NIC in the "
                    f"configuration (NIC port types: {', '.join(port_types)})",
                    "Add a NIC with compatible SFP cages before adding this module",
                )

        fiber = (sfp.fiber_type or "").upper()
        if "DAC" in sfp_type or "DAC" in fiber:
            result.add_recommendation(
                "Using Direct Attach Copper (DAC) cable - ensure cable length is appropriate for distance"
            )
        elif "SINGLE" in fiber or fiber == "SMF":
            result.add_recommendation(
                "Using Single-Mode Fiber - ensure fiber infrastructure is SMF compatible"
            )
        elif "MULTI" in fiber or fiber == "MMF":
            result.add_recommendation(
                "Using Multi-Mode Fiber - verify fiber distance is within reach limit "
                f"({sfp.reach or 'N/A'})"
            )

    def _check_sfp_placement(
        self,
        result: CompatibilityResult,
        sfp: SFPSpec,
        inventory: Inventory,
        nic_uuid: str,
        port_index: int | None,
        config_id: str | None,
    ) -> None:
        found = inventory.find(nic_uuid)
        if found is None or found[0] != ComponentType.NIC:
            if any(u == nic_uuid for t, u in inventory.missing if t == ComponentType.NIC):
                result.add_issue(f"NIC specifications not found for UUID {nic_uuid}")
            else:
                result.add_issue(
                    f"Parent NIC with UUID {nic_uuid} not found in configuration",
                    "Add the NIC card before adding SFP modules",
                )
            return
        nic: NICSpec = found[1]
        port_type = normalize_port_type(nic.port_type)
        sfp_type = normalize_port_type(sfp.type)

        accepted = NICPortTracker.get_compatible_sfp_types(port_type)
        if not accepted:
            result.add_issue(
                f"NIC port type '{port_type or 'unknown'}' does not support SFP modules",
                "SFP modules require SFP+/QSFP+/SFP28 compatible NIC cards",
            )
            return
        if sfp_type not in accepted:
            result.add_issue(
                f"SFP type mismatch: {sfp_type or 'unknown'} module is not compatible with "
                f"{port_type} ports (accepted: {', '.join(accepted)})"
            )
            return
        if sfp_type != port_type:
            result.add_warning(
                f"Using {sfp_type} module in {port_type} port - cross-compatible but may run "
                "at reduced speed"
            )
        if not NICPortTracker.validate_speed_compatibility(nic.max_speed_gbps, sfp.speed):
            result.add_issue(
                f"SFP speed {sfp.speed} exceeds NIC max speed {nic.max_speed_gbps:g}Gbps"
            )

        live = self._port_tracker is not None and config_id is not None
        if port_index is not None:
            if not 1 <= port_index <= nic.port_count:
                result.add_issue(
                    f"Port index {port_index} exceeds NIC port count ({nic.port_count})",
                    f"Choose port index between 1 and {nic.port_count}",
                )
            elif live:
                occupant = self._port_tracker.occupied_ports(config_id, nic_uuid).get(port_index)
                if occupant is not None:
                    result.add_issue(
                        f"Port {port_index} on NIC {nic_uuid} is already occupied by SFP {occupant}"
                    )
        elif live and not self._port_tracker.free_ports(config_id, nic_uuid):
            result.add_issue(f"No free port on NIC {nic_uuid} ({nic.port_count} ports, all used)")
