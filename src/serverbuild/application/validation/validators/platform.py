"""Core platform validators: socket, form factor, CPU, motherboard and RAM.

These run first in the pipeline. A socket mismatch is the one configuration
that cannot be salvaged, so it is the only blocking rule here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from serverbuild.domain.value_objects import ComponentType, is_riser_subtype

from ..base import BaseValidator, normalize_value
from ..result import ValidationResult

if TYPE_CHECKING:
    from serverbuild.domain.specs import CPUSpec, MotherboardSpec, PSUSpec, RAMSpec

    from ..context import ValidationContext

# Form factor compatibility: motherboard form factor -> chassis form factors it fits
FORM_FACTOR_COMPATIBILITY: dict[str, list[str]] = {
    "ATX": ["ATX", "EATX"],
    "EATX": ["EATX"],
    "MATX": ["EATX", "ATX", "MATX"],
    "MINI-ITX": ["EATX", "ATX", "MATX", "MINI-ITX"],
    "ITX": ["EATX", "ATX", "MATX", "MINI-ITX", "ITX"],
}

# CPU advisory limits
PSU_TDP_RATIO_LIMIT = 0.4  # CPU TDP as a share of PSU wattage
HIGH_TDP_WATTS = 300  # watts
MAX_PLAUSIBLE_CORES = 128
DEPRECATED_CPU_MODELS = (
    "RYZEN 1",
    "RYZEN 2",
    "RYZEN THREADRIPPER 1",
    "CORE I9-9000",
    "XEON W-2100",
)

# Motherboard advisory limits
MANY_RAM_SLOTS = 16
VRM_TDP_THRESHOLD = 200  # watts
WATTS_PER_VRM_PHASE = 10

# RAM advisory limits
VALID_RAM_TYPES = ("DDR3", "DDR4", "DDR5", "RDIMM", "UDIMM", "SODIMM")
MAX_MODULE_CAPACITY_GB = 192
MAX_TOTAL_CAPACITY_GB = 256


class SocketCompatibilityValidator(BaseValidator):
    """Validator for CPU to motherboard socket match.

    Checks:
    - Both sides declare a socket
    - Normalized sockets are equal (case and separators ignored)

    A mismatch is blocking: nothing else about the build is meaningful.
    """

    name = "socket_compatibility"
    priority = 100
    requires = (ComponentType.CPU, ComponentType.MOTHERBOARD)

    def validate(self, context: ValidationContext) -> ValidationResult:
        """Compare every CPU socket against the motherboard socket.

        Args:
            context: Snapshot holding at least one CPU and a motherboard

        Returns:
            ValidationResult with a blocking error on mismatch
        """
        result = ValidationResult()
        motherboard: MotherboardSpec = context.spec(ComponentType.MOTHERBOARD)
        cpus: list[CPUSpec] = context.specs(ComponentType.CPU)

        if not motherboard.socket:
            result.add_error("Motherboard socket specification missing")
        for cpu in cpus:
            if not cpu.socket:
                result.add_error("CPU socket specification missing")
                continue
            if not motherboard.socket:
                continue
            if normalize_value(cpu.socket) == normalize_value(motherboard.socket):
                result.add_info(f"CPU socket '{cpu.socket}' matches motherboard socket")
            else:
                result.add_error(
                    f"Socket mismatch: CPU is '{cpu.socket}' but motherboard is "
                    f"'{motherboard.socket}'",
                    code="socket_mismatch",
                )
                result.set_blocking()

        return result


class FormFactorValidator(BaseValidator):
    """Validator for motherboard to chassis form factor support.

    The chassis accepts its own form factor plus any listed in
    ``supported_form_factors``. Smaller boards fit larger chassis via the
    fixed compatibility table.
    """

    name = "form_factor"
    priority = 95
    requires = (ComponentType.MOTHERBOARD, ComponentType.CHASSIS)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        motherboard = context.spec(ComponentType.MOTHERBOARD)
        chassis = context.spec(ComponentType.CHASSIS)

        mb_form_factor = (motherboard.form_factor or "").upper()
        if not mb_form_factor:
            return result.add_error("Motherboard form factor not specified")

        chassis_form_factors: list[str] = []
        if chassis.form_factor:
            chassis_form_factors.append(chassis.form_factor.upper())
        chassis_form_factors.extend(ff.upper() for ff in chassis.supported_form_factors)
        if not chassis_form_factors:
            return result.add_warning("Chassis supported form factors not specified")

        fits_into = FORM_FACTOR_COMPATIBILITY.get(mb_form_factor, [mb_form_factor])
        if any(ff in fits_into for ff in chassis_form_factors):
            result.add_info(
                f"Motherboard form factor '{mb_form_factor}' is compatible with chassis"
            )
        else:
            result.add_error(
                f"Motherboard form factor '{mb_form_factor}' not supported by chassis. "
                f"Supported: {', '.join(chassis_form_factors)}"
            )
        return result


class CPUValidator(BaseValidator):
    """Validator for processor specifications.

    Checks:
    - Required fields (model, socket, cores)
    - TDP relative to PSU wattage and absolute TDP
    - Core count plausibility
    - End-of-life model families
    """

    name = "cpu"
    priority = 85
    requires = (ComponentType.CPU,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        psu: PSUSpec | None = context.spec(ComponentType.PSU)
        for cpu in context.specs(ComponentType.CPU):
            self._validate_cpu(cpu, psu, result)
        return result

    def _validate_cpu(
        self, cpu: CPUSpec, psu: PSUSpec | None, result: ValidationResult
    ) -> None:
        missing = [
            field_name
            for field_name in ("model", "socket", "cores")
            if getattr(cpu, field_name) in (None, "")
        ]
        for field_name in missing:
            result.add_error(f"CPU field '{field_name}' is required but missing")
        if missing:
            return

        tdp = cpu.tdp_watts
        if tdp is None:
            result.add_warning(
                "CPU TDP not specified - cannot validate thermal requirements"
            )
        else:
            if psu is not None and psu.wattage and tdp > psu.wattage * PSU_TDP_RATIO_LIMIT:
                result.add_warning(
                    f"CPU TDP ({tdp:g}W) is high relative to PSU ({psu.wattage:g}W)"
                )
            if tdp > HIGH_TDP_WATTS:
                result.add_info(f"CPU TDP is {tdp:g}W - ensure adequate cooling")

        cores = cpu.cores or 0
        if cores < 1:
            result.add_error("CPU core count must be at least 1")
        elif cores > MAX_PLAUSIBLE_CORES:
            result.add_warning(
                f"CPU has {cores} cores - ensure motherboard and cooling support this"
            )

        model = cpu.model_name.upper()
        if any(deprecated in model for deprecated in DEPRECATED_CPU_MODELS):
            result.add_warning(
                f"CPU model '{cpu.model}' may be end-of-life - verify support availability"
            )


class MotherboardValidator(BaseValidator):
    """Validator for motherboard specifications and population.

    Checks slot counts are sane and at least what the configuration already
    uses (RAM modules, PCIe cards), plus a VRM advisory for high-TDP CPUs.
    """

    name = "motherboard"
    priority = 80
    requires = (ComponentType.MOTHERBOARD,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        motherboard: MotherboardSpec = context.spec(ComponentType.MOTHERBOARD)

        missing = [
            field_name
            for field_name in ("model", "socket", "form_factor")
            if not getattr(motherboard, field_name)
        ]
        for field_name in missing:
            result.add_error(f"Motherboard field '{field_name}' is required but missing")
        if missing:
            return result

        ram_slots = motherboard.ram_slots
        if ram_slots < 1:
            result.add_error("Motherboard must have at least 1 RAM slot")
        elif ram_slots > MANY_RAM_SLOTS:
            result.add_info(f"Motherboard has {ram_slots} RAM slots")

        pcie_slots = motherboard.total_pcie_slots
        if pcie_slots < 1:
            result.add_warning("Motherboard has no standard PCIe slots")
        if motherboard.m2_slots < 0:
            result.add_warning("Invalid M.2 slot count")
        if motherboard.sata_ports < 0:
            result.add_warning("Invalid SATA port count")

        ram_count = context.count_components(ComponentType.RAM)
        if ram_count > ram_slots:
            result.add_error(
                f"Configuration has {ram_count} RAM modules but motherboard only has "
                f"{ram_slots} slots"
            )
        elif ram_count:
            result.add_info(f"RAM allocation: {ram_count}/{ram_slots} slots used")

        pcie_count = sum(
            1
            for card in context.specs(ComponentType.PCIE_CARD)
            if not is_riser_subtype(card.component_subtype)
        )
        if pcie_count > pcie_slots:
            result.add_error(
                f"Configuration has {pcie_count} PCIe cards but motherboard only has "
                f"{pcie_slots} slots"
            )

        self._check_vrm(context, motherboard, result)
        return result

    def _check_vrm(
        self,
        context: ValidationContext,
        motherboard: MotherboardSpec,
        result: ValidationResult,
    ) -> None:
        if motherboard.vrm_phases is None:
            result.add_warning("Motherboard VRM phase count not specified")
            return
        cpu = context.spec(ComponentType.CPU)
        tdp = cpu.tdp_watts if cpu is not None else None
        if tdp and tdp > VRM_TDP_THRESHOLD and motherboard.vrm_phases < tdp / WATTS_PER_VRM_PHASE:
            result.add_warning(
                f"CPU TDP ({tdp:g}W) may exceed VRM capability "
                f"({motherboard.vrm_phases} phases)"
            )


class RAMValidator(BaseValidator):
    """Validator for memory modules.

    Checks:
    - Per-module required fields, capacity and type
    - ECC modules on boards without ECC support
    - Aggregate capacity and mixed module types
    - Module count against motherboard slots
    """

    name = "ram"
    priority = 70
    requires = (ComponentType.RAM,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        modules: list[RAMSpec] = context.specs(ComponentType.RAM)
        motherboard: MotherboardSpec | None = context.spec(ComponentType.MOTHERBOARD)

        total_capacity = 0.0
        types: list[str] = []
        for index, module in enumerate(modules):
            total_capacity += self._validate_module(index, module, motherboard, result)
            if module.type:
                types.append(module.type.upper())

        if total_capacity <= 0:
            result.add_error("Total RAM capacity is 0 GB")
        elif total_capacity > MAX_TOTAL_CAPACITY_GB:
            result.add_warning(f"Total RAM capacity of {total_capacity:g}GB is very high")

        unique_types = list(dict.fromkeys(types))
        if len(unique_types) > 1:
            result.add_warning(
                f"RAM modules use different types: {', '.join(unique_types)} "
                "- ensure compatibility"
            )

        if motherboard is not None and motherboard.ram_slots > 0:
            if len(modules) > motherboard.ram_slots:
                result.add_error(
                    f"More RAM modules ({len(modules)}) than motherboard slots "
                    f"({motherboard.ram_slots})"
                )
        return result

    def _validate_module(
        self,
        index: int,
        module: RAMSpec,
        motherboard: MotherboardSpec | None,
        result: ValidationResult,
    ) -> float:
        missing = [
            field_name
            for field_name in ("capacity_gb", "type", "form_factor")
            if getattr(module, field_name) in (None, "")
        ]
        for field_name in missing:
            result.add_error(
                f"RAM module {index}: field '{field_name}' is required but missing"
            )
        if missing:
            return module.capacity_gb or 0.0

        capacity = module.capacity_gb or 0.0
        if capacity <= 0:
            result.add_error(f"RAM module {index}: capacity must be greater than 0 GB")
        elif capacity > MAX_MODULE_CAPACITY_GB:
            result.add_warning(
                f"RAM module {index}: capacity of {capacity:g}GB is very high"
            )

        ram_type = (module.type or "").upper()
        if not any(valid in ram_type for valid in VALID_RAM_TYPES):
            result.add_warning(f"RAM module {index}: unknown RAM type '{module.type}'")

        if motherboard is not None and module.is_ecc and not motherboard.ecc_support:
            result.add_warning(f"RAM module {index}: ECC RAM used with non-ECC motherboard")

        return capacity
