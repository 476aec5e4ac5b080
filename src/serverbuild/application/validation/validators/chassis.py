"""Chassis validators: enclosure capabilities, physical fit and drive caddies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from serverbuild.domain.value_objects import ComponentType

from ..base import BaseValidator
from ..result import ValidationResult
from .platform import FORM_FACTOR_COMPATIBILITY

if TYPE_CHECKING:
    from serverbuild.domain.specs import CaddySpec, ChassisSpec, StorageSpec

    from ..context import ValidationContext

# Cooling thresholds
HIGH_TDP_AIRFLOW_WATTS = 150  # watts
MIN_AIRFLOW_CFM = 200
HIGH_TDP_FAN_WATTS = 200  # watts
MIN_COOLER_HEIGHT_MM = 130
COMPACT_CARD_LENGTH_MM = 250
DEFAULT_CARD_LENGTH_MM = 280

DEFAULT_CHASSIS_TYPE = "TOWER"

# Motherboard form factor -> chassis enclosure types that accept it
ENCLOSURE_FIT: dict[str, list[str]] = {
    "ATX": ["TOWER", "FULL-TOWER", "MID-TOWER", "RACK"],
    "EATX": ["FULL-TOWER", "TOWER", "RACK"],
    "MATX": ["TOWER", "MID-TOWER", "MINI-TOWER", "COMPACT"],
    "ITX": ["MINI-TOWER", "COMPACT", "SMALL"],
    "MINI-ITX": ["MINI-TOWER", "COMPACT", "SMALL"],
}
ENCLOSURE_TYPES = frozenset(t for types in ENCLOSURE_FIT.values() for t in types)

VALID_CADDY_FORM_FACTORS = ("2.5", "3.5", "M.2", "U.2")
# Caddy sizes that also carry the other size
INTERCHANGEABLE_CADDY_SIZES = {frozenset(("M.2", "U.2"))}


class ChassisValidator(BaseValidator):
    """Validator for chassis specifications.

    Checks:
    - Required fields (model, form_factor)
    - Drive bays, PCIe slots and rack units
    - Fan count and airflow relative to CPU TDP
    """

    name = "chassis"
    priority = 20
    requires = (ComponentType.CHASSIS,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        chassis: ChassisSpec = context.spec(ComponentType.CHASSIS)

        for field_name in ("model", "form_factor"):
            if not getattr(chassis, field_name):
                result.add_error(f"Chassis field '{field_name}' is required but missing")

        if chassis.drive_bays < 1:
            result.add_warning("Chassis has no drive bays")
        elif chassis.drive_bays > 1:
            result.add_info(f"Chassis has {chassis.drive_bays} drive bays")

        pcie_slots = chassis.pcie_slots or 0
        if pcie_slots == 0:
            result.add_warning("Chassis has no PCIe slots - cannot add expansion cards")
        else:
            result.add_info(f"Chassis supports {pcie_slots} PCIe slot(s)")
        if chassis.rack_units:
            result.add_info(f"Chassis is {chassis.rack_units}U rackmount")

        self._check_cooling(context, chassis, result)
        return result

    def _check_cooling(
        self, context: ValidationContext, chassis: ChassisSpec, result: ValidationResult
    ) -> None:
        if chassis.fans == 0:
            result.add_warning("Chassis has no pre-installed cooling fans")
        elif chassis.fans == 1:
            result.add_warning("Chassis has only 1 cooling fan - limited thermal dissipation")
        else:
            result.add_info(f"Chassis has {chassis.fans} cooling fan(s)")

        airflow = chassis.max_airflow_cfm or 0
        cpu = context.spec(ComponentType.CPU)
        if airflow > 0 and cpu is not None:
            tdp = cpu.tdp_watts or 0
            if tdp > HIGH_TDP_AIRFLOW_WATTS and airflow < MIN_AIRFLOW_CFM:
                result.add_warning(
                    f"High CPU TDP ({tdp:g}W) with limited chassis airflow ({airflow:g}CFM)"
                )


class FormFactorLockValidator(BaseValidator):
    """Validator for physical fit of everything inside the chassis.

    The chassis ``form_factor`` is read as an enclosure type (Tower, Rack,
    Compact...) and defaults to Tower. A board size such as ATX is matched
    against the chassis form factors instead, like FormFactorValidator does.
    """

    name = "form_factor_lock"
    priority = 30
    requires = (ComponentType.CHASSIS,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        chassis: ChassisSpec = context.spec(ComponentType.CHASSIS)
        enclosure = (chassis.form_factor or DEFAULT_CHASSIS_TYPE).upper()

        result.add_info(f"Validating physical fit for {chassis.model or 'unknown'} chassis")

        motherboard = context.spec(ComponentType.MOTHERBOARD)
        if motherboard is not None:
            board = (motherboard.form_factor or "ATX").upper()
            if enclosure in ENCLOSURE_TYPES:
                fits = enclosure in ENCLOSURE_FIT.get(board, [])
            else:
                chassis_form_factors = [
                    enclosure,
                    *(ff.upper() for ff in chassis.supported_form_factors),
                ]
                fits_into = FORM_FACTOR_COMPATIBILITY.get(board, [board])
                fits = any(ff in fits_into for ff in chassis_form_factors)
            if fits:
                result.add_info(f"Motherboard '{board}' compatible with '{enclosure}' chassis")
            else:
                result.add_error(
                    f"Motherboard form factor '{board}' incompatible with '{enclosure}' chassis"
                )

        psu = context.spec(ComponentType.PSU)
        if psu is not None:
            psu_form_factor = (psu.form_factor or "ATX").upper()
            supported = [ff.upper() for ff in chassis.supported_psu_form_factors]
            if psu_form_factor in supported:
                result.add_info(f"PSU form factor '{psu_form_factor}' fits in chassis")
            else:
                result.add_error(
                    f"PSU form factor '{psu_form_factor}' not supported by '{enclosure}' "
                    f"chassis. Supported: {', '.join(supported)}"
                )

        cpu = context.spec(ComponentType.CPU)
        if cpu is not None:
            tdp = cpu.tdp_watts or 0
            if tdp > HIGH_TDP_FAN_WATTS and chassis.fans < 2:
                result.add_warning(
                    f"High TDP CPU ({tdp:g}W) with limited chassis cooling "
                    f"(only {chassis.fans} fans)"
                )
            if tdp > HIGH_TDP_AIRFLOW_WATTS and chassis.max_cooler_height_mm < MIN_COOLER_HEIGHT_MM:
                result.add_warning(
                    f"High TDP CPU ({tdp:g}W) but chassis cooler clearance is limited "
                    f"({chassis.max_cooler_height_mm:g}mm)"
                )

        if "MINI" in enclosure or "COMPACT" in enclosure:
            cards = [
                *context.specs(ComponentType.PCIE_CARD),
                *context.specs(ComponentType.NIC),
                *context.specs(ComponentType.HBA_CARD),
            ]
            for index, card in enumerate(cards):
                length = getattr(card, "length_mm", None) or DEFAULT_CARD_LENGTH_MM
                if length > COMPACT_CARD_LENGTH_MM:
                    result.add_warning(
                        f"PCIe card {index} ({length:g}mm) may be too long for compact chassis"
                    )
        return result


def _bare_size(form_factor: str | None) -> str:
    return (form_factor or "").upper().replace('"', "").strip()


def caddy_fits_drive(caddy_size: str | None, drive_form_factor: str | None) -> bool:
    """Check whether a caddy of ``caddy_size`` carries a drive of ``drive_form_factor``."""
    caddy, drive = _bare_size(caddy_size), _bare_size(drive_form_factor)
    if caddy == drive:
        return True
    return frozenset((caddy, drive)) in INTERCHANGEABLE_CADDY_SIZES


class CaddyValidator(BaseValidator):
    """Validator for drive caddies.

    A caddy is reported incompatible only when no drive in the configuration
    fits it; mixed layouts (2.5" caddies plus an M.2 boot drive) are normal.
    """

    name = "caddy"
    priority = 5
    requires = (ComponentType.CADDY,)

    def validate(self, context: ValidationContext) -> ValidationResult:
        result = ValidationResult()
        drives: list[StorageSpec] = context.specs(ComponentType.STORAGE)
        chassis: ChassisSpec | None = context.spec(ComponentType.CHASSIS)
        for index, caddy in enumerate(context.specs(ComponentType.CADDY)):
            self._validate_caddy(index, caddy, drives, chassis, result)
        return result

    def _validate_caddy(
        self,
        index: int,
        caddy: CaddySpec,
        drives: list[StorageSpec],
        chassis: ChassisSpec | None,
        result: ValidationResult,
    ) -> None:
        if not caddy.model:
            result.add_warning(f"Caddy {index}: model not specified")

        size = _bare_size(caddy.form_factor)
        if size not in VALID_CADDY_FORM_FACTORS:
            result.add_warning(f"Caddy {index}: unknown form factor '{size}'")

        if drives and not any(caddy_fits_drive(size, d.form_factor) for d in drives):
            for drive_index, drive in enumerate(drives):
                result.add_error(
                    f"Caddy {index} ({size}) incompatible with drive {drive_index} "
                    f"({drive.form_factor_upper})"
                )

        if caddy.material and caddy.material.lower() == "plastic":
            result.add_warning(
                f"Caddy {index}: plastic material - may not be durable for enterprise use"
            )

        self._check_mounting(index, caddy, chassis, result)
        result.add_info(f"Caddy {index}: {size} drive caddy")

    def _check_mounting(
        self,
        index: int,
        caddy: CaddySpec,
        chassis: ChassisSpec | None,
        result: ValidationResult,
    ) -> None:
        if not caddy.mounting_type:
            result.add_warning(f"Caddy {index}: mounting type not specified")
            return
        mounting = caddy.mounting_type.upper()
        if mounting == "RAIL":
            if chassis is not None and not chassis.rail_compatible:
                result.add_warning(
                    f"Caddy {index}: rail mounting but chassis may not have rail support"
                )
            result.add_info(f"Caddy {index}: rail mounted")
        elif mounting == "BAY":
            result.add_info(f"Caddy {index}: bay mounted")
        elif mounting == "BRACKET":
            result.add_info(f"Caddy {index}: bracket mounted")
        else:
            result.add_warning(f"Caddy {index}: unknown mounting type '{mounting}'")
