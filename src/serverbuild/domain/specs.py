"""Typed component specifications built from raw catalog payloads.

Catalog records are loosely typed mappings. Each component type gets a
pydantic model that converts the payload once, at the boundary, so rule code
reads plain attributes with documented defaults instead of re-parsing strings.

Unknown fields are preserved (``extra="allow"``); explicit ``null`` values are
treated as missing so defaults apply.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    model_validator,
)

from .value_objects import ComponentType, normalize_slot_size

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")
_PCIE_GENERATION_PATTERN = re.compile(r"(?:PCIE|GEN)\s*(\d+)", re.IGNORECASE)


class SpecificationError(ValueError):
    """Raised when a catalog payload cannot be converted to a typed spec."""

    def __init__(
        self,
        component_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.component_type = component_type
        self.details = details or []
        super().__init__(f"Invalid {component_type} specification: {message}")


def _to_number(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        match = _NUMBER_PATTERN.search(value)
        return float(match.group(0)) if match else None
    raise ValueError(f"expected a number, got {type(value).__name__}")


def _to_int(value: Any) -> int | None:
    number = _to_number(value)
    return None if number is None else int(number)


def _int_or(default: int):
    def convert(value: Any) -> int:
        number = _to_int(value)
        return default if number is None else number

    return convert


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    raise ValueError(f"expected a string, got {type(value).__name__}")


def _text_or(default: str):
    def convert(value: Any) -> str:
        return _to_str(value) or default

    return convert


def _to_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(item).strip() for item in value if str(item).strip()]
    raise ValueError(f"expected a list of strings, got {type(value).__name__}")


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "on")
    return bool(value)


Number = Annotated[float | None, BeforeValidator(_to_number)]
Count = Annotated[int | None, BeforeValidator(_to_int)]
Quantity = Annotated[int, BeforeValidator(_int_or(0))]
Text = Annotated[str | None, BeforeValidator(_to_str)]
TextList = Annotated[list[str], BeforeValidator(_to_str_list)]
Flag = Annotated[bool, BeforeValidator(_to_bool)]


class ComponentSpec(BaseModel):
    """Fields shared by every component specification."""

    model_config = ConfigDict(extra="allow", frozen=True)

    model: Text = Field(default=None, validation_alias=AliasChoices("model", "name"))
    component_subtype: Text = None

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @property
    def model_name(self) -> str:
        """Model string, or an empty string when the catalog omits it."""
        return self.model or ""


class PCIeMountedSpec(ComponentSpec):
    """Mixin fields for cards that occupy a PCIe slot."""

    interface: Text = None
    slot_type: Text = None
    pcie_generation: Count = None

    @property
    def slot_size(self) -> str | None:
        """Physical slot width required by the card (``x8``, ``x16``...)."""
        return normalize_slot_size(self.slot_type) or normalize_slot_size(
            self.interface
        )

    @property
    def generation(self) -> int | None:
        """PCIe generation, read from ``pcie_generation`` or the interface string."""
        if self.pcie_generation:
            return self.pcie_generation
        for text in (self.interface, self.slot_type):
            if text:
                match = _PCIE_GENERATION_PATTERN.search(text)
                if match:
                    return int(match.group(1))
        return None


class CPUSpec(ComponentSpec):
    """Processor specification."""

    socket: Text = None
    cores: Count = None
    threads: Count = None
    tdp_watts: Number = Field(
        default=None, validation_alias=AliasChoices("tdp_watts", "tdp", "tdp_w")
    )
    memory_types: TextList = Field(
        default_factory=list,
        validation_alias=AliasChoices("memory_types", "supported_memory_types"),
    )
    max_memory_speed: Count = Field(
        default=None,
        validation_alias=AliasChoices("max_memory_speed", "max_memory_speed_mhz"),
    )
    pcie_generation: Count = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_socket(cls, data: Any) -> Any:
        return _flatten_socket_mapping(data)


class SlotGroup(BaseModel):
    """A group of identical slots declared by a motherboard (``PCIe 5.0 x16`` x 2)."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    count: Quantity = 1

    @property
    def size(self) -> str | None:
        return normalize_slot_size(self.type)


class RiserCompatibility(BaseModel):
    """Legacy riser declaration carrying only a riser count."""

    model_config = ConfigDict(extra="allow")

    max_risers: Quantity = 0


class ExpansionSlots(BaseModel):
    """Expansion slot layout of a motherboard."""

    model_config = ConfigDict(extra="allow")

    pcie_slots: list[SlotGroup] = Field(default_factory=list)
    riser_slots: list[SlotGroup] = Field(default_factory=list)
    riser_compatibility: RiserCompatibility | None = None


class MotherboardSpec(ComponentSpec):
    """Motherboard specification."""

    socket: Text = None
    socket_count: Annotated[int, BeforeValidator(_int_or(1))] = 1
    form_factor: Text = None
    ram_slots: Quantity = Field(
        default=0, validation_alias=AliasChoices("ram_slots", "memory_slots")
    )
    max_memory_gb: Number = None
    memory_types: TextList = Field(
        default_factory=list,
        validation_alias=AliasChoices("memory_types", "supported_memory_types"),
    )
    max_memory_speed: Count = Field(
        default=None,
        validation_alias=AliasChoices("max_memory_speed", "max_memory_speed_mhz"),
    )
    ecc_support: Flag = False
    pcie_slots: Quantity = 0
    pcie_generation: Annotated[int, BeforeValidator(_int_or(4))] = 4
    pcie_bifurcation: Flag = False
    m2_slots: Quantity = 0
    m2_slot_type: Annotated[str, BeforeValidator(_text_or("NVME"))] = "NVME"
    m2_pcie_generation: Annotated[int, BeforeValidator(_int_or(4))] = 4
    sata_ports: Quantity = 0
    u2_ports: Quantity = 0
    vrm_phases: Count = None
    expansion_slots: ExpansionSlots = Field(default_factory=ExpansionSlots)

    @model_validator(mode="before")
    @classmethod
    def _flatten_socket(cls, data: Any) -> Any:
        return _flatten_socket_mapping(data)

    @property
    def total_pcie_slots(self) -> int:
        """Generic PCIe slot count, preferring the detailed slot layout."""
        declared = sum(group.count for group in self.expansion_slots.pcie_slots)
        return declared if declared else (self.pcie_slots or 0)


class RAMSpec(ComponentSpec):
    """Memory module specification."""

    capacity_gb: Number = Field(
        default=None, validation_alias=AliasChoices("capacity_gb", "capacity")
    )
    type: Text = Field(
        default=None, validation_alias=AliasChoices("type", "memory_type")
    )
    form_factor: Text = None
    speed_mhz: Count = Field(
        default=None,
        validation_alias=AliasChoices("speed_mhz", "frequency_mhz", "speed"),
    )
    module_type: Text = None
    ecc: Flag = False

    @property
    def is_ecc(self) -> bool:
        return self.ecc or "ECC" in self.model_name.upper()

    @property
    def ddr_generation(self) -> str | None:
        """DDR family of the module (``DDR4``, ``DDR5``...)."""
        for text in (self.type, self.model):
            if text:
                match = re.search(r"DDR\d", text.upper())
                if match:
                    return match.group(0)
        return None


class StorageSpec(ComponentSpec):
    """Storage device specification."""

    capacity_gb: Number = Field(
        default=None, validation_alias=AliasChoices("capacity_gb", "capacity")
    )
    interface: Text = None
    form_factor: Text = None
    speed_mbps: Number = Field(
        default=None, validation_alias=AliasChoices("speed_mbps", "read_speed_mbps")
    )
    thermal_pads: Flag = False
    pcie_generation: Count = None
    sas_generation: Text = None
    raid_group: Text = None
    subtype: Text = None

    @property
    def interface_upper(self) -> str:
        """Interface in upper case, defaulting to SATA when unspecified."""
        return (self.interface or "SATA").upper()

    @property
    def form_factor_upper(self) -> str:
        return (self.form_factor or "").upper()

    @property
    def interface_family(self) -> str:
        """Interface bucket used for port and bay accounting.

        One of ``U.2``, ``NVME``, ``SAS``, ``SATA``, ``M.2``; any other
        interface is returned upper-cased as-is.
        """
        interface = self.interface_upper
        for family in ("U.2", "NVME", "SAS", "SATA", "M.2"):
            if family in interface:
                return family
        return interface

    @property
    def is_nvme(self) -> bool:
        return "NVME" in self.interface_upper

    @property
    def is_sas(self) -> bool:
        return "SAS" in self.interface_upper

    @property
    def is_sata(self) -> bool:
        return "SATA" in self.interface_upper

    @property
    def is_u2(self) -> bool:
        return "U.2" in self.interface_upper

    @property
    def is_enterprise(self) -> bool:
        model = self.model_name.upper()
        return "ENTERPRISE" in model or "DATACENTER" in model


class ChassisSpec(ComponentSpec):
    """Chassis specification."""

    form_factor: Text = None
    supported_form_factors: TextList = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "supported_form_factors", "motherboard_form_factors"
        ),
    )
    drive_bays: Quantity = 0
    bays_2_5: Count = None
    bays_3_5: Count = None
    m2_bays: Count = None
    u2_bays: Count = None
    pcie_slots: Count = None
    rack_units: Count = None
    fans: Quantity = Field(
        default=0, validation_alias=AliasChoices("fans", "fan_count", "cooling_fans")
    )
    max_airflow_cfm: Number = None
    backplane_type: Text = None
    hot_swap_capable: Flag = False
    supported_psu_form_factors: TextList = Field(default_factory=list)
    max_cooler_height_mm: Annotated[
        float, BeforeValidator(lambda v: _to_number(v) or 160.0)
    ] = 160.0
    max_card_length_mm: Number = None
    rail_compatible: Flag = False


class HBASpec(PCIeMountedSpec):
    """Host bus adapter specification."""

    port_count: Quantity = Field(
        default=0,
        validation_alias=AliasChoices("port_count", "internal_ports", "ports"),
    )
    external_ports: Quantity = 0
    max_devices: Count = None
    sas_generation: Text = None
    cache_memory_mb: Number = None
    battery_backup: Flag = False
    raid_support: Flag = False
    raid_levels: TextList = Field(default_factory=list)
    protocol: Text = None


class NICSpec(PCIeMountedSpec):
    """Network interface card specification."""

    speed_gbps: Number = None
    port_count: Quantity = Field(
        default=1, validation_alias=AliasChoices("port_count", "ports")
    )
    port_type: Text = None
    pcie_lanes: Annotated[int, BeforeValidator(_int_or(4))] = 4
    speeds: TextList = Field(default_factory=list)
    tcp_offload: Flag = False
    rss: Flag = False
    sriov: Flag = False
    ipmi: Flag = False
    wol: Flag = False
    onboard: Flag = False

    @property
    def max_speed_gbps(self) -> float | None:
        """Fastest supported speed in Gbps from ``speed_gbps`` or ``speeds``."""
        if self.speed_gbps is not None:
            return self.speed_gbps
        parsed = [parse_speed_gbps(speed) for speed in self.speeds]
        values = [speed for speed in parsed if speed is not None]
        return max(values) if values else None


class PCIeCardSpec(PCIeMountedSpec):
    """Generic PCIe card specification, including riser cards.

    For riser cards ``pcie_slots`` is the number of slots the riser provides;
    for every other card it is the number of slots the card occupies.
    """

    pcie_slots: Quantity = 1
    length_mm: Number = None

    @property
    def riser_slot_size(self) -> str | None:
        """Riser slot width a riser card plugs into, read from ``interface`` first."""
        return normalize_slot_size(self.interface) or normalize_slot_size(
            self.slot_type
        )

    @property
    def provided_slot_size(self) -> str:
        """Width of the PCIe slots a riser card exposes (``x16`` when unstated)."""
        return normalize_slot_size(self.slot_type) or "x16"


class CaddySpec(ComponentSpec):
    """Drive caddy specification."""

    form_factor: Text = Field(
        default=None, validation_alias=AliasChoices("form_factor", "size", "type")
    )
    material: Text = None
    mounting_type: Text = None

    @model_validator(mode="before")
    @classmethod
    def _read_compatibility_size(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and isinstance(data.get("compatibility"), Mapping):
            size = data["compatibility"].get("size")
            if size and not data.get("form_factor"):
                return {**data, "form_factor": size}
        return data


class PSUSpec(ComponentSpec):
    """Power supply specification."""

    wattage: Number = None
    form_factor: Text = None


class SFPSpec(ComponentSpec):
    """SFP transceiver specification."""

    type: Text = Field(default=None, validation_alias=AliasChoices("type", "sfp_type"))
    speed: Text = None
    fiber_type: Text = None
    reach: Text = None


SPEC_MODELS: dict[ComponentType, type[ComponentSpec]] = {
    ComponentType.CPU: CPUSpec,
    ComponentType.MOTHERBOARD: MotherboardSpec,
    ComponentType.RAM: RAMSpec,
    ComponentType.STORAGE: StorageSpec,
    ComponentType.CHASSIS: ChassisSpec,
    ComponentType.HBA_CARD: HBASpec,
    ComponentType.NIC: NICSpec,
    ComponentType.PCIE_CARD: PCIeCardSpec,
    ComponentType.CADDY: CaddySpec,
    ComponentType.PSU: PSUSpec,
    ComponentType.SFP: SFPSpec,
}


def parse_spec(component_type: ComponentType | str, raw: Any) -> ComponentSpec:
    """Convert a raw catalog payload into the typed spec for its component type.

    Args:
        component_type: The component type the payload belongs to.
        raw: Mapping returned by the specification lookup.

    Returns:
        The typed specification model.

    Raises:
        SpecificationError: If the payload is not a mapping or a field has a
            shape that cannot be coerced (e.g. a list where a count belongs).
    """
    component_type = ComponentType(component_type)
    if not isinstance(raw, Mapping):
        raise SpecificationError(
            component_type.value, f"expected a mapping, got {type(raw).__name__}"
        )
    model_cls = SPEC_MODELS[component_type]
    try:
        return model_cls.model_validate(dict(raw))
    except PydanticValidationError as e:
        details = [
            {
                "path": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        summary = "; ".join(f"{d['path']}: {d['message']}" for d in details)
        raise SpecificationError(component_type.value, summary, details) from e


def parse_speed_gbps(value: str | float | int | None) -> float | None:
    """Parse a link speed like ``"25Gbps"``, ``"100G"`` or ``"1000Mbps"`` to Gbps."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_PATTERN.search(value)
    if not match:
        return None
    speed = float(match.group(0))
    if "M" in value.upper() and "G" not in value.upper():
        speed /= 1000
    return speed


def _flatten_socket_mapping(data: Any) -> Any:
    """Accept ``{"socket": {"type": "LGA4677", "count": 2}}`` catalog layouts."""
    if isinstance(data, Mapping) and isinstance(data.get("socket"), Mapping):
        socket = data["socket"]
        flattened = {**data, "socket": socket.get("type")}
        if "count" in socket and "socket_count" not in data:
            flattened["socket_count"] = socket["count"]
        return flattened
    return data
