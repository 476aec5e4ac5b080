"""Domain layer - component types, specifications and configurations."""

from .entities import Component, ConfiguredComponent, ServerConfiguration
from .specs import (
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
    parse_speed_gbps,
)
from .value_objects import (
    SLOT_COMPATIBILITY,
    ComponentType,
    normalize_slot_size,
    slot_fits,
)

__all__ = [
    "SLOT_COMPATIBILITY",
    "CaddySpec",
    "ChassisSpec",
    "Component",
    "ComponentSpec",
    "ComponentType",
    "ConfiguredComponent",
    "CPUSpec",
    "HBASpec",
    "MotherboardSpec",
    "NICSpec",
    "PCIeCardSpec",
    "PSUSpec",
    "RAMSpec",
    "SFPSpec",
    "ServerConfiguration",
    "SpecificationError",
    "StorageSpec",
    "normalize_slot_size",
    "parse_spec",
    "parse_speed_gbps",
    "slot_fits",
]
