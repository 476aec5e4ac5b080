"""Lookup tables and small predicates shared by the compatibility checks."""

from __future__ import annotations

from serverbuild.domain.specs import (
    ComponentSpec,
    NICSpec,
    PCIeMountedSpec,
    StorageSpec,
)
from serverbuild.domain.value_objects import ComponentType, normalize_slot_size

# HBA protocol -> drive interface families it can attach
HBA_PROTOCOL_SUPPORT: dict[str, tuple[str, ...]] = {
    "TRI-MODE": ("SAS", "SATA", "NVME", "U.2"),
    "SAS/SATA": ("SAS", "SATA"),
    "SAS": ("SAS", "SATA"),
    "SATA": ("SATA",),
    "NVME": ("NVME", "U.2"),
}
DEFAULT_HBA_PROTOCOL = "SAS/SATA"

# Slot width assumed when a card's catalog entry states none
DEFAULT_CARD_SIZE: dict[ComponentType, str] = {
    ComponentType.PCIE_CARD: "x16",
    ComponentType.HBA_CARD: "x8",
    ComponentType.NIC: "x8",
}

CADDY_SIZES: dict[str, str] = {
    "2.5": "2.5-inch",
    "3.5": "3.5-inch",
    "M.2": "M.2",
    "U.2": "U.2",
}


def normalize_protocol(protocol: str | None) -> str:
    """Map a catalog HBA protocol string to a key of ``HBA_PROTOCOL_SUPPORT``."""
    text = (protocol or "").upper().replace(" ", "")
    if not text:
        return DEFAULT_HBA_PROTOCOL
    if "TRI" in text:
        return "TRI-MODE"
    if "SAS" in text and "SATA" in text:
        return "SAS/SATA"
    for key in ("NVME", "SAS", "SATA"):
        if key in text:
            return key
    return DEFAULT_HBA_PROTOCOL


def hba_supported_interfaces(protocol: str | None) -> tuple[str, ...]:
    return HBA_PROTOCOL_SUPPORT[normalize_protocol(protocol)]


def hba_supports(protocol: str | None, drive: StorageSpec) -> bool:
    return storage_bus(drive) in hba_supported_interfaces(protocol)


def storage_bus(drive: StorageSpec) -> str:
    """Connection a drive needs: ``SAS``, ``SATA``, ``U.2`` or ``NVME`` (M.2)."""
    if drive.is_u2 or "U.2" in drive.form_factor_upper:
        return "U.2"
    family = drive.interface_family
    if family == "M.2":
        return "NVME"
    return family


def normalize_caddy_size(value: str | None) -> str:
    """Normalize caddy and bay sizes (``2.5"``, ``2.5 inch``, ``2.5-inch``) to one spelling."""
    text = (value or "").upper().replace('"', "").replace("-INCH", "").replace("INCH", "")
    text = text.strip()
    return CADDY_SIZES.get(text, text)


def drive_bay_size(drive: StorageSpec) -> str | None:
    """Bay size a drive occupies, or None for drives that do not use a bay."""
    size = normalize_caddy_size(drive.form_factor)
    return size if size in ("2.5-inch", "3.5-inch") else None


def card_slot_size(component_type: ComponentType, spec: ComponentSpec) -> str:
    """PCIe slot width a card needs, falling back to its lane count, then a default."""
    if isinstance(spec, PCIeMountedSpec) and spec.slot_size:
        return spec.slot_size
    if isinstance(spec, NICSpec):
        lanes = normalize_slot_size(spec.pcie_lanes)
        if lanes:
            return lanes
    return DEFAULT_CARD_SIZE.get(component_type, "x16")
