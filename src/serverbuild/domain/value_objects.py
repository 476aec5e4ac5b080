"""Value objects for the server build domain."""

from __future__ import annotations

import re
from enum import Enum

RISER_SUBTYPE = "Riser Card"
RISER_UUID_PREFIX = "riser-"

# Smallest first; a card may occupy any slot at least as wide as itself
PCIE_SLOT_SIZES: tuple[str, ...] = ("x1", "x4", "x8", "x16")
SLOT_COMPATIBILITY: dict[str, list[str]] = {
    "x1": ["x1", "x4", "x8", "x16"],
    "x4": ["x4", "x8", "x16"],
    "x8": ["x8", "x16"],
    "x16": ["x16"],
}

_SLOT_SIZE_PATTERN = re.compile(r"x\s*(\d+)", re.IGNORECASE)
_BARE_NUMBER_PATTERN = re.compile(r"^\s*(\d+)\s*$")


class ComponentType(str, Enum):
    """Types of inventory items that can be placed in a server configuration."""

    CPU = "cpu"
    MOTHERBOARD = "motherboard"
    RAM = "ram"
    STORAGE = "storage"
    CHASSIS = "chassis"
    HBA_CARD = "hbacard"
    NIC = "nic"
    PCIE_CARD = "pciecard"
    CADDY = "caddy"
    PSU = "psu"
    SFP = "sfp"

    @property
    def label(self) -> str:
        """Human readable label used in messages."""
        return _LABELS[self]

    @property
    def is_singleton(self) -> bool:
        """Whether a configuration may hold at most one of this type."""
        return self in (ComponentType.MOTHERBOARD, ComponentType.CHASSIS)

    @property
    def uses_pcie_slot(self) -> bool:
        """Whether components of this type are mounted in a PCIe slot."""
        return self in (
            ComponentType.PCIE_CARD,
            ComponentType.NIC,
            ComponentType.HBA_CARD,
        )


_LABELS: dict[ComponentType, str] = {
    ComponentType.CPU: "CPU",
    ComponentType.MOTHERBOARD: "Motherboard",
    ComponentType.RAM: "RAM",
    ComponentType.STORAGE: "Storage",
    ComponentType.CHASSIS: "Chassis",
    ComponentType.HBA_CARD: "HBA card",
    ComponentType.NIC: "NIC",
    ComponentType.PCIE_CARD: "PCIe card",
    ComponentType.CADDY: "Caddy",
    ComponentType.PSU: "PSU",
    ComponentType.SFP: "SFP module",
}


def normalize_slot_size(value: str | int | None) -> str | None:
    """Normalize a PCIe width such as ``16``, ``"x16"`` or ``"PCIe 4.0 x16"``.

    Returns:
        The width as ``"x16"`` style string, or None when no width can be read.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return f"x{value}" if value > 0 else None
    text = str(value)
    match = _SLOT_SIZE_PATTERN.search(text)
    if match:
        return f"x{int(match.group(1))}"
    match = _BARE_NUMBER_PATTERN.match(text)
    if match and int(match.group(1)) > 0:
        return f"x{int(match.group(1))}"
    return None


def slot_size_lanes(size: str) -> int:
    """Return the lane count of a normalized slot size (``"x8"`` -> 8)."""
    return int(size.lstrip("x"))


def slot_fits(card_size: str, slot_size: str) -> bool:
    """Check whether a card of ``card_size`` can be installed in ``slot_size``."""
    return slot_size in SLOT_COMPATIBILITY.get(card_size, [card_size])


def is_riser_subtype(subtype: str | None) -> bool:
    """Check the catalog subtype flag for riser cards."""
    return subtype is not None and subtype.strip().lower() == RISER_SUBTYPE.lower()


def has_riser_uuid_prefix(uuid: str) -> bool:
    """Check the legacy UUID naming convention for riser cards."""
    return uuid.lower().startswith(RISER_UUID_PREFIX)
