"""Slot and port allocation for server configurations."""

from .locking import ConfigurationLocks
from .ports import PORT_COMPATIBILITY, NICPortTracker, normalize_port_type
from .slots import (
    MalformedSlotIdError,
    SlotAvailability,
    SlotId,
    SlotValidationReport,
    UnifiedSlotTracker,
    extract_slot_size,
    parse_slot_id,
)

__all__ = [
    "ConfigurationLocks",
    "MalformedSlotIdError",
    "NICPortTracker",
    "PORT_COMPATIBILITY",
    "SlotAvailability",
    "SlotId",
    "SlotValidationReport",
    "UnifiedSlotTracker",
    "extract_slot_size",
    "normalize_port_type",
    "parse_slot_id",
]
