"""Domain entities for server configurations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .value_objects import ComponentType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Component:
    """An inventory item together with its raw catalog specification.

    Attributes:
        component_type: The kind of component.
        uuid: Inventory identifier of the physical item.
        spec: Raw specification mapping as returned by the catalog.
    """

    component_type: ComponentType
    uuid: str
    spec: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConfiguredComponent:
    """A component recorded in a configuration.

    Attributes:
        component_type: The kind of component.
        uuid: Inventory identifier of the physical item.
        slot_position: Slot identifier the component occupies, if slotted.
        parent_nic_uuid: NIC the SFP module is plugged into (SFPs only).
        port_index: 1-based NIC port the SFP module occupies (SFPs only).
        added_at: When the component was recorded.
    """

    component_type: ComponentType
    uuid: str
    slot_position: str | None = None
    parent_nic_uuid: str | None = None
    port_index: int | None = None
    added_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.component_type.value,
            "uuid": self.uuid,
            "slot_position": self.slot_position,
            "parent_nic_uuid": self.parent_nic_uuid,
            "port_index": self.port_index,
            "added_at": self.added_at.isoformat(),
        }


@dataclass
class ServerConfiguration:
    """An in-progress or finalized server build.

    ``slot_assignments`` maps slot identifiers to the uuid occupying them and
    ``port_assignments`` maps ``(nic_uuid, port_index)`` to an SFP uuid. Both
    maps hold at most one occupant per key by construction.
    """

    config_id: str
    name: str = ""
    components: list[ConfiguredComponent] = field(default_factory=list)
    slot_assignments: dict[str, str] = field(default_factory=dict)
    port_assignments: dict[tuple[str, int], str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    def components_of(self, component_type: ComponentType) -> list[ConfiguredComponent]:
        """Return components of one type in insertion order."""
        return [c for c in self.components if c.component_type == component_type]

    def find(self, uuid: str) -> ConfiguredComponent | None:
        """Find a recorded component by uuid."""
        for component in self.components:
            if component.uuid == uuid:
                return component
        return None

    def count(self, component_type: ComponentType) -> int:
        return len(self.components_of(component_type))

    def unassigned_sfps(self) -> list[ConfiguredComponent]:
        """SFP modules not yet plugged into a NIC port, in insertion order."""
        return [
            c
            for c in self.components_of(ComponentType.SFP)
            if c.parent_nic_uuid is None
        ]

    def summary(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for component in self.components:
            key = component.component_type.value
            counts[key] = counts.get(key, 0) + 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "config_id": self.config_id,
            "name": self.name,
            "components": [c.to_dict() for c in self.components],
            "slot_assignments": dict(self.slot_assignments),
            "port_assignments": [
                {"nic_uuid": nic, "port_index": port, "sfp_uuid": sfp}
                for (nic, port), sfp in sorted(self.port_assignments.items())
            ],
            "summary": self.summary(),
            "created_at": self.created_at.isoformat(),
        }
