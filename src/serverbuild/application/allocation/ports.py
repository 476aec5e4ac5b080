"""NIC port tracking for SFP modules."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from serverbuild.domain.specs import NICSpec, SpecificationError, parse_spec, parse_speed_gbps
from serverbuild.domain.value_objects import ComponentType

from .locking import ConfigurationLocks

if TYPE_CHECKING:
    from serverbuild.contracts.lookup import ConfigurationStore, SpecificationLookup

logger = logging.getLogger(__name__)

# NIC port type -> SFP module types it accepts (backward compatible cages)
PORT_COMPATIBILITY: dict[str, list[str]] = {
    "SFP+": ["SFP+", "SFP+ DAC"],
    "SFP28": ["SFP28", "SFP+", "SFP+ DAC"],
    "QSFP+": ["QSFP+"],
    "QSFP28": ["QSFP28", "QSFP+"],
    "QSFP56": ["QSFP56", "QSFP28", "QSFP+"],
    "OSFP": ["OSFP", "QSFP56", "QSFP28"],
    "RJ45": [],
    "RJ-45": [],
}


def normalize_port_type(value: str | None) -> str:
    return (value or "").strip().upper()


class NICPortTracker:
    """Tracks which SFP module occupies which port of each NIC.

    Ports are numbered ``1..port_count``. Occupancy is read from the
    configuration's port assignments; ``assign_port`` writes through the
    store under the configuration lock.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        lookup: SpecificationLookup,
        locks: ConfigurationLocks | None = None,
    ) -> None:
        self._store = store
        self._lookup = lookup
        self._locks = locks or ConfigurationLocks()

    def nic_spec(self, nic_uuid: str) -> NICSpec | None:
        raw = self._lookup.get_component_specs(ComponentType.NIC, nic_uuid)
        if raw is None:
            return None
        try:
            return parse_spec(ComponentType.NIC, raw)
        except SpecificationError as e:
            logger.warning(f"Ignoring unreadable NIC spec {nic_uuid}: {e}")
            return None

    def occupied_ports(self, config_id: str, nic_uuid: str) -> dict[int, str]:
        """Port index -> SFP uuid for one NIC."""
        config = self._store.get(config_id)
        return {
            port: sfp
            for (nic, port), sfp in config.port_assignments.items()
            if nic == nic_uuid
        }

    def get_port_availability(self, config_id: str, nic_uuid: str) -> dict[str, Any]:
        """Describe every port of a NIC and whether it is occupied.

        A NIC that is not in the configuration, or whose specification is
        unknown, is reported with zero ports and an ``error`` entry.
        """
        config = self._store.get(config_id)
        if config.find(nic_uuid) is None:
            return self._empty_availability(nic_uuid, f"NIC {nic_uuid} not found in configuration")
        spec = self.nic_spec(nic_uuid)
        if spec is None:
            return self._empty_availability(nic_uuid, f"NIC specifications not found for {nic_uuid}")

        occupied = self.occupied_ports(config_id, nic_uuid)
        ports = [
            {
                "port_index": index,
                "occupied": index in occupied,
                "sfp_uuid": occupied.get(index),
            }
            for index in range(1, spec.port_count + 1)
        ]
        used = sum(1 for port in ports if port["occupied"])
        return {
            "nic_uuid": nic_uuid,
            "port_type": normalize_port_type(spec.port_type),
            "total_ports": spec.port_count,
            "ports": ports,
            "utilization": {"occupied": used, "available": spec.port_count - used},
        }

    @staticmethod
    def _empty_availability(nic_uuid: str, error: str) -> dict[str, Any]:
        return {
            "nic_uuid": nic_uuid,
            "port_type": "",
            "total_ports": 0,
            "ports": [],
            "utilization": {"occupied": 0, "available": 0},
            "error": error,
        }

    def is_port_available(self, config_id: str, nic_uuid: str, port_index: int) -> bool:
        """Whether the port exists and is free; out-of-range indexes are unavailable."""
        for port in self.get_port_availability(config_id, nic_uuid)["ports"]:
            if port["port_index"] == port_index:
                return not port["occupied"]
        return False

    def free_ports(self, config_id: str, nic_uuid: str) -> list[int]:
        return [
            port["port_index"]
            for port in self.get_port_availability(config_id, nic_uuid)["ports"]
            if not port["occupied"]
        ]

    def assign_port(
        self, config_id: str, nic_uuid: str, port_index: int, sfp_uuid: str
    ) -> bool:
        """Plug ``sfp_uuid`` into a NIC port; False when the port is taken or absent."""
        with self._locks.lock(config_id):
            if not self.is_port_available(config_id, nic_uuid, port_index):
                logger.debug(
                    f"Port {port_index} on NIC {nic_uuid} unavailable for SFP {sfp_uuid}"
                )
                return False
            self._store.assign_port(config_id, nic_uuid, port_index, sfp_uuid)
        logger.debug(f"Assigned SFP {sfp_uuid} to NIC {nic_uuid} port {port_index}")
        return True

    def release_sfp(self, config_id: str, sfp_uuid: str) -> tuple[str, int] | None:
        """Free the port held by an SFP; returns ``(nic_uuid, port_index)`` when one was held."""
        with self._locks.lock(config_id):
            return self._store.release_port(config_id, sfp_uuid)

    def get_port_utilization_for_config(self, config_id: str) -> dict[str, Any]:
        """Port availability for every NIC in the configuration with a known spec."""
        config = self._store.get(config_id)
        nics = []
        for nic in config.components_of(ComponentType.NIC):
            spec = self.nic_spec(nic.uuid)
            if spec is None:
                continue
            info = self.get_port_availability(config_id, nic.uuid)
            nics.append({"uuid": nic.uuid, "model": spec.model or "Unknown", **info})
        return {"nics": nics}

    @staticmethod
    def is_compatible(port_type: str | None, sfp_type: str | None) -> bool:
        """Whether an SFP module of ``sfp_type`` fits a NIC port of ``port_type``."""
        return normalize_port_type(sfp_type) in NICPortTracker.get_compatible_sfp_types(
            port_type
        )

    @staticmethod
    def get_compatible_sfp_types(port_type: str | None) -> list[str]:
        return list(PORT_COMPATIBILITY.get(normalize_port_type(port_type), []))

    @staticmethod
    def validate_speed_compatibility(
        nic_speed: str | float | None, sfp_speed: str | float | None
    ) -> bool:
        """SFP speed must not exceed the NIC speed; unknown speeds do not block."""
        nic = parse_speed_gbps(nic_speed)
        sfp = parse_speed_gbps(sfp_speed)
        if nic is None or sfp is None:
            return True
        return sfp <= nic
