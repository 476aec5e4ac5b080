"""Deferred SFP placement: SFP modules added before a NIC, assigned later."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from serverbuild.domain.specs import SFPSpec, SpecificationError, parse_spec, parse_speed_gbps
from serverbuild.domain.value_objects import ComponentType

from ..allocation.ports import PORT_COMPATIBILITY, NICPortTracker, normalize_port_type

if TYPE_CHECKING:
    from serverbuild.contracts.lookup import SpecificationLookup

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"\d+")


@dataclass
class SFPValidation:
    """Uniformity check over a group of SFP modules."""

    success: bool
    errors: list[str] = field(default_factory=list)
    uniform_type: str | None = None
    uniform_speed: str | None = None
    sfp_details: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "errors": list(self.errors),
            "uniform_type": self.uniform_type,
            "uniform_speed": self.uniform_speed,
            "sfp_details": list(self.sfp_details),
        }


@dataclass
class SFPAssignmentResult:
    """Outcome of assigning held SFP modules to a newly added NIC."""

    nic_uuid: str
    assignments: list[dict[str, Any]] = field(default_factory=list)
    unassigned: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "nic_uuid": self.nic_uuid,
            "assignments": list(self.assignments),
            "unassigned": list(self.unassigned),
            "errors": list(self.errors),
        }


class SFPCompatibilityResolver:
    """Matches held SFP modules to NIC ports.

    SFPs are assigned in the order they were added, each to the lowest free
    port whose cage accepts it. Modules that fit nowhere stay held and are
    reported.
    """

    def __init__(self, lookup: SpecificationLookup, port_tracker: NICPortTracker) -> None:
        self._lookup = lookup
        self._port_tracker = port_tracker

    def _sfp_spec(self, uuid: str) -> SFPSpec | None:
        raw = self._lookup.get_component_specs(ComponentType.SFP, uuid)
        if raw is None:
            return None
        try:
            return parse_spec(ComponentType.SFP, raw)
        except SpecificationError as e:
            logger.warning(f"Ignoring unreadable SFP spec {uuid}: {e}")
            return None

    def validate_unassigned_sfps(self, sfps: list[str]) -> SFPValidation:
        """Check that a group of SFPs shares one type and one speed."""
        if not sfps:
            return SFPValidation(success=False, errors=["No SFP UUIDs provided"])

        details = []
        for uuid in sfps:
            spec = self._sfp_spec(uuid)
            if spec is None:
                return SFPValidation(
                    success=False, errors=[f"SFP UUID {uuid} not found in specifications"]
                )
            sfp_type = normalize_port_type(spec.type)
            speed = self.normalize_speed(spec.speed)
            if not sfp_type:
                return SFPValidation(success=False, errors=[f"SFP {uuid} has no type specified"])
            if not speed:
                return SFPValidation(success=False, errors=[f"SFP {uuid} has no speed specified"])
            details.append(
                {"uuid": uuid, "model": spec.model or "Unknown", "type": sfp_type, "speed": speed}
            )

        types = list(dict.fromkeys(d["type"] for d in details))
        speeds = list(dict.fromkeys(d["speed"] for d in details))
        if len(types) > 1:
            return SFPValidation(
                success=False,
                errors=["All SFP modules must have the same type", f"Found types: {', '.join(types)}"],
                sfp_details=details,
            )
        if len(speeds) > 1:
            return SFPValidation(
                success=False,
                errors=[
                    "All SFP modules must have the same speed",
                    f"Found speeds: {', '.join(speeds)}",
                ],
                sfp_details=details,
            )
        return SFPValidation(
            success=True, uniform_type=types[0], uniform_speed=speeds[0], sfp_details=details
        )

    def auto_assign(self, config_id: str, nic_uuid: str, sfps: list[str]) -> SFPAssignmentResult:
        """Plug held SFPs into ``nic_uuid`` in the given order.

        Args:
            config_id: Configuration holding the NIC and the SFPs.
            nic_uuid: The NIC just added.
            sfps: Held SFP uuids in insertion order.

        Returns:
            The assignments made, plus the SFPs left held with the reason.
        """
        outcome = SFPAssignmentResult(nic_uuid=nic_uuid)
        if not sfps:
            return outcome

        nic = self._port_tracker.nic_spec(nic_uuid)
        if nic is None:
            outcome.unassigned.extend(sfps)
            outcome.errors.append("NIC specifications not found")
            return outcome
        port_type = normalize_port_type(nic.port_type)
        nic_speed = nic.max_speed_gbps

        for uuid in sfps:
            spec = self._sfp_spec(uuid)
            if spec is None:
                outcome.unassigned.append(uuid)
                outcome.errors.append(f"SFP {uuid} specifications not found")
                continue
            sfp_type = normalize_port_type(spec.type)
            if not NICPortTracker.is_compatible(port_type, sfp_type):
                accepted = NICPortTracker.get_compatible_sfp_types(port_type)
                outcome.unassigned.append(uuid)
                outcome.errors.append(
                    f"SFP type {sfp_type or 'unknown'} incompatible with NIC port type "
                    f"{port_type or 'unknown'}. Compatible types: {', '.join(accepted) or 'none'}"
                )
                continue
            if not NICPortTracker.validate_speed_compatibility(nic_speed, spec.speed):
                outcome.unassigned.append(uuid)
                outcome.errors.append(
                    f"SFP speed {spec.speed} exceeds NIC max speed {nic_speed:g}Gbps"
                )
                continue

            free = self._port_tracker.free_ports(config_id, nic_uuid)
            if not free:
                outcome.unassigned.append(uuid)
                outcome.errors.append(f"No free port on NIC {nic_uuid} for SFP {uuid}")
                continue
            port_index = free[0]
            if self._port_tracker.assign_port(config_id, nic_uuid, port_index, uuid):
                outcome.assignments.append(
                    {
                        "uuid": uuid,
                        "parent_nic_uuid": nic_uuid,
                        "port_index": port_index,
                        "sfp_type": sfp_type,
                        "sfp_speed": self.normalize_speed(spec.speed),
                    }
                )

        logger.info(
            f"Auto-assigned {len(outcome.assignments)} SFP(s) to NIC {nic_uuid}; "
            f"{len(outcome.unassigned)} left unassigned"
        )
        return outcome

    @staticmethod
    def get_compatible_port_types(sfp_type: str | None) -> list[str]:
        """NIC port types whose cages accept ``sfp_type``."""
        wanted = normalize_port_type(sfp_type)
        return [port for port, accepted in PORT_COMPATIBILITY.items() if wanted in accepted]

    def choose_optimal_nic(
        self,
        candidates: list[str],
        sfp_type: str | None = None,
        sfp_speed: str | None = None,
        sfp_count: int = 1,
    ) -> str | None:
        """Pick the best NIC for a group of SFPs.

        Preference: highest speed, then add-on over onboard, then fewer ports.
        NICs whose cages, speed or port count do not suit the SFPs are skipped.
        """
        ranked = []
        for position, nic_uuid in enumerate(candidates):
            nic = self._port_tracker.nic_spec(nic_uuid)
            if nic is None:
                continue
            if sfp_type is not None and not NICPortTracker.is_compatible(nic.port_type, sfp_type):
                continue
            if not NICPortTracker.validate_speed_compatibility(nic.max_speed_gbps, sfp_speed):
                continue
            if nic.port_count < sfp_count:
                continue
            speed = nic.max_speed_gbps or 0
            ranked.append(((-speed, nic.onboard, nic.port_count, position), nic_uuid))
        if not ranked:
            return None
        return min(ranked)[1]

    @staticmethod
    def normalize_speed(value: str | None) -> str:
        """Normalize a speed string to ``10Gbps`` / ``1000Mbps`` form; empty when absent."""
        text = (value or "").strip().upper()
        match = _DIGITS.search(text)
        if not match:
            return text
        unit = "Mbps" if "M" in text and "G" not in text else "Gbps"
        return f"{match.group(0)}{unit}"

    @staticmethod
    def extract_max_speed(speeds: list[str]) -> str:
        """The fastest entry of a speed list, ``0Gbps`` when the list is empty."""
        if not speeds:
            return "0Gbps"
        return max(speeds, key=lambda s: parse_speed_gbps(s) or 0)
