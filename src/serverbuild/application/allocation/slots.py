"""PCIe and riser slot tracking for server configurations.

Slots form two strictly separate pools:

- the generic pool: motherboard PCIe slots (``pcie_x16_slot_1``) plus the
  slots exposed by installed riser cards
  (``riser_<uuid>_pcie_x16_slot_1``); expansion cards, NICs and HBAs go here.
- the riser pool: motherboard riser slots (``riser_x16_slot_1``); only riser
  cards go here.

Slot numbering is per size class, starting at 1, in the order the
motherboard declares its slot groups. Assignments live in the
configuration store; this module derives availability from them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from serverbuild.domain.specs import (
    MotherboardSpec,
    PCIeCardSpec,
    SpecificationError,
    parse_spec,
)
from serverbuild.domain.value_objects import (
    PCIE_SLOT_SIZES,
    SLOT_COMPATIBILITY,
    ComponentType,
    has_riser_uuid_prefix,
    is_riser_subtype,
    normalize_slot_size,
    slot_fits,
)

from .locking import ConfigurationLocks

if TYPE_CHECKING:
    from serverbuild.contracts.lookup import ConfigurationStore, SpecificationLookup
    from serverbuild.domain.entities import ServerConfiguration

logger = logging.getLogger(__name__)

GENERIC_SLOT = "generic"
RISER_PROVIDED_SLOT = "riser_provided"
RISER_POOL_SLOT = "riser_pool"

_GENERIC_SLOT_PATTERN = re.compile(r"^pcie_(x\d+)_slot_(\d+)$")
_RISER_PROVIDED_PATTERN = re.compile(r"^riser_(.+)_pcie_(x\d+)_slot_(\d+)$")
_RISER_POOL_PATTERN = re.compile(r"^riser_(x\d+)_slot_(\d+)$")
_SLOT_SIZE_PATTERN = re.compile(r"x(\d+)", re.IGNORECASE)


class MalformedSlotIdError(ValueError):
    """Raised when a slot identifier does not follow any known scheme."""

    def __init__(self, slot_id: str) -> None:
        self.slot_id = slot_id
        super().__init__(f"Malformed slot id '{slot_id}'")


@dataclass(frozen=True)
class SlotId:
    """A parsed slot identifier.

    Attributes:
        kind: One of ``generic``, ``riser_provided`` or ``riser_pool``.
        size: Normalized slot width (``x16``...).
        number: 1-based position within its size class.
        riser_uuid: Riser card exposing the slot (``riser_provided`` only).
    """

    kind: str
    size: str
    number: int
    riser_uuid: str | None = None

    @property
    def is_riser_pool(self) -> bool:
        return self.kind == RISER_POOL_SLOT


def parse_slot_id(slot_id: str) -> SlotId:
    """Parse a slot identifier.

    Raises:
        MalformedSlotIdError: If the id matches none of the slot schemes.
    """
    match = _GENERIC_SLOT_PATTERN.match(slot_id)
    if match:
        return SlotId(GENERIC_SLOT, match.group(1), int(match.group(2)))
    match = _RISER_PROVIDED_PATTERN.match(slot_id)
    if match:
        return SlotId(
            RISER_PROVIDED_SLOT, match.group(2), int(match.group(3)), match.group(1)
        )
    match = _RISER_POOL_PATTERN.match(slot_id)
    if match:
        return SlotId(RISER_POOL_SLOT, match.group(1), int(match.group(2)))
    raise MalformedSlotIdError(slot_id)


def extract_slot_size(spec: dict[str, Any]) -> str | None:
    """Read a card's slot width from ``interface`` or ``slot_type``."""
    for key in ("interface", "slot_type"):
        value = spec.get(key)
        if isinstance(value, str):
            match = _SLOT_SIZE_PATTERN.search(value)
            if match:
                return f"x{match.group(1)}"
    return None


def _sizes_by_class(slots: dict[str, list[str]]) -> dict[str, list[str]]:
    return {size: list(ids) for size, ids in slots.items() if ids}


@dataclass
class SlotAvailability:
    """Snapshot of one slot pool for a configuration.

    Attributes:
        success: False when the pool could not be computed (see ``error``).
        total_slots: Slot ids per size class.
        used_slots: Occupied slot id -> occupying component uuid.
        available_slots: Free slot ids per size class, in numbering order.
        motherboard_uuid: The motherboard the pool was read from.
        error: Why the pool is unavailable.
    """

    success: bool
    total_slots: dict[str, list[str]] = field(default_factory=dict)
    used_slots: dict[str, str] = field(default_factory=dict)
    available_slots: dict[str, list[str]] = field(default_factory=dict)
    motherboard_uuid: str | None = None
    error: str | None = None

    @classmethod
    def unavailable(cls, error: str, motherboard_uuid: str | None = None) -> "SlotAvailability":
        return cls(success=False, motherboard_uuid=motherboard_uuid, error=error)

    @property
    def total_count(self) -> int:
        return sum(len(ids) for ids in self.total_slots.values())

    @property
    def available_count(self) -> int:
        return sum(len(ids) for ids in self.available_slots.values())

    def first_free(self, size: str) -> str | None:
        """Best-fit free slot for a card of ``size``: smallest compatible class first."""
        for candidate in SLOT_COMPATIBILITY.get(size, [size]):
            free = self.available_slots.get(candidate)
            if free:
                return free[0]
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total_slots": self.total_slots,
            "used_slots": self.used_slots,
            "available_slots": self.available_slots,
            "motherboard_uuid": self.motherboard_uuid,
            "error": self.error,
        }


@dataclass
class SlotValidationReport:
    """Result of checking every recorded slot assignment in a configuration."""

    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    assignments: dict[str, str] = field(default_factory=dict)
    total_slots: int = 0
    used_slots: int = 0
    available_slots: int = 0

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "assignments": dict(self.assignments),
            "total_slots": self.total_slots,
            "used_slots": self.used_slots,
            "available_slots": self.available_slots,
        }


class UnifiedSlotTracker:
    """Hands out PCIe and riser slot identifiers for a configuration.

    ``find_*`` methods are pure reads; ``assign_*`` methods reserve the slot
    in the store under the configuration lock. Running out of slots is a
    normal outcome and is reported as ``None``.

    Example:
        tracker = UnifiedSlotTracker(store, catalog, locks)
        slot = tracker.assign_slot(config_id, "x8", "nic-1")
        if slot is None:
            ...  # no compatible slot left
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

    # -- pool construction ---------------------------------------------------

    def _load_motherboard(
        self, config: ServerConfiguration
    ) -> tuple[str, MotherboardSpec] | str:
        boards = config.components_of(ComponentType.MOTHERBOARD)
        if not boards:
            return "No motherboard found in configuration"
        uuid = boards[0].uuid
        raw = self._lookup.get_component_specs(ComponentType.MOTHERBOARD, uuid)
        if raw is None:
            return f"Motherboard specifications not found for {uuid}"
        return uuid, parse_spec(ComponentType.MOTHERBOARD, raw)

    def _card_spec(self, uuid: str) -> PCIeCardSpec | None:
        raw = self._lookup.get_component_specs(ComponentType.PCIE_CARD, uuid)
        if raw is None:
            return None
        try:
            return parse_spec(ComponentType.PCIE_CARD, raw)
        except SpecificationError as e:
            logger.warning(f"Ignoring unreadable PCIe card spec {uuid}: {e}")
            return None

    def is_riser(self, uuid: str, spec: PCIeCardSpec | None = None) -> bool:
        """Riser detection: catalog subtype first, legacy UUID prefix second."""
        spec = spec if spec is not None else self._card_spec(uuid)
        if spec is not None and is_riser_subtype(spec.component_subtype):
            return True
        return has_riser_uuid_prefix(uuid)

    def _installed_risers(self, config: ServerConfiguration) -> list[tuple[str, PCIeCardSpec]]:
        risers = []
        for component in config.components_of(ComponentType.PCIE_CARD):
            spec = self._card_spec(component.uuid)
            if spec is not None and self.is_riser(component.uuid, spec):
                risers.append((component.uuid, spec))
        return risers

    @staticmethod
    def motherboard_generic_slots(motherboard: MotherboardSpec) -> dict[str, list[str]]:
        slots: dict[str, list[str]] = {size: [] for size in PCIE_SLOT_SIZES}
        groups = motherboard.expansion_slots.pcie_slots
        if groups:
            for group in groups:
                size = group.size or "x16"
                ids = slots.setdefault(size, [])
                for _ in range(group.count):
                    ids.append(f"pcie_{size}_slot_{len(ids) + 1}")
        else:
            for n in range(1, motherboard.pcie_slots + 1):
                slots["x16"].append(f"pcie_x16_slot_{n}")
        return slots

    @staticmethod
    def motherboard_riser_slots(motherboard: MotherboardSpec) -> dict[str, list[str]]:
        slots: dict[str, list[str]] = {size: [] for size in PCIE_SLOT_SIZES}
        layout = motherboard.expansion_slots
        if layout.riser_slots:
            for group in layout.riser_slots:
                size = group.size or "x16"
                ids = slots.setdefault(size, [])
                for _ in range(group.count):
                    ids.append(f"riser_{size}_slot_{len(ids) + 1}")
        elif layout.riser_compatibility is not None:
            for n in range(1, layout.riser_compatibility.max_risers + 1):
                slots["x16"].append(f"riser_x16_slot_{n}")
        return slots

    def _build_availability(
        self,
        config: ServerConfiguration,
        motherboard_uuid: str,
        total: dict[str, list[str]],
        empty_error: str,
    ) -> SlotAvailability:
        total = _sizes_by_class(total)
        if not total:
            return SlotAvailability.unavailable(empty_error, motherboard_uuid)
        known = {slot_id for ids in total.values() for slot_id in ids}
        used = {
            slot_id: uuid
            for slot_id, uuid in config.slot_assignments.items()
            if slot_id in known
        }
        available = _sizes_by_class(
            {size: [s for s in ids if s not in used] for size, ids in total.items()}
        )
        return SlotAvailability(
            success=True,
            total_slots=total,
            used_slots=used,
            available_slots=available,
            motherboard_uuid=motherboard_uuid,
        )

    # -- availability ----------------------------------------------------------

    def get_slot_availability(self, config_id: str) -> SlotAvailability:
        """Generic PCIe pool, including slots exposed by installed risers."""
        config = self._store.get(config_id)
        loaded = self._load_motherboard(config)
        if isinstance(loaded, str):
            return SlotAvailability.unavailable(loaded)
        motherboard_uuid, motherboard = loaded

        total = self.motherboard_generic_slots(motherboard)
        for riser_uuid, riser in self._installed_risers(config):
            size = riser.provided_slot_size
            ids = total.setdefault(size, [])
            ids.extend(
                f"riser_{riser_uuid}_pcie_{size}_slot_{n}"
                for n in range(1, riser.pcie_slots + 1)
            )
        return self._build_availability(
            config, motherboard_uuid, total, "Motherboard has no PCIe slots"
        )

    def get_riser_slot_availability(self, config_id: str) -> SlotAvailability:
        """Motherboard riser pool."""
        config = self._store.get(config_id)
        loaded = self._load_motherboard(config)
        if isinstance(loaded, str):
            return SlotAvailability.unavailable(loaded)
        motherboard_uuid, motherboard = loaded
        return self._build_availability(
            config,
            motherboard_uuid,
            self.motherboard_riser_slots(motherboard),
            "Motherboard does not support riser cards",
        )

    # -- generic pool ----------------------------------------------------------

    def find_slot(self, config_id: str, size: str | int | None) -> str | None:
        """Best-fit free generic slot for a card of ``size``, without reserving it."""
        normalized = normalize_slot_size(size)
        if normalized is None:
            return None
        availability = self.get_slot_availability(config_id)
        if not availability.success:
            return None
        return availability.first_free(normalized)

    def assign_slot(
        self, config_id: str, size: str | int | None, component_uuid: str
    ) -> str | None:
        """Reserve the best-fit generic slot for ``component_uuid``."""
        with self._locks.lock(config_id):
            slot_id = self.find_slot(config_id, size)
            if slot_id is None:
                logger.debug(f"No {size} slot free in {config_id} for {component_uuid}")
                return None
            self._store.reserve_slot(config_id, slot_id, component_uuid)
            logger.debug(f"Assigned {slot_id} to {component_uuid} in {config_id}")
            return slot_id

    def can_fit_card(self, config_id: str, size: str | int | None) -> bool:
        return self.find_slot(config_id, size) is not None

    # -- riser pool ------------------------------------------------------------

    def find_riser_slot_by_size(self, config_id: str, size: str | int | None) -> str | None:
        """Best-fit free riser slot for a riser of ``size`` (``16``, ``x16``, ``PCIe x16``)."""
        normalized = normalize_slot_size(size)
        if normalized is None:
            return None
        availability = self.get_riser_slot_availability(config_id)
        if not availability.success:
            return None
        return availability.first_free(normalized)

    def assign_riser_slot_by_size(
        self, config_id: str, size: str | int | None, component_uuid: str
    ) -> str | None:
        with self._locks.lock(config_id):
            slot_id = self.find_riser_slot_by_size(config_id, size)
            if slot_id is None:
                logger.debug(
                    f"No riser slot for size {size} in {config_id} for {component_uuid}"
                )
                return None
            self._store.reserve_slot(config_id, slot_id, component_uuid)
            logger.debug(f"Assigned riser slot {slot_id} to {component_uuid}")
            return slot_id

    def can_fit_riser(self, config_id: str) -> bool:
        """Whether any riser slot is free, regardless of size."""
        availability = self.get_riser_slot_availability(config_id)
        return availability.success and availability.available_count > 0

    def can_fit_riser_by_size(self, config_id: str, size: str | int | None) -> bool:
        return self.find_riser_slot_by_size(config_id, size) is not None

    # -- release and inspection --------------------------------------------------

    def release(self, config_id: str, component_uuid: str) -> str | None:
        """Free the slot held by ``component_uuid``; returns the freed slot id."""
        with self._locks.lock(config_id):
            released = self._store.release_slot(config_id, component_uuid)
        if released:
            logger.debug(f"Released {released} from {component_uuid} in {config_id}")
        return released

    def get_all_slot_assignments(self, config_id: str) -> dict[str, str]:
        """Generic-pool assignments (motherboard and riser-provided slots)."""
        return {
            slot_id: uuid
            for slot_id, uuid in self._store.get(config_id).slot_assignments.items()
            if not _RISER_POOL_PATTERN.match(slot_id)
        }

    def get_all_riser_slot_assignments(self, config_id: str) -> dict[str, str]:
        return {
            slot_id: uuid
            for slot_id, uuid in self._store.get(config_id).slot_assignments.items()
            if _RISER_POOL_PATTERN.match(slot_id)
        }

    def validate_all_slots(self, config_id: str) -> SlotValidationReport:
        """Check every recorded slot assignment against the current hardware.

        Reports:
        - malformed slot ids
        - assignments to components no longer in the configuration
        - slots that do not exist on the motherboard or riser
        - riser cards in PCIe slots and non-risers in riser slots
        - cards wider than their slot (error) or narrower (warning)
        """
        config = self._store.get(config_id)
        report = SlotValidationReport(assignments=dict(config.slot_assignments))
        generic = self.get_slot_availability(config_id)
        risers = self.get_riser_slot_availability(config_id)
        known = {
            slot_id
            for pool in (generic, risers)
            for ids in pool.total_slots.values()
            for slot_id in ids
        }

        for slot_id, uuid in config.slot_assignments.items():
            try:
                parsed = parse_slot_id(slot_id)
            except MalformedSlotIdError:
                report.add_error(f"Invalid slot id '{slot_id}' assigned to {uuid}")
                continue
            component = config.find(uuid)
            if component is None:
                report.add_error(
                    f"Slot {slot_id} is assigned to {uuid}, which is not in the configuration"
                )
                continue
            if slot_id not in known:
                report.add_error(f"Slot {slot_id} does not exist on the motherboard")
                continue
            self._check_occupant(slot_id, parsed, component.component_type, uuid, report)

        if generic.success:
            report.total_slots = generic.total_count
            report.available_slots = generic.available_count
            report.used_slots = len(generic.used_slots)
        return report

    def _check_occupant(
        self,
        slot_id: str,
        parsed: SlotId,
        component_type: ComponentType,
        uuid: str,
        report: SlotValidationReport,
    ) -> None:
        raw = self._lookup.get_component_specs(component_type, uuid) or {}
        riser = component_type == ComponentType.PCIE_CARD and self.is_riser(uuid)
        if parsed.is_riser_pool:
            if not riser:
                report.add_error(f"Component {uuid} in riser slot {slot_id} is not a riser card")
            return
        if riser:
            report.add_error(
                f"Riser card {uuid} is installed in PCIe slot {slot_id}; "
                "risers belong in riser slots"
            )
            return
        card_size = extract_slot_size(raw)
        if card_size is None:
            return
        if not slot_fits(card_size, parsed.size):
            report.add_error(
                f"Card {uuid} requires a {card_size} slot but {slot_id} is {parsed.size}"
            )
        elif card_size != parsed.size:
            report.warnings.append(
                f"Card {uuid} ({card_size}) is installed in a larger {parsed.size} slot"
            )
