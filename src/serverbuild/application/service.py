"""Configuration workflow: check, add, release and validate components."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from serverbuild.domain.entities import Component, ConfiguredComponent
from serverbuild.domain.specs import NICSpec, SpecificationError, parse_spec
from serverbuild.domain.value_objects import ComponentType
from serverbuild.infrastructure.store import ComponentNotFoundError

from .allocation import ConfigurationLocks, NICPortTracker, UnifiedSlotTracker
from .compatibility import CompatibilityEngine, SFPCompatibilityResolver
from .compatibility.rules import card_slot_size
from .validation import (
    OrchestratorFactory,
    ValidationContext,
    ValidationProfile,
    ValidationResult,
)

if TYPE_CHECKING:
    from serverbuild.contracts.lookup import ConfigurationStore, SpecificationLookup
    from serverbuild.domain.entities import ServerConfiguration

logger = logging.getLogger(__name__)


@dataclass
class AdditionDecision:
    """Outcome of checking (or performing) a component addition.

    ``assigned_slot`` and ``assigned_port`` are the allocation the add would
    make (check) or did make (add). An SFP with no NIC to go to has neither.
    """

    component_type: ComponentType
    uuid: str
    compatible: bool
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    details: list[str] = field(default_factory=list)
    assigned_slot: str | None = None
    assigned_port: tuple[str, int] | None = None
    sfp_assignment: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        port = None
        if self.assigned_port is not None:
            port = {"nic_uuid": self.assigned_port[0], "port_index": self.assigned_port[1]}
        return {
            "component_type": self.component_type.value,
            "uuid": self.uuid,
            "compatible": self.compatible,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
            "details": list(self.details),
            "assigned_slot": self.assigned_slot,
            "assigned_port": port,
            "sfp_assignment": self.sfp_assignment,
        }


class ComponentRejectedError(Exception):
    """Raised when a component fails the add-time compatibility check."""

    def __init__(self, decision: AdditionDecision) -> None:
        self.decision = decision
        reasons = "; ".join(decision.issues) or "incompatible"
        super().__init__(
            f"{decision.component_type.label} {decision.uuid} rejected: {reasons}"
        )


class ComponentRemovalError(Exception):
    """Raised when a component cannot be removed in the current state."""

    def __init__(self, uuid: str, message: str) -> None:
        self.uuid = uuid
        super().__init__(message)


class ConfigurationService:
    """Public operations on server configurations.

    Every add and release runs under the configuration's lock so the
    compatibility check, the slot or port reservation and the store update
    happen as one step.

    Example:
        service = ServiceFactory().get_configuration_service()
        config = service.create_configuration("web-01")
        service.add_component(config.config_id, "motherboard", "mb-1")
        result = service.validate_configuration(config.config_id)
    """

    def __init__(
        self,
        store: ConfigurationStore,
        lookup: SpecificationLookup,
        engine: CompatibilityEngine,
        slot_tracker: UnifiedSlotTracker,
        port_tracker: NICPortTracker,
        sfp_resolver: SFPCompatibilityResolver,
        orchestrator_factory: OrchestratorFactory,
        locks: ConfigurationLocks,
    ) -> None:
        self._store = store
        self._lookup = lookup
        self._engine = engine
        self._slot_tracker = slot_tracker
        self._port_tracker = port_tracker
        self._sfp_resolver = sfp_resolver
        self._orchestrator_factory = orchestrator_factory
        self._locks = locks

    @property
    def store(self) -> ConfigurationStore:
        return self._store

    def create_configuration(self, name: str = "", config_id: str | None = None) -> ServerConfiguration:
        return self._store.create(name=name, config_id=config_id)

    def get_configuration(self, config_id: str) -> ServerConfiguration:
        return self._store.get(config_id)

    # -- additions -----------------------------------------------------------

    def check_component_addition(
        self,
        config_id: str,
        component_type: ComponentType | str,
        uuid: str,
        **options: Any,
    ) -> AdditionDecision:
        """Decide whether a component may be added, without changing anything.

        Args:
            config_id: Target configuration.
            component_type: Type of the candidate.
            uuid: Inventory uuid of the candidate.
            **options: ``parent_nic_uuid`` and ``port_index`` for SFP modules.

        Returns:
            The decision, including the slot or port the add would take.
        """
        component_type = ComponentType(component_type)
        with self._locks.lock(config_id):
            config = self._store.get(config_id)
            if config.find(uuid) is not None:
                return AdditionDecision(
                    component_type=component_type,
                    uuid=uuid,
                    compatible=False,
                    issues=[f"Component {uuid} is already in this configuration"],
                )

            result = self._engine.check(
                component_type, uuid, config.components, config_id=config_id, **options
            )
            decision = AdditionDecision(
                component_type=component_type,
                uuid=uuid,
                compatible=result.compatible,
                issues=list(result.issues),
                warnings=list(result.warnings),
                recommendations=list(result.recommendations),
                details=list(result.details),
            )
            if decision.compatible:
                if component_type.uses_pcie_slot:
                    self._plan_slot(config, decision)
                elif component_type == ComponentType.SFP:
                    self._plan_port(config, decision, **options)
            return decision

    def _card_spec(self, component_type: ComponentType, uuid: str) -> Any | None:
        raw = self._lookup.get_component_specs(component_type, uuid)
        if raw is None:
            return None
        try:
            return parse_spec(component_type, raw)
        except SpecificationError:
            return None

    def _has_motherboard(self, config: ServerConfiguration) -> bool:
        return config.count(ComponentType.MOTHERBOARD) > 0

    def _is_riser(self, decision: AdditionDecision, spec: Any) -> bool:
        return decision.component_type == ComponentType.PCIE_CARD and self._slot_tracker.is_riser(
            decision.uuid, spec
        )

    def _plan_slot(self, config: ServerConfiguration, decision: AdditionDecision) -> None:
        spec = self._card_spec(decision.component_type, decision.uuid)
        if spec is None or not self._has_motherboard(config):
            return
        if isinstance(spec, NICSpec) and spec.onboard:
            return
        if self._is_riser(decision, spec):
            decision.assigned_slot = self._slot_tracker.find_riser_slot_by_size(
                config.config_id, spec.riser_slot_size or "x16"
            )
        else:
            decision.assigned_slot = self._slot_tracker.find_slot(
                config.config_id, card_slot_size(decision.component_type, spec)
            )
        if decision.assigned_slot is None:
            decision.compatible = False
            decision.issues.append(f"No compatible slot available for {decision.uuid}")

    def _plan_port(
        self,
        config: ServerConfiguration,
        decision: AdditionDecision,
        parent_nic_uuid: str | None = None,
        port_index: int | None = None,
        **_: Any,
    ) -> None:
        config_id = config.config_id
        if parent_nic_uuid is not None:
            if port_index is None:
                free = self._port_tracker.free_ports(config_id, parent_nic_uuid)
                port_index = free[0] if free else None
            if port_index is not None:
                decision.assigned_port = (parent_nic_uuid, port_index)
            return

        raw = self._lookup.get_component_specs(ComponentType.SFP, decision.uuid) or {}
        sfp_type = raw.get("type") or raw.get("sfp_type")
        candidates = [
            nic.uuid
            for nic in config.components_of(ComponentType.NIC)
            if self._port_tracker.free_ports(config_id, nic.uuid)
        ]
        nic_uuid = self._sfp_resolver.choose_optimal_nic(
            candidates, sfp_type=sfp_type, sfp_speed=raw.get("speed")
        )
        if nic_uuid is not None:
            decision.assigned_port = (nic_uuid, self._port_tracker.free_ports(config_id, nic_uuid)[0])
        else:
            decision.details.append("SFP will be held unassigned until a NIC port is free")

    def add_component(
        self,
        config_id: str,
        component_type: ComponentType | str,
        uuid: str,
        **options: Any,
    ) -> AdditionDecision:
        """Check, allocate and record a component.

        Adding a NIC also plugs held SFP modules into its free ports.

        Raises:
            ComponentRejectedError: If the component is not compatible.
            ConfigurationNotFoundError: If the configuration does not exist.
        """
        component_type = ComponentType(component_type)
        with self._locks.lock(config_id):
            decision = self.check_component_addition(config_id, component_type, uuid, **options)
            if not decision.compatible:
                logger.info(f"Rejected {component_type.value} {uuid}: {decision.issues}")
                raise ComponentRejectedError(decision)

            record = ConfiguredComponent(component_type=component_type, uuid=uuid)
            if decision.assigned_slot is not None:
                self._reserve_slot(config_id, decision)
                record.slot_position = decision.assigned_slot
            if decision.assigned_port is not None:
                nic_uuid, port_index = decision.assigned_port
                if not self._port_tracker.assign_port(config_id, nic_uuid, port_index, uuid):
                    decision.compatible = False
                    decision.issues.append(f"Port {port_index} on NIC {nic_uuid} is not available")
                    raise ComponentRejectedError(decision)
                record.parent_nic_uuid, record.port_index = nic_uuid, port_index
            self._store.add_component(config_id, record)
            logger.info(f"Added {component_type.value} {uuid} to {config_id}")

            if component_type == ComponentType.NIC:
                self._assign_held_sfps(config_id, decision)
        return decision

    def import_components(
        self, config_id: str, components: Iterable[Any], strict: bool = False
    ) -> list[AdditionDecision]:
        """Add build file components in order.

        Entries need ``type``, ``uuid`` and an ``options()`` method (see
        ``BuildComponent``). Unless ``strict``, a rejected component is still
        recorded, without a slot or port, so validation reports on the build
        as written.

        Raises:
            ComponentRejectedError: In strict mode, on the first rejection.
        """
        decisions = []
        for entry in components:
            try:
                decision = self.add_component(config_id, entry.type, entry.uuid, **entry.options())
            except ComponentRejectedError as e:
                if strict:
                    raise
                decision = e.decision
                self._store.add_component(
                    config_id,
                    ConfiguredComponent(component_type=decision.component_type, uuid=decision.uuid),
                )
                logger.warning(f"Recorded rejected {decision.component_type.value} {decision.uuid}")
            decisions.append(decision)
        return decisions

    def _reserve_slot(self, config_id: str, decision: AdditionDecision) -> None:
        spec = self._card_spec(decision.component_type, decision.uuid)
        if self._is_riser(decision, spec):
            slot = self._slot_tracker.assign_riser_slot_by_size(
                config_id, spec.riser_slot_size or "x16", decision.uuid
            )
        else:
            slot = self._slot_tracker.assign_slot(
                config_id, card_slot_size(decision.component_type, spec), decision.uuid
            )
        if slot is None:
            decision.compatible = False
            decision.issues.append(f"No compatible slot available for {decision.uuid}")
            raise ComponentRejectedError(decision)
        decision.assigned_slot = slot

    def _assign_held_sfps(self, config_id: str, decision: AdditionDecision) -> None:
        held = [sfp.uuid for sfp in self._store.get(config_id).unassigned_sfps()]
        if not held:
            return
        outcome = self._sfp_resolver.auto_assign(config_id, decision.uuid, held)
        decision.sfp_assignment = outcome.to_dict()
        for error in outcome.errors:
            decision.warnings.append(f"SFP left unassigned: {error}")

    # -- removal -------------------------------------------------------------

    def release_component(
        self, config_id: str, component_type: ComponentType | str, uuid: str
    ) -> dict[str, Any]:
        """Remove a component and free its slot or port.

        Returns:
            ``{"released_slot": ..., "released_port": ...}``

        Raises:
            ComponentNotFoundError: If the component is not in the configuration.
            ComponentRemovalError: If a NIC still holds SFP modules or a riser
                still hosts cards.
        """
        component_type = ComponentType(component_type)
        with self._locks.lock(config_id):
            config = self._store.get(config_id)
            component = config.find(uuid)
            if component is None or component.component_type != component_type:
                raise ComponentNotFoundError(config_id, uuid)

            if component_type == ComponentType.NIC:
                occupied = self._port_tracker.occupied_ports(config_id, uuid)
                if occupied:
                    sfps = ", ".join(occupied[port] for port in sorted(occupied))
                    raise ComponentRemovalError(
                        uuid,
                        f"Cannot remove NIC {uuid}: ports occupied by SFP modules ({sfps}); "
                        "remove the SFP modules first",
                    )
            hosted = sorted(
                slot for slot in config.slot_assignments if slot.startswith(f"riser_{uuid}_pcie_")
            )
            if hosted:
                raise ComponentRemovalError(
                    uuid,
                    f"Cannot remove riser card {uuid}: its slots still hold cards "
                    f"({', '.join(hosted)})",
                )

            released_slot = self._slot_tracker.release(config_id, uuid)
            released_port = None
            if component_type == ComponentType.SFP:
                port = self._port_tracker.release_sfp(config_id, uuid)
                if port is not None:
                    released_port = {"nic_uuid": port[0], "port_index": port[1]}
            self._store.remove_component(config_id, uuid)
        logger.info(f"Released {component_type.value} {uuid} from {config_id}")
        return {"released_slot": released_slot, "released_port": released_port}

    # -- validation ------------------------------------------------------------

    def build_context(self, config_id: str) -> ValidationContext:
        """Snapshot a configuration's components with their specifications."""
        config = self._store.get(config_id)
        components = []
        for recorded in config.components:
            spec = self._lookup.get_component_specs(recorded.component_type, recorded.uuid)
            if spec is None:
                logger.warning(
                    f"No specification for {recorded.component_type.value} {recorded.uuid}; "
                    "validating with an empty spec"
                )
                spec = {}
            components.append(Component(recorded.component_type, recorded.uuid, spec))
        context = ValidationContext.from_components(components)
        context.set_metadata("config_id", config_id)
        return context

    def validate_configuration(
        self,
        config_id_or_context: str | ValidationContext,
        profile: ValidationProfile | str = ValidationProfile.FULL,
        validators: list[str] | None = None,
    ) -> ValidationResult:
        """Run the validator pipeline over a configuration or a prepared context.

        Args:
            config_id_or_context: A configuration id or a ready ValidationContext.
            profile: Named validator profile (ignored when ``validators`` is given).
            validators: Explicit validator names for a custom run.

        Raises:
            ValueError: If the profile is unknown.
            KeyError: If a validator name is unknown.
        """
        if isinstance(config_id_or_context, ValidationContext):
            context = config_id_or_context
        else:
            context = self.build_context(config_id_or_context)

        if validators:
            orchestrator = self._orchestrator_factory.create_custom(validators)
        else:
            orchestrator = self._orchestrator_factory.create(profile)
        return orchestrator.validate(context)

    def list_available_profiles(self) -> list[str]:
        return self._orchestrator_factory.available_profiles()

    def get_profile_description(self, name: str) -> str:
        return self._orchestrator_factory.get_profile_description(name)

    def list_validators(self) -> list[dict[str, Any]]:
        return self._orchestrator_factory.list_validators()

    # -- reports -----------------------------------------------------------------

    def get_slot_report(self, config_id: str) -> dict[str, Any]:
        """Slot pools, port utilization and the assignment sweep for a configuration."""
        with self._locks.lock(config_id):
            return {
                "config_id": config_id,
                "pcie": self._slot_tracker.get_slot_availability(config_id).to_dict(),
                "riser": self._slot_tracker.get_riser_slot_availability(config_id).to_dict(),
                "ports": self._port_tracker.get_port_utilization_for_config(config_id),
                "validation": self._slot_tracker.validate_all_slots(config_id).to_dict(),
            }
