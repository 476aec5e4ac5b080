"""In-memory configuration store."""

from __future__ import annotations

import logging
import threading
import uuid as uuid_lib

from serverbuild.domain.entities import ConfiguredComponent, ServerConfiguration

logger = logging.getLogger(__name__)


class ConfigurationNotFoundError(KeyError):
    """Raised when a configuration id is unknown."""

    def __init__(self, config_id: str) -> None:
        self.config_id = config_id
        super().__init__(config_id)

    def __str__(self) -> str:
        return f"Configuration not found: {self.config_id}"


class ComponentNotFoundError(KeyError):
    """Raised when a component is not recorded in a configuration."""

    def __init__(self, config_id: str, uuid: str) -> None:
        self.config_id = config_id
        self.uuid = uuid
        super().__init__(uuid)

    def __str__(self) -> str:
        return f"Component {self.uuid} not found in configuration {self.config_id}"


class AllocationConflictError(ValueError):
    """Raised when a slot or port is already held by another component."""


class InMemoryConfigurationStore:
    """Configuration store keeping everything in process memory.

    The store enforces one occupant per slot and per NIC port and keeps the
    ``slot_position`` / ``parent_nic_uuid`` / ``port_index`` fields of
    recorded components in step with the allocation maps.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._configurations: dict[str, ServerConfiguration] = {}

    def create(self, name: str = "", config_id: str | None = None) -> ServerConfiguration:
        with self._lock:
            config_id = config_id or uuid_lib.uuid4().hex
            if config_id in self._configurations:
                raise ValueError(f"Configuration {config_id} already exists")
            config = ServerConfiguration(config_id=config_id, name=name)
            self._configurations[config_id] = config
        logger.debug(f"Created configuration {config_id} ({name or 'unnamed'})")
        return config

    def get(self, config_id: str) -> ServerConfiguration:
        with self._lock:
            try:
                return self._configurations[config_id]
            except KeyError:
                raise ConfigurationNotFoundError(config_id) from None

    def list_configurations(self) -> list[ServerConfiguration]:
        with self._lock:
            return list(self._configurations.values())

    def delete(self, config_id: str) -> None:
        with self._lock:
            self.get(config_id)
            del self._configurations[config_id]

    def add_component(
        self, config_id: str, component: ConfiguredComponent
    ) -> ConfiguredComponent:
        with self._lock:
            config = self.get(config_id)
            if config.find(component.uuid) is not None:
                raise ValueError(
                    f"Component {component.uuid} is already in configuration {config_id}"
                )
            config.components.append(component)
        return component

    def remove_component(self, config_id: str, uuid: str) -> ConfiguredComponent:
        """Remove the component record; its slot and port entries are left to the caller."""
        with self._lock:
            config = self.get(config_id)
            component = config.find(uuid)
            if component is None:
                raise ComponentNotFoundError(config_id, uuid)
            config.components.remove(component)
        return component

    def reserve_slot(self, config_id: str, slot_id: str, uuid: str) -> None:
        with self._lock:
            config = self.get(config_id)
            holder = config.slot_assignments.get(slot_id)
            if holder is not None and holder != uuid:
                raise AllocationConflictError(f"Slot {slot_id} is already held by {holder}")
            config.slot_assignments[slot_id] = uuid
            component = config.find(uuid)
            if component is not None:
                component.slot_position = slot_id

    def release_slot(self, config_id: str, uuid: str) -> str | None:
        with self._lock:
            config = self.get(config_id)
            for slot_id, holder in list(config.slot_assignments.items()):
                if holder == uuid:
                    del config.slot_assignments[slot_id]
                    component = config.find(uuid)
                    if component is not None:
                        component.slot_position = None
                    return slot_id
        return None

    def assign_port(
        self, config_id: str, nic_uuid: str, port_index: int, sfp_uuid: str
    ) -> None:
        with self._lock:
            config = self.get(config_id)
            key = (nic_uuid, port_index)
            holder = config.port_assignments.get(key)
            if holder is not None and holder != sfp_uuid:
                raise AllocationConflictError(
                    f"Port {port_index} on NIC {nic_uuid} is already held by {holder}"
                )
            config.port_assignments[key] = sfp_uuid
            component = config.find(sfp_uuid)
            if component is not None:
                component.parent_nic_uuid = nic_uuid
                component.port_index = port_index

    def release_port(self, config_id: str, sfp_uuid: str) -> tuple[str, int] | None:
        with self._lock:
            config = self.get(config_id)
            for key, holder in list(config.port_assignments.items()):
                if holder == sfp_uuid:
                    del config.port_assignments[key]
                    component = config.find(sfp_uuid)
                    if component is not None:
                        component.parent_nic_uuid = None
                        component.port_index = None
                    return key
        return None
