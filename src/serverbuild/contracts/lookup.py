"""Protocols for the collaborators the core reads from and writes to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from serverbuild.domain.entities import ConfiguredComponent, ServerConfiguration
    from serverbuild.domain.value_objects import ComponentType


@runtime_checkable
class SpecificationLookup(Protocol):
    """Read-only catalog of component specifications keyed by uuid.

    Implementations must be idempotent. ``None`` means the uuid is unknown.
    """

    def get_component_specs(
        self, component_type: ComponentType | str, uuid: str
    ) -> dict[str, Any] | None:
        """Return the raw specification mapping for a component."""
        ...


@runtime_checkable
class ConfigurationStore(Protocol):
    """Storage for configurations, their components and allocation maps."""

    def create(self, name: str = "", config_id: str | None = None) -> ServerConfiguration:
        ...

    def get(self, config_id: str) -> ServerConfiguration:
        ...

    def list_configurations(self) -> list[ServerConfiguration]:
        ...

    def delete(self, config_id: str) -> None:
        ...

    def add_component(
        self, config_id: str, component: ConfiguredComponent
    ) -> ConfiguredComponent:
        ...

    def remove_component(self, config_id: str, uuid: str) -> ConfiguredComponent:
        ...

    def reserve_slot(self, config_id: str, slot_id: str, uuid: str) -> None:
        ...

    def release_slot(self, config_id: str, uuid: str) -> str | None:
        ...

    def assign_port(
        self, config_id: str, nic_uuid: str, port_index: int, sfp_uuid: str
    ) -> None:
        ...

    def release_port(self, config_id: str, sfp_uuid: str) -> tuple[str, int] | None:
        ...
