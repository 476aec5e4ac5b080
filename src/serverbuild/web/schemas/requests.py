"""Pydantic request schemas for the REST API."""

from typing import Any

from pydantic import BaseModel, Field

from serverbuild.domain.value_objects import ComponentType


class BuildValidateRequest(BaseModel):
    """Request for validating a complete build file."""

    build: dict[str, Any] = Field(..., description="Build file JSON")
    profile: str = Field(default="full", description="Validation profile name")
    validators: list[str] | None = Field(
        default=None, description="Explicit validator names (overrides profile)"
    )


class ConfigurationCreateRequest(BaseModel):
    """Request for creating an empty configuration."""

    name: str = Field(default="", description="Human readable configuration name")
    config_id: str | None = Field(
        default=None, min_length=1, description="Explicit id (generated when omitted)"
    )


class ComponentRequest(BaseModel):
    """Request for checking or adding a component."""

    component_type: ComponentType = Field(..., description="Component type")
    uuid: str = Field(..., min_length=1, description="Catalog uuid of the component")
    parent_nic_uuid: str | None = Field(
        default=None, description="NIC to plug an SFP module into"
    )
    port_index: int | None = Field(default=None, ge=1, description="1-based NIC port")

    def options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.parent_nic_uuid is not None:
            options["parent_nic_uuid"] = self.parent_nic_uuid
        if self.port_index is not None:
            options["port_index"] = self.port_index
        return options
