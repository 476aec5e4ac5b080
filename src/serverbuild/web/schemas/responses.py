"""Pydantic response schemas for the REST API."""

from typing import Any

from pydantic import BaseModel, Field


class ComponentSchema(BaseModel):
    """A component recorded in a configuration."""

    type: str = Field(..., description="Component type")
    uuid: str = Field(..., description="Catalog uuid")
    slot_position: str | None = Field(default=None, description="Occupied slot id")
    parent_nic_uuid: str | None = Field(default=None, description="Parent NIC (SFPs)")
    port_index: int | None = Field(default=None, description="NIC port (SFPs)")
    added_at: str = Field(..., description="ISO-8601 time the component was added")


class PortAssignmentSchema(BaseModel):
    """One occupied NIC port."""

    nic_uuid: str
    port_index: int
    sfp_uuid: str


class ConfigurationSchema(BaseModel):
    """Response describing a configuration."""

    config_id: str = Field(..., description="Configuration id")
    name: str = Field(default="", description="Configuration name")
    components: list[ComponentSchema] = Field(default_factory=list)
    slot_assignments: dict[str, str] = Field(
        default_factory=dict, description="Slot id to component uuid"
    )
    port_assignments: list[PortAssignmentSchema] = Field(default_factory=list)
    summary: dict[str, int] = Field(default_factory=dict, description="Count per type")
    created_at: str = Field(..., description="ISO-8601 creation time")


class PortSchema(BaseModel):
    nic_uuid: str
    port_index: int


class AdditionDecisionSchema(BaseModel):
    """Response for a component check or addition."""

    component_type: str
    uuid: str
    compatible: bool = Field(..., description="Whether the component may be added")
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    details: list[str] = Field(default_factory=list)
    assigned_slot: str | None = Field(default=None, description="Slot taken or planned")
    assigned_port: PortSchema | None = Field(default=None, description="Port taken or planned")
    sfp_assignment: dict[str, Any] | None = Field(
        default=None, description="Held SFP modules placed on a newly added NIC"
    )


class ReleaseSchema(BaseModel):
    """Response for a component removal."""

    released_slot: str | None = None
    released_port: PortSchema | None = None


class ValidationIssueSchema(BaseModel):
    message: str
    code: str
    timestamp: str


class ValidationInfoSchema(BaseModel):
    message: str
    timestamp: str


class ValidationReportSchema(BaseModel):
    """Response for configuration validation."""

    success: bool = Field(..., description="True when no errors were recorded")
    blocking: bool = Field(..., description="Whether an error halted the pipeline")
    errors: list[ValidationIssueSchema] = Field(default_factory=list)
    warnings: list[ValidationIssueSchema] = Field(default_factory=list)
    infos: list[ValidationInfoSchema] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProfileSchema(BaseModel):
    """Single validation profile."""

    name: str = Field(..., description="Profile name")
    description: str = Field(..., description="Profile description")
    validators: list[str] = Field(default_factory=list, description="Validators it runs")


class ProfileListSchema(BaseModel):
    """Response listing validation profiles."""

    profiles: list[ProfileSchema]


class ErrorResponseSchema(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
    error_type: str = Field(..., description="Error type identifier")
    details: list[dict[str, Any]] | dict[str, Any] | None = Field(
        default=None, description="Additional error details"
    )
