"""Configuration endpoints: create, inspect, add and remove components, validate."""

from fastapi import APIRouter, HTTPException, status

from serverbuild.domain.value_objects import ComponentType
from serverbuild.web.dependencies import ConfigurationServiceDep
from serverbuild.web.schemas.requests import ComponentRequest, ConfigurationCreateRequest
from serverbuild.web.schemas.responses import (
    AdditionDecisionSchema,
    ConfigurationSchema,
    ReleaseSchema,
    ValidationReportSchema,
)

router = APIRouter(prefix="/configurations", tags=["configurations"])


@router.post("", response_model=ConfigurationSchema, status_code=status.HTTP_201_CREATED)
async def create_configuration(
    request: ConfigurationCreateRequest,
    service: ConfigurationServiceDep,
) -> ConfigurationSchema:
    """Create an empty configuration.

    Raises:
        HTTPException: 409 if a configuration with the given id exists.
    """
    try:
        config = service.create_configuration(name=request.name, config_id=request.config_id)
    except ValueError as e:
        raise HTTPException(
            status_code=409,
            detail={"error": str(e), "error_type": "conflict"},
        ) from e
    return ConfigurationSchema.model_validate(config.to_dict())


@router.get("/{config_id}", response_model=ConfigurationSchema)
async def get_configuration(
    config_id: str,
    service: ConfigurationServiceDep,
) -> ConfigurationSchema:
    """Get a configuration with its components and assignments."""
    return ConfigurationSchema.model_validate(service.get_configuration(config_id).to_dict())


@router.post(
    "/{config_id}/components",
    response_model=AdditionDecisionSchema,
    status_code=status.HTTP_201_CREATED,
)
async def add_component(
    config_id: str,
    request: ComponentRequest,
    service: ConfigurationServiceDep,
) -> AdditionDecisionSchema:
    """Add a component, allocating its slot or NIC port.

    Raises:
        ComponentRejectedError: 409 when incompatible (handled by exception handler).
    """
    decision = service.add_component(
        config_id, request.component_type, request.uuid, **request.options()
    )
    return AdditionDecisionSchema.model_validate(decision.to_dict())


@router.post("/{config_id}/components/check", response_model=AdditionDecisionSchema)
async def check_component(
    config_id: str,
    request: ComponentRequest,
    service: ConfigurationServiceDep,
) -> AdditionDecisionSchema:
    """Check whether a component may be added, without changing anything."""
    decision = service.check_component_addition(
        config_id, request.component_type, request.uuid, **request.options()
    )
    return AdditionDecisionSchema.model_validate(decision.to_dict())


@router.delete("/{config_id}/components/{component_type}/{uuid}", response_model=ReleaseSchema)
async def remove_component(
    config_id: str,
    component_type: ComponentType,
    uuid: str,
    service: ConfigurationServiceDep,
) -> ReleaseSchema:
    """Remove a component and release its slot or port.

    Raises:
        ComponentNotFoundError: 404 (handled by exception handler).
        ComponentRemovalError: 409 (handled by exception handler).
    """
    released = service.release_component(config_id, component_type, uuid)
    return ReleaseSchema.model_validate(released)


@router.get("/{config_id}/validation", response_model=ValidationReportSchema)
async def validate_configuration(
    config_id: str,
    service: ConfigurationServiceDep,
    profile: str = "full",
) -> ValidationReportSchema:
    """Run a validation profile over a stored configuration."""
    try:
        result = service.validate_configuration(config_id, profile=profile)
    except ValueError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": str(e), "error_type": "unknown_profile"},
        ) from e
    return ValidationReportSchema.model_validate(result.to_dict())


@router.get("/{config_id}/slots")
async def get_slot_report(
    config_id: str,
    service: ConfigurationServiceDep,
) -> dict:
    """PCIe and riser slot pools, NIC port utilization and the assignment sweep."""
    service.get_configuration(config_id)
    return service.get_slot_report(config_id)
