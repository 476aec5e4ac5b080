"""Validation profile endpoints."""

from fastapi import APIRouter

from serverbuild.web.dependencies import ServiceFactoryDep
from serverbuild.web.schemas.responses import ProfileListSchema, ProfileSchema

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=ProfileListSchema)
async def list_profiles(factory: ServiceFactoryDep) -> ProfileListSchema:
    """List validation profiles with their descriptions and validators."""
    orchestrators = factory.get_orchestrator_factory()
    profiles = [
        ProfileSchema(
            name=name,
            description=orchestrators.get_profile_description(name),
            validators=orchestrators.get_profile_validators(name),
        )
        for name in orchestrators.available_profiles()
    ]
    return ProfileListSchema(profiles=profiles)
