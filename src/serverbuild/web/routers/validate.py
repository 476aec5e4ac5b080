"""Build file validation endpoint."""

from fastapi import APIRouter, HTTPException

from serverbuild.application.builds import validate_build
from serverbuild.application.config import load_build_from_dict
from serverbuild.web.schemas.requests import BuildValidateRequest
from serverbuild.web.schemas.responses import ValidationReportSchema

router = APIRouter(prefix="/validate", tags=["validate"])


@router.post("", response_model=ValidationReportSchema)
async def validate_build_file(
    request: BuildValidateRequest,
) -> ValidationReportSchema:
    """Validate a complete build file without storing it.

    Args:
        request: Request containing the build file and the profile to run.

    Returns:
        Validation report with errors, warnings and infos.

    Raises:
        ConfigError: If the build file is malformed (handled by exception handler).
        HTTPException: If the profile or a validator name is unknown.
    """
    build = load_build_from_dict(request.build)
    try:
        result = validate_build(build, profile=request.profile, validators=request.validators)
    except ValueError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": str(e), "error_type": "unknown_profile"},
        ) from e
    except KeyError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": e.args[0], "error_type": "unknown_validator"},
        ) from e
    return ValidationReportSchema.model_validate(result.to_dict())
