"""Pydantic schemas for the REST API."""

from serverbuild.web.schemas.requests import (
    BuildValidateRequest,
    ComponentRequest,
    ConfigurationCreateRequest,
)
from serverbuild.web.schemas.responses import (
    AdditionDecisionSchema,
    ComponentSchema,
    ConfigurationSchema,
    ErrorResponseSchema,
    ProfileListSchema,
    ProfileSchema,
    ReleaseSchema,
    ValidationReportSchema,
)

__all__ = [
    # Requests
    "BuildValidateRequest",
    "ComponentRequest",
    "ConfigurationCreateRequest",
    # Responses
    "AdditionDecisionSchema",
    "ComponentSchema",
    "ConfigurationSchema",
    "ErrorResponseSchema",
    "ProfileListSchema",
    "ProfileSchema",
    "ReleaseSchema",
    "ValidationReportSchema",
]
