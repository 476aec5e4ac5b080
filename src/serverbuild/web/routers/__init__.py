"""API routers for the REST API."""

from serverbuild.web.routers.configurations import router as configurations_router
from serverbuild.web.routers.profiles import router as profiles_router
from serverbuild.web.routers.validate import router as validate_router

__all__ = [
    "configurations_router",
    "profiles_router",
    "validate_router",
]
