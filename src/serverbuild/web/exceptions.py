"""Error handlers for the REST API."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from serverbuild.application.config import ConfigError
from serverbuild.application.service import ComponentRejectedError, ComponentRemovalError
from serverbuild.infrastructure.store import (
    ComponentNotFoundError,
    ConfigurationNotFoundError,
)


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers with the FastAPI app."""

    @app.exception_handler(ConfigError)
    async def config_error_handler(request: Request, exc: ConfigError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "error": exc.message,
                "error_type": exc.error_type,
                "details": exc.details or None,
            },
        )

    @app.exception_handler(ConfigurationNotFoundError)
    async def configuration_not_found_handler(
        request: Request, exc: ConfigurationNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={
                "error": str(exc),
                "error_type": "not_found",
                "details": {"config_id": exc.config_id},
            },
        )

    @app.exception_handler(ComponentNotFoundError)
    async def component_not_found_handler(
        request: Request, exc: ComponentNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={
                "error": str(exc),
                "error_type": "not_found",
                "details": {"config_id": exc.config_id, "uuid": exc.uuid},
            },
        )

    @app.exception_handler(ComponentRejectedError)
    async def component_rejected_handler(
        request: Request, exc: ComponentRejectedError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={
                "error": str(exc),
                "error_type": "incompatible",
                "details": exc.decision.to_dict(),
            },
        )

    @app.exception_handler(ComponentRemovalError)
    async def component_removal_handler(
        request: Request, exc: ComponentRemovalError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={
                "error": str(exc),
                "error_type": "removal_refused",
                "details": {"uuid": exc.uuid},
            },
        )
