"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from serverbuild.web.exceptions import register_exception_handlers
from serverbuild.web.routers import (
    configurations_router,
    profiles_router,
    validate_router,
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Server Build API",
        description="REST API for checking and validating server hardware configurations",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(validate_router, prefix="/api/v1")
    app.include_router(configurations_router, prefix="/api/v1")
    app.include_router(profiles_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Application instance for ASGI servers (uvicorn)
app = create_app()
