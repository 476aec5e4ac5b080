"""FastAPI REST API for server configuration building.

This module provides a REST API for creating configurations, checking and
adding components, and validating builds.

Usage:
    uvicorn serverbuild.web:app --reload
"""

from serverbuild.web.app import app, create_app

__all__ = ["app", "create_app"]
