"""Build file loading."""

from .loader import (
    SUPPORTED_SCHEMA_VERSIONS,
    BuildComponent,
    BuildFile,
    ConfigError,
    load_build,
    load_build_from_dict,
)

__all__ = [
    "BuildComponent",
    "BuildFile",
    "ConfigError",
    "SUPPORTED_SCHEMA_VERSIONS",
    "load_build",
    "load_build_from_dict",
]
