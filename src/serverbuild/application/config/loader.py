"""Build file loader with comprehensive error handling.

A build file is a JSON document naming a configuration, the catalog entries
it needs and the components to place in it. This module reads and validates
it, turning file system, JSON and schema problems into ``ConfigError`` with
actionable messages.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from serverbuild.domain.value_objects import ComponentType

SUPPORTED_SCHEMA_VERSIONS: frozenset[str] = frozenset({"1.0"})


class ConfigError(Exception):
    """Exception raised for build file errors.

    Attributes:
        message: The primary error message
        error_type: Category of error (file_not_found, permission_denied,
            file_read_error, json_parse, validation)
        path: Path to the build file (if applicable)
        details: Additional error details (line/column for JSON, field paths
            for validation errors)
    """

    def __init__(
        self,
        message: str,
        error_type: str = "unknown",
        path: Path | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.message = message
        self.error_type = error_type
        self.path = path
        self.details = details or []
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class BuildComponent(BaseModel):
    """One component entry of a build file."""

    model_config = ConfigDict(extra="forbid")

    type: ComponentType
    uuid: str = Field(..., min_length=1)
    parent_nic_uuid: str | None = None
    port_index: int | None = Field(default=None, ge=1)

    def options(self) -> dict[str, Any]:
        """Placement options passed through to the add operation."""
        options: dict[str, Any] = {}
        if self.parent_nic_uuid is not None:
            options["parent_nic_uuid"] = self.parent_nic_uuid
        if self.port_index is not None:
            options["port_index"] = self.port_index
        return options


class BuildFile(BaseModel):
    """Root model of a build file.

    Example:
        >>> build = BuildFile(
        ...     schema_version="1.0",
        ...     name="web-01",
        ...     components=[BuildComponent(type="cpu", uuid="cpu-1")],
        ... )
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(..., pattern=r"^\d+\.\d+$")
    name: str = ""
    catalog: dict[ComponentType, dict[str, dict[str, Any]]] = Field(default_factory=dict)
    components: list[BuildComponent] = Field(default_factory=list)

    @field_validator("schema_version")
    @classmethod
    def validate_supported_version(cls, v: str) -> str:
        if v not in SUPPORTED_SCHEMA_VERSIONS:
            supported = ", ".join(sorted(SUPPORTED_SCHEMA_VERSIONS))
            raise ValueError(f"Unsupported schema version '{v}'. Supported: {supported}")
        return v

    @model_validator(mode="after")
    def validate_unique_uuids(self) -> "BuildFile":
        seen: set[str] = set()
        for component in self.components:
            if component.uuid in seen:
                raise ValueError(f"Duplicate component uuid '{component.uuid}'")
            seen.add(component.uuid)
        return self

    def catalog_data(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Catalog entries keyed by component type name."""
        return {ctype.value: dict(entries) for ctype, entries in self.catalog.items()}


def _format_json_path(loc: tuple[str | int, ...]) -> str:
    """Format a pydantic location tuple as a JSON path (``components[0].uuid``)."""
    parts: list[str] = []
    for segment in loc:
        if isinstance(segment, int):
            if parts:
                parts[-1] = f"{parts[-1]}[{segment}]"
            else:
                parts.append(f"[{segment}]")
        else:
            parts.append(str(segment))
    return ".".join(parts)


def _extract_validation_errors(error: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {
            "path": _format_json_path(err["loc"]) or "(root)",
            "message": err["msg"],
            "value": err.get("input") if err["loc"] else None,
            "error_type": err["type"],
        }
        for err in error.errors()
    ]


def _format_validation_error_message(details: list[dict[str, Any]]) -> str:
    lines = ["Build file validation failed:"]
    for detail in details:
        value = detail.get("value")
        if value is not None and not isinstance(value, (dict, list)):
            lines.append(f"  - {detail['path']}: {detail['message']} (got: {value!r})")
        else:
            lines.append(f"  - {detail['path']}: {detail['message']}")
    return "\n".join(lines)


def load_build(path: Path) -> BuildFile:
    """Load and validate a build file.

    Args:
        path: Path to the JSON build file

    Returns:
        The validated BuildFile

    Raises:
        ConfigError: If the file cannot be read, parsed or validated; see
            ``error_type`` for the category.
    """
    if not path.exists():
        raise ConfigError(
            message=f"Build file not found: {path}",
            error_type="file_not_found",
            path=path,
        )

    try:
        content = path.read_text(encoding="utf-8")
    except PermissionError:
        raise ConfigError(
            message=f"Permission denied reading build file: {path}",
            error_type="permission_denied",
            path=path,
        ) from None
    except OSError as e:
        raise ConfigError(
            message=f"Error reading build file: {path}: {e}",
            error_type="file_read_error",
            path=path,
        ) from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigError(
            message=(
                f"Invalid JSON in build file: {path} "
                f"(line {e.lineno}, column {e.colno}): {e.msg}"
            ),
            error_type="json_parse",
            path=path,
            details=[{"line": e.lineno, "column": e.colno, "message": e.msg}],
        ) from e

    try:
        return BuildFile.model_validate(data)
    except PydanticValidationError as e:
        details = _extract_validation_errors(e)
        raise ConfigError(
            message=_format_validation_error_message(details),
            error_type="validation",
            path=path,
            details=details,
        ) from e


def load_build_from_dict(data: dict[str, Any]) -> BuildFile:
    """Validate build data that did not come from a file (API requests, tests).

    Raises:
        ConfigError: If the data fails validation.
    """
    try:
        return BuildFile.model_validate(data)
    except PydanticValidationError as e:
        details = _extract_validation_errors(e)
        raise ConfigError(
            message=_format_validation_error_message(details),
            error_type="validation",
            details=details,
        ) from e
