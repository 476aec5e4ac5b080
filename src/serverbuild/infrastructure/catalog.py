"""In-memory component specification catalog."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from serverbuild.domain.value_objects import ComponentType

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when a catalog file cannot be read or has the wrong shape."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class InMemoryCatalog:
    """Specification lookup backed by a ``{type: {uuid: spec}}`` mapping.

    Example:
        catalog = InMemoryCatalog({"cpu": {"cpu-1": {"socket": "AM5"}}})
        catalog.get_component_specs("cpu", "cpu-1")
    """

    def __init__(self, data: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None) -> None:
        self._specs: dict[ComponentType, dict[str, dict[str, Any]]] = {}
        for type_name, entries in (data or {}).items():
            component_type = ComponentType(type_name)
            for uuid, spec in entries.items():
                self.add(component_type, uuid, spec)

    @classmethod
    def from_json_file(cls, path: Path | str) -> "InMemoryCatalog":
        """Load a catalog from a JSON file of the same shape.

        Raises:
            CatalogError: If the file is missing, unreadable or malformed.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise CatalogError(f"Catalog file not found: {path}", path) from e
        except json.JSONDecodeError as e:
            raise CatalogError(f"Invalid JSON in catalog {path}: {e.msg}", path) from e
        except OSError as e:
            raise CatalogError(f"Cannot read catalog {path}: {e}", path) from e
        if not isinstance(data, dict):
            raise CatalogError(f"Catalog {path} must be a JSON object", path)
        try:
            return cls(data)
        except (ValueError, AttributeError) as e:
            raise CatalogError(f"Malformed catalog {path}: {e}", path) from e

    def add(self, component_type: ComponentType | str, uuid: str, spec: Mapping[str, Any]) -> None:
        """Add or replace one specification."""
        component_type = ComponentType(component_type)
        entries = self._specs.setdefault(component_type, {})
        if uuid in entries:
            logger.debug(f"Replacing catalog entry {component_type.value}/{uuid}")
        entries[uuid] = dict(spec)

    def get_component_specs(
        self, component_type: ComponentType | str, uuid: str
    ) -> dict[str, Any] | None:
        try:
            component_type = ComponentType(component_type)
        except ValueError:
            return None
        spec = self._specs.get(component_type, {}).get(uuid)
        return dict(spec) if spec is not None else None

    def uuids(self, component_type: ComponentType | str) -> list[str]:
        return list(self._specs.get(ComponentType(component_type), {}))

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._specs.values())
