"""Snapshot of the components under validation."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from serverbuild.domain.entities import Component
from serverbuild.domain.specs import ComponentSpec, parse_spec
from serverbuild.domain.value_objects import ComponentType

logger = logging.getLogger(__name__)

_MISSING = object()


class ValidationContext:
    """Components currently in (or proposed for) a configuration.

    Components are grouped by type in insertion order; index 0 is "the"
    instance for singleton types such as motherboard and chassis. A context
    is assembled before orchestration and only read while validators run.

    Dot-path lookups (``get_spec_value``) read the index-0 component of the
    type selected with ``set_component_type``. Resolved values and typed
    specs are cached until the next mutation.
    """

    def __init__(self) -> None:
        self._components: dict[ComponentType, list[dict[str, Any]]] = {}
        self._component_type: ComponentType | None = None
        self._metadata: dict[str, Any] = {}
        self._spec_cache: dict[tuple[ComponentType | None, str], Any] = {}
        self._typed_cache: dict[ComponentType, list[ComponentSpec]] = {}

    @classmethod
    def from_components(cls, components: Iterable[Component]) -> "ValidationContext":
        """Build a context from components, preserving their order per type."""
        context = cls()
        for component in components:
            index = context.count_components(component.component_type)
            data = dict(component.spec)
            data.setdefault("uuid", component.uuid)
            context.add_component(component.component_type, index, data)
        return context

    @property
    def component_type(self) -> ComponentType | None:
        return self._component_type

    def set_component_type(self, component_type: ComponentType | str) -> None:
        """Select the component type used by ``get_spec_value``."""
        self._component_type = ComponentType(component_type)

    def add_component(
        self, component_type: ComponentType | str, index: int, data: Mapping[str, Any]
    ) -> None:
        """Insert or overwrite the component at ``index``.

        Args:
            component_type: Type of the component.
            index: Position within the type; equal to the current count appends.
            data: Raw specification mapping.

        Raises:
            IndexError: If ``index`` would leave a gap in the list.
        """
        component_type = ComponentType(component_type)
        entries = self._components.setdefault(component_type, [])
        if index < 0 or index > len(entries):
            raise IndexError(
                f"Cannot place {component_type.value} at index {index}; "
                f"{len(entries)} present"
            )
        if index == len(entries):
            entries.append(dict(data) if isinstance(data, Mapping) else data)
        else:
            entries[index] = dict(data) if isinstance(data, Mapping) else data
        self.clear_spec_cache()

    def get_component(
        self, component_type: ComponentType | str, index: int = 0
    ) -> dict[str, Any] | None:
        entries = self._components.get(ComponentType(component_type), [])
        if 0 <= index < len(entries):
            return entries[index]
        return None

    def get_components(self, component_type: ComponentType | str) -> list[dict[str, Any]]:
        return list(self._components.get(ComponentType(component_type), []))

    def has_component(self, component_type: ComponentType | str, index: int = 0) -> bool:
        return self.get_component(component_type, index) is not None

    def count_components(self, component_type: ComponentType | str) -> int:
        return len(self._components.get(ComponentType(component_type), []))

    def get_all_components(self) -> dict[ComponentType, list[dict[str, Any]]]:
        return {ctype: list(entries) for ctype, entries in self._components.items()}

    def get_summary(self) -> dict[str, int]:
        """Return component counts keyed by type value."""
        return {
            ctype.value: len(entries)
            for ctype, entries in self._components.items()
            if entries
        }

    def get_spec_value(self, path: str, default: Any = None) -> Any:
        """Navigate the current type's first component by a dot-separated path.

        Returns ``default`` as soon as a segment is missing or the value at
        that point is not a mapping. Both found values and defaults are cached
        by (component type, path) until the next mutation.
        """
        key = (self._component_type, path)
        if key in self._spec_cache:
            return self._spec_cache[key]

        value: Any = _MISSING
        if self._component_type is not None:
            value = self.get_component(self._component_type)
            for segment in path.split("."):
                if not isinstance(value, Mapping) or segment not in value:
                    value = _MISSING
                    break
                value = value[segment]

        resolved = default if value is _MISSING else value
        self._spec_cache[key] = resolved
        return resolved

    def specs(self, component_type: ComponentType | str) -> list[Any]:
        """Typed specifications for every component of a type.

        Raises:
            SpecificationError: If a stored payload cannot be converted.
        """
        component_type = ComponentType(component_type)
        if component_type not in self._typed_cache:
            self._typed_cache[component_type] = [
                parse_spec(component_type, data)
                for data in self._components.get(component_type, [])
            ]
        return list(self._typed_cache[component_type])

    def spec(self, component_type: ComponentType | str, index: int = 0) -> Any:
        """Typed specification of one component, or None when absent."""
        typed = self.specs(component_type)
        return typed[index] if 0 <= index < len(typed) else None

    def clear_spec_cache(self) -> None:
        self._spec_cache.clear()
        self._typed_cache.clear()

    def set_metadata(self, key: str, value: Any) -> None:
        self._metadata[key] = value

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self._metadata.get(key, default)

    def clone(self) -> "ValidationContext":
        """Deep copy of components and metadata with an empty cache."""
        cloned = ValidationContext()
        cloned._components = copy.deepcopy(self._components)
        cloned._metadata = copy.deepcopy(self._metadata)
        cloned._component_type = self._component_type
        return cloned

    def validate_integrity(self) -> dict[str, Any]:
        """Check that every stored entry is a non-empty mapping.

        Returns:
            ``{"valid": bool, "issues": [str, ...]}``
        """
        issues: list[str] = []
        for ctype, entries in self._components.items():
            if not isinstance(entries, list):
                issues.append(f"Component type '{ctype.value}' is not a list")
                continue
            for index, data in enumerate(entries):
                if not isinstance(data, Mapping):
                    issues.append(f"Component '{ctype.value}[{index}]' is not a mapping")
                elif not data:
                    issues.append(f"Component '{ctype.value}[{index}]' is empty")
        if issues:
            logger.warning(f"Context integrity check found {len(issues)} issue(s)")
        return {"valid": not issues, "issues": issues}
