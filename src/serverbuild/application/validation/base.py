"""Base class shared by the component validators."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, ClassVar

from serverbuild.domain.value_objects import ComponentType

from .result import ValidationResult

if TYPE_CHECKING:
    from .context import ValidationContext

_SEPARATORS = re.compile(r"[-_\s]+")


def normalize_value(value: str | None) -> str:
    """Uppercase a catalog string and strip separators (``"am-5"`` -> ``"AM5"``)."""
    if value is None:
        return ""
    return _SEPARATORS.sub("", str(value)).upper()


def compare_values(left: str | None, right: str | None) -> bool:
    """Trimmed, case-insensitive equality."""
    return (left or "").strip().lower() == (right or "").strip().lower()


class BaseValidator:
    """Default implementation of the Validator protocol.

    Subclasses set ``name`` and ``priority`` and implement ``validate``.
    ``can_run`` defaults to requiring every type listed in ``requires``;
    ``required_components`` reports the same list for diagnostics.

    Priority bands: 100 critical socket checks, 80-89 motherboard/CPU,
    70-79 RAM/storage, 50-69 specialized storage/network, 0-49 accessories
    and the final catch-all.
    """

    name: ClassVar[str] = "base"
    priority: ClassVar[int] = 50
    requires: ClassVar[tuple[ComponentType, ...]] = ()

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    def can_run(self, context: ValidationContext) -> bool:
        return all(context.has_component(ctype) for ctype in self.requires)

    def required_components(self) -> list[ComponentType]:
        return list(self.requires)

    def validate(self, context: ValidationContext) -> ValidationResult:
        raise NotImplementedError

    def log(self, message: str) -> None:
        self.logger.debug(f"[{self.name}] {message}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"
