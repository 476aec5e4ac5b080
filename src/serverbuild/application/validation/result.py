"""Validation result structures for server configuration validation.

This module provides the result accumulator shared by every validator and the
orchestrator. Results are merged in place so many validators can contribute to
one outcome.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

SYSTEM_CODE = "system"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ValidationIssue:
    """An error or warning entry.

    Attributes:
        message: Human-readable description of the problem
        code: Machine-readable category ("error", "warning", "system", ...)
        timestamp: ISO-8601 time the entry was recorded
    """

    message: str
    code: str
    timestamp: str = field(default_factory=_timestamp)

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "code": self.code, "timestamp": self.timestamp}


@dataclass
class ValidationInfo:
    """A purely descriptive entry that never affects success."""

    message: str
    timestamp: str = field(default_factory=_timestamp)

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "timestamp": self.timestamp}


@dataclass
class ValidationResult:
    """Container for validation errors, warnings and infos.

    ``success`` is derived from the error list: adding an error flips it to
    False and nothing flips it back while errors remain. ``blocking`` is set
    independently and only counts when errors exist (see ``is_blocking``).

    Attributes:
        errors: Failures, each with a code
        warnings: Advisories that never fail validation
        infos: Descriptive entries
        blocking: Whether errors in this result should halt the pipeline
        metadata: Free-form data attached by validators or the orchestrator
    """

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    infos: list[ValidationInfo] = field(default_factory=list)
    blocking: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls) -> "ValidationResult":
        """Create an empty, successful result."""
        return cls()

    @classmethod
    def failure(cls, message: str, code: str = "error") -> "ValidationResult":
        """Create a result holding a single error."""
        return cls().add_error(message, code)

    @classmethod
    def advisory(cls, message: str, code: str = "warning") -> "ValidationResult":
        """Create a successful result holding a single warning."""
        return cls().add_warning(message, code)

    @property
    def success(self) -> bool:
        """True iff no errors have been recorded."""
        return not self.errors

    @property
    def is_valid(self) -> bool:
        """Alias of ``success``."""
        return self.success

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    @property
    def is_blocking(self) -> bool:
        """Blocking only counts when there is something to block on."""
        return self.blocking and self.has_errors

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def info_count(self) -> int:
        return len(self.infos)

    @property
    def exit_code(self) -> int:
        """Get the CLI exit code based on validation status.

        Returns:
            0 if valid with no warnings
            1 if there are errors
            2 if valid but has warnings
        """
        if self.errors:
            return 1
        if self.warnings:
            return 2
        return 0

    def add_error(self, message: str, code: str = "error") -> "ValidationResult":
        """Add an error and return self for chaining."""
        self.errors.append(ValidationIssue(message=message, code=code))
        return self

    def add_warning(self, message: str, code: str = "warning") -> "ValidationResult":
        """Add a warning and return self for chaining."""
        self.warnings.append(ValidationIssue(message=message, code=code))
        return self

    def add_info(self, message: str) -> "ValidationResult":
        """Add an info entry and return self for chaining."""
        self.infos.append(ValidationInfo(message=message))
        return self

    def set_blocking(self, blocking: bool = True) -> "ValidationResult":
        self.blocking = blocking
        return self

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another ValidationResult into this one.

        Entries are concatenated, success is the AND of both (it is derived
        from the combined error list) and blocking is the OR of both.
        Metadata keys from ``other`` win on conflict.
        """
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.infos.extend(other.infos)
        if other.is_blocking:
            self.blocking = True
        self.metadata.update(other.metadata)
        return self

    def set_metadata(self, key: str, value: Any) -> "ValidationResult":
        self.metadata[key] = value
        return self

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def filter_by_code(self, code: str) -> "ValidationResult":
        """Return a new result holding only errors and warnings with ``code``."""
        filtered = ValidationResult()
        filtered.errors = [e for e in self.errors if e.code == code]
        filtered.warnings = [w for w in self.warnings if w.code == code]
        return filtered

    def clear(self) -> "ValidationResult":
        """Remove all entries, metadata and the blocking flag."""
        self.errors.clear()
        self.warnings.clear()
        self.infos.clear()
        self.metadata.clear()
        self.blocking = False
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "blocking": self.is_blocking,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "infos": [i.to_dict() for i in self.infos],
            "counts": {
                "errors": self.error_count,
                "warnings": self.warning_count,
                "infos": self.info_count,
            },
            "metadata": self.metadata,
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def get_report(self) -> str:
        """Render a human-readable report."""
        lines = [
            "=== Validation Report ===",
            f"Status: {'PASSED' if self.success else 'FAILED'}",
            f"Blocking: {'YES' if self.is_blocking else 'NO'}",
            "",
        ]
        if self.errors:
            lines.append(f"ERRORS ({self.error_count}):")
            lines.extend(f"  - [{e.code}] {e.message}" for e in self.errors)
            lines.append("")
        if self.warnings:
            lines.append(f"WARNINGS ({self.warning_count}):")
            lines.extend(f"  - [{w.code}] {w.message}" for w in self.warnings)
            lines.append("")
        if self.infos:
            lines.append(f"INFO ({self.info_count}):")
            lines.extend(f"  - {i.message}" for i in self.infos)
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"
