"""Outcome of a single compatibility check."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CompatibilityResult:
    """Whether a candidate component may join a configuration, and why.

    ``compatible`` turns False on the first issue and never back. Warnings
    and recommendations are advisory.

    Attributes:
        compatible: False when any issue was recorded.
        issues: Reasons the component is rejected.
        warnings: Advisories that do not reject the component.
        recommendations: Suggested follow-up actions.
        details: Descriptive notes about what was checked.
        compatibility_summary: One-line outcome; derived when left empty.
    """

    compatible: bool = True
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    details: list[str] = field(default_factory=list)
    compatibility_summary: str = ""

    def add_issue(self, message: str, recommendation: str | None = None) -> "CompatibilityResult":
        self.issues.append(message)
        self.compatible = False
        if recommendation:
            self.recommendations.append(recommendation)
        return self

    def add_warning(self, message: str) -> "CompatibilityResult":
        self.warnings.append(message)
        return self

    def add_recommendation(self, message: str) -> "CompatibilityResult":
        if message not in self.recommendations:
            self.recommendations.append(message)
        return self

    def add_detail(self, message: str) -> "CompatibilityResult":
        self.details.append(message)
        return self

    def merge(self, other: "CompatibilityResult") -> "CompatibilityResult":
        self.compatible = self.compatible and other.compatible
        self.issues.extend(other.issues)
        self.warnings.extend(other.warnings)
        for recommendation in other.recommendations:
            self.add_recommendation(recommendation)
        self.details.extend(other.details)
        return self

    def summarize(self) -> "CompatibilityResult":
        """Fill ``compatibility_summary`` from the outcome unless already set."""
        if not self.compatibility_summary:
            if not self.compatible:
                self.compatibility_summary = "Incompatible - see issues"
            elif self.warnings:
                self.compatibility_summary = "Compatible with warnings"
            else:
                self.compatibility_summary = "Compatible"
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "compatible": self.compatible,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
            "details": list(self.details),
            "compatibility_summary": self.compatibility_summary,
        }
