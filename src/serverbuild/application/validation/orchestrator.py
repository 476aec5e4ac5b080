"""Priority-ordered execution of validators over a ValidationContext."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from serverbuild.domain.value_objects import ComponentType

from .result import SYSTEM_CODE, ValidationResult

if TYPE_CHECKING:
    from serverbuild.contracts.validators import Validator

    from .context import ValidationContext

logger = logging.getLogger(__name__)

# Priority bands for get_validation_summary, inclusive
PRIORITY_BANDS: dict[str, tuple[int, int]] = {
    "critical": (80, 100),
    "high": (60, 79),
    "medium": (40, 59),
    "low": (0, 39),
}


def _empty_metrics(total: int) -> dict[str, Any]:
    return {
        "total_validators": total,
        "executed_validators": 0,
        "skipped_validators": 0,
        "errors": 0,
        "warnings": 0,
        "infos": 0,
        "execution_time_ms": 0.0,
    }


class ValidatorOrchestrator:
    """Runs validators in descending priority and aggregates their results.

    Validators are sorted once at construction; the sort is stable so equal
    priorities keep the order they were supplied in. Execution stops at the
    first blocking result or the first validator that raises; validators
    left unrun are reported as skipped.

    Example:
        orchestrator = ValidatorOrchestrator([SocketCompatibilityValidator(), CPUValidator()])
        result = orchestrator.validate(context)
        print(result.get_metadata("orchestrator_metrics"))
    """

    def __init__(self, validators: list[Validator]) -> None:
        self._validators: list[Validator] = sorted(validators, key=lambda v: -v.priority)
        self._metrics: dict[str, Any] = _empty_metrics(len(self._validators))

    @property
    def validators(self) -> list[Validator]:
        return list(self._validators)

    @property
    def metrics(self) -> dict[str, Any]:
        return dict(self._metrics)

    def validate(self, context: ValidationContext) -> ValidationResult:
        """Run every applicable validator against the context.

        Args:
            context: The components to validate.

        Returns:
            The merged result, with ``orchestrator_metrics``,
            ``executed_validators`` and ``skipped_validators`` metadata.
        """
        self._metrics = _empty_metrics(len(self._validators))
        result, executed, skipped = self._run(context, self._validators, track=True)

        result.set_metadata("orchestrator_metrics", dict(self._metrics))
        result.set_metadata("executed_validators", executed)
        result.set_metadata("skipped_validators", skipped)
        return result

    def validate_component(
        self, context: ValidationContext, component_type: ComponentType | str
    ) -> ValidationResult:
        """Run only the validators that declare ``component_type`` as required."""
        component_type = ComponentType(component_type)
        relevant = [
            v for v in self._validators if component_type in v.required_components()
        ]
        result, _, _ = self._run(context, relevant, track=False)
        return result

    def _run(
        self,
        context: ValidationContext,
        validators: list[Validator],
        track: bool,
    ) -> tuple[ValidationResult, list[str], list[str]]:
        result = ValidationResult()
        executed: list[str] = []
        skipped: list[str] = []
        started = time.perf_counter()

        for index, validator in enumerate(validators):
            name = validator.name
            try:
                if not validator.can_run(context):
                    skipped.append(name)
                    logger.debug(f"Skipped: {name}")
                    continue
                logger.debug(f"Running: {name} (priority: {validator.priority})")
                validator_result = validator.validate(context)
            except Exception as e:
                logger.error(f"Exception in validator '{name}': {e}", exc_info=True)
                result.add_error(f"Validator exception: {name}", code=SYSTEM_CODE)
                result.set_blocking()
                skipped.extend(v.name for v in validators[index:])
                break

            result.merge(validator_result)
            executed.append(name)
            if track:
                self._metrics["executed_validators"] += 1
                self._metrics["errors"] += validator_result.error_count
                self._metrics["warnings"] += validator_result.warning_count
                self._metrics["infos"] += validator_result.info_count
            if validator_result.is_blocking:
                logger.info(f"Blocking error in {name} - stopping validation")
                skipped.extend(v.name for v in validators[index + 1 :])
                break

        if track:
            self._metrics["skipped_validators"] = len(skipped)
            self._metrics["execution_time_ms"] = round(
                (time.perf_counter() - started) * 1000, 2
            )
        return result, executed, skipped

    def get_validator(self, name: str) -> Validator | None:
        for validator in self._validators:
            if validator.name == name:
                return validator
        return None

    def get_validators_by_priority(self, minimum: int, maximum: int) -> list[Validator]:
        """Validators whose priority lies in ``[minimum, maximum]``."""
        return [v for v in self._validators if minimum <= v.priority <= maximum]

    def get_execution_report(self) -> str:
        lines = [
            "=== Validator Orchestrator Report ===",
            f"Total Validators: {self._metrics['total_validators']}",
            f"Executed: {self._metrics['executed_validators']}",
            f"Skipped: {self._metrics['skipped_validators']}",
            f"Errors: {self._metrics['errors']}",
            f"Warnings: {self._metrics['warnings']}",
            f"Execution Time: {self._metrics['execution_time_ms']}ms",
            "",
            "Validators by Priority:",
        ]
        lines.extend(f"  [{v.priority:3d}] {v.name}" for v in self._validators)
        return "\n".join(lines) + "\n"

    def validate_dependencies(self, context: ValidationContext) -> list[dict[str, Any]]:
        """Report, per validator, which required component types are missing."""
        report = []
        for validator in self._validators:
            required = validator.required_components()
            missing = [ctype for ctype in required if not context.has_component(ctype)]
            report.append(
                {
                    "validator": validator.name,
                    "required_components": [ctype.value for ctype in required],
                    "missing_components": [ctype.value for ctype in missing],
                    "dependencies_met": not missing,
                }
            )
        return report

    def get_validation_summary(self) -> dict[str, dict[str, Any]]:
        """Group validators into priority bands."""
        summary = {}
        for band, (low, high) in PRIORITY_BANDS.items():
            members = self.get_validators_by_priority(low, high)
            summary[band] = {
                "count": len(members),
                "validators": [{"name": v.name, "priority": v.priority} for v in members],
            }
        return summary
