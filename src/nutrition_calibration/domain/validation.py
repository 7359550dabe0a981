"""Domain models for plausibility validation of nutrition estimates."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID


class Severity(StrEnum):
    """Severity of a validation issue."""

    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in a nutrition estimate."""

    severity: Severity
    field: str
    message: str
    actual_value: float | None = None
    suggested_fix: float | None = None

    @classmethod
    def error(cls, field: str, message: str) -> "ValidationIssue":
        """Create an error-level issue."""
        return cls(severity=Severity.ERROR, field=field, message=message)

    @classmethod
    def warning(cls, field: str, message: str) -> "ValidationIssue":
        """Create a warning-level issue."""
        return cls(severity=Severity.WARNING, field=field, message=message)

    @classmethod
    def error_with_fix(
        cls,
        field: str,
        message: str,
        actual_value: float | None,
        suggested_fix: float | None,
    ) -> "ValidationIssue":
        """Create an error-level issue carrying a suggested value."""
        return cls(
            severity=Severity.ERROR,
            field=field,
            message=message,
            actual_value=actual_value,
            suggested_fix=suggested_fix,
        )

    @classmethod
    def warning_with_fix(
        cls,
        field: str,
        message: str,
        actual_value: float | None,
        suggested_fix: float | None,
    ) -> "ValidationIssue":
        """Create a warning-level issue carrying a suggested value."""
        return cls(
            severity=Severity.WARNING,
            field=field,
            message=message,
            actual_value=actual_value,
            suggested_fix=suggested_fix,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize the issue for JSON storage."""
        return {
            "severity": self.severity.value,
            "field": self.field,
            "message": self.message,
            "actual_value": self.actual_value,
            "suggested_fix": self.suggested_fix,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a nutrition estimate.

    A result is valid iff none of its issues is an ERROR; warnings are
    informational only.
    """

    issues: tuple[ValidationIssue, ...] = ()

    @classmethod
    def success(cls) -> "ValidationResult":
        """Return a result with no issues."""
        return cls()

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> "ValidationResult":
        """Build a result preserving the order of the issues."""
        return cls(issues=tuple(issues))

    @property
    def valid(self) -> bool:
        return not self.has_errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(i.severity is Severity.ERROR for i in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(i.severity is Severity.WARNING for i in self.issues)


@dataclass(frozen=True)
class ValidationFailure:
    """Persisted record of an estimate rejected by validation."""

    meal_id: UUID | None
    issue_count: int
    error_count: int
    warning_count: int
    issues: list[dict[str, object]]
    confidence_score: float | None = None
    raw_ai_response: str | None = None
    meal_description: str | None = None
    failed_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def from_result(  # noqa: PLR0913
        cls,
        result: ValidationResult,
        meal_id: UUID | None,
        confidence_score: float | None = None,
        raw_ai_response: str | None = None,
        meal_description: str | None = None,
    ) -> "ValidationFailure":
        """Summarize a validation result into a failure record."""
        return cls(
            meal_id=meal_id,
            issue_count=len(result.issues),
            error_count=len(result.errors),
            warning_count=len(result.warnings),
            issues=[issue.to_dict() for issue in result.issues],
            confidence_score=confidence_score,
            raw_ai_response=raw_ai_response,
            meal_description=meal_description,
        )
