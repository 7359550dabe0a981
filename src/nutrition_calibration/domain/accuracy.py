"""Domain models for AI accuracy statistics."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class FieldAccuracy:
    """Accuracy of AI estimates for one nutrition field."""

    field_name: str
    avg_abs_percent_error: float
    correction_count: int
    mean_absolute_error: float


@dataclass(frozen=True)
class LocationAccuracy:
    """Accuracy for a (location type, field) pair."""

    location_type: str
    field_name: str
    avg_abs_percent_error: float
    correction_count: int


@dataclass(frozen=True)
class FieldBias:
    """Signed mean percent error for a field.

    Positive values mean the AI underestimates the field, negative values mean
    it overestimates.
    """

    field_name: str
    bias: float
    correction_count: int

    @property
    def direction(self) -> str:
        if self.bias > 0:
            return "underestimates"
        if self.bias < 0:
            return "overestimates"
        return "unbiased"


@dataclass(frozen=True)
class ConfidenceBucket:
    """Accuracy of corrections whose AI confidence falls in one 0.1 bucket."""

    confidence_bucket: float
    avg_abs_percent_error: float
    correction_count: int


@dataclass(frozen=True)
class AccuracySummary:
    """Headline accuracy numbers over a set of corrections."""

    total_corrections: int
    avg_abs_percent_error: float
    error_std_dev: float
    unique_meals_edited: int


@dataclass(frozen=True)
class SignificantError:
    """A correction whose percent error crossed a threshold."""

    id: UUID
    meal_id: UUID | None
    field_name: str
    ai_value: float | None
    user_value: float | None
    percent_error: float
    confidence_score: float | None
    location_type: str | None
    meal_description: str | None
    corrected_at: datetime
