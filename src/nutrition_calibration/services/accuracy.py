"""Accuracy statistics over recorded corrections."""

import math
from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID

from nutrition_calibration.domain.accuracy import (
    AccuracySummary,
    ConfidenceBucket,
    FieldAccuracy,
    FieldBias,
    LocationAccuracy,
    SignificantError,
)
from nutrition_calibration.domain.corrections import CorrectionRecord
from nutrition_calibration.services.corrections import CorrectionRepository


@dataclass
class AccuracyService:
    """Aggregates correction records into accuracy and bias views."""

    repository: CorrectionRepository

    def overall_accuracy_by_field(self) -> list[FieldAccuracy]:
        """Return per-field accuracy, worst field first."""
        return _field_accuracy(self.repository.list_corrections())

    def accuracy_for_user(self, user_id: UUID) -> list[FieldAccuracy]:
        """Return per-field accuracy for one user, worst field first."""
        return _field_accuracy(self.repository.list_user_corrections(user_id))

    def accuracy_by_location(self) -> list[LocationAccuracy]:
        """Return accuracy per (location type, field)."""
        groups: dict[tuple[str, str], list[float]] = defaultdict(list)
        for record in self.repository.list_corrections():
            if record.location_type is None or record.percent_error is None:
                continue
            groups[(record.location_type, record.field_name)].append(
                abs(float(record.percent_error))
            )
        stats = [
            LocationAccuracy(
                location_type=location_type,
                field_name=field_name,
                avg_abs_percent_error=_mean(errors),
                correction_count=len(errors),
            )
            for (location_type, field_name), errors in groups.items()
        ]
        return sorted(
            stats,
            key=lambda s: (s.location_type, -s.avg_abs_percent_error, s.field_name),
        )

    def accuracy_for_location_and_field(
        self, location_type: str, field_name: str
    ) -> float:
        """Return mean absolute percent error for one location and field."""
        return _mean(
            [
                abs(float(record.percent_error))
                for record in self.repository.list_corrections()
                if record.location_type == location_type
                and record.field_name == field_name
                and record.percent_error is not None
            ]
        )

    def detect_systematic_bias(self) -> list[FieldBias]:
        """Return the signed mean percent error per field, largest bias first."""
        groups: dict[str, list[float]] = defaultdict(list)
        for record in self.repository.list_corrections():
            if record.percent_error is None:
                continue
            groups[record.field_name].append(float(record.percent_error))
        biases = [
            FieldBias(field_name=name, bias=_mean(errors), correction_count=len(errors))
            for name, errors in groups.items()
        ]
        return sorted(biases, key=lambda b: (-abs(b.bias), b.field_name))

    def confidence_calibration(self, min_confidence: float) -> float:
        """Return mean absolute percent error for confident predictions.

        Only corrections whose AI confidence is at least ``min_confidence``
        are considered.
        """
        return _mean(
            [
                abs(float(record.percent_error))
                for record in self.repository.list_corrections()
                if record.confidence_score is not None
                and record.confidence_score >= min_confidence
                and record.percent_error is not None
            ]
        )

    def confidence_buckets(self) -> list[ConfidenceBucket]:
        """Return accuracy grouped into 0.1-wide confidence buckets."""
        groups: dict[float, list[float]] = defaultdict(list)
        for record in self.repository.list_corrections():
            if record.confidence_score is None or record.percent_error is None:
                continue
            bucket = math.floor(round(record.confidence_score * 10, 9)) / 10
            groups[bucket].append(abs(float(record.percent_error)))
        return [
            ConfidenceBucket(
                confidence_bucket=bucket,
                avg_abs_percent_error=_mean(errors),
                correction_count=len(errors),
            )
            for bucket, errors in sorted(groups.items())
        ]

    def field_summary(self, field_name: str) -> FieldAccuracy:
        """Return accuracy for a single field."""
        records = [
            r for r in self.repository.list_corrections() if r.field_name == field_name
        ]
        stats = _field_accuracy(records)
        if stats:
            return stats[0]
        return FieldAccuracy(
            field_name=field_name,
            avg_abs_percent_error=0.0,
            correction_count=0,
            mean_absolute_error=0.0,
        )

    def summary(self, user_id: UUID | None = None) -> AccuracySummary:
        """Return headline numbers for all corrections or for one user."""
        records = [r for r in self._records(user_id) if r.percent_error is not None]
        errors = [float(r.percent_error) for r in records]
        mean_signed = _mean(errors)
        variance = _mean([(e - mean_signed) ** 2 for e in errors])
        return AccuracySummary(
            total_corrections=len(records),
            avg_abs_percent_error=_mean([abs(e) for e in errors]),
            error_std_dev=math.sqrt(variance),
            unique_meals_edited=len({r.meal_id for r in records if r.meal_id}),
        )

    def significant_errors(
        self, threshold: float, user_id: UUID | None = None
    ) -> list[SignificantError]:
        """Return corrections at or above ``threshold`` percent error, worst first."""
        flagged = [
            SignificantError(
                id=r.id,
                meal_id=r.meal_id,
                field_name=r.field_name,
                ai_value=float(r.ai_value) if r.ai_value is not None else None,
                user_value=float(r.user_value) if r.user_value is not None else None,
                percent_error=float(r.percent_error),
                confidence_score=r.confidence_score,
                location_type=r.location_type,
                meal_description=r.meal_description,
                corrected_at=r.corrected_at,
            )
            for r in self._records(user_id)
            if r.percent_error is not None and abs(float(r.percent_error)) >= threshold
        ]
        return sorted(flagged, key=lambda e: -abs(e.percent_error))

    def generate_report(self, min_confidence: float = 0.8) -> str:
        """Return a plain-text accuracy report."""
        lines = ["=== AI Accuracy Report ===", "", "Overall Accuracy by Field:"]
        for stat in self.overall_accuracy_by_field():
            lines.append(
                f"  {stat.field_name}: {stat.avg_abs_percent_error:.1f}% error "
                f"(n={stat.correction_count}, MAE={stat.mean_absolute_error:.1f})"
            )

        lines.extend(["", "Accuracy by Location:"])
        for stat in self.accuracy_by_location():
            lines.append(
                f"  {stat.location_type} - {stat.field_name}: "
                f"{stat.avg_abs_percent_error:.1f}% error (n={stat.correction_count})"
            )

        lines.extend(["", "Systematic Bias Detection:"])
        for bias in self.detect_systematic_bias():
            if bias.bias == 0:
                lines.append(f"  {bias.field_name}: AI is unbiased")
                continue
            lines.append(
                f"  {bias.field_name}: AI {bias.direction} by {abs(bias.bias):.1f}%"
            )

        lines.extend(["", "Confidence Calibration:"])
        lines.append(
            f"  confidence >= {min_confidence:.2f}: "
            f"{self.confidence_calibration(min_confidence):.1f}% error"
        )
        return "\n".join(lines) + "\n"

    def _records(self, user_id: UUID | None) -> list[CorrectionRecord]:
        if user_id is None:
            return self.repository.list_corrections()
        return self.repository.list_user_corrections(user_id)


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _field_accuracy(records: list[CorrectionRecord]) -> list[FieldAccuracy]:
    percent: dict[str, list[float]] = defaultdict(list)
    absolute: dict[str, list[float]] = defaultdict(list)
    for record in records:
        if record.percent_error is None:
            continue
        percent[record.field_name].append(abs(float(record.percent_error)))
        if record.absolute_error is not None:
            absolute[record.field_name].append(float(record.absolute_error))
    stats = [
        FieldAccuracy(
            field_name=name,
            avg_abs_percent_error=_mean(errors),
            correction_count=len(errors),
            mean_absolute_error=_mean(absolute[name]),
        )
        for name, errors in percent.items()
    ]
    return sorted(stats, key=lambda s: (-s.avg_abs_percent_error, s.field_name))
