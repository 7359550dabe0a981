"""Plausibility validation for AI-generated nutrition estimates.

Checks run in a fixed order:

1. Energy balance against the Atwater factors (warning only).
2. A single macro supplying more energy than the whole meal.
3. Fiber above total carbohydrates.
4. Sugar above total carbohydrates.
5. Saturated fat above total fat.
6. Statistical outliers (warnings).
"""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutrition_calibration.domain.nutrition import NutritionEstimate
from nutrition_calibration.domain.validation import (
    ValidationFailure,
    ValidationIssue,
    ValidationResult,
)

PROTEIN_KCAL_PER_G = 4.0
FAT_KCAL_PER_G = 9.0
CARB_KCAL_PER_G = 4.0

_logger = logging.getLogger(__name__)


class ValidationFailureRepository(Protocol):
    """Persistence interface for rejected estimates."""

    def add(self, failure: ValidationFailure) -> None:
        """Store a validation failure."""


@dataclass
class ValidationService:
    """Stateless checker for nutrition estimates."""

    failure_repository: ValidationFailureRepository | None = None
    energy_mismatch_ratio: float = 0.20
    macro_slack_ratio: float = 1.10
    high_calorie_threshold: float = 2500.0
    high_sodium_threshold: float = 3000.0
    high_fiber_threshold: float = 30.0
    high_protein_threshold: float = 150.0

    def validate(self, estimate: NutritionEstimate) -> ValidationResult:
        """Run every check and return the collected issues."""
        issues: list[ValidationIssue] = []
        issues.extend(self._check_energy_balance(estimate))
        issues.extend(self._check_macro_ratios(estimate))
        issues.extend(
            _check_subset(
                "fiber_g",
                "Fiber",
                estimate.fiber_g,
                "total carbohydrates",
                estimate.carbohydrates_g,
            )
        )
        issues.extend(
            _check_subset(
                "sugar_g",
                "Sugar",
                estimate.sugar_g,
                "total carbohydrates",
                estimate.carbohydrates_g,
            )
        )
        issues.extend(
            _check_subset(
                "saturated_fat_g",
                "Saturated fat",
                estimate.saturated_fat_g,
                "total fat",
                estimate.fat_g,
            )
        )
        issues.extend(self._check_outliers(estimate))

        result = ValidationResult.from_issues(issues)
        if not result.valid:
            _logger.warning(
                "Validation failed with %s errors and %s warnings",
                len(result.errors),
                len(result.warnings),
            )
        elif result.has_warnings:
            _logger.info("Validation passed with %s warnings", len(result.warnings))
        return result

    def review(
        self,
        estimate: NutritionEstimate,
        meal_id: UUID | None = None,
        raw_ai_response: str | None = None,
    ) -> ValidationResult:
        """Validate an estimate and record a failure when it is rejected."""
        result = self.validate(estimate)
        if not result.valid:
            for error in result.errors:
                _logger.error("Meal %s: %s - %s", meal_id, error.field, error.message)
            if self.failure_repository is not None:
                self.failure_repository.add(
                    ValidationFailure.from_result(
                        result,
                        meal_id=meal_id,
                        confidence_score=estimate.confidence,
                        raw_ai_response=raw_ai_response,
                        meal_description=estimate.description,
                    )
                )
            return result

        for warning in result.warnings:
            _logger.warning(
                "Meal %s: %s - %s", meal_id, warning.field, warning.message
            )
        return result

    def _check_energy_balance(
        self, estimate: NutritionEstimate
    ) -> list[ValidationIssue]:
        calories = estimate.calories
        protein = estimate.protein_g
        fat = estimate.fat_g
        carbs = estimate.carbohydrates_g
        if calories is None or protein is None or fat is None or carbs is None:
            return []

        expected = (
            protein * PROTEIN_KCAL_PER_G + fat * FAT_KCAL_PER_G + carbs * CARB_KCAL_PER_G
        )
        # Negative macro energy gives a negative ratio, which never warns.
        if expected == 0:
            mismatch = calories != 0
            percent_diff = None
        else:
            ratio = abs(calories - expected) / expected
            mismatch = ratio > self.energy_mismatch_ratio
            percent_diff = ratio * 100.0
        if not mismatch:
            return []

        detail = f" ({percent_diff:.1f}% difference)" if percent_diff is not None else ""
        return [
            ValidationIssue.warning_with_fix(
                "calories",
                f"Energy mismatch: claimed {calories:.0f} kcal but macros add up "
                f"to {expected:.0f} kcal{detail}",
                actual_value=calories,
                suggested_fix=expected,
            )
        ]

    def _check_macro_ratios(self, estimate: NutritionEstimate) -> list[ValidationIssue]:
        calories = estimate.calories
        if calories is None or calories <= 0:
            return []

        limit = calories * self.macro_slack_ratio
        issues = []
        for field, label, grams, factor in (
            ("protein_g", "Protein", estimate.protein_g, PROTEIN_KCAL_PER_G),
            ("fat_g", "Fat", estimate.fat_g, FAT_KCAL_PER_G),
            ("carbohydrates_g", "Carbohydrates", estimate.carbohydrates_g, CARB_KCAL_PER_G),
        ):
            if grams is None:
                continue
            macro_calories = grams * factor
            if macro_calories > limit:
                issues.append(
                    ValidationIssue.error(
                        field,
                        f"{label} alone provides {macro_calories:.0f} kcal, which "
                        f"exceeds total calories ({calories:.0f} kcal)",
                    )
                )
        return issues

    def _check_outliers(self, estimate: NutritionEstimate) -> list[ValidationIssue]:
        issues = []
        if estimate.calories is not None and estimate.calories > self.high_calorie_threshold:
            issues.append(
                ValidationIssue.warning(
                    "calories",
                    f"Very high calorie count ({estimate.calories:.0f} kcal) - verify "
                    "this is a large meal or multiple servings",
                )
            )
        if estimate.sodium_mg is not None and estimate.sodium_mg > self.high_sodium_threshold:
            issues.append(
                ValidationIssue.warning(
                    "sodium_mg",
                    f"Very high sodium ({estimate.sodium_mg:.0f} mg) - typical of "
                    "restaurant or heavily processed food",
                )
            )
        if estimate.fiber_g is not None and estimate.fiber_g > self.high_fiber_threshold:
            issues.append(
                ValidationIssue.warning(
                    "fiber_g",
                    f"Very high fiber ({estimate.fiber_g:.1f} g) - verify this is a "
                    "large vegetable-heavy meal",
                )
            )
        if (
            estimate.protein_g is not None
            and estimate.protein_g > self.high_protein_threshold
        ):
            issues.append(
                ValidationIssue.warning(
                    "protein_g",
                    f"Very high protein ({estimate.protein_g:.1f} g) - verify this "
                    "is accurate",
                )
            )
        return issues


def _check_subset(
    field: str,
    label: str,
    part: float | None,
    whole_label: str,
    whole: float | None,
) -> list[ValidationIssue]:
    """Flag a nutrient that exceeds the total it is a subset of."""
    if part is None or whole is None or part <= whole:
        return []
    return [
        ValidationIssue.error(
            field,
            f"{label} ({part:.1f} g) cannot exceed {whole_label} ({whole:.1f} g)",
        )
    ]
