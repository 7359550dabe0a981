"""Tests for correction records and the correction service."""

from decimal import Decimal
from itertools import product
from uuid import uuid4

import pytest

from nutrition_calibration.domain.corrections import (
    CorrectionContext,
    CorrectionRecord,
    compute_errors,
)
from nutrition_calibration.domain.nutrition import NutritionEstimate
from nutrition_calibration.services.corrections import CorrectionService
from tests.conftest import InMemoryCorrectionRepository


def test_underestimate_gives_positive_percent_error() -> None:
    percent, absolute = compute_errors(500, 650)

    assert percent == Decimal("23.08")
    assert absolute == Decimal("150")


def test_overestimate_gives_negative_percent_error() -> None:
    percent, absolute = compute_errors(650, 500)

    assert percent == Decimal("-30.00")
    assert absolute == Decimal("150")


def test_equal_values_give_zero_errors() -> None:
    assert compute_errors("12.5", 12.5) == (Decimal("0.00"), Decimal("0.0"))


@pytest.mark.parametrize(
    ("ai_value", "user_value"), [(None, 10), (10, None), (10, 0)]
)
def test_missing_or_zero_user_value_gives_no_errors(ai_value, user_value) -> None:
    assert compute_errors(ai_value, user_value) == (None, None)


def test_record_coerces_floats_through_str() -> None:
    record = CorrectionRecord(field_name="fat_g", ai_value=0.1, user_value=0.3)

    assert record.ai_value == Decimal("0.1")
    assert record.user_value == Decimal("0.3")
    assert record.absolute_error == Decimal("0.2")


def test_record_correction_stores_context() -> None:
    repository = InMemoryCorrectionRepository()
    service = CorrectionService(repository)
    user_id, meal_id = uuid4(), uuid4()
    context = CorrectionContext(
        user_id=user_id,
        meal_id=meal_id,
        confidence_score=0.85,
        location_type="restaurant",
        meal_type="dinner",
    )

    record = service.record_correction("calories", 500, 650, context)

    assert repository.records == [record]
    assert record.user_id == user_id
    assert record.meal_id == meal_id
    assert record.location_type == "restaurant"
    assert record.percent_error == Decimal("23.08")


def test_track_meal_corrections_only_changed_fields() -> None:
    repository = InMemoryCorrectionRepository()
    service = CorrectionService(repository)
    ai_estimate = NutritionEstimate(
        calories=500, protein_g=20, fat_g=10.005, fiber_g=None, confidence=0.7
    )
    user_estimate = NutritionEstimate(
        calories=650, protein_g=20, fat_g=10, fiber_g=5, carbohydrates_g=40
    )

    records = service.track_meal_corrections(ai_estimate, user_estimate)

    assert [r.field_name for r in records] == ["calories"]
    assert records[0].confidence_score == 0.7
    assert repository.records == records


def test_track_meal_corrections_follows_field_order() -> None:
    repository = InMemoryCorrectionRepository()
    service = CorrectionService(repository)
    ai_estimate = NutritionEstimate(calories=400, sodium_mg=800, protein_g=10)
    user_estimate = NutritionEstimate(calories=450, sodium_mg=1200, protein_g=15)

    records = service.track_meal_corrections(
        ai_estimate, user_estimate, CorrectionContext(user_id=uuid4())
    )

    assert [r.field_name for r in records] == ["calories", "protein_g", "sodium_mg"]


VALUE_GRID = [0, 0.5, 1, "12.25", 999, 1_000_000]


@pytest.mark.parametrize(("ai_value", "user_value"), product(VALUE_GRID, repeat=2))
def test_percent_error_sign_follows_user_minus_ai(ai_value, user_value) -> None:
    percent, absolute = compute_errors(ai_value, user_value)
    ai, user = Decimal(str(ai_value)), Decimal(str(user_value))

    if user == 0:
        assert (percent, absolute) == (None, None)
        return
    assert (percent > 0) == (user > ai)
    assert (percent < 0) == (user < ai)
    assert (percent == 0) == (user == ai)
    assert absolute >= 0


@pytest.mark.parametrize(
    ("first", "second"), product([v for v in VALUE_GRID if v != 0], repeat=2)
)
def test_absolute_error_is_symmetric(first, second) -> None:
    assert compute_errors(first, second)[1] == compute_errors(second, first)[1]
