"""Service for recording user corrections of AI estimates."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from nutrition_calibration.domain.corrections import (
    CorrectionContext,
    CorrectionRecord,
    Number,
    to_decimal,
)
from nutrition_calibration.domain.nutrition import NUTRITION_FIELDS, NutritionEstimate

_logger = logging.getLogger(__name__)


class CorrectionRepository(Protocol):
    """Append-only store for correction records."""

    def add(self, record: CorrectionRecord) -> None:
        """Persist a correction record."""

    def list_corrections(self) -> list[CorrectionRecord]:
        """Return every stored correction."""

    def list_user_corrections(self, user_id: UUID) -> list[CorrectionRecord]:
        """Return the corrections made by one user."""


@dataclass
class CorrectionService:
    """Creates and stores correction records."""

    repository: CorrectionRepository
    min_difference: Decimal = Decimal("0.01")

    def record_correction(
        self,
        field_name: str,
        ai_value: Number | None,
        user_value: Number | None,
        context: CorrectionContext | None = None,
    ) -> CorrectionRecord:
        """Store a correction for one field and return it."""
        record = CorrectionRecord.create(field_name, ai_value, user_value, context)
        self.repository.add(record)
        _logger.info(
            "Tracked correction for meal %s - %s: AI=%s, user=%s, error=%s%%",
            record.meal_id,
            field_name,
            record.ai_value,
            record.user_value,
            record.percent_error if record.percent_error is not None else "n/a",
        )
        return record

    def track_meal_corrections(
        self,
        ai_estimate: NutritionEstimate,
        user_estimate: NutritionEstimate,
        context: CorrectionContext | None = None,
    ) -> list[CorrectionRecord]:
        """Record a correction for every nutrition field the user changed.

        Fields missing on either side, or changed by no more than
        ``min_difference``, are skipped.
        """
        if context is None:
            context = CorrectionContext(confidence_score=ai_estimate.confidence)
        records = []
        for field_name in NUTRITION_FIELDS:
            ai_value = to_decimal(getattr(ai_estimate, field_name))
            user_value = to_decimal(getattr(user_estimate, field_name))
            if ai_value is None or user_value is None:
                continue
            if abs(ai_value - user_value) <= self.min_difference:
                continue
            records.append(
                self.record_correction(field_name, ai_value, user_value, context)
            )
        return records
