"""Supabase repository for AI correction logs."""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from supabase import Client

from nutrition_calibration.domain.corrections import CorrectionRecord
from nutrition_calibration.services.corrections import CorrectionRepository

_TABLE = "ai_correction_logs"


@dataclass
class SupabaseCorrectionRepository(CorrectionRepository):
    """Supabase implementation for correction records."""

    client: Client

    def add(self, record: CorrectionRecord) -> None:
        """Insert a correction row."""
        percent_error = record.percent_error
        absolute_error = record.absolute_error
        self.client.table(_TABLE).insert(
            {
                "id": str(record.id),
                "user_id": _optional_str(record.user_id),
                "meal_id": _optional_str(record.meal_id),
                "field_name": record.field_name,
                "ai_value": _optional_str(record.ai_value),
                "user_value": _optional_str(record.user_value),
                "percent_error": _optional_str(percent_error),
                "absolute_error": _optional_str(absolute_error),
                "confidence_score": record.confidence_score,
                "location_type": record.location_type,
                "location_place_name": record.location_place_name,
                "meal_type": record.meal_type,
                "meal_description": record.meal_description,
                "ai_analyzed_at": (
                    record.ai_analyzed_at.isoformat() if record.ai_analyzed_at else None
                ),
                "corrected_at": record.corrected_at.isoformat(),
            }
        ).execute()

    def list_corrections(self) -> list[CorrectionRecord]:
        """Return every correction, oldest first."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .order("corrected_at", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def list_user_corrections(self, user_id: UUID) -> list[CorrectionRecord]:
        """Return one user's corrections, oldest first."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("corrected_at", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _optional_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _optional_uuid(value: object) -> UUID | None:
    return UUID(str(value)) if value else None


def _parse_datetime(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_row(row: dict[str, object]) -> CorrectionRecord:
    ai_value = row.get("ai_value")
    user_value = row.get("user_value")
    confidence = row.get("confidence_score")
    return CorrectionRecord(
        id=UUID(str(row["id"])),
        field_name=str(row.get("field_name", "")),
        ai_value=Decimal(str(ai_value)) if ai_value is not None else None,
        user_value=Decimal(str(user_value)) if user_value is not None else None,
        user_id=_optional_uuid(row.get("user_id")),
        meal_id=_optional_uuid(row.get("meal_id")),
        confidence_score=float(confidence) if confidence is not None else None,
        location_type=row.get("location_type"),
        location_place_name=row.get("location_place_name"),
        meal_type=row.get("meal_type"),
        meal_description=row.get("meal_description"),
        ai_analyzed_at=_parse_datetime(row.get("ai_analyzed_at")),
        corrected_at=_parse_datetime(row.get("corrected_at")) or datetime.now(tz=UTC),
    )
