"""Supabase repository for rejected AI estimates."""

from dataclasses import dataclass

from supabase import Client

from nutrition_calibration.domain.validation import ValidationFailure
from nutrition_calibration.services.validation import ValidationFailureRepository


@dataclass
class SupabaseValidationFailureRepository(ValidationFailureRepository):
    """Supabase-backed validation failure log."""

    client: Client

    def add(self, failure: ValidationFailure) -> None:
        """Create a validation failure row."""
        self.client.table("validation_failures").insert(
            {
                "meal_id": str(failure.meal_id) if failure.meal_id else None,
                "issue_count": failure.issue_count,
                "error_count": failure.error_count,
                "warning_count": failure.warning_count,
                "issues": failure.issues,
                "confidence_score": failure.confidence_score,
                "raw_ai_response": failure.raw_ai_response,
                "meal_description": failure.meal_description,
                "failed_at": failure.failed_at.isoformat(),
            }
        ).execute()
