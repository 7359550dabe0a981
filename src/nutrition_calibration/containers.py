"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from nutrition_calibration.adapters.supabase_correction_repository import (
    SupabaseCorrectionRepository,
)
from nutrition_calibration.adapters.supabase_ingredient_library_repository import (
    SupabaseIngredientLibraryRepository,
)
from nutrition_calibration.adapters.supabase_validation_failure_repository import (
    SupabaseValidationFailureRepository,
)
from nutrition_calibration.config import Settings
from nutrition_calibration.services.accuracy import AccuracyService
from nutrition_calibration.services.corrections import CorrectionService
from nutrition_calibration.services.learning import IngredientLearningService
from nutrition_calibration.services.library import IngredientLibraryService
from nutrition_calibration.services.validation import ValidationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    validation_service: ValidationService
    correction_service: CorrectionService
    accuracy_service: AccuracyService
    learning_service: IngredientLearningService
    library_service: IngredientLibraryService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    correction_repository = SupabaseCorrectionRepository(supabase_client)
    library_repository = SupabaseIngredientLibraryRepository(supabase_client)
    failure_repository = SupabaseValidationFailureRepository(supabase_client)

    validation_service = ValidationService(
        failure_repository=failure_repository,
        energy_mismatch_ratio=resolved_settings.energy_mismatch_ratio,
        macro_slack_ratio=resolved_settings.macro_slack_ratio,
        high_calorie_threshold=resolved_settings.high_calorie_threshold,
        high_sodium_threshold=resolved_settings.high_sodium_threshold,
        high_fiber_threshold=resolved_settings.high_fiber_threshold,
        high_protein_threshold=resolved_settings.high_protein_threshold,
    )
    learning_service = IngredientLearningService(
        repository=library_repository,
        match_threshold=resolved_settings.match_threshold,
        sample_scale=resolved_settings.confidence_sample_scale,
        consistency_threshold=resolved_settings.confidence_consistency_threshold,
        consistency_scale=resolved_settings.confidence_consistency_scale,
        consistency_floor=resolved_settings.confidence_consistency_floor,
        max_retries=resolved_settings.learning_max_retries,
    )

    return AppContainer(
        settings=resolved_settings,
        validation_service=validation_service,
        correction_service=CorrectionService(correction_repository),
        accuracy_service=AccuracyService(correction_repository),
        learning_service=learning_service,
        library_service=IngredientLibraryService(library_repository),
    )
