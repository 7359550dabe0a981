"""Domain models for the learned per-user ingredient library."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class IngredientObservation:
    """An ingredient line item as extracted by the AI and possibly corrected."""

    name: str | None
    quantity: float | None
    unit: str | None
    calories: float | None = None
    protein_g: float | None = None
    fat_g: float | None = None
    carbohydrates_g: float | None = None
    category: str | None = None


@dataclass(frozen=True)
class NutritionPer100g:
    """Observation nutrients scaled to a 100 g reference mass."""

    calories: float | None
    protein_g: float | None
    fat_g: float | None
    carbs_g: float | None


@dataclass(frozen=True)
class LibraryIngredient:
    """A learned ingredient profile for one user.

    Running statistics are kept as (count, mean, m2) so that each new
    observation is folded in with constant memory. Each nutrient keeps its
    own count because observations may omit any of them; ``sample_size``
    counts observations.
    """

    id: UUID | None
    user_id: UUID
    ingredient_name: str
    normalized_name: str
    ingredient_category: str | None
    avg_calories_per_100g: float | None
    avg_protein_per_100g: float | None
    avg_fat_per_100g: float | None
    avg_carbs_per_100g: float | None
    std_dev_calories: float
    m2_calories: float
    sample_size: int
    confidence_score: float
    typical_quantity: float | None
    typical_unit: str | None
    last_used: datetime | None
    created_at: datetime | None = None
    version: int = 0
    calorie_sample_count: int = 0
    protein_sample_count: int = 0
    fat_sample_count: int = 0
    carbs_sample_count: int = 0


@dataclass(frozen=True)
class LibraryStats:
    """Summary of a user's ingredient library."""

    total_ingredients: int
    average_confidence: float
    high_confidence_count: int
