"""Nutrition domain models."""

from pydantic import BaseModel, ConfigDict

NUTRITION_FIELDS = (
    "calories",
    "protein_g",
    "fat_g",
    "saturated_fat_g",
    "carbohydrates_g",
    "fiber_g",
    "sugar_g",
    "sodium_mg",
    "cholesterol_mg",
)


class NutritionEstimate(BaseModel):
    """Parsed nutrition estimate for a whole meal."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    calories: float | None = None
    protein_g: float | None = None
    fat_g: float | None = None
    saturated_fat_g: float | None = None
    carbohydrates_g: float | None = None
    fiber_g: float | None = None
    sugar_g: float | None = None
    sodium_mg: float | None = None
    cholesterol_mg: float | None = None
    confidence: float | None = None
    description: str | None = None
