"""Supabase implementation for the learned ingredient library."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from nutrition_calibration.domain.ingredients import LibraryIngredient
from nutrition_calibration.errors import ConcurrentUpdateError
from nutrition_calibration.services.learning import IngredientLibraryRepository

_TABLE = "user_ingredient_library"
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseIngredientLibraryRepository(IngredientLibraryRepository):
    """Supabase-backed repository for learned ingredients."""

    client: Client

    def find_by_user_order_by_confidence_desc(
        self, user_id: UUID
    ) -> list[LibraryIngredient]:
        """Return a user's entries, most confident first."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("confidence_score", desc=True)
            .execute()
        )
        return [_parse_ingredient(row) for row in response.data or []]

    def find_by_user_and_normalized_name(
        self, user_id: UUID, normalized_name: str
    ) -> LibraryIngredient | None:
        """Return the entry with an exact normalized name, if present."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("normalized_name", normalized_name)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_ingredient(response.data[0])

    def create(self, entry: LibraryIngredient) -> LibraryIngredient:
        """Insert a new entry and return the stored row."""
        try:
            response = self.client.table(_TABLE).insert(_to_row(entry)).execute()
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise ConcurrentUpdateError(
                    f"Ingredient '{entry.normalized_name}' already exists"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create ingredient entry")
        return _parse_ingredient(response.data[0])

    def update(
        self, entry: LibraryIngredient, expected_version: int
    ) -> LibraryIngredient:
        """Update an entry only if nobody else changed it since it was read."""
        if entry.id is None:
            raise ValueError("Cannot update an ingredient without an id")
        response = (
            self.client.table(_TABLE)
            .update(_to_row(entry))
            .eq("id", str(entry.id))
            .eq("version", expected_version)
            .execute()
        )
        if not response.data:
            raise ConcurrentUpdateError(
                f"Ingredient '{entry.normalized_name}' changed since version "
                f"{expected_version}"
            )
        return _parse_ingredient(response.data[0])


def _to_row(entry: LibraryIngredient) -> dict[str, object]:
    row: dict[str, object] = {
        "user_id": str(entry.user_id),
        "ingredient_name": entry.ingredient_name,
        "normalized_name": entry.normalized_name,
        "ingredient_category": entry.ingredient_category,
        "avg_calories_per_100g": entry.avg_calories_per_100g,
        "avg_protein_per_100g": entry.avg_protein_per_100g,
        "avg_fat_per_100g": entry.avg_fat_per_100g,
        "avg_carbs_per_100g": entry.avg_carbs_per_100g,
        "std_dev_calories": entry.std_dev_calories,
        "m2_calories": entry.m2_calories,
        "sample_size": entry.sample_size,
        "confidence_score": entry.confidence_score,
        "typical_quantity": entry.typical_quantity,
        "typical_unit": entry.typical_unit,
        "last_used": entry.last_used.isoformat() if entry.last_used else None,
        "version": entry.version,
        "calorie_sample_count": entry.calorie_sample_count,
        "protein_sample_count": entry.protein_sample_count,
        "fat_sample_count": entry.fat_sample_count,
        "carbs_sample_count": entry.carbs_sample_count,
    }
    if entry.id is not None:
        row["id"] = str(entry.id)
    return row


def _parse_datetime(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_optional_float(raw: object) -> float | None:
    return float(raw) if raw is not None else None


def _parse_count(
    row: dict[str, object], column: str, mean: float | None, sample_size: int
) -> int:
    raw = row.get(column)
    if raw is not None:
        return int(raw)
    # Rows written before per-nutrient counts existed.
    return sample_size if mean is not None else 0


def _parse_ingredient(row: dict[str, object]) -> LibraryIngredient:
    """Parse a library row into a domain model."""
    sample_size = int(row.get("sample_size") or 0)
    std_dev = float(row.get("std_dev_calories") or 0.0)
    calories = _parse_optional_float(row.get("avg_calories_per_100g"))
    protein = _parse_optional_float(row.get("avg_protein_per_100g"))
    fat = _parse_optional_float(row.get("avg_fat_per_100g"))
    carbs = _parse_optional_float(row.get("avg_carbs_per_100g"))
    calorie_count = _parse_count(row, "calorie_sample_count", calories, sample_size)
    m2_raw = row.get("m2_calories")
    # Rows written before M2 was stored only carry the standard deviation.
    m2 = float(m2_raw) if m2_raw is not None else std_dev**2 * max(calorie_count - 1, 0)
    return LibraryIngredient(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        ingredient_name=str(row.get("ingredient_name", "")),
        normalized_name=str(row.get("normalized_name", "")),
        ingredient_category=row.get("ingredient_category"),
        avg_calories_per_100g=calories,
        avg_protein_per_100g=protein,
        avg_fat_per_100g=fat,
        avg_carbs_per_100g=carbs,
        std_dev_calories=std_dev,
        m2_calories=m2,
        sample_size=sample_size,
        confidence_score=float(row.get("confidence_score") or 0.0),
        typical_quantity=_parse_optional_float(row.get("typical_quantity")),
        typical_unit=row.get("typical_unit"),
        last_used=_parse_datetime(row.get("last_used")),
        created_at=_parse_datetime(row.get("created_at")),
        version=int(row.get("version") or 0),
        calorie_sample_count=calorie_count,
        protein_sample_count=_parse_count(
            row, "protein_sample_count", protein, sample_size
        ),
        fat_sample_count=_parse_count(row, "fat_sample_count", fat, sample_size),
        carbs_sample_count=_parse_count(row, "carbs_sample_count", carbs, sample_size),
    )
