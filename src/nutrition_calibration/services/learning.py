"""Learn per-user ingredient profiles from corrected meals.

Each corrected ingredient is scaled to 100 g and folded into the user's
library entry with a running (Welford) mean and variance. Entries are
matched by normalized name within a small edit distance, so spelling
variants accumulate into one profile.
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutrition_calibration.domain.ingredients import (
    IngredientObservation,
    LibraryIngredient,
    NutritionPer100g,
)
from nutrition_calibration.errors import ConcurrentUpdateError
from nutrition_calibration.services.normalization import (
    DEFAULT_MATCH_THRESHOLD,
    find_best_match,
    normalize,
    normalize_unit,
)

_logger = logging.getLogger(__name__)

GRAMS_PER_UNIT: dict[str, float] = {
    "g": 1.0,
    "kg": 1000.0,
    "oz": 28.35,
    "lb": 453.59,
    # Volumes assume the density of water.
    "ml": 1.0,
    "l": 1000.0,
    "cup": 240.0,
    "tbsp": 15.0,
    "tsp": 5.0,
    # Rough per-count weights.
    "piece": 50.0,
    "item": 50.0,
    "slice": 30.0,
    "serving": 100.0,
}


class IngredientLibraryRepository(Protocol):
    """Persistence interface for learned ingredient entries."""

    def find_by_user_order_by_confidence_desc(
        self, user_id: UUID
    ) -> list[LibraryIngredient]:
        """Return a user's entries, most confident first."""

    def find_by_user_and_normalized_name(
        self, user_id: UUID, normalized_name: str
    ) -> LibraryIngredient | None:
        """Return the entry with an exact normalized name, if present."""

    def create(self, entry: LibraryIngredient) -> LibraryIngredient:
        """Insert a new entry.

        Raises ConcurrentUpdateError when the (user, normalized name) pair
        already exists.
        """

    def update(
        self, entry: LibraryIngredient, expected_version: int
    ) -> LibraryIngredient:
        """Replace an entry if its stored version still equals ``expected_version``.

        Raises ConcurrentUpdateError otherwise.
        """


def estimate_weight_grams(quantity: float | None, unit: str | None) -> float | None:
    """Return the approximate weight in grams, or None for unknown units."""
    if quantity is None or quantity <= 0:
        return None
    grams_per_unit = GRAMS_PER_UNIT.get(normalize_unit(unit))
    if grams_per_unit is None:
        return None
    return quantity * grams_per_unit


def to_per_100g(observation: IngredientObservation, grams: float) -> NutritionPer100g:
    """Scale observed nutrients to a 100 g reference mass."""
    factor = 100.0 / grams

    def scale(value: float | None) -> float | None:
        return value * factor if value is not None else None

    return NutritionPer100g(
        calories=scale(observation.calories),
        protein_g=scale(observation.protein_g),
        fat_g=scale(observation.fat_g),
        carbs_g=scale(observation.carbohydrates_g),
    )


def welford_update(
    count: int, mean: float, m2: float, value: float
) -> tuple[float, float]:
    """Fold ``value`` into a running mean and M2 built from ``count`` samples."""
    new_count = count + 1
    delta = value - mean
    new_mean = mean + delta / new_count
    new_m2 = m2 + delta * (value - new_mean)
    return new_mean, new_m2


def sample_std_dev(count: int, m2: float) -> float:
    """Return the sample standard deviation for a Welford M2."""
    if count < 2:
        return 0.0
    return math.sqrt(max(m2, 0.0) / (count - 1))


def calculate_confidence(  # noqa: PLR0913
    sample_size: int,
    std_dev: float,
    sample_scale: float = 5.0,
    consistency_threshold: float = 5.0,
    consistency_scale: float = 25.0,
    consistency_floor: float = 0.3,
) -> float:
    """Return a confidence score in [0, 1].

    Grows with the number of samples and shrinks as calorie readings spread
    beyond ``consistency_threshold`` kcal/100 g.
    """
    if sample_size <= 0:
        return 0.0
    sample_factor = 1.0 - math.exp(-sample_size / sample_scale)
    if std_dev <= consistency_threshold:
        consistency = 1.0
    else:
        consistency = max(
            consistency_floor,
            1.0 / (1.0 + (std_dev - consistency_threshold) / consistency_scale),
        )
    return min(1.0, max(0.0, sample_factor * consistency))


@dataclass
class IngredientLearningService:
    """Maintains each user's learned ingredient library."""

    repository: IngredientLibraryRepository
    match_threshold: int = DEFAULT_MATCH_THRESHOLD
    sample_scale: float = 5.0
    consistency_threshold: float = 5.0
    consistency_scale: float = 25.0
    consistency_floor: float = 0.3
    quantity_history_weight: float = 0.7
    max_retries: int = 3

    def learn_from_correction(
        self, observation: IngredientObservation | None, user_id: UUID
    ) -> LibraryIngredient | None:
        """Fold one observed ingredient into the user's library.

        Returns the stored entry, or None when the observation was skipped
        or could not be saved after ``max_retries`` conflicting attempts.
        """
        if observation is None:
            return None
        if observation.quantity is None or observation.quantity <= 0:
            _logger.debug("Skipping '%s': no usable quantity", observation.name)
            return None
        if observation.unit is None or not observation.unit.strip():
            _logger.debug("Skipping '%s': no unit", observation.name)
            return None
        normalized_name = normalize(observation.name)
        if not normalized_name:
            _logger.debug("Skipping ingredient with blank name")
            return None
        grams = estimate_weight_grams(observation.quantity, observation.unit)
        if grams is None:
            _logger.debug(
                "Skipping '%s': unknown unit '%s'", observation.name, observation.unit
            )
            return None

        per_100g = to_per_100g(observation, grams)
        for attempt in range(1, self.max_retries + 1):
            try:
                return self._learn(observation, normalized_name, per_100g, user_id)
            except ConcurrentUpdateError:
                _logger.warning(
                    "Concurrent update of '%s' for user %s (attempt %s/%s)",
                    normalized_name,
                    user_id,
                    attempt,
                    self.max_retries,
                )
        _logger.error(
            "Giving up learning '%s' for user %s after %s attempts",
            normalized_name,
            user_id,
            self.max_retries,
        )
        return None

    def _learn(
        self,
        observation: IngredientObservation,
        normalized_name: str,
        per_100g: NutritionPer100g,
        user_id: UUID,
    ) -> LibraryIngredient:
        candidates = self.repository.find_by_user_order_by_confidence_desc(user_id)
        match = find_best_match(normalized_name, candidates, self.match_threshold)
        if match is None:
            entry = self._new_entry(observation, normalized_name, per_100g, user_id)
            created = self.repository.create(entry)
            _logger.info(
                "Added '%s' to library for user %s", normalized_name, user_id
            )
            return created

        entry = self._merge(match, observation, per_100g)
        updated = self.repository.update(entry, expected_version=match.version)
        _logger.info(
            "Updated '%s' for user %s: n=%s, confidence=%.2f",
            match.normalized_name,
            user_id,
            updated.sample_size,
            updated.confidence_score,
        )
        return updated

    def _new_entry(
        self,
        observation: IngredientObservation,
        normalized_name: str,
        per_100g: NutritionPer100g,
        user_id: UUID,
    ) -> LibraryIngredient:
        now = datetime.now(tz=UTC)
        return LibraryIngredient(
            id=None,
            user_id=user_id,
            ingredient_name=_display_name(observation, normalized_name),
            normalized_name=normalized_name,
            ingredient_category=observation.category,
            avg_calories_per_100g=per_100g.calories,
            avg_protein_per_100g=per_100g.protein_g,
            avg_fat_per_100g=per_100g.fat_g,
            avg_carbs_per_100g=per_100g.carbs_g,
            std_dev_calories=0.0,
            m2_calories=0.0,
            sample_size=1,
            confidence_score=self._confidence(1, 0.0),
            typical_quantity=observation.quantity,
            typical_unit=observation.unit,
            last_used=now,
            created_at=now,
            calorie_sample_count=_present(per_100g.calories),
            protein_sample_count=_present(per_100g.protein_g),
            fat_sample_count=_present(per_100g.fat_g),
            carbs_sample_count=_present(per_100g.carbs_g),
        )

    def _merge(
        self,
        existing: LibraryIngredient,
        observation: IngredientObservation,
        per_100g: NutritionPer100g,
    ) -> LibraryIngredient:
        calorie_count = existing.calorie_sample_count
        calories = existing.avg_calories_per_100g
        m2 = existing.m2_calories
        if per_100g.calories is not None:
            if calories is None or calorie_count == 0:
                calories, m2 = per_100g.calories, 0.0
            else:
                calories, m2 = welford_update(
                    calorie_count, calories, m2, per_100g.calories
                )
            calorie_count += 1

        protein_count, protein = _running_mean(
            existing.protein_sample_count,
            existing.avg_protein_per_100g,
            per_100g.protein_g,
        )
        fat_count, fat = _running_mean(
            existing.fat_sample_count, existing.avg_fat_per_100g, per_100g.fat_g
        )
        carbs_count, carbs = _running_mean(
            existing.carbs_sample_count, existing.avg_carbs_per_100g, per_100g.carbs_g
        )

        sample_size = existing.sample_size + 1
        std_dev = sample_std_dev(calorie_count, m2)
        quantity, unit = self._merge_typical_quantity(existing, observation)
        return replace(
            existing,
            ingredient_name=_display_name(observation, existing.normalized_name),
            ingredient_category=existing.ingredient_category or observation.category,
            avg_calories_per_100g=calories,
            avg_protein_per_100g=protein,
            avg_fat_per_100g=fat,
            avg_carbs_per_100g=carbs,
            std_dev_calories=std_dev,
            m2_calories=m2,
            sample_size=sample_size,
            confidence_score=self._confidence(sample_size, std_dev),
            typical_quantity=quantity,
            typical_unit=unit,
            last_used=datetime.now(tz=UTC),
            version=existing.version + 1,
            calorie_sample_count=calorie_count,
            protein_sample_count=protein_count,
            fat_sample_count=fat_count,
            carbs_sample_count=carbs_count,
        )

    def _merge_typical_quantity(
        self, existing: LibraryIngredient, observation: IngredientObservation
    ) -> tuple[float | None, str | None]:
        if existing.typical_unit is None or existing.typical_quantity is None:
            return observation.quantity, observation.unit
        if normalize_unit(existing.typical_unit) != normalize_unit(observation.unit):
            _logger.debug(
                "Unit mismatch for '%s': keeping %s %s, ignoring %s %s",
                existing.normalized_name,
                existing.typical_quantity,
                existing.typical_unit,
                observation.quantity,
                observation.unit,
            )
            return existing.typical_quantity, existing.typical_unit
        weight = self.quantity_history_weight
        quantity = weight * existing.typical_quantity + (1 - weight) * observation.quantity
        return quantity, existing.typical_unit

    def _confidence(self, sample_size: int, std_dev: float) -> float:
        return calculate_confidence(
            sample_size,
            std_dev,
            sample_scale=self.sample_scale,
            consistency_threshold=self.consistency_threshold,
            consistency_scale=self.consistency_scale,
            consistency_floor=self.consistency_floor,
        )


def _running_mean(
    count: int, mean: float | None, value: float | None
) -> tuple[int, float | None]:
    if value is None:
        return count, mean
    if mean is None or count == 0:
        return 1, value
    return count + 1, mean + (value - mean) / (count + 1)


def _display_name(observation: IngredientObservation, fallback: str) -> str:
    name = (observation.name or "").strip()
    return name or fallback


def _present(value: float | None) -> int:
    return 0 if value is None else 1
