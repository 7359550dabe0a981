"""Services for reading the learned ingredient library."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from nutrition_calibration.domain.ingredients import LibraryIngredient, LibraryStats
from nutrition_calibration.services.learning import IngredientLibraryRepository
from nutrition_calibration.services.normalization import (
    DEFAULT_MATCH_THRESHOLD,
    find_best_match,
    normalize,
)

HIGH_CONFIDENCE = 0.7


@dataclass
class IngredientLibraryService:
    """Application service for library lookups."""

    repository: IngredientLibraryRepository

    def list_library(self, user_id: UUID) -> list[LibraryIngredient]:
        """Return all entries for a user, most confident first."""
        return self.repository.find_by_user_order_by_confidence_desc(user_id)

    def lookup(
        self, user_id: UUID, name: str | None, threshold: int = DEFAULT_MATCH_THRESHOLD
    ) -> LibraryIngredient | None:
        """Return the closest entry to ``name``, if any is close enough."""
        normalized = normalize(name)
        if not normalized:
            return None
        exact = self.repository.find_by_user_and_normalized_name(user_id, normalized)
        if exact is not None:
            return exact
        return find_best_match(normalized, self.list_library(user_id), threshold)

    def search(
        self, user_id: UUID, query: str | None, limit: int = 5
    ) -> list[LibraryIngredient]:
        """Search the library, falling back to top entries when query is empty."""
        entries = self.list_library(user_id)
        needle = (query or "").strip().lower()
        if needle:
            normalized = normalize(needle)
            entries = [
                entry
                for entry in entries
                if needle in entry.ingredient_name.lower()
                or (normalized and normalized in entry.normalized_name)
            ]
        return self._rank(entries)[:limit]

    def high_confidence(
        self, user_id: UUID, min_confidence: float = HIGH_CONFIDENCE
    ) -> list[LibraryIngredient]:
        """Return entries trusted enough to reuse directly."""
        return [
            entry
            for entry in self.list_library(user_id)
            if entry.confidence_score >= min_confidence
        ]

    def stats(self, user_id: UUID) -> LibraryStats:
        """Return summary numbers for a user's library."""
        entries = self.list_library(user_id)
        if not entries:
            return LibraryStats(
                total_ingredients=0, average_confidence=0.0, high_confidence_count=0
            )
        return LibraryStats(
            total_ingredients=len(entries),
            average_confidence=sum(e.confidence_score for e in entries) / len(entries),
            high_confidence_count=sum(
                1 for e in entries if e.confidence_score >= HIGH_CONFIDENCE
            ),
        )

    @staticmethod
    def _rank(items: list[LibraryIngredient]) -> list[LibraryIngredient]:
        """Rank entries by confidence then recent use."""
        return sorted(
            items,
            key=lambda item: (
                item.confidence_score,
                item.last_used or datetime.min.replace(tzinfo=UTC),
            ),
            reverse=True,
        )
