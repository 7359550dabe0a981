"""Shared test fixtures."""

import threading
from dataclasses import dataclass, field, replace
from uuid import UUID, uuid4

import pytest

from nutrition_calibration.config import Settings
from nutrition_calibration.domain.corrections import CorrectionRecord
from nutrition_calibration.domain.ingredients import LibraryIngredient
from nutrition_calibration.domain.validation import ValidationFailure
from nutrition_calibration.errors import ConcurrentUpdateError
from nutrition_calibration.services.corrections import CorrectionRepository
from nutrition_calibration.services.learning import IngredientLibraryRepository
from nutrition_calibration.services.validation import ValidationFailureRepository


@dataclass
class InMemoryIngredientLibraryRepository(IngredientLibraryRepository):
    """In-memory ingredient library with version checks."""

    entries: dict[tuple[UUID, str], LibraryIngredient] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)
    creates: int = 0
    updates: int = 0

    def find_by_user_order_by_confidence_desc(
        self, user_id: UUID
    ) -> list[LibraryIngredient]:
        with self.lock:
            items = [e for (uid, _), e in self.entries.items() if uid == user_id]
        return sorted(items, key=lambda e: e.confidence_score, reverse=True)

    def find_by_user_and_normalized_name(
        self, user_id: UUID, normalized_name: str
    ) -> LibraryIngredient | None:
        with self.lock:
            return self.entries.get((user_id, normalized_name))

    def create(self, entry: LibraryIngredient) -> LibraryIngredient:
        key = (entry.user_id, entry.normalized_name)
        with self.lock:
            if key in self.entries:
                raise ConcurrentUpdateError(f"{entry.normalized_name} exists")
            stored = replace(entry, id=entry.id or uuid4())
            self.entries[key] = stored
            self.creates += 1
        return stored

    def update(
        self, entry: LibraryIngredient, expected_version: int
    ) -> LibraryIngredient:
        key = (entry.user_id, entry.normalized_name)
        with self.lock:
            current = self.entries.get(key)
            if current is None or current.version != expected_version:
                raise ConcurrentUpdateError(f"{entry.normalized_name} changed")
            self.entries[key] = entry
            self.updates += 1
        return entry


@dataclass
class ConflictingIngredientLibraryRepository(InMemoryIngredientLibraryRepository):
    """Library that rejects the first ``conflicts`` writes."""

    conflicts: int = 0
    attempts: int = 0

    def create(self, entry: LibraryIngredient) -> LibraryIngredient:
        self.attempts += 1
        if self.attempts <= self.conflicts:
            raise ConcurrentUpdateError("simulated conflict")
        return super().create(entry)

    def update(
        self, entry: LibraryIngredient, expected_version: int
    ) -> LibraryIngredient:
        self.attempts += 1
        if self.attempts <= self.conflicts:
            raise ConcurrentUpdateError("simulated conflict")
        return super().update(entry, expected_version)


@dataclass
class InMemoryCorrectionRepository(CorrectionRepository):
    """In-memory correction log."""

    records: list[CorrectionRecord] = field(default_factory=list)

    def add(self, record: CorrectionRecord) -> None:
        self.records.append(record)

    def list_corrections(self) -> list[CorrectionRecord]:
        return list(self.records)

    def list_user_corrections(self, user_id: UUID) -> list[CorrectionRecord]:
        return [r for r in self.records if r.user_id == user_id]


@dataclass
class InMemoryValidationFailureRepository(ValidationFailureRepository):
    """In-memory validation failure log."""

    failures: list[ValidationFailure] = field(default_factory=list)

    def add(self, failure: ValidationFailure) -> None:
        self.failures.append(failure)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def library_repository() -> InMemoryIngredientLibraryRepository:
    return InMemoryIngredientLibraryRepository()


@pytest.fixture
def correction_repository() -> InMemoryCorrectionRepository:
    return InMemoryCorrectionRepository()


@pytest.fixture
def failure_repository() -> InMemoryValidationFailureRepository:
    return InMemoryValidationFailureRepository()
