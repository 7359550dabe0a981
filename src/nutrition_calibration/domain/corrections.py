"""Domain models for user corrections of AI estimates."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4

_CENTS = Decimal("0.01")
_HUNDRED = Decimal(100)

Number = Decimal | int | float | str


def to_decimal(value: Number | None) -> Decimal | None:
    """Coerce a numeric value to Decimal, going through str for floats."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_errors(
    ai_value: Number | None, user_value: Number | None
) -> tuple[Decimal | None, Decimal | None]:
    """Return (percent_error, absolute_error) for an AI value and a user value.

    Percent error is relative to the user's value, so a positive number means
    the AI underestimated. Both results are None when either input is missing
    or the user value is zero.
    """
    ai = to_decimal(ai_value)
    user = to_decimal(user_value)
    if ai is None or user is None or user == 0:
        return None, None
    difference = user - ai
    percent = (difference / user * _HUNDRED).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return percent, abs(difference)


@dataclass(frozen=True)
class CorrectionContext:
    """Meal context captured alongside a correction."""

    user_id: UUID | None = None
    meal_id: UUID | None = None
    confidence_score: float | None = None
    location_type: str | None = None
    location_place_name: str | None = None
    meal_type: str | None = None
    meal_description: str | None = None
    ai_analyzed_at: datetime | None = None


@dataclass(frozen=True)
class CorrectionRecord:
    """A single field-level correction of an AI estimate."""

    field_name: str
    ai_value: Decimal | None
    user_value: Decimal | None
    user_id: UUID | None = None
    meal_id: UUID | None = None
    confidence_score: float | None = None
    location_type: str | None = None
    location_place_name: str | None = None
    meal_type: str | None = None
    meal_description: str | None = None
    ai_analyzed_at: datetime | None = None
    corrected_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "ai_value", to_decimal(self.ai_value))
        object.__setattr__(self, "user_value", to_decimal(self.user_value))

    @classmethod
    def create(
        cls,
        field_name: str,
        ai_value: Number | None,
        user_value: Number | None,
        context: CorrectionContext | None = None,
    ) -> "CorrectionRecord":
        """Build a record from raw values and optional meal context."""
        ctx = context or CorrectionContext()
        return cls(
            field_name=field_name,
            ai_value=to_decimal(ai_value),
            user_value=to_decimal(user_value),
            user_id=ctx.user_id,
            meal_id=ctx.meal_id,
            confidence_score=ctx.confidence_score,
            location_type=ctx.location_type,
            location_place_name=ctx.location_place_name,
            meal_type=ctx.meal_type,
            meal_description=ctx.meal_description,
            ai_analyzed_at=ctx.ai_analyzed_at,
        )

    @property
    def percent_error(self) -> Decimal | None:
        return compute_errors(self.ai_value, self.user_value)[0]

    @property
    def absolute_error(self) -> Decimal | None:
        return compute_errors(self.ai_value, self.user_value)[1]
