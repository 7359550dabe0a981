"""Ingredient name normalization and fuzzy matching.

Names are canonicalized (case, punctuation, diacritics, known aliases) before
an edit-distance comparison, so that "Idly", "idlies" and "idli" all resolve
to the same library entry.
"""

import logging
import re
import sys
import unicodedata
from collections.abc import Iterable
from typing import Protocol, TypeVar

INFINITE_DISTANCE = sys.maxsize
DEFAULT_MATCH_THRESHOLD = 2

_logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

ALIASES: dict[str, str] = {
    # South Indian
    "idly": "idli",
    "idlies": "idli",
    "dosai": "dosa",
    "dosay": "dosa",
    "dosais": "dosa",
    "chutny": "chutney",
    "sambhar": "sambar",
    "sambhaar": "sambar",
    "vadai": "vada",
    "vade": "vada",
    # Common variants
    "yogurt": "yoghurt",
    "yoghourt": "yoghurt",
    "curd": "yoghurt",
    "paneer": "cottage cheese",
    "dal": "lentils",
    "daal": "lentils",
    "roti": "chapati",
    "chapathi": "chapati",
    # Vegetables
    "brinjal": "eggplant",
    "aubergine": "eggplant",
    "capsicum": "bell pepper",
    "ladies finger": "okra",
    "ladyfinger": "okra",
    # Grains
    "atta": "wheat flour",
    "maida": "all purpose flour",
    "sooji": "semolina",
    "rava": "semolina",
}

_PLURAL_SUFFIXES = ("ies", "es", "s")
_MIN_STEM_LENGTH = 3

UNIT_ALIASES: dict[str, str] = {
    "gram": "g",
    "grams": "g",
    "gm": "g",
    "gms": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "ounce": "oz",
    "ounces": "oz",
    "pound": "lb",
    "pounds": "lb",
    "lbs": "lb",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "cups": "cup",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "pieces": "piece",
    "pcs": "piece",
    "pc": "piece",
    "items": "item",
    "slices": "slice",
    "servings": "serving",
}


class MatchCandidate(Protocol):
    """Anything fuzzy matching can rank."""

    @property
    def normalized_name(self) -> str: ...

    @property
    def confidence_score(self) -> float: ...


CandidateT = TypeVar("CandidateT", bound=MatchCandidate)


def normalize(raw_name: str | None) -> str:
    """Return the canonical form of an ingredient name."""
    if raw_name is None or not raw_name.strip():
        return ""
    folded = unicodedata.normalize("NFKD", raw_name.lower())
    ascii_name = folded.encode("ascii", "ignore").decode("ascii")
    cleaned = _NON_ALNUM.sub(" ", ascii_name).strip()
    if not cleaned:
        return ""

    alias = ALIASES.get(cleaned)
    if alias is not None:
        _logger.debug("Normalized '%s' to alias '%s'", raw_name, alias)
        return alias

    for suffix in _PLURAL_SUFFIXES:
        if cleaned.endswith(suffix) and len(cleaned) - len(suffix) >= _MIN_STEM_LENGTH:
            alias = ALIASES.get(cleaned[: -len(suffix)])
            if alias is not None:
                _logger.debug("Normalized plural '%s' to alias '%s'", raw_name, alias)
                return alias

    return cleaned


def normalize_unit(unit: str | None) -> str:
    """Return a canonical unit token, or "" when the unit is missing."""
    if unit is None:
        return ""
    cleaned = unit.strip().lower().rstrip(".")
    return UNIT_ALIASES.get(cleaned, cleaned)


def levenshtein_distance(first: str | None, second: str | None) -> int:
    """Return the edit distance between two strings.

    Insertions, deletions and substitutions each cost 1. Returns
    INFINITE_DISTANCE when either side is None.
    """
    if first is None or second is None:
        return INFINITE_DISTANCE
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    previous = list(range(len(second) + 1))
    for i, first_char in enumerate(first, start=1):
        current = [i]
        for j, second_char in enumerate(second, start=1):
            if first_char == second_char:
                current.append(previous[j - 1])
            else:
                current.append(
                    1 + min(previous[j - 1], previous[j], current[j - 1])
                )
        previous = current
    return previous[-1]


def find_best_match(
    query: str | None,
    candidates: Iterable[CandidateT],
    threshold: int = DEFAULT_MATCH_THRESHOLD,
) -> CandidateT | None:
    """Return the closest candidate within ``threshold`` edits of ``query``.

    Ties on distance go to the candidate with the highest confidence score,
    then to the lexicographically smallest normalized name.
    """
    normalized_query = normalize(query)
    if not normalized_query:
        return None

    best: CandidateT | None = None
    best_key: tuple[int, float, str] | None = None
    for candidate in candidates:
        distance = levenshtein_distance(normalized_query, candidate.normalized_name)
        if distance > threshold:
            continue
        key = (distance, -(candidate.confidence_score or 0.0), candidate.normalized_name)
        if best_key is None or key < best_key:
            best, best_key = candidate, key

    if best is None:
        _logger.debug("No match for '%s' within distance %s", query, threshold)
    else:
        _logger.debug(
            "Matched '%s' to '%s' (distance %s)",
            query,
            best.normalized_name,
            best_key[0] if best_key else None,
        )
    return best


def are_similar(
    first: str | None, second: str | None, threshold: int = DEFAULT_MATCH_THRESHOLD
) -> bool:
    """Return True when two names normalize to within ``threshold`` edits."""
    return levenshtein_distance(normalize(first), normalize(second)) <= threshold
