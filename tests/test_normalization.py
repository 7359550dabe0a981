"""Tests for ingredient name normalization and fuzzy matching."""

from dataclasses import dataclass

import pytest

from nutrition_calibration.services.normalization import (
    INFINITE_DISTANCE,
    are_similar,
    find_best_match,
    levenshtein_distance,
    normalize,
    normalize_unit,
)


@dataclass(frozen=True)
class Candidate:
    normalized_name: str
    confidence_score: float


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("idly", "idli"),
        ("idli", "idli"),
        ("Idlies", "idli"),
        ("  Coconut   Chutney!", "coconut chutney"),
        ("Crème Brûlée", "creme brulee"),
        ("dosais", "dosa"),
        ("Sambhars", "sambar"),
        ("Ladies-Finger", "okra"),
        ("tomatoes", "tomatoes"),
        ("", ""),
        ("  !!  ", ""),
        (None, ""),
    ],
)
def test_normalize(raw, expected) -> None:
    assert normalize(raw) == expected


@pytest.mark.parametrize(
    ("unit", "expected"),
    [("Grams", "g"), ("pieces", "piece"), ("Tbsp.", "tbsp"), ("cup", "cup"), (None, "")],
)
def test_normalize_unit(unit, expected) -> None:
    assert normalize_unit(unit) == expected


def test_levenshtein_distance() -> None:
    assert levenshtein_distance("idli", "idli") == 0
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("dosa", "") == 4
    assert levenshtein_distance(None, "abc") == INFINITE_DISTANCE
    assert levenshtein_distance("abc", None) == INFINITE_DISTANCE


def test_levenshtein_is_symmetric() -> None:
    assert levenshtein_distance("sambar", "sambhar") == levenshtein_distance(
        "sambhar", "sambar"
    )


def test_find_best_match_prefers_smallest_distance() -> None:
    candidates = [Candidate("rice", 0.9), Candidate("rica", 0.1)]

    assert find_best_match("rica", candidates) == candidates[1]


def test_find_best_match_breaks_ties_by_confidence_then_name() -> None:
    candidates = [
        Candidate("dal a", 0.2),
        Candidate("dal c", 0.8),
        Candidate("dal b", 0.8),
    ]

    assert find_best_match("dal x", candidates).normalized_name == "dal b"


def test_find_best_match_respects_threshold() -> None:
    candidates = [Candidate("chapati", 0.9)]

    assert find_best_match("chicken", candidates) is None
    assert find_best_match("roti", candidates) == candidates[0]
    assert find_best_match("chapatti", candidates, threshold=0) is None


def test_find_best_match_blank_query() -> None:
    assert find_best_match("   ", [Candidate("a", 1.0)]) is None
    assert find_best_match("idli", []) is None


def test_are_similar() -> None:
    assert are_similar("Idly", "idli")
    assert are_similar("brinjal", "Aubergine")
    assert not are_similar("rice", "bread")


@pytest.mark.parametrize(
    "word", ["", "a", "idli", "coconut chutney", "creme brulee", "x" * 200, "ééé"]
)
def test_levenshtein_identity(word) -> None:
    assert levenshtein_distance(word, word) == 0


@pytest.mark.parametrize(
    ("first", "second"),
    [("", "dosa"), ("vada", "vadai"), ("chapati", "chapathi"), ("rice", "bread")],
)
def test_levenshtein_symmetry_and_bounds(first, second) -> None:
    distance = levenshtein_distance(first, second)

    assert distance == levenshtein_distance(second, first)
    assert abs(len(first) - len(second)) <= distance <= max(len(first), len(second))
