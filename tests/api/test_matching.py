"""Tests for title normalization and fuzzy matching."""

import pytest

from romshelf.api.matching import (
    FUZZY_MATCH_THRESHOLD,
    calculate_similarity,
    normalize_title,
    pick_best_fuzzy_match,
    score_candidates,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Zelda II: The Adventure of Link!", "zelda ii the adventure of link"),
        ("Pac-Man's Revenge", "pac-man's revenge"),
        ("  Mega   Man_X  ", "mega man_x"),
        ("Sonic & Knuckles", "sonic knuckles"),
    ],
)
def test_normalize_title(raw, expected):
    assert normalize_title(raw) == expected


@pytest.mark.unit
def test_calculate_similarity_bounds():
    assert calculate_similarity("metroid", "metroid") == 1.0
    assert calculate_similarity("", "metroid") == 0.0


@pytest.mark.unit
def test_short_title_matches_long_official_name():
    candidate = {"id": 1022, "name": "The Legend of Zelda"}

    score = calculate_similarity("zelda", "the legend of zelda")
    assert score >= FUZZY_MATCH_THRESHOLD

    assert pick_best_fuzzy_match("zelda", [candidate]) is candidate


@pytest.mark.unit
def test_unrelated_names_are_rejected():
    assert pick_best_fuzzy_match("tetris", [{"id": 1, "name": "Donkey Kong"}]) is None


@pytest.mark.unit
def test_empty_candidate_list_returns_none():
    assert pick_best_fuzzy_match("tetris", []) is None


@pytest.mark.unit
def test_alternative_names_are_scored():
    official = {
        "id": 1025,
        "name": "Zelda II: The Adventure of Link",
        "alternative_names": [{"name": "Zelda 2"}],
    }
    other = {"id": 9, "name": "Zelda Classic"}

    best, score = score_candidates("zelda 2", [other, official])

    assert best is official
    assert score == 1.0


@pytest.mark.unit
def test_ties_keep_first_candidate():
    first = {"id": 1, "name": "Tetris"}
    second = {"id": 2, "name": "Tetris"}

    assert pick_best_fuzzy_match("tetris", [first, second]) is first


@pytest.mark.unit
def test_candidates_without_names_are_tolerated():
    nameless = {"id": 5, "alternative_names": [{"name": None}]}
    named = {"id": 6, "name": "Contra"}

    assert pick_best_fuzzy_match("contra", [nameless, named]) is named
