"""
Tests for week resolution and the week/number validators
"""
import pytest

from matchup_parser.validators import parse_positive_int, parse_score_safe, week_from_filename
from matchup_parser.week import resolve_week


@pytest.mark.parametrize("name,week", [
    ("Week 5 screenshot.png", 5),
    ("week5.png", 5),
    ("league_wk12_final.jpg", 12),
    ("WK-7.jpeg", 7),
    ("scores week_03.png", 3),
    ("network.png", None),
    ("weekly recap.png", None),
    ("week 123.png", None),
    (None, None),
])
def test_week_from_filename(name, week):
    assert week_from_filename(name) == week


def test_filename_beats_image_and_hint():
    extracted = {"matchups": [], "week": 9, "weekSource": "image"}
    resolved = resolve_week("Week 5 screenshot.png", extracted, 3)
    assert resolved.week == 5
    assert resolved.source == "manual"
    assert resolved.origin == "filename"


def test_image_week_needs_provenance():
    assert resolve_week(None, {"matchups": [], "week": 2}, None).week is None
    assert resolve_week(None, {"matchups": [], "week": 2, "weekSource": "guess"}, None).week is None

    resolved = resolve_week(None, {"matchups": [], "week": "2", "weekSource": "Image"}, 7)
    assert resolved.week == 2
    assert resolved.source == "image"


def test_image_week_beats_hint_and_hint_is_last():
    assert resolve_week("shot.png", {"week": 4, "weekSource": "image"}, "6").week == 4
    resolved = resolve_week("shot.png", {"week": 0, "weekSource": "image"}, "6")
    assert resolved.week == 6
    assert resolved.source == "manual"
    assert resolved.origin == "hint"


def test_nothing_resolves_to_unknown():
    resolved = resolve_week(None, {"matchups": []}, None)
    assert resolved.week is None
    assert resolved.source == "unknown"


@pytest.mark.parametrize("value,expected", [
    (3, 3), ("3", 3), (" 12 ", 12), (4.0, 4),
    (0, None), (-1, None), ("0", None), (2.5, None), ("five", None), ("", None), (True, None), (None, None),
])
def test_parse_positive_int(value, expected):
    assert parse_positive_int(value) == expected


def test_parse_score_safe():
    assert parse_score_safe(85) == 85.0
    assert parse_score_safe("  97.06 ") == 97.06
    assert parse_score_safe("-12.5") == 12.5
    assert parse_score_safe("abc") is None
