"""
Tests for language normalization and rollup arithmetic.
"""

from datetime import date

import pytest

from gitbrief.processing.languages import (
    LanguageNormalizer,
    aggregate_language_shares,
    normalize,
    week_bounds,
)
from gitbrief.types import LanguageShare


# ============================================================================
# Normalizer Tests
# ============================================================================


def test_normalize_drops_entries_below_threshold():
    result = normalize({"Python": 800, "Rust": 150, "Shell": 50}, threshold=10)

    assert result.as_tuples() == [("Python", 80.0), ("Rust", 15.0)]
    assert result.primary_language == "Python"


def test_normalize_empty_input():
    result = normalize({}, threshold=10)

    assert result.shares == []
    assert result.primary_language is None


def test_normalize_all_zero_counts():
    result = normalize({"Python": 0, "Go": 0}, threshold=10)

    assert result.shares == []
    assert result.primary_language is None


def test_normalize_keeps_share_equal_to_threshold():
    result = normalize({"Python": 80, "Go": 20}, threshold=20)

    assert result.as_tuples() == [("Python", 80.0), ("Go", 20.0)]


def test_normalize_ties_broken_by_language_name():
    result = normalize({"Zig": 50, "Ada": 50}, threshold=0)

    assert [s.language for s in result.shares] == ["Ada", "Zig"]


def test_normalize_leaves_raw_shares_by_default():
    result = normalize({"Python": 800, "Rust": 150, "Shell": 50}, threshold=10)

    assert sum(s.percentage for s in result.shares) == pytest.approx(95.0)


def test_normalize_renormalize_rescales_to_100():
    result = normalize({"Python": 800, "Rust": 150, "Shell": 50}, threshold=10, renormalize=True)

    assert sum(s.percentage for s in result.shares) == pytest.approx(100.0)
    assert result.shares[0].percentage == pytest.approx(800 / 950 * 100)


def test_normalize_ignores_negative_counts():
    result = normalize({"Python": 100, "Broken": -50}, threshold=0)

    assert result.as_tuples() == [("Python", 100.0)]


def test_normalizer_rejects_negative_threshold():
    with pytest.raises(ValueError):
        LanguageNormalizer(threshold=-1)


# ============================================================================
# Aggregation Tests
# ============================================================================


def _shares(*pairs):
    return [LanguageShare(language=lang, percentage=pct) for lang, pct in pairs]


def test_aggregate_sums_to_100_and_counts_snapshots():
    day = date(2024, 1, 15)
    rows = aggregate_language_shares(
        day,
        [
            _shares(("Python", 80.0), ("Rust", 15.0)),
            _shares(("Rust", 90.0)),
            _shares(("Go", 100.0)),
        ],
    )

    assert sum(r.normalized_percentage for r in rows) == pytest.approx(100.0)
    by_language = {r.language: r for r in rows}
    assert by_language["Rust"].repo_count == 2
    assert by_language["Python"].repo_count == 1
    assert by_language["Rust"].normalized_percentage == pytest.approx(105.0 / 285.0 * 100)
    assert all(r.period == day for r in rows)


def test_aggregate_sorted_descending():
    rows = aggregate_language_shares(
        date(2024, 1, 15),
        [_shares(("Go", 10.0)), _shares(("Python", 60.0)), _shares(("C", 30.0))],
    )

    assert [r.language for r in rows] == ["Python", "C", "Go"]


def test_aggregate_without_data_is_empty():
    assert aggregate_language_shares(date(2024, 1, 15), []) == []
    assert aggregate_language_shares(date(2024, 1, 15), [[], []]) == []


def test_aggregate_same_repo_on_two_days_counts_twice():
    # One repository trending on Monday and Tuesday
    rows = aggregate_language_shares(
        date(2024, 1, 15),
        [_shares(("Python", 100.0)), _shares(("Python", 100.0))],
    )

    assert len(rows) == 1
    assert rows[0].repo_count == 2
    assert rows[0].normalized_percentage == pytest.approx(100.0)


# ============================================================================
# Week Bounds
# ============================================================================


@pytest.mark.parametrize(
    "day, monday",
    [
        (date(2024, 1, 15), date(2024, 1, 15)),  # Monday
        (date(2024, 1, 17), date(2024, 1, 15)),  # Wednesday
        (date(2024, 1, 21), date(2024, 1, 15)),  # Sunday
        (date(2024, 1, 1), date(2024, 1, 1)),
        (date(2023, 12, 31), date(2023, 12, 25)),
    ],
)
def test_week_bounds(day, monday):
    start, end = week_bounds(day)

    assert start == monday
    assert (end - start).days == 6
    assert start.weekday() == 0
