from __future__ import annotations

import pytest

from hirepipeline.core.normalizer import (
    PASS_THRESHOLD,
    RESUME_TOTAL_RANGE,
    SHORTLIST_THRESHOLD,
    SUBMISSION_TOTAL_RANGE,
    ScoreNormalizer,
    ScoreRange,
)


@pytest.fixture
def normalizer() -> ScoreNormalizer:
    return ScoreNormalizer()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (8.7, 9),
        (8.5, 9),
        (8.49, 8),
        (0.5, 1),
        (-3, 0),
        (14, 10),
        ("7.5", 8),
        ("8/10", 8),
        (" 6 ", 6),
    ],
)
def test_to_stored_clamps_and_rounds_half_up(normalizer, raw, expected):
    stored = normalizer.to_stored(raw, RESUME_TOTAL_RANGE)

    assert stored == expected
    assert isinstance(stored, int)


@pytest.mark.parametrize("raw", [None, True, "excellent", float("nan"), [8], {"score": 8}])
def test_to_stored_rejects_non_numeric(normalizer, raw):
    assert normalizer.to_stored(raw, RESUME_TOTAL_RANGE) is None


def test_submission_range_and_percent_strings(normalizer):
    assert normalizer.to_stored("85%", SUBMISSION_TOTAL_RANGE) == 85
    assert normalizer.to_stored(250, SUBMISSION_TOTAL_RANGE) == 100
    assert normalizer.to_stored(69.5, SUBMISSION_TOTAL_RANGE) == 70


def test_thresholds_are_inclusive(normalizer):
    assert normalizer.is_shortlisted(SHORTLIST_THRESHOLD)
    assert not normalizer.is_shortlisted(SHORTLIST_THRESHOLD - 1)
    assert normalizer.is_passed(PASS_THRESHOLD)
    assert not normalizer.is_passed(PASS_THRESHOLD - 1)


def test_score_range_rejects_inverted_bounds():
    with pytest.raises(ValueError):
        ScoreRange(10, 0)
