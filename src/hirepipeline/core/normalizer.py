"""Score coercion, clamping and threshold decisions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

RESUME_SCORE_MAX = 10
SUBMISSION_SCORE_MAX = 100

SHORTLIST_THRESHOLD = 7
"""Minimum stored résumé score (0-10) that shortlists a candidate."""

PASS_THRESHOLD = 70
"""Minimum stored submission score (0-100) that moves a candidate to interview."""

FALLBACK_SCORE = 0
"""Total used when the oracle output cannot be parsed; fails safe for human review."""


@dataclass(frozen=True, slots=True)
class ScoreRange:
    """Inclusive numeric bounds declared for an oracle field."""

    minimum: float
    maximum: float

    def __post_init__(self) -> None:
        if self.minimum > self.maximum:
            raise ValueError(f"Invalid range [{self.minimum}, {self.maximum}]")


class ScoreNormalizer:
    """Turn untrusted oracle numbers into bounded stored integers."""

    @staticmethod
    def coerce(value: Any) -> float | None:
        """Return ``value`` as a float, or None when it is not a usable number."""
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            text = value.strip().rstrip("%").strip()
            if "/" in text:
                # "8/10" style answers keep the numerator.
                text = text.split("/", 1)[0].strip()
            try:
                number = float(text)
            except ValueError:
                return None
        else:
            return None
        if math.isnan(number):
            return None
        return number

    @staticmethod
    def clamp(value: float, bounds: ScoreRange) -> float:
        return min(max(value, bounds.minimum), bounds.maximum)

    @staticmethod
    def round_half_up(value: float) -> int:
        return int(math.floor(value + 0.5))

    def normalize(self, value: Any, bounds: ScoreRange) -> float | None:
        """Coerce and clamp; None when the value is missing or non-numeric."""
        number = self.coerce(value)
        if number is None:
            return None
        return self.clamp(number, bounds)

    def to_stored(self, value: Any, bounds: ScoreRange) -> int | None:
        """Coerce, clamp and round to the integer that gets persisted."""
        number = self.normalize(value, bounds)
        if number is None:
            return None
        rounded = self.round_half_up(number)
        # Rounding cannot leave integer bounds, but float bounds could be fractional.
        return int(min(max(rounded, math.ceil(bounds.minimum)), math.floor(bounds.maximum)))

    @staticmethod
    def is_shortlisted(score: int) -> bool:
        return score >= SHORTLIST_THRESHOLD

    @staticmethod
    def is_passed(score: int) -> bool:
        return score >= PASS_THRESHOLD


RESUME_TOTAL_RANGE = ScoreRange(0, RESUME_SCORE_MAX)
SUBMISSION_TOTAL_RANGE = ScoreRange(0, SUBMISSION_SCORE_MAX)


__all__ = [
    "FALLBACK_SCORE",
    "PASS_THRESHOLD",
    "RESUME_SCORE_MAX",
    "RESUME_TOTAL_RANGE",
    "SHORTLIST_THRESHOLD",
    "SUBMISSION_SCORE_MAX",
    "SUBMISSION_TOTAL_RANGE",
    "ScoreNormalizer",
    "ScoreRange",
]
