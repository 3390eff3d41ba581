from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DifficultyLevel = Literal["Junior", "Mid", "Senior"]
AssignmentStatus = Literal["pending", "submitted", "evaluated", "passed", "failed"]

# Rubric keys surfaced through the three legacy score slots.
LEGACY_SLOTS: dict[str, str] = {
    "accuracy": "functional_correctness",
    "clarity": "code_quality",
    "relevance": "architecture_design",
}


class Assignment(BaseModel):
    """Generated coding assignment bound to one candidate."""

    id: str
    candidate_id: str
    assignment_text: str
    difficulty_level: DifficultyLevel
    time_limit_hours: int = Field(gt=0)
    created_at: datetime
    deadline: datetime
    anti_cheat_token: str = Field(min_length=16)
    submission_url: str | None = None
    submitted_at: datetime | None = None
    status: AssignmentStatus = "pending"
    final_score: int | None = Field(default=None, ge=0, le=100)
    sub_scores: dict[str, int | None] = Field(default_factory=dict)
    feedback: str | None = None
    evaluated_at: datetime | None = None
    used_fallback: bool = False

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_deadline(self) -> "Assignment":
        expected = self.created_at.timestamp() + self.time_limit_hours * 3600
        if abs(self.deadline.timestamp() - expected) > 1e-6:
            raise ValueError("deadline must equal created_at + time_limit_hours")
        return self

    @property
    def accuracy_score(self) -> int | None:
        return self.sub_scores.get(LEGACY_SLOTS["accuracy"])

    @property
    def clarity_score(self) -> int | None:
        return self.sub_scores.get(LEGACY_SLOTS["clarity"])

    @property
    def relevance_score(self) -> int | None:
        return self.sub_scores.get(LEGACY_SLOTS["relevance"])

    def is_expired(self, now: datetime) -> bool:
        return now > self.deadline
