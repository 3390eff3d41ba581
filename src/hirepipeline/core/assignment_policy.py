"""Assignment generation policy: tier, deadline, token and generated brief."""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable

import pendulum
import structlog

from ..errors import AssignmentGenerationError
from ..schemas import Assignment, Candidate, DifficultyLevel, Job
from .interfaces import CompletionOracle, RecordStore
from .lifecycle import CandidateLifecycle
from .prompts import ASSIGNMENT_SYSTEM_PROMPT, assignment_user_prompt


@dataclass(frozen=True, slots=True)
class DifficultyTier:
    level: DifficultyLevel
    time_limit_hours: int


JUNIOR = DifficultyTier("Junior", 48)
MID = DifficultyTier("Mid", 72)
SENIOR = DifficultyTier("Senior", 96)


def select_tier(experience: float) -> DifficultyTier:
    """Map years of experience to a tier; boundaries at 2 and 5 belong to the higher tier."""
    if experience < 0:
        raise ValueError("experience cannot be negative")
    if experience < 2:
        return JUNIOR
    if experience < 5:
        return MID
    return SENIOR


def generate_token(nbytes: int = 32) -> str:
    return secrets.token_urlsafe(nbytes)


@dataclass
class AssignmentPolicyConfig:
    """Limits on generated assignment content."""

    min_text_chars: int = 200


class AssignmentPolicy:
    """Create and persist a pending assignment for a shortlisted candidate."""

    def __init__(
        self,
        *,
        oracle: CompletionOracle,
        store: RecordStore,
        lifecycle: CandidateLifecycle | None = None,
        config: AssignmentPolicyConfig | None = None,
        now_provider: Callable[[], Any] | None = None,
        token_factory: Callable[[], str] = generate_token,
    ) -> None:
        self._oracle = oracle
        self._store = store
        self._lifecycle = lifecycle or CandidateLifecycle()
        self._config = config or AssignmentPolicyConfig()
        self._now_provider = now_provider or pendulum.now
        self._token_factory = token_factory
        self._logger = structlog.get_logger(__name__)

    def create(self, candidate: Candidate, job: Job) -> Assignment:
        self._lifecycle.require_shortlisted(candidate.status)
        tier = select_tier(candidate.experience)
        token = self._token_factory()
        created_at = self._now_provider()
        deadline = created_at + timedelta(hours=tier.time_limit_hours)

        self._logger.info(
            "assignment.generating",
            candidate_id=candidate.id,
            difficulty=tier.level,
            time_limit_hours=tier.time_limit_hours,
        )
        raw = self._oracle.complete(
            ASSIGNMENT_SYSTEM_PROMPT,
            assignment_user_prompt(
                candidate,
                job,
                difficulty=tier.level,
                time_limit_hours=tier.time_limit_hours,
                token=token,
            ),
        )
        text = self._validate_text(raw, candidate_id=candidate.id)

        assignment = Assignment(
            id=uuid.uuid4().hex,
            candidate_id=candidate.id,
            assignment_text=text,
            difficulty_level=tier.level,
            time_limit_hours=tier.time_limit_hours,
            created_at=created_at,
            deadline=deadline,
            anti_cheat_token=token,
            status="pending",
        )
        saved = self._store.save_assignment(assignment)
        self._logger.info(
            "assignment.created",
            candidate_id=candidate.id,
            assignment_id=saved.id,
            difficulty=saved.difficulty_level,
            deadline=saved.deadline.isoformat(),
        )
        return saved

    def _validate_text(self, raw: str | None, *, candidate_id: str) -> str:
        text = _unwrap_fence((raw or "").strip())
        if len(text) < self._config.min_text_chars:
            self._logger.warning(
                "assignment.unusable_content",
                candidate_id=candidate_id,
                chars=len(text),
            )
            raise AssignmentGenerationError(
                f"generated assignment is too short ({len(text)} characters)"
            )
        return text


_WRAPPER_TAGS = frozenset({"", "markdown", "md", "text"})


def _unwrap_fence(text: str) -> str:
    """Drop a fence that wraps the whole answer; inner code blocks stay."""
    if len(text) < 6 or not (text.startswith("```") and text.endswith("```")):
        return text
    tag, newline, body = text[3:-3].partition("\n")
    if not newline:
        return text
    tag = tag.strip().lower()
    if tag in _WRAPPER_TAGS or (text.count("```") == 2 and " " not in tag):
        return body.strip()
    return text


__all__ = [
    "AssignmentPolicy",
    "AssignmentPolicyConfig",
    "DifficultyTier",
    "JUNIOR",
    "MID",
    "SENIOR",
    "generate_token",
    "select_tier",
]
