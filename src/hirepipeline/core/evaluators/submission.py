"""Submission evaluation against the fixed rubric."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import pendulum
import structlog

from ...errors import PreconditionError
from ...schemas import Assignment, AssignmentStatus, Candidate, CandidateStatus, Job
from ..interfaces import CompletionOracle, RecordStore
from ..lifecycle import EVALUATED_ASSIGNMENT_STATUSES, CandidateLifecycle
from ..normalizer import SUBMISSION_TOTAL_RANGE, ScoreNormalizer, ScoreRange
from ..parsing import OracleResponseParser, OracleSchema
from ..prompts import SUBMISSION_RUBRIC, SUBMISSION_SYSTEM_PROMPT, rubric_labels, submission_user_prompt
from .feedback import compose

SUBMISSION_SCHEMA = OracleSchema(
    name="submission",
    total_fields=("total_score", "score"),
    total_range=SUBMISSION_TOTAL_RANGE,
    sub_scores={key: ScoreRange(0, points) for key, points in SUBMISSION_RUBRIC.items()},
    text_fields=("summary", "plagiarism_indicators", "recommendation"),
    list_fields=("strengths", "improvements"),
)


@dataclass(slots=True)
class SubmissionEvaluation:
    """Outcome of one submission evaluation."""

    assignment_id: str
    candidate_id: str
    score: int
    passed: bool
    status: AssignmentStatus
    candidate_status: CandidateStatus
    feedback: str
    sub_scores: dict[str, int | None] = field(default_factory=dict)
    used_fallback: bool = False


class SubmissionEvaluator:
    """Score a submitted solution and move the candidate forward or out."""

    def __init__(
        self,
        *,
        store: RecordStore,
        oracle: CompletionOracle,
        normalizer: ScoreNormalizer | None = None,
        lifecycle: CandidateLifecycle | None = None,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._normalizer = normalizer or ScoreNormalizer()
        self._lifecycle = lifecycle or CandidateLifecycle()
        self._parser = OracleResponseParser(SUBMISSION_SCHEMA, normalizer=self._normalizer)
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def evaluate(
        self,
        assignment: Assignment,
        candidate: Candidate | None = None,
        job: Job | None = None,
    ) -> SubmissionEvaluation:
        if not assignment.submission_url:
            raise PreconditionError(f"assignment {assignment.id!r} has no submission URL")
        candidate = candidate or self._store.get_candidate(assignment.candidate_id)
        if job is None:
            if not candidate.job_id:
                raise PreconditionError(f"candidate {candidate.id!r} is not linked to a job")
            job = self._store.get_job(candidate.job_id)

        reevaluation = assignment.status in EVALUATED_ASSIGNMENT_STATUSES
        # Validate both transitions before any oracle call or write.
        new_assignment_status = self._lifecycle.next_assignment_status(assignment, "evaluate")
        for event in ("submission_passed", "submission_failed"):
            if not self._lifecycle.can_transition(candidate.status, event, reevaluation=reevaluation):
                raise PreconditionError(
                    f"candidate {candidate.id!r} in status {candidate.status!r} cannot receive "
                    "a submission result"
                )

        log = self._logger.bind(assignment_id=assignment.id, candidate_id=candidate.id)
        raw = self._oracle.complete(
            SUBMISSION_SYSTEM_PROMPT,
            submission_user_prompt(assignment, candidate, job),
        )
        parsed = self._parser.parse(raw, assignment_id=assignment.id, candidate_id=candidate.id)

        score = self._normalizer.to_stored(parsed.total, SUBMISSION_TOTAL_RANGE)
        sub_scores = {
            key: None if value is None else self._normalizer.to_stored(value, SUBMISSION_SCHEMA.sub_scores[key])
            for key, value in parsed.sub_scores.items()
        }
        passed = self._normalizer.is_passed(score)
        candidate_status = self._lifecycle.next_status(
            candidate.status,
            self._lifecycle.submission_event(passed),
            reevaluation=reevaluation,
        )
        feedback = compose(
            headline=f"Assignment score: {score}/100 ({'PASSED' if passed else 'FAILED'})",
            parsed=parsed,
            scores=sub_scores,
            maxima=SUBMISSION_RUBRIC,
            labels=rubric_labels(),
            stored_total=score,
            text_titles={
                "summary": "Summary",
                "plagiarism_indicators": "Plagiarism indicators",
                "recommendation": "Recommendation",
            },
            list_titles={"strengths": "Strengths", "improvements": "Areas for improvement"},
        )

        now = self._now_provider()
        self._store.save_assignment(
            assignment.model_copy(
                update={
                    "final_score": score,
                    "sub_scores": dict(sub_scores),
                    "feedback": feedback,
                    "status": new_assignment_status,
                    "evaluated_at": now,
                    "used_fallback": parsed.used_fallback,
                }
            )
        )
        self._store.save_candidate(
            candidate.model_copy(update={"status": candidate_status, "updated_at": now})
        )
        log.info(
            "submission.evaluated",
            score=score,
            passed=passed,
            candidate_status=candidate_status,
            reevaluation=reevaluation,
            used_fallback=parsed.used_fallback,
        )
        return SubmissionEvaluation(
            assignment_id=assignment.id,
            candidate_id=candidate.id,
            score=score,
            passed=passed,
            status=new_assignment_status,
            candidate_status=candidate_status,
            feedback=feedback,
            sub_scores=sub_scores,
            used_fallback=parsed.used_fallback,
        )
