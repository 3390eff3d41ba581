"""Résumé evaluation: extraction, pre-filter, oracle scoring and status transition."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import pendulum
import structlog

from ...errors import ExtractionError, PipelineError
from ...logging import text_preview
from ...schemas import Assignment, Candidate, CandidateStatus, Job
from ..assignment_policy import AssignmentPolicy
from ..interfaces import BlobStore, CompletionOracle, DocumentExtractor, RecordStore
from ..lifecycle import CandidateLifecycle
from ..normalizer import RESUME_TOTAL_RANGE, ScoreNormalizer, ScoreRange
from ..parsing import OracleResponseParser, OracleSchema
from ..prefilter import NO_KEYWORDS_FEEDBACK, KeywordPrefilter
from ..prompts import RESUME_SUB_SCORES, RESUME_SYSTEM_PROMPT, resume_user_prompt
from .feedback import compose

RESUME_SCHEMA = OracleSchema(
    name="resume",
    total_fields=("total_score", "score"),
    total_range=RESUME_TOTAL_RANGE,
    sub_scores={key: ScoreRange(0, maximum) for key, maximum in RESUME_SUB_SCORES.items()},
    text_fields=("summary", "recommendation", "feedback"),
    list_fields=("strengths", "gaps"),
)

_LABELS = {
    "skills_score": "Skills (50%)",
    "experience_score": "Experience (30%)",
    "fit_score": "Role fit (20%)",
}


@dataclass(slots=True)
class ResumeEvaluation:
    """Outcome of one résumé evaluation."""

    candidate_id: str
    score: int
    status: CandidateStatus
    feedback: str
    sub_scores: dict[str, int | None] = field(default_factory=dict)
    keyword_hits: list[str] = field(default_factory=list)
    short_circuited: bool = False
    used_fallback: bool = False
    assignment: Assignment | None = None
    assignment_error: str | None = None

    @property
    def shortlisted(self) -> bool:
        return self.status == "Shortlisted"


class ResumeEvaluator:
    """Score a candidate's résumé against a job and persist the decision."""

    def __init__(
        self,
        *,
        store: RecordStore,
        blobs: BlobStore,
        extractor: DocumentExtractor,
        oracle: CompletionOracle,
        assignment_policy: AssignmentPolicy | None = None,
        prefilter: KeywordPrefilter | None = None,
        normalizer: ScoreNormalizer | None = None,
        lifecycle: CandidateLifecycle | None = None,
        trace_resume_text: bool = False,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._blobs = blobs
        self._extractor = extractor
        self._oracle = oracle
        self._assignment_policy = assignment_policy
        self._prefilter = prefilter or KeywordPrefilter()
        self._normalizer = normalizer or ScoreNormalizer()
        self._lifecycle = lifecycle or CandidateLifecycle()
        self._parser = OracleResponseParser(RESUME_SCHEMA, normalizer=self._normalizer)
        self._trace_resume_text = trace_resume_text
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def evaluate(self, candidate: Candidate, job: Job) -> ResumeEvaluation:
        log = self._logger.bind(candidate_id=candidate.id, job_id=job.id)
        # Both outcomes share a source state; reject before spending an oracle call.
        self._lifecycle.next_status(candidate.status, "resume_failed")

        text = self.extract_text(candidate)

        prefilter = self._prefilter.check(text, job)
        if not prefilter.passed:
            log.info("resume.prefilter_rejected", keywords_checked=prefilter.keywords_checked)
            evaluation = ResumeEvaluation(
                candidate_id=candidate.id,
                score=0,
                status=self._lifecycle.next_status(candidate.status, "resume_failed"),
                feedback=NO_KEYWORDS_FEEDBACK,
                sub_scores={key: 0 for key in RESUME_SUB_SCORES},
                short_circuited=True,
            )
            self._persist(candidate, evaluation)
            return evaluation

        raw = self._oracle.complete(RESUME_SYSTEM_PROMPT, resume_user_prompt(job, text))
        parsed = self._parser.parse(raw, candidate_id=candidate.id)

        score = self._normalizer.to_stored(parsed.total, RESUME_TOTAL_RANGE)
        sub_scores = {
            key: None if value is None else self._normalizer.to_stored(value, RESUME_SCHEMA.sub_scores[key])
            for key, value in parsed.sub_scores.items()
        }
        shortlisted = self._normalizer.is_shortlisted(score)
        status = self._lifecycle.next_status(candidate.status, self._lifecycle.resume_event(shortlisted))
        feedback = compose(
            headline=f"Resume score: {score}/10 ({status})",
            parsed=parsed,
            scores=sub_scores,
            maxima=RESUME_SUB_SCORES,
            labels=_LABELS,
            stored_total=score,
            text_titles={"summary": "Summary", "feedback": "Feedback", "recommendation": "Recommendation"},
            list_titles={"strengths": "Strengths", "gaps": "Gaps"},
        )
        evaluation = ResumeEvaluation(
            candidate_id=candidate.id,
            score=score,
            status=status,
            feedback=feedback,
            sub_scores=sub_scores,
            keyword_hits=prefilter.hits,
            used_fallback=parsed.used_fallback,
        )
        saved = self._persist(candidate, evaluation)
        log.info(
            "resume.scored",
            score=score,
            status=status,
            used_fallback=parsed.used_fallback,
            keyword_hits=len(prefilter.hits),
        )

        if shortlisted and self._assignment_policy is not None:
            # The persisted résumé decision stands even if generation fails.
            try:
                evaluation.assignment = self._assignment_policy.create(saved, job)
            except PipelineError as exc:
                evaluation.assignment_error = str(exc)
                log.warning(
                    "resume.assignment_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    retryable=exc.retryable,
                )
        return evaluation

    def extract_text(self, candidate: Candidate) -> str:
        if not candidate.resume_ref:
            raise ExtractionError(f"candidate {candidate.id!r} has no resume on file")
        blob = self._blobs.download(candidate.resume_ref)
        text = self._extractor.extract(blob.data, blob.mime_type, candidate_id=candidate.id)
        if self._trace_resume_text:
            self._logger.debug(
                "resume.text",
                candidate_id=candidate.id,
                chars=len(text),
                preview=text_preview(text),
            )
        return text

    def _persist(self, candidate: Candidate, evaluation: ResumeEvaluation) -> Candidate:
        updated = candidate.model_copy(
            update={
                "resume_score": evaluation.score,
                "resume_feedback": evaluation.feedback,
                "resume_sub_scores": dict(evaluation.sub_scores),
                "status": evaluation.status,
                "updated_at": self._now_provider(),
            }
        )
        return self._store.save_candidate(updated)
