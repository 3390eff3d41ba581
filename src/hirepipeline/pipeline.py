"""Request-scoped entry points for the hiring pipeline."""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable

import pendulum
import structlog

from . import __version__
from .core import (
    AssignmentPolicy,
    BlobStore,
    CandidateLifecycle,
    RecordStore,
    ResumeEvaluation,
    ResumeEvaluator,
    SubmissionEvaluation,
    SubmissionEvaluator,
)
from .core.lifecycle import ADVANCED_STATUSES
from .core.normalizer import PASS_THRESHOLD
from .errors import PreconditionError
from .schemas import Assignment, Candidate, Job


@dataclass(slots=True)
class PipelineStats:
    """Aggregate view over candidates and assignments."""

    total_candidates: int
    shortlisted: int
    average_resume_score: float
    conversion_rate: int
    by_status: dict[str, int] = field(default_factory=dict)
    assignments_by_status: dict[str, int] = field(default_factory=dict)
    pass_rate: float | None = None
    open_jobs: int = 0


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False, default=_json_default))
            handle.write("\n")


class HiringPipeline:
    """Coordinates application intake, evaluations and submissions."""

    def __init__(
        self,
        *,
        store: RecordStore,
        blobs: BlobStore,
        resume_evaluator: ResumeEvaluator,
        submission_evaluator: SubmissionEvaluator,
        assignment_policy: AssignmentPolicy,
        lifecycle: CandidateLifecycle | None = None,
        audit_logger: AuditLogger | None = None,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._blobs = blobs
        self._resumes = resume_evaluator
        self._submissions = submission_evaluator
        self._assignments = assignment_policy
        self._lifecycle = lifecycle or CandidateLifecycle()
        self._audit = audit_logger
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def register_job(self, job: Job) -> Job:
        saved = self._store.save_job(job)
        self._logger.info("job.registered", job_id=saved.id, status=saved.status)
        return saved

    def submit_application(
        self,
        *,
        name: str,
        email: str,
        job_id: str,
        resume: bytes,
        filename: str,
        mime_type: str | None = None,
        experience: float | None = None,
        evaluate: bool = True,
    ) -> tuple[Candidate, ResumeEvaluation | None]:
        """Create an ``Applied`` candidate and, by default, evaluate the résumé."""
        job = self._store.get_job(job_id)
        if not job.is_open:
            raise PreconditionError(f"job {job.id!r} is closed to applications")
        if not name.strip() or not email.strip():
            raise PreconditionError("name and email are required")

        reference = self._blobs.upload(filename, resume, mime_type)
        now = self._now_provider()
        candidate = self._store.save_candidate(
            Candidate(
                id=uuid.uuid4().hex,
                name=name.strip(),
                email=email.strip(),
                role=job.role,
                experience=job.experience_required if experience is None else experience,
                resume_ref=reference,
                job_id=job.id,
                created_at=now,
                updated_at=now,
            )
        )
        self._logger.info("application.received", candidate_id=candidate.id, job_id=job.id)
        if not evaluate:
            return candidate, None
        evaluation = self.evaluate_resume(candidate.id)
        return self._store.get_candidate(candidate.id), evaluation

    def evaluate_resume(self, candidate_id: str) -> ResumeEvaluation:
        candidate, job = self._candidate_with_job(candidate_id)
        evaluation = self._resumes.evaluate(candidate, job)
        self._audit_append(
            "resume_evaluated",
            candidate_id=candidate.id,
            job_id=job.id,
            score=evaluation.score,
            status=evaluation.status,
            short_circuited=evaluation.short_circuited,
            used_fallback=evaluation.used_fallback,
            assignment_id=evaluation.assignment.id if evaluation.assignment else None,
            assignment_error=evaluation.assignment_error,
        )
        return evaluation

    def create_assignment(self, candidate_id: str) -> Assignment:
        """Retry assignment generation for a shortlisted candidate without one."""
        candidate, job = self._candidate_with_job(candidate_id)
        self._lifecycle.require_shortlisted(candidate.status)
        if self._store.assignments_for_candidate(candidate.id):
            raise PreconditionError(f"candidate {candidate.id!r} already has an assignment")
        assignment = self._assignments.create(candidate, job)
        self._audit_append("assignment_created", candidate_id=candidate.id, assignment_id=assignment.id)
        return assignment

    def get_assignment_for_token(self, assignment_id: str, token: str) -> Assignment:
        return self._store.find_assignment_by_token(assignment_id, token)

    def submit_assignment(self, assignment_id: str, token: str, submission_url: str) -> Assignment:
        assignment = self._store.find_assignment_by_token(assignment_id, token)
        url = (submission_url or "").strip()
        if not url:
            raise PreconditionError("a submission URL is required")
        now = self._now_provider()
        if assignment.is_expired(now):
            raise PreconditionError(
                f"assignment {assignment.id!r} deadline passed at {assignment.deadline.isoformat()}"
            )
        staged = assignment.model_copy(update={"submission_url": url})
        status = self._lifecycle.next_assignment_status(staged, "submit")
        saved = self._store.save_assignment(
            staged.model_copy(update={"status": status, "submitted_at": now})
        )
        self._logger.info("assignment.submitted", assignment_id=saved.id, candidate_id=saved.candidate_id)
        self._audit_append("assignment_submitted", assignment_id=saved.id, candidate_id=saved.candidate_id)
        return saved

    def evaluate_submission(self, assignment_id: str) -> SubmissionEvaluation:
        assignment = self._store.get_assignment(assignment_id)
        evaluation = self._submissions.evaluate(assignment)
        self._audit_append(
            "submission_evaluated",
            assignment_id=assignment.id,
            candidate_id=evaluation.candidate_id,
            score=evaluation.score,
            passed=evaluation.passed,
            candidate_status=evaluation.candidate_status,
            used_fallback=evaluation.used_fallback,
        )
        return evaluation

    def resume_text(self, candidate_id: str) -> str:
        candidate = self._store.get_candidate(candidate_id)
        return self._resumes.extract_text(candidate)

    def stats(self) -> PipelineStats:
        candidates = self._store.list_candidates()
        assignments = self._store.list_assignments()
        total = len(candidates)

        by_status: dict[str, int] = {}
        for candidate in candidates:
            by_status[candidate.status] = by_status.get(candidate.status, 0) + 1
        assignments_by_status: dict[str, int] = {}
        for assignment in assignments:
            assignments_by_status[assignment.status] = assignments_by_status.get(assignment.status, 0) + 1

        scored = [c.resume_score for c in candidates if c.resume_score is not None]
        average = round(sum(scored) / len(scored), 1) if scored else 0.0
        evaluated = [a for a in assignments if a.final_score is not None]
        pass_rate = (
            round(sum(1 for a in evaluated if a.final_score >= PASS_THRESHOLD) / len(evaluated) * 100, 1)
            if evaluated
            else None
        )
        return PipelineStats(
            total_candidates=total,
            shortlisted=sum(1 for c in candidates if c.status in ADVANCED_STATUSES),
            average_resume_score=average,
            conversion_rate=round(by_status.get("Ranked", 0) / total * 100) if total else 0,
            by_status=by_status,
            assignments_by_status=assignments_by_status,
            pass_rate=pass_rate,
            open_jobs=sum(1 for job in self._store.list_jobs() if job.is_open),
        )

    def _candidate_with_job(self, candidate_id: str) -> tuple[Candidate, Job]:
        candidate = self._store.get_candidate(candidate_id)
        if not candidate.job_id:
            raise PreconditionError(f"candidate {candidate.id!r} is not linked to a job")
        return candidate, self._store.get_job(candidate.job_id)

    def _audit_append(self, event: str, **fields: Any) -> None:
        if self._audit is None:
            return
        self._audit.append(
            {
                "event": event,
                "timestamp": pendulum.now("UTC").to_iso8601_string(),
                "app_version": __version__,
                **fields,
            }
        )


def stats_to_dict(stats: PipelineStats) -> dict[str, Any]:
    return asdict(stats)


def _json_default(value):  # type: ignore[override]
    if isinstance(value, pendulum.DateTime):
        return value.to_iso8601_string()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
