"""Candidate and assignment state machines."""

from __future__ import annotations

from typing import Literal, Mapping

from ..errors import IllegalTransitionError, PreconditionError
from ..schemas import Assignment, AssignmentStatus, CandidateStatus

CandidateEvent = Literal[
    "resume_passed",
    "resume_failed",
    "submission_passed",
    "submission_failed",
    "ranked",
]
AssignmentEvent = Literal["submit", "evaluate"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"Not Shortlisted", "Ranked"})

# Statuses that count as "shortlisted or beyond" for reporting.
ADVANCED_STATUSES: frozenset[str] = frozenset({"Shortlisted", "Assignment", "Interview", "Ranked"})

_CANDIDATE_TRANSITIONS: Mapping[tuple[str, str], CandidateStatus] = {
    ("Applied", "resume_passed"): "Shortlisted",
    ("Applied", "resume_failed"): "Not Shortlisted",
    ("Shortlisted", "submission_passed"): "Interview",
    ("Shortlisted", "submission_failed"): "Not Shortlisted",
    ("Assignment", "submission_passed"): "Interview",
    ("Assignment", "submission_failed"): "Not Shortlisted",
    ("Interview", "ranked"): "Ranked",
}

# Extra edges allowed only when an already evaluated assignment is re-scored.
_REEVALUATION_TRANSITIONS: Mapping[tuple[str, str], CandidateStatus] = {
    ("Interview", "submission_passed"): "Interview",
    ("Interview", "submission_failed"): "Not Shortlisted",
    ("Not Shortlisted", "submission_failed"): "Not Shortlisted",
    ("Not Shortlisted", "submission_passed"): "Interview",
}

_ASSIGNMENT_TRANSITIONS: Mapping[tuple[str, str], AssignmentStatus] = {
    ("pending", "submit"): "submitted",
    ("submitted", "evaluate"): "evaluated",
    ("evaluated", "evaluate"): "evaluated",
    ("passed", "evaluate"): "evaluated",
    ("failed", "evaluate"): "evaluated",
}

EVALUATED_ASSIGNMENT_STATUSES: frozenset[str] = frozenset({"evaluated", "passed", "failed"})


class CandidateLifecycle:
    """Guarded transitions for candidate and assignment records.

    ``Not Shortlisted`` and ``Ranked`` are terminal for the forward pipeline. The
    only way back out of ``Not Shortlisted`` is a deliberate re-evaluation of the
    assignment that produced it, which is last-write-wins.
    """

    def next_status(
        self,
        current: CandidateStatus,
        event: CandidateEvent,
        *,
        reevaluation: bool = False,
    ) -> CandidateStatus:
        target = _CANDIDATE_TRANSITIONS.get((current, event))
        if target is None and reevaluation:
            target = _REEVALUATION_TRANSITIONS.get((current, event))
        if target is None:
            raise IllegalTransitionError("candidate", current, event)
        return target

    def can_transition(
        self,
        current: CandidateStatus,
        event: CandidateEvent,
        *,
        reevaluation: bool = False,
    ) -> bool:
        try:
            self.next_status(current, event, reevaluation=reevaluation)
        except IllegalTransitionError:
            return False
        return True

    @staticmethod
    def resume_event(shortlisted: bool) -> CandidateEvent:
        return "resume_passed" if shortlisted else "resume_failed"

    @staticmethod
    def submission_event(passed: bool) -> CandidateEvent:
        return "submission_passed" if passed else "submission_failed"

    @staticmethod
    def is_terminal(status: CandidateStatus) -> bool:
        return status in TERMINAL_STATUSES

    def require_shortlisted(self, status: CandidateStatus) -> None:
        if status not in {"Shortlisted", "Assignment"}:
            raise PreconditionError(
                f"assignments can only be generated for shortlisted candidates (status {status!r})"
            )

    def next_assignment_status(
        self,
        assignment: Assignment,
        event: AssignmentEvent,
    ) -> AssignmentStatus:
        if event == "submit" and assignment.status in EVALUATED_ASSIGNMENT_STATUSES:
            raise PreconditionError(
                f"assignment {assignment.id!r} has already been evaluated"
            )
        if not assignment.submission_url:
            raise PreconditionError(
                f"assignment {assignment.id!r} has no submission URL"
            )
        target = _ASSIGNMENT_TRANSITIONS.get((assignment.status, event))
        if target is None:
            raise IllegalTransitionError("assignment", assignment.status, event)
        return target


__all__ = [
    "ADVANCED_STATUSES",
    "AssignmentEvent",
    "CandidateEvent",
    "CandidateLifecycle",
    "EVALUATED_ASSIGNMENT_STATUSES",
    "TERMINAL_STATUSES",
]
