"""Pydantic schema definitions for pipeline records."""

from __future__ import annotations

from .assignment import Assignment, AssignmentStatus, DifficultyLevel
from .candidate import Candidate, CandidateStatus
from .job import ROLE_CATEGORIES, Job, JobStatus, RoleCategory

__all__ = [
    "Assignment",
    "AssignmentStatus",
    "Candidate",
    "CandidateStatus",
    "DifficultyLevel",
    "Job",
    "JobStatus",
    "ROLE_CATEGORIES",
    "RoleCategory",
]
