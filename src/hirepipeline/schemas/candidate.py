from __future__ import annotations

from datetime import datetime
from typing import Literal

import pendulum
from pydantic import BaseModel, ConfigDict, Field

from .job import RoleCategory

CandidateStatus = Literal[
    "Applied",
    "Shortlisted",
    "Not Shortlisted",
    "Assignment",
    "Interview",
    "Ranked",
]


class Candidate(BaseModel):
    """Applicant record progressing through the pipeline."""

    id: str
    name: str
    email: str
    role: RoleCategory
    experience: float = Field(default=0.0, ge=0)
    resume_ref: str | None = None
    resume_score: int | None = Field(default=None, ge=0, le=10)
    resume_feedback: str | None = None
    resume_sub_scores: dict[str, int | None] = Field(default_factory=dict)
    status: CandidateStatus = "Applied"
    job_id: str | None = None
    created_at: datetime = Field(default_factory=pendulum.now)
    updated_at: datetime = Field(default_factory=pendulum.now)

    model_config = ConfigDict(extra="forbid")
