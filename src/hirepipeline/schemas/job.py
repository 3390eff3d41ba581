from __future__ import annotations

from datetime import datetime
from typing import Literal

import pendulum
from pydantic import BaseModel, ConfigDict, Field

RoleCategory = Literal["Backend", "Frontend", "DataAnalyst", "ML", "DevOps"]
JobStatus = Literal["open", "closed"]

ROLE_CATEGORIES: tuple[str, ...] = ("Backend", "Frontend", "DataAnalyst", "ML", "DevOps")


class Job(BaseModel):
    """Job posting candidates apply to."""

    id: str
    title: str
    role: RoleCategory
    description: str = ""
    requirements: str = ""
    skills_required: list[str] = Field(default_factory=list)
    experience_required: int = Field(default=0, ge=0)
    status: JobStatus = "open"
    created_at: datetime = Field(default_factory=pendulum.now)

    model_config = ConfigDict(extra="forbid")

    @property
    def is_open(self) -> bool:
        return self.status == "open"
