from __future__ import annotations

from typing import Callable

import pendulum
import pytest
import structlog

from hirepipeline.schemas import Candidate, Job
from hirepipeline.stores import InMemoryBlobStore, InMemoryRecordStore

BACKEND_RESUME = (
    "Backend engineer with four years of experience building Python and Django "
    "REST services on PostgreSQL, Redis and Kafka for a payments company. "
    "Led the migration of a settlement ledger to microservices."
)

ASSIGNMENT_TEXT = (
    "# Ledger Reconciliation Service\n\n"
    "Build a small REST service that ingests settlement files from two payment "
    "processors, matches transactions by reference and amount, and reports "
    "unmatched entries.\n\n"
    "## Requirements\n"
    "- POST /settlements accepts a CSV upload\n"
    "- GET /reconciliation returns matched and unmatched totals\n\n"
    "```python\n"
    "def match(left, right):\n"
    "    ...\n"
    "```\n"
)


class StubOracle:
    """Completion and vision oracle double that replays canned answers."""

    def __init__(self, responses=(), vision_text: str = "") -> None:
        self._responses = list(responses)
        self.vision_text = vision_text
        self.calls: list[tuple[str, str]] = []
        self.vision_calls: list[str] = []

    def complete(self, system: str, user: str) -> str:
        self.calls.append((system, user))
        if not self._responses:
            raise AssertionError("oracle called more times than expected")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def extract_text(self, data: bytes, mime_type: str) -> str:
        self.vision_calls.append(mime_type)
        return self.vision_text


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def now():
    return pendulum.datetime(2025, 3, 1, 9, 0, tz="UTC")


@pytest.fixture
def clock(now) -> Callable[[], pendulum.DateTime]:
    return lambda: now


@pytest.fixture
def stub_oracle() -> type[StubOracle]:
    return StubOracle


@pytest.fixture
def resume_text() -> str:
    return BACKEND_RESUME


@pytest.fixture
def assignment_text() -> str:
    return ASSIGNMENT_TEXT


@pytest.fixture
def backend_job(now) -> Job:
    return Job(
        id="job-backend",
        title="Backend Engineer",
        role="Backend",
        description="Build payment APIs.",
        requirements="Python, Django, PostgreSQL",
        skills_required=["Python", "Django", "PostgreSQL"],
        experience_required=2,
        created_at=now,
    )


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def store(backend_job) -> InMemoryRecordStore:
    return InMemoryRecordStore(jobs=[backend_job])


@pytest.fixture
def make_candidate(store, blobs, backend_job, now) -> Callable[..., Candidate]:
    def factory(
        *,
        candidate_id: str = "cand-1",
        resume: str | None = BACKEND_RESUME,
        mime_type: str = "text/plain",
        **fields,
    ) -> Candidate:
        reference = None
        if resume is not None:
            reference = blobs.upload("resume.txt", resume.encode("utf-8"), mime_type)
        values = {
            "id": candidate_id,
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "role": backend_job.role,
            "experience": 3,
            "resume_ref": reference,
            "job_id": backend_job.id,
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        return store.save_candidate(Candidate(**values))

    return factory
