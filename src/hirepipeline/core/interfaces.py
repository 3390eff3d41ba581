"""Collaborator contracts consumed by the pipeline core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from ..schemas import Assignment, Candidate, Job


@dataclass(frozen=True, slots=True)
class Blob:
    """Downloaded document with its declared MIME type."""

    data: bytes
    mime_type: str
    size: int


@runtime_checkable
class RecordStore(Protocol):
    """CRUD over pipeline records with read-after-write consistency.

    Lookups raise ``NotFoundError`` for unknown ids and writes raise
    ``PersistenceError`` when they cannot be made durable.
    """

    def get_job(self, job_id: str) -> Job:
        """Return the job with ``job_id``."""

    def get_candidate(self, candidate_id: str) -> Candidate:
        """Return the candidate with ``candidate_id``."""

    def get_assignment(self, assignment_id: str) -> Assignment:
        """Return the assignment with ``assignment_id``."""

    def find_assignment_by_token(self, assignment_id: str, token: str) -> Assignment:
        """Return the assignment only when ``token`` matches its anti-cheat token."""

    def assignments_for_candidate(self, candidate_id: str) -> list[Assignment]:
        """Return every assignment generated for a candidate, oldest first."""

    def list_jobs(self) -> list[Job]:
        """Return all jobs."""

    def list_candidates(self) -> list[Candidate]:
        """Return all candidates."""

    def list_assignments(self) -> list[Assignment]:
        """Return all assignments."""

    def save_job(self, job: Job) -> Job:
        """Insert or replace a job."""

    def save_candidate(self, candidate: Candidate) -> Candidate:
        """Insert or replace a candidate."""

    def save_assignment(self, assignment: Assignment) -> Assignment:
        """Insert or replace an assignment."""


@runtime_checkable
class BlobStore(Protocol):
    """Object storage for uploaded résumés."""

    def download(self, reference: str) -> Blob:
        """Return the stored document for ``reference``."""

    def upload(self, name: str, data: bytes, mime_type: str | None = None) -> str:
        """Store ``data`` and return an opaque reference."""


@runtime_checkable
class DocumentExtractor(Protocol):
    """Plain-text extraction from document bytes."""

    def extract(self, data: bytes, mime_type: str, **log_context: Any) -> str:
        """Return plain text or raise ``ExtractionError``."""


@runtime_checkable
class CompletionOracle(Protocol):
    """Text completion capability used for scoring and generation."""

    def complete(self, system: str, user: str) -> str:
        """Return free-form text for a system instruction and user payload."""


@runtime_checkable
class VisionOracle(Protocol):
    """Document OCR capability."""

    def extract_text(self, data: bytes, mime_type: str) -> str:
        """Return all textual content of a document image or PDF."""


__all__ = [
    "Blob",
    "BlobStore",
    "CompletionOracle",
    "DocumentExtractor",
    "RecordStore",
    "VisionOracle",
]
