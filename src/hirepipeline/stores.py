"""Reference record and blob stores."""

from __future__ import annotations

import json
import mimetypes
import re
import secrets
import uuid
from pathlib import Path
from typing import Iterable, TypeVar

import pendulum
import structlog
from pydantic import BaseModel, ValidationError

from .core.interfaces import Blob
from .errors import NotFoundError, PersistenceError
from .schemas import Assignment, Candidate, Job

ModelT = TypeVar("ModelT", bound=BaseModel)

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._@-]+")


class InMemoryRecordStore:
    """Dictionary-backed record store.

    Records are copied on the way in and out so callers never share mutable
    state with the store.
    """

    def __init__(
        self,
        *,
        jobs: Iterable[Job] = (),
        candidates: Iterable[Candidate] = (),
        assignments: Iterable[Assignment] = (),
    ) -> None:
        self._jobs: dict[str, Job] = {job.id: job for job in jobs}
        self._candidates: dict[str, Candidate] = {c.id: c for c in candidates}
        self._assignments: dict[str, Assignment] = {a.id: a for a in assignments}

    def get_job(self, job_id: str) -> Job:
        return _fetch(self._jobs, job_id, "job")

    def get_candidate(self, candidate_id: str) -> Candidate:
        return _fetch(self._candidates, candidate_id, "candidate")

    def get_assignment(self, assignment_id: str) -> Assignment:
        return _fetch(self._assignments, assignment_id, "assignment")

    def find_assignment_by_token(self, assignment_id: str, token: str) -> Assignment:
        assignment = self._assignments.get(assignment_id)
        # Unknown id and wrong token are indistinguishable to the caller.
        if assignment is None or not token or not secrets.compare_digest(
            assignment.anti_cheat_token.encode(), token.encode()
        ):
            raise NotFoundError("assignment", assignment_id)
        return assignment.model_copy(deep=True)

    def assignments_for_candidate(self, candidate_id: str) -> list[Assignment]:
        matches = [a for a in self._assignments.values() if a.candidate_id == candidate_id]
        matches.sort(key=lambda a: a.created_at)
        return [a.model_copy(deep=True) for a in matches]

    def list_jobs(self) -> list[Job]:
        return [job.model_copy(deep=True) for job in self._jobs.values()]

    def list_candidates(self) -> list[Candidate]:
        return [c.model_copy(deep=True) for c in self._candidates.values()]

    def list_assignments(self) -> list[Assignment]:
        return [a.model_copy(deep=True) for a in self._assignments.values()]

    def save_job(self, job: Job) -> Job:
        return self._put(self._jobs, job)

    def save_candidate(self, candidate: Candidate) -> Candidate:
        return self._put(self._candidates, candidate)

    def save_assignment(self, assignment: Assignment) -> Assignment:
        return self._put(self._assignments, assignment)

    def _put(self, records: dict[str, ModelT], record: ModelT) -> ModelT:
        key = record.id  # type: ignore[attr-defined]
        previous = records.get(key)
        records[key] = record.model_copy(deep=True)
        try:
            self._commit()
        except PersistenceError:
            # A write that never reached disk must not be visible in memory either.
            if previous is None:
                del records[key]
            else:
                records[key] = previous
            raise
        return record.model_copy(deep=True)

    def _commit(self) -> None:
        """Hook for durable subclasses."""


class JsonFileRecordStore(InMemoryRecordStore):
    """Record store persisted as a single JSON document after every write."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        super().__init__()
        if self._path.exists():
            self._load()

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"cannot read record store {self._path}: {exc}") from exc
        try:
            self._jobs = _index(Job, data.get("jobs", []))
            self._candidates = _index(Candidate, data.get("candidates", []))
            self._assignments = _index(Assignment, data.get("assignments", []))
        except ValidationError as exc:
            raise PersistenceError(f"record store {self._path} contains invalid records: {exc}") from exc

    def _commit(self) -> None:
        payload = {
            "jobs": [job.model_dump(mode="json") for job in self._jobs.values()],
            "candidates": [c.model_dump(mode="json") for c in self._candidates.values()],
            "assignments": [a.model_dump(mode="json") for a in self._assignments.values()],
        }
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            raise PersistenceError(f"cannot write record store {self._path}: {exc}") from exc


class InMemoryBlobStore:
    """Blob store holding documents in memory."""

    def __init__(self) -> None:
        self._blobs: dict[str, tuple[bytes, str]] = {}

    def upload(self, name: str, data: bytes, mime_type: str | None = None) -> str:
        reference = _blob_reference(name)
        self._blobs[reference] = (bytes(data), mime_type or _guess_mime(name))
        return reference

    def download(self, reference: str) -> Blob:
        try:
            data, mime_type = self._blobs[reference]
        except KeyError as exc:
            raise NotFoundError("resume", reference) from exc
        return Blob(data=data, mime_type=mime_type, size=len(data))


class FileBlobStore:
    """Blob store writing documents beneath a base directory.

    The declared MIME type is kept in a ``<reference>.meta`` sidecar so that
    uploads named without an extension keep their type.
    """

    META_SUFFIX = ".meta"

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)
        self._logger = structlog.get_logger(__name__)

    def upload(self, name: str, data: bytes, mime_type: str | None = None) -> str:
        reference = _blob_reference(name)
        path = self._base_path / reference
        resolved_mime = mime_type or _guess_mime(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            self._meta_path(path).write_text(
                json.dumps({"mime_type": resolved_mime}), encoding="utf-8"
            )
        except OSError as exc:
            raise PersistenceError(f"cannot store resume {reference}: {exc}") from exc
        self._logger.info("blob.uploaded", reference=reference, size=len(data), mime_type=resolved_mime)
        return reference

    def download(self, reference: str) -> Blob:
        path = (self._base_path / reference).resolve()
        if (
            self._base_path.resolve() not in path.parents
            or not path.is_file()
            or path.name.endswith(self.META_SUFFIX)
        ):
            raise NotFoundError("resume", reference)
        data = path.read_bytes()
        return Blob(data=data, mime_type=self._read_mime(path), size=len(data))

    def _meta_path(self, path: Path) -> Path:
        return path.with_name(path.name + self.META_SUFFIX)

    def _read_mime(self, path: Path) -> str:
        meta_path = self._meta_path(path)
        if not meta_path.is_file():
            return _guess_mime(path.name)
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"cannot read metadata for resume {path.name}: {exc}") from exc
        return meta.get("mime_type") or _guess_mime(path.name)


def _fetch(records: dict[str, ModelT], identifier: str, kind: str) -> ModelT:
    try:
        return records[identifier].model_copy(deep=True)
    except KeyError as exc:
        raise NotFoundError(kind, identifier) from exc


def _index(model: type[ModelT], rows: list[dict]) -> dict[str, ModelT]:
    records = [model.model_validate(row) for row in rows]
    return {record.id: record for record in records}  # type: ignore[attr-defined]


def _blob_reference(name: str) -> str:
    safe = _SAFE_NAME_RE.sub("-", Path(name).name).strip("-.") or "document"
    return f"{pendulum.now('UTC').format('YYYYMMDDHHmmss')}-{uuid.uuid4().hex[:8]}-{safe}"


def _guess_mime(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


__all__ = [
    "FileBlobStore",
    "InMemoryBlobStore",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
]
