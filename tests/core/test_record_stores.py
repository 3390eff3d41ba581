from __future__ import annotations

from pathlib import Path

import pytest

from hirepipeline.errors import NotFoundError, PersistenceError
from hirepipeline.extraction import TextExtractor
from hirepipeline.schemas import Assignment, Candidate
from hirepipeline.stores import FileBlobStore, InMemoryRecordStore, JsonFileRecordStore


def test_in_memory_store_copies_records(backend_job):
    store = InMemoryRecordStore(jobs=[backend_job])

    fetched = store.get_job(backend_job.id)
    fetched.skills_required.append("Rust")

    assert "Rust" not in store.get_job(backend_job.id).skills_required
    with pytest.raises(NotFoundError):
        store.get_candidate("missing")


def test_find_assignment_by_token_hides_wrong_tokens(store, make_candidate, now):
    candidate = make_candidate()
    assignment = store.save_assignment(
        Assignment(
            id="asg-1",
            candidate_id=candidate.id,
            assignment_text="Build a ledger.",
            difficulty_level="Mid",
            time_limit_hours=72,
            created_at=now,
            deadline=now.add(hours=72),
            anti_cheat_token="capability-token-for-tests-0123456789abcdef",
        )
    )

    assert store.find_assignment_by_token("asg-1", assignment.anti_cheat_token).id == "asg-1"
    for token in ("", "capability-token-for-tests-0000000000000000", "capability-tökén"):
        with pytest.raises(NotFoundError):
            store.find_assignment_by_token("asg-1", token)
    with pytest.raises(NotFoundError):
        store.find_assignment_by_token("asg-2", assignment.anti_cheat_token)


def test_json_file_store_round_trips(tmp_path: Path, backend_job, now):
    path = tmp_path / "records" / "pipeline.json"
    store = JsonFileRecordStore(path)
    store.save_job(backend_job)
    store.save_candidate(
        Candidate(
            id="cand-1",
            name="Ada Lovelace",
            email="ada@example.com",
            role="Backend",
            experience=3,
            job_id=backend_job.id,
            resume_score=8,
            status="Shortlisted",
            created_at=now,
            updated_at=now,
        )
    )

    reopened = JsonFileRecordStore(path)

    assert reopened.get_job(backend_job.id).skills_required == backend_job.skills_required
    candidate = reopened.get_candidate("cand-1")
    assert candidate.status == "Shortlisted"
    assert candidate.resume_score == 8
    assert not path.with_suffix(".json.tmp").exists()


def test_json_file_store_discards_records_it_could_not_write(tmp_path: Path, backend_job):
    path = tmp_path / "records.json"
    (tmp_path / "records.json.tmp").mkdir()
    store = JsonFileRecordStore(path)

    with pytest.raises(PersistenceError):
        store.save_job(backend_job)

    assert store.list_jobs() == []
    assert not path.exists()


def test_json_file_store_keeps_previous_record_when_write_fails(tmp_path: Path, backend_job):
    path = tmp_path / "records.json"
    store = JsonFileRecordStore(path)
    store.save_job(backend_job)
    (tmp_path / "records.json.tmp").mkdir()

    with pytest.raises(PersistenceError):
        store.save_job(backend_job.model_copy(update={"status": "closed"}))

    assert store.get_job(backend_job.id).is_open
    assert JsonFileRecordStore(path).get_job(backend_job.id).is_open


def test_json_file_store_rejects_corrupt_file(tmp_path: Path):
    path = tmp_path / "pipeline.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        JsonFileRecordStore(path)


def test_file_blob_store_round_trip_and_traversal(tmp_path: Path):
    blobs = FileBlobStore(tmp_path / "blobs")

    reference = blobs.upload("../../Ada CV.pdf", b"%PDF-1.4", "application/pdf")
    blob = blobs.download(reference)

    assert reference.endswith("Ada-CV.pdf")
    assert blob.data == b"%PDF-1.4"
    assert blob.mime_type == "application/pdf"
    assert blob.size == 8
    with pytest.raises(NotFoundError):
        blobs.download("../outside.pdf")


def test_file_blob_store_keeps_declared_mime_type(tmp_path: Path, resume_text):
    blobs = FileBlobStore(tmp_path / "blobs")

    reference = blobs.upload("upload", resume_text.encode("utf-8"), "text/plain")
    blob = blobs.download(reference)

    assert blob.mime_type == "text/plain"
    assert TextExtractor().extract(blob.data, blob.mime_type) == resume_text
    with pytest.raises(NotFoundError):
        blobs.download(reference + FileBlobStore.META_SUFFIX)


def test_file_blob_store_guesses_mime_without_metadata(tmp_path: Path):
    base = tmp_path / "blobs"
    base.mkdir()
    (base / "legacy-cv.pdf").write_bytes(b"%PDF-1.4")

    assert FileBlobStore(base).download("legacy-cv.pdf").mime_type == "application/pdf"
