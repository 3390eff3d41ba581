"""Dependency injection container for the hiring pipeline."""

from __future__ import annotations

from pathlib import Path

import pendulum
from dependency_injector import containers, providers

from .core import (
    AssignmentPolicy,
    CandidateLifecycle,
    KeywordPrefilter,
    KeywordPrefilterConfig,
    ResumeEvaluator,
    ScoreNormalizer,
    SubmissionEvaluator,
)
from .extraction import ExtractionConfig, TextExtractor
from .llm import HTTPOracleClient
from .pipeline import AuditLogger, HiringPipeline
from .stores import FileBlobStore, InMemoryBlobStore, InMemoryRecordStore, JsonFileRecordStore


class PipelineContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    record_store = providers.Singleton(InMemoryRecordStore)
    blob_store = providers.Singleton(InMemoryBlobStore)
    audit_logger = providers.Object(None)
    clock = providers.Object(pendulum.now)

    oracle_client = providers.Singleton(HTTPOracleClient)

    normalizer = providers.Singleton(ScoreNormalizer)
    lifecycle = providers.Singleton(CandidateLifecycle)
    prefilter = providers.Singleton(KeywordPrefilter)

    text_extractor = providers.Singleton(TextExtractor, vision=oracle_client)

    assignment_policy = providers.Singleton(
        AssignmentPolicy,
        oracle=oracle_client,
        store=record_store,
        lifecycle=lifecycle,
        now_provider=clock,
    )

    resume_evaluator = providers.Singleton(
        ResumeEvaluator,
        store=record_store,
        blobs=blob_store,
        extractor=text_extractor,
        oracle=oracle_client,
        assignment_policy=assignment_policy,
        prefilter=prefilter,
        normalizer=normalizer,
        lifecycle=lifecycle,
        trace_resume_text=config.debug.trace_resume_text.as_(bool),
        now_provider=clock,
    )

    submission_evaluator = providers.Singleton(
        SubmissionEvaluator,
        store=record_store,
        oracle=oracle_client,
        normalizer=normalizer,
        lifecycle=lifecycle,
        now_provider=clock,
    )

    pipeline = providers.Factory(
        HiringPipeline,
        store=record_store,
        blobs=blob_store,
        resume_evaluator=resume_evaluator,
        submission_evaluator=submission_evaluator,
        assignment_policy=assignment_policy,
        lifecycle=lifecycle,
        audit_logger=audit_logger,
        now_provider=clock,
    )


def create_container(
    *,
    settings: dict | None = None,
    api_key: str | None = None,
) -> PipelineContainer:
    """Instantiate container with optional overrides."""

    container = PipelineContainer()
    container.config.from_dict({"debug": {"trace_resume_text": False}})

    if not settings and not api_key:
        return container

    settings = settings if isinstance(settings, dict) else {}

    if settings.get("debug"):
        container.config.debug.from_dict(settings["debug"])

    oracle_settings = dict(settings.get("oracle", {}))
    if oracle_settings or api_key:
        container.oracle_client.override(
            providers.Singleton(HTTPOracleClient, api_key=api_key, **oracle_settings)
        )

    if "extraction" in settings:
        extraction_config = ExtractionConfig(**settings["extraction"])
        container.text_extractor.override(
            providers.Singleton(TextExtractor, vision=container.oracle_client, config=extraction_config)
        )

    if "prefilter" in settings:
        prefilter_config = KeywordPrefilterConfig(**settings["prefilter"])
        container.prefilter.override(providers.Singleton(KeywordPrefilter, config=prefilter_config))

    storage = settings.get("storage", {})
    if storage.get("records_path"):
        container.record_store.override(
            providers.Singleton(JsonFileRecordStore, Path(storage["records_path"]))
        )
    if storage.get("blobs_path"):
        container.blob_store.override(providers.Singleton(FileBlobStore, Path(storage["blobs_path"])))
    if storage.get("audit_log"):
        container.audit_logger.override(providers.Singleton(AuditLogger, Path(storage["audit_log"])))

    return container
