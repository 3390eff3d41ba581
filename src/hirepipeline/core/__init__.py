"""Core pipeline components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .assignment_policy import AssignmentPolicy, AssignmentPolicyConfig, select_tier
from .evaluators import (
    ResumeEvaluation,
    ResumeEvaluator,
    SubmissionEvaluation,
    SubmissionEvaluator,
)
from .interfaces import Blob, BlobStore, CompletionOracle, DocumentExtractor, RecordStore, VisionOracle
from .lifecycle import CandidateLifecycle
from .normalizer import (
    FALLBACK_SCORE,
    PASS_THRESHOLD,
    SHORTLIST_THRESHOLD,
    ScoreNormalizer,
    ScoreRange,
)
from .prefilter import KeywordPrefilter, KeywordPrefilterConfig

__all__ = [
    "AssignmentPolicy",
    "AssignmentPolicyConfig",
    "Blob",
    "BlobStore",
    "CandidateLifecycle",
    "CompletionOracle",
    "DocumentExtractor",
    "FALLBACK_SCORE",
    "KeywordPrefilter",
    "KeywordPrefilterConfig",
    "PASS_THRESHOLD",
    "RecordStore",
    "ResumeEvaluation",
    "ResumeEvaluator",
    "SHORTLIST_THRESHOLD",
    "ScoreNormalizer",
    "ScoreRange",
    "SubmissionEvaluation",
    "SubmissionEvaluator",
    "VisionOracle",
    "select_tier",
]
