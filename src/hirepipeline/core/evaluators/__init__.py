"""Evaluator implementations for the pipeline core."""

from .resume import RESUME_SCHEMA, ResumeEvaluation, ResumeEvaluator
from .submission import SUBMISSION_SCHEMA, SubmissionEvaluation, SubmissionEvaluator

__all__ = [
    "RESUME_SCHEMA",
    "ResumeEvaluation",
    "ResumeEvaluator",
    "SUBMISSION_SCHEMA",
    "SubmissionEvaluation",
    "SubmissionEvaluator",
]
