"""Error taxonomy shared by every pipeline stage."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for failures surfaced to pipeline callers."""

    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(PipelineError):
    """A job, candidate or assignment reference does not resolve."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} {identifier!r} not found")
        self.kind = kind
        self.identifier = identifier


class ExtractionError(PipelineError):
    """No usable text could be obtained from a document."""


class UnsupportedDocumentError(ExtractionError):
    """The document type or size is outside what extraction accepts."""


class OracleError(PipelineError):
    """The external oracle failed in a way that is not simply transient."""


class OracleUnavailableError(OracleError):
    """Rate limit, exhausted quota, timeout or transport failure."""

    retryable = True

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class OracleParseError(OracleError):
    """Oracle output could not be parsed into the expected record.

    Scoring call sites handle this internally through the fallback record; it is
    never raised out of an evaluator.
    """


class PreconditionError(PipelineError):
    """An operation was invoked on a record in the wrong state."""


class IllegalTransitionError(PreconditionError):
    """A lifecycle transition is not permitted from the current state."""

    def __init__(self, machine: str, state: str, event: str):
        super().__init__(f"{machine}: event {event!r} is not allowed from state {state!r}")
        self.machine = machine
        self.state = state
        self.event = event


class PersistenceError(PipelineError):
    """A store write failed after the result had been computed."""


class AssignmentGenerationError(PipelineError):
    """The generation oracle returned content that cannot be used as an assignment."""


__all__ = [
    "AssignmentGenerationError",
    "ExtractionError",
    "IllegalTransitionError",
    "NotFoundError",
    "OracleError",
    "OracleParseError",
    "OracleUnavailableError",
    "PersistenceError",
    "PipelineError",
    "PreconditionError",
    "UnsupportedDocumentError",
]
