"""Defensive parsing of semi-structured oracle output."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

import structlog

from ..errors import OracleParseError
from .normalizer import FALLBACK_SCORE, ScoreNormalizer, ScoreRange

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?(.*?)```", re.DOTALL)


@dataclass(frozen=True, slots=True)
class OracleSchema:
    """Declared shape of a scoring oracle answer."""

    name: str
    total_fields: tuple[str, ...]
    total_range: ScoreRange
    sub_scores: Mapping[str, ScoreRange]
    text_fields: tuple[str, ...] = ()
    list_fields: tuple[str, ...] = ()


@dataclass(slots=True)
class ParsedScore:
    """Clamped oracle answer, or the fallback record when parsing failed."""

    total: float
    sub_scores: dict[str, float | None]
    text: dict[str, str] = field(default_factory=dict)
    lists: dict[str, list[str]] = field(default_factory=dict)
    used_fallback: bool = False
    fallback_reason: str | None = None


def strip_code_fences(text: str) -> str:
    """Return the body of the first markdown code fence, or ``text`` unchanged."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def iter_balanced_objects(text: str) -> Iterator[str]:
    """Yield balanced ``{...}`` spans in order, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for idx in range(start, len(text)):
            char = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    end = idx
                    break
        if end == -1:
            # Truncated object: nothing later can be balanced either.
            return
        yield text[start : end + 1]
        start = text.find("{", end + 1)


def extract_json_object(text: str) -> dict[str, Any]:
    """Return the first balanced JSON object found in ``text``.

    Raises ``OracleParseError`` when no span decodes to a JSON object.
    """
    if not text or not text.strip():
        raise OracleParseError("empty oracle response")
    body = strip_code_fences(text)
    for candidate in iter_balanced_objects(body):
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(decoded, dict):
            return decoded
    raise OracleParseError("no JSON object found in oracle response")


class OracleResponseParser:
    """Parse, validate and clamp oracle answers for one schema."""

    def __init__(self, schema: OracleSchema, *, normalizer: ScoreNormalizer | None = None) -> None:
        self._schema = schema
        self._normalizer = normalizer or ScoreNormalizer()
        self._logger = structlog.get_logger(__name__)

    @property
    def schema(self) -> OracleSchema:
        return self._schema

    def parse(self, text: str, **log_context: Any) -> ParsedScore:
        try:
            payload = extract_json_object(text)
            total = self._read_total(payload)
        except OracleParseError as exc:
            self._logger.warning(
                "oracle.parse_fallback",
                schema=self._schema.name,
                reason=str(exc),
                fallback_score=FALLBACK_SCORE,
                response_chars=len(text or ""),
                **log_context,
            )
            return self.fallback(str(exc))

        sub_scores = {
            name: self._normalizer.normalize(payload.get(name), bounds)
            for name, bounds in self._schema.sub_scores.items()
        }
        return ParsedScore(
            total=total,
            sub_scores=sub_scores,
            text={
                name: value
                for name in self._schema.text_fields
                if (value := _as_text(payload.get(name)))
            },
            lists={
                name: values
                for name in self._schema.list_fields
                if (values := _as_list(payload.get(name)))
            },
        )

    def fallback(self, reason: str) -> ParsedScore:
        return ParsedScore(
            total=float(FALLBACK_SCORE),
            sub_scores={name: None for name in self._schema.sub_scores},
            used_fallback=True,
            fallback_reason=reason,
        )

    def _read_total(self, payload: dict[str, Any]) -> float:
        for name in self._schema.total_fields:
            if name not in payload:
                continue
            total = self._normalizer.normalize(payload[name], self._schema.total_range)
            if total is None:
                raise OracleParseError(f"field {name!r} is not numeric")
            return total
        raise OracleParseError(
            f"missing required field {self._schema.total_fields[0]!r}"
        )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return "; ".join(str(item).strip() for item in value if str(item).strip())
    return str(value).strip()


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return [str(value).strip()]


__all__ = [
    "OracleResponseParser",
    "OracleSchema",
    "ParsedScore",
    "extract_json_object",
    "iter_balanced_objects",
    "strip_code_fences",
]
