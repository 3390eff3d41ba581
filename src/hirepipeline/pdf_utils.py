"""Utilities for extracting markdown from PDF résumés."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

import pymupdf
import pymupdf4llm

_DEFAULT_EXCLUDES: tuple[str, ...] = (
    r"page\s+\d+\s+of\s+\d+",
    r"\d+\s*/\s*\d+",
    r"-\s*\d+\s*-",
)


def extract_markdown(
    data: bytes,
    *,
    exclude_patterns: Sequence[str] | None = None,
) -> str:
    """Return markdown text extracted from an in-memory PDF, removing page furniture.

    Parameters
    ----------
    data:
        Raw PDF bytes.
    exclude_patterns:
        Optional regular expressions; any line that consists solely of a match
        is dropped. The default removes page counters such as ``Page 2 of 3``
        and ``2 / 3``.
    """

    with pymupdf.open(stream=data, filetype="pdf") as document:
        markdown = pymupdf4llm.to_markdown(document)
    excludes = list(exclude_patterns) if exclude_patterns is not None else list(_DEFAULT_EXCLUDES)
    patterns = _build_patterns(excludes)

    cleaned_lines: list[str] = []
    for line in markdown.splitlines():
        if not line.strip():
            cleaned_lines.append(line)
            continue
        if any(pattern.fullmatch(line.strip()) for pattern in patterns):
            continue
        cleaned_lines.append(line)
    return "\n".join(cleaned_lines).strip()


def _build_patterns(excludes: Iterable[str]) -> list[re.Pattern[str]]:
    return [re.compile(text, re.IGNORECASE) for text in excludes]


__all__ = ["extract_markdown"]
