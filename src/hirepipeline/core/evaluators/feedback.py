"""Human-readable feedback composed from parsed oracle answers."""

from __future__ import annotations

from typing import Iterable, Mapping

from ..parsing import ParsedScore

FALLBACK_NOTE = (
    "NOTE: the automatic evaluator returned a response that could not be read "
    "({reason}). The score was set to {score} and this result needs human review."
)


def score_lines(
    scores: Mapping[str, int | None],
    maxima: Mapping[str, int],
    labels: Mapping[str, str],
) -> list[str]:
    lines = []
    for key, maximum in maxima.items():
        value = scores.get(key)
        shown = "n/a" if value is None else str(value)
        lines.append(f"- {labels.get(key, key)}: {shown}/{maximum}")
    return lines


def bullet_section(title: str, items: Iterable[str]) -> list[str]:
    items = list(items)
    if not items:
        return []
    return ["", f"{title}:", *(f"- {item}" for item in items)]


def text_section(title: str, text: str | None) -> list[str]:
    if not text:
        return []
    return ["", f"{title}:", text]


def compose(
    *,
    headline: str,
    parsed: ParsedScore,
    scores: Mapping[str, int | None],
    maxima: Mapping[str, int],
    labels: Mapping[str, str],
    stored_total: int,
    text_titles: Mapping[str, str],
    list_titles: Mapping[str, str],
) -> str:
    lines = [headline, "", "Breakdown:", *score_lines(scores, maxima, labels)]
    for key, title in text_titles.items():
        lines.extend(text_section(title, parsed.text.get(key)))
    for key, title in list_titles.items():
        lines.extend(bullet_section(title, parsed.lists.get(key, [])))
    if parsed.used_fallback:
        lines.extend(["", FALLBACK_NOTE.format(reason=parsed.fallback_reason, score=stored_total)])
    return "\n".join(lines).strip()
