"""Keyword pre-filter that screens out obviously irrelevant résumés."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from rapidfuzz import fuzz, process

from ..schemas import Job

ROLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Backend": (
        "python", "java", "golang", "node.js", "django", "flask", "fastapi", "spring",
        "rest", "api", "microservices", "sql", "postgresql", "mysql", "redis", "kafka",
        "backend", "server",
    ),
    "Frontend": (
        "javascript", "typescript", "react", "angular", "vue", "html", "css", "redux",
        "next.js", "webpack", "frontend", "ui", "responsive",
    ),
    "DataAnalyst": (
        "sql", "excel", "tableau", "power bi", "python", "pandas", "statistics",
        "analytics", "dashboard", "data analysis", "reporting", "etl",
    ),
    "ML": (
        "machine learning", "deep learning", "pytorch", "tensorflow", "scikit-learn",
        "nlp", "computer vision", "model", "python", "numpy", "pandas", "mlops",
    ),
    "DevOps": (
        "docker", "kubernetes", "terraform", "ansible", "aws", "azure", "gcp", "ci/cd",
        "jenkins", "linux", "prometheus", "grafana", "helm", "devops",
    ),
}

NO_KEYWORDS_FEEDBACK = (
    "Automatic screening: the resume does not mention any technical skills or "
    "experience relevant to this role, so it was not sent for detailed scoring."
)

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9+#./-]*")


@dataclass
class KeywordPrefilterConfig:
    """Configuration for the résumé keyword pre-filter."""

    min_keyword_hits: int = 1
    min_similarity: float = 90.0
    # Fuzzy matching only applies to keywords at least this long.
    min_fuzzy_length: int = 5
    extra_keywords: dict[str, list[str]] = field(default_factory=dict)


@dataclass(slots=True)
class PrefilterResult:
    passed: bool
    hits: list[str]
    keywords_checked: int


class KeywordPrefilter:
    """Check a résumé for a minimum presence of role-relevant keywords."""

    def __init__(self, *, config: KeywordPrefilterConfig | None = None) -> None:
        self._config = config or KeywordPrefilterConfig()

    def keywords_for(self, job: Job) -> list[str]:
        keywords: list[str] = []
        keywords.extend(skill.strip().lower() for skill in job.skills_required if skill.strip())
        keywords.extend(ROLE_KEYWORDS.get(job.role, ()))
        keywords.extend(kw.lower() for kw in self._config.extra_keywords.get(job.role, []))
        return list(dict.fromkeys(keywords))

    def check(self, text: str, job: Job) -> PrefilterResult:
        keywords = self.keywords_for(job)
        lowered = text.lower()
        tokens = sorted(set(_TOKEN_RE.findall(lowered)))
        hits = self._match_keywords(lowered, tokens, keywords)
        return PrefilterResult(
            passed=len(hits) >= self._config.min_keyword_hits,
            hits=hits,
            keywords_checked=len(keywords),
        )

    def _match_keywords(
        self,
        text: str,
        tokens: Sequence[str],
        keywords: Iterable[str],
    ) -> list[str]:
        matches: list[str] = []
        for keyword in keywords:
            if _contains_phrase(text, keyword):
                matches.append(keyword)
                continue
            if " " in keyword or len(keyword) < self._config.min_fuzzy_length or not tokens:
                continue
            best = process.extractOne(
                keyword,
                tokens,
                scorer=fuzz.ratio,
                score_cutoff=self._config.min_similarity,
            )
            if best is not None:
                matches.append(keyword)
        return matches


def _contains_phrase(text: str, keyword: str) -> bool:
    pattern = rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])"
    return re.search(pattern, text) is not None


__all__ = [
    "KeywordPrefilter",
    "KeywordPrefilterConfig",
    "NO_KEYWORDS_FEEDBACK",
    "PrefilterResult",
    "ROLE_KEYWORDS",
]
