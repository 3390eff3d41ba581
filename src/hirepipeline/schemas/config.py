"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ExtractionSection(BaseModel):
    max_bytes: int | None = Field(default=None, gt=0)
    min_text_chars: int | None = Field(default=None, ge=1)
    min_pdf_text_chars: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class PrefilterSection(BaseModel):
    min_keyword_hits: int | None = Field(default=None, ge=1)
    min_similarity: float | None = Field(default=None, ge=0, le=100)
    extra_keywords: dict[str, list[str]] | None = None

    model_config = ConfigDict(extra="forbid")


class OracleSection(BaseModel):
    endpoint: str | None = None
    model: str | None = None
    vision_model: str | None = None
    timeout: float | None = Field(default=None, gt=0)

    model_config = ConfigDict(extra="forbid")


class DebugSection(BaseModel):
    trace_resume_text: bool = False

    model_config = ConfigDict(extra="forbid")


class StorageSection(BaseModel):
    records_path: str | None = None
    blobs_path: str | None = None
    audit_log: str | None = None

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    extraction: ExtractionSection = Field(default_factory=ExtractionSection)
    prefilter: PrefilterSection = Field(default_factory=PrefilterSection)
    oracle: OracleSection = Field(default_factory=OracleSection)
    debug: DebugSection = Field(default_factory=DebugSection)
    storage: StorageSection = Field(default_factory=StorageSection)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for section in ("extraction", "prefilter", "oracle", "storage"):
            values = getattr(self, section).model_dump(exclude_none=True)
            if values:
                settings[section] = values
        if self.debug.trace_resume_text:
            settings["debug"] = self.debug.model_dump()
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
