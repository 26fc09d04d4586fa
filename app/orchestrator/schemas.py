"""Pydantic models for API input/output — shared across both features.

Split into: enums, feature inputs, provider results, and final API payloads.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


# ═══════════════ ENUMS ═══════════════

class Feature(str, Enum):
    """Request category; each has its own quota and cache namespace."""

    SEO = "seo"
    LEARN = "learn"


class ProviderName(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"


# ═══════════════ FEATURE INPUTS ═══════════════

def _coerce_text(value: Any, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    return value


class SeoRequest(BaseModel):
    """Body of POST /api/seo/generate."""

    topic: str = ""
    script: str = ""
    language: str = "en"
    shorts: bool = False

    @field_validator("topic", "script", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _coerce_text(v, "")

    @field_validator("language", mode="before")
    @classmethod
    def _language(cls, v: Any) -> Any:
        return _coerce_text(v, "en") or "en"

    @field_validator("shorts", mode="before")
    @classmethod
    def _shorts(cls, v: Any) -> Any:
        return False if v is None else v

    def fingerprint_fields(self) -> dict[str, Any]:
        """Fields that decide the generated content (cache key input)."""
        return {
            "topic": self.topic,
            "script": self.script,
            "language": self.language,
            "shorts": self.shorts,
        }


class LearnRequest(BaseModel):
    """Body of POST /api/learn/ask."""

    question: str = ""
    language: str = "en"
    section: str = "seo-basics"

    @field_validator("question", mode="before")
    @classmethod
    def _question(cls, v: Any) -> Any:
        return _coerce_text(v, "")

    @field_validator("language", mode="before")
    @classmethod
    def _language(cls, v: Any) -> Any:
        return _coerce_text(v, "en") or "en"

    @field_validator("section", mode="before")
    @classmethod
    def _section(cls, v: Any) -> Any:
        return _coerce_text(v, "seo-basics") or "seo-basics"

    def fingerprint_fields(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "language": self.language,
            "section": self.section,
        }


# ═══════════════ PROVIDER RESULTS ═══════════════

class ProviderResult(BaseModel):
    """Uniform outcome of one provider call (never raised, always returned)."""

    ok: bool = False
    provider: str = ""
    text: str = ""
    reason: str = ""
    status: int | None = None
    detail: str = ""

    @classmethod
    def success(cls, provider: str, text: str) -> ProviderResult:
        return cls(ok=True, provider=provider, text=text)

    @classmethod
    def failure(
        cls,
        provider: str,
        reason: str,
        status: int | None = None,
        detail: str = "",
    ) -> ProviderResult:
        return cls(ok=False, provider=provider, reason=reason, status=status, detail=detail[:500])


# ═══════════════ FINAL API PAYLOADS ═══════════════

class SeoData(BaseModel):
    """Structured SEO package returned to the frontend."""

    title: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)


class LearnFallback(BaseModel):
    answer: str = ""


class QuotaRemaining(BaseModel):
    seo: int = 0
    learn: int = 0
