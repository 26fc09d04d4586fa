"""Interpret provider text as an SEO package.

Strict JSON first (via ``extract_json``); when that yields nothing usable the
raw text is sliced into title/description. Never fails the request.
"""

import logging
from typing import Any

from app.orchestrator.schemas import SeoData
from app.services.llm_client import extract_json

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 100
DESCRIPTION_MAX_CHARS = 400
SEO_KEYS = ("title", "description", "tags")


def parse_seo_payload(text: str) -> SeoData:
    parsed = extract_json(text or "", expected_keys=SEO_KEYS)
    if parsed is not None:
        data = _from_mapping(parsed)
        if data.title or data.description or data.tags:
            return data
    logger.info("SEO output not JSON — using best-effort extraction")
    return best_effort(text or "")


def best_effort(text: str) -> SeoData:
    return SeoData(
        title=text[:TITLE_MAX_CHARS],
        description=text[:DESCRIPTION_MAX_CHARS],
        tags=[],
    )


def _from_mapping(obj: dict[str, Any]) -> SeoData:
    return SeoData(
        title=_as_text(obj.get("title")),
        description=_as_text(obj.get("description")),
        tags=_as_tags(obj.get("tags")),
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(str(v) for v in value)
    return str(value)


def _as_tags(value: Any) -> list[str]:
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, list):
        return [str(t).strip() for t in value if str(t).strip()]
    return []
