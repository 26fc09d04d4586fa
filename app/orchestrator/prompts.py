"""Prompt builders — pure functions over the normalized request models."""

from app.orchestrator.schemas import LearnRequest, SeoRequest
from app.services.llm_client import load_prompt

SCRIPT_MAX_CHARS = 1000
QUESTION_MAX_CHARS = 800

_SEO_LANGUAGES = {"hi": "Hindi", "hinglish": "Hinglish"}
_LEARN_LANGUAGES = {"hi": "Hindi"}


def build_seo_prompt(req: SeoRequest) -> str:
    return load_prompt("seo").format(
        language_label=_SEO_LANGUAGES.get(req.language, "English"),
        video_type="Shorts" if req.shorts else "Long form",
        topic=req.topic or "General",
        script=req.script[:SCRIPT_MAX_CHARS],
    ).strip()


def build_learn_prompt(req: LearnRequest) -> str:
    return load_prompt("learn").format(
        language_label=_LEARN_LANGUAGES.get(req.language, "English"),
        section=req.section,
        question=req.question[:QUESTION_MAX_CHARS],
    ).strip()
