"""Provider gateway — one call to one provider, plus JSON extraction.

``call_provider`` is the only entry point the orchestrator uses. It returns a
``ProviderResult`` for every outcome; a missing credential short-circuits
without touching the network.
"""

import json
import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from app.config import settings
from app.integrations.base import BaseProviderAdapter
from app.integrations.gemini import GeminiAdapter
from app.integrations.openai_chat import OpenAIChatAdapter
from app.orchestrator.schemas import ProviderName, ProviderResult

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")

_ADAPTERS: dict[ProviderName, type[BaseProviderAdapter]] = {
    ProviderName.GEMINI: GeminiAdapter,
    ProviderName.OPENAI: OpenAIChatAdapter,
}


def get_adapter(provider: ProviderName, timeout: float | None = None) -> BaseProviderAdapter:
    """Build the adapter for a provider with the configured model and timeout."""
    models = {
        ProviderName.GEMINI: settings.gemini_model,
        ProviderName.OPENAI: settings.openai_model,
    }
    return _ADAPTERS[provider](
        model=models[provider],
        timeout=settings.provider_timeout_seconds if timeout is None else timeout,
    )


async def call_provider(
    provider: ProviderName,
    prompt: str,
    credential: str | None,
    *,
    timeout: float | None = None,
) -> ProviderResult:
    """Call one provider with one credential. Never raises for API errors."""
    if not credential:
        logger.debug("Provider skipped | provider=%s | no credential", provider.value)
        return ProviderResult.failure(provider.value, "no_credential")

    adapter = get_adapter(provider, timeout)
    return await adapter.generate(prompt, credential)


def load_prompt(name: str) -> str:
    """Load a prompt template from app/prompts/{name}.txt."""
    prompt_path = Path(__file__).parent.parent / "prompts" / f"{name}.txt"
    return prompt_path.read_text(encoding="utf-8")


def extract_json(text: str, expected_keys: Iterable[str] = ()) -> dict | None:
    """Pick the JSON object out of chatty model output.

    Candidates come from fenced blocks, the whole text, then every balanced
    ``{...}`` span in order. With ``expected_keys`` the first candidate that
    has any of them wins; otherwise (or when none has them) the first
    candidate does.
    """
    if not text:
        return None

    wanted = set(expected_keys)
    first = None
    for candidate in _json_candidates(text):
        if first is None:
            first = candidate
        if not wanted or wanted & candidate.keys():
            return candidate
    return first


def _json_candidates(text: str) -> Iterator[dict]:
    for block in _FENCE.findall(text):
        obj = _as_object(block)
        if obj is not None:
            yield obj

    stripped = text.strip()
    if stripped.startswith("{"):
        obj = _as_object(stripped)
        if obj is not None:
            yield obj

    for span in _brace_spans(text):
        obj = _as_object(span)
        if obj is not None:
            yield obj


def _as_object(s: str) -> dict | None:
    try:
        obj = json.loads(s)
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


def _brace_spans(text: str) -> Iterator[str]:
    """Top-level ``{...}`` spans, skipping braces inside JSON strings."""
    depth = 0
    start = -1
    quoted = False
    escaped = False
    for i, ch in enumerate(text):
        if quoted:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                quoted = False
            continue
        if ch == '"' and depth:
            quoted = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0:
                yield text[start:i + 1]
