"""Base class for text-generation provider adapters.

Each adapter owns its request shape and its response extractor; the HTTP
call, timing, and failure tagging are shared here. ``generate`` never raises
for network or API errors; failures come back as ``ProviderResult``.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from app.orchestrator.schemas import ProviderResult

logger = logging.getLogger(__name__)


class BaseProviderAdapter(ABC):
    """One upstream provider: build request, call, extract text."""

    name: str
    temperature: float = 0.6
    max_output_tokens: int = 800

    def __init__(self, model: str, timeout: float = 20.0):
        self.model = model
        self.timeout = timeout

    @abstractmethod
    def build_request(self, prompt: str, api_key: str) -> dict[str, Any]:
        """Return httpx.post kwargs (url, json, headers, params)."""
        ...

    @abstractmethod
    def extract_text(self, body: Any) -> str:
        """Pull generated text from a response body; never raises."""
        ...

    async def generate(self, prompt: str, api_key: str) -> ProviderResult:
        request = self.build_request(prompt, api_key)
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await asyncio.wait_for(client.post(**request), self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError):
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("%s timeout | %dms (limit %.0fs)", self.name, elapsed_ms, self.timeout)
            return ProviderResult.failure(self.name, "timeout", detail=f"timeout after {elapsed_ms}ms")
        except httpx.HTTPError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("%s transport error | %dms | %s", self.name, elapsed_ms, str(e)[:200])
            return ProviderResult.failure(self.name, "transport_error", detail=str(e))

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if not resp.is_success:
            logger.warning(
                "%s non-ok | status=%d | %dms | %s",
                self.name, resp.status_code, elapsed_ms, resp.text[:200],
            )
            return ProviderResult.failure(
                self.name, "http_error", status=resp.status_code, detail=resp.text,
            )

        try:
            body = resp.json()
        except (json.JSONDecodeError, ValueError):
            body = resp.text

        text = self.extract_text(body)
        logger.info("%s OK | model=%s | chars=%d | %dms", self.name, self.model, len(text), elapsed_ms)
        return ProviderResult.success(self.name, text)


def stringify(body: Any) -> str:
    """Last-resort extraction: the body itself as text."""
    if isinstance(body, str):
        return body
    try:
        return json.dumps(body, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(body)


def dig(body: Any, *path: str | int) -> Any:
    """Follow dict keys / list indexes; None when any step is missing."""
    current = body
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
    return current
