"""Google Gemini (Generative Language API) adapter.

Docs: https://ai.google.dev/api/generate-content
"""

from typing import Any

from app.integrations.base import BaseProviderAdapter, dig, stringify

API_URL_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiAdapter(BaseProviderAdapter):
    """generateContent call; tolerant of older generateText-style bodies."""

    name = "gemini"
    max_output_tokens = 512

    def build_request(self, prompt: str, api_key: str) -> dict[str, Any]:
        return {
            "url": API_URL_TEMPLATE.format(model=self.model),
            "params": {"key": api_key},
            "headers": {"Content-Type": "application/json"},
            "json": {
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": self.temperature,
                    "maxOutputTokens": self.max_output_tokens,
                },
            },
        }

    def extract_text(self, body: Any) -> str:
        parts = dig(body, "candidates", 0, "content", "parts")
        if isinstance(parts, list):
            text = "".join(p.get("text", "") for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))
            if text:
                return text

        for path in (
            ("candidates", 0, "content", "text"),
            ("candidates", 0, "output"),
            ("outputText",),
        ):
            value = dig(body, *path)
            if isinstance(value, str) and value:
                return value

        return stringify(body)
