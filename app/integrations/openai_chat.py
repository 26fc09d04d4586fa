"""OpenAI Chat Completions adapter.

Docs: https://platform.openai.com/docs/api-reference/chat
"""

from typing import Any

from app.integrations.base import BaseProviderAdapter, dig, stringify

API_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIChatAdapter(BaseProviderAdapter):
    name = "openai"

    def build_request(self, prompt: str, api_key: str) -> dict[str, Any]:
        return {
            "url": API_URL,
            "headers": {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            "json": {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.temperature,
                "max_tokens": self.max_output_tokens,
            },
        }

    def extract_text(self, body: Any) -> str:
        for path in (
            ("choices", 0, "message", "content"),
            ("choices", 0, "text"),
            ("output_text",),
        ):
            value = dig(body, *path)
            if isinstance(value, str) and value:
                return value
        return stringify(body)
