"""Fallback orchestrator — fixed-order provider chain per feature.

Gemini first, then OpenAI; each slot tried at most once, first success wins.
Slots without a credential are skipped. No retries, no load balancing.
"""

import logging
from dataclasses import dataclass

from app.config import Settings
from app.orchestrator.schemas import Feature, ProviderName, ProviderResult
from app.services.llm_client import call_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSlot:
    provider: ProviderName
    credential: str = ""


class FallbackOrchestrator:
    """Sequence provider attempts for a feature and aggregate failure."""

    def __init__(self, chains: dict[Feature, list[ProviderSlot]], timeout: float | None = None):
        self.chains = chains
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FallbackOrchestrator":
        return cls(
            chains={
                Feature.SEO: [
                    ProviderSlot(ProviderName.GEMINI, settings.gemini_api_key),
                    ProviderSlot(ProviderName.OPENAI, settings.openai_api_key),
                ],
                Feature.LEARN: [
                    ProviderSlot(ProviderName.GEMINI, settings.gemini_learn_key),
                    ProviderSlot(ProviderName.OPENAI, settings.openai_learn_key),
                ],
            },
            timeout=settings.provider_timeout_seconds,
        )

    def configured(self, feature: Feature) -> list[ProviderName]:
        return [slot.provider for slot in self.chains.get(feature, []) if slot.credential]

    async def generate(self, feature: Feature, prompt: str) -> ProviderResult:
        failures: list[str] = []
        for slot in self.chains.get(feature, []):
            if not slot.credential:
                continue
            result = await call_provider(slot.provider, prompt, slot.credential, timeout=self.timeout)
            if result.ok:
                return result
            failures.append(f"{slot.provider.value}:{result.reason}")

        logger.warning(
            "All providers failed | feature=%s | attempts=%s",
            feature.value, ",".join(failures) or "none",
        )
        return ProviderResult.failure("none", "no_providers_ok", detail=";".join(failures))
