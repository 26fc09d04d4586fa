"""Feature router — quota, cache and provider fallback for both features.

Responsibilities (same sequence for seo and learn):
  - Refuse exhausted callers (429) without any provider call or charge
  - Serve cache hits for free
  - Reserve one unit of quota, then run the provider chain
  - On total provider failure serve a static fallback (503), still charged
  - On success parse, cache and return the result
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from app.orchestrator.fallback import FallbackOrchestrator
from app.orchestrator.fallback_data import learn_fallback, seo_fallback
from app.orchestrator.prompts import build_learn_prompt, build_seo_prompt
from app.orchestrator.schemas import Feature, LearnRequest, SeoRequest
from app.orchestrator.seo_parser import parse_seo_payload
from app.services.cache import ResponseCache
from app.services.quota import QuotaTracker

logger = logging.getLogger(__name__)

_FEATURE_LABELS = {Feature.SEO: "SEO", Feature.LEARN: "Learn"}


@dataclass
class FeatureOutcome:
    """HTTP status plus JSON body, independent of the web framework."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


class AssistantRouter:
    """Runs a feature request through quota → cache → providers."""

    def __init__(
        self,
        quota: QuotaTracker,
        cache: ResponseCache,
        providers: FallbackOrchestrator,
    ):
        self.quota = quota
        self.cache = cache
        self.providers = providers

    async def quota_status(self, identity: str) -> dict[str, Any]:
        day = self.quota.today()
        remaining = await self.quota.remaining(day, identity)
        return {
            "ok": True,
            "date": day,
            "remaining": {feature.value: count for feature, count in remaining.items()},
        }

    async def handle_seo(self, identity: str, req: SeoRequest) -> FeatureOutcome:
        return await self._run(
            Feature.SEO,
            identity,
            fields=req.fingerprint_fields(),
            prompt=lambda: build_seo_prompt(req),
            on_success=lambda text: {"data": parse_seo_payload(text).model_dump()},
            fallback=lambda: seo_fallback(req).model_dump(),
        )

    async def handle_learn(self, identity: str, req: LearnRequest) -> FeatureOutcome:
        return await self._run(
            Feature.LEARN,
            identity,
            fields=req.fingerprint_fields(),
            prompt=lambda: build_learn_prompt(req),
            on_success=lambda text: {"answer": (text or "").strip()},
            fallback=lambda: learn_fallback().model_dump(),
        )

    async def _run(
        self,
        feature: Feature,
        identity: str,
        *,
        fields: dict[str, Any],
        prompt: Callable[[], str],
        on_success: Callable[[str], dict[str, Any]],
        fallback: Callable[[], dict[str, Any]],
    ) -> FeatureOutcome:
        day = self.quota.today()
        remaining = await self.quota.remaining(day, identity)
        if remaining[feature] <= 0:
            return self._limit_reached(feature)

        cache_key = self.cache.fingerprint(feature.value, fields)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.info("Cache hit | feature=%s | id=%s", feature.value, identity[:8])
            return FeatureOutcome(200, {
                "ok": True,
                "cached": True,
                "provider": cached.provider or "cache",
                **cached.payload,
            })

        # Concurrent requests may have taken the last unit since the check above
        if not await self.quota.try_consume(day, identity, feature):
            return self._limit_reached(feature)

        try:
            result = await self.providers.generate(feature, prompt())
            if not result.ok:
                logger.warning(
                    "Serving fallback | feature=%s | reason=%s", feature.value, result.reason,
                )
                return FeatureOutcome(503, {
                    "ok": False,
                    "error": "AI unavailable",
                    "fallback": fallback(),
                })

            payload = on_success(result.text)
            await self.cache.put(cache_key, result.provider, payload)
        except Exception:
            await self.quota.refund(day, identity, feature)
            raise

        logger.info(
            "Generated | feature=%s | provider=%s | id=%s",
            feature.value, result.provider, identity[:8],
        )
        return FeatureOutcome(200, {
            "ok": True,
            "cached": False,
            "provider": result.provider or "ai",
            **payload,
        })

    def _limit_reached(self, feature: Feature) -> FeatureOutcome:
        label = _FEATURE_LABELS[feature]
        limit = self.quota.limit(feature)
        return FeatureOutcome(429, {
            "ok": False,
            "error": f"Daily {label} limit reached ({limit})",
        })
