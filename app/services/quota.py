"""Daily quota tracker — per identity, per feature, UTC calendar days.

Charging policy:
  - cache hits are free
  - exhausted callers are never charged again
  - a provider attempt is charged whether it succeeded or fell back
    (reserved up front with ``try_consume`` so concurrent requests cannot
    overspend the last unit)
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from app.orchestrator.schemas import Feature
from app.services.usage_store import MemoryUsageStore, UsageStore

logger = logging.getLogger(__name__)


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class QuotaTracker:
    """Remaining-budget bookkeeping on top of a UsageStore."""

    def __init__(
        self,
        limits: dict[Feature, int],
        store: UsageStore | None = None,
        clock: Callable[[], str] = utc_today,
    ):
        self.limits = {feature: max(0, int(limits.get(feature, 0))) for feature in Feature}
        self.store = store or MemoryUsageStore()
        self._clock = clock

    def today(self) -> str:
        return self._clock()

    def limit(self, feature: Feature) -> int:
        return self.limits[feature]

    async def remaining(self, day: str, identity: str) -> dict[Feature, int]:
        counts = await self.store.get(day, identity)
        return {
            feature: max(0, self.limits[feature] - counts.get(feature.value, 0))
            for feature in Feature
        }

    async def increment(self, day: str, identity: str, feature: Feature) -> int:
        count = await self.store.incr(day, identity, feature.value)
        logger.info(
            "Quota charged | feature=%s | id=%s | used=%d/%d",
            feature.value, identity[:8], count, self.limits[feature],
        )
        return count

    async def try_consume(self, day: str, identity: str, feature: Feature) -> bool:
        """Atomically take one unit of budget. False when none is left."""
        taken = await self.store.incr_if_below(day, identity, feature.value, self.limits[feature])
        if taken:
            logger.info("Quota reserved | feature=%s | id=%s", feature.value, identity[:8])
        else:
            logger.info("Quota exhausted | feature=%s | id=%s", feature.value, identity[:8])
        return taken

    async def refund(self, day: str, identity: str, feature: Feature) -> None:
        """Return a reserved unit after an internal fault."""
        await self.store.decr(day, identity, feature.value)
        logger.info("Quota refunded | feature=%s | id=%s", feature.value, identity[:8])
