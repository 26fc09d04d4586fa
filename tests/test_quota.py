"""Tests for the quota tracker and usage stores."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import RedisError

from app.orchestrator.schemas import Feature
from app.services.quota import QuotaTracker, utc_today
from app.services.usage_store import KEY_TTL_SECONDS, MemoryUsageStore, RedisUsageStore

DAY = "2026-10-18"


class TestQuotaTracker:
    @pytest.mark.asyncio
    async def test_fresh_identity_has_full_budget(self, quota):
        assert await quota.remaining(DAY, "u1") == {Feature.SEO: 3, Feature.LEARN: 3}

    @pytest.mark.asyncio
    async def test_remaining_is_monotonic_and_floors_at_zero(self, quota):
        seen = []
        for _ in range(5):
            await quota.increment(DAY, "u1", Feature.SEO)
            seen.append((await quota.remaining(DAY, "u1"))[Feature.SEO])
        assert seen == [2, 1, 0, 0, 0]

    @pytest.mark.asyncio
    async def test_features_are_independent(self, quota):
        await quota.increment(DAY, "u1", Feature.SEO)
        remaining = await quota.remaining(DAY, "u1")
        assert remaining[Feature.SEO] == 2
        assert remaining[Feature.LEARN] == 3

    @pytest.mark.asyncio
    async def test_identities_are_independent(self, quota):
        await quota.increment(DAY, "u1", Feature.SEO)
        assert (await quota.remaining(DAY, "u2"))[Feature.SEO] == 3

    @pytest.mark.asyncio
    async def test_new_day_resets_budget(self, quota):
        for _ in range(3):
            await quota.increment(DAY, "u1", Feature.LEARN)
        assert (await quota.remaining(DAY, "u1"))[Feature.LEARN] == 0
        assert (await quota.remaining("2026-10-19", "u1"))[Feature.LEARN] == 3

    @pytest.mark.asyncio
    async def test_try_consume_stops_at_limit(self, quota):
        taken = [await quota.try_consume(DAY, "u1", Feature.SEO) for _ in range(4)]
        assert taken == [True, True, True, False]
        assert (await quota.remaining(DAY, "u1"))[Feature.SEO] == 0

    @pytest.mark.asyncio
    async def test_concurrent_consumers_cannot_overspend(self, quota):
        await quota.increment(DAY, "u1", Feature.SEO)
        await quota.increment(DAY, "u1", Feature.SEO)
        results = await asyncio.gather(*(quota.try_consume(DAY, "u1", Feature.SEO) for _ in range(10)))
        assert results.count(True) == 1

    @pytest.mark.asyncio
    async def test_refund_returns_unit(self, quota):
        await quota.try_consume(DAY, "u1", Feature.SEO)
        await quota.refund(DAY, "u1", Feature.SEO)
        assert (await quota.remaining(DAY, "u1"))[Feature.SEO] == 3

    @pytest.mark.asyncio
    async def test_refund_never_goes_negative(self, quota):
        await quota.refund(DAY, "u1", Feature.SEO)
        assert (await quota.remaining(DAY, "u1"))[Feature.SEO] == 3

    @pytest.mark.asyncio
    async def test_zero_limit_blocks_everything(self):
        tracker = QuotaTracker({Feature.SEO: 0, Feature.LEARN: 1}, MemoryUsageStore(), clock=lambda: DAY)
        assert await tracker.try_consume(DAY, "u1", Feature.SEO) is False
        assert (await tracker.remaining(DAY, "u1"))[Feature.SEO] == 0

    def test_today_uses_clock(self, quota):
        assert quota.today() == "2026-10-18"

    def test_utc_today_format(self):
        day = utc_today()
        assert len(day) == 10
        assert day[4] == "-" and day[7] == "-"


class TestMemoryUsageStore:
    @pytest.mark.asyncio
    async def test_get_creates_empty_entry(self):
        store = MemoryUsageStore()
        assert await store.get(DAY, "u1") == {}
        assert store.days() == [DAY]

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        store = MemoryUsageStore()
        await store.incr(DAY, "u1", "seo")
        counts = await store.get(DAY, "u1")
        counts["seo"] = 99
        assert (await store.get(DAY, "u1"))["seo"] == 1

    @pytest.mark.asyncio
    async def test_rollover_drops_older_days(self):
        store = MemoryUsageStore()
        await store.incr("2026-10-16", "u1", "seo")
        await store.incr("2026-10-17", "u1", "seo")
        await store.incr(DAY, "u1", "seo")
        assert store.days() == [DAY]


class TestRedisUsageStore:
    def _client(self, reserve_result=1, decr_result=0):
        client = MagicMock()
        reserve = AsyncMock(return_value=reserve_result)
        decr = AsyncMock(return_value=decr_result)
        client.register_script.side_effect = [reserve, decr]
        return client, reserve, decr

    def test_key_layout(self):
        client, _, _ = self._client()
        store = RedisUsageStore(client)
        assert store.key(DAY, "abc") == "ts:usage:2026-10-18:abc"

    @pytest.mark.asyncio
    async def test_get_parses_hash(self):
        client, _, _ = self._client()
        client.hgetall = AsyncMock(return_value={"seo": "2", "learn": "1"})
        store = RedisUsageStore(client)
        assert await store.get(DAY, "abc") == {"seo": 2, "learn": 1}

    @pytest.mark.asyncio
    async def test_incr_if_below_runs_script(self):
        client, reserve, _ = self._client(reserve_result=1)
        store = RedisUsageStore(client)
        assert await store.incr_if_below(DAY, "abc", "seo", 3) is True
        reserve.assert_awaited_once_with(
            keys=["ts:usage:2026-10-18:abc"],
            args=["seo", 3, KEY_TTL_SECONDS],
        )

    @pytest.mark.asyncio
    async def test_incr_if_below_refused(self):
        client, _, _ = self._client(reserve_result=-1)
        store = RedisUsageStore(client)
        assert await store.incr_if_below(DAY, "abc", "seo", 3) is False

    @pytest.mark.asyncio
    async def test_decr_runs_script(self):
        client, _, decr = self._client(decr_result=1)
        store = RedisUsageStore(client)
        assert await store.decr(DAY, "abc", "learn") == 1
        decr.assert_awaited_once_with(keys=["ts:usage:2026-10-18:abc"], args=["learn"])

    @pytest.mark.asyncio
    async def test_falls_back_to_memory_on_redis_error(self):
        client, reserve, _ = self._client()
        reserve.side_effect = RedisError("connection lost")
        client.hgetall = AsyncMock(side_effect=RedisError("connection lost"))
        fallback = MemoryUsageStore()
        store = RedisUsageStore(client, fallback=fallback)

        assert await store.incr_if_below(DAY, "abc", "seo", 1) is True
        assert await store.incr_if_below(DAY, "abc", "seo", 1) is False
        assert await store.get(DAY, "abc") == {"seo": 1}

    @pytest.mark.asyncio
    async def test_outage_keeps_last_known_usage(self):
        client, reserve, _ = self._client(reserve_result=3)
        client.hgetall = AsyncMock(return_value={"seo": "3"})
        fallback = MemoryUsageStore()
        store = RedisUsageStore(client, fallback=fallback)

        assert await store.get(DAY, "abc") == {"seo": 3}
        assert await fallback.get(DAY, "abc") == {"seo": 3}

        reserve.side_effect = RedisError("connection lost")
        assert await store.incr_if_below(DAY, "abc", "seo", 3) is False

    @pytest.mark.asyncio
    async def test_reservation_is_mirrored(self):
        client, _, _ = self._client(reserve_result=2)
        fallback = MemoryUsageStore()
        store = RedisUsageStore(client, fallback=fallback)
        assert await store.incr_if_below(DAY, "abc", "learn", 3) is True
        assert await fallback.get(DAY, "abc") == {"learn": 2}
