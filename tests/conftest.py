"""Shared test fixtures and configuration."""

import os

import pytest

# No real provider credentials or Redis during tests
for _var in ("GEMINI_API_KEY", "OPENAI_API_KEY", "GEMINI_LEARN_KEY", "OPENAI_LEARN_KEY", "REDIS_URL"):
    os.environ[_var] = ""

from unittest.mock import AsyncMock  # noqa: E402

from app.orchestrator.fallback import FallbackOrchestrator  # noqa: E402
from app.orchestrator.router import AssistantRouter  # noqa: E402
from app.orchestrator.schemas import Feature, ProviderResult  # noqa: E402
from app.services.cache import ResponseCache  # noqa: E402
from app.services.quota import QuotaTracker  # noqa: E402
from app.services.usage_store import MemoryUsageStore  # noqa: E402

TEST_DAY = "2026-10-18"


@pytest.fixture
def seo_json_text():
    """Typical provider output for an SEO prompt."""
    return (
        '```json\n'
        '{"title": "Espresso at Home in 60s", '
        '"description": "• Dial in grind\\n• Weigh your dose\\n• Time the shot\\nSubscribe!", '
        '"tags": ["espresso", "coffee", "barista", "home cafe"]}\n'
        '```'
    )


@pytest.fixture
def usage_store():
    return MemoryUsageStore()


@pytest.fixture
def quota(usage_store):
    return QuotaTracker(
        limits={Feature.SEO: 3, Feature.LEARN: 3},
        store=usage_store,
        clock=lambda: TEST_DAY,
    )


@pytest.fixture
def cache():
    return ResponseCache(ttl_seconds=0, max_entries=128)


@pytest.fixture
def providers(seo_json_text):
    """Orchestrator double: succeeds with Gemini unless a test says otherwise."""
    mock = AsyncMock(spec=FallbackOrchestrator)
    mock.generate.return_value = ProviderResult.success("gemini", seo_json_text)
    return mock


@pytest.fixture
def assistant(quota, cache, providers):
    return AssistantRouter(quota, cache, providers)
