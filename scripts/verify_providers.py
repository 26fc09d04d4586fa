#!/usr/bin/env python3
"""Live provider check — run outside CI with real credentials.

Usage:
  1. Fill in GEMINI_API_KEY / OPENAI_API_KEY (and the *_LEARN_KEY variants) in .env
  2. Run: python scripts/verify_providers.py

Steps:
  Step 1: Show configuration (which provider slots have credentials)
  Step 2: One live call per configured slot
  Step 3: Full SEO chain through the fallback orchestrator
  Step 4: Full Learn chain through the fallback orchestrator
"""

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def step_header(n: int, title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  Step {n}: {title}")
    print(f"{'='*60}\n")


def ok(msg: str) -> None:
    print(f"  ✅ {msg}")


def fail(msg: str) -> None:
    print(f"  ❌ {msg}")


def info(msg: str) -> None:
    print(f"  ℹ️  {msg}")


def _mask(key: str) -> str:
    return f"set ({key[:6]}...)" if key else "not set"


async def step1_config() -> bool:
    step_header(1, "Provider Configuration")
    from app.config import settings

    print(f"    GEMINI_API_KEY:   {_mask(settings.gemini_api_key)}")
    print(f"    OPENAI_API_KEY:   {_mask(settings.openai_api_key)}")
    print(f"    GEMINI_LEARN_KEY: {_mask(settings.gemini_learn_key)}")
    print(f"    OPENAI_LEARN_KEY: {_mask(settings.openai_learn_key)}")
    ok(f"Models: gemini={settings.gemini_model} openai={settings.openai_model}")
    ok(f"Limits: seo={settings.daily_limit_seo} learn={settings.daily_limit_learn}")

    if settings.is_fallback_only:
        fail("No credentials configured — every request will get the static fallback")
        return False
    return True


async def step2_slots() -> bool:
    step_header(2, "One Call Per Provider Slot")
    from app.config import settings
    from app.orchestrator.fallback import FallbackOrchestrator
    from app.services.llm_client import call_provider

    chains = FallbackOrchestrator.from_settings(settings).chains
    all_ok = True
    for feature, slots in chains.items():
        for slot in slots:
            label = f"{feature.value}/{slot.provider.value}"
            if not slot.credential:
                info(f"{label}: skipped (no credential)")
                continue
            result = await call_provider(slot.provider, "Reply with the single word: pong", slot.credential)
            if result.ok:
                ok(f"{label}: {result.text.strip()[:40]!r}")
            else:
                fail(f"{label}: {result.reason} status={result.status} {result.detail[:80]}")
                all_ok = False
    return all_ok


async def step3_seo() -> bool:
    step_header(3, "SEO Chain")
    from app.config import settings
    from app.orchestrator.fallback import FallbackOrchestrator
    from app.orchestrator.prompts import build_seo_prompt
    from app.orchestrator.schemas import Feature, SeoRequest
    from app.orchestrator.seo_parser import parse_seo_payload

    req = SeoRequest(topic="home espresso for beginners", shorts=True)
    info(f"Input: topic='{req.topic}' shorts={req.shorts}")
    result = await FallbackOrchestrator.from_settings(settings).generate(Feature.SEO, build_seo_prompt(req))
    if not result.ok:
        fail(f"No provider succeeded: {result.detail}")
        return False

    data = parse_seo_payload(result.text)
    ok(f"Provider: {result.provider}")
    ok(f"Title: {data.title[:70]}")
    ok(f"Tags: {', '.join(data.tags[:5])}")
    return True


async def step4_learn() -> bool:
    step_header(4, "Learn Chain")
    from app.config import settings
    from app.orchestrator.fallback import FallbackOrchestrator
    from app.orchestrator.prompts import build_learn_prompt
    from app.orchestrator.schemas import Feature, LearnRequest

    req = LearnRequest(question="How long should a YouTube title be?")
    info(f"Input: question='{req.question}'")
    result = await FallbackOrchestrator.from_settings(settings).generate(Feature.LEARN, build_learn_prompt(req))
    if not result.ok:
        fail(f"No provider succeeded: {result.detail}")
        return False

    ok(f"Provider: {result.provider}")
    print(f"    {result.text.strip()[:200]}")
    return True


async def main():
    print("\n📺 TubeSEO Backend — Live Provider Verification")
    print("=" * 60)

    results = {1: await step1_config()}

    if not results[1]:
        print("\n⚠️  Skipping live calls (no credentials)")
        results[2] = results[3] = results[4] = False
    else:
        results[2] = await step2_slots()
        results[3] = await step3_seo()
        results[4] = await step4_learn()

    # Summary
    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    print(f"\n  {total_passed}/{len(results)} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    asyncio.run(main())
