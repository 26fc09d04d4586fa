"""TubeSEO Backend — FastAPI application entry point.

Endpoints:
  GET  /api/health
  GET  /api/quota
  POST /api/seo/generate
  POST /api/learn/ask
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, settings
from app.orchestrator.fallback import FallbackOrchestrator
from app.orchestrator.router import AssistantRouter, FeatureOutcome
from app.orchestrator.schemas import Feature, LearnRequest, SeoRequest
from app.services.cache import ResponseCache
from app.services.identity import identity_from_request
from app.services.quota import QuotaTracker
from app.services.redis_pool import close_redis, connect_redis
from app.services.usage_store import MemoryUsageStore, RedisUsageStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger("tubeseo")


def build_assistant(cfg: Settings) -> AssistantRouter:
    """Wire quota, cache and provider chain with in-memory stores."""
    quota = QuotaTracker(
        limits={Feature.SEO: cfg.daily_limit_seo, Feature.LEARN: cfg.daily_limit_learn},
        store=MemoryUsageStore(),
    )
    cache = ResponseCache(ttl_seconds=cfg.cache_ttl_seconds, max_entries=cfg.cache_max_entries)
    return AssistantRouter(quota, cache, FallbackOrchestrator.from_settings(cfg))


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "TubeSEO backend starting | port=%d | fallback_only=%s",
        settings.port, settings.is_fallback_only,
    )

    # Redis is optional (graceful degradation to in-memory stores)
    redis_client = await connect_redis(settings.redis_url)
    assistant: AssistantRouter = app.state.assistant
    if redis_client is not None:
        assistant.cache.attach(redis_client)
        assistant.quota.store = RedisUsageStore(redis_client)
    logger.info("Stores: %s", "redis" if redis_client is not None else "memory")

    yield

    assistant.cache.detach()
    await close_redis(redis_client)
    logger.info("TubeSEO backend shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="TubeSEO API",
    description="YouTube SEO generation and learning Q&A with daily quotas",
    version="1.0.0",
    lifespan=lifespan,
)
app.state.assistant = build_assistant(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["POST", "OPTIONS", "GET"],
    allow_headers=["*"],
)


@app.middleware("http")
async def access_log(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        "%s %s | %d | %dms",
        request.method, request.url.path, response.status_code, elapsed_ms,
    )
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"ok": False, "error": "not found"})
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": str(exc.detail)})


@app.exception_handler(Exception)
async def server_error(request: Request, exc: Exception):
    logger.exception("%s %s error", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"ok": False, "error": "server error"})


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/api/health")
async def health():
    return {
        "ok": True,
        "time": datetime.now(timezone.utc).isoformat(),
        "note": "Working demo backend",
        "fallback_only": settings.is_fallback_only,
    }


@app.get("/api/quota")
async def quota(request: Request):
    assistant: AssistantRouter = request.app.state.assistant
    return await assistant.quota_status(identity_from_request(request))


@app.post("/api/seo/generate")
async def seo_generate(request: Request):
    return await _handle(request, SeoRequest, "seo/generate")


@app.post("/api/learn/ask")
async def learn_ask(request: Request):
    return await _handle(request, LearnRequest, "learn/ask")


async def _handle(request: Request, model: type[BaseModel], name: str) -> JSONResponse:
    """Parse body, run the feature, and map the outcome to a response."""
    body = await _read_body(request)
    if body is None:
        return JSONResponse(status_code=400, content={"ok": False, "error": "invalid JSON body"})

    try:
        payload = model.model_validate(body)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        return JSONResponse(status_code=422, content={"ok": False, "error": f"invalid fields: {fields}"})

    assistant: AssistantRouter = request.app.state.assistant
    identity = identity_from_request(request)
    try:
        if isinstance(payload, SeoRequest):
            outcome: FeatureOutcome = await assistant.handle_seo(identity, payload)
        else:
            outcome = await assistant.handle_learn(identity, payload)
    except Exception:
        logger.exception("%s error", name)
        return JSONResponse(status_code=500, content={"ok": False, "error": "server error"})

    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


async def _read_body(request: Request) -> dict[str, Any] | None:
    """JSON object body; empty body → {}; non-object JSON → {}; malformed → None."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > settings.max_body_bytes:
        raise HTTPException(status_code=413, detail="request body too large")
    raw = await request.body()
    if len(raw) > settings.max_body_bytes:
        raise HTTPException(status_code=413, detail="request body too large")
    if not raw.strip():
        return {}
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else {}


def run() -> None:
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
