from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reverso_proxy.backoff import BackoffPolicy
from reverso_proxy.cache import ResultCache
from reverso_proxy.config import Settings, load_settings
from reverso_proxy.executor import RetryingExecutor
from reverso_proxy.languages import UnsupportedLanguageError, resolve_language
from reverso_proxy.limiter import RateLimiter
from reverso_proxy.models import ErrorResponse, TierName, TranslateResponse, TranslationRequest
from reverso_proxy.orchestrator import FallbackOrchestrator
from reverso_proxy.scrape import BrowserScrapeClient
from reverso_proxy.tiers import ContextLookupClient, TierClient, TranslationLookupClient

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_tiers(settings: Settings) -> dict[TierName, TierClient]:
    tiers: dict[TierName, TierClient] = {
        "context": ContextLookupClient(settings),
        "translation": TranslationLookupClient(settings),
    }
    if settings.enable_browser_scrape:
        tiers["scrape"] = BrowserScrapeClient(settings)
    return tiers


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def create_app(tiers: dict[TierName, TierClient] | None = None) -> FastAPI:
    settings = load_settings()
    configure_logging(settings)

    limiter = RateLimiter(
        reservoir=settings.rate_limit.reservoir,
        refill_interval=settings.rate_limit.refill_interval_seconds,
        min_spacing=settings.rate_limit.min_spacing_seconds,
    )
    cache = ResultCache(ttl=settings.cache_ttl_seconds, maxsize=settings.cache_max_entries)
    backoff = BackoffPolicy(base_delay=settings.backoff.base_seconds, jitter_ceiling=settings.backoff.jitter_seconds)
    orchestrator = FallbackOrchestrator(
        RetryingExecutor(limiter, cache, backoff),
        tiers if tiers is not None else build_tiers(settings),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Reverso proxy starting, tiers: {', '.join(orchestrator.tiers)}")
        yield
        cache.clear()
        logger.info("Reverso proxy stopped")

    app = FastAPI(title="Reverso Context Proxy", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.limiter = limiter
    app.state.cache = cache
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"-> {request.method} {request.url.path} query={dict(request.query_params)}")
        return await call_next(request)

    async def handle_translate_request(text: str | None, source: str, target: str):
        if not text or not text.strip():
            return _error(400, "Missing text parameter")

        try:
            source_lang = resolve_language(source, strict=settings.strict_language_codes)
            target_lang = resolve_language(target, strict=settings.strict_language_codes)
        except UnsupportedLanguageError:
            return _error(400, "Unsupported language code")

        request = TranslationRequest(text=text, source_lang=source_lang, target_lang=target_lang)
        try:
            return await orchestrator.translate(request, source=source, target=target)
        except Exception:
            logger.exception(f"Unexpected error translating '{text}'")
            return _error(500, "Internal server error")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get(
        "/api/translate",
        response_model=TranslateResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def translate(
        text: str | None = Query(default=None),
        source: str = Query(default=settings.default_source_language, alias="from"),
        target: str = Query(default=settings.default_target_language, alias="to"),
    ):
        return await handle_translate_request(text, source, target)

    return app


app = create_app()
