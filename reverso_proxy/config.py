from __future__ import annotations

import os
from dataclasses import dataclass


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


@dataclass(frozen=True)
class RateLimitSettings:
    reservoir: int
    refill_interval_seconds: float
    min_spacing_seconds: float


@dataclass(frozen=True)
class BackoffSettings:
    base_seconds: float
    jitter_seconds: float


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    log_level: str
    cors_allow_origins: list[str]
    default_source_language: str
    default_target_language: str
    strict_language_codes: bool
    request_timeout_seconds: float
    scrape_timeout_seconds: float
    browser_executable_path: str | None
    enable_browser_scrape: bool
    context_max_attempts: int
    translation_max_attempts: int
    backoff: BackoffSettings
    rate_limit: RateLimitSettings
    cache_ttl_seconds: float
    cache_max_entries: int
    user_agent: str


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    return int(raw)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    return float(raw)


def _bool_env(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def _env(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    if not value:
        return default
    return value


def _list_env(name: str, default: list[str]) -> list[str]:
    raw = _env(name)
    if raw is None:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_settings() -> Settings:
    return Settings(
        host=_env("HOST", "0.0.0.0"),
        port=_int_env("PORT", 3000),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        cors_allow_origins=_list_env("CORS_ALLOW_ORIGINS", ["*"]),
        default_source_language=_env("DEFAULT_SOURCE_LANGUAGE", "en"),
        default_target_language=_env("DEFAULT_TARGET_LANGUAGE", "ru"),
        strict_language_codes=_bool_env("STRICT_LANGUAGE_CODES", False),
        request_timeout_seconds=_float_env("REQUEST_TIMEOUT_SECONDS", 15.0),
        scrape_timeout_seconds=_float_env("SCRAPE_TIMEOUT_SECONDS", 30.0),
        browser_executable_path=_env("BROWSER_EXECUTABLE_PATH"),
        enable_browser_scrape=_bool_env("ENABLE_BROWSER_SCRAPE", True),
        context_max_attempts=_int_env("CONTEXT_MAX_ATTEMPTS", 5),
        translation_max_attempts=_int_env("TRANSLATION_MAX_ATTEMPTS", 5),
        backoff=BackoffSettings(
            base_seconds=_float_env("BACKOFF_BASE_SECONDS", 0.3),
            jitter_seconds=_float_env("BACKOFF_JITTER_SECONDS", 0.5),
        ),
        rate_limit=RateLimitSettings(
            reservoir=_int_env("RATE_LIMIT_RESERVOIR", 30),
            refill_interval_seconds=_float_env("RATE_LIMIT_REFILL_SECONDS", 60.0),
            min_spacing_seconds=_float_env("RATE_LIMIT_MIN_SPACING_SECONDS", 0.5),
        ),
        cache_ttl_seconds=_float_env("CACHE_TTL_SECONDS", 300.0),
        cache_max_entries=_int_env("CACHE_MAX_ENTRIES", 10_000),
        user_agent=_env("UPSTREAM_USER_AGENT", DEFAULT_USER_AGENT),
    )
