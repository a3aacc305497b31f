from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from reverso_proxy.backoff import BackoffPolicy
from reverso_proxy.cache import CacheKey, ResultCache
from reverso_proxy.limiter import RateLimiter
from reverso_proxy.models import TierResult, TranslationRequest
from reverso_proxy.tiers import TierClient, TierError

logger = logging.getLogger(__name__)

# Faults an attempt may recover from; anything else is a bug and propagates.
RETRYABLE_ERRORS = (TierError, httpx.HTTPError, asyncio.TimeoutError)

SuccessPredicate = Callable[[TierResult], bool]


def _describe(retry_state: RetryCallState) -> str:
    outcome = retry_state.outcome
    if outcome is None:
        return "no outcome"
    if outcome.failed:
        exc = outcome.exception()
        return f"{type(exc).__name__}: {exc}"
    return "result rejected"


class RetryingExecutor:
    """Runs one tier with bounded retries through the shared cache and rate limiter.

    A cache hit that the success predicate accepts is returned without touching the
    upstream. Each attempt is admitted by the limiter and bounded by the tier's
    ``attempt_timeout``. Recoverable faults and
    results rejected by the success predicate are retried after ``backoff.delay(n)``;
    running out of attempts yields ``TierResult.failed()`` rather than an error.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        cache: ResultCache,
        backoff: BackoffPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.limiter = limiter
        self.cache = cache
        self.backoff = backoff or BackoffPolicy()
        self._sleep = sleep

    async def _attempt(self, tier: TierClient, request: TranslationRequest, key: CacheKey) -> TierResult:
        async def call() -> TierResult:
            if tier.attempt_timeout:
                return await asyncio.wait_for(tier.fetch(request), tier.attempt_timeout)
            return await tier.fetch(request)

        result = await self.limiter.schedule(call)
        self.cache.put(key, result)
        return result

    async def retry(
        self,
        tier: TierClient,
        request: TranslationRequest,
        max_attempts: int | None = None,
        succeeded: SuccessPredicate | None = None,
    ) -> TierResult:
        attempts = max(max_attempts or tier.max_attempts, 1)
        accept = succeeded or tier.succeeded
        key = CacheKey.for_request(tier.name, request)

        cached = self.cache.get(key)
        if cached is not None and accept(cached):
            logger.debug(f"{tier.name}: cache hit for '{request.text}'")
            return cached

        def log_retry(retry_state: RetryCallState) -> None:
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                f"{tier.name} attempt #{retry_state.attempt_number}/{attempts} failed "
                f"({_describe(retry_state)}); retrying in {delay:.2f}s"
            )

        def exhausted(retry_state: RetryCallState) -> TierResult:
            logger.info(f"{tier.name}: no usable result after {attempts} attempt(s), last: {_describe(retry_state)}")
            return TierResult.failed()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=self.backoff,
            retry=retry_if_exception_type(RETRYABLE_ERRORS) | retry_if_result(lambda result: not accept(result)),
            sleep=self._sleep,
            before_sleep=log_retry,
            retry_error_callback=exhausted,
        )
        return await retrying(self._attempt, tier, request, key)
