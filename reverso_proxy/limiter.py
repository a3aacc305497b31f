"""Process-wide admission control for upstream calls.

Every call to the upstream service goes through one ``RateLimiter``. It keeps a
reservoir of call tokens that is reset to full capacity at fixed interval
boundaries, enforces a minimum spacing between call starts and lets only one
call run at a time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RESERVOIR = 30
DEFAULT_REFILL_INTERVAL_SECONDS = 60.0
DEFAULT_MIN_SPACING_SECONDS = 0.5


@dataclass(frozen=True)
class RateLimiterState:
    available_tokens: int
    last_refill: float
    last_call_at: float | None
    in_flight: int


class RateLimiter:
    """Reservoir limiter with fixed-interval refill, call spacing and a single call slot."""

    def __init__(
        self,
        reservoir: int = DEFAULT_RESERVOIR,
        refill_interval: float = DEFAULT_REFILL_INTERVAL_SECONDS,
        min_spacing: float = DEFAULT_MIN_SPACING_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if reservoir < 1:
            raise ValueError("reservoir must be at least 1")
        if refill_interval <= 0:
            raise ValueError("refill_interval must be positive")
        self.reservoir = reservoir
        self.refill_interval = refill_interval
        self.min_spacing = max(min_spacing, 0.0)
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._tokens = reservoir
        self._window_start = clock()
        self._last_refill = self._window_start
        self._last_call_at: float | None = None
        self._in_flight = 0
        logger.info(
            f"RateLimiter initialized: {reservoir} calls / {refill_interval}s, "
            f"min spacing {self.min_spacing}s"
        )

    @property
    def state(self) -> RateLimiterState:
        return RateLimiterState(
            available_tokens=self._tokens,
            last_refill=self._last_refill,
            last_call_at=self._last_call_at,
            in_flight=self._in_flight,
        )

    def _refill(self, now: float) -> None:
        elapsed_windows = int((now - self._window_start) // self.refill_interval)
        if elapsed_windows < 1:
            return
        self._window_start += elapsed_windows * self.refill_interval
        self._tokens = self.reservoir
        self._last_refill = now

    def _wait_time(self, now: float) -> float:
        if self._tokens < 1:
            return self._window_start + self.refill_interval - now
        if self._last_call_at is None:
            return 0.0
        return self._last_call_at + self.min_spacing - now

    async def _admit(self) -> None:
        while True:
            now = self._clock()
            self._refill(now)
            wait_time = self._wait_time(now)
            if wait_time <= 0:
                self._tokens -= 1
                self._last_call_at = now
                return
            if self._tokens < 1:
                logger.debug(f"Reservoir empty. Waiting {wait_time:.2f}s for refill.")
            await self._sleep(wait_time)

    async def schedule(self, call: Callable[[], Awaitable[T]]) -> T:
        """Run ``call`` once it is admitted; callers queue rather than fail."""
        async with self._lock:
            await self._admit()
            self._in_flight += 1
            try:
                return await call()
            finally:
                self._in_flight -= 1
