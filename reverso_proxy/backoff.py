from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable

from tenacity import RetryCallState


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff with additive uniform jitter.

    ``delay(n) = base_delay * 2**n + uniform(0, jitter_ceiling)`` for a 0-based attempt ``n``.
    Instances double as a tenacity ``wait`` strategy.
    """

    base_delay: float = 0.3
    jitter_ceiling: float = 0.5
    uniform: Callable[[float, float], float] = field(default=random.uniform, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.jitter_ceiling < 0:
            raise ValueError("jitter_ceiling must not be negative")

    def delay(self, attempt: int) -> float:
        if attempt < 0:
            raise ValueError("attempt must be >= 0")
        jitter = self.uniform(0.0, self.jitter_ceiling) if self.jitter_ceiling else 0.0
        return self.base_delay * (2**attempt) + jitter

    def __call__(self, retry_state: RetryCallState) -> float:
        # tenacity numbers attempts from 1
        return self.delay(retry_state.attempt_number - 1)
