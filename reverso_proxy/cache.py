from __future__ import annotations

import logging
import threading
import time
from typing import Callable, NamedTuple

from cachetools import TTLCache  # type: ignore[import-untyped]

from reverso_proxy.models import TierName, TierResult, TranslationRequest

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_ENTRIES = 10_000


class CacheKey(NamedTuple):
    operation: TierName
    source_lang: str
    target_lang: str
    text: str

    @classmethod
    def for_request(cls, operation: TierName, request: TranslationRequest) -> CacheKey:
        return cls(operation, request.source_lang, request.target_lang, request.text)


class ResultCache:
    """Short-lived memo of successful tier results.

    Entries expire lazily on read. Failed or empty results are never stored, so a
    lookup that came back empty is retried on the next request.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> TierResult | None:
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                self.misses += 1
            else:
                self.hits += 1
        return result

    def put(self, key: CacheKey, result: TierResult) -> bool:
        if not result.ok or result.is_empty:
            return False
        with self._lock:
            self._entries[key] = result
        logger.debug(f"Cached {key.operation} result for {key.source_lang}->{key.target_lang}")
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
