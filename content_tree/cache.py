"""
Bounded, time-expiring read cache for list and tree queries.

Keys are strings whose first segment is the exam id the entry belongs to
(``"<exam_id>|..."``) or ``"all"`` for entries spanning every exam, so a
write anywhere under an exam can drop that exam's entries by prefix.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "all"


def cache_key(scope: str, *parts: Any) -> str:
    return "|".join([str(scope)] + [str(part) for part in parts])


class TreeCache:
    """TTLCache (LRU eviction, per-entry TTL) plus prefix invalidation"""

    def __init__(
        self,
        max_entries: int = 500,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._entries: TTLCache = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=clock
        )

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        self.set(key, value)
        return value

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        stale = [key for key in list(self._entries.keys()) if key.startswith(prefix)]
        for key in stale:
            self._entries.pop(key, None)
        return len(stale)

    def invalidate_subtree(self, exam_id: str) -> int:
        """Drop every entry under an exam plus the cross-exam listings"""
        dropped = self.invalidate_prefix(cache_key(exam_id, ""))
        dropped += self.invalidate_prefix(cache_key(GLOBAL_SCOPE, ""))
        if dropped:
            logger.info(f"Cache invalidated {dropped} entries for exam {exam_id}")
        return dropped

    def clear(self) -> None:
        self._entries.clear()
