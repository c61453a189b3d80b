"""
In-memory caches for catalog results.
Search results and recipe details expire independently; a periodic sweep
drops expired entries. A miss is never an error, callers fall through to the
catalog or to a local recipe.
"""
import asyncio
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.core.logging import get_logger

logger = get_logger("services.recipe_cache")


class TTLCache:
    """Dictionary with per-entry expiry."""

    def __init__(
        self,
        ttl_seconds: float,
        check_period: float = 3600,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self.check_period = check_period
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> List[str]:
        """Keys of live entries."""
        now = self._clock()
        return [key for key, (expires_at, _) in self._entries.items() if now < expires_at]

    def evict_expired(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self.keys())


class ResultCache:
    """Search-result and recipe-detail caches sharing one sweep task."""

    def __init__(
        self,
        search_ttl: float = 86400,
        detail_ttl: float = 86400,
        check_period: float = 3600,
        clock: Callable[[], float] = time.monotonic
    ):
        self.search = TTLCache(search_ttl, check_period, clock)
        self.detail = TTLCache(detail_ttl, check_period, clock)
        self.check_period = check_period
        self._sweep_task: Optional[asyncio.Task] = None

    @staticmethod
    def search_key(user_id: int, day: date, slot_hint: str) -> str:
        """Per user, per calendar day and per batch, so same-day regenerations reuse results."""
        return f"search_{user_id}_{day.isoformat()}_{slot_hint}"

    @staticmethod
    def detail_key(recipe_id: int) -> str:
        return f"recipe_{recipe_id}"

    def evict_expired(self) -> int:
        removed = self.search.evict_expired() + self.detail.evict_expired()
        if removed:
            logger.debug(f"Evicted {removed} expired cache entries")
        return removed

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.check_period)
            self.evict_expired()

    def start_sweep(self) -> None:
        """Start the periodic eviction task on the running loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_forever())

    async def stop_sweep(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

    def stats(self) -> Dict[str, int]:
        return {"search_entries": len(self.search), "detail_entries": len(self.detail)}
