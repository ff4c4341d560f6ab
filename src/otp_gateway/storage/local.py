"""In-process fallback store used while Redis is unavailable."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from otp_gateway.models.otp import OtpEntry
from otp_gateway.storage.base import BaseStore, StoreResult

logger = logging.getLogger(__name__)


class FallbackStore(BaseStore):
    """Lock-guarded dict of ``identity → OtpEntry``.

    Expired entries are purged lazily when read.  Nothing survives a restart
    and nothing is shared between processes.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, OtpEntry] = {}

    @property
    def name(self) -> str:
        return "local"

    def _pop_live(self, key: str, now: float) -> OtpEntry | None:
        """Remove and return the entry for *key*; caller holds the lock."""
        entry = self._entries.pop(key, None)
        if entry is not None and entry.is_expired(now):
            logger.debug("Evicted expired local entry for %s", key)
            return None
        return entry

    async def put(self, key: str, value: str, ttl_seconds: int) -> StoreResult:
        entry = OtpEntry.issue(key, value, ttl_seconds, self._clock())
        with self._lock:
            self._entries[key] = entry
        return StoreResult.success()

    async def take(self, key: str) -> StoreResult:
        now = self._clock()
        with self._lock:
            entry = self._pop_live(key, now)
        if entry is None:
            return StoreResult.success()
        return StoreResult.success(entry.code)

    async def consume(self, key: str, submitted: str, max_attempts: int) -> StoreResult:
        now = self._clock()
        with self._lock:
            entry = self._pop_live(key, now)
            if entry is None:
                return StoreResult.success()
            if entry.matches(submitted):
                return StoreResult.success(entry.code)

            entry = entry.with_failed_attempt()
            if entry.attempts < max_attempts:
                self._entries[key] = entry
            else:
                logger.info("Too many wrong codes for %s; local entry dropped", key)
        return StoreResult.success(None, found=True)

    async def discard(self, key: str) -> None:
        """Drop any entry for *key* without reading it."""
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
