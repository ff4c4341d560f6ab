"""Store handle — tracks which OTP store is active and whether Redis is healthy."""

from __future__ import annotations

import asyncio
import enum
import logging

from otp_gateway.storage.local import FallbackStore
from otp_gateway.storage.remote import RedisCredentialStore

logger = logging.getLogger(__name__)


class StoreStatus(str, enum.Enum):
    UNPROBED = "unprobed"
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    LOCAL_ONLY = "local_only"


class StoreHandle:
    """Owns the remote and fallback stores plus the remote's health state.

    State machine
    -------------
    * ``UNPROBED → HEALTHY | DEGRADED`` on the startup probe.
    * ``UNPROBED → LOCAL_ONLY`` when no remote is configured; terminal.
    * ``HEALTHY → DEGRADED`` when any remote operation fails.
    * ``DEGRADED → HEALTHY`` only through :meth:`probe` / :meth:`reprobe`.

    Requests never probe.  While degraded every operation goes straight to
    the fallback store, so a sustained outage costs no extra latency.
    """

    def __init__(
        self,
        remote: RedisCredentialStore | None,
        local: FallbackStore | None = None,
    ) -> None:
        self._remote = remote
        self._local = local or FallbackStore()
        self._status = StoreStatus.UNPROBED if remote else StoreStatus.LOCAL_ONLY
        self._probe_lock = asyncio.Lock()

    @property
    def status(self) -> StoreStatus:
        return self._status

    @property
    def local(self) -> FallbackStore:
        return self._local

    @property
    def remote(self) -> RedisCredentialStore | None:
        """The remote store if it should be tried right now, else ``None``."""
        if self._status is StoreStatus.HEALTHY:
            return self._remote
        return None

    async def probe(self) -> StoreStatus:
        """Ping the remote store and set the status from the outcome."""
        if self._remote is None:
            return self._status

        async with self._probe_lock:
            result = await self._remote.connect()
            if result.ok:
                if self._status is not StoreStatus.HEALTHY:
                    logger.info("Connected to %s store", self._remote.name)
                self._status = StoreStatus.HEALTHY
            else:
                if self._status is not StoreStatus.DEGRADED:
                    logger.warning(
                        "%s store unavailable (%s), using in-memory store",
                        self._remote.name,
                        result.error,
                    )
                self._status = StoreStatus.DEGRADED
        return self._status

    async def reprobe(self) -> StoreStatus:
        """Probe again only if currently degraded."""
        if self._status is StoreStatus.DEGRADED:
            return await self.probe()
        return self._status

    def mark_degraded(self, reason: str | None) -> None:
        """Record a failed remote operation."""
        if self._status is StoreStatus.HEALTHY:
            logger.warning("Remote store marked degraded: %s", reason)
            self._status = StoreStatus.DEGRADED

    async def run_reprobe_loop(self, interval: float) -> None:
        """Re-probe a degraded remote every *interval* seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            await self.reprobe()

    async def close(self) -> None:
        if self._remote is not None:
            await self._remote.close()
