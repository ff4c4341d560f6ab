"""OTP service — issues and redeems single-use verification codes."""

from __future__ import annotations

import logging
from collections.abc import Callable

from otp_gateway.otp.generator import generate_code
from otp_gateway.storage.handle import StoreHandle

logger = logging.getLogger(__name__)


class OtpService:
    """Generates, stores and verifies codes against the active store.

    The remote store is tried only while the handle reports it healthy.  A
    failed remote call falls back to the local store for that one call and
    marks the remote degraded; it is never retried within the same request.
    """

    def __init__(
        self,
        handle: StoreHandle,
        ttl_seconds: int = 600,
        max_attempts: int = 5,
        generator: Callable[[], str] = generate_code,
    ) -> None:
        self._handle = handle
        self._ttl = ttl_seconds
        self._max_attempts = max_attempts
        self._generate = generator

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    async def issue(self, identity: str) -> str:
        """Create a code for *identity*, replacing any pending one."""
        code = self._generate()
        local = self._handle.local

        remote = self._handle.remote
        if remote is not None:
            result = await remote.put(identity, code, self._ttl)
            if result.ok:
                # A code written locally during an outage is now stale.
                await local.discard(identity)
                logger.debug("Stored code for %s in %s", identity, remote.name)
                return code
            self._handle.mark_degraded(result.error)

        await local.put(identity, code, self._ttl)
        logger.debug("Stored code for %s in %s", identity, local.name)
        return code

    async def redeem(self, identity: str, submitted_code: str) -> bool:
        """Return ``True`` iff *submitted_code* matches the pending code.

        A match consumes the code, so it can be redeemed exactly once.  A
        mismatch leaves it in place until the wrong-attempt limit is hit.
        """
        local_result = await self._handle.local.consume(
            identity, submitted_code, self._max_attempts
        )
        remote = self._handle.remote

        if local_result.found:
            # Local entries are only written during an outage, so anything
            # Redis holds for this identity is older and must not be redeemable.
            if remote is not None:
                result = await remote.take(identity)
                if not result.ok:
                    self._handle.mark_degraded(result.error)
            return local_result.value is not None

        if remote is not None:
            result = await remote.consume(identity, submitted_code, self._max_attempts)
            if result.ok:
                return result.value is not None
            self._handle.mark_degraded(result.error)

        logger.debug("No pending code for %s", identity)
        return False
