"""Redis-backed credential store shared across gateway processes."""

from __future__ import annotations

import asyncio
import logging

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError

from otp_gateway.storage.base import BaseStore, StoreResult

logger = logging.getLogger(__name__)

KEY_PREFIX = "otp:"

# Errors that mean "Redis is unreachable", as opposed to programming errors.
_STORE_ERRORS = (RedisError, OSError, TimeoutError)

# KEYS[1] = code key, KEYS[2] = attempts key; ARGV[1] = code, ARGV[2] = ttl
PUT_SCRIPT = """
redis.call('SET', KEYS[1], ARGV[1], 'EX', ARGV[2])
redis.call('DEL', KEYS[2])
return 1
"""

# KEYS[1] = code key, KEYS[2] = attempts key; ARGV[1] = submitted, ARGV[2] = max attempts
# Returns 1 on match (entry deleted), 0 on mismatch, -1 if no entry.
CONSUME_SCRIPT = """
local stored = redis.call('GET', KEYS[1])
if not stored then
  return -1
end
if stored == ARGV[1] then
  redis.call('DEL', KEYS[1], KEYS[2])
  return 1
end
local attempts = redis.call('INCR', KEYS[2])
if attempts == 1 then
  local ttl = redis.call('PTTL', KEYS[1])
  if ttl > 0 then
    redis.call('PEXPIRE', KEYS[2], ttl)
  end
end
if attempts >= tonumber(ARGV[2]) then
  redis.call('DEL', KEYS[1], KEYS[2])
end
return 0
"""


def _otp_key(identity: str) -> str:
    """Scope an OTP to its identity in the shared keyspace."""
    return f"{KEY_PREFIX}{identity}"


def _attempts_key(identity: str) -> str:
    return f"{KEY_PREFIX}{identity}:attempts"


class RedisCredentialStore(BaseStore):
    """Thin async wrapper around Redis that never raises on I/O failure.

    Every call returns a :class:`StoreResult`; a failed result carries the
    reason so the caller can fall back.  The client is configured to fail
    fast: bounded connect/socket timeouts and no automatic retries, since a
    person is waiting on the other end of the request.
    """

    def __init__(
        self,
        url: str,
        connect_timeout: float = 5.0,
        client: Redis | None = None,
    ) -> None:
        self._url = url
        self._connect_timeout = connect_timeout
        self._client = client

    @property
    def name(self) -> str:
        return "redis"

    def _get_client(self) -> Redis:
        if self._client is None:
            self._client = Redis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=self._connect_timeout,
                socket_timeout=self._connect_timeout,
                retry_on_timeout=False,
                retry=Retry(NoBackoff(), 0),
            )
        return self._client

    async def connect(self) -> StoreResult:
        """Probe Redis with ``PING`` within the connect timeout."""
        try:
            client = self._get_client()
            await asyncio.wait_for(client.ping(), timeout=self._connect_timeout)
        except _STORE_ERRORS as exc:
            return StoreResult.failure(f"connect failed: {exc!r}")
        return StoreResult.success()

    async def put(self, key: str, value: str, ttl_seconds: int) -> StoreResult:
        try:
            await self._get_client().eval(
                PUT_SCRIPT, 2, _otp_key(key), _attempts_key(key), value, ttl_seconds
            )
        except _STORE_ERRORS as exc:
            return StoreResult.failure(f"put failed: {exc!r}")
        return StoreResult.success()

    async def take(self, key: str) -> StoreResult:
        try:
            value = await self._get_client().getdel(_otp_key(key))
        except _STORE_ERRORS as exc:
            return StoreResult.failure(f"GETDEL failed: {exc!r}")
        return StoreResult.success(value)

    async def consume(self, key: str, submitted: str, max_attempts: int) -> StoreResult:
        try:
            outcome = await self._get_client().eval(
                CONSUME_SCRIPT,
                2,
                _otp_key(key),
                _attempts_key(key),
                submitted,
                max_attempts,
            )
        except _STORE_ERRORS as exc:
            return StoreResult.failure(f"consume failed: {exc!r}")

        outcome = int(outcome)
        if outcome == 1:
            return StoreResult.success(submitted)
        return StoreResult.success(None, found=outcome == 0)

    async def close(self) -> None:
        """Release the connection pool."""
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except _STORE_ERRORS as exc:
            logger.warning("Error while closing Redis client: %r", exc)
        self._client = None
