"""Shared fixtures: an in-process Redis server and a controllable clock."""

from __future__ import annotations

import fakeredis.aioredis
import pytest
import pytest_asyncio

from otp_gateway.storage.handle import StoreHandle
from otp_gateway.storage.local import FallbackStore
from otp_gateway.storage.remote import RedisCredentialStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    """Set ``connected = False`` to make every command fail like a dead server."""
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def fake_redis(redis_server):
    client = fakeredis.aioredis.FakeRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def local_store(clock) -> FallbackStore:
    return FallbackStore(clock=clock)


@pytest.fixture
def remote_store(fake_redis) -> RedisCredentialStore:
    return RedisCredentialStore("redis://localhost:6379/0", client=fake_redis)


@pytest_asyncio.fixture
async def healthy_handle(remote_store, local_store) -> StoreHandle:
    """A handle whose startup probe succeeded."""
    handle = StoreHandle(remote=remote_store, local=local_store)
    await handle.probe()
    return handle


@pytest.fixture
def local_only_handle(local_store) -> StoreHandle:
    return StoreHandle(remote=None, local=local_store)
