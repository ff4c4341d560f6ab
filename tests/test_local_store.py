"""Tests for the in-process FallbackStore."""

import asyncio

import pytest

from otp_gateway.storage.local import FallbackStore


# ── put / take ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_take_returns_value_once(local_store: FallbackStore):
    await local_store.put("a@example.com", "123456", 600)

    first = await local_store.take("a@example.com")
    second = await local_store.take("a@example.com")

    assert first.ok and first.value == "123456" and first.found
    assert second.ok and second.value is None and not second.found


@pytest.mark.asyncio
async def test_take_missing_key(local_store: FallbackStore):
    result = await local_store.take("nobody@example.com")
    assert result.ok
    assert result.value is None


@pytest.mark.asyncio
async def test_put_overwrites(local_store: FallbackStore):
    await local_store.put("a@example.com", "111111", 600)
    await local_store.put("a@example.com", "222222", 600)

    result = await local_store.take("a@example.com")
    assert result.value == "222222"
    assert len(local_store) == 0


@pytest.mark.asyncio
async def test_entry_valid_until_expiry_instant(local_store: FallbackStore, clock):
    await local_store.put("a@example.com", "123456", 10)
    clock.advance(10)

    result = await local_store.take("a@example.com")
    assert result.value == "123456"


@pytest.mark.asyncio
async def test_expired_entry_is_evicted_on_read(local_store: FallbackStore, clock):
    await local_store.put("a@example.com", "123456", 10)
    clock.advance(11)

    result = await local_store.take("a@example.com")
    assert result.ok
    assert result.value is None
    assert len(local_store) == 0


# ── consume ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_consume_match_removes_entry(local_store: FallbackStore):
    await local_store.put("a@example.com", "123456", 600)

    result = await local_store.consume("a@example.com", "123456", max_attempts=5)

    assert result.value == "123456"
    assert result.found
    assert len(local_store) == 0


@pytest.mark.asyncio
async def test_consume_mismatch_keeps_entry(local_store: FallbackStore):
    await local_store.put("a@example.com", "123456", 600)

    wrong = await local_store.consume("a@example.com", "000000", max_attempts=5)
    right = await local_store.consume("a@example.com", "123456", max_attempts=5)

    assert wrong.found and wrong.value is None
    assert right.value == "123456"


@pytest.mark.asyncio
async def test_consume_drops_entry_after_max_attempts(local_store: FallbackStore):
    await local_store.put("a@example.com", "123456", 600)

    for _ in range(3):
        result = await local_store.consume("a@example.com", "999999", max_attempts=3)
        assert result.found

    result = await local_store.consume("a@example.com", "123456", max_attempts=3)
    assert not result.found
    assert result.value is None


@pytest.mark.asyncio
async def test_put_resets_attempts(local_store: FallbackStore):
    await local_store.put("a@example.com", "123456", 600)
    await local_store.consume("a@example.com", "999999", max_attempts=2)
    await local_store.put("a@example.com", "654321", 600)
    await local_store.consume("a@example.com", "999999", max_attempts=2)

    result = await local_store.consume("a@example.com", "654321", max_attempts=2)
    assert result.value == "654321"


@pytest.mark.asyncio
async def test_consume_expired(local_store: FallbackStore, clock):
    await local_store.put("a@example.com", "123456", 1)
    clock.advance(2)

    result = await local_store.consume("a@example.com", "123456", max_attempts=5)
    assert not result.found
    assert result.value is None


@pytest.mark.asyncio
async def test_discard(local_store: FallbackStore):
    await local_store.put("a@example.com", "123456", 600)
    await local_store.discard("a@example.com")
    await local_store.discard("missing@example.com")

    assert len(local_store) == 0


@pytest.mark.asyncio
async def test_concurrent_consumers_get_one_match(local_store: FallbackStore):
    await local_store.put("a@example.com", "123456", 600)

    results = await asyncio.gather(
        *(asyncio.to_thread(_consume_sync, local_store) for _ in range(8))
    )
    assert sum(r.value is not None for r in results) == 1


def _consume_sync(store: FallbackStore):
    return asyncio.run(store.consume("a@example.com", "123456", max_attempts=5))
