import asyncio

import pytest

from tpos_sync.sync.components.locks import KeyedLocks


@pytest.mark.asyncio
async def test_same_key_runs_one_at_a_time():
    locks = KeyedLocks()
    events = []

    async def run(name):
        async with locks.acquire(42):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(run("a"), run("b"))
    assert events == ["a:start", "a:end", "b:start", "b:end"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_do_not_block_each_other():
    locks = KeyedLocks()
    async with locks.acquire(1):
        assert locks.is_locked(1)
        assert not locks.is_locked(2)
        async with locks.acquire(2):
            assert len(locks) == 2
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_released_on_error():
    locks = KeyedLocks()
    with pytest.raises(RuntimeError):
        async with locks.acquire("k"):
            raise RuntimeError("boom")
    assert not locks.is_locked("k")
    assert len(locks) == 0
