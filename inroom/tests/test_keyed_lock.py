import asyncio

import pytest

from inroom.app.utils.keyed_lock import KeyedLock, LockTimeout


@pytest.mark.anyio
async def test_same_key_times_out_while_held():
    locks = KeyedLock()
    async with locks.hold("order-1"):
        with pytest.raises(LockTimeout):
            async with locks.hold("order-1", timeout=0.05):
                pass
    assert locks.active_keys() == 0


@pytest.mark.anyio
async def test_different_keys_do_not_block():
    locks = KeyedLock()
    async with locks.hold("order-1"):
        async with locks.hold("order-2", timeout=0.05):
            assert locks.active_keys() == 2
    assert locks.active_keys() == 0


@pytest.mark.anyio
async def test_holders_of_one_key_run_one_at_a_time():
    locks = KeyedLock()
    inside = 0
    peak = 0

    async def worker():
        nonlocal inside, peak
        async with locks.hold("order-1"):
            inside += 1
            peak = max(peak, inside)
            await asyncio.sleep(0.01)
            inside -= 1

    await asyncio.gather(*(worker() for _ in range(8)))
    assert peak == 1
    assert locks.active_keys() == 0


@pytest.mark.anyio
async def test_lock_released_when_body_raises():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("order-1"):
            raise RuntimeError("boom")
    async with locks.hold("order-1", timeout=0.05):
        pass


@pytest.mark.anyio
async def test_waiter_that_times_out_leaves_holder_intact():
    locks = KeyedLock()
    async with locks.hold("order-1"):
        with pytest.raises(LockTimeout):
            async with locks.hold("order-1", timeout=0.01):
                pass
        assert locks.active_keys() == 1
    assert locks.active_keys() == 0
