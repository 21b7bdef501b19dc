"""Tests for the outbound concurrency gate."""

import asyncio

import pytest

from link_preview.services.gate import ConcurrencyGate


class TestAdmission:
    @pytest.mark.asyncio
    async def test_acquire_below_limit_is_immediate(self):
        gate = ConcurrencyGate(2)
        first = await gate.acquire()
        second = await gate.acquire()
        assert gate.active == 2
        gate.release(first)
        gate.release(second)
        assert gate.active == 0

    @pytest.mark.asyncio
    async def test_never_exceeds_limit(self):
        gate = ConcurrencyGate(3)
        running = 0
        peak = 0

        async def worker():
            nonlocal running, peak
            async with gate.slot():
                running += 1
                peak = max(peak, running)
                await asyncio.sleep(0.001)
                running -= 1

        await asyncio.gather(*(worker() for _ in range(20)))

        assert peak == 3
        assert gate.peak == 3
        assert gate.active == 0

    @pytest.mark.asyncio
    async def test_waiters_served_in_arrival_order(self):
        gate = ConcurrencyGate(1)
        holder = await gate.acquire()
        order = []

        async def waiter(n):
            async with gate.slot():
                order.append(n)

        tasks = [asyncio.create_task(waiter(n)) for n in range(5)]
        await asyncio.sleep(0)
        assert gate.waiting == 5

        gate.release(holder)
        await asyncio.gather(*tasks)

        assert order == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_resize_admits_waiters(self):
        gate = ConcurrencyGate(1)
        holder = await gate.acquire()
        waiter = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)
        assert not waiter.done()

        gate.resize(2)
        permit = await waiter

        assert gate.active == 2
        gate.release(permit)
        gate.release(holder)


class TestRelease:
    @pytest.mark.asyncio
    async def test_double_release_is_ignored(self):
        gate = ConcurrencyGate(1)
        permit = await gate.acquire()
        gate.release(permit)
        gate.release(permit)
        assert gate.active == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_leak_slot(self):
        gate = ConcurrencyGate(1)
        holder = await gate.acquire()
        waiter = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        gate.release(holder)
        assert gate.active == 0
        assert gate.waiting == 0
        permit = await asyncio.wait_for(gate.acquire(), 1)
        gate.release(permit)

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            ConcurrencyGate(0)
