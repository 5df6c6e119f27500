"""Unit tests for the scheduler and clock implementations."""

import asyncio

import pytest

from arbsim.core.scheduler import AsyncioScheduler, SystemClock, VirtualClock, VirtualScheduler


# ---------------------------------------------------------------------------
# VirtualClock
# ---------------------------------------------------------------------------


class TestVirtualClock:
    """Tests for the manually advanced clock."""

    def test_advance(self) -> None:
        clock = VirtualClock(start=100.0)
        clock.advance(2.5)
        assert clock.now() == 102.5

    def test_cannot_go_backwards(self) -> None:
        clock = VirtualClock(start=100.0)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(99.0)

    def test_system_clock_moves(self) -> None:
        assert SystemClock().now() > 1_600_000_000


# ---------------------------------------------------------------------------
# VirtualScheduler
# ---------------------------------------------------------------------------


class TestVirtualScheduler:
    """Tests for deterministic job scheduling."""

    def test_runs_job_each_interval(self) -> None:
        scheduler = VirtualScheduler(VirtualClock(start=0.0))
        calls: list[float] = []
        scheduler.schedule(1.0, lambda: calls.append(scheduler.clock.now()))

        runs = scheduler.advance(3.5)

        assert runs == 3
        assert calls == [1.0, 2.0, 3.0]
        assert scheduler.clock.now() == 3.5

    def test_fractional_interval_accumulates(self) -> None:
        scheduler = VirtualScheduler(VirtualClock(start=0.0))
        calls: list[int] = []
        scheduler.schedule(0.8, lambda: calls.append(1))
        scheduler.advance(8.0)
        assert len(calls) == 10

    def test_jobs_interleave_in_deadline_order(self) -> None:
        scheduler = VirtualScheduler(VirtualClock(start=0.0))
        order: list[str] = []
        scheduler.schedule(0.8, lambda: order.append("tick"))
        scheduler.schedule(1.0, lambda: order.append("telemetry"))
        scheduler.advance(2.0)
        assert order == ["tick", "telemetry", "tick", "telemetry"]

    def test_cancel_stops_job(self) -> None:
        scheduler = VirtualScheduler(VirtualClock(start=0.0))
        calls: list[int] = []
        handle = scheduler.schedule(1.0, lambda: calls.append(1))
        scheduler.advance(1.0)
        handle.cancel()
        scheduler.advance(5.0)
        assert calls == [1]
        assert handle.cancelled is True
        assert scheduler.active_jobs == 0

    def test_invalid_interval(self) -> None:
        with pytest.raises(ValueError):
            VirtualScheduler().schedule(0, lambda: None)


# ---------------------------------------------------------------------------
# AsyncioScheduler
# ---------------------------------------------------------------------------


class TestAsyncioScheduler:
    """Tests for the asyncio-backed scheduler."""

    @pytest.mark.asyncio
    async def test_runs_periodically(self) -> None:
        scheduler = AsyncioScheduler()
        calls: list[int] = []
        handle = scheduler.schedule(0.01, lambda: calls.append(1))
        await asyncio.sleep(0.1)
        handle.cancel()
        assert len(calls) >= 3

    @pytest.mark.asyncio
    async def test_cancel_stops_job(self) -> None:
        scheduler = AsyncioScheduler()
        calls: list[int] = []
        handle = scheduler.schedule(0.01, lambda: calls.append(1))
        await asyncio.sleep(0.05)
        handle.cancel()
        await asyncio.sleep(0)
        count = len(calls)
        await asyncio.sleep(0.05)
        assert len(calls) == count
        assert handle.cancelled is True

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_running(self) -> None:
        scheduler = AsyncioScheduler()
        calls: list[int] = []

        def _flaky() -> None:
            calls.append(1)
            raise RuntimeError("boom")

        handle = scheduler.schedule(0.01, _flaky)
        await asyncio.sleep(0.08)
        handle.cancel()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_invalid_interval(self) -> None:
        with pytest.raises(ValueError):
            AsyncioScheduler().schedule(-1, lambda: None)
