"""Cosmetic session counters shown next to the balance."""

from __future__ import annotations

import random

from arbsim.core.scheduler import Clock


class SessionTelemetry:
    """Uptime and simulated node latency.

    Attributes:
        started_at: Unix timestamp of session start.
        latency_ms: Last simulated latency reading.
    """

    def __init__(
        self,
        clock: Clock,
        rng: random.Random | None = None,
        latency_range_ms: tuple[int, int] = (3, 10),
    ) -> None:
        self._clock = clock
        self._rng = rng or random.Random()
        self._latency_range_ms = latency_range_ms
        self.started_at = clock.now()
        self.latency_ms = latency_range_ms[0]
        self._uptime_seconds = 0.0

    def restart(self) -> None:
        """Reset uptime to zero from the current time."""
        self.started_at = self._clock.now()
        self._uptime_seconds = 0.0

    def refresh(self) -> None:
        """Recompute uptime and draw a new latency reading."""
        self._uptime_seconds = max(0.0, self._clock.now() - self.started_at)
        low, high = self._latency_range_ms
        self.latency_ms = self._rng.randint(low, high)

    @property
    def uptime_seconds(self) -> float:
        return self._uptime_seconds

    @property
    def uptime(self) -> str:
        """Uptime as of the last refresh, formatted HH:MM:SS."""
        total = int(self._uptime_seconds)
        hours, remainder = divmod(total, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
