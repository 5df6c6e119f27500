"""Non-blocking advisory polling with fallback and rate-limit cooldown."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable

from arbsim.advisory.client import AdvisoryClient, AdvisoryError, AdvisoryRateLimitError
from arbsim.advisory.fallback import fallback_result
from arbsim.core.scheduler import Clock
from arbsim.logging import get_logger
from arbsim.models.advisory import AdvisoryResult
from arbsim.models.market import MarketEntry
from arbsim.models.signal import ArbitrageOpportunity

if TYPE_CHECKING:
    from arbsim.monitoring.metrics import MetricsCollector

logger = get_logger(__name__)

ResultCallback = Callable[[AdvisoryResult], None]


class AdvisoryPoller:
    """Runs advisory requests in the background and never raises.

    At most one request is in flight. Any failure of the client, including
    one that is not an ``AdvisoryError``, is replaced by the local fallback
    result; a rate-limit failure additionally pauses polling for
    ``cooldown_seconds``.

    Attributes:
        cooldown_seconds: Pause after the service reports rate limiting.
        quota_exhausted: True since the last rate-limit failure, until the
            next successful response.
        latest: Most recent result, real or fallback.
    """

    def __init__(
        self,
        client: AdvisoryClient,
        clock: Clock,
        cooldown_seconds: float = 60.0,
        on_result: ResultCallback | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._client = client
        self._clock = clock
        self.cooldown_seconds = cooldown_seconds
        self._on_result = on_result
        self._metrics = metrics
        self._task: asyncio.Task[AdvisoryResult | None] | None = None
        self._in_flight = False
        self._cooldown_until: float | None = None
        self.quota_exhausted = False
        self.latest: AdvisoryResult | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight or (self._task is not None and not self._task.done())

    @property
    def in_cooldown(self) -> bool:
        return self._cooldown_until is not None and self._clock.now() < self._cooldown_until

    def trigger(
        self,
        opportunities: list[ArbitrageOpportunity],
        markets: list[MarketEntry],
    ) -> asyncio.Task[AdvisoryResult | None] | None:
        """Start a background poll unless one is running or cooling down.

        Must be called from within a running event loop.

        Returns:
            The task running the poll, or None if the poll was skipped.
        """
        if self.in_flight or self.in_cooldown:
            return None
        self._task = asyncio.get_running_loop().create_task(
            self.poll(list(opportunities), list(markets))
        )
        return self._task

    async def poll(
        self,
        opportunities: list[ArbitrageOpportunity],
        markets: list[MarketEntry],
    ) -> AdvisoryResult | None:
        """Request an analysis and publish the (possibly fallback) result.

        Args:
            opportunities: Top-ranked opportunities.
            markets: Top market entries.

        Returns:
            The published result, or None if skipped due to an in-flight
            request or an active cooldown.
        """
        if self._in_flight or self.in_cooldown:
            return None

        self._in_flight = True
        try:
            result = await self._client.analyze(opportunities, markets)
            outcome = "ok"
            self.quota_exhausted = False
        except AdvisoryRateLimitError as e:
            self._cooldown_until = self._clock.now() + self.cooldown_seconds
            self.quota_exhausted = True
            logger.warning(
                "advisory_cooldown_started",
                error=str(e),
                cooldown_seconds=self.cooldown_seconds,
            )
            result = fallback_result()
            outcome = "rate_limited"
        except AdvisoryError as e:
            logger.warning("advisory_fallback", error=str(e))
            result = fallback_result()
            outcome = "fallback"
        except Exception:
            logger.exception("advisory_client_failed")
            result = fallback_result()
            outcome = "fallback"
        finally:
            self._in_flight = False

        self.latest = result
        if self._metrics is not None:
            self._metrics.record_advisory(outcome)
        logger.info(
            "advisory_updated",
            sentiment=result.sentiment.value,
            risk_level=result.risk_level.value,
            spot_signals=len(result.spot_signals),
            fallback=result.is_fallback,
        )
        if self._on_result is not None:
            self._on_result(result)
        return result
