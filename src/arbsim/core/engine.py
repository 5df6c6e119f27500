"""Simulation engine: price ticks -> detection -> execution -> ledger.

Owns the EngineState and wires the price feed, detector, executor and
advisory poller to the scheduler. All mutation happens on timer callbacks
or through the explicit entry points (``manual_execute``,
``configuration_changed``, ``set_auto_trade``), one at a time.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from arbsim.advisory.client import AdvisoryClient
from arbsim.advisory.poller import AdvisoryPoller
from arbsim.config import AppConfig
from arbsim.core.ledger import Ledger
from arbsim.core.price_feed import PriceFeedSimulator
from arbsim.core.scheduler import CancelHandle, Clock, Scheduler
from arbsim.core.session import SessionTelemetry
from arbsim.core.state import EngineState
from arbsim.detector.spread import SpreadDetector
from arbsim.detector.spread_calculator import SpreadCalculator
from arbsim.execution.trade_executor import TradeExecutor, TradeIntent
from arbsim.logging import get_logger
from arbsim.models.advisory import AdvisoryResult
from arbsim.models.config import BotSettings
from arbsim.models.market import MarketSnapshot
from arbsim.models.signal import ArbitrageOpportunity
from arbsim.models.trade import PnlPoint, TradeRecord
from arbsim.monitoring.metrics import MetricsCollector

logger = get_logger(__name__)


@dataclass
class EngineStats:
    """Aggregated engine counters.

    Attributes:
        ticks: Price ticks processed.
        opportunities_detected: Opportunities surfaced across all passes.
        execution_attempts: Calls into the executor, automatic or manual.
        trades_executed: Attempts that produced a trade.
    """

    ticks: int = 0
    opportunities_detected: int = 0
    execution_attempts: int = 0
    trades_executed: int = 0

    @property
    def trades_rejected(self) -> int:
        return self.execution_attempts - self.trades_executed


@dataclass
class SessionReport:
    """Summary of a simulation session.

    Attributes:
        started_at: Unix time the engine started.
        duration_seconds: Time since start (or until stop).
        stats: Engine counters.
        balance: Final balance.
        net_yield: Balance change since start.
        total_profit: Profit over the retained trade log.
        trade_count: Trades in the retained log.
    """

    started_at: float
    duration_seconds: float
    stats: EngineStats = field(default_factory=EngineStats)
    balance: float = 0.0
    net_yield: float = 0.0
    total_profit: float = 0.0
    trade_count: int = 0


class ArbitrageEngine:
    """The market simulation, detection and execution core.

    Attributes:
        state: The engine's mutable state.
        feed: Price feed simulator.
        detector: Spread detector.
        executor: Trade executor.
        telemetry: Cosmetic session counters.
        poller: Advisory poller, or None when no client is configured.
    """

    def __init__(
        self,
        config: AppConfig,
        scheduler: Scheduler,
        clock: Clock,
        rng: random.Random | None = None,
        advisory_client: AdvisoryClient | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """Assemble the engine from configuration.

        Args:
            config: Application configuration.
            scheduler: Timer source for ticks, telemetry and advisory polls.
            clock: Time source shared by every component.
            rng: Root random source. Each component gets its own stream
                derived from it, so seeding it makes a run reproducible.
            advisory_client: Optional advisory service client.
            metrics: Optional Prometheus metrics collector.
        """
        self._config = config
        self._scheduler = scheduler
        self._clock = clock
        self._metrics = metrics

        root = rng or random.Random(config.system.seed)
        feed_rng = random.Random(root.getrandbits(64))
        execution_rng = random.Random(root.getrandbits(64))
        telemetry_rng = random.Random(root.getrandbits(64))

        self.calculator = SpreadCalculator(
            fee_rate=config.fees.fee_rate,
            fixed_network_fee=config.fees.fixed_network_fee,
        )
        self.feed = PriceFeedSimulator(
            rng=feed_rng,
            clock=clock,
            seed_jitter=config.market.seed_jitter_pct / 100,
            tick_jitter=config.market.tick_jitter_pct / 100,
        )
        self.detector = SpreadDetector(self.calculator)
        self.executor = TradeExecutor(
            calculator=self.calculator,
            rng=execution_rng,
            clock=clock,
            debounce_seconds=config.execution.debounce_seconds,
            spot_max_move=config.execution.spot_max_move,
            spot_positive_bias=config.execution.spot_positive_bias,
            default_buy_venue=config.execution.default_spot_buy_venue,
            default_sell_venue=config.execution.default_spot_sell_venue,
            metrics=metrics,
        )
        self.state = EngineState(
            settings=config.bot.model_copy(),
            ledger=Ledger(
                initial_balance=config.execution.initial_balance,
                max_trades=config.execution.trade_log_size,
            ),
        )
        self.telemetry = SessionTelemetry(clock, telemetry_rng)
        self.poller: AdvisoryPoller | None = None
        if advisory_client is not None:
            self.poller = AdvisoryPoller(
                advisory_client,
                clock,
                cooldown_seconds=config.advisory.cooldown_seconds,
                on_result=self._apply_advisory,
                metrics=metrics,
            )

        self._stats = EngineStats()
        self._started_at: float | None = None
        self._stopped_at: float | None = None
        self._price_job: CancelHandle | None = None
        self._telemetry_job: CancelHandle | None = None
        self._advisory_job: CancelHandle | None = None

    # --- lifecycle ---

    @property
    def is_running(self) -> bool:
        """Whether the periodic jobs are scheduled."""
        return self._price_job is not None

    def start(self) -> None:
        """Seed the market if needed and schedule all periodic jobs."""
        if self.is_running:
            return

        if not self.state.market:
            self.state.market = self.feed.initialize(
                self._config.market.assets, self._config.market.exchanges
            )
        self.refresh_opportunities()

        self._started_at = self._clock.now()
        self._stopped_at = None
        self.telemetry.restart()
        self._price_job = self._scheduler.schedule(
            self._config.market.tick_interval_seconds, self.on_price_tick
        )
        self._telemetry_job = self._scheduler.schedule(
            self._config.monitoring.telemetry_interval_seconds, self.telemetry.refresh
        )
        self._sync_advisory_polling()

        logger.info(
            "engine_started",
            assets=len(self.state.market),
            exchanges=len(self._config.market.exchanges),
            trading_mode=self.state.settings.trading_mode.value,
            trade_amount=self.state.settings.trade_amount,
            advisory=self._advisory_job is not None,
        )

    def stop(self) -> None:
        """Cancel every periodic job. Safe to call more than once.

        An advisory request already in flight is left to finish; its
        result is still applied when it arrives.
        """
        for job in (self._price_job, self._telemetry_job, self._advisory_job):
            if job is not None:
                job.cancel()
        was_running = self.is_running
        self._price_job = None
        self._telemetry_job = None
        self._advisory_job = None
        if was_running:
            self._stopped_at = self._clock.now()
            logger.info(
                "engine_stopped",
                balance=round(self.state.ledger.balance, 6),
                trades=len(self.state.ledger.trades),
            )

    # --- timer callbacks ---

    def on_price_tick(self) -> None:
        """Advance prices, rebuild opportunities, run the auto strategy."""
        self.state.market = self.feed.tick(self.state.market)
        self._stats.ticks += 1
        if self._metrics is not None:
            self._metrics.ticks_total.inc()
        self.refresh_opportunities()
        self._run_arbitrage_strategy()

    def refresh_opportunities(self) -> list[ArbitrageOpportunity]:
        """Rebuild the ranked opportunity list from the current state."""
        settings = self.state.settings
        started = time.perf_counter()
        opportunities = self.detector.detect(
            self.state.market,
            trade_amount=settings.trade_amount,
            min_spread_percent=settings.min_spread_percent,
            timestamp=self._clock.now(),
        )
        self.state.opportunities = opportunities
        self._stats.opportunities_detected += len(opportunities)
        if self._metrics is not None:
            self._metrics.record_detection(opportunities, time.perf_counter() - started)
        return opportunities

    def poll_advisory(self) -> asyncio.Task[AdvisoryResult | None] | None:
        """Kick off a background advisory poll with the current top context.

        Returns:
            The poll task, or None when advisory is disabled, unavailable,
            already in flight or cooling down.
        """
        if self.poller is None or not self.state.settings.enable_advisory:
            return None
        cfg = self._config.advisory
        return self.poller.trigger(
            self.state.opportunities[: cfg.top_opportunities],
            list(self.state.market.values())[: cfg.top_markets],
        )

    # --- strategies ---

    def _run_arbitrage_strategy(self) -> TradeRecord | None:
        state = self.state
        if not state.auto_trade or not state.settings.trading_mode.allows_arbitrage:
            return None
        if not state.opportunities:
            return None

        top = state.opportunities[0]
        if top.id == state.last_auto_opportunity_id:
            return None
        state.last_auto_opportunity_id = top.id
        return self._execute(top)

    def _run_spot_strategy(self, result: AdvisoryResult) -> TradeRecord | None:
        state = self.state
        if not state.auto_trade or not state.settings.trading_mode.allows_spot:
            return None

        candidates = [s for s in result.spot_signals if s.is_actionable]
        if not candidates:
            return None
        # max() keeps the first of equally confident signals
        best = max(candidates, key=lambda s: s.confidence)
        return self._execute(best)

    def _apply_advisory(self, result: AdvisoryResult) -> None:
        self.state.advisory = result
        self._run_spot_strategy(result)

    def _execute(self, intent: TradeIntent, exchange: str | None = None) -> TradeRecord | None:
        self._stats.execution_attempts += 1
        record = self.executor.execute(self.state, intent, exchange=exchange)
        if record is not None:
            self._stats.trades_executed += 1
        return record

    def _sync_advisory_polling(self) -> None:
        wanted = (
            self.is_running
            and self.poller is not None
            and self.state.settings.enable_advisory
        )
        if wanted and self._advisory_job is None:
            self._advisory_job = self._scheduler.schedule(
                self._config.advisory.poll_interval_seconds, self.poll_advisory
            )
            self.poll_advisory()
            logger.info("advisory_polling_started")
        elif not wanted and self._advisory_job is not None:
            self._advisory_job.cancel()
            self._advisory_job = None
            logger.info("advisory_polling_stopped")

    # --- mutation entry points ---

    def manual_execute(
        self,
        intent: TradeIntent,
        exchange: str | None = None,
    ) -> TradeRecord | None:
        """Execute a user-issued intent.

        Args:
            intent: Spot signal (or opportunity) to execute.
            exchange: Venue for spot trades, e.g. the selected exchange.

        Returns:
            The new TradeRecord, or None if a guard rejected it.
        """
        return self._execute(intent, exchange=exchange)

    def configuration_changed(self, settings: BotSettings | Mapping[str, Any]) -> BotSettings:
        """Replace the bot settings and re-run detection.

        Args:
            settings: Complete settings, or a mapping of fields to update.
                Keys may use field names or their camelCase aliases.
                Malformed values are clamped, never rejected.

        Returns:
            The settings now in effect.
        """
        if isinstance(settings, BotSettings):
            raw = settings.model_dump()
        else:
            updates = {BotSettings.field_name(k): v for k, v in settings.items()}
            raw = {**self.state.settings.model_dump(), **updates}
        new_settings = BotSettings.model_validate(raw)
        self.state.settings = new_settings

        logger.info(
            "configuration_changed",
            min_spread_percent=new_settings.min_spread_percent,
            trade_amount=new_settings.trade_amount,
            trading_mode=new_settings.trading_mode.value,
            enable_advisory=new_settings.enable_advisory,
        )

        if self.state.market:
            self.refresh_opportunities()
        self._sync_advisory_polling()
        return new_settings

    def set_auto_trade(self, enabled: bool) -> None:
        """Enable or disable the automatic strategy.

        Enabling it acts on the current top opportunity right away.
        """
        self.state.auto_trade = enabled
        logger.info("auto_trade_toggled", enabled=enabled)
        if enabled:
            self.state.last_auto_opportunity_id = None
            self._run_arbitrage_strategy()

    # --- read-only views ---

    @property
    def settings(self) -> BotSettings:
        return self.state.settings.model_copy()

    @property
    def market(self) -> MarketSnapshot:
        return dict(self.state.market)

    @property
    def opportunities(self) -> tuple[ArbitrageOpportunity, ...]:
        return tuple(self.state.opportunities)

    @property
    def trades(self) -> tuple[TradeRecord, ...]:
        return self.state.ledger.trades

    @property
    def balance(self) -> float:
        return self.state.ledger.balance

    @property
    def net_yield(self) -> float:
        return self.state.ledger.net_yield

    @property
    def total_profit(self) -> float:
        return self.state.ledger.total_profit

    @property
    def advisory(self) -> AdvisoryResult | None:
        return self.state.advisory

    @property
    def break_even_spread_pct(self) -> float:
        """Spread at which the current trade amount breaks even."""
        return self.calculator.break_even_spread_pct(self.state.settings.trade_amount)

    def cumulative_pnl(self) -> list[PnlPoint]:
        return self.state.ledger.cumulative_pnl()

    def pnl_history(self, window: int = 20) -> list[PnlPoint]:
        return self.state.ledger.pnl_history(window)

    def get_stats(self) -> EngineStats:
        """Return aggregated engine counters."""
        return self._stats

    def get_report(self) -> SessionReport:
        """Generate a session report.

        Returns:
            SessionReport with counters and ledger figures.
        """
        now = self._stopped_at or self._clock.now()
        started = self._started_at or now
        ledger = self.state.ledger
        return SessionReport(
            started_at=started,
            duration_seconds=max(0.0, now - started),
            stats=self._stats,
            balance=ledger.balance,
            net_yield=ledger.net_yield,
            total_profit=ledger.total_profit,
            trade_count=len(ledger.trades),
        )
