"""Prometheus metrics for simulator monitoring."""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from arbsim.models.signal import ArbitrageOpportunity
from arbsim.models.trade import TradeRecord


class MetricsCollector:
    """Central Prometheus metrics registry for the simulator.

    Uses a custom CollectorRegistry to avoid global state conflicts,
    making it safe for use in tests and multiple instances.

    Attributes:
        registry: The Prometheus CollectorRegistry used for all metrics.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize all Prometheus metrics.

        Args:
            registry: Custom registry. Creates a new one if not provided.
        """
        self._registry = registry or CollectorRegistry()

        # --- Counters ---
        self.ticks_total = Counter(
            "arbsim_price_ticks_total",
            "Total price feed ticks",
            registry=self._registry,
        )
        self.opportunities_detected = Counter(
            "arbsim_opportunities_detected_total",
            "Total arbitrage opportunities surfaced across detection passes",
            registry=self._registry,
        )
        self.trades_total = Counter(
            "arbsim_trades_total",
            "Total simulated trades executed",
            ["type"],
            registry=self._registry,
        )
        self.trades_rejected = Counter(
            "arbsim_trades_rejected_total",
            "Total execution attempts dropped by a guard",
            ["reason"],
            registry=self._registry,
        )
        self.advisory_requests = Counter(
            "arbsim_advisory_requests_total",
            "Advisory polls by outcome",
            ["outcome"],
            registry=self._registry,
        )

        # --- Gauges ---
        self.balance = Gauge(
            "arbsim_balance_usd",
            "Current virtual account balance",
            registry=self._registry,
        )
        self.net_yield = Gauge(
            "arbsim_net_yield_usd",
            "Balance change since session start",
            registry=self._registry,
        )
        self.open_opportunities = Gauge(
            "arbsim_open_opportunities",
            "Opportunities surfaced by the latest detection pass",
            registry=self._registry,
        )
        self.best_spread = Gauge(
            "arbsim_best_spread_pct",
            "Spread percentage of the top-ranked opportunity",
            registry=self._registry,
        )

        # --- Histograms ---
        self.trade_profit = Histogram(
            "arbsim_trade_profit_usd",
            "Profit per executed trade",
            ["type"],
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
            registry=self._registry,
        )
        self.detection_latency = Histogram(
            "arbsim_detection_latency_seconds",
            "Opportunity detection latency",
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the collector registry."""
        return self._registry

    def record_detection(
        self,
        opportunities: list[ArbitrageOpportunity],
        duration_seconds: float,
    ) -> None:
        """Record the outcome of one detection pass.

        Args:
            opportunities: Ranked opportunities, best first.
            duration_seconds: Time spent detecting.
        """
        self.opportunities_detected.inc(len(opportunities))
        self.open_opportunities.set(len(opportunities))
        self.best_spread.set(opportunities[0].spread_percentage if opportunities else 0.0)
        self.detection_latency.observe(duration_seconds)

    def record_trade(self, trade: TradeRecord, balance: float, net_yield: float) -> None:
        """Record an executed trade and the resulting account state.

        Args:
            trade: The executed trade.
            balance: Balance after the trade.
            net_yield: Net yield after the trade.
        """
        self.trades_total.labels(type=trade.type.value).inc()
        self.trade_profit.labels(type=trade.type.value).observe(trade.profit)
        self.balance.set(balance)
        self.net_yield.set(net_yield)

    def record_rejection(self, reason: str) -> None:
        """Record an execution attempt dropped by a guard.

        Args:
            reason: Name of the failed guard.
        """
        self.trades_rejected.labels(reason=reason).inc()

    def record_advisory(self, outcome: str) -> None:
        """Record an advisory poll outcome ("ok", "fallback", "rate_limited").

        Args:
            outcome: Poll outcome label.
        """
        self.advisory_requests.labels(outcome=outcome).inc()

    def start_server(self, port: int) -> None:
        """Expose metrics over HTTP on the given port.

        Args:
            port: TCP port to listen on.
        """
        start_http_server(port, registry=self._registry)
