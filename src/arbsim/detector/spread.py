"""Cross-exchange spread detector.

For every asset, compares the cheapest and the most expensive exchange
quote and surfaces the pair as an opportunity when the spread clears both
the configured minimum and the trading costs.
"""

from arbsim.detector.spread_calculator import SpreadCalculator
from arbsim.logging import get_logger
from arbsim.models.market import MarketEntry, MarketSnapshot
from arbsim.models.signal import ArbitrageOpportunity

logger = get_logger(__name__)


class SpreadDetector:
    """Builds the ranked opportunity list from a market snapshot.

    The detector is stateless: every call rebuilds the full list from the
    snapshot and the settings passed in.

    Attributes:
        calculator: Fee and spread calculator.
    """

    def __init__(self, calculator: SpreadCalculator | None = None) -> None:
        self.calculator = calculator or SpreadCalculator()

    def detect(
        self,
        snapshot: MarketSnapshot,
        trade_amount: float,
        min_spread_percent: float,
        timestamp: float,
    ) -> list[ArbitrageOpportunity]:
        """Scan every asset for a profitable low/high exchange pair.

        Args:
            snapshot: Current market snapshot.
            trade_amount: Notional trade size used for the profit estimate.
            min_spread_percent: Minimum spread percentage to surface.
            timestamp: Unix timestamp stamped on the opportunities.

        Returns:
            Opportunities sorted by estimated_profit descending. Ties keep
            catalog order.
        """
        if trade_amount <= 0:
            logger.warning("detect_skipped_invalid_amount", trade_amount=trade_amount)
            return []

        opportunities: list[ArbitrageOpportunity] = []
        for entry in snapshot.values():
            opportunity = self._evaluate_entry(
                entry, trade_amount, min_spread_percent, timestamp
            )
            if opportunity is not None:
                opportunities.append(opportunity)

        # list.sort is stable, so equal profits keep insertion order
        opportunities.sort(key=lambda o: o.estimated_profit, reverse=True)
        return opportunities

    def _evaluate_entry(
        self,
        entry: MarketEntry,
        trade_amount: float,
        min_spread_percent: float,
        timestamp: float,
    ) -> ArbitrageOpportunity | None:
        """Evaluate a single asset's quotes.

        Returns:
            ArbitrageOpportunity if the spread passes both filters,
            otherwise None.
        """
        if len(entry.quotes) < 2:
            return None

        ranked = sorted(entry.quotes, key=lambda q: q.price)
        low, high = ranked[0], ranked[-1]

        # Sanity check: skip assets with zero or negative quotes
        if low.price <= 0:
            return None

        metrics = self.calculator.evaluate(low.price, high.price, trade_amount)
        if metrics.spread_pct < min_spread_percent:
            return None
        if metrics.estimated_profit <= 0:
            return None

        return ArbitrageOpportunity(
            id=f"{entry.symbol}-{int(timestamp * 1000)}",
            coin=entry.symbol,
            buy_from=low.exchange,
            sell_to=high.exchange,
            buy_price=metrics.buy_price,
            sell_price=metrics.sell_price,
            spread=metrics.spread,
            spread_percentage=metrics.spread_pct,
            timestamp=timestamp,
            estimated_profit=metrics.estimated_profit,
        )
