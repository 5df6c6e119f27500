"""Spread and fee calculator for simulated trades.

Pure computation module shared by the detector and the executor so that
both use exactly the same cost model.
"""

from pydantic import BaseModel


class SpreadMetrics(BaseModel):
    """Result of evaluating the spread between two quotes.

    Attributes:
        buy_price: Lower of the two prices.
        sell_price: Higher of the two prices.
        spread: sell_price - buy_price.
        spread_pct: Spread as a percentage of buy_price.
        trading_costs: Two-sided fee plus flat network fee.
        estimated_profit: Net profit for the trade amount.
    """

    model_config = {"frozen": True}

    buy_price: float
    sell_price: float
    spread: float
    spread_pct: float
    trading_costs: float
    estimated_profit: float


class SpreadCalculator:
    """Calculator for spread, fee and net profit figures.

    Attributes:
        fee_rate: Taker fee rate per side as a fraction (0.001 = 0.1%).
        fixed_network_fee: Flat fee charged once per trade.
    """

    def __init__(self, fee_rate: float = 0.001, fixed_network_fee: float = 0.001) -> None:
        self.fee_rate = fee_rate
        self.fixed_network_fee = fixed_network_fee

    def trading_costs(self, trade_amount: float) -> float:
        """Total cost of one trade: both taker legs plus the network fee.

        Args:
            trade_amount: Notional trade size.

        Returns:
            ``trade_amount * fee_rate * 2 + fixed_network_fee``.
        """
        return trade_amount * self.fee_rate * 2 + self.fixed_network_fee

    @staticmethod
    def spread_percentage(buy_price: float, sell_price: float) -> float:
        """Calculate spread as a percentage of the lower price.

        Args:
            buy_price: Lower price.
            sell_price: Higher price.

        Returns:
            Spread percentage, or 0.0 when buy_price is not positive.
        """
        if buy_price <= 0:
            return 0.0
        return ((sell_price - buy_price) / buy_price) * 100

    def estimated_profit(self, trade_amount: float, spread_pct: float) -> float:
        """Net profit of capturing ``spread_pct`` on ``trade_amount``."""
        return trade_amount * (spread_pct / 100) - self.trading_costs(trade_amount)

    def break_even_spread_pct(self, trade_amount: float) -> float:
        """Spread percentage at which estimated profit is exactly zero.

        Args:
            trade_amount: Notional trade size.

        Returns:
            Break-even spread percentage, or 0.0 for a non-positive amount.
        """
        if trade_amount <= 0:
            return 0.0
        return (self.trading_costs(trade_amount) / trade_amount) * 100

    def evaluate(self, buy_price: float, sell_price: float, trade_amount: float) -> SpreadMetrics:
        """Compute all spread figures for a low/high price pair."""
        spread_pct = self.spread_percentage(buy_price, sell_price)
        return SpreadMetrics(
            buy_price=buy_price,
            sell_price=sell_price,
            spread=sell_price - buy_price,
            spread_pct=spread_pct,
            trading_costs=self.trading_costs(trade_amount),
            estimated_profit=self.estimated_profit(trade_amount, spread_pct),
        )
