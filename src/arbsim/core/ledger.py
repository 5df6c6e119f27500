"""Account ledger and profit-and-loss tracking.

The ledger owns the virtual balance and the bounded trade log. Both change
together inside ``record`` so no reader ever sees one without the other.
P&L series are always recomputed from the full log.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from arbsim.models.trade import Account, PnlPoint, TradeRecord


def cumulative_pnl(trades: Iterable[TradeRecord]) -> list[PnlPoint]:
    """Running profit sum over trades in chronological order.

    Args:
        trades: Trade records, oldest first.

    Returns:
        One PnlPoint per trade; empty for an empty log.
    """
    points: list[PnlPoint] = []
    cumulative = 0.0
    for index, trade in enumerate(trades):
        cumulative += trade.profit
        points.append(PnlPoint(index=index, cumulative_profit=cumulative))
    return points


class Ledger:
    """Virtual account plus the most recent trades.

    Attributes:
        initial_balance: Balance at session start.
        max_trades: Number of trades retained; older trades are evicted first.
    """

    def __init__(self, initial_balance: float = 10_000.0, max_trades: int = 50) -> None:
        if max_trades < 1:
            raise ValueError(f"max_trades must be at least 1, got {max_trades}")
        self.initial_balance = initial_balance
        self.max_trades = max_trades
        self._account = Account(balance=initial_balance)
        self._trades: deque[TradeRecord] = deque(maxlen=max_trades)

    @property
    def balance(self) -> float:
        """Current account balance."""
        return self._account.balance

    @property
    def trades(self) -> tuple[TradeRecord, ...]:
        """Retained trades, oldest first."""
        return tuple(self._trades)

    def record(self, trade: TradeRecord) -> None:
        """Append a trade and credit its profit to the balance."""
        self._trades.append(trade)
        self._account = Account(balance=self._account.balance + trade.profit)

    @property
    def net_yield(self) -> float:
        """Balance change since session start."""
        return self.balance - self.initial_balance

    @property
    def total_profit(self) -> float:
        """Sum of profit over the retained trades."""
        return sum(t.profit for t in self._trades)

    def cumulative_pnl(self) -> list[PnlPoint]:
        """Cumulative profit series over the retained trades."""
        return cumulative_pnl(self._trades)

    def pnl_history(self, window: int = 20) -> list[PnlPoint]:
        """The last ``window`` points of the cumulative profit series."""
        if window <= 0:
            return []
        return self.cumulative_pnl()[-window:]

    def trades_for_exchange(self, exchange: str) -> list[TradeRecord]:
        """Retained trades whose buy or sell leg ran on ``exchange``."""
        return [
            t for t in self._trades
            if exchange in (t.buy_exchange, t.sell_exchange)
        ]

    def exchange_profit(self, exchange: str) -> float:
        """Total profit of the trades that touched ``exchange``."""
        return sum(t.profit for t in self.trades_for_exchange(exchange))
