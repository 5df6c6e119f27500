"""Simulated trade executor with guard checks and a global debounce.

Validates an execution intent (an arbitrage opportunity or a spot signal)
against the account, the rate limit and the expected profit, then commits
the resulting trade to the ledger. Rejected intents are dropped silently:
no record, no exception.
"""

from __future__ import annotations

import enum
import random
from typing import TYPE_CHECKING

from arbsim.core.scheduler import Clock, SystemClock
from arbsim.detector.spread_calculator import SpreadCalculator
from arbsim.logging import get_logger
from arbsim.models.signal import ArbitrageOpportunity, SpotSignal
from arbsim.models.trade import TradeRecord, TradeStatus, TradeType

if TYPE_CHECKING:
    from arbsim.core.state import EngineState
    from arbsim.monitoring.metrics import MetricsCollector

logger = get_logger(__name__)

TradeIntent = ArbitrageOpportunity | SpotSignal

APPROVED = "approved"


class RejectReason(str, enum.Enum):
    """Why an execution attempt produced no trade."""

    INSUFFICIENT_FUNDS = "insufficient funds"
    RATE_LIMITED = "rate limited"
    NON_POSITIVE_PROFIT = "non-positive profit"


class TradeExecutor:
    """Applies execution intents to the simulated account.

    Guards run in a fixed order: balance, debounce, profit. Randomness is
    only drawn once the balance and debounce guards have passed.

    Attributes:
        calculator: Shared fee model.
        debounce_seconds: Minimum spacing between two successful trades.
        spot_max_move: Largest simulated spot price move (0.03 = 3%).
        spot_positive_bias: Probability that a spot move is positive.
        default_buy_venue: Buy label for spot trades without an exchange.
        default_sell_venue: Sell label for spot trades without an exchange.
    """

    def __init__(
        self,
        calculator: SpreadCalculator | None = None,
        rng: random.Random | None = None,
        clock: Clock | None = None,
        debounce_seconds: float = 0.2,
        spot_max_move: float = 0.03,
        spot_positive_bias: float = 0.7,
        default_buy_venue: str = "MARKET",
        default_sell_venue: str = "HFT-NODE",
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.calculator = calculator or SpreadCalculator()
        self._rng = rng or random.Random()
        self._clock = clock or SystemClock()
        self.debounce_seconds = debounce_seconds
        self.spot_max_move = spot_max_move
        self.spot_positive_bias = spot_positive_bias
        self.default_buy_venue = default_buy_venue
        self.default_sell_venue = default_sell_venue
        self._metrics = metrics

    def simulated_price_move(self) -> float:
        """Draw a signed spot price move, biased towards positive.

        Returns:
            A fraction in (-spot_max_move, spot_max_move).
        """
        magnitude = self._rng.random() * self.spot_max_move
        direction = 1 if self._rng.random() < self.spot_positive_bias else -1
        return magnitude * direction

    def evaluate(
        self,
        intent: TradeIntent,
        trade_amount: float,
        account_balance: float,
        last_execution_at: float | None,
        now: float,
        exchange: str | None = None,
    ) -> tuple[TradeRecord | None, str]:
        """Run the guards and compute the trade an intent would produce.

        Does not touch any state besides the random source.

        Args:
            intent: Opportunity (ARB) or spot signal (SPOT).
            trade_amount: Notional trade size.
            account_balance: Current balance.
            last_execution_at: Time of the last successful trade, or None.
            now: Current Unix time.
            exchange: Venue for spot trades; ignored for arbitrage.

        Returns:
            Tuple of (record, reason). record is None when rejected and
            reason names the failed guard, or "approved" on success.
        """
        # 1. Insufficient funds
        if account_balance < trade_amount:
            return None, RejectReason.INSUFFICIENT_FUNDS.value

        # 2. Global debounce
        if (
            last_execution_at is not None
            and now - last_execution_at < self.debounce_seconds
        ):
            return None, RejectReason.RATE_LIMITED.value

        costs = self.calculator.trading_costs(trade_amount)
        if isinstance(intent, ArbitrageOpportunity):
            trade_type = TradeType.ARB
            profit = trade_amount * (intent.spread_percentage / 100) - costs
            buy_exchange, sell_exchange = intent.buy_from, intent.sell_to
        else:
            trade_type = TradeType.SPOT
            profit = trade_amount * self.simulated_price_move() - costs
            buy_exchange = exchange or self.default_buy_venue
            sell_exchange = exchange or self.default_sell_venue

        # 3. Never record a loss
        if profit <= 0:
            return None, RejectReason.NON_POSITIVE_PROFIT.value

        record = TradeRecord(
            id=f"{self._rng.getrandbits(32):08x}",
            timestamp=now,
            coin=intent.coin,
            type=trade_type,
            buy_exchange=buy_exchange,
            sell_exchange=sell_exchange,
            amount=trade_amount,
            profit=profit,
            status=TradeStatus.COMPLETED,
        )
        return record, APPROVED

    def execute(
        self,
        state: EngineState,
        intent: TradeIntent,
        exchange: str | None = None,
    ) -> TradeRecord | None:
        """Execute an intent against the engine state.

        Reads the live trade amount and balance, and on success commits the
        trade to the ledger and stamps ``state.last_execution_at``.

        Args:
            state: Engine state owning the ledger and settings.
            intent: Opportunity or spot signal to execute.
            exchange: Venue for spot trades.

        Returns:
            The new TradeRecord, or None if any guard rejected the intent.
        """
        now = self._clock.now()
        record, reason = self.evaluate(
            intent,
            trade_amount=state.settings.trade_amount,
            account_balance=state.ledger.balance,
            last_execution_at=state.last_execution_at,
            now=now,
            exchange=exchange,
        )

        if record is None:
            logger.debug("trade_rejected", coin=intent.coin, reason=reason)
            if self._metrics is not None:
                self._metrics.record_rejection(reason)
            return None

        state.ledger.record(record)
        state.last_execution_at = now

        logger.info(
            "trade_executed",
            trade_id=record.id,
            coin=record.coin,
            type=record.type.value,
            buy_exchange=record.buy_exchange,
            sell_exchange=record.sell_exchange,
            profit=round(record.profit, 6),
            balance=round(state.ledger.balance, 6),
        )
        if self._metrics is not None:
            self._metrics.record_trade(record, state.ledger.balance, state.ledger.net_yield)
        return record
