"""Trade log and account models."""

import enum

from pydantic import BaseModel


class TradeType(str, enum.Enum):
    """Kind of simulated trade."""

    ARB = "ARB"
    SPOT = "SPOT"


class TradeStatus(str, enum.Enum):
    """Trade lifecycle status.

    Execution is synchronous, so only COMPLETED is ever produced.
    PENDING and FAILED are reserved for asynchronous execution.
    """

    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FAILED = "FAILED"


class TradeRecord(BaseModel):
    """An executed simulated trade.

    Attributes:
        id: Short random identifier.
        timestamp: Unix timestamp of execution.
        coin: Asset symbol.
        type: ARB or SPOT.
        buy_exchange: Exchange (or venue label) the buy leg ran on.
        sell_exchange: Exchange (or venue label) the sell leg ran on.
        amount: Notional trade size in quote currency.
        profit: Realized profit, always positive for recorded trades.
        status: Lifecycle status.
    """

    model_config = {"frozen": True}

    id: str
    timestamp: float
    coin: str
    type: TradeType
    buy_exchange: str
    sell_exchange: str
    amount: float
    profit: float
    status: TradeStatus = TradeStatus.COMPLETED


class Account(BaseModel):
    """Virtual trading account.

    Attributes:
        balance: Current balance in quote currency.
    """

    balance: float


class PnlPoint(BaseModel):
    """One point of the cumulative profit series.

    Attributes:
        index: Position of the trade in the log.
        cumulative_profit: Running sum of profit up to and including this trade.
    """

    model_config = {"frozen": True}

    index: int
    cumulative_profit: float
