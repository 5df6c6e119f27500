"""Execution intents: cross-exchange opportunities and spot signals."""

import enum

from pydantic import BaseModel, Field


class ArbitrageOpportunity(BaseModel):
    """A detected buy-low/sell-high pair for one asset across exchanges.

    Opportunities are rebuilt as a full set on every detection pass and
    are never mutated afterwards.

    Attributes:
        id: Identifier of the form "<coin>-<epoch ms>".
        coin: Asset symbol.
        buy_from: Exchange quoting the lowest price.
        sell_to: Exchange quoting the highest price.
        buy_price: Lowest quoted price.
        sell_price: Highest quoted price.
        spread: sell_price - buy_price.
        spread_percentage: spread / buy_price * 100.
        timestamp: Unix timestamp of the detection pass.
        estimated_profit: Net profit for the configured trade amount after fees.
    """

    model_config = {"frozen": True}

    id: str
    coin: str
    buy_from: str
    sell_to: str
    buy_price: float
    sell_price: float
    spread: float
    spread_percentage: float
    timestamp: float
    estimated_profit: float


class SignalAction(str, enum.Enum):
    """Direction of a spot signal."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class SpotSignal(BaseModel):
    """Directional intra-exchange trade intent, manual or advisory-suggested.

    Attributes:
        coin: Asset symbol.
        action: BUY, SELL or HOLD.
        confidence: Confidence score (0 to 1).
        target_price: Suggested target price, 0 when not provided.
        reason: Free-text rationale.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    coin: str
    action: SignalAction
    confidence: float = Field(ge=0.0, le=1.0)
    target_price: float = Field(default=0.0, alias="targetPrice")
    reason: str = ""

    @property
    def is_actionable(self) -> bool:
        """Whether the signal asks for a trade at all."""
        return self.action != SignalAction.HOLD
