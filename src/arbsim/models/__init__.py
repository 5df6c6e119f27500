"""Data models (Pydantic).

Re-exports all core data models for convenient imports:

    from arbsim.models import ArbitrageOpportunity, TradeRecord, BotSettings
"""

from arbsim.models.advisory import AdvisoryResult, RiskLevel, Sentiment
from arbsim.models.config import BotSettings, TradingMode
from arbsim.models.market import Asset, MarketEntry, MarketSnapshot, PriceQuote
from arbsim.models.signal import ArbitrageOpportunity, SignalAction, SpotSignal
from arbsim.models.trade import (
    Account,
    PnlPoint,
    TradeRecord,
    TradeStatus,
    TradeType,
)

__all__ = [
    "Account",
    "AdvisoryResult",
    "ArbitrageOpportunity",
    "Asset",
    "BotSettings",
    "MarketEntry",
    "MarketSnapshot",
    "PnlPoint",
    "PriceQuote",
    "RiskLevel",
    "Sentiment",
    "SignalAction",
    "SpotSignal",
    "TradeRecord",
    "TradeStatus",
    "TradeType",
    "TradingMode",
]
