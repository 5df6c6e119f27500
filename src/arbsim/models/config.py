"""User-adjustable bot settings.

Malformed input is clamped to a safe value instead of being rejected,
so a bad form field can never stop the engine.
"""

import enum
import math
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Floor applied to a missing, non-numeric or non-positive minimum spread
MIN_SPREAD_FLOOR_PCT = 0.01


class TradingMode(str, enum.Enum):
    """Which intents the automatic strategy may execute."""

    ARB = "ARB"
    SPOT = "SPOT"
    HYBRID = "HYBRID"

    @property
    def allows_arbitrage(self) -> bool:
        return self != TradingMode.SPOT

    @property
    def allows_spot(self) -> bool:
        return self != TradingMode.ARB


def _to_float(value: Any) -> float | None:
    """Coerce a raw value to a finite float, or None if impossible."""
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


class BotSettings(BaseModel):
    """Process-wide trading configuration.

    Read by the detector and executor on every invocation, never cached.

    Attributes:
        min_spread_percent: Minimum spread before an opportunity is surfaced.
        max_slippage_percent: Declared slippage tolerance (not enforced).
        max_concurrent_trades: Declared concurrency cap (not enforced).
        daily_stop_loss: Declared daily loss limit (not enforced).
        enable_advisory: Toggles the advisory polling loop.
        trading_mode: Gates what the automatic strategy executes.
        trade_amount: Notional size of every simulated trade.

    Fields also accept their camelCase aliases (``tradeAmount``,
    ``minSpreadPercent`` and so on).
    """

    model_config = {"validate_assignment": True, "populate_by_name": True}

    min_spread_percent: float = Field(default=0.15, alias="minSpreadPercent")
    max_slippage_percent: float = Field(default=0.05, alias="maxSlippagePercent")
    max_concurrent_trades: int = Field(default=25, alias="maxConcurrentTrades")
    daily_stop_loss: float = Field(default=5000.0, alias="dailyStopLoss")
    enable_advisory: bool = Field(default=True, alias="enableAdvisory")
    trading_mode: TradingMode = Field(default=TradingMode.HYBRID, alias="tradingMode")
    trade_amount: int = Field(default=10, alias="tradeAmount")

    @classmethod
    def field_name(cls, key: str) -> str:
        """Map a camelCase alias to its field name; other keys pass through."""
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return key

    @field_validator("trade_amount", mode="before")
    @classmethod
    def _clamp_trade_amount(cls, value: Any) -> int:
        amount = _to_float(value)
        if amount is None:
            return 1
        return max(1, int(amount))

    @field_validator("min_spread_percent", mode="before")
    @classmethod
    def _clamp_min_spread(cls, value: Any) -> float:
        spread = _to_float(value)
        if spread is None or spread <= 0:
            return MIN_SPREAD_FLOOR_PCT
        return spread

    @field_validator("max_slippage_percent", "daily_stop_loss", mode="before")
    @classmethod
    def _clamp_non_negative(cls, value: Any) -> float:
        number = _to_float(value)
        if number is None:
            return 0.0
        return max(0.0, number)

    @field_validator("max_concurrent_trades", mode="before")
    @classmethod
    def _clamp_concurrency(cls, value: Any) -> int:
        number = _to_float(value)
        if number is None:
            return 1
        return max(1, int(number))

    @field_validator("trading_mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: Any) -> TradingMode:
        if isinstance(value, TradingMode):
            return value
        try:
            return TradingMode(str(value).upper())
        except ValueError:
            return TradingMode.HYBRID

    @field_validator("enable_advisory", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
