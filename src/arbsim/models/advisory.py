"""Advisory service result models."""

import enum

from pydantic import BaseModel, Field

from arbsim.models.signal import SpotSignal


class Sentiment(str, enum.Enum):
    """Market sentiment reported by the advisory service."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class RiskLevel(str, enum.Enum):
    """Risk level reported by the advisory service."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AdvisoryResult(BaseModel):
    """Sentiment and strategy annotation from the advisory service.

    Informational only; never required for detection or execution.

    Attributes:
        sentiment: Overall market sentiment.
        reasoning: Narrative explanation.
        risk_level: Assessed risk level.
        recommended_strategy: Suggested execution strategy.
        spot_signals: Optional spot trade suggestions.
        is_fallback: True when produced locally because the service failed.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    sentiment: Sentiment
    reasoning: str
    risk_level: RiskLevel = Field(alias="riskLevel")
    recommended_strategy: str = Field(alias="recommendedStrategy")
    spot_signals: list[SpotSignal] = Field(default_factory=list, alias="spotSignals")
    is_fallback: bool = False
