"""Explicitly owned mutable engine state."""

from __future__ import annotations

from dataclasses import dataclass, field

from arbsim.core.ledger import Ledger
from arbsim.models.advisory import AdvisoryResult
from arbsim.models.config import BotSettings
from arbsim.models.market import MarketSnapshot
from arbsim.models.signal import ArbitrageOpportunity


@dataclass
class EngineState:
    """Everything the engine mutates, in one place.

    Components receive this object instead of reaching for globals. The
    ledger is the only writer of balance and trade log; the executor is
    the only writer of ``last_execution_at``.

    Attributes:
        settings: Current bot settings, replaced wholesale on change.
        ledger: Account balance and trade log.
        market: Latest market snapshot.
        opportunities: Ranked opportunities from the latest detection pass.
        last_execution_at: Unix time of the last successful trade, or None.
        auto_trade: Whether the automatic strategy is enabled.
        advisory: Latest advisory result, if any.
        last_auto_opportunity_id: Top opportunity the auto strategy last acted on.
    """

    settings: BotSettings
    ledger: Ledger
    market: MarketSnapshot = field(default_factory=dict)
    opportunities: list[ArbitrageOpportunity] = field(default_factory=list)
    last_execution_at: float | None = None
    auto_trade: bool = False
    advisory: AdvisoryResult | None = None
    last_auto_opportunity_id: str | None = None
