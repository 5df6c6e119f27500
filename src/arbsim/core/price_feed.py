"""Synthetic per-exchange price feed.

Seeds every (asset, exchange) quote around the asset's base price and then
perturbs every quote by a small random factor on each tick. The feed keeps
no history: each tick returns a fresh snapshot that replaces the last one.
"""

from __future__ import annotations

import random

from arbsim.core.scheduler import Clock, SystemClock
from arbsim.logging import get_logger
from arbsim.models.market import Asset, MarketEntry, MarketSnapshot, PriceQuote

logger = get_logger(__name__)


class PriceFeedSimulator:
    """Random-walk price generator for a fixed asset/exchange grid.

    Attributes:
        seed_jitter: Max relative offset from base price when seeding (0.02 = ±2%).
        tick_jitter: Max relative move per tick (0.004 = ±0.4%).
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Clock | None = None,
        seed_jitter: float = 0.02,
        tick_jitter: float = 0.004,
    ) -> None:
        """Initialize the simulator.

        Args:
            rng: Random source. Pass a seeded instance for reproducible feeds.
            clock: Time source for ``last_update`` stamps.
            seed_jitter: Relative seeding range around the base price.
            tick_jitter: Relative per-tick move range.
        """
        self._rng = rng or random.Random()
        self._clock = clock or SystemClock()
        self.seed_jitter = seed_jitter
        self.tick_jitter = tick_jitter

    def initialize(self, assets: list[Asset], exchanges: list[str]) -> MarketSnapshot:
        """Build the first snapshot with one quote per asset per exchange.

        Args:
            assets: Catalog assets, in display order.
            exchanges: Exchange names shared by every asset.

        Returns:
            A new MarketSnapshot keyed by asset symbol.
        """
        now = self._clock.now()
        snapshot: MarketSnapshot = {}
        for asset in assets:
            quotes = [
                PriceQuote(
                    exchange=exchange,
                    price=asset.base_price
                    * (1 + self._rng.uniform(-self.seed_jitter, self.seed_jitter)),
                    last_update=now,
                )
                for exchange in exchanges
            ]
            snapshot[asset.symbol] = MarketEntry(asset=asset, quotes=quotes)

        logger.info(
            "market_initialized",
            assets=len(assets),
            exchanges=len(exchanges),
        )
        return snapshot

    def tick(self, snapshot: MarketSnapshot) -> MarketSnapshot:
        """Move every quote by a random factor.

        Args:
            snapshot: The current snapshot. It is not modified.

        Returns:
            A snapshot with the same assets and exchanges in the same order
            and freshly stamped prices.
        """
        now = self._clock.now()
        return {
            symbol: MarketEntry(
                asset=entry.asset,
                quotes=[
                    PriceQuote(
                        exchange=quote.exchange,
                        price=quote.price
                        * (1 + self._rng.uniform(-self.tick_jitter, self.tick_jitter)),
                        last_update=now,
                    )
                    for quote in entry.quotes
                ],
            )
            for symbol, entry in snapshot.items()
        }
