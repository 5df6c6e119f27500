"""Market data models: asset catalog entries and per-exchange quotes."""

from pydantic import BaseModel, Field


class Asset(BaseModel):
    """Tradable asset from the static catalog.

    Attributes:
        symbol: Ticker symbol (e.g. "BTC").
        name: Human-readable name (e.g. "Bitcoin").
        base_price: Reference price used to seed the simulated feeds.
    """

    model_config = {"frozen": True}

    symbol: str
    name: str
    base_price: float = Field(gt=0)


class PriceQuote(BaseModel):
    """Latest simulated price of one asset on one exchange.

    Attributes:
        exchange: Exchange name.
        price: Last simulated price.
        last_update: Unix timestamp of the last price move.
    """

    model_config = {"frozen": True}

    exchange: str
    price: float
    last_update: float


class MarketEntry(BaseModel):
    """All exchange quotes for a single asset.

    Quotes are kept in configured exchange order, one per exchange.

    Attributes:
        asset: The catalog asset.
        quotes: One PriceQuote per configured exchange.
    """

    model_config = {"frozen": True}

    asset: Asset
    quotes: list[PriceQuote] = Field(default_factory=list)

    @property
    def symbol(self) -> str:
        """Asset ticker symbol."""
        return self.asset.symbol

    @property
    def exchanges(self) -> list[str]:
        """Exchange names in quote order."""
        return [q.exchange for q in self.quotes]

    def quote_for(self, exchange: str) -> PriceQuote | None:
        """Return the quote for an exchange, or None if it is not listed."""
        for quote in self.quotes:
            if quote.exchange == exchange:
                return quote
        return None


# Ordered symbol -> entry mapping; insertion order is catalog order.
MarketSnapshot = dict[str, MarketEntry]
