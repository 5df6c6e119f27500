"""Configuration management with Pydantic Settings and YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from arbsim.models.config import BotSettings
from arbsim.models.market import Asset

DEFAULT_ASSETS: list[dict[str, Any]] = [
    {"symbol": "BTC", "name": "Bitcoin", "base_price": 65000},
    {"symbol": "ETH", "name": "Ethereum", "base_price": 3500},
    {"symbol": "BNB", "name": "Binance Coin", "base_price": 600},
    {"symbol": "SOL", "name": "Solana", "base_price": 145},
    {"symbol": "XRP", "name": "Ripple", "base_price": 0.62},
    {"symbol": "BCH", "name": "Bitcoin Cash", "base_price": 480},
    {"symbol": "LTC", "name": "Litecoin", "base_price": 85},
    {"symbol": "LINK", "name": "Chainlink", "base_price": 18},
    {"symbol": "ADA", "name": "Cardano", "base_price": 0.58},
    {"symbol": "DOT", "name": "Polkadot", "base_price": 8.20},
    {"symbol": "DOGE", "name": "Dogecoin", "base_price": 0.16},
    {"symbol": "TRX", "name": "TRON", "base_price": 0.12},
    {"symbol": "SAND", "name": "The Sandbox", "base_price": 0.45},
    {"symbol": "USDT", "name": "Tether", "base_price": 1.00},
    {"symbol": "USDC", "name": "USD Coin", "base_price": 1.00},
]

DEFAULT_EXCHANGES: list[str] = [
    "Binance",
    "crypto.com",
    "Trust Wallet",
    "Bybit",
    "Gemini",
    "Bitget",
    "CEX.io",
    "Gate.io",
    "Coinbase",
    "Bitmama",
    "OKX",
    "Kraken",
    "Coinmama",
    "Kucoin",
    "0x.io",
]


# --- Sub-config models ---


class SystemConfig(BaseModel):
    """Top-level system settings."""

    log_level: str = "INFO"
    json_logs: bool = False
    seed: int | None = None


class MarketConfig(BaseModel):
    """Simulated market catalog and price feed settings."""

    assets: list[Asset] = Field(
        default_factory=lambda: [Asset(**a) for a in DEFAULT_ASSETS]
    )
    exchanges: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCHANGES))
    tick_interval_seconds: float = 0.8
    seed_jitter_pct: float = 2.0
    tick_jitter_pct: float = 0.4


class FeeConfig(BaseModel):
    """Fee schedule applied to every simulated trade.

    Costs per trade are ``amount * fee_rate * 2 + fixed_network_fee``.
    """

    fee_rate: float = 0.001
    fixed_network_fee: float = 0.001


class ExecutionConfig(BaseModel):
    """Trade executor and ledger settings."""

    initial_balance: float = 10_000.0
    debounce_seconds: float = 0.2
    trade_log_size: int = 50
    spot_max_move: float = 0.03
    spot_positive_bias: float = 0.7
    default_spot_buy_venue: str = "MARKET"
    default_spot_sell_venue: str = "HFT-NODE"


class AdvisoryConfig(BaseModel):
    """External advisory service settings.

    Polling only starts when ``endpoint`` is set and the bot settings
    enable advisory guidance.
    """

    endpoint: str = ""
    api_key: str = ""
    model: str = "default"
    poll_interval_seconds: float = 45.0
    cooldown_seconds: float = 60.0
    max_retries: int = 3
    retry_delay_seconds: float = 2.0
    timeout_seconds: float = 30.0
    top_opportunities: int = 3
    top_markets: int = 5


class MonitoringConfig(BaseModel):
    """Telemetry and Prometheus exporter settings."""

    telemetry_interval_seconds: float = 1.0
    metrics_port: int = 0


# --- Main config ---


class AppConfig(BaseSettings):
    """Application configuration.

    Loads from YAML file, with environment variable overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARBSIM_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override YAML (init) values."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    system: SystemConfig = Field(default_factory=SystemConfig)
    market: MarketConfig = Field(default_factory=MarketConfig)
    fees: FeeConfig = Field(default_factory=FeeConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    bot: BotSettings = Field(default_factory=BotSettings)
    advisory: AdvisoryConfig = Field(default_factory=AdvisoryConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def load_config(
    config_dir: str | Path = "configs",
    config_file: str = "default.yaml",
) -> AppConfig:
    """Load application configuration from YAML with env var overrides.

    Args:
        config_dir: Path to the configuration directory.
        config_file: Name of the main config YAML file.

    Returns:
        Validated AppConfig instance. Defaults are used when the file
        does not exist.
    """
    config_path = Path(config_dir) / config_file
    raw: dict[str, Any] = {}
    if config_path.exists():
        raw = _load_yaml(config_path)

    # Pydantic Settings will automatically apply env var overrides
    return AppConfig(**raw)
