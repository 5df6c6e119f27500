"""ArbSim entry point.

Assembles the simulation engine from configuration and runs it on the
asyncio loop until interrupted or until the requested duration elapses.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import random
import signal

from arbsim.advisory.client import HttpAdvisoryClient
from arbsim.config import AppConfig, load_config
from arbsim.core.engine import ArbitrageEngine
from arbsim.core.scheduler import AsyncioScheduler, SystemClock
from arbsim.logging import get_logger, setup_logging
from arbsim.monitoring.metrics import MetricsCollector


def _create_advisory_client(config: AppConfig) -> HttpAdvisoryClient | None:
    """Create the advisory client if an endpoint is configured.

    Args:
        config: Application configuration.

    Returns:
        HttpAdvisoryClient, or None when no endpoint is set.
    """
    cfg = config.advisory
    if not cfg.endpoint:
        return None
    return HttpAdvisoryClient(
        endpoint=cfg.endpoint,
        api_key=cfg.api_key,
        model=cfg.model,
        timeout_seconds=cfg.timeout_seconds,
        max_retries=cfg.max_retries,
        retry_delay_seconds=cfg.retry_delay_seconds,
    )


def build_engine(
    config: AppConfig,
    metrics: MetricsCollector | None = None,
) -> ArbitrageEngine:
    """Build an engine driven by the running asyncio loop and wall clock.

    Args:
        config: Application configuration.
        metrics: Optional metrics collector.

    Returns:
        A configured, not yet started ArbitrageEngine.
    """
    return ArbitrageEngine(
        config=config,
        scheduler=AsyncioScheduler(),
        clock=SystemClock(),
        rng=random.Random(config.system.seed),
        advisory_client=_create_advisory_client(config),
        metrics=metrics,
    )


async def run(
    config: AppConfig,
    duration: float | None = None,
    auto_trade: bool = False,
) -> ArbitrageEngine:
    """Run the simulator.

    Args:
        config: Validated application configuration.
        duration: Seconds to run before stopping; None runs until a signal.
        auto_trade: Enable the automatic strategy from the start.

    Returns:
        The stopped engine, for inspection.
    """
    logger = get_logger("main")
    logger.info("arbsim_starting", seed=config.system.seed)

    metrics = MetricsCollector()
    if config.monitoring.metrics_port:
        metrics.start_server(config.monitoring.metrics_port)
        logger.info("metrics_server_started", port=config.monitoring.metrics_port)

    engine = build_engine(config, metrics=metrics)

    # Setup shutdown event
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    try:
        engine.start()
        if auto_trade:
            engine.set_auto_trade(True)

        if duration is None:
            await shutdown_event.wait()
        else:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(shutdown_event.wait(), timeout=duration)

    finally:
        logger.info("arbsim_shutting_down")
        engine.stop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)

        report = engine.get_report()
        logger.info(
            "session_report",
            duration_seconds=round(report.duration_seconds, 3),
            ticks=report.stats.ticks,
            opportunities_detected=report.stats.opportunities_detected,
            trades_executed=report.stats.trades_executed,
            trades_rejected=report.stats.trades_rejected,
            balance=round(report.balance, 6),
            net_yield=round(report.net_yield, 6),
            total_profit=round(report.total_profit, 6),
            trade_count=report.trade_count,
        )
        logger.info("arbsim_stopped")

    return engine


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="ArbSim - Simulated Crypto Arbitrage Engine",
    )
    parser.add_argument(
        "--config-dir",
        default="configs",
        help="Path to configuration directory (default: configs)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Seconds to run before stopping (default: until interrupted)",
    )
    parser.add_argument(
        "--auto-trade",
        action="store_true",
        help="Enable the automatic trading strategy on start",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed override for a reproducible session",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines instead of console output",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    config = load_config(config_dir=args.config_dir)

    # Apply CLI overrides
    if args.seed is not None:
        config.system.seed = args.seed
    if args.json_logs:
        config.system.json_logs = True

    # Setup logging
    setup_logging(
        log_level=config.system.log_level,
        json_format=config.system.json_logs,
        seed=config.system.seed,
    )

    # Run the simulator
    asyncio.run(run(config, duration=args.duration, auto_trade=args.auto_trade))


if __name__ == "__main__":
    main()
