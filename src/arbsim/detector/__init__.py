"""Arbitrage opportunity detection."""

from arbsim.detector.spread import SpreadDetector
from arbsim.detector.spread_calculator import SpreadCalculator, SpreadMetrics

__all__ = [
    "SpreadCalculator",
    "SpreadDetector",
    "SpreadMetrics",
]
