"""Prometheus metrics for the simulator."""

from __future__ import annotations

from arbsim.monitoring.metrics import MetricsCollector

__all__ = ["MetricsCollector"]
