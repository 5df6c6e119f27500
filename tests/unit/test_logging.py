"""Tests for session logging setup."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from arbsim.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def _last_event(capsys: pytest.CaptureFixture[str]) -> dict:
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    return json.loads(lines[-1])


class TestSetupLogging:
    """Tests for JSON rendering and session context."""

    def test_seed_bound_to_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(json_format=True, seed=7)
        get_logger("arbsim.test.seed").info("tick_processed", ticks=3)

        event = _last_event(capsys)
        assert event["event"] == "tick_processed"
        assert event["seed"] == 7
        assert event["ticks"] == 3
        assert event["level"] == "info"

    def test_no_seed_no_field(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(json_format=True, seed=7)
        setup_logging(json_format=True)
        get_logger("arbsim.test.noseed").info("engine_started")

        assert "seed" not in _last_event(capsys)

    def test_exception_rendered_in_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(json_format=True)
        try:
            raise RuntimeError("client bug")
        except RuntimeError:
            get_logger("arbsim.test.exc").exception("advisory_client_failed")

        event = _last_event(capsys)
        assert event["event"] == "advisory_client_failed"
        assert "RuntimeError: client bug" in event["exception"]

    def test_levels(self) -> None:
        setup_logging(log_level="warning")
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("aiohttp.access").level == logging.WARNING
