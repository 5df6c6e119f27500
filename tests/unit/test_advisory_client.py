"""Unit tests for the advisory client and response parsing."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from aiohttp import test_utils, web

from arbsim.advisory.client import (
    AdvisoryError,
    AdvisoryRateLimitError,
    AdvisoryResponseError,
    HttpAdvisoryClient,
    build_prompt,
    parse_advisory_text,
)
from arbsim.models.advisory import RiskLevel, Sentiment
from arbsim.models.market import Asset, MarketEntry, PriceQuote
from arbsim.models.signal import ArbitrageOpportunity, SignalAction

_RESULT = {
    "sentiment": "BULLISH",
    "reasoning": "Spreads widening on majors",
    "riskLevel": "LOW",
    "recommendedStrategy": "Route micro-trades through the widest pair",
    "spotSignals": [
        {"coin": "ETH", "action": "BUY", "confidence": 0.82, "targetPrice": 3600, "reason": "breakout"}
    ],
}


def _make_opportunity() -> ArbitrageOpportunity:
    return ArbitrageOpportunity(
        id="BTC-1",
        coin="BTC",
        buy_from="Kraken",
        sell_to="Binance",
        buy_price=65000.0,
        sell_price=65300.0,
        spread=300.0,
        spread_percentage=0.46,
        timestamp=1.0,
        estimated_profit=0.025,
    )


def _make_market() -> MarketEntry:
    return MarketEntry(
        asset=Asset(symbol="BTC", name="Bitcoin", base_price=65000),
        quotes=[PriceQuote(exchange="Kraken", price=65000.0, last_update=1.0)],
    )


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseAdvisoryText:
    """Tests for tolerant response parsing."""

    def test_plain_json(self) -> None:
        result = parse_advisory_text(json.dumps(_RESULT))
        assert result.sentiment == Sentiment.BULLISH
        assert result.risk_level == RiskLevel.LOW
        assert result.spot_signals[0].action == SignalAction.BUY
        assert result.spot_signals[0].target_price == 3600
        assert result.is_fallback is False

    def test_fenced_json(self) -> None:
        text = "```json\n" + json.dumps(_RESULT) + "\n```"
        assert parse_advisory_text(text).sentiment == Sentiment.BULLISH

    def test_text_envelope(self) -> None:
        text = json.dumps({"text": "```json\n" + json.dumps(_RESULT) + "\n```"})
        assert parse_advisory_text(text).recommended_strategy.startswith("Route")

    def test_cannot_claim_fallback(self) -> None:
        assert parse_advisory_text(json.dumps({**_RESULT, "is_fallback": True})).is_fallback is False

    @pytest.mark.parametrize("text", ["", "   ", "not json", "[1, 2]", '{"sentiment": "EUPHORIC"}'])
    def test_invalid_payloads(self, text: str) -> None:
        with pytest.raises(AdvisoryResponseError):
            parse_advisory_text(text)

    def test_deeply_nested_body(self) -> None:
        with pytest.raises(AdvisoryResponseError):
            parse_advisory_text("[" * 200_000 + "]" * 200_000)


class TestBuildPrompt:
    """Tests for prompt rendering."""

    def test_embeds_context(self) -> None:
        prompt = build_prompt([_make_opportunity()], [_make_market()])
        assert '"coin": "BTC"' in prompt
        assert '"Kraken": 65000.0' in prompt
        assert "riskLevel" in prompt


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


class TestHttpAdvisoryClient:
    """Tests for retries and error mapping, with the transport patched out."""

    def _make_client(self, sleep: _RecordingSleep) -> HttpAdvisoryClient:
        return HttpAdvisoryClient(
            endpoint="http://advisory.local/analyze",
            max_retries=3,
            retry_delay_seconds=2.0,
            sleep=sleep,
        )

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        sleep = _RecordingSleep()
        client = self._make_client(sleep)
        post = AsyncMock(return_value=(200, json.dumps(_RESULT)))
        with patch.object(client, "_post", post):
            result = await client.analyze([_make_opportunity()], [_make_market()])

        assert result.sentiment == Sentiment.BULLISH
        assert post.await_count == 1
        payload = post.await_args.args[0]
        assert payload["model"] == "default"
        assert "prompt" in payload
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_rate_limit_then_succeeds(self) -> None:
        sleep = _RecordingSleep()
        client = self._make_client(sleep)
        post = AsyncMock(
            side_effect=[(429, ""), (429, ""), (200, json.dumps(_RESULT))]
        )
        with patch.object(client, "_post", post):
            result = await client.analyze([], [])

        assert result.sentiment == Sentiment.BULLISH
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted(self) -> None:
        sleep = _RecordingSleep()
        client = self._make_client(sleep)
        post = AsyncMock(return_value=(429, "Too Many Requests"))
        with patch.object(client, "_post", post):
            with pytest.raises(AdvisoryRateLimitError):
                await client.analyze([], [])

        assert post.await_count == 4
        assert sleep.delays == [2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_quota_message_counts_as_rate_limit(self) -> None:
        sleep = _RecordingSleep()
        client = self._make_client(sleep)
        post = AsyncMock(return_value=(403, '{"error": "Quota exceeded"}'))
        with patch.object(client, "_post", post):
            with pytest.raises(AdvisoryRateLimitError):
                await client.analyze([], [])

    @pytest.mark.asyncio
    async def test_server_error_not_retried(self) -> None:
        sleep = _RecordingSleep()
        client = self._make_client(sleep)
        post = AsyncMock(return_value=(500, "internal error"))
        with patch.object(client, "_post", post):
            with pytest.raises(AdvisoryError) as exc_info:
                await client.analyze([], [])

        assert not isinstance(exc_info.value, AdvisoryRateLimitError)
        assert post.await_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_unparseable_body(self) -> None:
        client = self._make_client(_RecordingSleep())
        with patch.object(client, "_post", AsyncMock(return_value=(200, "oops"))):
            with pytest.raises(AdvisoryResponseError):
                await client.analyze([], [])

    @pytest.mark.asyncio
    async def test_connection_error_mapped(self) -> None:
        client = HttpAdvisoryClient(endpoint="http://127.0.0.1:9/analyze", timeout_seconds=2.0)
        with pytest.raises(AdvisoryError):
            await client.analyze([], [])

    @pytest.mark.asyncio
    async def test_deeply_nested_body(self) -> None:
        client = self._make_client(_RecordingSleep())
        body = "[" * 200_000 + "]" * 200_000
        with patch.object(client, "_post", AsyncMock(return_value=(200, body))):
            with pytest.raises(AdvisoryResponseError):
                await client.analyze([], [])

    @pytest.mark.asyncio
    async def test_undecodable_body_mapped(self) -> None:
        async def handler(request: web.Request) -> web.Response:
            return web.Response(
                body=b'{"sentiment": "\xff\xfe"}',
                content_type="application/json",
                charset="utf-8",
            )

        app = web.Application()
        app.router.add_post("/analyze", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        try:
            client = HttpAdvisoryClient(endpoint=str(server.make_url("/analyze")))
            with pytest.raises(AdvisoryResponseError):
                await client.analyze([], [])
        finally:
            await server.close()
