"""Advisory service client.

Sends the top opportunities and market entries to an external analysis
endpoint and parses the sentiment/strategy annotation it returns. The
service is best-effort: callers are expected to fall back to a local
result on any ``AdvisoryError``.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Awaitable, Callable, Protocol

import aiohttp
from pydantic import ValidationError

from arbsim.logging import get_logger
from arbsim.models.advisory import AdvisoryResult
from arbsim.models.market import MarketEntry
from arbsim.models.signal import ArbitrageOpportunity

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class AdvisoryError(Exception):
    """Raised when the advisory service cannot produce a usable result."""


class AdvisoryRateLimitError(AdvisoryError):
    """Raised when the service keeps rate limiting after all retries."""


class AdvisoryResponseError(AdvisoryError):
    """Raised when the service responds with a non-JSON or invalid payload."""


class AdvisoryClient(Protocol):
    """Anything that can turn market context into an AdvisoryResult."""

    async def analyze(
        self,
        opportunities: list[ArbitrageOpportunity],
        markets: list[MarketEntry],
    ) -> AdvisoryResult: ...


def build_prompt(
    opportunities: list[ArbitrageOpportunity],
    markets: list[MarketEntry],
) -> str:
    """Render the analysis prompt for the given market context.

    Args:
        opportunities: Top-ranked opportunities.
        markets: Top market entries.

    Returns:
        Prompt text embedding both lists as JSON.
    """
    opps_json = json.dumps([o.model_dump(mode="json") for o in opportunities])
    markets_json = json.dumps(
        [
            {
                "symbol": m.symbol,
                "name": m.asset.name,
                "prices": {q.exchange: round(q.price, 8) for q in m.quotes},
            }
            for m in markets
        ]
    )
    return (
        "Analyze this real-time market telemetry as a quantitative trading assistant.\n"
        f"- Arbitrage opportunities: {opps_json}\n"
        f"- Top market assets: {markets_json}\n"
        "Tasks:\n"
        "1. Assess the current sentiment (BULLISH, BEARISH or NEUTRAL).\n"
        "2. Recommend the best execution strategy for micro-trades.\n"
        "3. Identify high-confidence spot signals for intra-exchange trading.\n"
        "Return strictly valid JSON with keys sentiment, reasoning, riskLevel "
        "(LOW, MEDIUM or HIGH), recommendedStrategy and optional spotSignals "
        "(coin, action BUY/SELL/HOLD, confidence 0-1, targetPrice, reason)."
    )


def _strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def parse_advisory_text(text: str) -> AdvisoryResult:
    """Parse a raw service response into an AdvisoryResult.

    Accepts the result object itself, optionally wrapped in a markdown code
    fence, or an envelope of the form ``{"text": "<result json>"}``.

    Args:
        text: Raw response body.

    Returns:
        The validated AdvisoryResult.

    Raises:
        AdvisoryResponseError: If the body is empty, not JSON, or does not
            match the result schema.
    """
    cleaned = _strip_fences(text or "")
    if not cleaned:
        raise AdvisoryResponseError("empty response from advisory service")

    try:
        data: Any = json.loads(cleaned)
    except (json.JSONDecodeError, RecursionError) as e:
        raise AdvisoryResponseError(f"advisory response is not JSON: {e!r}") from e

    if isinstance(data, dict) and "sentiment" not in data and isinstance(data.get("text"), str):
        return parse_advisory_text(data["text"])

    if not isinstance(data, dict):
        raise AdvisoryResponseError(
            f"advisory response must be an object, got {type(data).__name__}"
        )

    data.pop("is_fallback", None)
    try:
        return AdvisoryResult.model_validate(data)
    except ValidationError as e:
        raise AdvisoryResponseError(f"advisory response failed validation: {e}") from e


def _is_rate_limited(status: int, body: str) -> bool:
    return status == 429 or (status >= 400 and "quota" in body.lower())


class HttpAdvisoryClient:
    """Advisory client that POSTs a JSON prompt to an HTTP endpoint.

    Rate-limit responses are retried with exponential backoff; other
    failures raise immediately.

    Attributes:
        endpoint: URL of the analysis endpoint.
        model: Model identifier forwarded to the service.
        timeout_seconds: Total request timeout.
        max_retries: Retries after a rate-limited attempt.
        retry_delay_seconds: Delay before the first retry; doubles each time.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        model: str = "default",
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        retry_delay_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: URL of the analysis endpoint.
            api_key: Bearer token, omitted from headers when empty.
            model: Model identifier forwarded to the service.
            timeout_seconds: Total request timeout.
            max_retries: Retries after a rate-limited attempt.
            retry_delay_seconds: Delay before the first retry.
            sleep: Awaitable sleep used between retries.
        """
        self.endpoint = endpoint
        self._api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self._sleep = sleep

    async def analyze(
        self,
        opportunities: list[ArbitrageOpportunity],
        markets: list[MarketEntry],
    ) -> AdvisoryResult:
        """Request an analysis of the given market context.

        Args:
            opportunities: Top-ranked opportunities.
            markets: Top market entries.

        Returns:
            The parsed AdvisoryResult.

        Raises:
            AdvisoryRateLimitError: If every attempt was rate limited.
            AdvisoryResponseError: If the payload could not be parsed.
            AdvisoryError: On transport or HTTP errors.
        """
        payload = {
            "model": self.model,
            "prompt": build_prompt(opportunities, markets),
            "response_format": "json",
        }

        delay = self.retry_delay_seconds
        attempt = 0
        while True:
            status, body = await self._post(payload)
            if not _is_rate_limited(status, body):
                break
            if attempt >= self.max_retries:
                raise AdvisoryRateLimitError(
                    f"advisory service rate limited after {attempt + 1} attempts"
                )
            attempt += 1
            logger.warning("advisory_rate_limited", attempt=attempt, retry_in=delay)
            await self._sleep(delay)
            delay *= 2

        if status != 200:
            raise AdvisoryError(f"advisory service returned status {status}")
        return parse_advisory_text(body)

    async def _post(self, payload: dict[str, Any]) -> tuple[int, str]:
        """Send the request and return (status, body text).

        Raises:
            AdvisoryResponseError: If the body cannot be decoded as text.
            AdvisoryError: On connection errors or timeouts.
        """
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.endpoint, json=payload, headers=headers) as resp:
                    return resp.status, await resp.text()
        except UnicodeDecodeError as e:
            raise AdvisoryResponseError(f"advisory response is not valid text: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AdvisoryError(f"advisory request failed: {e}") from e
