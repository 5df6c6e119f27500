"""External advisory (sentiment/strategy) integration."""

from arbsim.advisory.client import (
    AdvisoryClient,
    AdvisoryError,
    AdvisoryRateLimitError,
    AdvisoryResponseError,
    HttpAdvisoryClient,
    build_prompt,
    parse_advisory_text,
)
from arbsim.advisory.fallback import fallback_result
from arbsim.advisory.poller import AdvisoryPoller

__all__ = [
    "AdvisoryClient",
    "AdvisoryError",
    "AdvisoryPoller",
    "AdvisoryRateLimitError",
    "AdvisoryResponseError",
    "HttpAdvisoryClient",
    "build_prompt",
    "fallback_result",
    "parse_advisory_text",
]
