"""Local result used whenever the advisory service is unavailable."""

from arbsim.models.advisory import AdvisoryResult, RiskLevel, Sentiment

FALLBACK_REASONING = (
    "Advisory link unavailable; proceeding with local heuristic analysis."
)
FALLBACK_STRATEGY = (
    "Local node executing standard arbitrage protocols while waiting for "
    "the advisory link to reset."
)


def fallback_result() -> AdvisoryResult:
    """Neutral, medium-risk result with no spot signals."""
    return AdvisoryResult(
        sentiment=Sentiment.NEUTRAL,
        reasoning=FALLBACK_REASONING,
        risk_level=RiskLevel.MEDIUM,
        recommended_strategy=FALLBACK_STRATEGY,
        spot_signals=[],
        is_fallback=True,
    )
