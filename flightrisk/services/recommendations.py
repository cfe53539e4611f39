"""
Recommendation Synthesizer - tier (plus the components driving it) to action text
"""

from typing import Dict, List, Sequence, Union

from flightrisk.core.calibration import (
    ELEVATED_COMPONENT_THRESHOLD,
    SEVERE_COMPONENT_THRESHOLD,
    SEVERE_NEWS_THRESHOLD,
)
from flightrisk.models.risk import RiskComponent, RiskTier

RED_HEADLINE = "🚨 HIGH RISK: Consider rebooking to an earlier or later flight if possible."
YELLOW_HEADLINE = "⚠️ MODERATE RISK: Extra precautions recommended."
GREEN_HEADLINE = "✅ LOW RISK: Your flight looks good!"

# Red-tier advisories, in output order: (component, threshold, text)
RED_ADVISORIES = (
    ("ops", SEVERE_COMPONENT_THRESHOLD,
     "⚠️ Flight operations are severely impacted. Check airline for rebooking options."),
    ("weather_dep", SEVERE_COMPONENT_THRESHOLD,
     "🌧️ Severe weather at departure airport. Expect delays or cancellations."),
    ("weather_arr", SEVERE_COMPONENT_THRESHOLD,
     "🌩️ Severe weather at arrival airport. Flight may be diverted."),
    ("tsa", SEVERE_COMPONENT_THRESHOLD,
     "🔒 TSA wait times are critical. Arrive at least 3 hours early or use TSA PreCheck/CLEAR."),
    ("news", SEVERE_NEWS_THRESHOLD,
     "📰 Major disruptions reported (strikes/outages/ATC issues). Monitor news closely."),
)


def _scores(components: Sequence[RiskComponent]) -> Dict[str, float]:
    return {c.key: c.score for c in components}


def recommend_actions(
    tier: Union[RiskTier, str],
    components: Sequence[RiskComponent]
) -> List[str]:
    """
    Ordered action list for a tier

    Deterministic: the same tier and component scores always give the same
    list in the same order.

    Args:
        tier: Aggregate tier
        components: The five risk components of the brief

    Returns:
        List of action strings, headline first
    """
    tier = RiskTier(tier)
    scores = _scores(components)
    actions: List[str] = []

    if tier is RiskTier.RED:
        actions.append(RED_HEADLINE)
        for key, threshold, text in RED_ADVISORIES:
            if scores.get(key, 0.0) > threshold:
                actions.append(text)
        actions.append("🏨 Book a refundable hotel near the airport as backup.")
        actions.append("📱 Enable flight alerts and check status every hour.")

    elif tier is RiskTier.YELLOW:
        actions.append(YELLOW_HEADLINE)
        if scores.get("ops", 0.0) > ELEVATED_COMPONENT_THRESHOLD:
            actions.append("✈️ Flight delays possible. Check for gate changes and EDCT updates.")
        if (scores.get("weather_dep", 0.0) > ELEVATED_COMPONENT_THRESHOLD
                or scores.get("weather_arr", 0.0) > ELEVATED_COMPONENT_THRESHOLD):
            actions.append("☁️ Weather may cause delays. Monitor conditions at both airports.")
        if scores.get("tsa", 0.0) > ELEVATED_COMPONENT_THRESHOLD:
            actions.append("⏰ TSA wait times elevated. Arrive 30-45 minutes earlier than normal.")
        actions.append("📲 Enable push notifications for flight status changes.")
        actions.append("🎒 Consider backup plans if you have tight connections.")

    else:
        actions.append(GREEN_HEADLINE)
        actions.append("📍 Standard arrival time recommended (2 hours for domestic, 3 hours for international).")
        actions.append("📱 Set alerts for any status changes just in case.")
        if scores.get("ops", 0.0) > 0.15:
            actions.append("ℹ️ Minor delays possible, but nothing concerning.")

    return actions
