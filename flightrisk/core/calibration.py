"""
Risk calibration - component weights and tier thresholds

Weights and thresholds are fixed policy, kept here so a recalibration is a
one-line change. The aggregator refuses a weight table that does not sum to 1.0.
"""

from typing import Dict

# Component keys in canonical order
COMPONENT_KEYS = ("ops", "weather_dep", "weather_arr", "tsa", "news")

RISK_WEIGHTS: Dict[str, float] = {
    "ops": 0.25,          # delays, cancellations, diversions
    "weather_dep": 0.20,
    "weather_arr": 0.20,  # can force a diversion
    "tsa": 0.10,          # checkpoint wait, departure side only
    "news": 0.25,         # strikes, outages, ATC programs
}

# Upper bounds (exclusive) of each tier; anything above yellow is red
TIER_THRESHOLDS: Dict[str, float] = {
    "green": 0.25,
    "yellow": 0.55,
}

# Component score above which a red brief gets a targeted advisory
SEVERE_COMPONENT_THRESHOLD = 0.5
SEVERE_NEWS_THRESHOLD = 0.6

# Component score above which a yellow brief gets a targeted advisory
ELEVATED_COMPONENT_THRESHOLD = 0.3

TOP_SIGNAL_LIMIT = 3
