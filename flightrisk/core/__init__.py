"""
Core package - Configuration, calibration constants and cross-cutting concerns
"""

from .config import Settings, get_settings, reload_settings
from .calibration import COMPONENT_KEYS, RISK_WEIGHTS, TIER_THRESHOLDS

__all__ = [
    "Settings",
    "get_settings",
    "reload_settings",
    "COMPONENT_KEYS",
    "RISK_WEIGHTS",
    "TIER_THRESHOLDS"
]
