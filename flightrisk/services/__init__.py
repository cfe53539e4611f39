"""
Services package - Signal scoring, fusion and external API integrations
"""

from .aggregator import MissingRequiredFieldError, RiskAggregator
from .checkpoint import CheckpointWaitResolver
from .intelligence import (
    GeminiHeadlineSummarizer,
    HeadlineSummarizer,
    SecurityIntelligenceExtractor,
    estimate_wait_minutes,
    get_security_extractor,
    keyword_fallback
)
from .providers import ProviderError
from .aviationstack import AviationstackClient, AviationstackError
from .weatherapi import WeatherAPIClient, WeatherAPIError
from .tsa import TSAClient, TSAError
from .newsdata import NewsdataClient, NewsdataError
from .recommendations import recommend_actions
from .risk_brief import RiskBriefService, compute_risk_brief, get_risk_brief_service
from .scorers import (
    SignalScore,
    score_checkpoint,
    score_checkpoint_wait,
    score_news,
    score_operations,
    score_weather
)

__all__ = [
    "MissingRequiredFieldError",
    "RiskAggregator",
    "CheckpointWaitResolver",
    "GeminiHeadlineSummarizer",
    "HeadlineSummarizer",
    "SecurityIntelligenceExtractor",
    "estimate_wait_minutes",
    "get_security_extractor",
    "keyword_fallback",
    "ProviderError",
    "AviationstackClient",
    "AviationstackError",
    "WeatherAPIClient",
    "WeatherAPIError",
    "TSAClient",
    "TSAError",
    "NewsdataClient",
    "NewsdataError",
    "recommend_actions",
    "RiskBriefService",
    "compute_risk_brief",
    "get_risk_brief_service",
    "SignalScore",
    "score_checkpoint",
    "score_checkpoint_wait",
    "score_news",
    "score_operations",
    "score_weather"
]
