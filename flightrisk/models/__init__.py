"""
Models package - Pydantic schemas for data validation
"""

from .flight import (
    AirportInfo,
    FlightEndpoint,
    FlightOperationsSnapshot,
    parse_aviationstack_airport,
    parse_aviationstack_flights,
    parse_flight_snapshot,
    format_flight_summary,
    parse_timestamp
)
from .signals import (
    AirportWeatherForecast,
    CheckpointWaitRecord,
    CheckpointWaitResult,
    FallbackCheckpointResult,
    ForecastHour,
    NewsHeadline,
    PrimaryCheckpointResult,
    SecurityIntelligenceEstimate,
    UnavailableCheckpointResult,
    parse_news_results,
    parse_wait_times,
    parse_weather_forecast
)
from .risk import RiskBrief, RiskComponent, RiskTier
from .request import RiskBriefRequest

__all__ = [
    "AirportInfo",
    "FlightEndpoint",
    "FlightOperationsSnapshot",
    "parse_aviationstack_airport",
    "parse_aviationstack_flights",
    "parse_flight_snapshot",
    "format_flight_summary",
    "parse_timestamp",
    "AirportWeatherForecast",
    "CheckpointWaitRecord",
    "CheckpointWaitResult",
    "FallbackCheckpointResult",
    "ForecastHour",
    "NewsHeadline",
    "PrimaryCheckpointResult",
    "SecurityIntelligenceEstimate",
    "UnavailableCheckpointResult",
    "parse_news_results",
    "parse_wait_times",
    "parse_weather_forecast",
    "RiskBrief",
    "RiskComponent",
    "RiskTier",
    "RiskBriefRequest"
]
