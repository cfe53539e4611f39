"""
Signal models - weather, checkpoint wait, news and text-intelligence payloads
Parsers drop malformed records instead of failing the whole batch
"""

from pydantic import BaseModel, Field, field_validator
from typing import Annotated, Optional, List, Dict, Any, Union, Literal
from datetime import datetime
import logging
import math

from flightrisk.models.flight import parse_timestamp

logger = logging.getLogger(__name__)

WaitBucket = Literal["unknown", "low", "moderate", "high", "severe"]
Confidence = Literal["low", "medium", "high"]
CheckpointSource = Literal["primary", "fallback", "unavailable"]


def _to_float(value: Any) -> Optional[float]:
    """Finite float, or None for missing, non-numeric, NaN or infinite values"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

class ForecastHour(BaseModel):
    """One hour of an airport forecast"""
    time: Optional[datetime] = Field(None, description="Start of the hour (UTC)")
    wind_kph: Optional[float] = Field(None, description="Sustained wind speed")
    gust_kph: Optional[float] = Field(None, description="Gust speed")
    vis_km: Optional[float] = Field(None, description="Visibility")
    precip_mm: Optional[float] = Field(None, description="Precipitation")
    condition_text: str = Field(default="", description="Free-text condition, e.g. 'Patchy rain'")

    @field_validator('wind_kph', 'gust_kph', 'vis_km', 'precip_mm', mode='before')
    @classmethod
    def coerce_number(cls, v):
        return _to_float(v)

    @field_validator('time', mode='before')
    @classmethod
    def coerce_time(cls, v):
        return parse_timestamp(v)

    @field_validator('condition_text', mode='before')
    @classmethod
    def coerce_condition(cls, v):
        if isinstance(v, dict):
            v = v.get('text')
        return str(v) if v is not None else ""


class AirportWeatherForecast(BaseModel):
    """
    Short-horizon hourly forecast for one airport

    `current_hour` anchors the scoring window when the feed exposes it.
    """
    airport_code: Optional[str] = None
    hours: List[ForecastHour] = Field(default_factory=list)
    current_hour: Optional[datetime] = None
    current: Optional[ForecastHour] = None

    @field_validator('current_hour', mode='before')
    @classmethod
    def coerce_anchor(cls, v):
        return parse_timestamp(v)


def _hour_from_weatherapi(raw: Dict[str, Any]) -> ForecastHour:
    return ForecastHour(
        time=raw.get('time_epoch', raw.get('time')),
        wind_kph=raw.get('wind_kph'),
        gust_kph=raw.get('gust_kph'),
        vis_km=raw.get('vis_km'),
        precip_mm=raw.get('precip_mm'),
        condition_text=raw.get('condition')
    )


def _hour_from_generic(raw: Dict[str, Any]) -> ForecastHour:
    return ForecastHour(
        time=raw.get('time'),
        wind_kph=raw.get('wind'),
        gust_kph=raw.get('gust'),
        vis_km=raw.get('visibility'),
        precip_mm=raw.get('precip'),
        condition_text=raw.get('conditionText')
    )


def parse_weather_forecast(raw_json: Any, airport_code: Optional[str] = None) -> Optional[AirportWeatherForecast]:
    """
    Parse a forecast payload into an AirportWeatherForecast

    Supports the WeatherAPI `forecast.json` shape
    (`forecast.forecastday[].hour[]` + `current`) and the generic
    `{forecastHours: [...], currentHour}` shape.

    Returns:
        AirportWeatherForecast, or None if the payload is not a mapping
    """
    if not isinstance(raw_json, dict):
        return None

    hours: List[ForecastHour] = []
    current_hour = None
    current = None

    if 'forecast' in raw_json:
        forecast = raw_json.get('forecast')
        days = forecast.get('forecastday') if isinstance(forecast, dict) else None
        for day in days if isinstance(days, list) else []:
            if not isinstance(day, dict):
                continue
            for hour in day.get('hour') or []:
                if isinstance(hour, dict):
                    try:
                        hours.append(_hour_from_weatherapi(hour))
                    except Exception as e:
                        logger.debug(f"Skipping malformed forecast hour: {e}")
        current_raw = raw_json.get('current')
        if isinstance(current_raw, dict):
            current_hour = current_raw.get('last_updated_epoch', current_raw.get('last_updated'))
            current = _hour_from_weatherapi(current_raw)
    else:
        for hour in raw_json.get('forecastHours') or []:
            if isinstance(hour, dict):
                try:
                    hours.append(_hour_from_generic(hour))
                except Exception as e:
                    logger.debug(f"Skipping malformed forecast hour: {e}")
        current_hour = raw_json.get('currentHour')

    return AirportWeatherForecast(
        airport_code=airport_code,
        hours=hours,
        current_hour=current_hour,
        current=current
    )


# ---------------------------------------------------------------------------
# Checkpoint wait telemetry
# ---------------------------------------------------------------------------

class CheckpointWaitRecord(BaseModel):
    """A dated checkpoint wait-time sample"""
    timestamp: datetime
    wait_minutes: float = Field(..., ge=0, allow_inf_nan=False)


_TIMESTAMP_KEYS = ('Created_Datetime', 'Created_Datetime2', 'timestamp', 'date')
_WAIT_KEYS = ('WaitTime', 'Wait', 'wait_time', 'waitMinutes')


def _first_present(raw: Dict[str, Any], keys) -> Any:
    for key in keys:
        if raw.get(key) not in (None, ""):
            return raw[key]
    return None


def parse_wait_times(raw_json: Any) -> List[CheckpointWaitRecord]:
    """
    Parse checkpoint telemetry into wait records

    Accepts the MyTSA `{"WaitTimes": [...]}` envelope or a bare list.
    Records without a parseable timestamp or a non-negative numeric wait are
    dropped.
    """
    if isinstance(raw_json, dict):
        series = raw_json.get('WaitTimes') or []
    else:
        series = raw_json or []

    if not isinstance(series, list):
        return []

    records = []
    for item in series:
        if not isinstance(item, dict):
            continue
        timestamp = parse_timestamp(_first_present(item, _TIMESTAMP_KEYS))
        wait = _to_float(_first_present(item, _WAIT_KEYS))
        if timestamp is None or wait is None or wait < 0:
            continue
        records.append(CheckpointWaitRecord(timestamp=timestamp, wait_minutes=wait))
    return records


# ---------------------------------------------------------------------------
# News
# ---------------------------------------------------------------------------

class NewsHeadline(BaseModel):
    """A news search hit"""
    title: str
    link: Optional[str] = None
    publish_date: Optional[str] = None
    source: Optional[str] = None


def parse_news_results(raw_json: Any) -> List[NewsHeadline]:
    """
    Parse a news search response into headlines

    Accepts the Newsdata `{"results": [...]}` envelope or a bare list of
    `{title, link, publishDate, source}` objects. Entries without a title are
    dropped.
    """
    if isinstance(raw_json, dict):
        results = raw_json.get('results') or []
    else:
        results = raw_json or []

    if not isinstance(results, list):
        return []

    headlines = []
    for item in results:
        if not isinstance(item, dict):
            continue
        title = item.get('title')
        if not isinstance(title, str) or not title.strip():
            continue
        headlines.append(NewsHeadline(
            title=title.strip(),
            link=item.get('link') or item.get('url'),
            publish_date=item.get('pubDate') or item.get('publishDate') or item.get('date'),
            source=item.get('source_id') or item.get('source')
        ))
    return headlines


# ---------------------------------------------------------------------------
# Text intelligence + checkpoint provenance
# ---------------------------------------------------------------------------

class SecurityIntelligenceEstimate(BaseModel):
    """Structured checkpoint-risk estimate extracted from headlines"""
    risk_score: float = Field(..., ge=0.0, le=1.0)
    issues: List[str] = Field(default_factory=list)
    wait_estimate: WaitBucket = "unknown"
    advisory: str = ""
    confidence: Confidence = "low"
    summary: str = ""
    method: Literal["llm", "keyword", "default"] = Field(
        default="default",
        description="How the estimate was produced"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "risk_score": 0.5,
                "issues": ["Extended wait times reported"],
                "wait_estimate": "moderate",
                "advisory": "Arrive 60-90 minutes earlier than usual.",
                "confidence": "medium",
                "summary": "Recent news indicates: Extended wait times reported.",
                "method": "keyword"
            }
        }


class PrimaryCheckpointResult(BaseModel):
    """Telemetry answered with at least one record"""
    source: Literal["primary"] = "primary"
    airport_code: str
    records: List[CheckpointWaitRecord]

    class Config:
        frozen = True


class FallbackCheckpointResult(BaseModel):
    """Telemetry unusable; estimate extracted from news headlines"""
    source: Literal["fallback"] = "fallback"
    airport_code: str
    airport_name: Optional[str] = None
    estimate: SecurityIntelligenceEstimate
    headlines: List[NewsHeadline]

    class Config:
        frozen = True


class UnavailableCheckpointResult(BaseModel):
    """Neither telemetry nor news produced anything"""
    source: Literal["unavailable"] = "unavailable"
    airport_code: Optional[str] = None
    reason: str = "no telemetry or news available"

    class Config:
        frozen = True


CheckpointWaitResult = Annotated[
    Union[PrimaryCheckpointResult, FallbackCheckpointResult, UnavailableCheckpointResult],
    Field(discriminator="source")
]
