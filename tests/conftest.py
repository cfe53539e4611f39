"""
Shared fixtures: isolated settings, fixed clock and stub providers
No test touches the network.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from flightrisk.core.config import reload_settings
from flightrisk.models import (
    AirportInfo,
    AirportWeatherForecast,
    CheckpointWaitRecord,
    FlightOperationsSnapshot,
    ForecastHour,
    NewsHeadline,
    parse_flight_snapshot,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

PROVIDER_ENV_VARS = (
    "AVIATIONSTACK_KEY",
    "WEATHERAPI_KEY",
    "NEWSDATA_KEY",
    "GOOGLE_GEMINI_API_KEY",
    "GCP_PROJECT_ID",
    "DEFAULT_MODEL_NAME",
    "DEFAULT_TEMPERATURE",
    "MAX_OUTPUT_TOKENS",
    "ENVIRONMENT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """No provider keys, default calibration"""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "development")
    settings = reload_settings()
    yield settings
    reload_settings()


@pytest.fixture
def now() -> datetime:
    return NOW


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def make_snapshot(
    status: str = "scheduled",
    dep: str = "JFK",
    arr: str = "LHR",
    delay_minutes: int = 0,
    airline: str = "American Airlines"
) -> FlightOperationsSnapshot:
    scheduled = NOW + timedelta(hours=6)
    return parse_flight_snapshot({
        "flight_date": "2026-03-01",
        "flight_status": status,
        "airline": {"name": airline, "iata": "AA"},
        "flight": {"iata": "AA100"},
        "departure": {
            "iata": dep,
            "scheduled": scheduled.isoformat(),
            "estimated": (scheduled + timedelta(minutes=delay_minutes)).isoformat(),
        },
        "arrival": {
            "iata": arr,
            "scheduled": (scheduled + timedelta(hours=7)).isoformat(),
        },
    })


def make_forecast(
    airport_code: str = "JFK",
    wind: float = 10,
    gust: float = 15,
    vis: float = 10,
    precip: float = 0,
    condition: str = "Sunny",
    hours: int = 8,
    anchor: Optional[datetime] = NOW,
    overrides: Optional[Dict[int, Dict[str, Any]]] = None
) -> AirportWeatherForecast:
    """Uniform hourly series starting at NOW; `overrides` patches single hours"""
    series = []
    for i in range(hours):
        values = {
            "time": NOW + timedelta(hours=i),
            "wind_kph": wind,
            "gust_kph": gust,
            "vis_km": vis,
            "precip_mm": precip,
            "condition_text": condition,
        }
        values.update((overrides or {}).get(i, {}))
        series.append(ForecastHour(**values))
    return AirportWeatherForecast(airport_code=airport_code, hours=series, current_hour=anchor)


def make_records(waits: List[float], start: datetime = NOW) -> List[CheckpointWaitRecord]:
    """Most recent first, one record per 15 minutes"""
    return [
        CheckpointWaitRecord(timestamp=start - timedelta(minutes=15 * i), wait_minutes=w)
        for i, w in enumerate(waits)
    ]


def make_headlines(*titles: str) -> List[NewsHeadline]:
    return [
        NewsHeadline(title=t, link=f"https://news.example/{i}", publish_date="2026-03-01 08:00:00", source="example")
        for i, t in enumerate(titles)
    ]


# ---------------------------------------------------------------------------
# Stub providers
# ---------------------------------------------------------------------------

class StubFlights:
    """Stands in for AviationstackClient"""

    def __init__(self, snapshot=None, airports: Optional[Dict[str, AirportInfo]] = None, error: Exception = None):
        self.snapshot = snapshot
        self.airports = airports or {}
        self.error = error
        self.calls: List[tuple] = []

    def get_flight_status(self, flight_iata, date):
        self.calls.append(("flight", flight_iata, date))
        if self.error:
            raise self.error
        return self.snapshot

    def get_airport(self, iata):
        self.calls.append(("airport", iata))
        if self.error:
            raise self.error
        return self.airports.get(iata)


class StubWeather:
    """Stands in for WeatherAPIClient"""

    def __init__(self, forecasts: Optional[Dict[str, AirportWeatherForecast]] = None, error: Exception = None):
        self.forecasts = forecasts or {}
        self.error = error
        self.calls: List[str] = []

    def get_airport_forecast(self, airport_code, airport=None):
        self.calls.append(airport_code)
        if self.error:
            raise self.error
        return self.forecasts.get(airport_code)


class StubNews:
    """
    Stands in for NewsdataClient

    `results` is either a list returned for every query or a callable
    query -> list (raising to simulate a failed search).
    """

    def __init__(self, results: Any = None):
        self.results = results if results is not None else []
        self.queries: List[str] = []

    def search(self, query):
        self.queries.append(query)
        if callable(self.results):
            return self.results(query)
        return list(self.results)


class StubTelemetry:
    """Stands in for TSAClient"""

    def __init__(self, records=None, error: Exception = None, delay: float = 0.0):
        self.records = records or []
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    def get_wait_times(self, iata):
        self.calls.append(iata)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.records)


class StubSummarizer:
    """HeadlineSummarizer returning a canned mapping, or raising"""

    def __init__(self, answer: Any = None, error: Exception = None):
        self.answer = answer
        self.error = error
        self.calls = 0

    def summarize_headlines(self, headlines, airport_code, airport_name=None):
        self.calls += 1
        if self.error:
            raise self.error
        return self.answer

