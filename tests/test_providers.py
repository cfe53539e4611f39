"""
Provider client tests with a fake HTTP session and the TTL cache
"""

from datetime import datetime, timedelta

import pytest
import requests

from flightrisk.models import AirportInfo
from flightrisk.services.aviationstack import AviationstackClient, AviationstackError
from flightrisk.services.cache import TTLCache
from flightrisk.services.newsdata import NewsdataClient, NewsdataError
from flightrisk.services.tsa import TSAClient, TSAError
from flightrisk.services.weatherapi import WeatherAPIClient


class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value")
        return self.payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) and records calls"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


FLIGHTS_PAYLOAD = {
    "data": [
        {
            "flight_date": "2026-02-28",
            "flight_status": "landed",
            "flight": {"iata": "AA100"},
            "departure": {"iata": "JFK"},
            "arrival": {"iata": "LHR"},
        },
        {
            "flight_date": "2026-03-01",
            "flight_status": "scheduled",
            "airline": {"name": "American Airlines", "iata": "AA"},
            "flight": {"iata": "AA100"},
            "departure": {"iata": "jfk", "scheduled": "2026-03-01T18:00:00+00:00",
                          "estimated": "2026-03-01T18:40:00+00:00"},
            "arrival": {"iata": "LHR", "scheduled": "2026-03-02T06:10:00+00:00"},
        },
    ]
}


# ---------------------------------------------------------------------------
# Aviationstack
# ---------------------------------------------------------------------------

def test_flight_status_prefers_matching_date():
    session = FakeSession(FakeResponse(FLIGHTS_PAYLOAD))
    client = AviationstackClient("key", session=session)

    snapshot = client.get_flight_status("AA100", "2026-03-01")

    assert snapshot.status == "scheduled"
    assert snapshot.departure.iata == "JFK"
    assert snapshot.delay_minutes() == 40
    assert session.calls[0]["url"] == "http://api.aviationstack.com/v1/flights"
    assert session.calls[0]["params"]["access_key"] == "key"


def test_flight_status_not_found():
    client = AviationstackClient("key", session=FakeSession(FakeResponse({"data": []})))
    assert client.get_flight_status("ZZ1", "2026-03-01") is None


def test_flight_status_is_cached():
    session = FakeSession(FakeResponse(FLIGHTS_PAYLOAD))
    client = AviationstackClient("key", session=session)

    client.get_flight_status("AA100", "2026-03-01")
    client.get_flight_status("AA100", "2026-03-01")

    assert len(session.calls) == 1


def test_error_body_with_http_200_raises_and_is_not_cached():
    session = FakeSession(FakeResponse({"error": {"code": "usage_limit_reached", "message": "Usage limit reached"}}))
    client = AviationstackClient("key", session=session)

    with pytest.raises(AviationstackError, match="Usage limit reached"):
        client.get_flight_status("AA100", "2026-03-01")
    with pytest.raises(AviationstackError):
        client.get_flight_status("AA100", "2026-03-01")
    assert len(session.calls) == 2


def test_http_and_network_errors_map_to_provider_error():
    with pytest.raises(AviationstackError, match="503"):
        AviationstackClient("key", session=FakeSession(FakeResponse(status_code=503))).get_airport("JFK")

    failing = FakeSession(requests.exceptions.ConnectTimeout("timed out"))
    with pytest.raises(AviationstackError):
        AviationstackClient("key", session=failing).get_airport("JFK")

    garbage = FakeSession(FakeResponse(invalid_json=True))
    with pytest.raises(AviationstackError, match="invalid JSON"):
        AviationstackClient("key", session=garbage).get_airport("JFK")


def test_airport_lookup():
    payload = {"data": [{"iata_code": "JFK", "airport_name": "John F Kennedy International",
                         "latitude": "40.64", "longitude": "-73.78", "country_name": "United States"}]}
    client = AviationstackClient("key", session=FakeSession(FakeResponse(payload)))

    airport = client.get_airport("jfk")

    assert airport.name == "John F Kennedy International"
    assert airport.has_coordinates()
    assert airport.latitude == 40.64


# ---------------------------------------------------------------------------
# WeatherAPI
# ---------------------------------------------------------------------------

def test_forecast_queries_by_coordinates_or_code():
    session = FakeSession(FakeResponse({"forecast": {"forecastday": []}}))
    client = WeatherAPIClient("key", session=session)

    client.get_airport_forecast("JFK", AirportInfo(iata="JFK", latitude=40.64, longitude=-73.78))
    client.get_airport_forecast("lhr")

    assert session.calls[0]["params"]["q"] == "40.64,-73.78"
    assert session.calls[1]["params"]["q"] == "iata:LHR"
    assert session.calls[0]["params"]["days"] == 2
    assert session.calls[0]["params"]["alerts"] == "yes"


def test_forecast_parses_hours():
    payload = {
        "current": {"last_updated_epoch": 1772366400, "wind_kph": 11},
        "forecast": {"forecastday": [{"hour": [
            {"time_epoch": 1772366400, "wind_kph": 20, "gust_kph": 30, "vis_km": 10,
             "precip_mm": 0, "condition": {"text": "Partly cloudy"}},
            {"time_epoch": 1772370000, "wind_kph": 25, "gust_kph": 35, "vis_km": 9,
             "precip_mm": 0.1, "condition": {"text": "Light rain"}},
        ]}]},
    }
    forecast = WeatherAPIClient("key", session=FakeSession(FakeResponse(payload))).get_airport_forecast("JFK")

    assert forecast.airport_code == "JFK"
    assert len(forecast.hours) == 2
    assert forecast.hours[1].condition_text == "Light rain"
    assert forecast.current_hour is not None


# ---------------------------------------------------------------------------
# Newsdata
# ---------------------------------------------------------------------------

def test_news_search():
    payload = {"status": "success", "results": [
        {"title": "Pilots strike", "link": "https://n/1", "pubDate": "2026-03-01 08:00:00", "source_id": "wire"},
        {"title": "", "link": "https://n/2"},
    ]}
    session = FakeSession(FakeResponse(payload))

    headlines = NewsdataClient("key", session=session).search("AA strike")

    assert [h.title for h in headlines] == ["Pilots strike"]
    assert headlines[0].source == "wire"
    assert session.calls[0]["params"] == {"apikey": "key", "q": "AA strike", "language": "en"}


def test_news_error_status():
    payload = {"status": "error", "results": {"message": "API key invalid", "code": "Unauthorized"}}
    with pytest.raises(NewsdataError, match="API key invalid"):
        NewsdataClient("key", session=FakeSession(FakeResponse(payload))).search("x")


# ---------------------------------------------------------------------------
# MyTSA
# ---------------------------------------------------------------------------

def test_wait_times_cached_only_when_non_empty():
    empty = FakeSession(FakeResponse({"WaitTimes": []}))
    client = TSAClient(session=empty)
    assert client.get_wait_times("SFO") == []
    assert client.get_wait_times("SFO") == []
    assert len(empty.calls) == 2

    series = {"WaitTimes": [{"Created_Datetime": "3/1/2026 10:00:00 AM", "WaitTime": 12}]}
    full = FakeSession(FakeResponse(series))
    client = TSAClient(session=full)
    assert len(client.get_wait_times("sfo")) == 1
    assert len(client.get_wait_times("SFO")) == 1
    assert len(full.calls) == 1
    assert full.calls[0]["params"] == {"ap": "SFO", "output": "json"}


def test_wait_times_http_error():
    with pytest.raises(TSAError):
        TSAClient(session=FakeSession(FakeResponse(status_code=500))).get_wait_times("SFO")


# ---------------------------------------------------------------------------
# TTL cache
# ---------------------------------------------------------------------------

def test_ttl_cache_expiry():
    current = [datetime(2026, 3, 1, 12, 0)]
    cache = TTLCache(default_ttl=60, clock=lambda: current[0])

    cache.set("k", "v")
    assert cache.get("k") == "v"
    assert "k" in cache

    current[0] += timedelta(seconds=61)
    assert cache.get("k") is None
    assert "k" not in cache
    assert len(cache) == 0


def test_ttl_cache_zero_ttl_disables():
    cache = TTLCache(default_ttl=0)
    cache.set("k", "v")
    assert cache.get("k", "missing") == "missing"

    cache.set("k", "v", ttl=30)
    assert cache.get("k") == "v"
    cache.clear()
    assert len(cache) == 0


def test_ttl_cache_sweeps_expired_keys_on_write():
    current = [datetime(2026, 3, 1, 12, 0)]
    cache = TTLCache(default_ttl=60, clock=lambda: current[0])

    for i in range(5):
        cache.set(f"query {i}", i)
    cache.set("long lived", "x", ttl=3600)
    assert len(cache) == 6

    current[0] += timedelta(seconds=120)
    cache.set("fresh", "y")

    assert len(cache) == 2, "Expired keys must go even if never read again"
    assert cache.get("long lived") == "x"
    assert cache.get("fresh") == "y"
