"""
End-to-end risk brief tests against stub providers
"""

import asyncio
import json

import pytest

from conftest import (
    NOW,
    StubFlights,
    StubNews,
    StubTelemetry,
    StubWeather,
    make_forecast,
    make_headlines,
    make_records,
    make_snapshot,
)
from flightrisk.models import AirportInfo, RiskBriefRequest, RiskTier
from flightrisk.services.aggregator import MissingRequiredFieldError
from flightrisk.services.aviationstack import AviationstackError
from flightrisk.services.checkpoint import CheckpointWaitResolver
from flightrisk.services.risk_brief import RiskBriefService, build_news_query, compute_risk_brief
from flightrisk.services.weatherapi import WeatherAPIError


def request(**overrides):
    values = {"flightIata": "AA100", "date": "2026-03-01", "targetArrivalLeadMins": 120}
    values.update(overrides)
    return RiskBriefRequest(**values)


def stormy_departure_service():
    news = StubNews(make_headlines("Pilots strike at American", "Union strike vote"))
    return RiskBriefService(
        flights=StubFlights(make_snapshot(delay_minutes=30)),
        weather=StubWeather({
            "JFK": make_forecast("JFK", wind=45, overrides={2: {"condition_text": "Thundery outbreaks possible"}}),
            "LHR": make_forecast("LHR"),
        }),
        news=news,
        checkpoint=CheckpointWaitResolver(
            telemetry=StubTelemetry(make_records([35, 40, 45, 40, 40, 40])),
            news=news
        )
    )


def run(service, req, now=NOW):
    return asyncio.run(service.compute_risk_brief(req, now=now))


def scores(brief):
    return {c.key: c.score for c in brief.components}


def test_moderate_risk_brief():
    brief = run(stormy_departure_service(), request())

    assert scores(brief) == {
        "ops": 0.15,
        "weather_dep": 0.70,
        "weather_arr": 0.05,
        "tsa": 0.50,
        "news": 0.80,
    }
    assert brief.risk_score == pytest.approx(0.4375)
    assert brief.tier is RiskTier.YELLOW
    assert brief.dep_iata == "JFK"
    assert brief.arr_iata == "LHR"
    assert brief.checkpoint_source == "primary"

    assert [s.split(":")[0] for s in brief.top_signals] == ["news", "weather_dep", "tsa"]
    assert brief.top_signals[0] == "news: news: 2 articles [STRIKE] (×0.25)"

    assert len(brief.recommended_actions) == 5
    assert brief.recommended_actions[0].startswith("⚠️ MODERATE RISK")


def test_brief_with_no_providers_uses_fallbacks():
    brief = run(RiskBriefService(), request())

    assert scores(brief) == {
        "ops": 0.25,
        "weather_dep": 0.20,
        "weather_arr": 0.20,
        "tsa": 0.15,
        "news": 0.05,
    }
    assert brief.risk_score == pytest.approx(0.17)
    assert brief.tier is RiskTier.GREEN
    assert brief.checkpoint_source == "unavailable"
    assert "flight not found" in brief.component("ops").explanation
    assert brief.dep_iata is None


def test_checkpoint_fallback_feeds_tsa_component():
    news = StubNews(make_headlines("Federal shutdown hits JFK screening", "TSA staffing stretched thin"))
    service = RiskBriefService(
        flights=StubFlights(make_snapshot()),
        news=news,
        checkpoint=CheckpointWaitResolver(telemetry=StubTelemetry([]), news=news)
    )

    brief = run(service, request())

    assert brief.checkpoint_source == "fallback"
    tsa = brief.component("tsa")
    assert tsa.score == 0.85
    assert "news fallback" in tsa.explanation
    assert "confidence=medium" in tsa.explanation
    assert "wait=severe≈90min" in tsa.explanation
    assert set(brief.data_timestamps) == {"aviationstack", "newsdata"}


def test_brief_is_deterministic():
    first = run(stormy_departure_service(), request())
    second = run(stormy_departure_service(), request())
    assert json.dumps(first.to_wire(), sort_keys=True) == json.dumps(second.to_wire(), sort_keys=True)


def test_missing_fields_are_reported_by_name():
    service = RiskBriefService()

    with pytest.raises(MissingRequiredFieldError) as exc:
        run(service, RiskBriefRequest(date="2026-03-01"))
    assert exc.value.field == "flightIata"

    with pytest.raises(MissingRequiredFieldError) as exc:
        run(service, RiskBriefRequest(flightIata="AA100"))
    assert exc.value.field == "date"


def test_caller_airports_override_flight_data():
    weather = StubWeather({"EWR": make_forecast("EWR", wind=55)})
    telemetry = StubTelemetry(make_records([10, 10]))
    service = RiskBriefService(
        flights=StubFlights(make_snapshot()),
        weather=weather,
        checkpoint=CheckpointWaitResolver(telemetry=telemetry)
    )

    brief = run(service, request(depIata="ewr"))

    assert brief.dep_iata == "EWR"
    assert brief.arr_iata == "LHR"
    assert telemetry.calls == ["EWR"]
    assert brief.component("weather_dep").score == 0.70


def test_provider_errors_degrade_to_fallbacks():
    def failing_search(query):
        raise RuntimeError("rate limited")

    service = RiskBriefService(
        flights=StubFlights(error=AviationstackError("usage limit reached")),
        weather=StubWeather(error=WeatherAPIError("503")),
        news=StubNews(failing_search)
    )

    brief = run(service, request(depIata="JFK", arrIata="LHR"))

    assert brief.component("ops").score == 0.25
    assert brief.component("weather_dep").explanation == "wx dep: no forecast data available"
    assert brief.component("weather_arr").explanation == "wx arr: no forecast data available"
    assert brief.component("news").score == 0.05
    assert brief.checkpoint_source == "unavailable"


def test_international_default_lead():
    telemetry = StubTelemetry(make_records([5, 5]))
    service = RiskBriefService(
        flights=StubFlights(make_snapshot()),
        checkpoint=CheckpointWaitResolver(telemetry=telemetry)
    )

    brief = run(service, RiskBriefRequest(flightIata="AA100", date="2026-03-01", paxType="international"))

    assert "lead=180min" in brief.component("tsa").explanation


def test_news_query_names_airline_and_route():
    news = StubNews([])
    service = RiskBriefService(flights=StubFlights(make_snapshot()), news=news)

    run(service, request())

    assert "American Airlines JFK LHR strike OR outage OR ATC OR weather" in news.queries
    assert build_news_query(None, None, None) == "strike OR outage OR ATC OR weather"


def test_convenience_entry_point():
    brief = asyncio.run(compute_risk_brief("AA100", "2026-03-01", service=stormy_departure_service()))
    assert brief.flight_iata == "AA100"
    assert len(brief.components) == 5

    with pytest.raises(MissingRequiredFieldError):
        asyncio.run(compute_risk_brief("AA100", "", service=RiskBriefService()))


def test_airport_lookup_is_shared_by_forecast_and_checkpoint():
    flights = StubFlights(
        make_snapshot(),
        airports={"JFK": AirportInfo(iata="JFK", name="John F Kennedy International")}
    )
    news = StubNews(make_headlines("JFK checkpoint news"))
    weather = StubWeather({"JFK": make_forecast("JFK"), "LHR": make_forecast("LHR")})
    service = RiskBriefService(
        flights=flights,
        weather=weather,
        news=news,
        checkpoint=CheckpointWaitResolver(telemetry=StubTelemetry([]), news=news, airports=flights)
    )

    brief = run(service, request())

    assert brief.checkpoint_source == "fallback"
    assert flights.calls.count(("airport", "JFK")) == 1
    assert flights.calls.count(("airport", "LHR")) == 1
    assert "John F Kennedy International TSA" in news.queries


def test_data_timestamps_cover_contributing_providers():
    stamp = NOW.isoformat()

    brief = run(stormy_departure_service(), request())

    assert brief.data_timestamps == {
        "aviationstack": stamp,
        "weatherapi": stamp,
        "myTSA": stamp,
        "newsdata": stamp,
    }
    assert run(RiskBriefService(), request()).data_timestamps == {}
