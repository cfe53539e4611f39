"""
Risk Brief Service - fetches the five signals for a flight and fuses them

The operations fetch runs first: it resolves any airport code the caller left
out and names the airline for the news query. Each airport is then looked up
once, and that record is shared by its forecast and by the checkpoint
fallback. The two forecasts, the checkpoint resolution and the news search
run concurrently. A fetch that fails is logged and treated as absent; its
scorer supplies the fallback.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flightrisk.core.config import Settings, get_settings
from flightrisk.models.flight import AirportInfo, FlightOperationsSnapshot
from flightrisk.models.request import RiskBriefRequest
from flightrisk.models.risk import RiskBrief
from flightrisk.models.signals import (
    AirportWeatherForecast,
    CheckpointWaitResult,
    NewsHeadline,
    UnavailableCheckpointResult,
)
from flightrisk.services.aggregator import MissingRequiredFieldError, RiskAggregator
from flightrisk.services.aviationstack import AviationstackClient
from flightrisk.services.checkpoint import CheckpointWaitResolver
from flightrisk.services.intelligence import get_security_extractor
from flightrisk.services.newsdata import NewsdataClient
from flightrisk.services.recommendations import recommend_actions
from flightrisk.services.scorers import (
    score_checkpoint,
    score_news,
    score_operations,
    score_weather,
)
from flightrisk.services.tsa import TSAClient
from flightrisk.services.weatherapi import WeatherAPIClient

logger = logging.getLogger(__name__)


def build_news_query(airline: Optional[str], dep_iata: Optional[str], arr_iata: Optional[str]) -> str:
    """Airline/route disruption query"""
    terms = " ".join(t for t in (airline, dep_iata, arr_iata) if t)
    return f"{terms} strike OR outage OR ATC OR weather".strip()


def data_timestamps(
    as_of: datetime,
    flights: bool = False,
    weather: bool = False,
    telemetry: bool = False,
    news: bool = False
) -> Dict[str, str]:
    """ISO-8601 fetch time for each provider that contributed data to the brief"""
    contributed = {"aviationstack": flights, "weatherapi": weather, "myTSA": telemetry, "newsdata": news}
    stamp = as_of.isoformat()
    return {provider: stamp for provider, used in contributed.items() if used}


class RiskBriefService:
    """
    Orchestrates one risk brief

    Any client may be None (key not configured); its component then uses the
    scorer's absent-data fallback.
    """

    def __init__(
        self,
        flights: Optional[Any] = None,
        weather: Optional[Any] = None,
        news: Optional[Any] = None,
        checkpoint: Optional[CheckpointWaitResolver] = None,
        aggregator: Optional[RiskAggregator] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.flights = flights
        self.weather = weather
        self.news = news
        self.checkpoint = checkpoint or CheckpointWaitResolver(
            news=news,
            airports=flights,
            timeout=self.settings.tsa_timeout_seconds
        )
        self.aggregator = aggregator or RiskAggregator()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RiskBriefService":
        """Wire the provider clients whose keys are configured"""
        settings = settings or get_settings()

        flights = None
        if settings.aviationstack_key:
            flights = AviationstackClient(
                settings.aviationstack_key,
                timeout=settings.api_timeout,
                flight_cache_ttl=settings.flight_cache_ttl,
                airport_cache_ttl=settings.airport_cache_ttl
            )
        else:
            logger.warning("AVIATIONSTACK_KEY not set - operations and airport lookups disabled")

        weather = None
        if settings.weatherapi_key:
            weather = WeatherAPIClient(
                settings.weatherapi_key,
                timeout=settings.api_timeout,
                cache_ttl=settings.weather_cache_ttl
            )
        else:
            logger.warning("WEATHERAPI_KEY not set - weather components will use fallback scores")

        news = None
        if settings.newsdata_key:
            news = NewsdataClient(
                settings.newsdata_key,
                timeout=settings.api_timeout,
                cache_ttl=settings.news_cache_ttl
            )
        else:
            logger.warning("NEWSDATA_KEY not set - news component and checkpoint fallback disabled")

        checkpoint = CheckpointWaitResolver(
            telemetry=TSAClient(timeout=settings.tsa_timeout_seconds, cache_ttl=settings.tsa_cache_ttl),
            news=news,
            airports=flights,
            extractor=get_security_extractor(),
            timeout=settings.tsa_timeout_seconds,
            fallback_cache_ttl=settings.checkpoint_fallback_cache_ttl
        )

        return cls(flights=flights, weather=weather, news=news, checkpoint=checkpoint, settings=settings)

    # ------------------------------------------------------------------
    # Fetches (each returns None / [] instead of raising)
    # ------------------------------------------------------------------

    async def get_flight_status(self, flight_iata: str, date: str) -> Optional[FlightOperationsSnapshot]:
        """Operations snapshot, or None if unavailable or not found"""
        if self.flights is None:
            return None
        try:
            return await asyncio.to_thread(self.flights.get_flight_status, flight_iata, date)
        except Exception as e:
            logger.warning(f"Flight status fetch failed for {flight_iata} on {date}: {str(e)}")
            return None

    async def _lookup_airport(self, airport_code: Optional[str]) -> Optional[AirportInfo]:
        if not airport_code or self.flights is None:
            return None
        try:
            return await asyncio.to_thread(self.flights.get_airport, airport_code)
        except Exception as e:
            logger.info(f"Airport lookup failed for {airport_code}, continuing by code: {str(e)}")
            return None

    async def _fetch_forecast(
        self,
        airport_code: Optional[str],
        airport: Optional[AirportInfo] = None
    ) -> Optional[AirportWeatherForecast]:
        if not airport_code or self.weather is None:
            return None
        try:
            return await asyncio.to_thread(self.weather.get_airport_forecast, airport_code, airport)
        except Exception as e:
            logger.warning(f"Forecast fetch failed for {airport_code}: {str(e)}")
            return None

    async def _resolve_checkpoint(
        self,
        airport_code: Optional[str],
        airport: Optional[AirportInfo] = None
    ) -> CheckpointWaitResult:
        if not airport_code:
            return UnavailableCheckpointResult()
        try:
            # The resolver looks the name up itself only when this service has no airport source
            return await self.checkpoint.resolve(
                airport_code,
                airport_name=airport.name if airport is not None else None,
                lookup_airport=self.flights is None
            )
        except Exception as e:
            logger.error(f"Checkpoint resolution failed for {airport_code}: {str(e)}")
            return UnavailableCheckpointResult(airport_code=airport_code)

    async def _fetch_news(self, query: str) -> List[NewsHeadline]:
        if self.news is None:
            return []
        try:
            return list(await asyncio.to_thread(self.news.search, query))
        except Exception as e:
            logger.warning(f"News search failed for '{query}': {str(e)}")
            return []

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def compute_risk_brief(
        self,
        request: RiskBriefRequest,
        now: Optional[datetime] = None
    ) -> RiskBrief:
        """
        Compute the risk brief for one flight

        Args:
            request: Flight, date and passenger context
            now: Reference time for the weather window and the data timestamps
                (defaults to current UTC)

        Returns:
            RiskBrief

        Raises:
            MissingRequiredFieldError: If the flight or date is missing
        """
        if not request.flight_iata:
            raise MissingRequiredFieldError("flightIata")
        if not request.date:
            raise MissingRequiredFieldError("date")

        flight_iata = request.flight_iata
        date = request.date
        lead_minutes = request.target_lead_minutes
        if lead_minutes is None:
            lead_minutes = self.settings.default_lead_minutes(request.pax_type)

        logger.info(f"Computing risk brief for {flight_iata} on {date} (lead {lead_minutes}m)")

        as_of = now or datetime.now(timezone.utc)
        snapshot = await self.get_flight_status(flight_iata, date)

        dep_iata = request.dep_iata or (snapshot.departure.iata if snapshot else None)
        arr_iata = request.arr_iata or (snapshot.arrival.iata if snapshot else None)
        airline = (snapshot.airline_name or snapshot.airline_iata) if snapshot else None

        # Arrival airport only feeds the forecast
        dep_airport, arr_airport = await asyncio.gather(
            self._lookup_airport(dep_iata),
            self._lookup_airport(arr_iata if self.weather is not None else None)
        )

        dep_forecast, arr_forecast, checkpoint, headlines = await asyncio.gather(
            self._fetch_forecast(dep_iata, dep_airport),
            self._fetch_forecast(arr_iata, arr_airport),
            self._resolve_checkpoint(dep_iata, dep_airport),
            self._fetch_news(build_news_query(airline, dep_iata, arr_iata))
        )

        ops = score_operations(snapshot)
        wx_dep = score_weather(dep_forecast, now=as_of, label="wx dep")
        wx_arr = score_weather(arr_forecast, now=as_of, label="wx arr")
        tsa = score_checkpoint(checkpoint, lead_minutes)
        news = score_news(headlines)

        components = [
            self.aggregator.component("ops", *ops),
            self.aggregator.component("weather_dep", *wx_dep),
            self.aggregator.component("weather_arr", *wx_arr),
            self.aggregator.component("tsa", *tsa),
            self.aggregator.component("news", *news),
        ]
        tier = self.aggregator.tier_for(self.aggregator.aggregate_score(components))

        return self.aggregator.assemble(
            flight_iata=flight_iata,
            date=date,
            components=components,
            recommended_actions=recommend_actions(tier, components),
            dep_iata=dep_iata,
            arr_iata=arr_iata,
            checkpoint_source=checkpoint.source,
            data_timestamps=data_timestamps(
                as_of,
                flights=snapshot is not None,
                weather=dep_forecast is not None or arr_forecast is not None,
                telemetry=checkpoint.source == "primary",
                news=bool(headlines) or checkpoint.source == "fallback"
            )
        )


_service: Optional[RiskBriefService] = None


def get_risk_brief_service() -> RiskBriefService:
    """Get singleton RiskBriefService wired from settings"""
    global _service
    if _service is None:
        _service = RiskBriefService.from_settings()
    return _service


async def compute_risk_brief(
    flight_iata: Optional[str],
    date: Optional[str],
    dep_iata: Optional[str] = None,
    arr_iata: Optional[str] = None,
    pax_type: str = "domestic",
    target_lead_minutes: Optional[int] = None,
    service: Optional[RiskBriefService] = None
) -> RiskBrief:
    """
    Convenience entry point

    Example:
        brief = await compute_risk_brief("AA100", "2026-03-01", pax_type="international")
        print(brief.tier, brief.top_signals)
    """
    if not flight_iata:
        raise MissingRequiredFieldError("flightIata")
    if not date:
        raise MissingRequiredFieldError("date")

    request = RiskBriefRequest(
        flight_iata=flight_iata,
        date=date,
        dep_iata=dep_iata,
        arr_iata=arr_iata,
        pax_type=pax_type,
        target_lead_minutes=target_lead_minutes
    )
    return await (service or get_risk_brief_service()).compute_risk_brief(request)
