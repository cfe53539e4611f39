"""
WeatherAPI Client - hourly airport forecasts
"""

import logging
from typing import Any, Optional

from flightrisk.models.flight import AirportInfo
from flightrisk.models.signals import AirportWeatherForecast, parse_weather_forecast
from flightrisk.services.providers import BaseProviderClient, ProviderError

logger = logging.getLogger(__name__)


class WeatherAPIError(ProviderError):
    """Custom exception for WeatherAPI errors"""
    pass


class WeatherAPIClient(BaseProviderClient):
    """Client for WeatherAPI.com `forecast.json` (2 days, hourly, alerts on)"""

    BASE_URL = "https://api.weatherapi.com/v1"
    PROVIDER_NAME = "weatherapi"
    error_class = WeatherAPIError

    def __init__(
        self,
        api_key: str,
        timeout: float = 15,
        cache_ttl: float = 600,
        session: Optional[Any] = None
    ):
        super().__init__(timeout=timeout, cache_ttl=cache_ttl, session=session)
        self.api_key = api_key

    def get_forecast(self, query: str, airport_code: Optional[str] = None) -> Optional[AirportWeatherForecast]:
        """
        Fetch and parse a forecast

        Args:
            query: WeatherAPI location query ("lat,lon" or "iata:JFK")
            airport_code: Airport the forecast is for

        Raises:
            WeatherAPIError: If the request fails
        """
        raw = self._cached_request(
            "forecast.json",
            {"key": self.api_key, "q": query, "days": 2, "aqi": "no", "alerts": "yes"}
        )
        return parse_weather_forecast(raw, airport_code)

    def _check_payload(self, payload: Any) -> None:
        if isinstance(payload, dict) and payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise WeatherAPIError(f"WeatherAPI error: {message}")

    def get_airport_forecast(
        self,
        airport_code: str,
        airport: Optional[AirportInfo] = None
    ) -> Optional[AirportWeatherForecast]:
        """
        Forecast for an airport, by coordinates when known, else by IATA code
        """
        if airport is not None and airport.has_coordinates():
            query = f"{airport.latitude},{airport.longitude}"
        else:
            query = f"iata:{airport_code.upper()}"

        logger.info(f"Fetching forecast for {airport_code} ({query})")
        return self.get_forecast(query, airport_code)
