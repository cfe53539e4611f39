"""
Aviationstack Client - flight status and airport lookup
"""

import logging
from typing import Any, Dict, Optional

from flightrisk.models.flight import (
    AirportInfo,
    FlightOperationsSnapshot,
    parse_aviationstack_airport,
    parse_aviationstack_flights
)
from flightrisk.services.providers import BaseProviderClient, ProviderError

logger = logging.getLogger(__name__)


class AviationstackError(ProviderError):
    """Custom exception for Aviationstack API errors"""
    pass


class AviationstackClient(BaseProviderClient):
    """
    Client for the Aviationstack REST API

    Flight status is cached briefly (it moves); airport records for an hour.
    """

    BASE_URL = "http://api.aviationstack.com/v1"
    PROVIDER_NAME = "aviationstack"
    error_class = AviationstackError

    def __init__(
        self,
        access_key: str,
        timeout: float = 15,
        flight_cache_ttl: float = 30,
        airport_cache_ttl: float = 3600,
        session: Optional[Any] = None
    ):
        super().__init__(timeout=timeout, cache_ttl=flight_cache_ttl, session=session)
        self.access_key = access_key
        self.airport_cache_ttl = airport_cache_ttl

    def _check_payload(self, payload: Any) -> None:
        # Quota and auth problems come back as HTTP 200 with an error body
        if isinstance(payload, dict) and payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise AviationstackError(f"Aviationstack error: {message}")

    def _query(self, endpoint: str, params: Dict[str, Any], ttl: Optional[float] = None) -> Any:
        return self._cached_request(endpoint, {"access_key": self.access_key, **params}, ttl)

    def get_flight_status(self, flight_iata: str, date: str) -> Optional[FlightOperationsSnapshot]:
        """
        Get status of a specific flight

        Args:
            flight_iata: Flight IATA code (e.g. 'AA100')
            date: Departure date in YYYY-MM-DD format

        Returns:
            FlightOperationsSnapshot, or None if no flight matched

        Raises:
            AviationstackError: If the request fails
        """
        logger.info(f"Querying flight status: {flight_iata} on {date}")
        raw = self._query("flights", {"flight_iata": flight_iata, "flight_date": date})
        snapshots = parse_aviationstack_flights(raw)
        if not snapshots:
            logger.info(f"No flight found for {flight_iata} on {date}")
            return None

        for snapshot in snapshots:
            if snapshot.flight_date == date:
                return snapshot
        return snapshots[0]

    def get_airport(self, iata: str) -> Optional[AirportInfo]:
        """
        Look up an airport by IATA code

        Returns:
            AirportInfo, or None if unknown
        """
        raw = self._query("airports", {"iata_code": iata.upper()}, ttl=self.airport_cache_ttl)
        return parse_aviationstack_airport(raw, iata)

