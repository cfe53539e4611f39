"""
Flight data models - Pydantic schemas for flight operations responses
Handles tolerant parsing of Aviationstack flight and airport payloads
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Union
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

# Formats seen in provider payloads that fromisoformat() rejects
_FALLBACK_DATETIME_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S %z",
)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a provider timestamp into a timezone-aware UTC datetime

    Accepts ISO strings (with or without 'Z'), the US-style strings used by
    the checkpoint telemetry feed, epoch seconds and datetime objects.
    Naive values are treated as UTC.

    Returns:
        datetime in UTC, or None if the value cannot be parsed
    """
    if value is None or value == "":
        return None

    parsed: Optional[datetime] = None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            for fmt in _FALLBACK_DATETIME_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class FlightEndpoint(BaseModel):
    """One end (departure or arrival) of a flight"""
    iata: Optional[str] = Field(None, description="3-letter IATA airport code")
    airport: Optional[str] = Field(None, description="Airport name")
    scheduled: Optional[str] = Field(None, description="Scheduled time (ISO format)")
    estimated: Optional[str] = Field(None, description="Estimated time (ISO format)")
    actual: Optional[str] = Field(None, description="Actual time (ISO format)")
    terminal: Optional[str] = None
    gate: Optional[str] = None

    @field_validator('scheduled', 'estimated', 'actual', mode='before')
    @classmethod
    def validate_datetime_format(cls, v):
        """Drop timestamps that cannot be parsed instead of failing the record"""
        if v is None:
            return v
        if isinstance(v, str) and parse_timestamp(v) is not None:
            return v
        return None

    @field_validator('iata', mode='before')
    @classmethod
    def normalize_iata(cls, v):
        """Upper-case airport codes; blank codes become None"""
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip().upper()

    def get_effective_time(self) -> Optional[str]:
        """Best estimate of the real time (estimated > actual)"""
        return self.estimated or self.actual

    def delay_minutes(self) -> float:
        """Absolute deviation from schedule in minutes; 0 when either side is missing"""
        scheduled = parse_timestamp(self.scheduled)
        effective = parse_timestamp(self.get_effective_time())
        if scheduled is None or effective is None:
            return 0.0
        return abs((effective - scheduled).total_seconds()) / 60.0


class FlightOperationsSnapshot(BaseModel):
    """
    Point-in-time view of one flight

    Flattened from the Aviationstack `flights` response. Consumed read-only by
    the operations scorer and for the departure/arrival codes that drive the
    weather and checkpoint lookups.
    """

    flight_iata: Optional[str] = Field(None, description="Flight IATA code, e.g. AA100")
    flight_date: Optional[str] = Field(None, description="Departure date (YYYY-MM-DD)")
    status: str = Field(default="", description="scheduled, active, landed, cancelled, diverted, ...")
    airline_name: Optional[str] = None
    airline_iata: Optional[str] = None
    departure: FlightEndpoint = Field(default_factory=FlightEndpoint)
    arrival: FlightEndpoint = Field(default_factory=FlightEndpoint)

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v):
        if v is None:
            return ""
        return str(v).strip().lower()

    def delay_minutes(self) -> float:
        """Largest schedule deviation across departure and arrival"""
        return max(self.departure.delay_minutes(), self.arrival.delay_minutes())

    class Config:
        json_schema_extra = {
            "example": {
                "flight_iata": "AA100",
                "flight_date": "2026-03-01",
                "status": "scheduled",
                "airline_name": "American Airlines",
                "airline_iata": "AA",
                "departure": {
                    "iata": "JFK",
                    "scheduled": "2026-03-01T18:00:00+00:00",
                    "estimated": "2026-03-01T18:30:00+00:00"
                },
                "arrival": {
                    "iata": "LHR",
                    "scheduled": "2026-03-02T06:10:00+00:00"
                }
            }
        }


class AirportInfo(BaseModel):
    """Airport geocode result"""
    iata: str
    name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator('latitude', 'longitude', mode='before')
    @classmethod
    def coerce_coordinate(cls, v):
        try:
            return float(v) if v is not None and v != "" else None
        except (TypeError, ValueError):
            return None

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


def _endpoint_from_raw(raw: Any) -> FlightEndpoint:
    if not isinstance(raw, dict):
        return FlightEndpoint()
    return FlightEndpoint(
        iata=raw.get('iata'),
        airport=raw.get('airport'),
        scheduled=raw.get('scheduled'),
        estimated=raw.get('estimated'),
        actual=raw.get('actual'),
        terminal=raw.get('terminal'),
        gate=raw.get('gate')
    )


def parse_flight_snapshot(flight: Dict[str, Any]) -> FlightOperationsSnapshot:
    """
    Build a snapshot from one Aviationstack flight record

    Also accepts the bare `{status, departure, arrival}` shape.
    """
    airline = flight.get('airline') or {}
    flight_info = flight.get('flight') or {}

    return FlightOperationsSnapshot(
        flight_iata=flight_info.get('iata') if isinstance(flight_info, dict) else None,
        flight_date=flight.get('flight_date'),
        status=flight.get('flight_status', flight.get('status')),
        airline_name=airline.get('name') if isinstance(airline, dict) else None,
        airline_iata=airline.get('iata') if isinstance(airline, dict) else None,
        departure=_endpoint_from_raw(flight.get('departure')),
        arrival=_endpoint_from_raw(flight.get('arrival'))
    )


def parse_aviationstack_flights(raw_json: Union[Dict[str, Any], List[Any], None]) -> List[FlightOperationsSnapshot]:
    """
    Parse an Aviationstack `flights` response into snapshots

    Handles the `{"data": [...]}` envelope, a bare list, and a single flight
    object. Malformed entries are skipped; a malformed envelope yields [].

    Args:
        raw_json: Raw JSON response

    Returns:
        List of FlightOperationsSnapshot, possibly empty
    """
    if raw_json is None:
        return []

    if isinstance(raw_json, dict) and 'data' in raw_json:
        flights_data = raw_json.get('data') or []
    elif isinstance(raw_json, dict):
        flights_data = [raw_json]
    else:
        flights_data = raw_json

    if not isinstance(flights_data, list):
        return []

    snapshots = []
    for flight in flights_data:
        if not isinstance(flight, dict):
            continue
        try:
            snapshots.append(parse_flight_snapshot(flight))
        except Exception as e:
            logger.warning(f"Skipping malformed flight record: {str(e)}")
    return snapshots


def parse_aviationstack_airport(raw_json: Any, iata: str) -> Optional[AirportInfo]:
    """
    Parse an Aviationstack `airports` response into an AirportInfo

    Returns:
        AirportInfo for the first match, or None
    """
    data = raw_json.get('data') if isinstance(raw_json, dict) else None
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None

    airport = data[0]
    return AirportInfo(
        iata=airport.get('iata_code') or iata.upper(),
        name=airport.get('airport_name'),
        city=airport.get('city_iata_code') or airport.get('city'),
        country=airport.get('country_name'),
        latitude=airport.get('latitude'),
        longitude=airport.get('longitude')
    )


def format_flight_summary(snapshot: FlightOperationsSnapshot) -> str:
    """
    Generate a concise, human-readable flight summary

    Args:
        snapshot: FlightOperationsSnapshot

    Returns:
        Formatted string with key flight information
    """
    return (
        f"{snapshot.flight_iata or 'N/A'}: "
        f"{snapshot.departure.iata or 'N/A'} → {snapshot.arrival.iata or 'N/A'} | "
        f"Dep: {snapshot.departure.scheduled or 'N/A'} | "
        f"Arr: {snapshot.arrival.scheduled or 'N/A'} | "
        f"Status: {snapshot.status or 'unknown'} | "
        f"Delay: {round(snapshot.delay_minutes())} min"
    )
