"""
Request models - Pydantic schemas for user input validation
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal
from datetime import datetime


PassengerType = Literal["domestic", "international"]


class RiskBriefRequest(BaseModel):
    """
    Risk brief request for one scheduled flight

    flight_iata and date are required by the engine; they are optional here so
    a missing value reaches the engine and is reported as a missing required
    field rather than a generic validation error.
    """

    flight_iata: Optional[str] = Field(
        None,
        alias="flightIata",
        description="Flight IATA code (e.g., AA100, BA117)",
        max_length=10
    )
    date: Optional[str] = Field(
        None,
        description="Local departure date in format YYYY-MM-DD"
    )
    dep_iata: Optional[str] = Field(
        None,
        alias="depIata",
        description="Departure airport (resolved from flight data if not provided)"
    )
    arr_iata: Optional[str] = Field(
        None,
        alias="arrIata",
        description="Arrival airport (resolved from flight data if not provided)"
    )
    pax_type: PassengerType = Field(
        default="domestic",
        alias="paxType",
        description="Passenger type, drives the default checkpoint lead time"
    )
    target_lead_minutes: Optional[int] = Field(
        None,
        alias="targetArrivalLeadMins",
        ge=0,
        le=600,
        description="Minutes between checkpoint arrival and departure"
    )

    @field_validator('flight_iata', 'dep_iata', 'arr_iata', mode='before')
    @classmethod
    def normalize_code(cls, v):
        """Upper-case codes and strip whitespace"""
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @field_validator('date')
    @classmethod
    def validate_date(cls, v):
        """Validate departure date format"""
        if v is None or not v.strip():
            return None
        try:
            datetime.strptime(v.strip(), '%Y-%m-%d')
            return v.strip()
        except ValueError:
            raise ValueError("Invalid date format, use YYYY-MM-DD")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "flightIata": "AA100",
                "date": "2026-03-01",
                "depIata": "JFK",
                "arrIata": "LHR",
                "paxType": "international",
                "targetArrivalLeadMins": 180
            }
        }
