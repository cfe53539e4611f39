"""
Risk models - components and the aggregate risk brief

RiskBrief field aliases (flightIata, depIata, riskScore, ...) are the wire
contract consumed by clients and must not change.
"""

from pydantic import BaseModel, Field
from typing import Dict, Optional, List, Literal
from enum import Enum

from flightrisk.models.signals import CheckpointSource


class RiskTier(str, Enum):
    """Discrete risk level shown to the traveler"""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


ComponentKey = Literal["ops", "weather_dep", "weather_arr", "tsa", "news"]


class RiskComponent(BaseModel):
    """One weighted risk dimension"""
    key: ComponentKey
    score: float = Field(..., ge=0.0, le=1.0, description="Component risk in [0, 1]")
    explanation: str = Field(..., description="Short human-readable reason with embedded values")
    weight: float = Field(..., gt=0.0, lt=1.0, description="Fixed component weight")

    def contribution(self) -> float:
        """Weighted contribution to the aggregate score"""
        return self.score * self.weight

    class Config:
        frozen = True


class RiskBrief(BaseModel):
    """
    Aggregate risk judgment for one flight

    Built only by RiskAggregator.assemble(); immutable once built.
    """

    flight_iata: str = Field(..., alias="flightIata")
    date: str
    dep_iata: Optional[str] = Field(None, alias="depIata")
    arr_iata: Optional[str] = Field(None, alias="arrIata")
    risk_score: float = Field(..., ge=0.0, le=1.0, alias="riskScore")
    tier: RiskTier
    components: List[RiskComponent]
    top_signals: List[str] = Field(default_factory=list, alias="topSignals")
    recommended_actions: List[str] = Field(default_factory=list, alias="recommendedActions")
    checkpoint_source: Optional[CheckpointSource] = Field(
        None,
        alias="checkpointSource",
        description="Which evidence backs the tsa component: primary, fallback or unavailable"
    )
    data_timestamps: Dict[str, str] = Field(
        default_factory=dict,
        alias="dataTimestamps",
        description="ISO-8601 fetch time per provider that contributed data (aviationstack, weatherapi, myTSA, newsdata)"
    )

    def component(self, key: str) -> Optional[RiskComponent]:
        """Look up a component by key"""
        for component in self.components:
            if component.key == key:
                return component
        return None

    def to_wire(self) -> dict:
        """Serialize with the public camelCase field names"""
        return self.model_dump(mode="json", by_alias=True)

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "flightIata": "AA100",
                "date": "2026-03-01",
                "depIata": "JFK",
                "arrIata": "LHR",
                "riskScore": 0.4375,
                "tier": "yellow",
                "components": [
                    {"key": "ops", "score": 0.15, "explanation": "ops: scheduled (delay≈30m)", "weight": 0.25}
                ],
                "topSignals": ["news: 2 articles [STRIKE] (×0.25)"],
                "recommendedActions": ["⚠️ MODERATE RISK: Extra precautions recommended."],
                "checkpointSource": "primary",
                "dataTimestamps": {
                    "aviationstack": "2026-03-01T12:00:00+00:00",
                    "myTSA": "2026-03-01T12:00:00+00:00"
                }
            }
        }
