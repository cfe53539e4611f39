"""
API v1 Endpoints
- /health
- /risk-brief
- /flight-status
- /checkpoint-wait/{iata}
"""

import asyncio
from datetime import datetime, timezone
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from flightrisk.core.config import Settings, get_settings
from flightrisk.models.flight import format_flight_summary
from flightrisk.models.request import PassengerType, RiskBriefRequest
from flightrisk.services.aviationstack import AviationstackError
from flightrisk.services.risk_brief import RiskBriefService, get_risk_brief_service
from flightrisk.services.scorers import score_checkpoint

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["Flight Risk"])


@router.get("/health", summary="Health check endpoint")
async def health_check(
    settings: Settings = Depends(get_settings),
    service: RiskBriefService = Depends(get_risk_brief_service)
) -> Dict[str, Any]:
    """
    Report which providers are configured

    Unconfigured providers do not make the service unhealthy: their risk
    components fall back to documented default scores.
    """
    providers = {
        "aviationstack": "configured" if service.flights is not None else "not_configured",
        "weatherapi": "configured" if service.weather is not None else "not_configured",
        "newsdata": "configured" if service.news is not None else "not_configured",
        "mytsa": "configured" if service.checkpoint.telemetry is not None else "not_configured",
        "gemini": "configured" if settings.has_llm() else "not_configured",
    }
    degraded = any(value == "not_configured" for value in providers.values())

    return {
        "status": "degraded" if degraded else "healthy",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "services": providers
    }


@router.post("/risk-brief", summary="Compute the risk brief for one flight")
async def create_risk_brief(
    request: RiskBriefRequest,
    service: RiskBriefService = Depends(get_risk_brief_service)
) -> Dict[str, Any]:
    """
    Fuse flight operations, weather at both ends, checkpoint wait and
    disruption news into one risk score, tier and action list.

    A missing flight or date is answered with 400 (see the app exception
    handlers); a provider outage only lowers the quality of the evidence.
    """
    brief = await service.compute_risk_brief(request)
    return brief.to_wire()


@router.get("/flight-status", summary="Get real-time flight status")
async def get_flight_status(
    flight_iata: str = Query(..., description="Flight IATA code, e.g. AA100"),
    date: str = Query(..., description="Departure date YYYY-MM-DD"),
    service: RiskBriefService = Depends(get_risk_brief_service)
) -> Dict[str, Any]:
    """Query Aviationstack for one flight"""
    if service.flights is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Flight status provider not configured (set AVIATIONSTACK_KEY)"
        )

    flight_iata = flight_iata.strip().upper()
    try:
        logger.info(f"Querying flight status: {flight_iata} on {date}")
        snapshot = await asyncio.to_thread(service.flights.get_flight_status, flight_iata, date)
    except AviationstackError as e:
        logger.error(f"Aviationstack error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Flight status provider unavailable: {str(e)}"
        )

    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Flight {flight_iata} not found for date {date}"
        )

    return {
        "flight": snapshot.model_dump(mode="json"),
        "summary": format_flight_summary(snapshot),
        "delay_minutes": round(snapshot.delay_minutes())
    }


@router.get("/checkpoint-wait/{iata}", summary="Resolve checkpoint wait evidence for an airport")
async def get_checkpoint_wait(
    iata: str,
    lead_minutes: Optional[int] = Query(None, ge=0, le=600, description="Minutes between checkpoint arrival and departure"),
    pax_type: PassengerType = Query("domestic"),
    settings: Settings = Depends(get_settings),
    service: RiskBriefService = Depends(get_risk_brief_service)
) -> Dict[str, Any]:
    """
    Run the checkpoint resolver on its own and score the result

    The `source` field says which evidence was used: primary telemetry, the
    news fallback, or nothing.
    """
    code = iata.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="iata must be a 3-letter airport code"
        )

    lead = lead_minutes if lead_minutes is not None else settings.default_lead_minutes(pax_type)
    result = await service.checkpoint.resolve(code)
    scored = score_checkpoint(result, lead)

    return {
        "result": result.model_dump(mode="json"),
        "score": scored.score,
        "explanation": scored.explanation,
        "lead_minutes": lead
    }
