"""
Flight Risk Brief - Main FastAPI Application
Fuses flight operations, weather, checkpoint wait and news into one risk judgment
"""

import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Dict, Any
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

# Load .env file explicitly (before importing config)
from dotenv import load_dotenv
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from flightrisk.core.config import get_settings
from flightrisk.core.calibration import RISK_WEIGHTS, TIER_THRESHOLDS
from flightrisk.api.v1.endpoints import router as v1_router
from flightrisk.prompts import get_prompt_manager
from flightrisk.services.aggregator import MissingRequiredFieldError
from flightrisk.services.intelligence import PROMPT_CONFIG

# Initialize settings
settings = get_settings()

logging.config.dictConfig(settings.get_log_config())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Aviationstack: {'Enabled' if settings.aviationstack_key else 'Disabled'}")
    logger.info(f"WeatherAPI: {'Enabled' if settings.weatherapi_key else 'Disabled'}")
    logger.info(f"Newsdata: {'Enabled' if settings.newsdata_key else 'Disabled'}")
    logger.info(f"Google Gemini: {'Enabled' if settings.has_llm() else 'Disabled (keyword analysis only)'}")
    logger.info("=" * 60)

    yield

    logger.info(f"👋 Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    **Flight Risk Brief API**

    One actionable risk judgment for a scheduled flight.

    **Signals:**
    - **Operations**: live status and delay (Aviationstack)
    - **Weather**: hourly forecast at departure and arrival (WeatherAPI)
    - **Checkpoint wait**: MyTSA telemetry, with a news-intelligence fallback
    - **News**: strikes, outages, ATC programs on the airline and route (Newsdata)

    Each signal becomes a [0, 1] score; fixed weights fuse them into a risk
    score, a green / yellow / red tier, the top contributing signals and a
    list of recommended actions.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception Handlers
@app.exception_handler(MissingRequiredFieldError)
async def missing_field_exception_handler(request: Request, exc: MissingRequiredFieldError):
    """Caller omitted a required identifier"""
    logger.warning(f"Rejected request on {request.url.path}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "status": "error",
            "message": str(exc),
            "field": exc.field
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed messages"""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({
            "status": "error",
            "message": "Invalid request data",
            "errors": exc.errors()
        })
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "error",
            "message": "Internal server error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred"
        }
    )


app.include_router(v1_router)


@app.get("/", tags=["Root"])
async def root() -> Dict[str, Any]:
    """
    Root endpoint - API information
    """
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "docs": "/docs",
        "health": "/api/v1/health",
        "endpoints": {
            "risk_brief": "POST /api/v1/risk-brief",
            "flight_status": "GET /api/v1/flight-status",
            "checkpoint_wait": "GET /api/v1/checkpoint-wait/{iata}"
        }
    }


@app.get("/info", tags=["Root"])
async def info() -> Dict[str, Any]:
    """
    Detailed API information and configuration
    """
    ai_model = settings.default_model_name or get_prompt_manager().load_config(PROMPT_CONFIG)["model_name"]

    return {
        "application": {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "debug": settings.debug
        },
        "calibration": {
            "weights": RISK_WEIGHTS,
            "tier_thresholds": TIER_THRESHOLDS,
            "default_lead_minutes": {
                "domestic": settings.domestic_lead_minutes,
                "international": settings.international_lead_minutes
            }
        },
        "configuration": {
            "ai_model": ai_model,
            "api_timeout": f"{settings.api_timeout} seconds",
            "checkpoint_timeout": f"{settings.tsa_timeout_seconds} seconds"
        },
        "services": {
            "aviationstack": "Enabled" if settings.aviationstack_key else "Disabled",
            "weatherapi": "Enabled" if settings.weatherapi_key else "Disabled",
            "newsdata": "Enabled" if settings.newsdata_key else "Disabled",
            "gemini": f"Enabled ({ai_model})" if settings.has_llm() else "Disabled",
            "gcp_project": settings.gcp_project_id,
            "gcp_location": settings.gcp_location
        },
        "endpoints_count": len([route for route in app.routes if hasattr(route, 'methods')])
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "flightrisk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development(),
        log_level=settings.log_level.lower()
    )
