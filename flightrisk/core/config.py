"""
Core Configuration - Environment variables and app settings
Uses Pydantic BaseSettings for type-safe configuration management
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables

    Every provider key is optional: a missing key means the provider is
    treated as unavailable and its risk component falls back to its
    documented default score.
    """

    # Application settings
    app_name: str = Field(default="Flight Risk Brief", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Provider API keys
    aviationstack_key: Optional[str] = Field(default=None, description="Aviationstack access key (flight ops + airport lookup)")
    weatherapi_key: Optional[str] = Field(default=None, description="WeatherAPI.com key for hourly forecasts")
    newsdata_key: Optional[str] = Field(default=None, description="Newsdata.io key for disruption news")

    # Google Gemini Settings (text-intelligence extraction)
    google_gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API Key")
    gcp_project_id: Optional[str] = Field(default=None, description="Google Cloud Project ID for Vertex AI mode")
    gcp_location: str = Field(default="us-central1", description="GCP region for Vertex AI mode")

    # API Configuration
    api_timeout: int = Field(default=15, ge=1, le=120, description="Provider request timeout in seconds")
    tsa_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=30,
        description="Hard timeout for the checkpoint telemetry fetch"
    )

    # Provider cache TTLs (seconds)
    flight_cache_ttl: int = Field(default=30, ge=0, description="Flight status cache TTL")
    airport_cache_ttl: int = Field(default=3600, ge=0, description="Airport lookup cache TTL")
    weather_cache_ttl: int = Field(default=600, ge=0, description="Forecast cache TTL")
    tsa_cache_ttl: int = Field(default=3600, ge=0, description="Checkpoint telemetry cache TTL")
    news_cache_ttl: int = Field(default=600, ge=0, description="News search cache TTL")
    checkpoint_fallback_cache_ttl: int = Field(
        default=1800,
        ge=0,
        description="Cache TTL for news-fallback checkpoint results (shorter than telemetry)"
    )

    # Checkpoint lead time defaults
    domestic_lead_minutes: int = Field(
        default=120,
        ge=0,
        le=600,
        description="Default checkpoint arrival lead time for domestic passengers"
    )
    international_lead_minutes: int = Field(
        default=180,
        ge=0,
        le=600,
        description="Default checkpoint arrival lead time for international passengers"
    )

    # AI Model Settings (unset values fall back to the prompt config)
    default_model_name: Optional[str] = Field(
        default=None,
        description="Gemini model override"
    )
    default_temperature: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Model temperature override"
    )
    max_output_tokens: Optional[int] = Field(
        default=None,
        ge=256,
        le=8192,
        description="Maximum output tokens override"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string"
    )

    # CORS Settings (for frontend integration)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value"""
        allowed = ["development", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @field_validator("gcp_project_id")
    @classmethod
    def validate_project_id(cls, v):
        """Treat placeholder project IDs as unset"""
        if v in ["your-project-id", "your-gcp-project-id", ""]:
            return None
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment == "production"

    def is_development(self) -> bool:
        """Check if running in development"""
        return self.environment == "development"

    def has_llm(self) -> bool:
        """Check if a Gemini backend is configured"""
        return bool(self.google_gemini_api_key or self.gcp_project_id)

    def default_lead_minutes(self, pax_type: str) -> int:
        """Lead time used when the caller does not supply one"""
        if pax_type == "international":
            return self.international_lead_minutes
        return self.domestic_lead_minutes

    def get_log_config(self) -> dict:
        """Get logging configuration"""
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": self.log_format
                },
                "json": {
                    "()": "pythonjsonlogger.json.JsonFormatter",
                    "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": self.log_level,
                    "formatter": "json" if self.is_production() else "default",
                    "stream": "ext://sys.stdout"
                }
            },
            "root": {
                "level": self.log_level,
                "handlers": ["console"]
            }
        }


# Singleton settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings (singleton)

    Returns:
        Settings instance

    Raises:
        ValueError: If environment variables fail validation
    """
    global _settings

    if _settings is None:
        try:
            _settings = Settings()
        except Exception as e:
            raise ValueError(
                f"Failed to load settings. Please check your .env file. Error: {str(e)}"
            )

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing)

    Returns:
        New Settings instance
    """
    global _settings
    _settings = None
    return get_settings()
