"""
Application configuration using Pydantic Settings
"""

from datetime import date, time, timedelta
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

from core.exceptions import ConfigurationError
from schemas.pipeline import EndpointDescriptor, TimeWindow


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Reporting API
    ARGUS_API_TOKEN: Optional[str] = None
    API_TIMEOUT_SECONDS: float = 30.0
    MAX_PAGES: int = Field(10000, ge=1)

    # Object storage
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_KEY: Optional[str] = None

    # Destination tables
    DATABASE_URL: Optional[str] = None

    # Reporting window (the Portuguese names are kept for existing deployments)
    START_DATE: Optional[date] = Field(
        None, validation_alias=AliasChoices("START_DATE", "DATA_INICIAL")
    )
    END_DATE: Optional[date] = Field(
        None, validation_alias=AliasChoices("END_DATE", "DATA_FINAL")
    )
    START_TIME: time = Field(
        time(0, 0, 0), validation_alias=AliasChoices("START_TIME", "HORA_INICIAL")
    )
    END_TIME: time = Field(
        time(23, 59, 59), validation_alias=AliasChoices("END_TIME", "HORA_FINAL")
    )

    # Endpoint selection
    ENDPOINT: str = "all"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Scheduling
    SCHEDULE_CRON: str = "0 3 * * *"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"
        populate_by_name = True

    def missing_credentials(self, endpoints: List[EndpointDescriptor]) -> List[str]:
        """Names of required settings that are not set for the given endpoints"""
        required = ["ARGUS_API_TOKEN", "SUPABASE_URL", "SUPABASE_SERVICE_KEY"]
        if any(endpoint.table_target for endpoint in endpoints):
            required.append("DATABASE_URL")
        return [name for name in required if not getattr(self, name)]

    def require_credentials(self, endpoints: List[EndpointDescriptor]) -> None:
        """Raise ConfigurationError if any required credential is absent"""
        missing = self.missing_credentials(endpoints)
        if missing:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(missing)}",
                context={"missing": missing},
            )


def resolve_time_window(settings: Settings, today: Optional[date] = None) -> TimeWindow:
    """
    Build the extraction window from settings.

    Dates default to seven days ago through yesterday, relative to ``today``.
    Times default to the whole day.

    Raises:
        ConfigurationError: If the window starts after it ends
    """
    today = today or date.today()
    start_date = settings.START_DATE or today - timedelta(days=7)
    end_date = settings.END_DATE or today - timedelta(days=1)

    window = TimeWindow.from_parts(
        start_date, settings.START_TIME, end_date, settings.END_TIME
    )
    if window.start > window.end:
        raise ConfigurationError(
            "Time window starts after it ends",
            context={
                "start": window.start_timestamp,
                "end": window.end_timestamp,
            },
        )
    return window

