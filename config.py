"""Application configuration, read from environment variables and an optional .env file."""

import logging
import re
from datetime import timedelta
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "default-secret-change-in-production"

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*([a-z]*)\s*$", re.IGNORECASE)
_UNIT_NAMES = {
    timedelta(milliseconds=1): ("ms", "msec", "msecs", "millisecond", "milliseconds"),
    timedelta(seconds=1): ("", "s", "sec", "secs", "second", "seconds"),
    timedelta(minutes=1): ("m", "min", "mins", "minute", "minutes"),
    timedelta(hours=1): ("h", "hr", "hrs", "hour", "hours"),
    timedelta(days=1): ("d", "day", "days"),
    timedelta(weeks=1): ("w", "week", "weeks"),
    timedelta(days=365.25): ("y", "yr", "yrs", "year", "years"),
}
_DURATION_UNITS = {name: span for span, names in _UNIT_NAMES.items() for name in names}


def parse_duration(value) -> timedelta:
    """Parse a token lifetime such as "7d", "1w", "2.5h", "7 days" or "90 mins".

    A bare number counts as seconds.
    """
    if isinstance(value, timedelta):
        duration = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        duration = timedelta(seconds=value)
    elif isinstance(value, str):
        match = _DURATION_RE.match(value)
        unit = _DURATION_UNITS.get(match.group(2).lower()) if match else None
        if unit is None:
            raise ValueError(f"Invalid duration: {value!r}")
        duration = unit * float(match.group(1))
    else:
        raise ValueError(f"Invalid duration: {value!r}")
    if duration <= timedelta(0):
        raise ValueError("Duration must be positive")
    return duration


class Settings(BaseSettings):
    """Settings for the storefront API."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database
    mongodb_uri: str = "mongodb://localhost:27017"
    database_name: str = "rosy_jewel_boutique"

    # Tokens
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_expire: timedelta = timedelta(days=7)
    jwt_algorithm: str = "HS256"

    @field_validator("jwt_expire", mode="before")
    @classmethod
    def convert_duration(cls, v):
        return parse_duration(v)

    # API
    allowed_origins: str = "http://localhost:8080,http://localhost:5173"
    environment: str = "development"
    port: int = 5000
    rate_limit: str = "100/15minutes"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    # Seed admin
    admin_email: str = "admin@startup.com"
    admin_name: str = "Admin"
    admin_password: Optional[str] = None

    @property
    def cors_origins(self) -> List[str]:
        raw = self.allowed_origins.strip()
        if raw.startswith("["):
            return [o.strip() for o in raw.strip("[]").replace('"', "").split(",") if o.strip()]
        return [o.strip() for o in raw.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    if settings.is_production and settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET not set in production, using the default secret")
    return settings
