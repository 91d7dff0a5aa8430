"""Runtime settings and logging setup.

Settings are read from environment variables so API keys never live in
source. Every key is optional: a missing provider key simply means that
provider returns no data.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"
DEFAULT_ELECTRICITY_MAPS_ZONE = "US-CAL-CISO"  # California ISO
DEFAULT_EIA_RESPONDENT = "TEX"  # ERCOT

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, value)
        return None


@dataclass(frozen=True)
class Settings:
    """Process-wide settings.

    Attributes:
        gemini_api_key: Credential for the text-generation API.
        gemini_model: Model used for narration and reports.
        electricity_maps_api_key: Electricity Maps auth token.
        electricity_maps_zone: Zone queried on Electricity Maps.
        eia_api_key: EIA open-data API key.
        eia_respondent: Balancing authority queried on EIA.
        seed: Noise seed for the telemetry generator (None = random).
        autostart: Start the tick loops with the API.
        log_level: Root level for the package logger.
        allow_origins: CORS origins for the dashboard frontend.
    """

    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    electricity_maps_api_key: str = ""
    electricity_maps_zone: str = DEFAULT_ELECTRICITY_MAPS_ZONE
    eia_api_key: str = ""
    eia_respondent: str = DEFAULT_EIA_RESPONDENT
    seed: int | None = None
    autostart: bool = False
    log_level: str = "INFO"
    allow_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )


def load_settings() -> Settings:
    """Build settings from the current environment."""
    origins = os.getenv("ALLOW_ORIGINS")
    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", "")),
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        electricity_maps_api_key=os.getenv("ELECTRICITY_MAPS_API_KEY", ""),
        electricity_maps_zone=os.getenv(
            "ELECTRICITY_MAPS_ZONE", DEFAULT_ELECTRICITY_MAPS_ZONE
        ),
        eia_api_key=os.getenv("EIA_API_KEY", ""),
        eia_respondent=os.getenv("EIA_RESPONDENT", DEFAULT_EIA_RESPONDENT),
        seed=_env_int("GRIDSIM_SEED"),
        autostart=_env_flag("GRIDSIM_AUTOSTART"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        allow_origins=(
            [o.strip() for o in origins.split(",") if o.strip()]
            if origins
            else Settings().allow_origins
        ),
    )


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the package logger once."""
    package_logger = logging.getLogger("src")
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return package_logger
