"""FastAPI endpoints for the grid monitor.

This module provides the REST API for the dashboard frontend,
exposing telemetry, agent logs, operator dials and ESG reports.
"""

from src.api.main import app, create_app
from src.api.schemas import (
    DataSourceRequest,
    MetricsResponse,
    SimulationConfigRequest,
    ThresholdsRequest,
)
from src.api.services import GridService, grid_service

__all__ = [
    "app",
    "create_app",
    "DataSourceRequest",
    "MetricsResponse",
    "SimulationConfigRequest",
    "ThresholdsRequest",
    "GridService",
    "grid_service",
]
