"""FastAPI application for the GreenGrid monitor.

This module provides the main FastAPI application with all routes,
middleware, and configuration.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.routes import router as grid_router
from src.api.schemas import HealthResponse, SystemInfoResponse
from src.api.services import DashboardNotReadyError, grid_service
from src.domain.models import DataSource
from src.generators import TelemetryGenerator
from src.live import ProviderKeys
from src.narration import GeminiNarrator
from src.runtime import GridDashboard
from src.settings import Settings, configure_logging, load_settings

VERSION = "0.1.0"

settings = load_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


def build_dashboard(
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> GridDashboard:
    """Wire a dashboard from process settings."""
    narrator = GeminiNarrator(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
    )
    generator = TelemetryGenerator(
        seed=settings.seed,
        start_time_ms=int(time.time() * 1000),
    )
    keys = ProviderKeys(
        electricity_maps=settings.electricity_maps_api_key,
        eia=settings.eia_api_key,
        electricity_maps_zone=settings.electricity_maps_zone,
        eia_respondent=settings.eia_respondent,
    )
    return GridDashboard(
        narrator=narrator,
        generator=generator,
        keys=keys,
        http_client=http_client,
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager."""
    # Startup
    logger.info("Starting GreenGrid monitor API...")
    async with httpx.AsyncClient() as client:
        dashboard = build_dashboard(settings, http_client=client)
        grid_service.attach(dashboard)
        if settings.autostart:
            await dashboard.start()
        yield
        # Shutdown
        logger.info("Shutting down API...")
        await dashboard.stop()
        grid_service.detach()


# Create FastAPI application
app = FastAPI(
    title="GreenGrid Monitor",
    description="""
Simulated smart-grid telemetry with anomaly detection and agent narration.

## Features

- **Telemetry Simulation**: Solar, wind, load, storage and grid supply per tick
- **Anomaly Detection**: Voltage, load, frequency, CO2 and weather thresholds
- **Agent Negotiation**: Narrated transcript ending in a corrective action
- **Live Seeding**: Electricity Maps and EIA generation mix

## Key Endpoints

- `GET /api/v1/grid/metrics`: Telemetry window and grid status
- `GET /api/v1/grid/logs`: Agent terminal
- `PUT /api/v1/grid/config`: Operator dials
- `POST /api/v1/grid/esg-report`: ESG executive summary
    """,
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(grid_router)


# =============================================================================
# Root & Health Endpoints
# =============================================================================


@app.get("/", response_class=JSONResponse)
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "GreenGrid Monitor",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        timestamp=datetime.now(),
    )


@app.get("/system", response_model=SystemInfoResponse)
async def system_info() -> SystemInfoResponse:
    """Get system information."""
    try:
        dashboard = grid_service.dashboard
    except DashboardNotReadyError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return SystemInfoResponse(
        version=VERSION,
        python_version=sys.version,
        available_sources=list(DataSource),
        narrator=type(dashboard.narrator).__name__,
        running=dashboard.is_running,
    )


# =============================================================================
# Main Entry Point
# =============================================================================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
