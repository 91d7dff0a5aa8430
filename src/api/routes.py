"""FastAPI router for grid dashboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from src.api.schemas import (
    DataSourceRequest,
    DataSourceResponse,
    EsgReportResponse,
    KpiResponse,
    LogsResponse,
    MetricsResponse,
    SimulationConfigRequest,
    ThresholdsRequest,
    TickResponse,
)
from src.api.services import DashboardNotReadyError, grid_service
from src.domain.models import AnomalyThresholds, SimulationConfig

router = APIRouter(prefix="/api/v1/grid", tags=["grid"])


def _service_unavailable(error: DashboardNotReadyError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(error))


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    limit: int | None = Query(
        default=None, ge=0, le=1000, description="Most recent samples only"
    ),
) -> MetricsResponse:
    """Get the telemetry window and current grid status."""
    try:
        return grid_service.get_metrics(limit)
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


@router.get("/kpis", response_model=KpiResponse)
async def get_kpis() -> KpiResponse:
    """Get headline KPI cards and window aggregates."""
    try:
        return grid_service.get_kpis()
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


@router.get("/logs", response_model=LogsResponse)
async def get_logs(
    limit: int = Query(default=100, ge=0, le=500, description="Lines to return"),
) -> LogsResponse:
    """Get the agent terminal, oldest line first."""
    try:
        return grid_service.get_logs(limit)
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


@router.post("/tick", response_model=TickResponse)
async def tick() -> TickResponse:
    """Advance telemetry by one tick.

    A breach detected here starts an anomaly cycle in the background,
    exactly as it would from the timer loop.
    """
    try:
        return grid_service.tick()
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


# =============================================================================
# Configuration Endpoints
# =============================================================================


@router.get("/config", response_model=SimulationConfig)
async def get_config() -> SimulationConfig:
    """Get the operator configuration."""
    try:
        return grid_service.get_config()
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


@router.put("/config", response_model=SimulationConfig)
async def update_config(request: SimulationConfigRequest) -> SimulationConfig:
    """Replace the operator configuration; applies from the next tick."""
    try:
        return grid_service.update_config(request)
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


@router.get("/thresholds", response_model=AnomalyThresholds)
async def get_thresholds() -> AnomalyThresholds:
    """Get the anomaly thresholds."""
    try:
        return grid_service.get_thresholds()
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


@router.put("/thresholds", response_model=AnomalyThresholds)
async def update_thresholds(request: ThresholdsRequest) -> AnomalyThresholds:
    """Replace the anomaly thresholds; applies from the next tick."""
    try:
        return grid_service.update_thresholds(request)
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


@router.get("/data-source", response_model=DataSourceResponse)
async def get_data_source() -> DataSourceResponse:
    """Get the active data source."""
    try:
        return grid_service.get_data_source()
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


@router.put("/data-source", response_model=DataSourceResponse)
async def set_data_source(request: DataSourceRequest) -> DataSourceResponse:
    """Switch between simulation and a live provider."""
    try:
        return grid_service.set_data_source(request)
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e


# =============================================================================
# Report Endpoints
# =============================================================================


@router.post("/esg-report", response_model=EsgReportResponse)
async def generate_esg_report() -> EsgReportResponse:
    """Generate an ESG executive summary for the current sample."""
    try:
        return await grid_service.generate_esg_report()
    except DashboardNotReadyError as e:
        raise _service_unavailable(e) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
