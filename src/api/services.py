"""Service layer for dashboard operations.

This module owns the single GridDashboard behind the API and converts
between runtime state and API schemas.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime

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
    WindowMetricsResponse,
)
from src.domain.models import AnomalyThresholds, SimulationConfig
from src.live import ProviderKeys
from src.metrics import DashboardKpis
from src.runtime import GridDashboard

logger = logging.getLogger(__name__)


class DashboardNotReadyError(RuntimeError):
    """Raised when a request arrives before the dashboard is attached."""


class GridService:
    """Service for reading and steering the live dashboard."""

    def __init__(self) -> None:
        """Initialize with no dashboard attached."""
        self._dashboard: GridDashboard | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def attach(self, dashboard: GridDashboard) -> None:
        """Attach the dashboard created at application startup."""
        self._dashboard = dashboard

    def detach(self) -> GridDashboard | None:
        """Detach and return the current dashboard."""
        dashboard, self._dashboard = self._dashboard, None
        return dashboard

    @property
    def dashboard(self) -> GridDashboard:
        """The attached dashboard.

        Raises:
            DashboardNotReadyError: If no dashboard is attached.
        """
        if self._dashboard is None:
            raise DashboardNotReadyError("Dashboard not started")
        return self._dashboard

    # =========================================================================
    # Reads
    # =========================================================================

    def get_metrics(self, limit: int | None = None) -> MetricsResponse:
        """Return the telemetry window, newest last."""
        dashboard = self.dashboard
        history = list(dashboard.history)
        if limit is not None:
            history = history[-limit:] if limit > 0 else []
        return MetricsResponse(
            status=dashboard.status,
            data_source=dashboard.data_source,
            latest=dashboard.latest,
            history=history,
            manual_override=dashboard.manual_override,
        )

    def get_kpis(self) -> KpiResponse:
        """Compute headline KPIs for the current window."""
        dashboard = self.dashboard
        kpis = DashboardKpis.from_history(
            list(dashboard.history),
            dashboard.thresholds,
            latest=dashboard.current_sample(),
        )
        return KpiResponse(
            voltage=kpis.voltage,
            voltage_status=kpis.voltage_status,
            co2_avoided_kg=kpis.co2_avoided_kg,
            co2_intensity=kpis.co2_intensity,
            co2_status=kpis.co2_status,
            cost_per_kwh=kpis.cost_per_kwh,
            weather_forecast=kpis.weather_forecast,
            window=WindowMetricsResponse(**asdict(kpis.window)),
        )

    def get_logs(self, limit: int = 100) -> LogsResponse:
        """Return the most recent agent terminal lines."""
        logs = list(self.dashboard.logs)
        items = logs[-limit:] if limit > 0 else []
        return LogsResponse(items=items, total=len(logs))

    def get_config(self) -> SimulationConfig:
        """Current operator configuration."""
        return self.dashboard.config

    def get_thresholds(self) -> AnomalyThresholds:
        """Current anomaly thresholds."""
        return self.dashboard.thresholds

    def get_data_source(self) -> DataSourceResponse:
        """Current data source and key availability."""
        dashboard = self.dashboard
        return DataSourceResponse(
            source=dashboard.data_source,
            electricity_maps_key_set=bool(dashboard.keys.electricity_maps),
            eia_key_set=bool(dashboard.keys.eia),
            has_live_seed=dashboard.last_live_seed is not None,
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def update_config(self, request: SimulationConfigRequest) -> SimulationConfig:
        """Apply new operator dials."""
        config = request.to_domain()
        self.dashboard.update_config(config)
        logger.info("Simulation config updated: %s", config.model_dump())
        return config

    def update_thresholds(self, request: ThresholdsRequest) -> AnomalyThresholds:
        """Apply new anomaly thresholds."""
        thresholds = request.to_domain()
        self.dashboard.update_thresholds(thresholds)
        logger.info("Thresholds updated: %s", thresholds.model_dump())
        return thresholds

    def set_data_source(self, request: DataSourceRequest) -> DataSourceResponse:
        """Switch data source, replacing only the keys that were supplied."""
        dashboard = self.dashboard
        current = dashboard.keys
        keys = ProviderKeys(
            electricity_maps=(
                request.electricity_maps_api_key
                if request.electricity_maps_api_key is not None
                else current.electricity_maps
            ),
            eia=(
                request.eia_api_key
                if request.eia_api_key is not None
                else current.eia
            ),
            electricity_maps_zone=current.electricity_maps_zone,
            eia_respondent=current.eia_respondent,
        )
        dashboard.set_data_source(request.source, keys)
        return self.get_data_source()

    def tick(self) -> TickResponse:
        """Advance telemetry by one step outside the timer loop."""
        result = self.dashboard.tick()
        return TickResponse(
            sample=result.sample,
            anomaly=result.anomaly.reason if result.anomaly else None,
            handling_started=result.handling_started,
        )

    async def generate_esg_report(self) -> EsgReportResponse:
        """Generate the ESG executive summary for the current sample."""
        dashboard = self.dashboard
        report = await dashboard.generate_esg_report()
        return EsgReportResponse(
            report=report,
            accumulated_co2_saved=dashboard.current_sample().accumulated_co2_saved,
            generated_at=datetime.now(),
        )


# Global service instance
grid_service = GridService()
