"""Pydantic schemas for API request/response models.

These schemas define the API contract between the dashboard frontend and
the monitor, providing validation and serialization for all endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.domain.models import (
    AgentLogEntry,
    AnomalyThresholds,
    DataSource,
    GridStatus,
    MetricSample,
    SimulationConfig,
)

# =============================================================================
# Request Schemas
# =============================================================================


class SimulationConfigRequest(BaseModel):
    """Operator dials for the telemetry generator."""

    model_config = ConfigDict(extra="forbid")

    solar_efficiency: float = Field(
        default=1.0,
        ge=0,
        le=2.0,
        description="Solar efficiency multiplier",
    )
    wind_efficiency: float = Field(
        default=1.0,
        ge=0,
        le=2.0,
        description="Wind efficiency multiplier",
    )
    load_multiplier: float = Field(
        default=1.0,
        ge=0,
        le=5.0,
        description="Load multiplier for stress testing",
    )
    battery_capacity: float = Field(
        default=1000.0,
        ge=0,
        le=100000,
        description="Battery capacity (kW)",
    )
    optimization_bias: float = Field(
        default=50.0,
        ge=0,
        le=100,
        description="0 = cheapest, 100 = greenest",
    )

    def to_domain(self) -> SimulationConfig:
        """Convert to the domain model."""
        return SimulationConfig(**self.model_dump())


class ThresholdsRequest(BaseModel):
    """Anomaly thresholds."""

    model_config = ConfigDict(extra="forbid")

    voltage_drop_percent: float = Field(
        default=9.0,
        ge=0,
        le=100,
        description="Allowed voltage drop below 230 V (%)",
    )
    load_increase_percent: float = Field(
        default=60.0,
        ge=0,
        le=1000,
        description="Allowed load increase above 500 kW (%)",
    )
    frequency_deviation_hz: float = Field(
        default=0.5,
        gt=0,
        le=5,
        description="Allowed deviation from 50 Hz",
    )
    max_co2_intensity: float = Field(
        default=450.0,
        ge=0,
        le=2000,
        description="CO2 intensity limit (g/kWh)",
    )

    def to_domain(self) -> AnomalyThresholds:
        """Convert to the domain model."""
        return AnomalyThresholds(**self.model_dump())


class DataSourceRequest(BaseModel):
    """Switch between simulated and live-seeded telemetry."""

    model_config = ConfigDict(extra="forbid")

    source: DataSource = Field(
        default=DataSource.SIMULATION,
        description="Telemetry data source",
    )
    electricity_maps_api_key: str | None = Field(
        default=None,
        description="Electricity Maps auth token (unchanged if omitted)",
    )
    eia_api_key: str | None = Field(
        default=None,
        description="EIA API key (unchanged if omitted)",
    )


# =============================================================================
# Response Schemas
# =============================================================================


class MetricsResponse(BaseModel):
    """Telemetry window."""

    status: GridStatus
    data_source: DataSource
    latest: MetricSample | None = None
    history: list[MetricSample] = Field(default_factory=list)
    manual_override: str | None = None


class TickResponse(BaseModel):
    """Result of a manual tick."""

    sample: MetricSample
    anomaly: str | None = None
    handling_started: bool = False


class WindowMetricsResponse(BaseModel):
    """Aggregates over the telemetry window."""

    sample_count: int
    mean_load_kw: float
    peak_load_kw: float
    renewable_share: float
    battery_share: float
    mean_co2_intensity: float
    mean_cost_per_kwh: float
    min_voltage: float
    live_sample_count: int


class KpiResponse(BaseModel):
    """Headline KPI cards."""

    voltage: float
    voltage_status: str
    co2_avoided_kg: float
    co2_intensity: float
    co2_status: str
    cost_per_kwh: float
    weather_forecast: str
    window: WindowMetricsResponse


class LogsResponse(BaseModel):
    """Agent terminal lines, oldest first."""

    items: list[AgentLogEntry]
    total: int


class DataSourceResponse(BaseModel):
    """Current data source and which provider keys are set."""

    source: DataSource
    electricity_maps_key_set: bool
    eia_key_set: bool
    has_live_seed: bool


class EsgReportResponse(BaseModel):
    """Generated ESG executive summary."""

    report: str
    accumulated_co2_saved: float
    generated_at: datetime


# =============================================================================
# Health & Info Schemas
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    timestamp: datetime


class SystemInfoResponse(BaseModel):
    """System information response."""

    version: str
    python_version: str
    available_sources: list[DataSource]
    narrator: str
    running: bool
