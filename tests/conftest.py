"""Test fixtures for reproducible telemetry scenarios.

Provides standard samples used across the suite:
- Nominal sample (everything within limits)
- Brown-out sample (voltage below the floor)
- Stress sample (heavy load)
- Fog sample (weather turned from clear)
"""

from collections.abc import Callable
from typing import Any

import pytest

from src.domain.models import (
    AnomalyThresholds,
    MetricSample,
    SimulationConfig,
    WeatherForecast,
)
from src.generators import TelemetryGenerator

# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def default_config() -> SimulationConfig:
    """Operator dials at their defaults."""
    return SimulationConfig()


@pytest.fixture
def default_thresholds() -> AnomalyThresholds:
    """Thresholds at their defaults (209.3 V floor, 800 kW ceiling)."""
    return AnomalyThresholds()


# =============================================================================
# Sample Fixtures
# =============================================================================


@pytest.fixture
def make_sample() -> Callable[..., MetricSample]:
    """Factory for nominal samples with selected fields overridden."""

    def _make(**overrides: Any) -> MetricSample:
        values: dict[str, Any] = {
            "timestamp_ms": 1_000,
            "load_demand": 500.0,
            "solar_power": 150.0,
            "wind_power": 100.0,
            "grid_supply": 250.0,
            "battery_discharge": 0.0,
            "voltage": 230.0,
            "frequency": 50.0,
            "co2_intensity": 210.0,
            "cost_per_kwh": 0.125,
            "weather_forecast": WeatherForecast.CLEAR,
            "accumulated_co2_saved": 0.0,
        }
        values.update(overrides)
        return MetricSample(**values)

    return _make


@pytest.fixture
def nominal_sample(make_sample: Callable[..., MetricSample]) -> MetricSample:
    """Sample with every value inside the default limits."""
    return make_sample()


@pytest.fixture
def brownout_sample(make_sample: Callable[..., MetricSample]) -> MetricSample:
    """Voltage well below the default floor."""
    return make_sample(voltage=200.0)


@pytest.fixture
def stress_sample(make_sample: Callable[..., MetricSample]) -> MetricSample:
    """Load above the default ceiling with nominal voltage."""
    return make_sample(load_demand=900.0, grid_supply=650.0)


@pytest.fixture
def fog_sample(make_sample: Callable[..., MetricSample]) -> MetricSample:
    """Weather has just turned to fog."""
    return make_sample(weather_forecast=WeatherForecast.FOG_INCOMING)


# =============================================================================
# Generator Fixtures
# =============================================================================


@pytest.fixture
def seeded_generator() -> TelemetryGenerator:
    """Generator with a fixed seed for reproducibility."""
    return TelemetryGenerator(seed=42)
