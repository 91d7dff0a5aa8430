"""Tests for dashboard KPI computation."""

from collections.abc import Callable

import pytest

from src.domain.models import AnomalyThresholds, MetricSample, WeatherForecast
from src.metrics import DashboardKpis, WindowMetrics


class TestWindowMetrics:
    """Tests for WindowMetrics."""

    def test_empty_window(self) -> None:
        """Test an empty window yields zeros."""
        metrics = WindowMetrics.from_samples([])

        assert metrics.sample_count == 0
        assert metrics.renewable_share == 0.0

    def test_aggregates(self, make_sample: Callable[..., MetricSample]) -> None:
        """Test means, peaks and shares."""
        samples = [
            make_sample(
                load_demand=400.0,
                solar_power=100.0,
                wind_power=100.0,
                grid_supply=200.0,
                voltage=231.0,
                co2_intensity=200.0,
                cost_per_kwh=0.1,
            ),
            make_sample(
                load_demand=600.0,
                solar_power=50.0,
                wind_power=50.0,
                grid_supply=300.0,
                battery_discharge=200.0,
                voltage=221.0,
                co2_intensity=300.0,
                cost_per_kwh=0.2,
                is_live=True,
            ),
        ]
        metrics = WindowMetrics.from_samples(samples)

        assert metrics.sample_count == 2
        assert metrics.mean_load_kw == pytest.approx(500.0)
        assert metrics.peak_load_kw == pytest.approx(600.0)
        # 300 renewable, 200 battery out of 1000 total supply
        assert metrics.renewable_share == pytest.approx(0.3)
        assert metrics.battery_share == pytest.approx(0.2)
        assert metrics.mean_co2_intensity == pytest.approx(250.0)
        assert metrics.mean_cost_per_kwh == pytest.approx(0.15)
        assert metrics.min_voltage == 221.0
        assert metrics.live_sample_count == 1


class TestDashboardKpis:
    """Tests for DashboardKpis."""

    def test_headline_from_latest(
        self,
        make_sample: Callable[..., MetricSample],
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test cards reflect the newest sample."""
        history = [
            make_sample(voltage=230.0),
            make_sample(
                voltage=205.0,
                co2_intensity=480.0,
                accumulated_co2_saved=12.34,
                weather_forecast=WeatherForecast.FOG_INCOMING,
            ),
        ]
        kpis = DashboardKpis.from_history(history, default_thresholds)

        assert kpis.voltage == 205.0
        assert kpis.voltage_status == "danger"
        assert kpis.co2_status == "warning"
        assert kpis.co2_avoided_kg == 12.3
        assert kpis.weather_forecast == "FOG_INCOMING"
        assert kpis.window.sample_count == 2

    def test_explicit_latest_with_empty_history(
        self,
        nominal_sample: MetricSample,
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test a placeholder sample can drive the cards."""
        kpis = DashboardKpis.from_history([], default_thresholds, latest=nominal_sample)

        assert kpis.voltage_status == "success"
        assert kpis.co2_status == "default"
        assert kpis.window.sample_count == 0
