"""Dashboard KPIs computed from the telemetry window.

Key Metrics:
- Voltage with status colour against the configured floor
- CO2 avoided (running total) and current CO2 intensity
- Blended cost per kWh
- Window aggregates: mean/peak load, renewable share, battery share
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from src.anomaly.detector import classify_co2, classify_voltage
from src.domain.models import AnomalyThresholds, MetricSample


@dataclass
class WindowMetrics:
    """Aggregates over the samples currently on screen.

    Attributes:
        sample_count: Number of samples in the window.
        mean_load_kw: Average load.
        peak_load_kw: Highest load.
        renewable_share: Fraction of supply from solar and wind (0-1).
        battery_share: Fraction of supply from the battery (0-1).
        mean_co2_intensity: Average CO2 intensity (g/kWh).
        mean_cost_per_kwh: Average blended cost.
        min_voltage: Lowest voltage seen.
        live_sample_count: Samples seeded from a live provider.
    """

    sample_count: int = 0
    mean_load_kw: float = 0.0
    peak_load_kw: float = 0.0
    renewable_share: float = 0.0
    battery_share: float = 0.0
    mean_co2_intensity: float = 0.0
    mean_cost_per_kwh: float = 0.0
    min_voltage: float = 0.0
    live_sample_count: int = 0

    @classmethod
    def from_samples(cls, samples: Sequence[MetricSample]) -> WindowMetrics:
        """Calculate window aggregates.

        Args:
            samples: Samples in tick order.

        Returns:
            WindowMetrics; all zeros for an empty window.
        """
        if not samples:
            return cls()

        load = np.array([s.load_demand for s in samples])
        renewable = np.array([s.renewable_power for s in samples])
        battery = np.array([s.battery_discharge for s in samples])
        supply = np.array([s.total_supply for s in samples])
        total_supply = float(supply.sum())

        return cls(
            sample_count=len(samples),
            mean_load_kw=float(load.mean()),
            peak_load_kw=float(load.max()),
            renewable_share=float(renewable.sum()) / max(total_supply, 0.001),
            battery_share=float(battery.sum()) / max(total_supply, 0.001),
            mean_co2_intensity=float(np.mean([s.co2_intensity for s in samples])),
            mean_cost_per_kwh=float(np.mean([s.cost_per_kwh for s in samples])),
            min_voltage=float(min(s.voltage for s in samples)),
            live_sample_count=sum(1 for s in samples if s.is_live),
        )


@dataclass
class DashboardKpis:
    """Headline cards plus window aggregates.

    Attributes:
        voltage: Latest voltage (V).
        voltage_status: "danger" below the floor, else "success".
        co2_avoided_kg: Running CO2 avoided.
        co2_intensity: Latest CO2 intensity (g/kWh).
        co2_status: "warning" above the limit, else "default".
        cost_per_kwh: Latest blended cost.
        weather_forecast: Latest forecast label.
        window: Aggregates over the history window.
    """

    voltage: float
    voltage_status: str
    co2_avoided_kg: float
    co2_intensity: float
    co2_status: str
    cost_per_kwh: float
    weather_forecast: str
    window: WindowMetrics

    @classmethod
    def from_history(
        cls,
        history: Sequence[MetricSample],
        thresholds: AnomalyThresholds,
        latest: MetricSample | None = None,
    ) -> DashboardKpis:
        """Build KPIs from the history window.

        Args:
            history: Samples in tick order.
            thresholds: Limits used for status colours.
            latest: Sample for the headline cards; defaults to the last one
                in history. Required when history is empty.

        Returns:
            DashboardKpis for display.
        """
        current = latest if latest is not None else history[-1]
        return cls(
            voltage=current.voltage,
            voltage_status=classify_voltage(current, thresholds),
            co2_avoided_kg=round(current.accumulated_co2_saved, 1),
            co2_intensity=current.co2_intensity,
            co2_status=classify_co2(current, thresholds),
            cost_per_kwh=current.cost_per_kwh,
            weather_forecast=current.weather_forecast.value,
            window=WindowMetrics.from_samples(history),
        )
