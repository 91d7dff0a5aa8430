"""Threshold evaluation for incoming telemetry.

Checks run in a fixed priority order and the first breach wins:
voltage drop, load spike, frequency deviation, CO2 intensity, and finally a
predictive alert when the weather turns from clear to anything else.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.domain.models import (
    NOMINAL_FREQUENCY_HZ,
    AnomalyThresholds,
    MetricSample,
    WeatherForecast,
)


class AnomalyKind(str, Enum):
    """Cause of a threshold breach, in evaluation order."""

    VOLTAGE_DROP = "voltage_drop"
    LOAD_SPIKE = "load_spike"
    FREQUENCY_DEVIATION = "frequency_deviation"
    CO2_INTENSITY = "co2_intensity"
    WEATHER_TRANSITION = "weather_transition"


@dataclass(frozen=True)
class Anomaly:
    """A single-cause threshold breach.

    Attributes:
        kind: Which check fired.
        reason: Operator-facing description passed to the narrator.
    """

    kind: AnomalyKind
    reason: str


def voltage_floor(thresholds: AnomalyThresholds) -> float:
    """Voltage below which a drop is reported."""
    return thresholds.min_voltage


def load_ceiling(thresholds: AnomalyThresholds) -> float:
    """Load above which a spike is reported."""
    return thresholds.max_load


def _fmt_limit(value: float) -> str:
    """Render a configured limit without a trailing .0."""
    return f"{value:g}"


def evaluate_anomaly(
    sample: MetricSample,
    previous: MetricSample | None,
    thresholds: AnomalyThresholds,
) -> Anomaly | None:
    """Return the highest-priority breach for a sample, if any.

    Args:
        sample: Latest sample.
        previous: Sample from the tick before, used for weather transitions.
        thresholds: Configured limits.

    Returns:
        The first Anomaly found, or None when everything is within limits.
    """
    if sample.voltage < voltage_floor(thresholds):
        return Anomaly(
            AnomalyKind.VOLTAGE_DROP,
            f"Voltage Drop (-{_fmt_limit(thresholds.voltage_drop_percent)}% limit)",
        )
    if sample.load_demand > load_ceiling(thresholds):
        return Anomaly(
            AnomalyKind.LOAD_SPIKE,
            f"Load Spike (+{_fmt_limit(thresholds.load_increase_percent)}% limit)",
        )
    if abs(sample.frequency - NOMINAL_FREQUENCY_HZ) > thresholds.frequency_deviation_hz:
        return Anomaly(
            AnomalyKind.FREQUENCY_DEVIATION,
            f"Frequency Deviation ({sample.frequency:.2f}Hz)",
        )
    if sample.co2_intensity > thresholds.max_co2_intensity:
        return Anomaly(
            AnomalyKind.CO2_INTENSITY,
            f"ESG Violation: CO2 Intensity ({sample.co2_intensity:.0f}g/kWh > "
            f"{_fmt_limit(thresholds.max_co2_intensity)})",
        )
    if (
        sample.weather_forecast != WeatherForecast.CLEAR
        and previous is not None
        and previous.weather_forecast == WeatherForecast.CLEAR
    ):
        return Anomaly(
            AnomalyKind.WEATHER_TRANSITION,
            f"Predictive Alert: {sample.weather_forecast.value}",
        )
    return None


def classify_voltage(sample: MetricSample, thresholds: AnomalyThresholds) -> str:
    """KPI colour for the voltage card."""
    return "danger" if sample.voltage < voltage_floor(thresholds) else "success"


def classify_co2(sample: MetricSample, thresholds: AnomalyThresholds) -> str:
    """KPI colour for the CO2 intensity card."""
    return (
        "warning" if sample.co2_intensity > thresholds.max_co2_intensity else "default"
    )
