"""Matplotlib charts for the telemetry window.

- TelemetryChart: energy mix, voltage and emissions panels
"""

from src.visualization.timeline import (
    TelemetryChart,
    TimelinePlotConfig,
    create_telemetry_dashboard,
)

__all__ = [
    "TelemetryChart",
    "TimelinePlotConfig",
    "create_telemetry_dashboard",
]
