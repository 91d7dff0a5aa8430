"""Dashboard KPI computation over the telemetry window."""

from src.metrics.kpi import DashboardKpis, WindowMetrics

__all__ = [
    "DashboardKpis",
    "WindowMetrics",
]
