"""Event-loop runtime driving the live dashboard."""

from src.runtime.dashboard import (
    AnomalyCycle,
    GridDashboard,
    PacingConfig,
    TickResult,
)

__all__ = [
    "GridDashboard",
    "PacingConfig",
    "TickResult",
    "AnomalyCycle",
]
