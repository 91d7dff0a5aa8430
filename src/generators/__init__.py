"""Synthetic telemetry generation and corrective actions."""

from src.generators.corrective import apply_corrective_action
from src.generators.telemetry import TelemetryGenerator, advance

__all__ = [
    "TelemetryGenerator",
    "advance",
    "apply_corrective_action",
]
