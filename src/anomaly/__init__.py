"""Threshold-based anomaly detection."""

from src.anomaly.detector import (
    Anomaly,
    AnomalyKind,
    classify_co2,
    classify_voltage,
    evaluate_anomaly,
    load_ceiling,
    voltage_floor,
)

__all__ = [
    "Anomaly",
    "AnomalyKind",
    "evaluate_anomaly",
    "voltage_floor",
    "load_ceiling",
    "classify_voltage",
    "classify_co2",
]
