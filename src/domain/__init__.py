"""Domain models for the GreenGrid smart-grid monitor."""

from src.domain.models import (
    NOMINAL_FREQUENCY_HZ,
    NOMINAL_LOAD_KW,
    NOMINAL_VOLTAGE_V,
    AgentLogEntry,
    AgentRole,
    AnomalyThresholds,
    CorrectiveAction,
    DataSource,
    GridStatus,
    LiveSeed,
    LogStatus,
    MetricSample,
    NarrationResult,
    SimulationConfig,
    SimulatorState,
    WeatherForecast,
)

__all__ = [
    "NOMINAL_FREQUENCY_HZ",
    "NOMINAL_LOAD_KW",
    "NOMINAL_VOLTAGE_V",
    "WeatherForecast",
    "CorrectiveAction",
    "GridStatus",
    "DataSource",
    "AgentRole",
    "LogStatus",
    "MetricSample",
    "LiveSeed",
    "SimulatorState",
    "SimulationConfig",
    "AnomalyThresholds",
    "AgentLogEntry",
    "NarrationResult",
]
