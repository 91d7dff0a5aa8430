"""Prompt rendering and response parsing for the agent negotiation."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from src.domain.models import (
    AgentLogEntry,
    AgentRole,
    AnomalyThresholds,
    CorrectiveAction,
    LogStatus,
    MetricSample,
    NarrationResult,
)

ESG_BIAS_LABEL = "MAXIMIZE_ESG_AND_STABILITY"
COST_BIAS_LABEL = "MAXIMIZE_PROFIT_MINIMIZE_COST"


def bias_label(optimization_bias: float) -> str:
    """Strategy label shown to the agents for a bias setting."""
    return ESG_BIAS_LABEL if optimization_bias > 50 else COST_BIAS_LABEL


def build_negotiation_prompt(
    sample: MetricSample,
    reason: str,
    thresholds: AnomalyThresholds,
    optimization_bias: float,
) -> str:
    """Render the multi-agent negotiation prompt for one anomaly."""
    voltage_limit = f"{thresholds.min_voltage:.1f}"
    freq_dev = f"{thresholds.frequency_deviation_hz:g}"
    max_co2 = f"{thresholds.max_co2_intensity:g}"
    actions = " | ".join(
        f'"{a.value}"' for a in CorrectiveAction if a != CorrectiveAction.IGNORE
    )

    return f"""
Role: You are a Multi-Agent Smart Grid Control System with Predictive Capabilities.

Context:
- Optimization Strategy: {bias_label(optimization_bias)} (Slider Value: {optimization_bias:g}/100)
- Weather Forecast: {sample.weather_forecast.value}
- Accumulated CO2 Saved: {sample.accumulated_co2_saved} kg

Telemetry (Current State):
- Voltage: {sample.voltage}V (Safe Range: > {voltage_limit}V)
- Frequency: {sample.frequency}Hz (Safe Range: 50Hz ± {freq_dev})
- CO2 Intensity: {sample.co2_intensity}g/kWh (Limit: < {max_co2})
- Load: {sample.load_demand}kW
- Solar: {sample.solar_power}kW | Wind: {sample.wind_power}kW
- Battery Output: {sample.battery_discharge}kW

Anomaly/Event: {reason}

Feature Requirement - Predictive Weather Agent:
- If Forecast is NOT "CLEAR", you must inject "Future-State" variables into the optimization.
- MATH CONSTRAINT CHANGE: Switch from "P_wind <= Current_Wind" to "P_wind <= f(Forecast_Wind)".
- If FOG_INCOMING: Anticipate 60% Solar Drop.
- If LOW_WIND_CORRIDOR: Anticipate 70% Wind Drop.

Agents & Personalities:
1. [Weather_Forecaster]: Analyzes 'Weather Forecast'. If imminent bad weather is detected, ORDER pre-emptive action.
2. [Grid_Manager] (Market Focus): Wants to maximize profit. If Forecast implies future scarcity, agrees to spend money now to prevent blackout later.
3. [Safety_Critic]: STRICT physics engine. Denies any plan that risks Voltage < {voltage_limit}V OR Frequency Deviation > {freq_dev}Hz.
4. [Optimization_Writer]: The mediator. Calculates the new dispatch plan using the FORECASTED constraints.

Output Format (JSON):
{{
  "logs": [
    {{ "role": "Weather_Forecaster", "message": "..." }},
    {{ "role": "Grid_Manager", "message": "..." }},
    {{ "role": "Safety_Critic", "message": "..." }},
    {{ "role": "Optimization_Writer", "message": "Recalculating with constraint: P_solar <= f(Fog)... New Plan: [Details]" }}
  ],
  "final_action": {actions}
}}

Style Guide:
- Internal Monologue.
- Show the friction between Cost (Manager) and Safety/Forecast (Others).
- Explicitly mention the math constraint shift in the Optimization_Writer log.
"""


def build_esg_prompt(sample: MetricSample) -> str:
    """Render the ESG executive-summary prompt."""
    return f"""
Generate a professional, audit-ready ESG (Environmental, Social, and Governance) Executive Summary for the GreenGrid Smart Grid system.

Data:
- Total CO2 Avoided: {sample.accumulated_co2_saved} kg
- Current Carbon Intensity: {sample.co2_intensity} g/kWh
- Grid Status: Stable

Format:
Markdown. Keep it brief (3-4 sentences). Use professional tone suitable for a regulatory filing.
Highlight the "Predictive AI" contribution to sustainability and the specific weather adaptation logic.
"""


def _role(value: Any) -> AgentRole:
    try:
        return AgentRole(value)
    except ValueError:
        return AgentRole.SYSTEM


def parse_negotiation(text: str) -> NarrationResult:
    """Parse the narrator's JSON transcript.

    Args:
        text: Raw model output, expected to be a JSON object with "logs"
            and "final_action".

    Returns:
        NarrationResult; a missing action becomes IGNORE.

    Raises:
        ValueError: If the text is not valid JSON or "logs" is not a list.
    """
    data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError("Negotiation response is not a JSON object")
    raw_logs = data.get("logs")
    if not isinstance(raw_logs, list):
        raise ValueError("Negotiation response has no logs list")

    now = datetime.now()
    batch = uuid4().hex[:8]
    logs = [
        AgentLogEntry(
            id=f"log-{batch}-{i}",
            timestamp=now,
            role=_role(entry.get("role")),
            message=str(entry.get("message", "")),
            status=LogStatus.NEUTRAL,
        )
        for i, entry in enumerate(raw_logs)
        if isinstance(entry, dict)
    ]
    action = data.get("final_action") or CorrectiveAction.IGNORE.value
    return NarrationResult(logs=logs, recommended_action=str(action))
