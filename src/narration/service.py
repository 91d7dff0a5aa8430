"""Agent narration backends.

The "multi-agent negotiation" is a single text-generation call whose
output follows a fixed schema. Two backends implement the Narrator
protocol:

- GeminiNarrator: calls the Gemini models API through the google-genai SDK.
- ScriptedNarrator: deterministic local transcripts for tests and demos.

Neither backend raises: failures degrade to an empty transcript with the
neutral IGNORE action, so no anomaly is left unresolved.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from src.domain.models import (
    AgentLogEntry,
    AgentRole,
    AnomalyThresholds,
    CorrectiveAction,
    MetricSample,
    NarrationResult,
    WeatherForecast,
)
from src.narration.prompts import (
    build_esg_prompt,
    build_negotiation_prompt,
    parse_negotiation,
)
from src.settings import DEFAULT_GEMINI_MODEL

logger = logging.getLogger(__name__)

REPORT_FAILED = "Report generation failed."
REPORT_ERROR = "Error generating report."


class Narrator(Protocol):
    """Text-generation oracle consumed by the dashboard."""

    async def narrate_anomaly(
        self,
        sample: MetricSample,
        reason: str,
        thresholds: AnomalyThresholds,
        optimization_bias: float,
    ) -> NarrationResult:
        """Produce a negotiation transcript and a recommended action."""
        ...

    async def generate_esg_report(self, sample: MetricSample) -> str:
        """Produce a short compliance summary."""
        ...


class NarratorUnavailableError(RuntimeError):
    """Raised internally when no credential is configured."""


class GeminiNarrator:
    """Narrator backed by the Gemini models API."""

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_GEMINI_MODEL,
        client: genai.Client | None = None,
    ) -> None:
        """Initialize the narrator.

        Args:
            api_key: Generative Language API key.
            model: Model identifier.
            client: Optional preconfigured SDK client; built from api_key
                when omitted.
        """
        self.api_key = api_key
        self.model = model
        self._client = client

    def _init_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise NarratorUnavailableError("API Key missing")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _generate(self, prompt: str, json_output: bool) -> str:
        client = self._init_client()
        config = (
            types.GenerateContentConfig(response_mime_type="application/json")
            if json_output
            else None
        )
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        return response.text or ""

    async def narrate_anomaly(
        self,
        sample: MetricSample,
        reason: str,
        thresholds: AnomalyThresholds,
        optimization_bias: float,
    ) -> NarrationResult:
        """Run one negotiation round through the model."""
        prompt = build_negotiation_prompt(sample, reason, thresholds, optimization_bias)
        try:
            text = await self._generate(prompt, json_output=True)
            return parse_negotiation(text)
        except (
            NarratorUnavailableError,
            genai_errors.APIError,
            httpx.HTTPError,
            ValueError,
            TypeError,
            AttributeError,
        ) as exc:
            logger.error("Agent simulation failed: %s", exc)
            return NarrationResult()

    async def generate_esg_report(self, sample: MetricSample) -> str:
        """Ask the model for an ESG executive summary."""
        try:
            text = await self._generate(build_esg_prompt(sample), json_output=False)
        except (
            NarratorUnavailableError,
            genai_errors.APIError,
            httpx.HTTPError,
            ValueError,
            TypeError,
            AttributeError,
        ) as exc:
            logger.error("ESG report generation failed: %s", exc)
            return REPORT_ERROR
        return text or REPORT_FAILED


class ScriptedNarrator:
    """Deterministic narrator that needs no network.

    Picks the action a sensible operator would choose for the anomaly and
    writes a four-line transcript in the agents' voices.
    """

    def __init__(self, fixed_action: str | None = None) -> None:
        """Initialize the scripted narrator.

        Args:
            fixed_action: Always recommend this action instead of choosing.
        """
        self.fixed_action = fixed_action
        self.calls: list[str] = []

    @staticmethod
    def choose_action(sample: MetricSample, reason: str) -> CorrectiveAction:
        """Map an anomaly onto a corrective action."""
        lowered = reason.lower()
        if sample.weather_forecast != WeatherForecast.CLEAR or "predictive" in lowered:
            return CorrectiveAction.PREEMPTIVE_STORAGE
        if "load" in lowered:
            return CorrectiveAction.CURTAIL_LOAD
        if "co2" in lowered:
            return CorrectiveAction.DISPATCH_BATTERY
        if "frequency" in lowered:
            return CorrectiveAction.BOOST_TURBINE
        return CorrectiveAction.DISPATCH_BATTERY

    async def narrate_anomaly(
        self,
        sample: MetricSample,
        reason: str,
        thresholds: AnomalyThresholds,
        optimization_bias: float,
    ) -> NarrationResult:
        """Return a canned transcript for the anomaly."""
        self.calls.append(reason)
        action = self.fixed_action or self.choose_action(sample, reason).value
        floor = f"{thresholds.min_voltage:.1f}"
        logs = [
            AgentLogEntry(
                role=AgentRole.WEATHER_FORECASTER,
                message=f"Forecast {sample.weather_forecast.value}. {reason}.",
            ),
            AgentLogEntry(
                role=AgentRole.GRID_MANAGER,
                message=(
                    f"Bias {optimization_bias:g}/100. Grid import at "
                    f"{sample.grid_supply}kW, cost ${sample.cost_per_kwh}/kWh."
                ),
            ),
            AgentLogEntry(
                role=AgentRole.SAFETY_CRITIC,
                message=f"Voltage {sample.voltage}V against floor {floor}V.",
            ),
            AgentLogEntry(
                role=AgentRole.OPTIMIZATION_WRITER,
                message=f"New Plan: {action}.",
            ),
        ]
        return NarrationResult(logs=logs, recommended_action=action)

    async def generate_esg_report(self, sample: MetricSample) -> str:
        """Return a templated ESG summary."""
        return (
            f"GreenGrid avoided {sample.accumulated_co2_saved} kg of CO2 against a "
            f"coal baseline. Current carbon intensity is {sample.co2_intensity} g/kWh."
        )
