"""Tests for agent narration prompts and backends."""

import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest
from google import genai
from google.genai import errors as genai_errors

from src.domain.models import (
    AgentRole,
    AnomalyThresholds,
    CorrectiveAction,
    MetricSample,
)
from src.narration import (
    GeminiNarrator,
    ScriptedNarrator,
    bias_label,
    build_esg_prompt,
    build_negotiation_prompt,
    parse_negotiation,
)
from src.narration.service import REPORT_ERROR, REPORT_FAILED


@pytest.fixture
def transcript() -> str:
    """Well-formed negotiation output."""
    return json.dumps(
        {
            "logs": [
                {"role": "Weather_Forecaster", "message": "Fog in 10 minutes."},
                {"role": "Grid_Manager", "message": "Storage is expensive."},
                {"role": "Safety_Critic", "message": "Voltage margin is thin."},
                {"role": "Optimization_Writer", "message": "New Plan: store."},
            ],
            "final_action": "PREEMPTIVE_STORAGE",
        }
    )


class TestPrompts:
    """Tests for prompt rendering."""

    @pytest.mark.parametrize(
        ("bias", "label"),
        [
            (0, "MAXIMIZE_PROFIT_MINIMIZE_COST"),
            (50, "MAXIMIZE_PROFIT_MINIMIZE_COST"),
            (51, "MAXIMIZE_ESG_AND_STABILITY"),
        ],
    )
    def test_bias_label(self, bias: float, label: str) -> None:
        """Test strategy label flips above 50."""
        assert bias_label(bias) == label

    def test_negotiation_prompt_contents(
        self,
        brownout_sample: MetricSample,
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test the prompt carries telemetry, limits and the action list."""
        prompt = build_negotiation_prompt(
            brownout_sample, "Voltage Drop (-9% limit)", default_thresholds, 80
        )

        assert "MAXIMIZE_ESG_AND_STABILITY (Slider Value: 80/100)" in prompt
        assert "Voltage: 200.0V (Safe Range: > 209.3V)" in prompt
        assert "Anomaly/Event: Voltage Drop (-9% limit)" in prompt
        assert '"CURTAIL_LOAD"' in prompt
        assert '"IGNORE"' not in prompt

    def test_esg_prompt_contents(self, nominal_sample: MetricSample) -> None:
        """Test the ESG prompt carries the running totals."""
        prompt = build_esg_prompt(nominal_sample)

        assert "Total CO2 Avoided: 0.0 kg" in prompt
        assert "Current Carbon Intensity: 210.0 g/kWh" in prompt


class TestParseNegotiation:
    """Tests for parse_negotiation."""

    def test_well_formed(self, transcript: str) -> None:
        """Test roles, order and action are preserved."""
        result = parse_negotiation(transcript)

        assert [e.role for e in result.logs] == [
            AgentRole.WEATHER_FORECASTER,
            AgentRole.GRID_MANAGER,
            AgentRole.SAFETY_CRITIC,
            AgentRole.OPTIMIZATION_WRITER,
        ]
        assert result.recommended_action == "PREEMPTIVE_STORAGE"
        assert len({e.id for e in result.logs}) == 4

    def test_missing_action_ignores(self) -> None:
        """Test a transcript without a final action resolves to IGNORE."""
        result = parse_negotiation('{"logs": []}')

        assert result.is_empty
        assert result.recommended_action == CorrectiveAction.IGNORE.value

    def test_unknown_role_maps_to_system(self) -> None:
        """Test unexpected speakers are attributed to the system."""
        result = parse_negotiation(
            '{"logs": [{"role": "Oracle", "message": "hi"}], "final_action": "X"}'
        )

        assert result.logs[0].role == AgentRole.SYSTEM
        assert result.recommended_action == "X"

    @pytest.mark.parametrize("text", ["not json", "[]", '{"logs": "nope"}'])
    def test_malformed_raises(self, text: str) -> None:
        """Test malformed output is rejected."""
        with pytest.raises(ValueError):
            parse_negotiation(text)


class FakeModels:
    """Stand-in for the SDK's async models surface."""

    def __init__(
        self, text: str | None = None, error: Exception | None = None
    ) -> None:
        self.text = text
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def generate_content(
        self, *, model: str, contents: str, config: Any = None
    ) -> SimpleNamespace:
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_client(models: FakeModels) -> Any:
    """Object shaped like genai.Client for the calls the narrator makes."""
    return SimpleNamespace(aio=SimpleNamespace(models=models))


class TestGeminiNarrator:
    """Tests for the Gemini SDK backend."""

    async def test_narrate_anomaly(
        self,
        transcript: str,
        brownout_sample: MetricSample,
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test a JSON transcript is requested and parsed."""
        models = FakeModels(text=transcript)
        narrator = GeminiNarrator(
            api_key="key", model="test-model", client=fake_client(models)
        )
        result = await narrator.narrate_anomaly(
            brownout_sample, "Voltage Drop (-9% limit)", default_thresholds, 50
        )

        assert result.recommended_action == "PREEMPTIVE_STORAGE"
        assert len(result.logs) == 4

        call = models.calls[0]
        assert call["model"] == "test-model"
        assert "Voltage Drop (-9% limit)" in call["contents"]
        assert call["config"].response_mime_type == "application/json"

    def test_client_built_from_key(self) -> None:
        """Test an SDK client is created lazily from the key."""
        narrator = GeminiNarrator(api_key="key")

        assert isinstance(narrator._init_client(), genai.Client)

    async def test_missing_key_ignores(
        self,
        brownout_sample: MetricSample,
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test no credential degrades to an empty IGNORE result."""
        result = await GeminiNarrator().narrate_anomaly(
            brownout_sample, "Voltage Drop (-9% limit)", default_thresholds, 50
        )

        assert result.is_empty
        assert result.recommended_action == "IGNORE"

    async def test_api_error_ignores(
        self,
        brownout_sample: MetricSample,
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test a failed call degrades to an empty IGNORE result."""
        error = genai_errors.ServerError(
            500, {"error": {"code": 500, "message": "boom", "status": "INTERNAL"}}
        )
        narrator = GeminiNarrator(
            api_key="key", client=fake_client(FakeModels(error=error))
        )
        result = await narrator.narrate_anomaly(
            brownout_sample, "reason", default_thresholds, 50
        )

        assert result.recommended_action == "IGNORE"

    async def test_bad_json_ignores(
        self,
        brownout_sample: MetricSample,
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test unparseable model output degrades to IGNORE."""
        narrator = GeminiNarrator(
            api_key="key", client=fake_client(FakeModels(text="sorry"))
        )
        result = await narrator.narrate_anomaly(
            brownout_sample, "reason", default_thresholds, 50
        )

        assert result.is_empty

    async def test_esg_report(self, nominal_sample: MetricSample) -> None:
        """Test the report text is returned as-is."""
        models = FakeModels(text="**All good.**")
        narrator = GeminiNarrator(api_key="key", client=fake_client(models))
        report = await narrator.generate_esg_report(nominal_sample)

        assert report == "**All good.**"
        assert models.calls[0]["config"] is None

    async def test_esg_report_empty(self, nominal_sample: MetricSample) -> None:
        """Test an empty completion reports failure."""
        narrator = GeminiNarrator(api_key="key", client=fake_client(FakeModels()))
        report = await narrator.generate_esg_report(nominal_sample)

        assert report == REPORT_FAILED

    async def test_esg_report_without_key(self, nominal_sample: MetricSample) -> None:
        """Test a missing credential returns the error text."""
        report = await GeminiNarrator().generate_esg_report(nominal_sample)
        assert report == REPORT_ERROR


class TestScriptedNarrator:
    """Tests for the offline narrator."""

    @pytest.mark.parametrize(
        ("overrides", "reason", "action"),
        [
            ({}, "Voltage Drop (-9% limit)", CorrectiveAction.DISPATCH_BATTERY),
            ({}, "Load Spike (+60% limit)", CorrectiveAction.CURTAIL_LOAD),
            ({}, "Frequency Deviation (49.30Hz)", CorrectiveAction.BOOST_TURBINE),
            ({}, "ESG Violation: CO2 Intensity", CorrectiveAction.DISPATCH_BATTERY),
            (
                {"weather_forecast": "FOG_INCOMING"},
                "Predictive Alert: FOG_INCOMING",
                CorrectiveAction.PREEMPTIVE_STORAGE,
            ),
        ],
    )
    def test_choose_action(
        self,
        make_sample: Callable[..., MetricSample],
        overrides: dict[str, Any],
        reason: str,
        action: CorrectiveAction,
    ) -> None:
        """Test each anomaly maps to a sensible action."""
        sample = make_sample(**overrides)
        assert ScriptedNarrator.choose_action(sample, reason) == action

    async def test_transcript(
        self,
        stress_sample: MetricSample,
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test four agent lines ending in the plan."""
        narrator = ScriptedNarrator()
        result = await narrator.narrate_anomaly(
            stress_sample, "Load Spike (+60% limit)", default_thresholds, 50
        )

        assert len(result.logs) == 4
        assert result.logs[-1].role == AgentRole.OPTIMIZATION_WRITER
        assert result.recommended_action == "CURTAIL_LOAD"
        assert narrator.calls == ["Load Spike (+60% limit)"]

    async def test_fixed_action(
        self,
        nominal_sample: MetricSample,
        default_thresholds: AnomalyThresholds,
    ) -> None:
        """Test a fixed action overrides the choice."""
        narrator = ScriptedNarrator(fixed_action="BOOST_TURBINE")
        result = await narrator.narrate_anomaly(
            nominal_sample, "anything", default_thresholds, 50
        )

        assert result.recommended_action == "BOOST_TURBINE"
