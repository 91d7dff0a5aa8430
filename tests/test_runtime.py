"""Tests for the live dashboard runtime."""

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from src.domain.models import (
    AgentRole,
    AnomalyThresholds,
    DataSource,
    GridStatus,
    LogStatus,
    MetricSample,
    NarrationResult,
    SimulationConfig,
)
from src.generators import TelemetryGenerator
from src.live import ProviderKeys
from src.narration import ScriptedNarrator
from src.runtime import GridDashboard, PacingConfig
from src.runtime.dashboard import MAX_CYCLES, MAX_LOGS


class FailingNarrator:
    """Narrator whose backend always blows up."""

    async def narrate_anomaly(self, *args: Any) -> NarrationResult:
        raise RuntimeError("backend down")

    async def generate_esg_report(self, sample: MetricSample) -> str:
        raise RuntimeError("backend down")


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the loop until predicate holds."""

    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def narrator() -> ScriptedNarrator:
    """Scripted narrator recording each call."""
    return ScriptedNarrator()


@pytest.fixture
def dashboard(narrator: ScriptedNarrator) -> GridDashboard:
    """Seeded dashboard with zero pacing delays."""
    return GridDashboard(
        narrator=narrator,
        generator=TelemetryGenerator(seed=42),
        pacing=PacingConfig.immediate(),
    )


def messages(dashboard: GridDashboard) -> list[str]:
    """Agent terminal text in order."""
    return [entry.message for entry in dashboard.logs]


class TestTick:
    """Tests for GridDashboard.tick."""

    def test_appends_history(self, dashboard: GridDashboard) -> None:
        """Test each tick adds one sample."""
        first = dashboard.tick()
        second = dashboard.tick()

        assert list(dashboard.history) == [first.sample, second.sample]
        assert dashboard.latest == second.sample

    def test_history_bounded(self, narrator: ScriptedNarrator) -> None:
        """Test the window keeps only the newest samples."""
        dashboard = GridDashboard(
            narrator=narrator,
            generator=TelemetryGenerator(seed=1),
            pacing=PacingConfig.immediate(),
            max_history=5,
        )
        results = [dashboard.tick() for _ in range(10)]

        assert len(dashboard.history) == 5
        assert dashboard.history[0] == results[5].sample

    async def test_breach_starts_cycle(self, narrator: ScriptedNarrator) -> None:
        """Test a breach hands off to anomaly handling."""
        dashboard = GridDashboard(
            narrator=narrator,
            generator=TelemetryGenerator(seed=42),
            config=SimulationConfig(load_multiplier=3.0),
            pacing=PacingConfig.immediate(),
        )
        result = dashboard.tick()

        assert result.anomaly is not None
        assert result.handling_started
        assert dashboard.status == GridStatus.OPTIMIZING

        await dashboard.wait_for_anomaly()

        assert len(dashboard.cycles) == 1
        assert dashboard.cycles[0].started_at_ms == result.sample.timestamp_ms
        assert dashboard.status == GridStatus.NORMAL

    async def test_run_ticks(self, dashboard: GridDashboard) -> None:
        """Test a fixed run without the wall-clock loop."""
        results = await dashboard.run_ticks(10)

        assert len(results) == 10
        assert len(dashboard.history) == 10


class TestAnomalyHandling:
    """Tests for the anomaly cycle."""

    async def test_full_cycle(
        self,
        dashboard: GridDashboard,
        brownout_sample: MetricSample,
    ) -> None:
        """Test detection, transcript, consensus and recovery in order."""
        handled = await dashboard.handle_anomaly(
            brownout_sample, "Voltage Drop (-9% limit)"
        )
        lines = messages(dashboard)

        assert handled
        assert lines[0] == (
            "ANOMALY DETECTED: Voltage Drop (-9% limit). "
            "Triggering Multi-Agent Negotiation..."
        )
        assert dashboard.logs[0].status == LogStatus.FAILURE
        assert lines[-2] == "CONSENSUS REACHED: EXECUTING DISPATCH_BATTERY"
        assert dashboard.logs[-2].status == LogStatus.SUCCESS
        assert lines[-1] == "Stability restored. Agents standing by."
        assert len(lines) == 7

        cycle = dashboard.cycles[-1]
        assert cycle.completed
        assert cycle.action == "DISPATCH_BATTERY"
        assert cycle.transcript_lines == 4

        assert dashboard.manual_override is None
        assert not dashboard.is_processing_anomaly
        assert dashboard.status == GridStatus.NORMAL

    async def test_concurrent_trigger_dropped(
        self,
        dashboard: GridDashboard,
        narrator: ScriptedNarrator,
        brownout_sample: MetricSample,
        stress_sample: MetricSample,
    ) -> None:
        """Test a second breach during a cycle is ignored."""
        assert dashboard.trigger_anomaly(brownout_sample, "first")
        assert not dashboard.trigger_anomaly(stress_sample, "second")
        assert not await dashboard.handle_anomaly(stress_sample, "third")

        await dashboard.wait_for_anomaly()

        assert narrator.calls == ["first"]
        assert len(dashboard.cycles) == 1

    async def test_override_applied_then_reverted(
        self,
        brownout_sample: MetricSample,
    ) -> None:
        """Test the agreed action shapes ticks until the cycle ends."""
        dashboard = GridDashboard(
            narrator=ScriptedNarrator(fixed_action="PREEMPTIVE_STORAGE"),
            generator=TelemetryGenerator(seed=3),
            pacing=PacingConfig(
                narration_stagger_s=0.0,
                consensus_delay_s=0.0,
                revert_delay_s=30.0,
            ),
        )
        dashboard.trigger_anomaly(brownout_sample, "Voltage Drop (-9% limit)")
        await wait_until(lambda: dashboard.manual_override is not None)

        result = dashboard.tick()

        assert dashboard.manual_override == "PREEMPTIVE_STORAGE"
        assert result.anomaly is None
        assert result.sample.battery_discharge == 150.0
        assert result.sample.voltage == pytest.approx(232.0, abs=0.25)

        await dashboard.stop()

        assert dashboard.manual_override is None
        assert not dashboard.is_processing_anomaly
        assert dashboard.status == GridStatus.NORMAL
        assert not dashboard.cycles[-1].completed

    async def test_stress_dials_reset(
        self,
        narrator: ScriptedNarrator,
        stress_sample: MetricSample,
    ) -> None:
        """Test extreme operator dials snap back after recovery."""
        dashboard = GridDashboard(
            narrator=narrator,
            config=SimulationConfig(
                load_multiplier=2.0,
                solar_efficiency=0.2,
                optimization_bias=70,
            ),
            pacing=PacingConfig.immediate(),
        )
        await dashboard.handle_anomaly(stress_sample, "Load Spike (+60% limit)")

        assert dashboard.config.load_multiplier == 1.0
        assert dashboard.config.solar_efficiency == 1.0
        assert dashboard.config.optimization_bias == 70

    async def test_moderate_dials_kept(
        self,
        narrator: ScriptedNarrator,
        stress_sample: MetricSample,
    ) -> None:
        """Test dials within range are left alone."""
        config = SimulationConfig(load_multiplier=1.4, solar_efficiency=0.6)
        dashboard = GridDashboard(
            narrator=narrator, config=config, pacing=PacingConfig.immediate()
        )
        await dashboard.handle_anomaly(stress_sample, "Load Spike (+60% limit)")

        assert dashboard.config == config

    async def test_narrator_failure_ignores(
        self,
        brownout_sample: MetricSample,
    ) -> None:
        """Test a crashing narrator still completes with IGNORE."""
        dashboard = GridDashboard(
            narrator=FailingNarrator(),
            pacing=PacingConfig.immediate(),
        )
        await dashboard.handle_anomaly(brownout_sample, "Voltage Drop (-9% limit)")

        assert "CONSENSUS REACHED: EXECUTING IGNORE" in messages(dashboard)
        assert dashboard.cycles[-1].transcript_lines == 0
        assert not dashboard.is_processing_anomaly


class TestLogs:
    """Tests for the agent terminal."""

    def test_add_log(self, dashboard: GridDashboard) -> None:
        """Test entries are appended in order."""
        entry = dashboard.add_log(AgentRole.SYSTEM, "hello")

        assert dashboard.logs[-1] == entry
        assert entry.status == LogStatus.NEUTRAL

    async def test_cycles_bounded(self, dashboard: GridDashboard) -> None:
        """Test the oldest cycle records are dropped past the cap."""
        sample = dashboard.tick().sample
        for i in range(MAX_CYCLES + 5):
            await dashboard.handle_anomaly(sample, f"reason {i}")

        assert len(dashboard.cycles) == MAX_CYCLES
        assert dashboard.cycles[0].reason == "reason 5"
        assert dashboard.cycles[-1].completed

    def test_logs_bounded(self, dashboard: GridDashboard) -> None:
        """Test the oldest lines are dropped past the cap."""
        for i in range(MAX_LOGS + 20):
            dashboard.add_log(AgentRole.SYSTEM, str(i))

        assert len(dashboard.logs) == MAX_LOGS
        assert dashboard.logs[0].message == "20"


class TestConfiguration:
    """Tests for operator updates."""

    def test_update_config_applies_next_tick(self, dashboard: GridDashboard) -> None:
        """Test new dials are read by the following tick."""
        dashboard.update_config(SimulationConfig(optimization_bias=10))
        samples = [dashboard.tick().sample for _ in range(5)]

        assert all(s.battery_discharge == 0 for s in samples)

    def test_update_thresholds(self, dashboard: GridDashboard) -> None:
        """Test thresholds are replaced."""
        thresholds = AnomalyThresholds(max_co2_intensity=100)
        dashboard.update_thresholds(thresholds)

        assert dashboard.thresholds == thresholds


class TestLiveData:
    """Tests for live provider refresh."""

    @pytest.fixture
    def fuel_mix(self) -> dict[str, Any]:
        """Single-period EIA response."""
        return {
            "response": {
                "data": [
                    {"period": "2025-07-15T14", "fueltype": "SUN", "value": 300},
                    {"period": "2025-07-15T14", "fueltype": "NG", "value": 700},
                ]
            }
        }

    async def test_refresh_seeds_ticks(
        self,
        narrator: ScriptedNarrator,
        fuel_mix: dict[str, Any],
    ) -> None:
        """Test a live seed flows into samples and survives a failed poll."""
        responses = iter([httpx.Response(200, json=fuel_mix), httpx.Response(500)])
        transport = httpx.MockTransport(lambda request: next(responses))

        async with httpx.AsyncClient(transport=transport) as client:
            dashboard = GridDashboard(
                narrator=narrator,
                generator=TelemetryGenerator(seed=5),
                pacing=PacingConfig.immediate(),
                keys=ProviderKeys(eia="key"),
                data_source=DataSource.EIA,
                http_client=client,
            )
            seed = await dashboard.refresh_live_data()
            sample = dashboard.tick().sample

            assert seed is not None
            assert sample.is_live
            assert sample.solar_power == 300.0
            assert sample.grid_supply == 700.0

            assert await dashboard.refresh_live_data() is None
            assert dashboard.last_live_seed == seed

        # 1000 kW of live load browns out the bus and starts a cycle
        await dashboard.wait_for_anomaly()
        dashboard.set_data_source(DataSource.SIMULATION)

        assert dashboard.last_live_seed is None
        assert not dashboard.tick().sample.is_live

    async def test_simulation_skips_fetch(self, dashboard: GridDashboard) -> None:
        """Test the simulation source never polls."""
        assert await dashboard.refresh_live_data() is None
        assert dashboard.last_live_seed is None


class TestReportsAndLoops:
    """Tests for ESG reports and the periodic loops."""

    async def test_esg_report_before_first_tick(
        self, dashboard: GridDashboard
    ) -> None:
        """Test the report uses a neutral placeholder sample."""
        report = await dashboard.generate_esg_report()

        assert "0.0 kg" in report

    async def test_start_and_stop(self, narrator: ScriptedNarrator) -> None:
        """Test the loops tick on their own and stop cleanly."""
        dashboard = GridDashboard(
            narrator=narrator,
            generator=TelemetryGenerator(seed=9),
            pacing=PacingConfig(
                tick_interval_s=0.001,
                live_refresh_interval_s=0.001,
                narration_stagger_s=0.0,
                consensus_delay_s=0.0,
                revert_delay_s=0.0,
            ),
        )
        await dashboard.start()
        assert dashboard.is_running

        await wait_until(lambda: len(dashboard.history) >= 3)
        await dashboard.stop()

        assert not dashboard.is_running
        assert not dashboard.is_processing_anomaly

    async def test_live_loop_survives_refresh_error(
        self, narrator: ScriptedNarrator
    ) -> None:
        """Test one failing poll does not stop later polls."""
        dashboard = GridDashboard(
            narrator=narrator,
            generator=TelemetryGenerator(seed=9),
            pacing=PacingConfig(
                tick_interval_s=10.0,
                live_refresh_interval_s=0.001,
            ),
            data_source=DataSource.EIA,
        )
        calls = 0

        async def flaky_refresh() -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise AttributeError("'str' object has no attribute 'get'")

        dashboard.refresh_live_data = flaky_refresh  # type: ignore[method-assign]
        await dashboard.start()
        try:
            await wait_until(lambda: calls >= 3)
            assert dashboard.is_running
        finally:
            await dashboard.stop()

    async def test_source_switches_keep_one_refresh_task(
        self, narrator: ScriptedNarrator
    ) -> None:
        """Test repeated source switches do not pile up tasks."""
        dashboard = GridDashboard(
            narrator=narrator,
            generator=TelemetryGenerator(seed=9),
            pacing=PacingConfig(tick_interval_s=10.0, live_refresh_interval_s=10.0),
        )
        await dashboard.start()
        try:
            for source in [DataSource.EIA, DataSource.ELECTRICITY_MAPS] * 5:
                dashboard.set_data_source(source)
                await asyncio.sleep(0)

            assert len(dashboard._tasks) == 2
            assert dashboard._refresh_task is not None
        finally:
            await dashboard.stop()

        assert dashboard._refresh_task is None
