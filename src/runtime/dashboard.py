"""Live dashboard runtime.

Drives the monitor from a single asyncio event loop:
- A tick loop advances telemetry (1 s by default)
- A live loop refreshes provider data (20 s by default)
- Anomaly handling staggers the agent transcript, applies the agreed
  corrective action, and reverts it after a fixed delay

All state lives on one GridDashboard instance and is only touched from the
loop, so no locking is needed. At most one anomaly cycle runs at a time;
breaches raised while one is in flight are dropped.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass

import httpx

from src.anomaly.detector import Anomaly, evaluate_anomaly
from src.domain.models import (
    NOMINAL_FREQUENCY_HZ,
    NOMINAL_VOLTAGE_V,
    AgentLogEntry,
    AgentRole,
    AnomalyThresholds,
    DataSource,
    GridStatus,
    LiveSeed,
    LogStatus,
    MetricSample,
    NarrationResult,
    SimulationConfig,
)
from src.generators.corrective import apply_corrective_action
from src.generators.telemetry import TelemetryGenerator
from src.live import ProviderKeys, fetch_live_seed
from src.narration.service import Narrator

logger = logging.getLogger(__name__)

MAX_HISTORY = 60
MAX_LOGS = 500
MAX_CYCLES = 200

# Operator dials snapped back once stability is restored
LOAD_MULTIPLIER_RESET_ABOVE = 1.5
SOLAR_EFFICIENCY_RESET_BELOW = 0.5


@dataclass
class PacingConfig:
    """Timer intervals and UI pacing delays, in seconds.

    Attributes:
        tick_interval_s: Wall-clock time between telemetry ticks.
        live_refresh_interval_s: Time between live provider polls.
        narration_stagger_s: Delay between transcript lines.
        consensus_delay_s: Pause after the last line before acting.
        revert_delay_s: How long a corrective action stays in force.
    """

    tick_interval_s: float = 1.0
    live_refresh_interval_s: float = 20.0
    narration_stagger_s: float = 1.2
    consensus_delay_s: float = 1.0
    revert_delay_s: float = 5.0

    @classmethod
    def immediate(cls) -> PacingConfig:
        """Zero delays, for tests and headless runs."""
        return cls(
            tick_interval_s=0.0,
            live_refresh_interval_s=0.0,
            narration_stagger_s=0.0,
            consensus_delay_s=0.0,
            revert_delay_s=0.0,
        )


@dataclass
class TickResult:
    """Outcome of a single tick.

    Attributes:
        sample: Sample appended to history.
        anomaly: Breach detected this tick, if any.
        handling_started: True if the breach started a new anomaly cycle.
    """

    sample: MetricSample
    anomaly: Anomaly | None = None
    handling_started: bool = False


@dataclass
class AnomalyCycle:
    """Record of one completed or in-flight anomaly cycle."""

    reason: str
    started_at_ms: int
    action: str | None = None
    transcript_lines: int = 0
    completed: bool = False


class GridDashboard:
    """Stateful monitor combining generator, detector, adapters and narrator.

    Example:
        ```python
        dashboard = GridDashboard(narrator=ScriptedNarrator())
        await dashboard.start()
        ...
        await dashboard.stop()
        ```
    """

    def __init__(
        self,
        narrator: Narrator,
        generator: TelemetryGenerator | None = None,
        config: SimulationConfig | None = None,
        thresholds: AnomalyThresholds | None = None,
        pacing: PacingConfig | None = None,
        keys: ProviderKeys | None = None,
        data_source: DataSource = DataSource.SIMULATION,
        http_client: httpx.AsyncClient | None = None,
        max_history: int = MAX_HISTORY,
    ) -> None:
        """Initialize the dashboard.

        Args:
            narrator: Backend for the agent negotiation and ESG report.
            generator: Telemetry generator (a fresh unseeded one if None).
            config: Initial operator configuration.
            thresholds: Initial anomaly thresholds.
            pacing: Timer intervals and pacing delays.
            keys: Live provider API keys.
            data_source: Initial data source.
            http_client: Shared client for live provider calls.
            max_history: Number of samples kept for display.
        """
        self.narrator = narrator
        self.generator = generator or TelemetryGenerator(
            start_time_ms=int(time.time() * 1000)
        )
        self.config = config or SimulationConfig()
        self.thresholds = thresholds or AnomalyThresholds()
        self.pacing = pacing or PacingConfig()
        self.keys = keys or ProviderKeys()
        self.data_source = data_source
        self.status = GridStatus.NORMAL
        self.manual_override: str | None = None
        self.last_live_seed: LiveSeed | None = None
        self.is_processing_anomaly = False

        self.history: deque[MetricSample] = deque(maxlen=max_history)
        self.logs: deque[AgentLogEntry] = deque(maxlen=MAX_LOGS)
        self.cycles: deque[AnomalyCycle] = deque(maxlen=MAX_CYCLES)

        self._http_client = http_client
        self._tasks: list[asyncio.Task[None]] = []
        self._refresh_task: asyncio.Task[None] | None = None
        self._anomaly_task: asyncio.Task[None] | None = None

    # =========================================================================
    # State accessors
    # =========================================================================

    @property
    def latest(self) -> MetricSample | None:
        """Most recent sample, or None before the first tick."""
        return self.history[-1] if self.history else None

    @property
    def is_running(self) -> bool:
        """True while the periodic loops are active."""
        return any(not task.done() for task in self._tasks)

    def current_sample(self) -> MetricSample:
        """Latest sample, or a neutral placeholder before the first tick."""
        if self.history:
            return self.history[-1]
        return MetricSample(
            timestamp_ms=int(time.time() * 1000),
            load_demand=0.0,
            solar_power=0.0,
            wind_power=0.0,
            grid_supply=0.0,
            battery_discharge=0.0,
            voltage=NOMINAL_VOLTAGE_V,
            frequency=NOMINAL_FREQUENCY_HZ,
        )

    def add_log(
        self,
        role: AgentRole,
        message: str,
        status: LogStatus = LogStatus.NEUTRAL,
    ) -> AgentLogEntry:
        """Append a line to the agent terminal."""
        entry = AgentLogEntry(role=role, message=message, status=status)
        self.logs.append(entry)
        return entry

    def update_config(self, config: SimulationConfig) -> None:
        """Replace the operator configuration; read on the next tick."""
        self.config = config

    def update_thresholds(self, thresholds: AnomalyThresholds) -> None:
        """Replace the anomaly thresholds; read on the next tick."""
        self.thresholds = thresholds

    def set_data_source(
        self,
        source: DataSource,
        keys: ProviderKeys | None = None,
    ) -> None:
        """Switch data source and optionally provider keys.

        Switching to SIMULATION drops any cached live seed. When the loops
        are running a refresh is scheduled right away.
        """
        self.data_source = source
        if keys is not None:
            self.keys = keys
        if source == DataSource.SIMULATION:
            self.last_live_seed = None
        elif self.is_running:
            if self._refresh_task is not None and not self._refresh_task.done():
                self._refresh_task.cancel()
            self._refresh_task = asyncio.create_task(self._refresh_once())
        logger.info("Data source set to %s", source.value)

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self) -> TickResult:
        """Advance telemetry by one step and check thresholds.

        Must be called from within the running event loop when a breach can
        start an anomaly cycle.
        """
        previous = self.latest
        live_seed = (
            self.last_live_seed if self.data_source != DataSource.SIMULATION else None
        )

        sample = self.generator.next_sample(
            previous,
            self.config,
            is_overridden=self.manual_override is not None,
            live_seed=live_seed,
        )
        if self.manual_override is not None:
            sample = apply_corrective_action(
                sample, self.manual_override, self.generator.rng
            )

        anomaly = None
        started = False
        if not self.is_processing_anomaly and self.manual_override is None:
            anomaly = evaluate_anomaly(sample, previous, self.thresholds)
            if anomaly is not None:
                started = self.trigger_anomaly(sample, anomaly.reason)

        self.history.append(sample)
        return TickResult(sample=sample, anomaly=anomaly, handling_started=started)

    # =========================================================================
    # Anomaly handling
    # =========================================================================

    def trigger_anomaly(self, sample: MetricSample, reason: str) -> bool:
        """Start an anomaly cycle in the background.

        Returns:
            False if a cycle is already in flight and the trigger was dropped.
        """
        if self.is_processing_anomaly:
            logger.debug("Anomaly %r dropped; cycle already in flight", reason)
            return False
        cycle = self._begin_cycle(sample, reason)
        self._anomaly_task = asyncio.create_task(
            self._run_cycle(cycle, sample, reason)
        )
        return True

    async def handle_anomaly(self, sample: MetricSample, reason: str) -> bool:
        """Run a full anomaly cycle and wait for it to finish.

        Returns:
            False if a cycle was already in flight and this one was dropped.
        """
        if self.is_processing_anomaly:
            logger.debug("Anomaly %r dropped; cycle already in flight", reason)
            return False
        cycle = self._begin_cycle(sample, reason)
        await self._run_cycle(cycle, sample, reason)
        return True

    async def wait_for_anomaly(self) -> None:
        """Wait for the background anomaly cycle, if any, to complete."""
        if self._anomaly_task is not None:
            await self._anomaly_task

    def _begin_cycle(self, sample: MetricSample, reason: str) -> AnomalyCycle:
        self.is_processing_anomaly = True
        self.status = GridStatus.OPTIMIZING
        cycle = AnomalyCycle(reason=reason, started_at_ms=sample.timestamp_ms)
        self.cycles.append(cycle)
        logger.warning("Anomaly detected: %s", reason)
        self.add_log(
            AgentRole.SYSTEM,
            f"ANOMALY DETECTED: {reason}. Triggering Multi-Agent Negotiation...",
            LogStatus.FAILURE,
        )
        return cycle

    async def _narrate(self, sample: MetricSample, reason: str) -> NarrationResult:
        try:
            return await self.narrator.narrate_anomaly(
                sample, reason, self.thresholds, self.config.optimization_bias
            )
        except Exception:
            logger.exception("Narrator failed; continuing with no transcript")
            return NarrationResult()

    async def _run_cycle(
        self, cycle: AnomalyCycle, sample: MetricSample, reason: str
    ) -> None:
        try:
            result = await self._narrate(sample, reason)
            cycle.transcript_lines = len(result.logs)

            for entry in result.logs:
                self.logs.append(entry)
                await asyncio.sleep(self.pacing.narration_stagger_s)
            await asyncio.sleep(self.pacing.consensus_delay_s)

            action = result.recommended_action
            cycle.action = action
            self.add_log(
                AgentRole.SYSTEM,
                f"CONSENSUS REACHED: EXECUTING {action}",
                LogStatus.SUCCESS,
            )
            self.manual_override = action
            logger.info("Executing corrective action %s", action)

            await asyncio.sleep(self.pacing.revert_delay_s)
            self.add_log(AgentRole.SYSTEM, "Stability restored. Agents standing by.")
            self._reset_operator_dials()
            cycle.completed = True
        finally:
            self.manual_override = None
            self.is_processing_anomaly = False
            self.status = GridStatus.NORMAL

    def _reset_operator_dials(self) -> None:
        updates: dict[str, float] = {}
        if self.config.load_multiplier > LOAD_MULTIPLIER_RESET_ABOVE:
            updates["load_multiplier"] = 1.0
        if self.config.solar_efficiency < SOLAR_EFFICIENCY_RESET_BELOW:
            updates["solar_efficiency"] = 1.0
        if updates:
            self.config = self.config.model_copy(update=updates)

    # =========================================================================
    # Live data
    # =========================================================================

    async def refresh_live_data(self) -> LiveSeed | None:
        """Poll the selected provider and cache a successful result.

        A failed poll keeps the previous seed so the generator keeps using
        the last good mix.
        """
        if self.data_source == DataSource.SIMULATION:
            self.last_live_seed = None
            return None

        seed = await fetch_live_seed(self.data_source, self.keys, self._http_client)
        if seed is not None:
            self.last_live_seed = seed
        else:
            logger.info("No live data from %s this cycle", self.data_source.value)
        return seed

    async def _refresh_once(self) -> None:
        try:
            await self.refresh_live_data()
        except Exception:
            logger.exception("Live refresh failed; keeping last seed")

    # =========================================================================
    # ESG report
    # =========================================================================

    async def generate_esg_report(self) -> str:
        """Compliance summary for the current sample."""
        return await self.narrator.generate_esg_report(self.current_sample())

    # =========================================================================
    # Loops
    # =========================================================================

    async def _tick_loop(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self.pacing.tick_interval_s)

    async def _live_loop(self) -> None:
        while True:
            await self._refresh_once()
            await asyncio.sleep(self.pacing.live_refresh_interval_s)

    async def start(self) -> None:
        """Start the tick and live-data loops."""
        if self.is_running:
            return
        self._tasks = [
            asyncio.create_task(self._tick_loop()),
            asyncio.create_task(self._live_loop()),
        ]
        logger.info(
            "Dashboard started (tick %.1fs, live refresh %.1fs)",
            self.pacing.tick_interval_s,
            self.pacing.live_refresh_interval_s,
        )

    async def stop(self) -> None:
        """Cancel all loops and any in-flight anomaly cycle."""
        tasks = list(self._tasks)
        for extra in (self._refresh_task, self._anomaly_task):
            if extra is not None:
                tasks.append(extra)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
        self._refresh_task = None
        self._anomaly_task = None
        logger.info("Dashboard stopped")

    async def run_ticks(
        self, ticks: int, wait_for_cycles: bool = True
    ) -> list[TickResult]:
        """Run a fixed number of ticks without the wall-clock loop.

        Args:
            ticks: Number of ticks to run.
            wait_for_cycles: Let each anomaly cycle finish before the next
                tick instead of overlapping it with later ticks.

        Returns:
            Result of each tick.
        """
        results = []
        for _ in range(ticks):
            result = self.tick()
            results.append(result)
            if wait_for_cycles and result.handling_started:
                await self.wait_for_anomaly()
            else:
                await asyncio.sleep(0)
        return results
