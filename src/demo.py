"""Demo module for showcasing the GreenGrid monitor.

Runs the dashboard headless with the scripted narrator and zero pacing
delays, so a stress scenario plays out in well under a second with no
network access.

Usage:
    python -m src.demo --ticks 120 --load-multiplier 1.8

Or in Python:
    from src.demo import run_stress_demo
    results = run_stress_demo()
"""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.domain.models import (
    AgentLogEntry,
    AnomalyThresholds,
    MetricSample,
    SimulationConfig,
)
from src.generators import TelemetryGenerator
from src.metrics import WindowMetrics
from src.narration import ScriptedNarrator
from src.runtime import AnomalyCycle, GridDashboard, PacingConfig
from src.visualization import create_telemetry_dashboard


@dataclass
class DemoConfig:
    """Configuration for the headless demo.

    Attributes:
        ticks: Number of telemetry ticks to run.
        seed: Random seed for reproducibility.
        optimization_bias: 0 = cheapest, 100 = greenest.
        load_multiplier: Load stress multiplier.
        solar_efficiency: Solar efficiency multiplier.
    """

    ticks: int = 120
    seed: int = 42
    optimization_bias: float = 50.0
    load_multiplier: float = 1.0
    solar_efficiency: float = 1.0


@dataclass
class DemoResults:
    """Results from a headless run.

    Attributes:
        samples: Every sample produced, in tick order.
        cycles: Anomaly cycles started during the run.
        logs: Agent terminal lines.
        thresholds: Thresholds in force.
        esg_report: ESG summary for the final sample.
    """

    samples: list[MetricSample] = field(default_factory=list)
    cycles: list[AnomalyCycle] = field(default_factory=list)
    logs: list[AgentLogEntry] = field(default_factory=list)
    thresholds: AnomalyThresholds = field(default_factory=AnomalyThresholds)
    esg_report: str = ""

    @property
    def window(self) -> WindowMetrics:
        """Aggregates over the whole run."""
        return WindowMetrics.from_samples(self.samples)

    @property
    def actions(self) -> Counter[str]:
        """How often each corrective action was executed."""
        return Counter(c.action for c in self.cycles if c.action is not None)

    def print_summary(self) -> None:
        """Print a summary of demo results to console."""
        window = self.window
        final = self.samples[-1] if self.samples else None

        print("\n" + "=" * 60)
        print("GreenGrid Monitor Demo Results")
        print("=" * 60)

        print("\nTelemetry:")
        print(f"   - Ticks: {window.sample_count}")
        print(
            f"   - Mean / Peak Load: {window.mean_load_kw:.0f} / "
            f"{window.peak_load_kw:.0f} kW"
        )
        print(f"   - Renewable Share: {window.renewable_share:.1%}")
        print(f"   - Battery Share: {window.battery_share:.1%}")
        print(f"   - Min Voltage: {window.min_voltage:.2f} V")
        if final is not None:
            print(f"   - CO2 Avoided: {final.accumulated_co2_saved:,.1f} kg")

        print("\nAnomalies:")
        print(f"   - Cycles: {len(self.cycles)}")
        for action, count in sorted(self.actions.items()):
            print(f"   - {action}: {count}")

        if self.esg_report:
            print("\nESG Report:")
            print(f"   {self.esg_report}")
        print("=" * 60 + "\n")

    def plot_dashboard(self, save_path: str | Path | None = None) -> Any:
        """Generate and optionally save the telemetry dashboard."""
        fig = create_telemetry_dashboard(
            self.samples,
            thresholds=self.thresholds,
            title="GreenGrid Stress Run",
            save_path=save_path,
        )
        if save_path:
            print(f"Dashboard saved to {save_path}")
        return fig


async def run_stress_demo_async(config: DemoConfig | None = None) -> DemoResults:
    """Run the demo inside an existing event loop."""
    if config is None:
        config = DemoConfig()

    dashboard = GridDashboard(
        narrator=ScriptedNarrator(),
        generator=TelemetryGenerator(seed=config.seed),
        config=SimulationConfig(
            optimization_bias=config.optimization_bias,
            load_multiplier=config.load_multiplier,
            solar_efficiency=config.solar_efficiency,
        ),
        pacing=PacingConfig.immediate(),
        max_history=max(config.ticks, 1),
    )

    results = await dashboard.run_ticks(config.ticks, wait_for_cycles=False)
    await dashboard.wait_for_anomaly()
    report = await dashboard.generate_esg_report()

    return DemoResults(
        samples=[r.sample for r in results],
        cycles=list(dashboard.cycles),
        logs=list(dashboard.logs),
        thresholds=dashboard.thresholds,
        esg_report=report,
    )


def run_stress_demo(config: DemoConfig | None = None) -> DemoResults:
    """Run a headless stress scenario.

    Args:
        config: Optional demo configuration. Uses defaults if not provided.

    Returns:
        DemoResults with samples, anomaly cycles and logs.

    Example:
        >>> results = run_stress_demo(DemoConfig(load_multiplier=1.8))
        >>> results.print_summary()
    """
    return asyncio.run(run_stress_demo_async(config))


def main() -> None:
    """Main entry point for running the demo from command line."""
    import argparse

    parser = argparse.ArgumentParser(description="GreenGrid Monitor Demo")
    parser.add_argument(
        "--ticks",
        type=int,
        default=120,
        help="Number of ticks to simulate (default: 120)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )
    parser.add_argument(
        "--bias",
        type=float,
        default=50.0,
        help="Optimization bias, 0 = cheapest, 100 = greenest (default: 50)",
    )
    parser.add_argument(
        "--load-multiplier",
        type=float,
        default=1.0,
        help="Load stress multiplier (default: 1.0)",
    )
    parser.add_argument(
        "--solar-efficiency",
        type=float,
        default=1.0,
        help="Solar efficiency multiplier (default: 1.0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for charts",
    )

    args = parser.parse_args()

    config = DemoConfig(
        ticks=args.ticks,
        seed=args.seed,
        optimization_bias=args.bias,
        load_multiplier=args.load_multiplier,
        solar_efficiency=args.solar_efficiency,
    )

    results = run_stress_demo(config)
    results.print_summary()

    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        results.plot_dashboard(output_dir / "telemetry.png")


if __name__ == "__main__":
    main()
