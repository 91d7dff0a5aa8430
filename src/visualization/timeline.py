"""Telemetry timeline charts.

Generates plots for:
- Energy mix over the window (load, grid, solar, wind, storage)
- Voltage against the configured floor
- CO2 intensity and running CO2 avoided
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from src.domain.models import NOMINAL_VOLTAGE_V

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.domain.models import AnomalyThresholds, MetricSample


@dataclass
class TimelinePlotConfig:
    """Configuration for telemetry plots.

    Attributes:
        figsize: Figure size (width, height) in inches.
        dpi: Dots per inch for figure resolution.
        colors: Color scheme for each series.
        title_fontsize: Font size for plot titles.
        label_fontsize: Font size for axis labels.
        legend_fontsize: Font size for legend.
        grid_alpha: Alpha value for grid lines.
        save_format: Format for saving figures.
    """

    figsize: tuple[float, float] = (14, 10)
    dpi: int = 100
    colors: dict[str, str] = field(
        default_factory=lambda: {
            "load": "#EF4444",
            "grid": "#737373",
            "solar": "#F59E0B",
            "wind": "#10B981",
            "storage": "#3B82F6",
            "voltage": "#1abc9c",
            "limit": "#c0392b",
            "co2": "#34495e",
            "saved": "#2ecc71",
        }
    )
    title_fontsize: int = 14
    label_fontsize: int = 12
    legend_fontsize: int = 10
    grid_alpha: float = 0.3
    save_format: str = "png"


class TelemetryChart:
    """Charts for the rolling telemetry window.

    Example:
        ```python
        chart = TelemetryChart()
        fig = chart.plot_dashboard(dashboard.history, dashboard.thresholds)
        fig.savefig("grid.png")
        ```
    """

    def __init__(self, config: TimelinePlotConfig | None = None) -> None:
        """Initialize the chart helper.

        Args:
            config: Plot configuration options.
        """
        self.config = config or TimelinePlotConfig()

    def plot_energy_mix(
        self,
        samples: Sequence[MetricSample],
        ax: plt.Axes | None = None,
        show_legend: bool = True,
    ) -> plt.Axes:
        """Plot load against each supply source.

        Args:
            samples: Samples in tick order.
            ax: Matplotlib axes to plot on (creates new if None).
            show_legend: Whether to show the legend.

        Returns:
            Matplotlib axes with the plot.
        """
        if ax is None:
            _, ax = plt.subplots(figsize=(12, 6))

        ticks = list(range(len(samples)))
        colors = self.config.colors
        series = {
            "load": ("Load", [s.load_demand for s in samples]),
            "grid": ("Grid", [s.grid_supply for s in samples]),
            "solar": ("Solar", [s.solar_power for s in samples]),
            "wind": ("Wind", [s.wind_power for s in samples]),
            "storage": ("Storage", [s.battery_discharge for s in samples]),
        }

        for key, (label, values) in series.items():
            ax.plot(
                ticks,
                values,
                color=colors[key],
                linewidth=2 if key == "load" else 1.5,
                label=label,
            )

        ax.set_xlabel("Tick", fontsize=self.config.label_fontsize)
        ax.set_ylabel("Power (kW)", fontsize=self.config.label_fontsize)
        ax.set_title("Energy Mix (Real-Time)", fontsize=self.config.title_fontsize)
        if len(samples) > 1:
            ax.set_xlim(0, len(samples) - 1)
        ax.set_ylim(bottom=0)
        ax.grid(True, alpha=self.config.grid_alpha)

        if show_legend:
            ax.legend(loc="upper right", fontsize=self.config.legend_fontsize)

        return ax

    def plot_voltage(
        self,
        samples: Sequence[MetricSample],
        min_voltage: float | None = None,
        ax: plt.Axes | None = None,
    ) -> plt.Axes:
        """Plot bus voltage with nominal and floor reference lines.

        Args:
            samples: Samples in tick order.
            min_voltage: Anomaly floor to draw (optional).
            ax: Matplotlib axes to plot on (creates new if None).

        Returns:
            Matplotlib axes with the plot.
        """
        if ax is None:
            _, ax = plt.subplots(figsize=(12, 4))

        ticks = list(range(len(samples)))
        colors = self.config.colors

        ax.plot(
            ticks,
            [s.voltage for s in samples],
            color=colors["voltage"],
            linewidth=2,
            marker="s",
            markersize=3,
            label="Voltage",
        )
        ax.axhline(y=NOMINAL_VOLTAGE_V, color="gray", linestyle="-", linewidth=0.5)
        if min_voltage is not None:
            ax.axhline(
                y=min_voltage,
                color=colors["limit"],
                linestyle="--",
                linewidth=1.5,
                label=f"Floor ({min_voltage:.1f} V)",
            )

        ax.set_xlabel("Tick", fontsize=self.config.label_fontsize)
        ax.set_ylabel("Voltage (V)", fontsize=self.config.label_fontsize)
        ax.set_title("Bus Voltage", fontsize=self.config.title_fontsize)
        ax.grid(True, alpha=self.config.grid_alpha)
        ax.legend(loc="lower right", fontsize=self.config.legend_fontsize)

        return ax

    def plot_emissions(
        self,
        samples: Sequence[MetricSample],
        max_co2: float | None = None,
        ax: plt.Axes | None = None,
    ) -> plt.Axes:
        """Plot CO2 intensity with the running CO2 avoided on a twin axis.

        Args:
            samples: Samples in tick order.
            max_co2: CO2 intensity limit to draw (optional).
            ax: Matplotlib axes to plot on (creates new if None).

        Returns:
            Matplotlib axes with the plot.
        """
        if ax is None:
            _, ax = plt.subplots(figsize=(12, 4))

        ticks = list(range(len(samples)))
        colors = self.config.colors

        ax.plot(
            ticks,
            [s.co2_intensity for s in samples],
            color=colors["co2"],
            linewidth=1.5,
            label="CO2 Intensity",
        )
        if max_co2 is not None:
            ax.axhline(y=max_co2, color=colors["limit"], linestyle="--", linewidth=1.5)
        ax.set_xlabel("Tick", fontsize=self.config.label_fontsize)
        ax.set_ylabel("g/kWh", fontsize=self.config.label_fontsize)
        ax.set_title("Emissions", fontsize=self.config.title_fontsize)
        ax.grid(True, alpha=self.config.grid_alpha)

        twin = ax.twinx()
        twin.plot(
            ticks,
            [s.accumulated_co2_saved for s in samples],
            color=colors["saved"],
            linestyle="--",
            linewidth=1.5,
        )
        twin.set_ylabel("CO2 Avoided (kg)", fontsize=self.config.label_fontsize)

        return ax

    def plot_dashboard(
        self,
        samples: Sequence[MetricSample],
        thresholds: AnomalyThresholds | None = None,
        title: str = "GreenGrid Telemetry",
        save_path: str | Path | None = None,
    ) -> Figure:
        """Create a three-panel dashboard figure.

        Args:
            samples: Samples in tick order.
            thresholds: Limits drawn as reference lines (optional).
            title: Main title for the dashboard.
            save_path: Path to save the figure (optional).

        Returns:
            Matplotlib Figure object.
        """
        fig, axes = plt.subplots(
            3,
            1,
            figsize=self.config.figsize,
            height_ratios=[2, 1, 1],
        )

        self.plot_energy_mix(samples, ax=axes[0])
        self.plot_voltage(
            samples,
            min_voltage=thresholds.min_voltage if thresholds else None,
            ax=axes[1],
        )
        self.plot_emissions(
            samples,
            max_co2=thresholds.max_co2_intensity if thresholds else None,
            ax=axes[2],
        )

        fig.suptitle(title, fontsize=self.config.title_fontsize + 2, fontweight="bold")
        plt.tight_layout()

        if save_path:
            fig.savefig(
                save_path,
                dpi=self.config.dpi,
                format=self.config.save_format,
                bbox_inches="tight",
            )

        return fig


def create_telemetry_dashboard(
    samples: Sequence[MetricSample],
    thresholds: AnomalyThresholds | None = None,
    title: str = "GreenGrid Telemetry",
    save_path: str | Path | None = None,
) -> Figure:
    """Convenience function to create the telemetry dashboard figure.

    Args:
        samples: Samples in tick order.
        thresholds: Limits drawn as reference lines.
        title: Title for the visualization.
        save_path: Path to save the figure.

    Returns:
        Matplotlib Figure object.
    """
    return TelemetryChart().plot_dashboard(
        samples, thresholds=thresholds, title=title, save_path=save_path
    )
