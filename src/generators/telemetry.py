"""Synthetic microgrid telemetry generator.

Produces one MetricSample per tick with:
- Day/night solar swing and slower wind swing (sinusoidal)
- A weather cycle that announces fog or low-wind corridors and derates output
- Bias-driven battery dispatch
- Voltage droop under heavy load and frequency sag on low voltage
- Generation-mix weighted cost and CO2 intensity
- A running CO2-avoided total against an 800 g/kWh coal baseline
- Optional live seed overriding the generation mix
- Reproducible via numpy.random.Generator seeds
"""

from __future__ import annotations

import numpy as np
from numpy.random import Generator

from src.domain.models import (
    NOMINAL_FREQUENCY_HZ,
    NOMINAL_VOLTAGE_V,
    LiveSeed,
    MetricSample,
    SimulationConfig,
    SimulatorState,
    WeatherForecast,
)

# Base curve parameters (kW)
BASE_LOAD_KW = 500.0
BASE_SOLAR_KW = 300.0
BASE_WIND_KW = 200.0
MIN_LOAD_KW = 200.0
LOAD_SWING_KW = 100.0

TICK_MS = 2000
PHASE_STEP = 0.05

# Weather bands on the slow cycle
WEATHER_BAND = 0.7
DERATE_BAND = 0.85
FOG_SOLAR_DERATE = 0.4
LOW_WIND_DERATE = 0.3

# Battery dispatch
GREEN_BIAS_THRESHOLD = 60.0
CHEAP_BIAS_THRESHOLD = 40.0
MAX_BIAS_DISCHARGE_KW = 150.0

# Voltage / frequency physics
DROOP_LOAD_KW = 800.0
DROOP_V_PER_KW = 0.15
WEATHER_VOLTAGE_PENALTY_V = 2.0
STIFF_GRID_SUPPLY_KW = 600.0
STIFF_GRID_BONUS_V = 2.0
LOW_VOLTAGE_V = 215.0
LOW_VOLTAGE_FREQUENCY_SAG_HZ = 0.2

# Emission and cost factors per source
GRID_CO2_G_PER_KWH = 400.0
RENEWABLE_CO2_G_PER_KWH = 20.0
GRID_COST_PER_KWH = 0.20
RENEWABLE_COST_PER_KWH = 0.05
BASELINE_CO2_G_PER_KWH = 800.0


def uniform_noise(rng: Generator, amplitude: float) -> float:
    """Zero-centred uniform noise spanning ``amplitude``."""
    return float((rng.random() - 0.5) * amplitude)


def weather_for_cycle(weather_cycle: float) -> WeatherForecast:
    """Map the slow weather signal onto a forecast band."""
    if weather_cycle > WEATHER_BAND:
        return WeatherForecast.FOG_INCOMING
    if weather_cycle < -WEATHER_BAND:
        return WeatherForecast.LOW_WIND_CORRIDOR
    return WeatherForecast.CLEAR


def dispatch_battery(
    previous_kw: float,
    load_kw: float,
    renewable_kw: float,
    optimization_bias: float,
    is_overridden: bool,
) -> float:
    """Decide battery output for this tick.

    Args:
        previous_kw: Battery output held over from the last sample.
        load_kw: Current load.
        renewable_kw: Current solar plus wind.
        optimization_bias: Operator bias (0 cheap, 100 green).
        is_overridden: True while a corrective action is in force.

    Returns:
        Battery discharge in kW.
    """
    if is_overridden:
        return previous_kw
    if optimization_bias > GREEN_BIAS_THRESHOLD and load_kw > renewable_kw:
        return min(MAX_BIAS_DISCHARGE_KW, load_kw - renewable_kw)
    if optimization_bias < CHEAP_BIAS_THRESHOLD:
        return 0.0
    return previous_kw


def advance(
    state: SimulatorState,
    prev: MetricSample | None,
    config: SimulationConfig,
    is_overridden: bool,
    live_seed: LiveSeed | None,
    rng: Generator,
) -> tuple[SimulatorState, MetricSample]:
    """Advance the simulation by one tick.

    Args:
        state: Counters from the previous tick.
        prev: Previous sample, or None at start.
        config: Operator configuration.
        is_overridden: True while a corrective action is in force.
        live_seed: Optional live values replacing the synthetic mix.
        rng: Noise source.

    Returns:
        Tuple of (next state, new sample).
    """
    timestamp_ms = state.timestamp_ms + TICK_MS
    phase = state.phase_offset + PHASE_STEP

    time_of_day = float(np.sin(phase)) * 0.5 + 0.5

    # Weather forecast
    weather_cycle = float(np.sin(phase * 0.5))
    weather = weather_for_cycle(weather_cycle)

    solar_eff = config.solar_efficiency
    wind_eff = config.wind_efficiency
    if weather_cycle > DERATE_BAND:
        solar_eff *= FOG_SOLAR_DERATE
    if weather_cycle < -DERATE_BAND:
        wind_eff *= LOW_WIND_DERATE

    # Generation physics
    solar = max(
        0.0, BASE_SOLAR_KW * time_of_day * solar_eff + uniform_noise(rng, 20)
    )
    wind = max(
        0.0,
        BASE_WIND_KW * abs(float(np.cos(phase * 0.3))) * wind_eff
        + uniform_noise(rng, 50),
    )
    load = max(
        MIN_LOAD_KW,
        (BASE_LOAD_KW + float(np.sin(phase * 2)) * LOAD_SWING_KW)
        * config.load_multiplier
        + uniform_noise(rng, 15),
    )

    grid_supply = 0.0
    co2_intensity = 0.0

    if live_seed is not None:
        solar = live_seed.solar_power if live_seed.solar_power is not None else solar
        wind = live_seed.wind_power if live_seed.wind_power is not None else wind
        # Load multiplier still applies so operators can stress-test live data
        seed_load = (
            live_seed.load_demand if live_seed.load_demand is not None else load
        )
        load = seed_load * config.load_multiplier
        grid_supply = live_seed.grid_supply or 0.0
        co2_intensity = live_seed.co2_intensity or 0.0

    renewable = solar + wind
    battery = dispatch_battery(
        previous_kw=prev.battery_discharge if prev is not None else 0.0,
        load_kw=load,
        renewable_kw=renewable,
        optimization_bias=config.optimization_bias,
        is_overridden=is_overridden,
    )

    if live_seed is None:
        grid_supply = max(0.0, load - renewable - battery)

    # Voltage physics apply to both simulated and live mixes
    target_voltage = NOMINAL_VOLTAGE_V
    if load > DROOP_LOAD_KW:
        target_voltage -= (load - DROOP_LOAD_KW) * DROOP_V_PER_KW
    if weather != WeatherForecast.CLEAR:
        target_voltage -= WEATHER_VOLTAGE_PENALTY_V
    if live_seed is not None and grid_supply > STIFF_GRID_SUPPLY_KW:
        target_voltage += STIFF_GRID_BONUS_V
    voltage = target_voltage + uniform_noise(rng, 2)

    frequency = NOMINAL_FREQUENCY_HZ + uniform_noise(rng, 0.05)
    if voltage < LOW_VOLTAGE_V:
        frequency -= LOW_VOLTAGE_FREQUENCY_SAG_HZ

    # Economics & CO2
    total_supply = renewable + grid_supply + battery
    divisor = total_supply or 1.0
    if live_seed is None:
        co2_intensity = (
            grid_supply * GRID_CO2_G_PER_KWH + renewable * RENEWABLE_CO2_G_PER_KWH
        ) / divisor
    cost = (
        grid_supply * GRID_COST_PER_KWH + renewable * RENEWABLE_COST_PER_KWH
    ) / divisor

    baseline_co2 = load * BASELINE_CO2_G_PER_KWH
    actual_co2 = total_supply * co2_intensity
    saved_kg = max(0.0, (baseline_co2 - actual_co2) / 1000)
    accumulated = state.accumulated_co2_saved + saved_kg

    next_state = SimulatorState(
        timestamp_ms=timestamp_ms,
        phase_offset=phase,
        accumulated_co2_saved=accumulated,
    )
    sample = MetricSample(
        timestamp_ms=timestamp_ms,
        load_demand=round(load, 2),
        solar_power=round(solar, 2),
        wind_power=round(wind, 2),
        grid_supply=round(grid_supply, 2),
        battery_discharge=round(battery, 2),
        voltage=round(voltage, 2),
        frequency=round(frequency, 2),
        co2_intensity=round(co2_intensity, 1),
        cost_per_kwh=round(cost, 3),
        weather_forecast=weather,
        accumulated_co2_saved=round(accumulated, 1),
        is_live=live_seed is not None,
    )
    return next_state, sample


class TelemetryGenerator:
    """Generates synthetic grid telemetry one tick at a time.

    All power values are in kW. Each instance owns its own counters and
    noise source, so independent simulations do not interfere.
    """

    def __init__(
        self,
        seed: int | None = None,
        start_time_ms: int = 0,
        state: SimulatorState | None = None,
    ) -> None:
        """Initialize the telemetry generator.

        Args:
            seed: Random seed for reproducibility.
            start_time_ms: Epoch milliseconds of the tick before the first.
            state: Resume from existing counters instead of starting fresh.
        """
        self.state = state or SimulatorState(timestamp_ms=start_time_ms)
        self._rng: Generator = np.random.default_rng(seed)

    @property
    def rng(self) -> Generator:
        """Noise source shared with corrective actions."""
        return self._rng

    @property
    def accumulated_co2_saved(self) -> float:
        """Unrounded CO2 avoided since this generator started (kg)."""
        return self.state.accumulated_co2_saved

    def next_sample(
        self,
        prev: MetricSample | None,
        config: SimulationConfig,
        is_overridden: bool = False,
        live_seed: LiveSeed | None = None,
    ) -> MetricSample:
        """Generate the next sample and advance internal counters.

        Args:
            prev: Previous sample, or None at start.
            config: Operator configuration.
            is_overridden: True while a corrective action is in force.
            live_seed: Optional live values replacing the synthetic mix.

        Returns:
            The new MetricSample.
        """
        self.state, sample = advance(
            self.state, prev, config, is_overridden, live_seed, self._rng
        )
        return sample

    def generate_series(
        self,
        ticks: int,
        config: SimulationConfig | None = None,
    ) -> list[MetricSample]:
        """Generate a run of purely synthetic samples.

        Args:
            ticks: Number of samples.
            config: Operator configuration (defaults if None).

        Returns:
            List of samples in tick order.
        """
        config = config or SimulationConfig()
        samples: list[MetricSample] = []
        prev: MetricSample | None = None
        for _ in range(ticks):
            prev = self.next_sample(prev, config)
            samples.append(prev)
        return samples
