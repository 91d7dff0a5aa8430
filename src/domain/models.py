"""Core domain models for the GreenGrid smart-grid monitor.

All models use Pydantic with strict validation. Units follow the microgrid
dashboard conventions:
- Power: kW (kilowatts)
- Voltage: V, nominal 230 V
- Frequency: Hz, nominal 50 Hz
- CO2 intensity: g/kWh
- CO2 savings: kg
- Time: epoch milliseconds, one tick advances 2 s of simulated time
"""

from datetime import datetime
from enum import Enum
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Type Aliases with Validation
# =============================================================================

PowerKW = Annotated[float, Field(ge=0, description="Power in kilowatts (kW)")]
VoltageV = Annotated[float, Field(description="Bus voltage in volts (V)")]
FrequencyHz = Annotated[float, Field(description="Grid frequency in hertz (Hz)")]
Co2Intensity = Annotated[float, Field(ge=0, description="CO2 intensity in g/kWh")]
Efficiency = Annotated[float, Field(ge=0, description="Efficiency multiplier")]
Percent = Annotated[float, Field(ge=0, le=100, description="Percentage (0-100)")]

NOMINAL_VOLTAGE_V = 230.0
NOMINAL_FREQUENCY_HZ = 50.0
NOMINAL_LOAD_KW = 500.0


# =============================================================================
# Enums
# =============================================================================


class WeatherForecast(str, Enum):
    """Short-range weather outlook driving renewable derating."""

    CLEAR = "CLEAR"
    FOG_INCOMING = "FOG_INCOMING"  # Solar derate ahead
    LOW_WIND_CORRIDOR = "LOW_WIND_CORRIDOR"  # Wind derate ahead


class CorrectiveAction(str, Enum):
    """Corrective actions the negotiation can settle on."""

    DISPATCH_BATTERY = "DISPATCH_BATTERY"
    CURTAIL_LOAD = "CURTAIL_LOAD"
    BOOST_TURBINE = "BOOST_TURBINE"
    PREEMPTIVE_STORAGE = "PREEMPTIVE_STORAGE"
    IGNORE = "IGNORE"  # Neutral default when no consensus was reached


class GridStatus(str, Enum):
    """Overall dashboard status."""

    NORMAL = "NORMAL"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    OPTIMIZING = "OPTIMIZING"


class DataSource(str, Enum):
    """Where generation mix values come from."""

    SIMULATION = "SIMULATION"
    ELECTRICITY_MAPS = "ELECTRICITY_MAPS"
    EIA = "EIA"


class AgentRole(str, Enum):
    """Speaker of a log line in the agent terminal."""

    GRID_MANAGER = "Grid_Manager"
    OPTIMIZATION_WRITER = "Optimization_Writer"
    SAFETY_CRITIC = "Safety_Critic"
    WEATHER_FORECASTER = "Weather_Forecaster"
    ESG_AUDITOR = "ESG_Auditor"
    SYSTEM = "System"


class LogStatus(str, Enum):
    """Visual status of an agent log line."""

    THINKING = "thinking"
    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"


# =============================================================================
# Telemetry
# =============================================================================


class MetricSample(BaseModel):
    """One telemetry sample produced per tick.

    Immutable once produced; corrective actions return a modified copy.
    """

    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    load_demand: PowerKW
    solar_power: PowerKW
    wind_power: PowerKW
    grid_supply: PowerKW
    battery_discharge: PowerKW = 0.0
    voltage: VoltageV = NOMINAL_VOLTAGE_V
    frequency: FrequencyHz = NOMINAL_FREQUENCY_HZ
    co2_intensity: Co2Intensity = 0.0
    cost_per_kwh: Annotated[float, Field(ge=0, description="Blended cost ($/kWh)")] = (
        0.0
    )
    weather_forecast: WeatherForecast = WeatherForecast.CLEAR
    accumulated_co2_saved: Annotated[
        float, Field(ge=0, description="Running CO2 avoided (kg)")
    ] = 0.0
    is_live: bool = False

    @property
    def renewable_power(self) -> float:
        """Solar plus wind output."""
        return self.solar_power + self.wind_power

    @property
    def total_supply(self) -> float:
        """All sources feeding the bus."""
        return self.renewable_power + self.grid_supply + self.battery_discharge

    @property
    def frequency_deviation(self) -> float:
        """Absolute deviation from nominal frequency."""
        return abs(self.frequency - NOMINAL_FREQUENCY_HZ)


class LiveSeed(BaseModel):
    """Partial sample fetched from a live grid-data provider.

    Any field left as None falls back to the synthetic value for that tick.
    """

    model_config = ConfigDict(frozen=True)

    solar_power: PowerKW | None = None
    wind_power: PowerKW | None = None
    load_demand: PowerKW | None = None
    grid_supply: PowerKW | None = None
    co2_intensity: Co2Intensity | None = None
    is_live: bool = True


class SimulatorState(BaseModel):
    """Counters carried from one tick to the next.

    Holding these explicitly lets several simulations run side by side.
    """

    model_config = ConfigDict(frozen=True)

    timestamp_ms: int = 0
    phase_offset: float = 0.0
    accumulated_co2_saved: Annotated[float, Field(ge=0)] = 0.0


# =============================================================================
# Operator Configuration
# =============================================================================


class SimulationConfig(BaseModel):
    """Operator dials read on every tick."""

    model_config = ConfigDict(frozen=True)

    solar_efficiency: Efficiency = 1.0
    wind_efficiency: Efficiency = 1.0
    load_multiplier: Efficiency = 1.0
    battery_capacity: PowerKW = 1000.0
    # 0 = cheap/dirty, 100 = green/expensive
    optimization_bias: Percent = 50.0


class AnomalyThresholds(BaseModel):
    """Limits that trigger an anomaly when breached."""

    model_config = ConfigDict(frozen=True)

    voltage_drop_percent: Percent = 9.0
    load_increase_percent: Annotated[float, Field(ge=0)] = 60.0
    frequency_deviation_hz: Annotated[float, Field(gt=0)] = 0.5
    max_co2_intensity: Co2Intensity = 450.0

    @property
    def min_voltage(self) -> float:
        """Lowest acceptable voltage."""
        return NOMINAL_VOLTAGE_V * (1 - self.voltage_drop_percent / 100)

    @property
    def max_load(self) -> float:
        """Highest acceptable load."""
        return NOMINAL_LOAD_KW * (1 + self.load_increase_percent / 100)


# =============================================================================
# Agent Narration
# =============================================================================


class AgentLogEntry(BaseModel):
    """A single line in the agent terminal."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = Field(default_factory=datetime.now)
    role: AgentRole
    message: str
    status: LogStatus = LogStatus.NEUTRAL


class NarrationResult(BaseModel):
    """Transcript and chosen action from one negotiation round."""

    model_config = ConfigDict(frozen=True)

    logs: list[AgentLogEntry] = Field(default_factory=list)
    recommended_action: str = CorrectiveAction.IGNORE.value

    @property
    def is_empty(self) -> bool:
        """True when the narrator produced no transcript."""
        return not self.logs
