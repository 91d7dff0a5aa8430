"""Corrective actions applied on top of a generated sample.

While a negotiated action is in force, every new sample is passed through
``apply_corrective_action`` so the dashboard shows its effect.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.random import Generator

from src.domain.models import CorrectiveAction, MetricSample
from src.generators.telemetry import uniform_noise

logger = logging.getLogger(__name__)

DISPATCH_BATTERY_KW = 200.0
PREEMPTIVE_STORAGE_KW = 150.0
CURTAIL_LOAD_FACTOR = 0.8
BOOST_TURBINE_KW = 100.0


def _as_action(action: str | CorrectiveAction) -> CorrectiveAction | None:
    """Resolve an action name, returning None for unknown names."""
    try:
        return CorrectiveAction(action)
    except ValueError:
        return None


def apply_corrective_action(
    sample: MetricSample,
    action: str | CorrectiveAction,
    rng: Generator | None = None,
) -> MetricSample:
    """Apply a named corrective action to a sample.

    Unknown action names and IGNORE leave the sample unchanged.

    Args:
        sample: Sample produced by the generator this tick.
        action: Action name, e.g. "DISPATCH_BATTERY".
        rng: Noise source for the voltage response.

    Returns:
        A new sample with the action's effect applied.
    """
    resolved = _as_action(action)
    if resolved is None:
        logger.debug("Unknown corrective action %r; sample left unchanged", action)
        return sample

    rng = rng or np.random.default_rng()
    updates: dict[str, float] = {}

    if resolved == CorrectiveAction.DISPATCH_BATTERY:
        updates["battery_discharge"] = DISPATCH_BATTERY_KW
        # Grid supply drops by what the battery now covers
        updates["grid_supply"] = max(
            0.0, sample.load_demand - sample.renewable_power - DISPATCH_BATTERY_KW
        )
        updates["voltage"] = 230 + uniform_noise(rng, 1)
    elif resolved == CorrectiveAction.CURTAIL_LOAD:
        updates["load_demand"] = sample.load_demand * CURTAIL_LOAD_FACTOR
        updates["voltage"] = 235 + uniform_noise(rng, 1)
    elif resolved == CorrectiveAction.BOOST_TURBINE:
        updates["grid_supply"] = sample.grid_supply + BOOST_TURBINE_KW
        updates["voltage"] = 228 + uniform_noise(rng, 1)
    elif resolved == CorrectiveAction.PREEMPTIVE_STORAGE:
        updates["battery_discharge"] = PREEMPTIVE_STORAGE_KW
        updates["voltage"] = 232 + uniform_noise(rng, 0.5)
    else:  # IGNORE
        return sample

    return sample.model_copy(
        update={key: round(value, 2) for key, value in updates.items()}
    )
