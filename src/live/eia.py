"""EIA hourly fuel-mix adapter.

Reads the most recent complete hour of generation by fuel type for one
balancing authority and normalizes it so total load equals 1000 kW.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import httpx

from src.domain.models import LiveSeed
from src.live.http import client_scope
from src.settings import DEFAULT_EIA_RESPONDENT

logger = logging.getLogger(__name__)

BASE_URL = "https://api.eia.gov/v2/electricity/rto/fuel-type-data/data"
TARGET_TOTAL_KW = 1000.0
# Enough rows to cover every fuel type of the latest period
PAGE_LENGTH = 30


class FuelCategory(str, Enum):
    """Dashboard category for an EIA fuel code."""

    SOLAR = "SOLAR"
    WIND = "WIND"
    GRID = "GRID"


FUEL_MAP: dict[str, FuelCategory] = {
    "SUN": FuelCategory.SOLAR,
    "WND": FuelCategory.WIND,
    "NG": FuelCategory.GRID,  # Natural gas
    "COL": FuelCategory.GRID,  # Coal
    "NUC": FuelCategory.GRID,  # Nuclear
    "WAT": FuelCategory.GRID,  # Hydro
    "OTH": FuelCategory.GRID,  # Other
}

# Lifecycle carbon intensity estimates (g/kWh)
CO2_FACTORS: dict[str, float] = {
    "SUN": 40.0,
    "WND": 11.0,
    "NG": 450.0,
    "COL": 820.0,
    "NUC": 12.0,
    "WAT": 24.0,
    "OTH": 500.0,
}
DEFAULT_CO2_FACTOR = 400.0


def build_params(api_key: str, respondent: str) -> dict[str, str | int]:
    """Query parameters for the latest rows of a respondent, newest first."""
    return {
        "api_key": api_key,
        "frequency": "local-hourly",
        "data[0]": "value",
        "facets[respondent][]": respondent,
        "sort[0][column]": "period",
        "sort[0][direction]": "desc",
        "length": PAGE_LENGTH,
    }


def parse_fuel_mix(payload: dict[str, Any]) -> LiveSeed | None:
    """Reshape an EIA fuel-type response into a live seed.

    Args:
        payload: Decoded JSON body, records sorted by period descending.

    Returns:
        LiveSeed normalized to TARGET_TOTAL_KW, or None when there is no
        usable data.
    """
    records = [r for r in payload["response"]["data"] if isinstance(r, dict)]
    if not records:
        return None

    latest_period = records[0]["period"]
    totals = {category: 0.0 for category in FuelCategory}
    total_mwh = 0.0
    weighted_co2 = 0.0

    for record in records:
        if record.get("period") != latest_period:
            continue
        fuel = record.get("fueltype", "")
        category = FUEL_MAP.get(fuel, FuelCategory.GRID)
        value = float(record.get("value") or 0.0)
        totals[category] += value
        total_mwh += value
        weighted_co2 += value * CO2_FACTORS.get(fuel, DEFAULT_CO2_FACTOR)

    if total_mwh <= 0:
        return None

    scale = TARGET_TOTAL_KW / total_mwh
    return LiveSeed(
        solar_power=max(0.0, totals[FuelCategory.SOLAR] * scale),
        wind_power=max(0.0, totals[FuelCategory.WIND] * scale),
        grid_supply=max(0.0, totals[FuelCategory.GRID] * scale),
        load_demand=total_mwh * scale,
        co2_intensity=max(0.0, weighted_co2 / total_mwh),
    )


async def fetch_eia(
    api_key: str,
    respondent: str = DEFAULT_EIA_RESPONDENT,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> LiveSeed | None:
    """Fetch the latest hourly fuel mix for a balancing authority.

    Args:
        api_key: EIA open-data API key.
        respondent: Balancing authority code, e.g. "TEX" for ERCOT.
        client: Optional shared HTTP client.
        timeout: Request timeout in seconds; None waits indefinitely.

    Returns:
        LiveSeed, or None when the key is missing, the request fails, or
        the dataset is empty.
    """
    if not api_key:
        logger.warning("No EIA API key provided")
        return None

    try:
        async with client_scope(client, timeout) as http:
            response = await http.get(
                BASE_URL, params=build_params(api_key, respondent)
            )
            response.raise_for_status()
            payload = response.json()
        return parse_fuel_mix(payload)
    except (
        httpx.HTTPError,
        ValueError,
        KeyError,
        TypeError,
        IndexError,
        AttributeError,
    ) as exc:
        logger.error("Failed to fetch EIA data: %s", exc)
        return None
