"""Electricity Maps live power-breakdown adapter.

Maps the latest production breakdown of a zone onto the dashboard's
generation mix. Utility-scale MW figures are scaled down linearly so an
ISO-sized grid lands in the microgrid's few-hundred-kW range.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.domain.models import LiveSeed
from src.live.http import client_scope
from src.settings import DEFAULT_ELECTRICITY_MAPS_ZONE

logger = logging.getLogger(__name__)

BASE_URL = "https://api.electricitymap.org/v3/power-breakdown/latest"
SCALE = 0.05

# Everything that is neither solar nor wind counts as grid supply
GRID_SOURCES = (
    "nuclear",
    "geothermal",
    "biomass",
    "coal",
    "gas",
    "hydro",
    "oil",
    "unknown",
)


def _mw(breakdown: dict[str, Any], key: str) -> float:
    return max(0.0, float(breakdown.get(key) or 0.0))


def parse_power_breakdown(payload: dict[str, Any]) -> LiveSeed | None:
    """Reshape a power-breakdown response into a live seed.

    Args:
        payload: Decoded JSON body from the latest power-breakdown endpoint.

    Returns:
        LiveSeed with scaled solar, wind, grid supply and load, or None
        when the response carries no production breakdown.
    """
    breakdown = payload.get("powerProductionBreakdown")
    if not isinstance(breakdown, dict):
        return None
    solar = _mw(breakdown, "solar")
    wind = _mw(breakdown, "wind")
    grid_supply = sum(_mw(breakdown, key) for key in GRID_SOURCES)
    total = solar + wind + grid_supply

    return LiveSeed(
        solar_power=solar * SCALE,
        wind_power=wind * SCALE,
        grid_supply=grid_supply * SCALE,
        # Load tracks generation closely in real time
        load_demand=total * SCALE,
        co2_intensity=max(0.0, float(payload.get("carbonIntensity") or 0.0)),
    )


async def fetch_electricity_maps(
    api_key: str,
    zone: str = DEFAULT_ELECTRICITY_MAPS_ZONE,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> LiveSeed | None:
    """Fetch the latest generation mix for a zone.

    Args:
        api_key: Electricity Maps auth token.
        zone: Zone identifier, e.g. "US-CAL-CISO".
        client: Optional shared HTTP client.
        timeout: Request timeout in seconds; None waits indefinitely.

    Returns:
        LiveSeed, or None when the key is missing, the request fails, or
        the response has no breakdown.
    """
    if not api_key:
        logger.warning("No Electricity Maps API key provided")
        return None

    try:
        async with client_scope(client, timeout) as http:
            response = await http.get(
                BASE_URL,
                params={"zone": zone},
                headers={"auth-token": api_key},
            )
            response.raise_for_status()
            payload = response.json()
        return parse_power_breakdown(payload)
    except (httpx.HTTPError, ValueError, TypeError, AttributeError) as exc:
        logger.error("Failed to fetch Electricity Maps data: %s", exc)
        return None
