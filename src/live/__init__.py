"""Live grid-data adapters feeding the telemetry generator."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from src.domain.models import DataSource, LiveSeed
from src.live.eia import fetch_eia
from src.live.electricity_maps import fetch_electricity_maps
from src.settings import DEFAULT_EIA_RESPONDENT, DEFAULT_ELECTRICITY_MAPS_ZONE


@dataclass(frozen=True)
class ProviderKeys:
    """API keys and query targets for the live providers."""

    electricity_maps: str = ""
    eia: str = ""
    electricity_maps_zone: str = DEFAULT_ELECTRICITY_MAPS_ZONE
    eia_respondent: str = DEFAULT_EIA_RESPONDENT


async def fetch_live_seed(
    source: DataSource,
    keys: ProviderKeys,
    client: httpx.AsyncClient | None = None,
) -> LiveSeed | None:
    """Fetch a live seed from the selected provider.

    Returns None for SIMULATION, when the provider key is missing, or when
    the provider has no data.
    """
    if source == DataSource.ELECTRICITY_MAPS and keys.electricity_maps:
        return await fetch_electricity_maps(
            keys.electricity_maps, zone=keys.electricity_maps_zone, client=client
        )
    if source == DataSource.EIA and keys.eia:
        return await fetch_eia(keys.eia, respondent=keys.eia_respondent, client=client)
    return None


__all__ = [
    "ProviderKeys",
    "fetch_live_seed",
    "fetch_electricity_maps",
    "fetch_eia",
]
