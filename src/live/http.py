"""Shared HTTP client handling for live-data adapters."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx


@asynccontextmanager
async def client_scope(
    client: httpx.AsyncClient | None,
    timeout: float | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a short-lived one closed on exit.

    Args:
        client: Existing client to reuse (left open).
        timeout: Timeout for a newly created client; None waits indefinitely.
    """
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout) as owned:
        yield owned
