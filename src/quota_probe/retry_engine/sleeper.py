"""Sleep indirection for the retry engine."""

from __future__ import annotations

import asyncio


async def sleep(seconds: float) -> None:
    """Delegate to asyncio.sleep so callers can monkeypatch in tests."""

    await asyncio.sleep(seconds)
