"""Periodic quota polling with rediscovery on connection loss."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from quota_probe.errors import ProtocolError
from quota_probe.network_errors import is_transport_error
from quota_probe.process_finder import DetectOptions, ProcessFinder
from quota_probe.quota_service import QuotaService
from quota_probe.quota_service_helpers import QuotaSnapshot

logger = logging.getLogger(__name__)

STOP_TIMEOUT_SECONDS = 2.0


class QuotaPoller:
    """Polls the quota service on an interval, rediscovering the server when needed."""

    def __init__(
        self,
        finder: ProcessFinder,
        service: QuotaService,
        *,
        interval_seconds: Optional[float] = None,
        detect_options: Optional[DetectOptions] = None,
        on_snapshot: Optional[Callable[[QuotaSnapshot], Any]] = None,
    ):
        self.finder = finder
        self.service = service
        self.interval_seconds = interval_seconds or service.settings.poll_interval_seconds
        self.detect_options = detect_options
        self.on_snapshot = on_snapshot
        self._shutdown_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def needs_rediscovery(self) -> bool:
        if self.service.auth_failed:
            return True
        error = self.service.last_error
        if isinstance(error, ProtocolError):
            return True
        return error is not None and is_transport_error(error)

    async def rediscover(self) -> bool:
        descriptor = await self.finder.detect(self.detect_options)
        self.service.set_connection(descriptor)
        return descriptor is not None

    async def poll_once(self) -> Optional[QuotaSnapshot]:
        """Fetch one snapshot, discovering the server first if no connection is held."""
        if self.service.connection is None and not await self.rediscover():
            logger.warning("Language server not found; will retry next cycle")
            return None

        snapshot = await self.service.fetch_quota()
        if snapshot is None:
            if self.needs_rediscovery():
                logger.info("Connection lost or rejected; rediscovering on next poll")
                self.service.set_connection(None)
            return None

        if self.on_snapshot is not None:
            self.on_snapshot(snapshot)
        return snapshot

    async def run(self) -> None:
        logger.debug("Quota polling loop started (interval: %ss)", self.interval_seconds)
        while not self._shutdown_event.is_set():
            await self.poll_once()
            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                continue
        logger.debug("Quota polling loop stopped")

    def start(self) -> None:
        if self._task is not None:
            return
        self._shutdown_event.clear()
        self._task = asyncio.create_task(self.run())
        logger.info("Started quota polling (interval: %ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._shutdown_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=STOP_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            self._task.cancel()
        self._task = None
        logger.info("Quota polling stopped")

    def is_running(self) -> bool:
        return self._task is not None


__all__ = ["QuotaPoller"]
