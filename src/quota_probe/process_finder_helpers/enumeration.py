"""Candidate enumeration with keyword and psutil fallbacks."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from quota_probe.errors import CommandError
from quota_probe.platform_strategies import PlatformStrategy, ProcessCandidate, PsutilProcessScanner
from quota_probe.platform_strategies.types import CommandSpec

from .command_runner import CommandRunner, WarmupState

_MODULE_LOGGER = logging.getLogger(__name__)

FALLBACK_KEYWORD = "csrf_token"


class CandidateEnumerator:
    """Lists language server candidates, trying progressively broader sources."""

    def __init__(
        self,
        strategy: PlatformStrategy,
        runner: CommandRunner,
        target_name: str,
        scanner: Optional[PsutilProcessScanner] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.strategy = strategy
        self.runner = runner
        self.target_name = target_name
        self.scanner = scanner or PsutilProcessScanner(strategy.parser)
        self.logger = logger or _MODULE_LOGGER

    async def _run_and_parse(self, spec: CommandSpec, warmup: Optional[WarmupState] = None) -> Optional[List[ProcessCandidate]]:
        try:
            if warmup is not None and self.strategy.needs_warmup:
                output = await self.runner.run_with_warmup(spec, warmup)
            else:
                output = await self.runner.run(spec)
        except CommandError as exc:
            self.logger.debug("Process listing failed: %s", exc)
            return None
        return self.strategy.parse_processes(output.stdout)

    async def enumerate(self, warmup: WarmupState) -> Optional[List[ProcessCandidate]]:
        """
        Enumerate candidates for one discovery cycle.

        Args:
            warmup: Cold-start retry state shared across the ``detect`` call

        Returns:
            Non-empty candidate list, or None when every source came up empty
        """
        candidates = await self._run_and_parse(self.strategy.list_processes_command(self.target_name), warmup)
        if candidates:
            return candidates

        keyword_spec = self.strategy.list_processes_by_keyword_command(FALLBACK_KEYWORD)
        if keyword_spec is not None:
            self.logger.debug("Process name scan failed, trying keyword scan (%s)...", FALLBACK_KEYWORD)
            candidates = await self._run_and_parse(keyword_spec)
            if candidates:
                return candidates

        self.logger.debug("Keyword scan failed, trying psutil process scan...")
        return await asyncio.to_thread(self.scanner.scan)


__all__ = ["CandidateEnumerator", "FALLBACK_KEYWORD"]
