"""Subprocess execution for platform strategy commands."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from quota_probe.errors import CommandError, CommandTimeoutError
from quota_probe.platform_strategies.types import CommandSpec

_MODULE_LOGGER = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT_SECONDS = 3.0
WARMUP_DELAY_SECONDS = 3.0
WARMUP_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class CommandOutput:
    stdout: str
    stderr: str
    returncode: int


@dataclass
class WarmupState:
    """Whether the one-off cold-start retry has been spent in this ``detect`` call."""

    retried: bool = False


class CommandRunner:
    """Runs ``CommandSpec`` argument vectors without a shell."""

    def __init__(
        self,
        default_timeout: float = DEFAULT_COMMAND_TIMEOUT_SECONDS,
        *,
        warmup_delay: float = WARMUP_DELAY_SECONDS,
        warmup_timeout: float = WARMUP_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.default_timeout = default_timeout
        self.warmup_delay = warmup_delay
        self.warmup_timeout = warmup_timeout
        self._sleep = sleep
        self.logger = logger or _MODULE_LOGGER

    async def run(self, spec: CommandSpec, *, timeout: Optional[float] = None) -> CommandOutput:
        """
        Execute a command and return its filtered output.

        Args:
            spec: Command to run
            timeout: Overrides ``spec.timeout`` and the runner default

        Returns:
            Decoded stdout (after ``line_filter``), stderr and exit status

        Raises:
            CommandError: The program could not start or exited with an unexpected status
            CommandTimeoutError: The program exceeded its time budget and was killed
        """
        budget = timeout or spec.timeout or self.default_timeout
        env = None
        if spec.env:
            env = dict(os.environ)
            env.update(spec.env)

        try:
            proc = await asyncio.create_subprocess_exec(
                *spec.argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                env=env,
            )
        except OSError as exc:
            raise CommandError(spec.argv, reason=f"failed to start: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=budget)
        except asyncio.TimeoutError as exc:
            await self._kill(proc)
            raise CommandTimeoutError(spec.argv, timeout=budget) from exc

        stdout_text = stdout.decode("utf-8", errors="replace") if stdout else ""
        stderr_text = stderr.decode("utf-8", errors="replace") if stderr else ""
        returncode = proc.returncode if proc.returncode is not None else -1

        if returncode not in spec.ok_returncodes:
            raise CommandError(
                spec.argv,
                reason=f"exited with status {returncode}",
                returncode=returncode,
                stderr=stderr_text,
            )
        return CommandOutput(stdout=spec.filter_output(stdout_text), stderr=stderr_text, returncode=returncode)

    async def run_with_warmup(self, spec: CommandSpec, warmup: WarmupState) -> CommandOutput:
        """Run ``spec``; the first timeout per ``warmup`` waits and retries once with a longer budget."""
        try:
            return await self.run(spec)
        except CommandTimeoutError:
            if warmup.retried:
                raise
            warmup.retried = True
            self.logger.warning("%s timed out (likely cold start), warming up...", spec.argv[0])
            await self._sleep(self.warmup_delay)
            self.logger.debug("Retrying %s after warm-up", spec.argv[0])
            return await self.run(spec, timeout=self.warmup_timeout)

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), timeout=1.0)
        except asyncio.TimeoutError:
            self.logger.warning("Process %s did not exit after kill", proc.pid)


__all__ = [
    "CommandOutput",
    "CommandRunner",
    "DEFAULT_COMMAND_TIMEOUT_SECONDS",
    "WARMUP_DELAY_SECONDS",
    "WARMUP_TIMEOUT_SECONDS",
    "WarmupState",
]
