"""Best-effort troubleshooting output after discovery gives up."""

from __future__ import annotations

import logging
import platform
import re

from quota_probe.errors import CommandError
from quota_probe.platform_strategies import PlatformStrategy

from .command_runner import CommandRunner

STDOUT_PREVIEW_CHARS = 2000
STDERR_PREVIEW_CHARS = 500
REDACTED = "***REDACTED***"

_TOKEN_PATTERN = re.compile(r"(--csrf_token[=\s]+)([a-zA-Z0-9\-_.]+)", re.IGNORECASE)


def redact_tokens(text: str) -> str:
    """Mask csrf token values in command output."""
    return _TOKEN_PATTERN.sub(lambda match: match.group(1) + REDACTED, text)


class DiagnosticsReporter:
    """Logs tips and related processes to help a user find out why discovery failed."""

    def __init__(self, strategy: PlatformStrategy, runner: CommandRunner, target_name: str, logger: logging.Logger):
        self.strategy = strategy
        self.runner = runner
        self.target_name = target_name
        self.logger = logger

    async def run(self) -> None:
        log = self.logger
        log.warning("Running diagnostics to help troubleshoot...")
        log.info("Target process: %s", self.target_name)
        log.info("Platform: %s, Arch: %s", platform.system(), platform.machine())

        tips = self.strategy.troubleshooting_tips()
        if tips:
            log.info("Troubleshooting tips:")
            for index, tip in enumerate(tips, start=1):
                log.info("  %s. %s", index, tip)

        spec = self.strategy.diagnostic_command()
        if spec is None:
            return

        log.debug("Diagnostic command: %s", spec.describe())
        try:
            output = await self.runner.run(spec)
        except CommandError as exc:
            log.debug("Diagnostic command failed: %s", exc)
            log.info("Try running this command manually: %s", self.strategy.manual_diagnostic_hint())
            return

        if output.stdout.strip():
            log.info("Related processes found:\n%s", redact_tokens(output.stdout)[:STDOUT_PREVIEW_CHARS])
        else:
            log.warning("No related processes found (language_server/antigravity)")
            log.info("This usually means Antigravity IDE is not running or the process name has changed.")

        if output.stderr.strip():
            log.warning("Diagnostic stderr: %s", redact_tokens(output.stderr)[:STDERR_PREVIEW_CHARS])


__all__ = ["DiagnosticsReporter", "REDACTED", "redact_tokens"]
