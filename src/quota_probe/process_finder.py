"""
Discovery of the locally running language server.

ProcessFinder enumerates candidate processes, ranks them by how strongly they
belong to this session (workspace id, then parentage), verifies ports until
one answers, and wraps each attempt in exponential backoff.
"""

from __future__ import annotations

import logging
import os
import platform
from typing import Callable, List, Optional, Sequence

from quota_probe.config import ProbeSettings, get_probe_settings
from quota_probe.errors import CommandError
from quota_probe.platform_strategies import (
    PlatformStrategy,
    ProcessCandidate,
    PsutilProcessScanner,
    select_strategy,
    target_process_name,
)
from quota_probe.process_finder_helpers.candidate_ranker import (
    WorkspaceMatcher,
    first_with_parent,
    trace_ancestry,
)
from quota_probe.process_finder_helpers.command_runner import CommandRunner, WarmupState
from quota_probe.process_finder_helpers.diagnostics import DiagnosticsReporter
from quota_probe.process_finder_helpers.enumeration import CandidateEnumerator
from quota_probe.process_finder_helpers.port_verifier import PortVerifier
from quota_probe.process_finder_helpers.types import (
    AttemptRecord,
    ConnectionDescriptor,
    DetectionResult,
    DetectOptions,
    DiscoveryCycle,
    DiscoveryDiagnostics,
    FailureReason,
)
from quota_probe.protocol_client import ProtocolClient
from quota_probe.retry_engine import BackoffStrategy, RetryConfig, retry
from quota_probe.workspace_id import absolute_root, expected_workspace_ids

_MODULE_LOGGER = logging.getLogger(__name__)


class ProcessFinder:
    """Locates the language server and returns a verified connection descriptor."""

    def __init__(
        self,
        *,
        strategy: Optional[PlatformStrategy] = None,
        target_name: Optional[str] = None,
        settings: Optional[ProbeSettings] = None,
        runner: Optional[CommandRunner] = None,
        client: Optional[ProtocolClient] = None,
        scanner: Optional[PsutilProcessScanner] = None,
        workspace_roots: Optional[Sequence[str]] = None,
        own_pid: Optional[int] = None,
        own_ppid: Optional[int] = None,
        gateway_resolver: Optional[Callable[[], Optional[str]]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or _MODULE_LOGGER
        self.settings = settings or get_probe_settings()
        if strategy is None:
            strategy, selected_name = select_strategy(app_data_dir=self.settings.app_data_dir)
            target_name = target_name or selected_name
        self.strategy = strategy
        self.process_name = target_name or target_process_name(platform.system(), platform.machine())
        self.runner = runner or CommandRunner(self.settings.probe_timeout_seconds, logger=self.logger)
        self.client = client or ProtocolClient()
        self.workspace_roots = tuple(workspace_roots) if workspace_roots is not None else None
        self.own_pid = own_pid if own_pid is not None else os.getpid()
        self.own_ppid = own_ppid if own_ppid is not None else os.getppid()

        self._enumerator = CandidateEnumerator(self.strategy, self.runner, self.process_name, scanner, logger=self.logger)
        self._verifier = PortVerifier(
            self.strategy,
            self.runner,
            self.client,
            host=self.settings.server_host,
            api_path=self.settings.api_path,
            probe_timeout=self.settings.probe_timeout_seconds,
            gateway_resolver=gateway_resolver,
            logger=self.logger,
        )
        self._diagnostics = DiagnosticsReporter(self.strategy, self.runner, self.process_name, self.logger)

    def _resolve_roots(self, options: DetectOptions) -> List[str]:
        if options.workspace_roots is not None:
            roots = [str(root) for root in options.workspace_roots]
        elif self.workspace_roots is not None:
            roots = list(self.workspace_roots)
        elif self.settings.workspace_roots:
            roots = list(self.settings.workspace_roots)
        else:
            roots = [os.getcwd()]
        return [absolute_root(root, self.strategy.workspace_platform) for root in roots]

    async def detect(self, options: Optional[DetectOptions] = None) -> Optional[ConnectionDescriptor]:
        """Run discovery with retries; return the descriptor or None."""
        result = await self.discover(options)
        return result.descriptor

    async def discover(self, options: Optional[DetectOptions] = None) -> DetectionResult:
        """
        Run discovery with retries and report the outcome explicitly.

        Args:
            options: Retry budget and workspace roots; defaults to ``DetectOptions()``

        Returns:
            Descriptor on success, otherwise the failure reason of the last
            attempt; diagnostics describe the last attempt either way
        """
        options = options or DetectOptions()
        expected_ids = expected_workspace_ids(self._resolve_roots(options), self.strategy.workspace_platform)
        self.logger.debug("Expected workspace IDs: %s", ", ".join(expected_ids) or "none")

        warmup = WarmupState()
        cycles: List[DiscoveryCycle] = []
        retry_count = 0

        async def attempt() -> Optional[ConnectionDescriptor]:
            cycle = DiscoveryCycle()
            cycles.append(cycle)
            try:
                return await self.try_detect(cycle, expected_ids, warmup)
            except Exception:
                self.logger.exception("Unexpected error during detection attempt")
                if cycle.failure_reason is None:
                    cycle.failure_reason = FailureReason.NO_PROCESS
                return None

        def on_retry(attempt_number: int, delay_ms: float) -> None:
            nonlocal retry_count
            retry_count += 1
            self.logger.warning("Attempt %s failed, retrying in %.0fms...", attempt_number, delay_ms)
            if options.verbose:
                reason = cycles[-1].failure_reason if cycles else None
                self.logger.info("Attempt %s failure reason: %s", attempt_number, reason.value if reason else "unknown")

        descriptor = await retry(
            attempt,
            RetryConfig(
                attempts=options.attempts,
                base_delay=options.base_delay,
                max_delay=options.max_delay,
                backoff=BackoffStrategy.EXPONENTIAL,
                on_retry=on_retry,
            ),
        )

        last_cycle = cycles[-1] if cycles else DiscoveryCycle()
        if descriptor is not None:
            last_cycle.failure_reason = None
            self.logger.info("Language server detected on port %s", descriptor.port)
            return DetectionResult(descriptor, None, last_cycle.to_diagnostics(retry_count))

        reason = last_cycle.failure_reason or FailureReason.NO_PROCESS
        last_cycle.failure_reason = reason
        self.logger.error("Detection failed after %s attempts. Reason: %s", options.attempts, reason.value)
        await self.run_diagnostics()
        return DetectionResult(None, reason, last_cycle.to_diagnostics(retry_count))

    async def run_diagnostics(self) -> None:
        try:
            await self._diagnostics.run()
        except Exception:  # best-effort
            self.logger.exception("Diagnostics failed")

    async def try_detect(
        self,
        cycle: DiscoveryCycle,
        expected_ids: Sequence[str],
        warmup: WarmupState,
    ) -> Optional[ConnectionDescriptor]:
        """Single detection attempt without retry."""
        candidates = await self._enumerator.enumerate(warmup)
        if not candidates:
            cycle.failure_reason = FailureReason.NO_PROCESS
            return None

        cycle.candidate_count = len(candidates)
        for candidate in candidates:
            self.logger.debug(
                "Candidate PID %s, PPID %s, workspace %s",
                candidate.pid,
                candidate.ppid,
                candidate.workspace_id or "N/A",
            )

        matcher = WorkspaceMatcher(expected_ids)

        exact = matcher.first_exact(candidates)
        if exact is not None:
            self.logger.debug("Workspace ID match %s (PID %s)", exact.workspace_id, exact.pid)
            descriptor = await self._verify(exact, cycle)
            if descriptor:
                return descriptor

        for relation, parent_pid in (("child", self.own_pid), ("sibling", self.own_ppid)):
            related = first_with_parent(candidates, parent_pid)
            if related is None:
                continue
            if matcher.is_mismatch(related):
                self.logger.debug(
                    "%s PID %s has mismatching workspace ID %s, skipping",
                    relation.capitalize(),
                    related.pid,
                    related.workspace_id,
                )
                continue
            self.logger.debug("Found %s process PID %s", relation, related.pid)
            descriptor = await self._verify(related, cycle)
            if descriptor:
                return descriptor

        self.logger.debug("Direct relationships failed, tracing ancestry...")
        for candidate in candidates:
            if not candidate.ppid or matcher.is_mismatch(candidate) or candidate.pid in cycle.verified_pids:
                continue
            level = await trace_ancestry(candidate, self.own_pid, self._parent_pid, logger=self.logger)
            if level is None:
                continue
            self.logger.debug("Ancestry match at level %s for PID %s", level, candidate.pid)
            descriptor = await self._verify(candidate, cycle)
            if descriptor:
                return descriptor

        self.logger.debug("Verifying all remaining %s candidates...", len(candidates))
        for candidate in candidates:
            if matcher.is_mismatch(candidate):
                if not matcher.is_loose_match(candidate):
                    self.logger.debug(
                        "Skipping PID %s: workspace %s not in [%s]",
                        candidate.pid,
                        candidate.workspace_id,
                        ", ".join(matcher.expected_ids),
                    )
                    cycle.skipped_for_workspace += 1
                    continue
                self.logger.warning(
                    "Loosely matched PID %s (actual: %s) despite strict mismatch",
                    candidate.pid,
                    candidate.workspace_id,
                )
            descriptor = await self._verify(candidate, cycle)
            if descriptor:
                return descriptor

        cycle.failure_reason = self._categorize_failure(cycle, len(candidates))
        return None

    @staticmethod
    def _categorize_failure(cycle: DiscoveryCycle, candidate_count: int) -> FailureReason:
        if cycle.skipped_for_workspace and cycle.skipped_for_workspace == candidate_count:
            return FailureReason.WORKSPACE_MISMATCH
        if cycle.saw_auth_failure:
            return FailureReason.AUTH_FAILED
        return FailureReason.NO_PORT

    async def _verify(self, candidate: ProcessCandidate, cycle: DiscoveryCycle) -> Optional[ConnectionDescriptor]:
        if candidate.pid in cycle.verified_pids:
            return None
        cycle.verified_pids.add(candidate.pid)
        return await self._verifier.verify(candidate, cycle)

    async def _parent_pid(self, pid: int) -> Optional[int]:
        try:
            output = await self.runner.run(self.strategy.parent_pid_command(pid))
        except CommandError as exc:
            self.logger.debug("Parent lookup for PID %s failed: %s", pid, exc)
            return None
        return self.strategy.parse_parent_pid(output.stdout)


__all__ = [
    "AttemptRecord",
    "ConnectionDescriptor",
    "DetectOptions",
    "DetectionResult",
    "DiscoveryDiagnostics",
    "FailureReason",
    "ProcessFinder",
]
