"""Type definitions for process discovery."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Set, Tuple

MAX_PORT = 65535
TOKEN_PREVIEW_LENGTH = 8

PORT_SOURCE_CMDLINE = "cmdline"
PORT_SOURCE_NETSTAT = "netstat"
PROTOCOL_NONE = "none"


class FailureReason(Enum):
    """Why a discovery cycle produced no connection"""

    NO_PROCESS = "no_process"
    AMBIGUOUS = "ambiguous"
    NO_PORT = "no_port"
    AUTH_FAILED = "auth_failed"
    WORKSPACE_MISMATCH = "workspace_mismatch"


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Port and token of a verified language server"""

    port: int
    csrf_token: str

    def __post_init__(self) -> None:
        if not 1 <= self.port <= MAX_PORT:
            raise ValueError(f"Port out of range: {self.port}")
        if not self.csrf_token:
            raise ValueError("csrf_token must be non-empty")


@dataclass(frozen=True)
class AttemptRecord:
    pid: int
    port: int
    status_code: int
    protocol: str
    port_source: str
    host: str
    error: Optional[str] = None


@dataclass(frozen=True)
class DetectOptions:
    """Retry budget and workspace context for ``detect``; delays in milliseconds"""

    attempts: int = 5
    base_delay: float = 1500.0
    max_delay: float = 10000.0
    verbose: bool = False
    workspace_roots: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class DiscoveryDiagnostics:
    failure_reason: Optional[FailureReason] = None
    candidate_count: int = 0
    skipped_for_workspace: int = 0
    token_preview: str = ""
    ports_from_cmdline: int = 0
    ports_from_netstat: int = 0
    retry_count: int = 0
    protocol_used: str = PROTOCOL_NONE
    attempts: Tuple[AttemptRecord, ...] = ()


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of ``discover``: a descriptor or a failure reason, plus diagnostics"""

    descriptor: Optional[ConnectionDescriptor]
    failure_reason: Optional[FailureReason]
    diagnostics: DiscoveryDiagnostics

    def __post_init__(self) -> None:
        if (self.descriptor is None) == (self.failure_reason is None):
            raise ValueError("Exactly one of descriptor and failure_reason must be set")

    @property
    def ok(self) -> bool:
        return self.descriptor is not None


@dataclass
class DiscoveryCycle:
    """Mutable bookkeeping for a single detection attempt."""

    candidate_count: int = 0
    skipped_for_workspace: int = 0
    token_preview: str = ""
    ports_from_cmdline: int = 0
    ports_from_netstat: int = 0
    protocol_used: str = PROTOCOL_NONE
    failure_reason: Optional[FailureReason] = None
    attempts: List[AttemptRecord] = field(default_factory=list)
    verified_pids: Set[int] = field(default_factory=set)

    def record(self, attempt: AttemptRecord) -> None:
        self.attempts.append(attempt)

    @property
    def saw_auth_failure(self) -> bool:
        return any(attempt.status_code in (401, 403) for attempt in self.attempts)

    def to_diagnostics(self, retry_count: int) -> DiscoveryDiagnostics:
        return DiscoveryDiagnostics(
            failure_reason=self.failure_reason,
            candidate_count=self.candidate_count,
            skipped_for_workspace=self.skipped_for_workspace,
            token_preview=self.token_preview,
            ports_from_cmdline=self.ports_from_cmdline,
            ports_from_netstat=self.ports_from_netstat,
            retry_count=retry_count,
            protocol_used=self.protocol_used,
            attempts=tuple(self.attempts),
        )


__all__ = [
    "AttemptRecord",
    "ConnectionDescriptor",
    "DetectOptions",
    "DetectionResult",
    "DiscoveryCycle",
    "DiscoveryDiagnostics",
    "FailureReason",
    "PORT_SOURCE_CMDLINE",
    "PORT_SOURCE_NETSTAT",
    "PROTOCOL_NONE",
    "TOKEN_PREVIEW_LENGTH",
]
