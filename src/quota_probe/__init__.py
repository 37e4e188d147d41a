"""Discovery of the local language server and retrieval of its usage quota."""

from .errors import CommandError, CommandTimeoutError, ProbeError, ProtocolError, QuotaFetchError
from .process_finder import (
    AttemptRecord,
    ConnectionDescriptor,
    DetectionResult,
    DetectOptions,
    DiscoveryDiagnostics,
    FailureReason,
    ProcessFinder,
)
from .protocol_client import HttpResponse, PortProbeResult, ProtocolClient, clear_protocol_cache
from .quota_poller import QuotaPoller
from .quota_service import QuotaService
from .quota_service_helpers import QuotaSnapshot
from .retry_engine import BackoffStrategy, RetryConfig, create_retry, retry

__all__ = [
    "AttemptRecord",
    "BackoffStrategy",
    "CommandError",
    "CommandTimeoutError",
    "ConnectionDescriptor",
    "DetectOptions",
    "DetectionResult",
    "DiscoveryDiagnostics",
    "FailureReason",
    "HttpResponse",
    "PortProbeResult",
    "ProbeError",
    "ProcessFinder",
    "ProtocolClient",
    "ProtocolError",
    "QuotaFetchError",
    "QuotaPoller",
    "QuotaService",
    "QuotaSnapshot",
    "RetryConfig",
    "clear_protocol_cache",
    "create_retry",
    "retry",
]
