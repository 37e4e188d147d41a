"""Helper modules for process discovery."""

from .types import (
    AttemptRecord,
    ConnectionDescriptor,
    DetectionResult,
    DetectOptions,
    DiscoveryCycle,
    DiscoveryDiagnostics,
    FailureReason,
)

__all__ = [
    "AttemptRecord",
    "ConnectionDescriptor",
    "DetectOptions",
    "DetectionResult",
    "DiscoveryCycle",
    "DiscoveryDiagnostics",
    "FailureReason",
]
