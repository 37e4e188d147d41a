"""Error types raised by the discovery and quota subsystems."""

from __future__ import annotations

from typing import Optional, Sequence


class ProbeError(RuntimeError):
    """Base class for failures talking to the OS or the language server."""


class CommandError(ProbeError):
    """Raised when an OS command cannot be started or exits unsuccessfully."""

    def __init__(
        self,
        argv: Sequence[str],
        *,
        reason: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        self.argv = tuple(argv)
        self.reason = reason
        self.returncode = returncode
        self.stderr = stderr
        program = self.argv[0] if self.argv else "<empty>"
        super().__init__(f"{program}: {reason}")


class CommandTimeoutError(CommandError):
    """Raised when an OS command exceeds its time budget."""

    def __init__(self, argv: Sequence[str], *, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(argv, reason=f"timed out after {timeout:g}s")


class ProtocolError(ProbeError):
    """Raised when neither HTTPS nor HTTP produced a response."""

    def __init__(
        self,
        host: str,
        port: int,
        *,
        https_error: Optional[BaseException],
        http_error: Optional[BaseException],
    ) -> None:
        self.host = host
        self.port = port
        self.https_error = https_error
        self.http_error = http_error
        super().__init__(f"Request to {host}:{port} failed (https: {https_error!r}, http: {http_error!r})")


class QuotaFetchError(ProbeError):
    """Raised when a quota request cannot be issued at all."""

    @classmethod
    def not_connected(cls) -> "QuotaFetchError":
        return cls("Server connection not available; run discovery first")


__all__ = [
    "CommandError",
    "CommandTimeoutError",
    "ProbeError",
    "ProtocolError",
    "QuotaFetchError",
]
