"""
Transport error detection and classification.

The protocol client downgrades HTTPS to HTTP on transport failures only; an
HTTP status code (even 4xx/5xx) is a response, not an error. All modules
should import from here rather than implementing their own detection.
"""

import asyncio
import socket
import ssl

import aiohttp

TRANSPORT_ERROR_TYPES = (
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    aiohttp.ClientResponseError,
    asyncio.TimeoutError,
    ssl.SSLError,
    socket.gaierror,
    OSError,
)


def is_transport_error(exception: BaseException) -> bool:
    """
    Determine if an exception represents a connection-level failure.

    Args:
        exception: Exception to check

    Returns:
        True if the request never produced an HTTP response
    """
    if isinstance(exception, TRANSPORT_ERROR_TYPES):
        return True

    os_error = getattr(exception, "os_error", None)
    return isinstance(os_error, OSError)


def is_auth_status(status_code: int) -> bool:
    """Return True for statuses that mean the token was rejected."""
    return status_code in (401, 403)


__all__ = ["TRANSPORT_ERROR_TYPES", "is_auth_status", "is_transport_error"]
