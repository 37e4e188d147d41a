"""
Single-request HTTP client for the local language server.

The server listens on loopback with a self-signed certificate, and some
builds only speak plaintext HTTP. Each request tries HTTPS first (without
certificate verification), downgrades to HTTP on a transport failure, and
remembers which protocol answered per ``host:port``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import aiohttp
import orjson

from quota_probe.errors import ProtocolError
from quota_probe.network_errors import TRANSPORT_ERROR_TYPES

logger = logging.getLogger(__name__)

HTTPS = "https"
HTTP = "http"
_PROTOCOL_ORDER: Tuple[str, str] = (HTTPS, HTTP)

CSRF_HEADER = "X-Codeium-Csrf-Token"
VERIFICATION_BODY: Mapping[str, Any] = {"wrapper_data": {}}

_protocol_cache: Dict[str, str] = {}


def clear_protocol_cache() -> None:
    _protocol_cache.clear()


def cached_protocol(host: str, port: int) -> Optional[str]:
    return _protocol_cache.get(f"{host}:{port}")


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    data: Any
    protocol: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class PortProbeResult:
    success: bool
    status_code: int
    protocol: str
    error: Optional[str] = None


def build_headers(csrf_token: str) -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Connect-Protocol-Version": "1",
        CSRF_HEADER: csrf_token,
    }


def _default_session_factory() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(connector=aiohttp.TCPConnector(ssl=False))


def _decode_body(raw: bytes, url: str) -> Any:
    if not raw:
        return None
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        logger.debug("Non-JSON response body from %s: %.200r", url, raw)
        return None


class ProtocolClient:
    """Issues POST requests with HTTPS->HTTP fallback and protocol memoization."""

    def __init__(self, session_factory: Optional[Callable[[], Any]] = None):
        self._session_factory = session_factory or _default_session_factory

    async def _post(
        self,
        protocol: str,
        host: str,
        port: int,
        path: str,
        headers: Mapping[str, str],
        body: bytes,
        timeout: float,
    ) -> HttpResponse:
        url = f"{protocol}://{host}:{port}{path}"
        async with self._session_factory() as session:
            async with session.post(
                url,
                data=body,
                headers=dict(headers),
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                raw = await response.read()
                return HttpResponse(status_code=response.status, data=_decode_body(raw, url), protocol=protocol)

    async def request(
        self,
        host: str,
        port: int,
        path: str,
        headers: Mapping[str, str],
        body: Any,
        timeout: float,
    ) -> HttpResponse:
        """
        POST ``body`` to ``host:port`` and return whatever status the server sent.

        Args:
            host: Server address
            port: Server port
            path: Request path
            headers: Request headers
            body: JSON-serializable payload, or pre-encoded bytes
            timeout: Per-attempt timeout in seconds

        Returns:
            The decoded response and the protocol that carried it

        Raises:
            ProtocolError: Neither protocol produced a response
        """
        payload = body if isinstance(body, (bytes, bytearray)) else orjson.dumps(body)
        cache_key = f"{host}:{port}"
        preferred = _protocol_cache.get(cache_key, HTTPS)
        order = [preferred] + [protocol for protocol in _PROTOCOL_ORDER if protocol != preferred]

        failures: Dict[str, BaseException] = {}
        for protocol in order:
            try:
                response = await self._post(protocol, host, port, path, headers, bytes(payload), timeout)
            except TRANSPORT_ERROR_TYPES as exc:
                logger.debug("%s request to %s failed: %r", protocol.upper(), cache_key, exc)
                failures[protocol] = exc
                continue
            if _protocol_cache.get(cache_key) != protocol:
                logger.debug("Caching protocol %s for %s", protocol, cache_key)
                _protocol_cache[cache_key] = protocol
            return response

        raise ProtocolError(host, port, https_error=failures.get(HTTPS), http_error=failures.get(HTTP))

    async def test_port(
        self,
        host: str,
        port: int,
        path: str,
        csrf_token: str,
        *,
        timeout: float,
        body: Any = None,
    ) -> PortProbeResult:
        """Probe one port with the verification request; never raises for transport failures."""
        try:
            response = await self.request(
                host,
                port,
                path,
                build_headers(csrf_token),
                VERIFICATION_BODY if body is None else body,
                timeout,
            )
        except ProtocolError as exc:
            return PortProbeResult(success=False, status_code=0, protocol=HTTP, error=str(exc))

        if response.ok:
            return PortProbeResult(success=True, status_code=response.status_code, protocol=response.protocol)
        return PortProbeResult(
            success=False,
            status_code=response.status_code,
            protocol=response.protocol,
            error=f"HTTP {response.status_code}",
        )


__all__ = [
    "CSRF_HEADER",
    "HTTP",
    "HTTPS",
    "HttpResponse",
    "PortProbeResult",
    "ProtocolClient",
    "VERIFICATION_BODY",
    "build_headers",
    "cached_protocol",
    "clear_protocol_cache",
]
