"""Quota retrieval from a discovered language server."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from quota_probe.config import ProbeSettings, get_probe_settings
from quota_probe.errors import ProbeError, QuotaFetchError
from quota_probe.network_errors import is_auth_status
from quota_probe.process_finder_helpers.types import ConnectionDescriptor
from quota_probe.protocol_client import ProtocolClient, build_headers
from quota_probe.quota_service_helpers import QuotaResponseParser, QuotaSnapshot
from quota_probe.retry_engine import BackoffStrategy, RetryConfig, retry

logger = logging.getLogger(__name__)

QUOTA_REQUEST_BODY: Mapping[str, Any] = {
    "metadata": {
        "ideName": "antigravity",
        "extensionName": "antigravity",
        "locale": "en",
    }
}

FETCH_RETRY = RetryConfig(attempts=2, base_delay=1000, backoff=BackoffStrategy.FIXED)

INVALID_RESPONSE = "Invalid Response Structure"
PARSING_FAILED = "Response Parsing Failed"
AUTH_FAILED_PREFIX = "AUTH_FAILED_"


class QuotaService:
    """Fetches and parses ``GetUserStatus`` for the current connection."""

    def __init__(
        self,
        *,
        client: Optional[ProtocolClient] = None,
        settings: Optional[ProbeSettings] = None,
        parser: Optional[QuotaResponseParser] = None,
        on_update: Optional[Callable[[QuotaSnapshot], Any]] = None,
        on_error: Optional[Callable[[Exception], Any]] = None,
    ):
        self.client = client or ProtocolClient()
        self.settings = settings or get_probe_settings()
        self.parser = parser or QuotaResponseParser()
        self.on_update = on_update
        self.on_error = on_error
        self.connection: Optional[ConnectionDescriptor] = None
        self.parsing_error: Optional[str] = None
        self.last_error: Optional[Exception] = None

    def set_connection(self, descriptor: Optional[ConnectionDescriptor]) -> None:
        self.connection = descriptor

    @property
    def auth_failed(self) -> bool:
        return bool(self.parsing_error and self.parsing_error.startswith(AUTH_FAILED_PREFIX))

    async def fetch_quota(self) -> Optional[QuotaSnapshot]:
        """
        Fetch one quota snapshot, retrying once after a short pause.

        Returns:
            The snapshot, or None when the server rejected or could not serve the request;
            ``parsing_error`` and ``last_error`` describe why
        """
        self.parsing_error = None
        self.last_error = None
        if self.connection is None:
            logger.warning("Cannot fetch quota: server connection not available. Run discovery first.")
            return None

        try:
            snapshot = await retry(self._fetch_once, FETCH_RETRY)
        except ProbeError as exc:
            self.last_error = exc
            logger.warning("Quota fetch failed: %s", exc)
            if self.on_error is not None:
                self.on_error(exc)
            return None

        if snapshot is not None and self.on_update is not None:
            self.on_update(snapshot)
        return snapshot

    async def _fetch_once(self) -> Optional[QuotaSnapshot]:
        connection = self.connection
        if connection is None:
            raise QuotaFetchError.not_connected()

        response = await self.client.request(
            self.settings.server_host,
            connection.port,
            self.settings.api_path,
            build_headers(connection.csrf_token),
            QUOTA_REQUEST_BODY,
            self.settings.request_timeout_seconds,
        )

        if is_auth_status(response.status_code):
            self.parsing_error = f"{AUTH_FAILED_PREFIX}{response.status_code}"
            return None

        data = response.data
        user_status = data.get("userStatus") if isinstance(data, dict) else None
        if not isinstance(user_status, dict):
            self.parsing_error = INVALID_RESPONSE if response.status_code == 200 else f"HTTP_ERROR_{response.status_code}"
            logger.warning("Quota response rejected (%s): %.500r", self.parsing_error, data)
            return None

        try:
            return self.parser.parse(user_status)
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            self.parsing_error = PARSING_FAILED
            logger.exception("Failed to parse quota response")
            raise QuotaFetchError(PARSING_FAILED) from exc


__all__ = ["QUOTA_REQUEST_BODY", "QuotaService"]
