"""Probe settings resolved from the environment (and optional .env files)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from .errors import ConfigurationError
from .runtime import env_bool, env_list, env_seconds, env_str

DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_QUOTA_API_PATH = "/exa.language_server_pb.LanguageServerService/GetUserStatus"
DEFAULT_APP_DATA_DIR = "antigravity"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 5.0
DEFAULT_PROBE_TIMEOUT_SECONDS = 3.0
DEFAULT_POLL_INTERVAL_SECONDS = 120.0
MIN_POLL_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class ProbeSettings:
    server_host: str = DEFAULT_SERVER_HOST
    api_path: str = DEFAULT_QUOTA_API_PATH
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    app_data_dir: str | None = DEFAULT_APP_DATA_DIR
    workspace_roots: tuple[str, ...] = ()
    debug: bool = False
    log_file: str | None = None


def load_probe_settings() -> ProbeSettings:
    """Build settings from ``QUOTA_PROBE_*`` variables, falling back to defaults."""

    api_path = env_str("QUOTA_PROBE_API_PATH", or_value=DEFAULT_QUOTA_API_PATH)
    if not api_path.startswith("/"):
        raise ConfigurationError.invalid_format("QUOTA_PROBE_API_PATH", api_path, "an absolute path starting with '/'")

    poll_interval = env_seconds("QUOTA_PROBE_POLL_INTERVAL_SECONDS", or_value=DEFAULT_POLL_INTERVAL_SECONDS)
    request_timeout = env_seconds("QUOTA_PROBE_REQUEST_TIMEOUT_SECONDS", or_value=DEFAULT_REQUEST_TIMEOUT_SECONDS)
    probe_timeout = env_seconds("QUOTA_PROBE_PROBE_TIMEOUT_SECONDS", or_value=DEFAULT_PROBE_TIMEOUT_SECONDS)
    if not request_timeout or not probe_timeout:
        raise ConfigurationError("Request and probe timeouts must be positive")

    app_data_dir = env_str("QUOTA_PROBE_APP_DATA_DIR", allow_blank=True)
    if app_data_dir is None:
        app_data_dir = DEFAULT_APP_DATA_DIR
    elif app_data_dir == "":
        app_data_dir = None

    roots = env_list("QUOTA_PROBE_WORKSPACE_ROOTS", separator=os.pathsep, or_value=())

    return ProbeSettings(
        server_host=env_str("QUOTA_PROBE_SERVER_HOST", or_value=DEFAULT_SERVER_HOST),
        api_path=api_path,
        request_timeout_seconds=float(request_timeout),
        probe_timeout_seconds=float(probe_timeout),
        poll_interval_seconds=max(float(poll_interval), MIN_POLL_INTERVAL_SECONDS),
        app_data_dir=app_data_dir,
        workspace_roots=tuple(roots or ()),
        debug=bool(env_bool("QUOTA_PROBE_DEBUG", or_value=False)),
        log_file=env_str("QUOTA_PROBE_LOG_FILE"),
    )


@lru_cache(maxsize=1)
def get_probe_settings() -> ProbeSettings:
    return load_probe_settings()


__all__ = [
    "DEFAULT_APP_DATA_DIR",
    "DEFAULT_QUOTA_API_PATH",
    "DEFAULT_SERVER_HOST",
    "MIN_POLL_INTERVAL_SECONDS",
    "ProbeSettings",
    "get_probe_settings",
    "load_probe_settings",
]
