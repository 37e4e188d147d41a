"""Shared configuration helpers and dataclasses."""

from .errors import ConfigurationError
from .runtime import (
    env_bool,
    env_float,
    env_int,
    env_list,
    env_seconds,
    env_str,
    reset_default_values,
)
from .settings import ProbeSettings, get_probe_settings, load_probe_settings

__all__ = [
    "ConfigurationError",
    "ProbeSettings",
    "env_bool",
    "env_float",
    "env_int",
    "env_list",
    "env_seconds",
    "env_str",
    "get_probe_settings",
    "load_probe_settings",
    "reset_default_values",
]
