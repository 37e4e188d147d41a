from __future__ import annotations

"""Typed accessors for ``QUOTA_PROBE_*`` environment variables.

Lookups consult the process environment first and fall back to the first
dotenv file in ``_DOTENV_CANDIDATES`` that declares the key. Dotenv values are
read once and cached until ``reset_default_values`` is called.
"""


import os
from pathlib import Path
from typing import Callable, Optional, Sequence, TypeVar

from .errors import ConfigurationError

_TRUE_VALUES = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "f", "no", "n", "off"})

_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".quota_probe.env")

_DEFAULT_VALUES: dict[str, str] | None = None

N = TypeVar("N", int, float)


def _dotenv_defaults() -> dict[str, str]:
    from .runtime_helpers import read_dotenv

    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is None:
        merged: dict[str, str] = {}
        for path in _DOTENV_CANDIDATES:
            for key, value in read_dotenv(path).items():
                merged.setdefault(key, value)
        _DEFAULT_VALUES = merged
    return _DEFAULT_VALUES


def reset_default_values() -> None:
    """Forget cached dotenv defaults so the next lookup re-reads the files."""
    global _DEFAULT_VALUES
    _DEFAULT_VALUES = None


def _missing(name: str) -> ConfigurationError:
    return ConfigurationError(f"Required environment variable {name!r} is not set")


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> str | None:
    """
    Read a string setting.

    Args:
        name: Variable name
        or_value: Returned when neither the environment nor a dotenv file sets ``name``
        required: Raise instead of returning ``or_value``
        strip: Strip surrounding whitespace
        allow_blank: Treat an empty value as set rather than missing

    Returns:
        The configured value, or ``or_value``
    """
    for source in (os.environ, _dotenv_defaults()):
        value = source.get(name)
        if value is None:
            continue
        if strip:
            value = value.strip()
        if value or allow_blank:
            return value

    if required:
        raise _missing(name)
    return or_value


def _env_number(name: str, convert: Callable[[str], N], kind: str, or_value: Optional[N], required: bool) -> Optional[N]:
    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise _missing(name)
        return or_value
    try:
        return convert(raw)
    except ValueError as exc:
        raise ConfigurationError.invalid_format(name, raw, kind) from exc


def env_int(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    return _env_number(name, int, "an integer", or_value, required)


def env_float(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    return _env_number(name, float, "a number", or_value, required)


def env_seconds(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Non-negative duration in (possibly fractional) seconds."""
    value = env_float(name, or_value=or_value, required=required)
    if value is not None and value < 0:
        raise ConfigurationError.invalid_format(name, str(value), "a non-negative number of seconds")
    return value


def env_bool(name: str, or_value: bool | None = None, *, required: bool = False) -> bool | None:
    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise _missing(name)
        return or_value

    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError.invalid_format(name, raw, f"one of {sorted(_TRUE_VALUES | _FALSE_VALUES)}")


def env_list(
    name: str,
    *,
    or_value: Sequence[str] | None = None,
    separator: str = ",",
    unique: bool = True,
) -> tuple[str, ...] | None:
    """Split a delimited setting into non-empty, stripped items."""
    raw = env_str(name)
    if raw is None:
        return None if or_value is None else tuple(or_value)

    items = [item.strip() for item in (raw.split(separator) if separator else [raw])]
    items = [item for item in items if item]
    if unique:
        return tuple(dict.fromkeys(items))
    return tuple(items)


__all__ = [
    "ConfigurationError",
    "env_bool",
    "env_float",
    "env_int",
    "env_list",
    "env_seconds",
    "env_str",
    "reset_default_values",
]
