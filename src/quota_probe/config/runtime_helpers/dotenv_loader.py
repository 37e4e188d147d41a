"""Reading of ``QUOTA_PROBE_*`` defaults from dotenv files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple

from ..errors import ConfigurationError

KEY_PREFIX = "QUOTA_PROBE_"


def parse_dotenv_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Split one dotenv line into a probe key and its value.

    Accepts ``KEY=value``, ``export KEY=value`` and single or double quoted
    values. Comments, blank lines and keys outside ``QUOTA_PROBE_*`` yield None.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    key, raw_value = stripped.split("=", 1)
    key = key.strip()
    if key.startswith("export "):
        key = key[len("export ") :].strip()
    if not key.startswith(KEY_PREFIX):
        return None
    return key, raw_value.strip().strip("'").strip('"')


def read_dotenv(path: Path) -> Dict[str, str]:
    """
    Probe settings declared in ``path``.

    Args:
        path: Dotenv file; a missing file yields no values

    Returns:
        Mapping of ``QUOTA_PROBE_*`` keys to raw string values

    Raises:
        ConfigurationError: If the file exists but cannot be read
    """
    if not path.is_file():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError.load_failed("dotenv defaults", str(path)) from exc

    values: Dict[str, str] = {}
    for line in text.splitlines():
        entry = parse_dotenv_line(line)
        if entry is not None:
            values[entry[0]] = entry[1]
    return values


__all__ = ["KEY_PREFIX", "parse_dotenv_line", "read_dotenv"]
