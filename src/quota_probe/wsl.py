"""Windows Subsystem for Linux detection helpers."""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

PROC_VERSION_PATH = Path("/proc/version")
RESOLV_CONF_PATH = Path("/etc/resolv.conf")

# DNS resolver address in mirrored networking mode; loopback already reaches the host there.
MIRRORED_MODE_RESOLVER = "10.255.255.254"

_NAMESERVER_PATTERN = re.compile(r"^nameserver\s+([0-9.]+)", re.MULTILINE)

TextReader = Callable[[], str]


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def is_wsl(platform: Optional[str] = None, version_reader: Optional[TextReader] = None) -> bool:
    """Return True when running under WSL (Linux kernel built by Microsoft)."""
    current = platform or sys.platform
    if not current.startswith("linux"):
        return False

    reader = version_reader or (lambda: _read_text(PROC_VERSION_PATH))
    try:
        version = reader().lower()
    except OSError as exc:
        logger.debug("Unable to read kernel version: %s", exc)
        return False
    return "microsoft" in version or "wsl" in version


def get_wsl_host_ip(resolv_reader: Optional[TextReader] = None) -> Optional[str]:
    """
    Windows host address reachable from a NAT-mode WSL guest.

    Args:
        resolv_reader: Callable returning resolv.conf contents

    Returns:
        First nameserver address, or None in mirrored mode or when unreadable
    """
    reader = resolv_reader or (lambda: _read_text(RESOLV_CONF_PATH))
    try:
        contents = reader()
    except OSError as exc:
        logger.debug("Unable to read resolv.conf: %s", exc)
        return None

    match = _NAMESERVER_PATTERN.search(contents)
    if not match:
        return None
    nameserver = match.group(1)
    if nameserver == MIRRORED_MODE_RESOLVER or nameserver.startswith("127."):
        return None
    return nameserver


__all__ = ["MIRRORED_MODE_RESOLVER", "get_wsl_host_ip", "is_wsl"]
