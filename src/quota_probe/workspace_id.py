"""
Workspace identifiers as the language server derives them from folder paths.

The server tags each process with ``--workspace_id`` built from the opened
folder. The rules below reproduce its output byte for byte; treat them as a
wire format and only change them against real server output.
"""

from __future__ import annotations

import ntpath
import os
import posixpath
import re
import sys
from typing import Iterable, List, Optional
from urllib.parse import quote

# Characters encodeURIComponent leaves untouched on top of quote()'s defaults.
_URI_COMPONENT_SAFE = "!~*'()"

_DRIVE_PATTERN = re.compile(r"^([A-Za-z]):(.*)$", re.DOTALL)
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_LEADING_NON_ALNUM = re.compile(r"^[^a-zA-Z0-9]+")
_TRAILING_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+$")
_LOOSE_SEPARATORS = re.compile(r"[._\-]")
_WINDOWS_SEPARATORS = re.compile(r"[\\/]")

WINDOWS = "windows"
UNIX = "unix"


def _encode_segment(segment: str) -> str:
    return quote(segment, safe=_URI_COMPONENT_SAFE)


def normalize_unix_path(path: str) -> str:
    """Map a POSIX (or UNC) path to ``file_<segments>``, preserving case."""
    slashed = path.replace("\\", "/")
    encoded = "/".join(_encode_segment(segment) for segment in slashed.split("/"))
    encoded = _LEADING_NON_ALNUM.sub("", encoded)
    encoded = _TRAILING_NON_ALNUM.sub("", encoded)
    return f"file_{_NON_ALNUM.sub('_', encoded)}"


def normalize_windows_path(path: str) -> str:
    """Map ``X:\\dir\\sub`` (or ``X:/dir/sub``) to ``file_x_3A_dir_sub``; UNC paths use the POSIX rule."""
    match = _DRIVE_PATTERN.match(path)
    if not match:
        return normalize_unix_path(path)

    drive = match.group(1).lower()
    remainder = "_".join(_encode_segment(segment) for segment in _WINDOWS_SEPARATORS.split(match.group(2)))
    remainder = _NON_ALNUM.sub("_", remainder).lstrip("_")
    return f"file_{drive}_3A_{remainder}"


def normalize(path: str, platform: str) -> str:
    """
    Compute the workspace identifier for ``path``.

    Args:
        path: Workspace root as the host OS spells it
        platform: ``"windows"`` or ``"unix"``

    Returns:
        Identifier in the server's ``file_...`` format
    """
    if platform == WINDOWS:
        return normalize_windows_path(path)
    if platform == UNIX:
        return normalize_unix_path(path)
    raise ValueError(f"Unsupported platform for workspace identifiers: {platform!r}")


def host_platform() -> str:
    return WINDOWS if sys.platform.startswith("win") else UNIX


def absolute_root(path: str, platform: Optional[str] = None) -> str:
    """Expand ``~`` and anchor a relative root at the current directory; absolute roots pass through."""
    expanded = os.path.expanduser(str(path))
    flavor = ntpath if (platform or host_platform()) == WINDOWS else posixpath
    if flavor.isabs(expanded):
        return expanded
    return os.path.abspath(expanded)


def expected_workspace_ids(roots: Iterable[str], platform: Optional[str] = None) -> List[str]:
    """Identifiers for every workspace root, in input order."""
    target = platform or host_platform()
    return [normalize(str(root), target) for root in roots]


def loose_key(identifier: str) -> str:
    """Separator- and case-insensitive form used for fallback matching."""
    return _LOOSE_SEPARATORS.sub("", identifier).lower()


__all__ = [
    "UNIX",
    "WINDOWS",
    "absolute_root",
    "expected_workspace_ids",
    "host_platform",
    "loose_key",
    "normalize",
    "normalize_unix_path",
    "normalize_windows_path",
]
