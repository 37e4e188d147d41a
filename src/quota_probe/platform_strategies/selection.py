"""One-time choice of the platform strategy and the target process name."""

from __future__ import annotations

import logging
import platform as _platform
from typing import Optional, Tuple

from quota_probe.config.settings import DEFAULT_APP_DATA_DIR

from .base import PlatformStrategy
from .unix import LinuxStrategy, MacOSStrategy
from .windows import WindowsStrategy

logger = logging.getLogger(__name__)

_ARM_MACHINES = {"arm64", "aarch64", "armv8", "armv8l"}


def _is_arm(machine: str) -> bool:
    return machine.lower() in _ARM_MACHINES


def target_process_name(system: str, machine: str) -> str:
    """
    Executable name of the language server for an OS/architecture pair.

    Args:
        system: ``platform.system()`` value
        machine: ``platform.machine()`` value

    Returns:
        Process name to search for
    """
    lowered = system.lower()
    if lowered == "windows":
        return "language_server_windows_x64.exe"
    if lowered == "darwin":
        return "language_server_macos_arm" if _is_arm(machine) else "language_server_macos"
    return "language_server_linux_arm" if _is_arm(machine) else "language_server_linux_x64"


def select_strategy(
    system: Optional[str] = None,
    machine: Optional[str] = None,
    *,
    app_data_dir: Optional[str] = DEFAULT_APP_DATA_DIR,
) -> Tuple[PlatformStrategy, str]:
    """Pick the strategy for this host (or the given OS) plus the process name it looks for."""
    system = system or _platform.system()
    machine = machine or _platform.machine()

    lowered = system.lower()
    strategy: PlatformStrategy
    if lowered == "windows":
        strategy = WindowsStrategy(app_data_dir)
    elif lowered == "darwin":
        strategy = MacOSStrategy(app_data_dir)
    else:
        strategy = LinuxStrategy(app_data_dir)

    name = target_process_name(system, machine)
    logger.debug("Selected %s strategy, target process %s", strategy.name, name)
    return strategy, name


__all__ = ["select_strategy", "target_process_name"]
