"""OS-specific process and port discovery strategies."""

from .base import PlatformStrategy
from .cmdline_parser import CommandLineParser
from .psutil_scanner import PsutilProcessScanner
from .selection import select_strategy, target_process_name
from .types import CommandSpec, ProcessCandidate
from .unix import LinuxStrategy, MacOSStrategy, UnixStrategy
from .windows import WindowsStrategy

__all__ = [
    "CommandLineParser",
    "CommandSpec",
    "LinuxStrategy",
    "MacOSStrategy",
    "PlatformStrategy",
    "ProcessCandidate",
    "PsutilProcessScanner",
    "UnixStrategy",
    "WindowsStrategy",
    "select_strategy",
    "target_process_name",
]
