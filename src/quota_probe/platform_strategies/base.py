"""Platform strategy interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from quota_probe.config.settings import DEFAULT_APP_DATA_DIR

from .cmdline_parser import CommandLineParser
from .types import CommandSpec, ProcessCandidate


class PlatformStrategy(ABC):
    """Builds OS-specific commands and parses their output."""

    name: str = "unknown"
    workspace_platform: str = "unix"
    needs_warmup: bool = False

    def __init__(self, app_data_dir: Optional[str] = DEFAULT_APP_DATA_DIR):
        self.parser = CommandLineParser(app_data_dir)

    @abstractmethod
    def list_processes_command(self, target_name: str) -> CommandSpec: ...

    @abstractmethod
    def parse_processes(self, stdout: str) -> Optional[List[ProcessCandidate]]: ...

    @abstractmethod
    def list_ports_command(self, pid: int) -> CommandSpec: ...

    @abstractmethod
    def parse_ports(self, stdout: str, pid: int) -> List[int]: ...

    @abstractmethod
    def parent_pid_command(self, pid: int) -> CommandSpec: ...

    def parse_parent_pid(self, stdout: str) -> Optional[int]:
        text = stdout.strip()
        if not text:
            return None
        try:
            return int(text.split()[0])
        except ValueError:
            return None

    def list_processes_by_keyword_command(self, keyword: str) -> Optional[CommandSpec]:
        return None

    def diagnostic_command(self) -> Optional[CommandSpec]:
        return None

    def troubleshooting_tips(self) -> List[str]:
        return []

    def manual_diagnostic_hint(self) -> str:
        return ""


def sorted_unique(ports) -> List[int]:
    return sorted(set(ports))


__all__ = ["PlatformStrategy", "sorted_unique"]
