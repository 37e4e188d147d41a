"""Unix strategies: ``ps`` for processes, ``lsof``/``ss``/``netstat`` for ports."""

from __future__ import annotations

import logging
import re
import shutil
from typing import Callable, List, Optional

from quota_probe.config.settings import DEFAULT_APP_DATA_DIR

from .base import PlatformStrategy, sorted_unique
from .types import CommandSpec, ProcessCandidate, literal_filter

logger = logging.getLogger(__name__)

PORT_TOOLS = ("lsof", "ss", "netstat")

_PS_LIST = ("ps", "-A", "-ww", "-o", "pid,ppid,args")
_PS_ROW = re.compile(r"^\s*(\d+)\s+(\d+)\s+(.+)$")

_LSOF_LISTEN = re.compile(r"(?:TCP|UDP)\s+(?:\*|[\d.]+|\[[\da-f:]+\]):(\d+)\s+\(LISTEN\)", re.IGNORECASE)
_SS_LISTEN = re.compile(r"LISTEN\s+\d+\s+\d+\s+(?:\*|[\d.]+|\[[\da-f:]*\]):(\d+)", re.IGNORECASE)
_NETSTAT_LISTEN = re.compile(r"^tcp6?\s+\d+\s+\d+\s+\S*:(\d+)\s+\S+\s+LISTEN\s+(\d+)/", re.IGNORECASE)


def self_excluding_pattern(name: str) -> re.Pattern[str]:
    """``[l]anguage_server...``: matches ``name`` but never a command line that spells the pattern."""
    if not name:
        return re.compile("")
    return re.compile(f"[{re.escape(name[0])}]{re.escape(name[1:])}")


class UnixStrategy(PlatformStrategy):
    """Shared process enumeration and port parsing for macOS and Linux."""

    workspace_platform = "unix"

    def list_processes_command(self, target_name: str) -> CommandSpec:
        return CommandSpec(argv=_PS_LIST, line_filter=self_excluding_pattern(target_name))

    def list_processes_by_keyword_command(self, keyword: str) -> CommandSpec:
        return CommandSpec(argv=_PS_LIST, line_filter=literal_filter(keyword))

    def parse_processes(self, stdout: str) -> Optional[List[ProcessCandidate]]:
        candidates: List[ProcessCandidate] = []
        for line in stdout.splitlines():
            match = _PS_ROW.match(line)
            if not match:
                continue
            candidate = self.parser.parse(int(match.group(1)), int(match.group(2)), match.group(3))
            if candidate is not None:
                candidates.append(candidate)
        return candidates or None

    def lsof_command(self, pid: int) -> CommandSpec:
        return CommandSpec(
            argv=("lsof", "-nP", "-a", "-iTCP", "-sTCP:LISTEN", "-p", str(pid)),
            line_filter=re.compile(rf"^\S+\s+{pid}\s"),
            ok_returncodes=(0, 1),
        )

    def parse_ports(self, stdout: str, pid: int) -> List[int]:
        ports = []
        pid_text = str(pid)
        ss_marker = f"pid={pid},"
        for line in stdout.splitlines():
            columns = line.split()
            if len(columns) >= 2 and columns[1] == pid_text:
                lsof_match = _LSOF_LISTEN.search(line)
                if lsof_match:
                    ports.append(int(lsof_match.group(1)))
                    continue
            if ss_marker in line:
                ss_match = _SS_LISTEN.search(line)
                if ss_match:
                    ports.append(int(ss_match.group(1)))
                    continue
            netstat_match = _NETSTAT_LISTEN.search(line.strip())
            if netstat_match and netstat_match.group(2) == pid_text:
                ports.append(int(netstat_match.group(1)))
        return sorted_unique(ports)

    def parent_pid_command(self, pid: int) -> CommandSpec:
        return CommandSpec(argv=("ps", "-o", "ppid=", "-p", str(pid)))

    def diagnostic_command(self) -> CommandSpec:
        return CommandSpec(argv=("ps", "aux"), line_filter=re.compile(r"language|antigravity"))

    def manual_diagnostic_hint(self) -> str:
        return 'ps aux | grep -E "language|antigravity"'

    def _tips(self, process_name: str) -> List[str]:
        return [
            "Ensure Antigravity IDE is running",
            f"Check if {process_name} process is running: ps aux | grep language_server",
            "Try restarting Antigravity IDE",
            "Check system logs for any process crashes",
        ]


class MacOSStrategy(UnixStrategy):
    name = "darwin"

    def list_ports_command(self, pid: int) -> CommandSpec:
        return self.lsof_command(pid)

    def troubleshooting_tips(self) -> List[str]:
        return self._tips("language_server_macos_*")


class LinuxStrategy(UnixStrategy):
    """Linux variant; the port tool is probed once per strategy instance."""

    name = "linux"

    def __init__(
        self,
        app_data_dir: Optional[str] = DEFAULT_APP_DATA_DIR,
        *,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        super().__init__(app_data_dir)
        self._which = which
        self._port_tool: Optional[str] = None
        self._port_tool_checked = False

    @property
    def port_tool(self) -> Optional[str]:
        if not self._port_tool_checked:
            self._port_tool_checked = True
            self._port_tool = next((tool for tool in PORT_TOOLS if self._which(tool)), None)
            logger.debug("Port listing tool: %s", self._port_tool or "none found")
        return self._port_tool

    def list_ports_command(self, pid: int) -> CommandSpec:
        tool = self.port_tool
        if tool == "ss":
            return CommandSpec(argv=("ss", "-tlnp"), line_filter=literal_filter(f"pid={pid},"))
        if tool == "netstat":
            return CommandSpec(argv=("netstat", "-tlnp"), line_filter=re.compile(rf"\s{pid}/"))
        return self.lsof_command(pid)

    def troubleshooting_tips(self) -> List[str]:
        return self._tips("language_server_linux_x64")


__all__ = ["LinuxStrategy", "MacOSStrategy", "PORT_TOOLS", "UnixStrategy", "self_excluding_pattern"]
