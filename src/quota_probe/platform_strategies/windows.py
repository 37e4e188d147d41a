"""Windows strategy: PowerShell CIM queries and ``netstat -ano``."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional

import orjson

from .base import PlatformStrategy, sorted_unique
from .types import CommandSpec, ProcessCandidate

logger = logging.getLogger(__name__)

TARGET_ENV_VAR = "QUOTA_PROBE_TARGET_NAME"
KEYWORD_ENV_VAR = "QUOTA_PROBE_KEYWORD"
PID_ENV_VAR = "QUOTA_PROBE_PID"

_POWERSHELL = ("powershell", "-ExecutionPolicy", "Bypass", "-NoProfile", "-NonInteractive", "-Command")
_UTF8_PREAMBLE = "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; "
_SELECT_AS_JSON = (
    "if ($p) { @($p) | Select-Object ProcessId,ParentProcessId,CommandLine | ConvertTo-Json -Compress } "
    "else { '[]' }"
)

_LIST_BY_NAME_SCRIPT = (
    _UTF8_PREAMBLE
    + "$p = Get-CimInstance Win32_Process -ErrorAction SilentlyContinue "
    f"-Filter (\"Name='{{0}}'\" -f $env:{TARGET_ENV_VAR}); "
    + _SELECT_AS_JSON
)
# "_" is a single-character wildcard in WQL LIKE.
_LIST_BY_KEYWORD_SCRIPT = (
    _UTF8_PREAMBLE
    + "$p = Get-CimInstance Win32_Process -ErrorAction SilentlyContinue "
    f"-Filter (\"CommandLine LIKE '%{{0}}%'\" -f ($env:{KEYWORD_ENV_VAR} -replace '_', '[_]')); "
    + _SELECT_AS_JSON
)
_PARENT_PID_SCRIPT = (
    "(Get-CimInstance Win32_Process -ErrorAction SilentlyContinue "
    f"-Filter (\"ProcessId={{0}}\" -f [int]$env:{PID_ENV_VAR})).ParentProcessId"
)
_DIAGNOSTIC_SCRIPT = (
    _UTF8_PREAMBLE
    + "Get-Process | Where-Object { $_.ProcessName -match 'language|antigravity' } | "
    "Select-Object Id,ProcessName,Path | Format-Table -AutoSize"
)

_LISTENING_PATTERN = re.compile(
    r"(?:127\.0\.0\.1|0\.0\.0\.0|\[::1?\]):(\d+)\s+\S+\s+LISTENING\s+(\d+)",
    re.IGNORECASE,
)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class WindowsStrategy(PlatformStrategy):
    """Process and port discovery on Windows 10/11 (PowerShell 5.1 or pwsh 7)."""

    name = "windows"
    workspace_platform = "windows"
    needs_warmup = True

    def list_processes_command(self, target_name: str) -> CommandSpec:
        return CommandSpec(argv=_POWERSHELL + (_LIST_BY_NAME_SCRIPT,), env={TARGET_ENV_VAR: target_name})

    def list_processes_by_keyword_command(self, keyword: str) -> CommandSpec:
        return CommandSpec(argv=_POWERSHELL + (_LIST_BY_KEYWORD_SCRIPT,), env={KEYWORD_ENV_VAR: keyword})

    def parse_processes(self, stdout: str) -> Optional[List[ProcessCandidate]]:
        text = stdout.strip()
        if not text:
            return None
        try:
            data = orjson.loads(text)
        except orjson.JSONDecodeError:
            logger.debug("Process listing is not valid JSON: %.200s", text)
            return None

        records = data if isinstance(data, list) else [data]
        candidates: List[ProcessCandidate] = []
        for record in records:
            if not isinstance(record, dict):
                continue
            pid = _as_int(record.get("ProcessId"))
            if not pid:
                continue
            command_line = record.get("CommandLine") or ""
            candidate = self.parser.parse(pid, _as_int(record.get("ParentProcessId")), str(command_line))
            if candidate is not None:
                candidates.append(candidate)
        return candidates or None

    def list_ports_command(self, pid: int) -> CommandSpec:
        return CommandSpec(
            argv=("netstat", "-ano"),
            line_filter=re.compile(rf"LISTENING\s+{pid}\s*$", re.IGNORECASE),
        )

    def parse_ports(self, stdout: str, pid: int) -> List[int]:
        ports = []
        for match in _LISTENING_PATTERN.finditer(stdout):
            if int(match.group(2)) == pid:
                ports.append(int(match.group(1)))
        return sorted_unique(ports)

    def parent_pid_command(self, pid: int) -> CommandSpec:
        return CommandSpec(argv=_POWERSHELL + (_PARENT_PID_SCRIPT,), env={PID_ENV_VAR: str(pid)})

    def diagnostic_command(self) -> CommandSpec:
        return CommandSpec(argv=_POWERSHELL + (_DIAGNOSTIC_SCRIPT,))

    def troubleshooting_tips(self) -> List[str]:
        return [
            "Ensure Antigravity IDE is running",
            "Check if language_server_windows_x64.exe is in Task Manager",
            "Try restarting Antigravity IDE / VS Code",
            "If PowerShell errors occur, try: Set-ExecutionPolicy -Scope CurrentUser -ExecutionPolicy RemoteSigned",
            "If WMI errors occur, try: net start winmgmt (run as admin)",
        ]

    def manual_diagnostic_hint(self) -> str:
        return 'Get-Process | Where-Object { $_.ProcessName -match "language|antigravity" }'


__all__ = ["WindowsStrategy"]
