"""Extraction of the language server's command-line contract."""

from __future__ import annotations

import logging
import re
from typing import Optional

from .types import ProcessCandidate

logger = logging.getLogger(__name__)

_PORT_PATTERN = re.compile(r"--extension_server_port[=\s]+[\"']?(\d+)")
_TOKEN_PATTERN = re.compile(r"--csrf_token[=\s]+[\"']?([a-zA-Z0-9\-_.]+)[\"']?")
_WORKSPACE_PATTERN = re.compile(r"--workspace_id[=\s]+[\"']?([a-zA-Z0-9\-_.]+)[\"']?")

MAX_PORT = 65535


def _app_data_dir_pattern(app_data_dir: str) -> re.Pattern[str]:
    return re.compile(r"--app_data_dir[=\s]+[\"']?" + re.escape(app_data_dir), re.IGNORECASE)


class CommandLineParser:
    """Parses ``--flag value`` / ``--flag=value`` pairs out of a process command line."""

    def __init__(self, app_data_dir: Optional[str] = None):
        self.app_data_dir = app_data_dir or None
        self._app_data_dir_re = _app_data_dir_pattern(app_data_dir) if app_data_dir else None

    @staticmethod
    def extract_port(command_line: str) -> int:
        """
        Port declared with ``--extension_server_port``.

        Args:
            command_line: Full process command line

        Returns:
            The port, or 0 when absent or out of range
        """
        match = _PORT_PATTERN.search(command_line)
        if not match:
            return 0
        port = int(match.group(1))
        return port if 0 < port <= MAX_PORT else 0

    @staticmethod
    def extract_token(command_line: str) -> Optional[str]:
        match = _TOKEN_PATTERN.search(command_line)
        return match.group(1) if match else None

    @staticmethod
    def extract_workspace_id(command_line: str) -> Optional[str]:
        match = _WORKSPACE_PATTERN.search(command_line)
        return match.group(1) if match else None

    def belongs_to_app(self, command_line: str) -> bool:
        if self._app_data_dir_re is None:
            return True
        return bool(self._app_data_dir_re.search(command_line))

    def parse(self, pid: int, ppid: Optional[int], command_line: str) -> Optional[ProcessCandidate]:
        """
        Build a candidate from one process record.

        Args:
            pid: Process id
            ppid: Parent process id, if known
            command_line: Full process command line

        Returns:
            A candidate, or None when the record has no token or belongs to another app
        """
        token = self.extract_token(command_line)
        if not token:
            return None
        if not self.belongs_to_app(command_line):
            logger.debug("Ignoring PID %s: --app_data_dir does not match %r", pid, self.app_data_dir)
            return None
        return ProcessCandidate(
            pid=pid,
            ppid=ppid,
            extension_port=self.extract_port(command_line),
            csrf_token=token,
            workspace_id=self.extract_workspace_id(command_line),
        )


__all__ = ["CommandLineParser"]
