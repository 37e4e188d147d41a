"""Value types shared by the platform strategies."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional, Pattern, Tuple


@dataclass(frozen=True)
class ProcessCandidate:
    """A language server process parsed from OS command output."""

    pid: int
    ppid: Optional[int]
    extension_port: int
    csrf_token: str
    workspace_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.csrf_token:
            raise ValueError(f"Candidate {self.pid} has an empty csrf token")
        if self.extension_port < 0:
            raise ValueError(f"Candidate {self.pid} has a negative port: {self.extension_port}")


@dataclass(frozen=True)
class CommandSpec:
    """
    An OS command expressed as an argument vector.

    ``env`` entries are added on top of the inherited environment and carry any
    caller-supplied value the command needs. ``line_filter`` keeps only stdout
    lines it matches. ``ok_returncodes`` lists exit codes that are not failures.
    """

    argv: Tuple[str, ...]
    env: Optional[Mapping[str, str]] = None
    line_filter: Optional[Pattern[str]] = None
    timeout: Optional[float] = None
    ok_returncodes: Tuple[int, ...] = (0,)

    def filter_output(self, stdout: str) -> str:
        if self.line_filter is None:
            return stdout
        return "\n".join(line for line in stdout.splitlines() if self.line_filter.search(line))

    def describe(self) -> str:
        return " ".join(self.argv)


def literal_filter(text: str) -> Pattern[str]:
    return re.compile(re.escape(text))


__all__ = ["CommandSpec", "ProcessCandidate", "literal_filter"]
