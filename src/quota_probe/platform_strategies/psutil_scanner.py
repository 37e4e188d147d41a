"""Secondary enumeration through psutil, independent of shell tools."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

import psutil

from .cmdline_parser import CommandLineParser
from .types import ProcessCandidate

logger = logging.getLogger(__name__)

TOKEN_FLAG = "--csrf_token"


class PsutilProcessScanner:
    """Walks the process table for command lines carrying the csrf token flag."""

    def __init__(
        self,
        parser: CommandLineParser,
        process_iter: Callable[..., Iterable] = psutil.process_iter,
    ):
        self.parser = parser
        self._process_iter = process_iter

    def scan(self) -> Optional[List[ProcessCandidate]]:
        candidates: List[ProcessCandidate] = []
        try:
            for proc in self._process_iter(["pid", "ppid", "cmdline"]):
                try:
                    cmdline_value = proc.info.get("cmdline")
                    if not isinstance(cmdline_value, list) or not cmdline_value:
                        continue
                    command_line = " ".join(str(arg) for arg in cmdline_value)
                    if TOKEN_FLAG not in command_line:
                        continue
                    candidate = self.parser.parse(int(proc.info["pid"]), proc.info.get("ppid"), command_line)
                    if candidate is not None:
                        candidates.append(candidate)
                except (  # skip processes that vanish or deny access mid-scan
                    psutil.NoSuchProcess,
                    psutil.AccessDenied,
                ):
                    continue
        except (psutil.Error, OSError):
            logger.exception("Error during psutil process scan")
            return None

        logger.debug("psutil scan found %s candidate(s)", len(candidates))
        return candidates or None


__all__ = ["PsutilProcessScanner"]
