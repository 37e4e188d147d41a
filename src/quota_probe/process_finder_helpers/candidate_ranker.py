"""Workspace matching and parent-chain heuristics used to order candidates."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from quota_probe.platform_strategies import ProcessCandidate
from quota_probe.workspace_id import loose_key

_MODULE_LOGGER = logging.getLogger(__name__)

MAX_ANCESTRY_LEVELS = 3

ParentLookup = Callable[[int], Awaitable[Optional[int]]]


class WorkspaceMatcher:
    """Compares candidate workspace ids against the ids expected for this session."""

    def __init__(self, expected_ids: Sequence[str]):
        self.expected_ids = tuple(expected_ids)
        self._loose_keys = {loose_key(identifier) for identifier in self.expected_ids}

    def is_exact(self, candidate: ProcessCandidate) -> bool:
        return bool(candidate.workspace_id) and candidate.workspace_id in self.expected_ids

    def is_mismatch(self, candidate: ProcessCandidate) -> bool:
        """True when both sides know a workspace id and they differ."""
        if not self.expected_ids or not candidate.workspace_id:
            return False
        return candidate.workspace_id not in self.expected_ids

    def is_loose_match(self, candidate: ProcessCandidate) -> bool:
        if not candidate.workspace_id:
            return False
        return loose_key(candidate.workspace_id) in self._loose_keys

    def first_exact(self, candidates: Iterable[ProcessCandidate]) -> Optional[ProcessCandidate]:
        if not self.expected_ids:
            return None
        return next((candidate for candidate in candidates if self.is_exact(candidate)), None)


def first_with_parent(candidates: Iterable[ProcessCandidate], parent_pid: int) -> Optional[ProcessCandidate]:
    return next((candidate for candidate in candidates if candidate.ppid == parent_pid), None)


async def trace_ancestry(
    candidate: ProcessCandidate,
    own_pid: int,
    parent_lookup: ParentLookup,
    max_levels: int = MAX_ANCESTRY_LEVELS,
    logger: Optional[logging.Logger] = None,
) -> Optional[int]:
    """
    Walk up from the candidate's parent looking for ``own_pid``.

    Args:
        candidate: Candidate whose ancestry to trace
        own_pid: PID of this process
        parent_lookup: Coroutine resolving a PID to its parent PID
        max_levels: Number of parent hops to examine
        logger: Receives one debug record per hop

    Returns:
        1-based level at which ``own_pid`` was found, or None
    """
    log = logger or _MODULE_LOGGER
    parent = candidate.ppid
    if not parent:
        return None
    for level in range(max_levels):
        if parent == own_pid:
            return level + 1
        next_parent = await parent_lookup(parent)
        log.debug("PID %s ancestry level %s: %s -> %s", candidate.pid, level + 1, parent, next_parent)
        if not next_parent or next_parent == parent or next_parent <= 1:
            break
        parent = next_parent
    return None


__all__ = ["MAX_ANCESTRY_LEVELS", "WorkspaceMatcher", "first_with_parent", "trace_ancestry"]
