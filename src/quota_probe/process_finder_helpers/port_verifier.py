"""Port discovery and connectivity verification for one candidate."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from quota_probe.errors import CommandError
from quota_probe.platform_strategies import PlatformStrategy, ProcessCandidate
from quota_probe.protocol_client import ProtocolClient
from quota_probe.wsl import get_wsl_host_ip, is_wsl

from .command_runner import CommandRunner
from .types import (
    PORT_SOURCE_CMDLINE,
    PORT_SOURCE_NETSTAT,
    TOKEN_PREVIEW_LENGTH,
    AttemptRecord,
    ConnectionDescriptor,
    DiscoveryCycle,
)

_MODULE_LOGGER = logging.getLogger(__name__)

WSL_ATTEMPT_SUFFIX = " (WSL Host IP)"


def wsl_gateway() -> Optional[str]:
    """Host gateway to probe second when running under NAT-mode WSL."""
    if not is_wsl():
        return None
    return get_wsl_host_ip()


class PortVerifier:
    """Finds the port on which a candidate answers the verification request."""

    def __init__(
        self,
        strategy: PlatformStrategy,
        runner: CommandRunner,
        client: ProtocolClient,
        *,
        host: str,
        api_path: str,
        probe_timeout: float,
        gateway_resolver: Optional[Callable[[], Optional[str]]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.strategy = strategy
        self.runner = runner
        self.client = client
        self.host = host
        self.api_path = api_path
        self.probe_timeout = probe_timeout
        self._gateway_resolver = gateway_resolver or wsl_gateway
        self.logger = logger or _MODULE_LOGGER

    async def list_ports(self, pid: int) -> List[int]:
        try:
            output = await self.runner.run(self.strategy.list_ports_command(pid))
        except CommandError as exc:
            self.logger.debug("Port listing for PID %s failed: %s", pid, exc)
            return []
        return self.strategy.parse_ports(output.stdout, pid)

    def _hosts(self) -> List[str]:
        hosts = [self.host]
        gateway = self._gateway_resolver()
        if gateway and gateway not in hosts:
            hosts.append(gateway)
        return hosts

    async def verify(self, candidate: ProcessCandidate, cycle: DiscoveryCycle) -> Optional[ConnectionDescriptor]:
        """
        Probe every known port of ``candidate`` until one answers 2xx.

        Args:
            candidate: Candidate to verify
            cycle: Bookkeeping for the current discovery cycle; receives one record per probe

        Returns:
            Descriptor for the first verified port, or None
        """
        ports = await self.list_ports(candidate.pid)
        cycle.ports_from_netstat = len(ports)
        cycle.token_preview = candidate.csrf_token[:TOKEN_PREVIEW_LENGTH]

        if candidate.extension_port > 0 and candidate.extension_port not in ports:
            ports = [candidate.extension_port] + ports
            cycle.ports_from_cmdline = 1

        if not ports:
            self.logger.debug("PID %s exposes no listening ports", candidate.pid)
            return None

        hosts = self._hosts()
        for port in ports:
            source = PORT_SOURCE_CMDLINE if port == candidate.extension_port else PORT_SOURCE_NETSTAT
            for index, host in enumerate(hosts):
                if index:
                    self.logger.debug("WSL detected, trying host IP %s:%s", host, port)
                result = await self.client.test_port(
                    host,
                    port,
                    self.api_path,
                    candidate.csrf_token,
                    timeout=self.probe_timeout,
                )
                error = result.error
                if index and error:
                    error += WSL_ATTEMPT_SUFFIX
                cycle.record(
                    AttemptRecord(
                        pid=candidate.pid,
                        port=port,
                        status_code=result.status_code,
                        protocol=result.protocol,
                        port_source=source,
                        host=host,
                        error=error,
                    )
                )
                if result.success:
                    cycle.protocol_used = result.protocol
                    return ConnectionDescriptor(port=port, csrf_token=candidate.csrf_token)
        return None


__all__ = ["PortVerifier", "wsl_gateway"]
