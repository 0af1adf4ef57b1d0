# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Heuristic fallback scan for when the Tailscale CLI can't be used.

Bounded on purpose: a few likely subnets and host numbers, not a sweep of
the whole 100.64.0.0/10 block.
"""
import asyncio
import logging
import socket

import psutil

from embyfind.addresses import normalize
from embyfind.config import Settings
from embyfind.errors import NO_FALLBACK_CANDIDATES, Diagnostic, NoFallbackCandidates

log = logging.getLogger(__name__)


async def tcp_connect(host: str, port: int, timeout: float) -> bool:
    """True if host:port accepts a TCP connection within `timeout`."""
    try:
        reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except (asyncio.TimeoutError, OSError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


def local_addresses() -> list[str]:
    """All IPv4 addresses configured on local interfaces."""
    addrs = []
    for nic, entries in psutil.net_if_addrs().items():
        for entry in entries:
            if entry.family == socket.AF_INET and entry.address:
                addrs.append(entry.address)
    return addrs


class FallbackScanner:
    name = "fallback"

    def __init__(self, settings: Settings | None = None, connect=tcp_connect, interfaces=local_addresses):
        self.settings = settings or Settings()
        self.connect = connect
        self.interfaces = interfaces

    async def candidates(self) -> list[str]:
        return await self.scan()

    def grid(self) -> list[str]:
        """Phase A addresses, in scan order."""
        addrs = []
        for second in self.settings.scan_second_octets:
            for last in self.settings.scan_last_octets:
                addr = normalize(f"100.{second}.0.{last}")
                if addr:
                    addrs.append(addr)
        return addrs

    async def phase_a(self) -> list[str]:
        grid = self.grid()
        port = self.settings.service_port
        timeout = self.settings.connect_timeout
        sem = asyncio.Semaphore(self.settings.scan_concurrency)

        async def _check(addr):
            async with sem:
                return await self.connect(addr, port, timeout)

        results = await asyncio.gather(*(_check(a) for a in grid))
        found = [a for a, ok in zip(grid, results) if ok]
        log.info(f"Fallback scan: {len(found)}/{len(grid)} address(es) accept port {port}")
        return found

    def phase_b(self) -> list[str]:
        own = None
        for addr in self.interfaces():
            own = normalize(addr)
            if own:
                break
        if not own:
            return []
        prefix, own_last = own.rsplit(".", 1)
        neighbours = []
        last = 1
        while len(neighbours) < self.settings.neighbour_count and last <= 255:
            if last != int(own_last):
                neighbours.append(f"{prefix}.{last}")
            last += 1
        log.info(f"Fallback scan: local mesh address {own}, trying {len(neighbours)} neighbour(s)")
        return neighbours

    async def scan(self) -> list[str]:
        diagnostics = []
        found = await self.phase_a()
        if found:
            return found
        diagnostics.append(Diagnostic(
            "phase-a", NO_FALLBACK_CANDIDATES,
            f"none of {len(self.grid())} common addresses accepted port {self.settings.service_port}",
        ))
        try:
            found = self.phase_b()
        except (OSError, psutil.Error) as e:
            diagnostics.append(Diagnostic("phase-b", NO_FALLBACK_CANDIDATES, f"interface listing failed: {e}"))
            found = []
        else:
            if not found:
                diagnostics.append(Diagnostic("phase-b", NO_FALLBACK_CANDIDATES, "no local Tailscale interface address"))
        if found:
            return found
        raise NoFallbackCandidates("Fallback scan found nothing", diagnostics)
