# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Discovery run: try each strategy in order, probe its candidates, stop at the first Emby server.

Strategies are tried in list order (Tailscale peer list, then the fallback
scan). Each one returns candidate addresses or raises a DiscoveryError with
diagnostics. Failures are recorded per strategy and only come back to the
caller as a DiscoveryFailure when every strategy is exhausted.
"""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass

import httpx

from embyfind.config import WEB_PATH, Settings
from embyfind.errors import (
    ALL_PROBES_FAILED, NO_CANDIDATES,
    Diagnostic, DiscoveryError, DiscoveryFailure, StrategyReport,
)
from embyfind.peers import PeerListProvider
from embyfind.probe import ProbeOutcome, ServiceProbe
from embyfind.scanner import FallbackScanner

log = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    address: str | None = None
    outcome: ProbeOutcome | None = None
    strategy: str | None = None
    web_url: str | None = None
    failure: DiscoveryFailure | None = None

    @property
    def ok(self) -> bool:
        return self.address is not None

    def to_dict(self) -> dict:
        if not self.ok:
            return {"ok": False, "error": self.failure.message, "failure": self.failure.to_dict()}
        return {
            "ok": True,
            "address": self.address,
            "web_url": self.web_url,
            "server_name": self.outcome.server_name,
            "version": self.outcome.version,
            "strategy": self.strategy,
        }


async def probe_in_order(candidates, probe, timeout: float, concurrency: int = 1) -> tuple[ProbeOutcome | None, list[ProbeOutcome]]:
    """Probe candidates with at most `concurrency` in flight.

    Outcomes are consumed in list order, so when several candidates confirm
    the lowest index wins. Nothing new is started after a confirmation and
    probes still in flight are cancelled. Returns (winner or None, outcomes
    consumed so far).
    """
    outcomes: list[ProbeOutcome] = []
    queue = iter(candidates)
    pending: deque = deque()

    def fill():
        while len(pending) < max(concurrency, 1):
            addr = next(queue, None)
            if addr is None:
                return
            pending.append(asyncio.ensure_future(probe(addr, timeout)))

    fill()
    try:
        while pending:
            outcome = await pending.popleft()
            outcomes.append(outcome)
            if outcome.confirmed:
                return outcome, outcomes
            fill()
        return None, outcomes
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


class Discovery:
    """One discovery run. Not shared: build a new one (or call discover()) per run."""

    def __init__(self, settings: Settings | None = None, strategies=None, probe: ServiceProbe | None = None):
        self.settings = settings or Settings.from_env()
        self.strategies = strategies
        self.probe = probe

    def default_strategies(self) -> list:
        return [PeerListProvider(self.settings), FallbackScanner(self.settings)]

    async def run(self) -> DiscoveryResult:
        if self.probe is not None:
            return await self._run(self.probe)
        async with httpx.AsyncClient() as client:
            return await self._run(ServiceProbe(self.settings, client))

    async def _run(self, probe: ServiceProbe) -> DiscoveryResult:
        strategies = self.strategies if self.strategies is not None else self.default_strategies()
        failure = DiscoveryFailure()

        for strategy in strategies:
            report = StrategyReport(strategy.name)
            failure.reports.append(report)
            try:
                candidates = await strategy.candidates()
            except DiscoveryError as e:
                log.info(f"Discovery [{strategy.name}]: {e.message}")
                report.diagnostics.append(Diagnostic(strategy.name, e.kind, e.message))
                report.diagnostics.extend(e.diagnostics)
                continue

            if not candidates:
                log.info(f"Discovery [{strategy.name}]: no candidates")
                report.diagnostics.append(Diagnostic(strategy.name, NO_CANDIDATES, "no mesh addresses to probe"))
                continue

            log.info(f"Discovery [{strategy.name}]: probing {len(candidates)} candidate(s)")
            winner, outcomes = await probe_in_order(
                candidates, probe.probe, self.settings.discovery_timeout, self.settings.probe_concurrency,
            )
            report.outcomes.extend(outcomes)
            if winner is not None:
                log.info(f"Discovery [{strategy.name}]: Emby server at {winner.address}")
                return DiscoveryResult(
                    address=winner.address,
                    outcome=winner,
                    strategy=strategy.name,
                    web_url=f"http://{winner.address}:{self.settings.service_port}{WEB_PATH}",
                )
            report.diagnostics.append(Diagnostic(
                strategy.name, ALL_PROBES_FAILED, f"none of {len(candidates)} candidate(s) answered as Emby",
            ))

        log.warning(failure.message)
        return DiscoveryResult(failure=failure)


async def discover(settings: Settings | None = None) -> DiscoveryResult:
    """Find an Emby server on the Tailscale network. Failures come back as data."""
    return await Discovery(settings).run()
