"""Shared fixtures: fast settings and scripted fakes for strategies and probes."""
import asyncio

import pytest

from embyfind.config import Settings
from embyfind.probe import ProbeOutcome, ProbeStatus


@pytest.fixture
def settings():
    return Settings(
        discovery_timeout=0.5,
        check_timeout=1.0,
        cli_timeout=0.5,
        connect_timeout=0.1,
        cli_locations=("/opt/a/tailscale", "/opt/b/tailscale"),
    )


def confirmed(addr, name="Living Room"):
    return ProbeOutcome(addr, ProbeStatus.CONFIRMED, "HTTP 200", status_code=200, server_name=name, version="4.8.0")


def rejected(addr, code=404):
    return ProbeOutcome(addr, ProbeStatus.REJECTED, f"HTTP {code}", status_code=code)


class FakeProbe:
    """Answers from a dict of address -> ProbeOutcome; unknown addresses time out."""

    def __init__(self, answers=None, delays=None):
        self.answers = answers or {}
        self.delays = delays or {}
        self.calls = []
        self.cancelled = []

    async def probe(self, address, timeout=None):
        self.calls.append(address)
        try:
            if address in self.delays:
                await asyncio.sleep(self.delays[address])
        except asyncio.CancelledError:
            self.cancelled.append(address)
            raise
        return self.answers.get(address) or ProbeOutcome(address, ProbeStatus.TIMED_OUT, "no answer")


class FakeStrategy:
    def __init__(self, name, candidates=None, error=None):
        self.name = name
        self._candidates = candidates or []
        self.error = error
        self.calls = 0

    async def candidates(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self._candidates)
