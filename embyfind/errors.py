# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Discovery error taxonomy and the aggregated failure report."""
from dataclasses import dataclass, field

# Diagnostic kinds
CLI_UNAVAILABLE = "CliUnavailable"
MALFORMED_STATUS = "MalformedStatus"
NO_CANDIDATES = "NoCandidates"
NO_FALLBACK_CANDIDATES = "NoFallbackCandidates"
ALL_PROBES_FAILED = "AllProbesFailed"
TIMEOUT = "Timeout"


@dataclass(frozen=True)
class Diagnostic:
    """One recorded reason why a location, phase or candidate gave nothing."""
    source: str   # e.g. "/usr/bin/tailscale", "phase-a", "100.64.0.5"
    kind: str
    detail: str

    def __str__(self):
        return f"{self.source}: {self.detail}"

    def to_dict(self) -> dict:
        return {"source": self.source, "kind": self.kind, "detail": self.detail}


class DiscoveryError(Exception):
    kind = "DiscoveryError"

    def __init__(self, message: str, diagnostics: list[Diagnostic] | None = None):
        super().__init__(message)
        self.message = message
        self.diagnostics = list(diagnostics or [])


class CliUnavailable(DiscoveryError):
    kind = CLI_UNAVAILABLE


class MalformedStatus(DiscoveryError):
    kind = MALFORMED_STATUS


class NoCandidates(DiscoveryError):
    kind = NO_CANDIDATES


class NoFallbackCandidates(DiscoveryError):
    kind = NO_FALLBACK_CANDIDATES


class AllProbesFailed(DiscoveryError):
    kind = ALL_PROBES_FAILED


@dataclass
class StrategyReport:
    """What one strategy (peer list or fallback scan) tried and got."""
    strategy: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    outcomes: list = field(default_factory=list)  # ProbeOutcome, in probe order

    @property
    def probed(self) -> int:
        return len(self.outcomes)

    def summary(self) -> str:
        lines = [f"{self.strategy}: {self.probed} candidate(s) probed"]
        for d in self.diagnostics:
            lines.append(f"  - [{d.kind}] {d}")
        for o in self.outcomes:
            lines.append(f"  - {o.address}: {o.describe()}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "probed": self.probed,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass
class DiscoveryFailure:
    """Returned (never raised) when every strategy is exhausted."""
    reports: list[StrategyReport] = field(default_factory=list)

    @property
    def kinds(self) -> list[str]:
        return [d.kind for r in self.reports for d in r.diagnostics]

    def report(self, strategy: str) -> StrategyReport | None:
        for r in self.reports:
            if r.strategy == strategy:
                return r
        return None

    @property
    def message(self) -> str:
        tried = ", ".join(r.strategy for r in self.reports) or "nothing"
        return f"No Emby server found on the Tailscale network (tried: {tried})"

    def __str__(self):
        return "\n".join([self.message] + [r.summary() for r in self.reports])

    def to_dict(self) -> dict:
        return {"message": self.message, "strategies": [r.to_dict() for r in self.reports]}
