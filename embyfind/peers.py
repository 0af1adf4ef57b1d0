# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Peer list from the Tailscale control CLI, tried across known install paths."""
import asyncio
import logging
import shutil
from dataclasses import dataclass

from embyfind import status
from embyfind.config import Settings
from embyfind.errors import (
    CLI_UNAVAILABLE, MALFORMED_STATUS, TIMEOUT,
    CliUnavailable, Diagnostic, MalformedStatus,
)

log = logging.getLogger(__name__)


@dataclass
class CliResult:
    returncode: int
    stdout: str
    stderr: str


class CliTimeout(Exception):
    pass


async def run_cli(executable: str, *args: str, timeout: float) -> CliResult:
    """Run the CLI with a hard deadline; the child is killed on timeout or cancel.

    Raises OSError (FileNotFoundError, PermissionError) or ValueError (e.g. a
    NUL byte in the path) when it can't be started, and CliTimeout when the
    deadline passes.
    """
    proc = await asyncio.create_subprocess_exec(
        executable, *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill(proc)
        await proc.wait()
        raise CliTimeout(f"no answer within {timeout:g}s")
    except asyncio.CancelledError:
        _kill(proc)
        await proc.wait()
        raise
    return CliResult(
        proc.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def _kill(proc):
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass


def resolve_locations(locations) -> list[str]:
    """Resolve bare names on PATH and drop duplicates, keeping order."""
    resolved = []
    for loc in locations:
        if "/" not in loc and "\\" not in loc:
            loc = shutil.which(loc) or loc
        if loc not in resolved:
            resolved.append(loc)
    return resolved


def _first_line(text: str) -> str:
    text = (text or "").strip()
    return text.splitlines()[0][:200] if text else ""


class PeerListProvider:
    """Asks `tailscale status --json` for the peer roster.

    The first location whose CLI answers with a JSON document wins, even if
    that document holds no usable address.
    """
    name = "peers"

    def __init__(self, settings: Settings | None = None, runner=run_cli):
        self.settings = settings or Settings()
        self.runner = runner

    async def candidates(self) -> list[str]:
        return await self.list_candidates()

    async def list_candidates(self) -> list[str]:
        diagnostics: list[Diagnostic] = []
        for location in resolve_locations(self.settings.cli_locations):
            result = await self._try_location(location, diagnostics)
            if result is not None:
                log.info(f"Tailscale CLI at {location}: {len(result)} candidate(s)")
                return result
        log.info(f"Tailscale CLI unavailable ({len(diagnostics)} location(s) failed)")
        raise CliUnavailable("No working Tailscale CLI found", diagnostics)

    async def _run(self, location, args, diagnostics) -> CliResult | None:
        timeout = self.settings.cli_timeout
        cmd = " ".join(("tailscale",) + args)
        try:
            return await self.runner(location, *args, timeout=timeout)
        except CliTimeout as e:
            diagnostics.append(Diagnostic(location, TIMEOUT, f"`{cmd}`: {e}"))
        except FileNotFoundError:
            diagnostics.append(Diagnostic(location, CLI_UNAVAILABLE, "not installed here"))
        except (OSError, ValueError) as e:
            diagnostics.append(Diagnostic(location, CLI_UNAVAILABLE, f"cannot run: {e}"))
        log.debug(f"Tailscale CLI {location}: {diagnostics[-1].detail}")
        return None

    async def _try_location(self, location: str, diagnostics: list) -> list[str] | None:
        health = await self._run(location, ("status",), diagnostics)
        if health is None:
            return None
        if health.returncode != 0:
            reason = _first_line(health.stderr) or _first_line(health.stdout)
            diagnostics.append(Diagnostic(
                location, CLI_UNAVAILABLE,
                f"`tailscale status` exited {health.returncode}" + (f": {reason}" if reason else ""),
            ))
            log.debug(f"Tailscale CLI {location}: unhealthy (exit {health.returncode})")
            return None

        result = await self._run(location, ("status", "--json"), diagnostics)
        if result is None:
            return None
        out = result.stdout.strip()
        if not out or out[0] not in "{[":
            detail = "empty output" if not out else f"non-JSON output {out[:40]!r}"
            diagnostics.append(Diagnostic(location, MALFORMED_STATUS, f"`tailscale status --json`: {detail}"))
            return None
        try:
            return status.parse(out)
        except MalformedStatus as e:
            diagnostics.append(Diagnostic(location, MALFORMED_STATUS, e.message))
            return None
