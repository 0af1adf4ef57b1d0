# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Emby identity probe: GET /System/Info/Public with a bounded timeout."""
import enum
import logging
from dataclasses import dataclass

import httpx

from embyfind.config import Settings

log = logging.getLogger(__name__)


class ProbeStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"
    CONNECTION_ERROR = "connection_error"


@dataclass(frozen=True)
class ProbeOutcome:
    address: str
    status: ProbeStatus
    reason: str = ""
    status_code: int | None = None
    server_name: str | None = None
    version: str | None = None
    server_id: str | None = None

    @property
    def confirmed(self) -> bool:
        return self.status is ProbeStatus.CONFIRMED

    def describe(self) -> str:
        if self.confirmed:
            name = " ".join(str(p) for p in (self.server_name or "Emby", self.version) if p)
            return f"confirmed ({name})"
        if self.status is ProbeStatus.REJECTED:
            return f"rejected (HTTP {self.status_code})"
        if self.status is ProbeStatus.TIMED_OUT:
            return f"timed out ({self.reason})"
        return f"connection error ({self.reason})"

    def to_dict(self) -> dict:
        d = {"address": self.address, "status": self.status.value, "reason": self.reason}
        if self.status_code is not None:
            d["status_code"] = self.status_code
        if self.confirmed:
            d.update(server_name=self.server_name, version=self.version, server_id=self.server_id)
        return d


def build_info_url(address: str, port: int = 8096, info_path: str = "/System/Info/Public") -> str:
    """Info endpoint URL for a bare host, host:port, or full base URL."""
    address = address.strip()
    if address.startswith("http"):
        return address.rstrip("/") + info_path
    host = address.rstrip("/")
    if ":" not in host:
        host = f"{host}:{port}"
    return f"http://{host}{info_path}"


def _identity(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class ServiceProbe:
    """Confirms a candidate by fetching Emby's public system info.

    Pass a shared httpx.AsyncClient to reuse connections within one run;
    otherwise each probe opens and closes its own.
    """

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or Settings()
        self.client = client

    def url_for(self, address: str) -> str:
        return build_info_url(address, self.settings.service_port, self.settings.info_path)

    async def probe(self, address: str, timeout: float | None = None) -> ProbeOutcome:
        if timeout is None:
            timeout = self.settings.discovery_timeout
        url = self.url_for(address)
        try:
            if self.client is not None:
                response = await self.client.get(url, timeout=timeout, follow_redirects=False)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, timeout=timeout, follow_redirects=False)
        except httpx.TimeoutException:
            log.debug(f"Probe {address}: timed out after {timeout:g}s")
            return ProbeOutcome(address, ProbeStatus.TIMED_OUT, f"no answer within {timeout:g}s")
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            reason = str(e) or type(e).__name__
            log.debug(f"Probe {address}: {reason}")
            return ProbeOutcome(address, ProbeStatus.CONNECTION_ERROR, reason)

        code = response.status_code
        if not 200 <= code < 400:
            log.debug(f"Probe {address}: HTTP {code}")
            return ProbeOutcome(address, ProbeStatus.REJECTED, f"HTTP {code}", status_code=code)

        info = _identity(response)
        log.info(f"Probe {address}: Emby server {info.get('ServerName', '?')} (HTTP {code})")
        return ProbeOutcome(
            address, ProbeStatus.CONFIRMED, f"HTTP {code}", status_code=code,
            server_name=info.get("ServerName"),
            version=info.get("Version"),
            server_id=info.get("Id"),
        )


async def check(address: str, settings: Settings | None = None, timeout: float | None = None) -> bool:
    """Direct reachability check for a user-supplied address or URL."""
    settings = settings or Settings.from_env()
    probe = ServiceProbe(settings)
    outcome = await probe.probe(address, timeout if timeout is not None else settings.check_timeout)
    if not outcome.confirmed:
        log.warning(f"Emby server check failed for {address}: {outcome.describe()}")
    return outcome.confirmed
