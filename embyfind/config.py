# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Runtime settings, read from the environment (and .env) once per run."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from current dir or parent dir (for local dev)
load_dotenv()
load_dotenv(Path(__file__).parent.parent / ".env")

log = logging.getLogger(__name__)

# Emby defaults
SERVICE_PORT = 8096
INFO_PATH = "/System/Info/Public"
WEB_PATH = "/web/index.html"

# Known install locations of the Tailscale control CLI, tried in order.
# A bare name is resolved on PATH.
CLI_LOCATIONS = (
    "tailscale",
    "/usr/bin/tailscale",
    "/usr/local/bin/tailscale",
    "/opt/homebrew/bin/tailscale",
    "/Applications/Tailscale.app/Contents/MacOS/Tailscale",
    r"C:\Program Files\Tailscale\tailscale.exe",
)

# Fallback scan grid: 100.<second>.0.<last>
SCAN_SECOND_OCTETS = (64, 100, 101, 127)
SCAN_LAST_OCTETS = (1, 2, 3, 4, 5, 10)
NEIGHBOUR_COUNT = 10


def _env_float(name: str, default: float, below: float | None = None) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        log.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    if below is not None and value >= below:
        log.warning(f"Ignoring {name}={raw!r} (must be under {below:g}), using {default}")
        return default
    return value


def _env_int(name: str, default: int, maximum: int | None = None) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    if value < 1:
        log.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    if maximum is not None and value > maximum:
        log.warning(f"Ignoring {name}={raw!r} (max {maximum}), using {default}")
        return default
    return value


@dataclass(frozen=True)
class Settings:
    service_port: int = SERVICE_PORT
    info_path: str = INFO_PATH
    discovery_timeout: float = 3.0    # per-candidate probe during discovery
    check_timeout: float = 10.0       # user-facing direct check
    cli_timeout: float = 5.0          # each tailscale subprocess
    connect_timeout: float = 0.5      # fallback raw TCP connect
    probe_concurrency: int = 1        # 1 = strictly sequential candidate walk
    scan_concurrency: int = 8
    cli_locations: tuple[str, ...] = CLI_LOCATIONS
    scan_second_octets: tuple[int, ...] = SCAN_SECOND_OCTETS
    scan_last_octets: tuple[int, ...] = SCAN_LAST_OCTETS
    neighbour_count: int = NEIGHBOUR_COUNT

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from EMBYFIND_* environment variables."""
        locations = CLI_LOCATIONS
        extra_cli = os.environ.get("EMBYFIND_TAILSCALE", "").strip()
        if extra_cli:
            locations = (extra_cli,) + tuple(loc for loc in CLI_LOCATIONS if loc != extra_cli)
        info_path = os.environ.get("EMBYFIND_INFO_PATH", "").strip() or INFO_PATH
        if not info_path.startswith("/"):
            info_path = "/" + info_path
        return cls(
            service_port=_env_int("EMBYFIND_SERVICE_PORT", SERVICE_PORT, maximum=65535),
            info_path=info_path,
            discovery_timeout=_env_float("EMBYFIND_DISCOVERY_TIMEOUT", 3.0),
            check_timeout=_env_float("EMBYFIND_CHECK_TIMEOUT", 10.0),
            cli_timeout=_env_float("EMBYFIND_CLI_TIMEOUT", 5.0),
            connect_timeout=_env_float("EMBYFIND_CONNECT_TIMEOUT", 0.5, below=1.0),
            probe_concurrency=_env_int("EMBYFIND_PROBE_CONCURRENCY", 1),
            scan_concurrency=_env_int("EMBYFIND_SCAN_CONCURRENCY", 8),
            cli_locations=locations,
        )


def log_level() -> str:
    return os.environ.get("EMBYFIND_LOG_LEVEL", "INFO").upper()
