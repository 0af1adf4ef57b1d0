# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Find an Emby server on your Tailscale network."""
from embyfind.config import Settings
from embyfind.discovery import Discovery, DiscoveryResult, discover
from embyfind.errors import DiscoveryFailure
from embyfind.probe import ProbeOutcome, ProbeStatus, check

__version__ = "0.1.0"

__all__ = [
    "Settings", "Discovery", "DiscoveryResult", "DiscoveryFailure",
    "ProbeOutcome", "ProbeStatus", "discover", "check",
]
