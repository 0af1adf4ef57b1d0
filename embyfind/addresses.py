# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Tailscale address validation (100.64.0.0/10, the CGNAT block)."""
import re

_OCTETS_RE = re.compile(r'^([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})$')

MESH_FIRST_OCTET = 100
MESH_SECOND_RANGE = (64, 127)  # inclusive


def normalize(raw) -> str | None:
    """Return the bare mesh IPv4 address in `raw`, or None.

    Strips a CIDR suffix ("/32") and a port (":41641") before validating.
    Leading zeros are accepted and dropped, so the result is canonical and
    normalize(normalize(x)) == normalize(x).
    """
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if "/" in value:
        value = value.split("/", 1)[0]
    if value.count(":") == 1:
        value = value.split(":", 1)[0]
    m = _OCTETS_RE.match(value)
    if not m:
        return None
    octets = [int(p) for p in m.groups()]
    if any(o > 255 for o in octets):
        return None
    if octets[0] != MESH_FIRST_OCTET:
        return None
    if not MESH_SECOND_RANGE[0] <= octets[1] <= MESH_SECOND_RANGE[1]:
        return None
    return ".".join(str(o) for o in octets)


def is_mesh_address(raw) -> bool:
    return normalize(raw) is not None
