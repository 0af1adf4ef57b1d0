# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Extract candidate addresses from `tailscale status --json` output.

The status schema has drifted between Tailscale releases, so three shapes are
tried in order until one gives at least one address:

  1. "Peer": {peer-id: {"TailscaleIPs": [...], "Addrs": [...], ...}}
  2. "Self": {"TailscaleIPs": [...], ...}
  3. any string anywhere in the document
"""
import json
import logging

from embyfind.addresses import normalize
from embyfind.errors import MalformedStatus

log = logging.getLogger(__name__)

PEER_FIELDS = ("TailscaleIPs", "Addrs", "Endpoints", "PrimaryRoutes")
SELF_FIELDS = ("TailscaleIPs", "Addrs", "Endpoints")


def _field_strings(value):
    """A status field is either a single string or a list of strings."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, str):
                yield item


def _from_record(record, fields) -> list[str]:
    found = []
    if not isinstance(record, dict):
        return found
    for name in fields:
        for s in _field_strings(record.get(name)):
            addr = normalize(s)
            if addr:
                found.append(addr)
    return found


def _walk(node):
    if isinstance(node, str):
        yield node
    elif isinstance(node, dict):
        for value in node.values():
            yield from _walk(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk(item)


def _dedupe(addrs) -> list[str]:
    return list(dict.fromkeys(addrs))


def extract(document) -> list[str]:
    """Return deduplicated candidate addresses, in document order."""
    if isinstance(document, dict):
        peers = document.get("Peer")
        if isinstance(peers, dict):
            found = []
            for record in peers.values():
                found.extend(_from_record(record, PEER_FIELDS))
            if found:
                return _dedupe(found)

        found = _from_record(document.get("Self"), SELF_FIELDS)
        if found:
            return _dedupe(found)

    found = _dedupe(a for a in map(normalize, _walk(document)) if a)
    if found:
        log.debug(f"Status: no Peer/Self addresses, deep scan found {len(found)}")
    return found


def parse(text) -> list[str]:
    """Decode raw CLI output and extract candidates.

    Raises MalformedStatus for empty or non-JSON text; a valid document
    without mesh addresses gives [].
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    stripped = (text or "").strip()
    if not stripped:
        raise MalformedStatus("Empty status output")
    if stripped[0] not in "{[":
        raise MalformedStatus(f"Status output is not JSON: {stripped[:40]!r}")
    try:
        document = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise MalformedStatus(f"Invalid status JSON: {e}")
    return extract(document)
