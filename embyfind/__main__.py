# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Command line: `embyfind [discover]` or `embyfind check ADDRESS`."""
import argparse
import asyncio
import json
import logging
import sys

from embyfind import discovery, probe
from embyfind.config import Settings, log_level


def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="embyfind", description="Find an Emby server on your Tailscale network")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    p.add_argument("--json", action="store_true", help="print the result as JSON")
    sub = p.add_subparsers(dest="command")
    sub.add_parser("discover", help="search the Tailscale network (default)")
    c = sub.add_parser("check", help="check one address or URL directly")
    c.add_argument("address")
    args = p.parse_args(argv)

    logging.basicConfig(
        level="DEBUG" if args.verbose else log_level(),
        format='%(asctime)s %(levelname)s: %(message)s',
        handlers=[logging.StreamHandler()]
    )
    settings = Settings.from_env()

    try:
        if args.command == "check":
            reachable = asyncio.run(probe.check(args.address, settings))
            if args.json:
                print(json.dumps({"address": args.address, "reachable": reachable}))
            else:
                print(f"{args.address}: {'Emby server reachable' if reachable else 'not reachable'}")
            return 0 if reachable else 1

        result = asyncio.run(discovery.discover(settings))
    except KeyboardInterrupt:
        print("Cancelled", file=sys.stderr)
        return 130

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.ok:
        name = result.outcome.server_name or "Emby"
        print(f"Found {name} at {result.address} ({result.web_url})")
    else:
        print(str(result.failure), file=sys.stderr)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
