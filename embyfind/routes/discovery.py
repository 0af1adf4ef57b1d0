# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""Discovery API: find an Emby server over Tailscale, or check one directly."""
import logging

from fastapi import APIRouter, Query
from pydantic import BaseModel

from embyfind import discovery, probe
from embyfind.config import Settings

router = APIRouter(prefix="/api")
log = logging.getLogger(__name__)


class CheckResp(BaseModel):
    address: str
    reachable: bool


@router.get("/health")
async def health():
    return {"ok": True}


@router.get("/discover")
async def discover():
    """Run one discovery. Always 200; a failure is described in the body."""
    result = await discovery.discover(Settings.from_env())
    return result.to_dict()


@router.get("/check", response_model=CheckResp)
async def check(address: str = Query(..., min_length=1, max_length=255)):
    reachable = await probe.check(address, Settings.from_env())
    return CheckResp(address=address, reachable=reachable)
