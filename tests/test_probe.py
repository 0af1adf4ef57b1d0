"""Tests for the Emby identity probe and direct check."""
import httpx
import pytest

from embyfind import probe as probe_mod
from embyfind.probe import ProbeOutcome, ProbeStatus, ServiceProbe, build_info_url, check

INFO = {"ServerName": "Living Room", "Version": "4.8.10.0", "Id": "abc123", "LocalAddress": "http://192.168.1.4:8096"}


def make_probe(settings, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ServiceProbe(settings, client=client), client


@pytest.mark.parametrize("address, url", [
    ("100.64.0.5", "http://100.64.0.5:8096/System/Info/Public"),
    ("media.local:9000", "http://media.local:9000/System/Info/Public"),
    ("http://100.64.0.5:8096/", "http://100.64.0.5:8096/System/Info/Public"),
    ("https://emby.example.com", "https://emby.example.com/System/Info/Public"),
])
def test_build_info_url(address, url):
    assert build_info_url(address) == url


@pytest.mark.asyncio
async def test_ok_response_is_confirmed(settings):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json=INFO)

    p, client = make_probe(settings, handler)
    async with client:
        outcome = await p.probe("100.64.0.5", timeout=1)

    assert outcome.confirmed
    assert outcome.server_name == "Living Room"
    assert outcome.version == "4.8.10.0"
    assert outcome.server_id == "abc123"
    assert seen == ["http://100.64.0.5:8096/System/Info/Public"]


@pytest.mark.asyncio
async def test_redirect_counts_as_confirmed(settings):
    p, client = make_probe(settings, lambda r: httpx.Response(302, headers={"Location": "/web/index.html"}))
    async with client:
        outcome = await p.probe("100.64.0.5")
    assert outcome.status is ProbeStatus.CONFIRMED
    assert outcome.server_name is None


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [401, 404, 500, 503])
async def test_error_status_is_rejected(settings, code):
    p, client = make_probe(settings, lambda r: httpx.Response(code))
    async with client:
        outcome = await p.probe("100.64.0.5")
    assert outcome.status is ProbeStatus.REJECTED
    assert outcome.status_code == code


@pytest.mark.asyncio
async def test_timeout(settings):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    p, client = make_probe(settings, handler)
    async with client:
        outcome = await p.probe("100.64.0.5", timeout=0.2)
    assert outcome.status is ProbeStatus.TIMED_OUT
    assert "0.2s" in outcome.reason


@pytest.mark.asyncio
async def test_connection_error(settings):
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    p, client = make_probe(settings, handler)
    async with client:
        outcome = await p.probe("100.64.0.5")
    assert outcome.status is ProbeStatus.CONNECTION_ERROR
    assert "refused" in outcome.reason


@pytest.mark.asyncio
async def test_non_json_body_still_confirms(settings):
    p, client = make_probe(settings, lambda r: httpx.Response(200, text="<html>"))
    async with client:
        outcome = await p.probe("100.64.0.5")
    assert outcome.confirmed
    assert outcome.describe() == "confirmed (Emby)"


def test_outcome_to_dict():
    d = ProbeOutcome("100.64.0.5", ProbeStatus.REJECTED, "HTTP 404", status_code=404).to_dict()
    assert d == {"address": "100.64.0.5", "status": "rejected", "reason": "HTTP 404", "status_code": 404}


@pytest.mark.asyncio
async def test_check_uses_long_timeout(settings, monkeypatch):
    seen = {}

    async def fake_probe(self, address, timeout=None):
        seen.update(address=address, timeout=timeout)
        return ProbeOutcome(address, ProbeStatus.CONFIRMED, "HTTP 200", status_code=200)

    monkeypatch.setattr(probe_mod.ServiceProbe, "probe", fake_probe)
    assert await check("http://100.64.0.5:8096", settings) is True
    assert seen == {"address": "http://100.64.0.5:8096", "timeout": 1.0}


@pytest.mark.asyncio
async def test_check_unreachable(settings, monkeypatch):
    async def fake_probe(self, address, timeout=None):
        return ProbeOutcome(address, ProbeStatus.CONNECTION_ERROR, "Connection refused")

    monkeypatch.setattr(probe_mod.ServiceProbe, "probe", fake_probe)
    assert await check("100.64.0.5", settings) is False
