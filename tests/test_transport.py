"""Tests for the HTTP transport against a local server."""

from __future__ import annotations

import asyncio
import socket

import pytest
from aiohttp import web

from viera_tv.config.constants import PATH_NRC_CONTROL, URN_REMOTE_CONTROL
from viera_tv.outcome import ConnectivityError, DeviceHTTPError, Outcome, failure, success
from viera_tv.transport import TransportClient

from .conftest import SESSION_FAULT


@pytest.fixture
async def server():
    """Local TV stand-in; yields (port, received requests)."""
    received = []

    async def soap(request: web.Request) -> web.Response:
        received.append((request.method, request.path, dict(request.headers), await request.text()))
        if request.headers.get("SOAPACTION", "").endswith('#X_Fail"'):
            return web.Response(status=500, text=SESSION_FAULT)
        return web.Response(text="<ok/>", headers={"SID": "uuid:1"})

    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(1)
        return web.Response(text="late")

    app = web.Application()
    app.router.add_route("*", "/slow", slow)
    app.router.add_route("*", "/{tail:.*}", soap)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    try:
        yield runner.addresses[0][1], received
    finally:
        await runner.cleanup()


async def test_post_soap(server) -> None:
    port, received = server
    client = TransportClient("127.0.0.1", port)

    body = await client.post_soap(
        PATH_NRC_CONTROL, URN_REMOTE_CONTROL, "X_SendKey", "<X_KeyEvent>NRC_MUTE-ONOFF</X_KeyEvent>"
    )

    assert body == "<ok/>"
    method, path, headers, data = received[0]
    assert (method, path) == ("POST", PATH_NRC_CONTROL)
    assert headers["SOAPACTION"] == f'"urn:{URN_REMOTE_CONTROL}#X_SendKey"'
    assert "<X_KeyEvent>NRC_MUTE-ONOFF</X_KeyEvent>" in data


async def test_custom_method_and_headers(server) -> None:
    port, received = server
    client = TransportClient("127.0.0.1", port)

    status, headers, _ = await client.request("SUBSCRIBE", "/nrc/event_0", headers={"NT": "upnp:event"})

    assert status == 200
    assert headers["SID"] == "uuid:1"
    assert received[0][0] == "SUBSCRIBE"


async def test_http_error_keeps_body(server) -> None:
    port, _ = server
    client = TransportClient("127.0.0.1", port)

    with pytest.raises(DeviceHTTPError) as exc_info:
        await client.post_soap(PATH_NRC_CONTROL, URN_REMOTE_CONTROL, "X_Fail", "None")

    assert exc_info.value.status == 500
    assert "<errorCode>401</errorCode>" in exc_info.value.body


async def test_timeout(server) -> None:
    port, _ = server
    client = TransportClient("127.0.0.1", port, timeout=0.1)

    with pytest.raises(ConnectivityError):
        await client.get("/slow")


async def test_connection_refused() -> None:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()

    with pytest.raises(ConnectivityError) as exc_info:
        await TransportClient("127.0.0.1", port).get("/nrc/ddd.xml")

    assert not isinstance(exc_info.value, DeviceHTTPError)


def test_outcome() -> None:
    ok: Outcome[int] = success(3)
    bad = failure(ConnectivityError("down"))

    assert ok and ok.unwrap() == 3
    assert not bad
    with pytest.raises(ConnectivityError):
        bad.unwrap()
