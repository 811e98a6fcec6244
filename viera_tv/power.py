"""Power state detection through a one-shot UPnP event subscription.

The TV pushes a GENA NOTIFY with ``X_ScreenState`` right after a SUBSCRIBE
to ``/nrc/event_0``. A short-lived local HTTP listener receives it; the
subscription and the listener are torn down on every path.
"""

import asyncio
import logging
import socket
import xml.etree.ElementTree as ET
from typing import Optional

from aiohttp import web

from .config.constants import (
    DEFAULT_PORT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SUBSCRIPTION_TIMEOUT,
    PATH_EVENTS,
)
from .outcome import VieraError
from .transport import TransportClient

_LOGGER = logging.getLogger(__name__)


def local_ip_for(address: str, port: int = DEFAULT_PORT) -> str:
    """Local IPv4 address the OS would use to reach ``address``.

    Connecting a UDP socket sends nothing; it only selects the route.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect((address, port))
        return sock.getsockname()[0]
    finally:
        sock.close()


def parse_screen_state(body: str) -> Optional[bool]:
    """Read ``X_ScreenState`` from a GENA property set.

    Returns:
        True for "on", False for "off", None when missing or ambiguous
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        _LOGGER.debug("Unparseable event body: %r", body)
        return None

    values = {
        (elem.text or "").strip().lower()
        for elem in root.iter()
        if elem.tag.split("}")[-1] == "X_ScreenState"
    }
    if values == {"on"}:
        return True
    if values == {"off"}:
        return False
    return None


class PowerStateWatcher:
    """Scoped event listener for one TV.

    Usage::

        async with PowerStateWatcher(address) as watcher:
            state = await watcher.wait_for_state()
    """

    def __init__(
        self,
        address: str,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_SUBSCRIPTION_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.address = address
        self.timeout = timeout
        self.transport = TransportClient(address, port, request_timeout)
        self.sid: Optional[str] = None
        self.listen_port: Optional[int] = None
        self._runner: Optional[web.AppRunner] = None
        self._state: Optional[asyncio.Future] = None

    async def _handle_event(self, request: web.Request) -> web.Response:
        body = await request.text()
        _LOGGER.debug("%s %s from %s: %s", request.method, request.path, request.remote, body)
        if self._state is not None and not self._state.done():
            self._state.set_result(parse_screen_state(body))
        return web.Response(text="")

    async def start(self) -> None:
        """Start the listener and subscribe to power events."""
        self._state = asyncio.get_running_loop().create_future()

        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle_event)
        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, "0.0.0.0", 0)
        await site.start()
        self.listen_port = self._runner.addresses[0][1]

        callback_ip = local_ip_for(self.address, self.transport.port)
        headers = {
            "CALLBACK": f"<http://{callback_ip}:{self.listen_port}/>",
            "NT": "upnp:event",
            "TIMEOUT": f"Second-{max(1, int(self.timeout))}",
        }
        _, resp_headers, _ = await self.transport.request("SUBSCRIBE", PATH_EVENTS, headers=headers)
        self.sid = resp_headers.get("SID")
        _LOGGER.debug("Subscribed to %s events, SID %s", self.address, self.sid)

    async def stop(self) -> None:
        """Unsubscribe (best effort) and shut the listener down."""
        try:
            if self.sid:
                try:
                    await self.transport.request(
                        "UNSUBSCRIBE", PATH_EVENTS, headers={"SID": self.sid}
                    )
                except VieraError as e:
                    _LOGGER.debug("Unsubscribe from %s failed: %s", self.address, e)
                self.sid = None
        finally:
            if self._runner is not None:
                await self._runner.cleanup()
                self._runner = None

    async def wait_for_state(self) -> Optional[bool]:
        """Wait for the first event; None on timeout or unreadable event."""
        try:
            return await asyncio.wait_for(asyncio.shield(self._state), self.timeout)
        except asyncio.TimeoutError:
            _LOGGER.debug("No power event from %s within %ss", self.address, self.timeout)
            return None

    async def __aenter__(self) -> "PowerStateWatcher":
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


async def is_turned_on(
    address: str,
    port: int = DEFAULT_PORT,
    timeout: float = DEFAULT_SUBSCRIPTION_TIMEOUT,
) -> bool:
    """Whether the TV screen is on.

    Timeouts, missing or ambiguous state and transport errors all read as
    off.
    """
    try:
        async with PowerStateWatcher(address, port, timeout) as watcher:
            state = await watcher.wait_for_state()
    except (VieraError, OSError) as e:
        _LOGGER.debug("Power state of %s unavailable: %s", address, e)
        return False

    return bool(state)
