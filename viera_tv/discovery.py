"""Viera TV discovery on the local network.

SSDP M-SEARCH for the Panasonic remote controller device type is sent from
every non-loopback IPv4 interface; every host that answers within the
window is reported once.
"""

import asyncio
import logging
import socket
from typing import List, Set, Tuple

import psutil

from .config.constants import (
    DEFAULT_DISCOVERY_TIMEOUT,
    DEFAULT_LIVENESS_TIMEOUT,
    DEFAULT_PORT,
    SSDP_ADDR,
    SSDP_PORT,
    VIERA_URN,
)
from .outcome import ConnectivityError, Outcome, failure, success

_LOGGER = logging.getLogger(__name__)


def build_msearch(st: str = VIERA_URN) -> bytes:
    """SSDP M-SEARCH request for search target ``st``."""
    return "\r\n".join([
        "M-SEARCH * HTTP/1.1",
        f"HOST:{SSDP_ADDR}:{SSDP_PORT}",
        'MAN:"ssdp:discover"',
        f"ST:{st}",
        "MX:1",
        "\r\n",
    ]).encode()


def get_ipv4_interfaces() -> List[str]:
    """IPv4 addresses of all non-loopback interfaces.

    Returns:
        List of local IP address strings.
    """
    addresses = []
    for name, addrs in psutil.net_if_addrs().items():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            if addr.address.startswith("127."):
                continue
            _LOGGER.debug("Using interface %s (%s)", name, addr.address)
            addresses.append(addr.address)
    return addresses


class _SearchProtocol(asyncio.DatagramProtocol):
    """Collects responder addresses into a set shared by all interfaces."""

    def __init__(self, found: Set[str], message: bytes):
        self.found = found
        self.message = message
        self.transport = None

    def connection_made(self, transport) -> None:
        self.transport = transport
        transport.sendto(self.message, (SSDP_ADDR, SSDP_PORT))

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        if not data.startswith(b"HTTP"):
            return
        ip = addr[0]
        if ip not in self.found:
            _LOGGER.info("Found device via SSDP M-SEARCH: %s", ip)
            self.found.add(ip)

    def error_received(self, exc: Exception) -> None:
        _LOGGER.debug("SSDP socket error: %s", exc)


async def discover(
    timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    st: str = VIERA_URN,
) -> Outcome[Set[str]]:
    """Discover Viera TVs via SSDP M-SEARCH.

    Args:
        timeout: How long to collect responses in seconds.
        st: Search target.

    Returns:
        Outcome with the set of responding IP addresses.
    """
    loop = asyncio.get_running_loop()
    message = build_msearch(st)
    found: Set[str] = set()
    transports = []

    interfaces = get_ipv4_interfaces()
    if not interfaces:
        return failure(ConnectivityError("No usable IPv4 network interface"))

    _LOGGER.debug("Starting SSDP M-SEARCH discovery (timeout=%s)", timeout)
    try:
        for address in interfaces:
            try:
                transport, _ = await loop.create_datagram_endpoint(
                    lambda: _SearchProtocol(found, message),
                    local_addr=(address, 0),
                    family=socket.AF_INET,
                )
            except OSError as e:
                _LOGGER.warning("Failed to bind socket on %s: %s", address, e)
                continue
            transports.append(transport)

        if not transports:
            return failure(ConnectivityError("Could not open any discovery socket"))

        await asyncio.sleep(timeout)
    finally:
        for transport in transports:
            transport.close()

    _LOGGER.debug("SSDP M-SEARCH complete, found %d device(s)", len(found))
    return success(found)


async def liveness_probe(
    ip: str,
    port: int = DEFAULT_PORT,
    timeout: float = DEFAULT_LIVENESS_TIMEOUT,
) -> bool:
    """Check whether something accepts TCP connections on ``ip:port``."""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(ip, port), timeout)
    except (OSError, asyncio.TimeoutError) as e:
        _LOGGER.debug("Liveness probe of %s:%s failed: %s", ip, port, e)
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True
