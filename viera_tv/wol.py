"""Wake-on-LAN support for Viera TVs.

Only works when the TV has "Powered On by Apps" / network standby enabled.
"""

import asyncio
import logging
import re
import socket

from .config.constants import BROADCAST_ADDR, WOL_PORT

_LOGGER = logging.getLogger(__name__)

MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}([:-]?)(?:[0-9A-Fa-f]{2}\1){4}[0-9A-Fa-f]{2}$")

# Delay between repeated packets, in seconds
PACKET_INTERVAL = 0.1


def is_valid_mac(mac_address: str) -> bool:
    """Check a MAC address in XX:XX:XX:XX:XX:XX, XX-XX-... or bare hex form."""
    return bool(mac_address) and MAC_RE.match(mac_address.strip()) is not None


def create_magic_packet(mac_address: str) -> bytes:
    """Create a Wake-on-LAN magic packet.

    The magic packet consists of:
    - 6 bytes of 0xFF
    - 16 repetitions of the target MAC address (6 bytes each)

    Args:
        mac_address: MAC address in format XX:XX:XX:XX:XX:XX or XX-XX-XX-XX-XX-XX

    Returns:
        Magic packet as bytes
    """
    if not is_valid_mac(mac_address):
        raise ValueError(f"Invalid MAC address: {mac_address}")

    mac_bytes = bytes.fromhex(re.sub(r"[:-]", "", mac_address.strip()))
    return b"\xff" * 6 + mac_bytes * 16


async def wake_on_lan(
    mac_address: str,
    address: str,
    packets: int = 3,
    port: int = WOL_PORT,
) -> None:
    """Send magic packets to the broadcast address and to the TV itself.

    Args:
        mac_address: TV's MAC address
        address: TV's last known IP address
        packets: Number of rounds to send
        port: WoL port (default: 9)

    Raises:
        ValueError: Invalid MAC address
        OSError: Socket failure
    """
    packet = create_magic_packet(mac_address)

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        for i in range(packets):
            if i:
                await asyncio.sleep(PACKET_INTERVAL)
            for target in (BROADCAST_ADDR, address):
                sock.sendto(packet, (target, port))
    finally:
        sock.close()

    _LOGGER.debug("Sent %d WoL packet(s) for %s via %s", packets, mac_address, address)
