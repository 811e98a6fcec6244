"""Tests for Wake-on-LAN."""

from __future__ import annotations

from unittest.mock import MagicMock, call, patch

import pytest

from viera_tv import wol
from viera_tv.wol import create_magic_packet, is_valid_mac, wake_on_lan

MAC = "AA:BB:CC:DD:EE:FF"


@pytest.mark.parametrize(
    "mac,valid",
    [
        ("AA:BB:CC:DD:EE:FF", True),
        ("aa-bb-cc-dd-ee-ff", True),
        ("aabbccddeeff", True),
        ("AA:BB-CC:DD:EE:FF", False),
        ("AA:BB:CC:DD:EE", False),
        ("GG:BB:CC:DD:EE:FF", False),
        ("", False),
    ],
)
def test_is_valid_mac(mac: str, valid: bool) -> None:
    assert is_valid_mac(mac) is valid


def test_create_magic_packet() -> None:
    """Test the magic packet layout."""
    packet = create_magic_packet(MAC)

    assert len(packet) == 102
    assert packet[:6] == b"\xff" * 6
    assert packet[6:] == bytes.fromhex("aabbccddeeff") * 16


def test_create_magic_packet_invalid() -> None:
    with pytest.raises(ValueError):
        create_magic_packet("not-a-mac")


async def test_wake_on_lan(monkeypatch) -> None:
    """Test every round goes to broadcast and to the TV."""
    monkeypatch.setattr(wol, "PACKET_INTERVAL", 0)
    sock = MagicMock()

    with patch("viera_tv.wol.socket.socket", return_value=sock):
        await wake_on_lan(MAC, "192.168.1.50", packets=2)

    packet = create_magic_packet(MAC)
    assert sock.sendto.call_args_list == [
        call(packet, ("255.255.255.255", 9)),
        call(packet, ("192.168.1.50", 9)),
    ] * 2
    sock.close.assert_called_once()


async def test_wake_on_lan_closes_socket_on_error(monkeypatch) -> None:
    sock = MagicMock()
    sock.sendto.side_effect = OSError("network down")

    with patch("viera_tv.wol.socket.socket", return_value=sock):
        with pytest.raises(OSError):
            await wake_on_lan(MAC, "192.168.1.50")

    sock.close.assert_called_once()


async def test_wake_on_lan_invalid_mac() -> None:
    with pytest.raises(ValueError):
        await wake_on_lan("bad", "192.168.1.50")
