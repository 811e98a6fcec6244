"""Tests for the PIN pairing ceremony."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock

import pytest

from viera_tv.client import VieraTV
from viera_tv.outcome import (
    ConnectivityError,
    DeviceHTTPError,
    MalformedReplyError,
    MisuseError,
    StandbyError,
    WrongPinError,
)
from viera_tv.pairing import Credentials, PairingFlow, PairingState
from viera_tv.session import Session

from .conftest import MOCK_CHALLENGE, MOCK_HOST, MOCK_PIN, FakeTV, attach, mock_specs, soap_reply


@pytest.fixture
def flow(fake_tv: FakeTV) -> PairingFlow:
    return PairingFlow(fake_tv, Session())


async def test_request_pin_code(flow: PairingFlow, fake_tv: FakeTV) -> None:
    """Test the challenge is returned and kept for authorization."""
    outcome = await flow.request_pin_code()

    assert outcome.value == base64.b64encode(MOCK_CHALLENGE).decode()
    assert flow.session.challenge == MOCK_CHALLENGE
    assert flow.state is PairingState.CHALLENGE_REQUESTED
    assert fake_tv.calls[0][1:] == (
        "X_DisplayPinCode", "<X_DeviceName>MyRemote</X_DeviceName>"
    )


async def test_pairing_success(flow: PairingFlow, fake_tv: FakeTV) -> None:
    """Test a full ceremony with the right PIN."""
    await flow.request_pin_code()

    outcome = await flow.authorize_pin_code(MOCK_PIN)

    assert outcome.value == Credentials(app_id="NEWAPPID", key=fake_tv.paired_key)
    assert flow.credentials == outcome.value
    assert flow.state is PairingState.PAIRED


async def test_wrong_pin(flow: PairingFlow) -> None:
    """Test a wrong PIN gives WrongPinError."""
    await flow.request_pin_code()

    outcome = await flow.authorize_pin_code("0000")

    assert isinstance(outcome.error, WrongPinError)
    assert flow.state is PairingState.FAILED
    assert flow.credentials is None


async def test_authorize_with_explicit_challenge(fake_tv: FakeTV) -> None:
    """Test a challenge obtained by another instance."""
    flow = PairingFlow(fake_tv, Session())

    outcome = await flow.authorize_pin_code(
        MOCK_PIN, challenge=base64.b64encode(MOCK_CHALLENGE).decode()
    )

    assert outcome.value.app_id == "NEWAPPID"
    assert fake_tv.actions() == ["X_RequestAuth"]


async def test_authorize_without_challenge(flow: PairingFlow, fake_tv: FakeTV) -> None:
    """Test authorization before any PIN request."""
    outcome = await flow.authorize_pin_code(MOCK_PIN)

    assert isinstance(outcome.error, MisuseError)
    assert fake_tv.calls == []


async def test_authorize_with_invalid_challenge(flow: PairingFlow) -> None:
    """Test a challenge that is not base64 of 16 bytes."""
    outcome = await flow.authorize_pin_code(MOCK_PIN, challenge="c2hvcnQ=")

    assert isinstance(outcome.error, MisuseError)


async def test_not_encrypted_tv(fake_plain_tv: FakeTV) -> None:
    """Test pairing is refused for TVs without encryption."""
    flow = PairingFlow(fake_plain_tv, Session(), requires_encryption=False)

    outcome = await flow.request_pin_code()

    assert isinstance(outcome.error, MisuseError)
    assert fake_plain_tv.calls == []


async def test_tv_in_standby(fake_tv: FakeTV) -> None:
    """Test the power check runs before the PIN request."""
    flow = PairingFlow(fake_tv, Session(), power_check=AsyncMock(return_value=False))

    outcome = await flow.request_pin_code()

    assert isinstance(outcome.error, StandbyError)
    assert fake_tv.calls == []


async def test_request_pin_without_challenge(flow: PairingFlow, fake_tv: FakeTV) -> None:
    """Test a reply lacking X_ChallengeKey."""
    fake_tv.post_soap = AsyncMock(return_value=soap_reply("X_DisplayPinCode", ""))

    outcome = await flow.request_pin_code()

    assert isinstance(outcome.error, MalformedReplyError)
    assert flow.state is PairingState.FAILED


async def test_transport_errors_are_connectivity(flow: PairingFlow, fake_tv: FakeTV) -> None:
    """Test connection failures during authorization stay ConnectivityError."""
    await flow.request_pin_code()
    fake_tv.post_soap = AsyncMock(side_effect=ConnectivityError("refused"))

    outcome = await flow.authorize_pin_code(MOCK_PIN)

    assert type(outcome.error) is ConnectivityError


async def test_http_fault_is_wrong_pin(flow: PairingFlow, fake_tv: FakeTV) -> None:
    """Test an HTTP error status on X_RequestAuth reports a rejected PIN."""
    await flow.request_pin_code()
    fake_tv.post_soap = AsyncMock(side_effect=DeviceHTTPError(500, "<errorCode>600</errorCode>"))

    outcome = await flow.authorize_pin_code(MOCK_PIN)

    assert isinstance(outcome.error, WrongPinError)
    assert "HTTP 500" in str(outcome.error)
    assert flow.state is PairingState.FAILED


async def test_client_pairing_flow(fake_tv: FakeTV) -> None:
    """Test the flow bound to a client shares its session."""
    tv = attach(VieraTV(MOCK_HOST, specs=mock_specs(True)), fake_tv)
    tv.is_turned_on = AsyncMock(return_value=True)

    flow = tv.pairing()
    await flow.request_pin_code()
    outcome = await flow.authorize_pin_code(MOCK_PIN)

    assert outcome.ok
    assert tv.session_manager.session.challenge == MOCK_CHALLENGE
    tv.is_turned_on.assert_awaited_once()
