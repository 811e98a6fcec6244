"""Tests for the encrypted session manager."""

from __future__ import annotations

import pytest

from viera_tv.config.constants import URN_REMOTE_CONTROL
from viera_tv.crypto import decrypt_payload
from viera_tv.outcome import (
    AuthenticationError,
    DeviceHTTPError,
    MalformedReplyError,
    SessionInvalidatedError,
)
from viera_tv.pairing import Credentials
from viera_tv.session import SessionManager, SessionState, is_session_invalidated
from viera_tv.soap import extract

from .conftest import MOCK_APP_ID, MOCK_CREDENTIALS, SESSION_FAULT, FakeTV, soap_reply

KEY_PARAMS = "<X_KeyEvent>NRC_POWER-ONOFF</X_KeyEvent>"


@pytest.fixture
def manager(fake_tv: FakeTV) -> SessionManager:
    return SessionManager(fake_tv, MOCK_CREDENTIALS)


async def test_establish_session(manager: SessionManager, fake_tv: FakeTV) -> None:
    """Test the session request and the resulting state."""
    await manager.ensure_session()

    assert manager.state is SessionState.ACTIVE
    assert manager.session.id == 42
    assert manager.session.seq_num == 1

    _, action, parameters = fake_tv.calls[0]
    assert action == "X_GetEncryptSessionId"
    assert parameters.startswith(f"<X_ApplicationId>{MOCK_APP_ID}</X_ApplicationId> <X_EncInfo>")
    enc_info = extract("X_EncInfo", parameters)
    assert decrypt_payload(enc_info, fake_tv.key, fake_tv.iv) == (
        f"<X_ApplicationId>{MOCK_APP_ID}</X_ApplicationId>"
    )


async def test_ensure_session_is_lazy_once(manager: SessionManager, fake_tv: FakeTV) -> None:
    """Test an active session is not re-requested."""
    await manager.ensure_session()
    await manager.ensure_session()

    assert fake_tv.actions() == ["X_GetEncryptSessionId"]


async def test_sequence_numbers_are_monotonic(manager: SessionManager, fake_tv: FakeTV) -> None:
    """Test commands carry 2, 3, 4 after establishment."""
    for _ in range(3):
        await manager.send_encrypted("X_SendKey", URN_REMOTE_CONTROL, KEY_PARAMS)

    assert fake_tv.sequence_numbers() == [2, 3, 4]
    assert "<X_SequenceNumber>00000002</X_SequenceNumber>" in fake_tv.commands[0]
    assert manager.session.seq_num == 4


async def test_reply_is_decrypted(manager: SessionManager, fake_tv: FakeTV) -> None:
    """Test the logical body of an encrypted reply."""
    fake_tv.replies["X_GetAppList"] = "<X_AppList>x</X_AppList>"

    result = await manager.send_encrypted("X_GetAppList", URN_REMOTE_CONTROL, "None")

    assert result == "<X_OriginalResult><X_AppList>x</X_AppList></X_OriginalResult>"


async def test_recovers_once_from_invalidated_session(
    manager: SessionManager, fake_tv: FakeTV
) -> None:
    """Test one re-establishment and one retry after a session fault."""
    await manager.send_encrypted("X_SendKey", URN_REMOTE_CONTROL, KEY_PARAMS)
    fake_tv.reject_commands = 1

    await manager.send_encrypted("X_SendKey", URN_REMOTE_CONTROL, KEY_PARAMS)

    assert fake_tv.actions() == [
        "X_GetEncryptSessionId",
        "X_EncryptedCommand",
        "X_EncryptedCommand",
        "X_GetEncryptSessionId",
        "X_EncryptedCommand",
    ]
    # Counter restarts with the new session
    assert fake_tv.sequence_numbers() == [2, 3, 2]
    assert manager.session.id == 43
    assert manager.state is SessionState.ACTIVE


async def test_recovery_is_bounded(manager: SessionManager, fake_tv: FakeTV) -> None:
    """Test a second rejection is terminal and nothing loops."""
    fake_tv.reject_commands = 5

    with pytest.raises(SessionInvalidatedError):
        await manager.send_encrypted("X_SendKey", URN_REMOTE_CONTROL, KEY_PARAMS)

    assert fake_tv.actions().count("X_GetEncryptSessionId") == 2
    assert fake_tv.actions().count("X_EncryptedCommand") == 2
    assert manager.state is SessionState.NO_SESSION


async def test_other_http_errors_are_not_recovered(
    manager: SessionManager, fake_tv: FakeTV
) -> None:
    """Test non-session faults propagate without a new session."""
    fake_tv.fail_commands = 1

    with pytest.raises(DeviceHTTPError) as exc_info:
        await manager.send_encrypted("X_SendKey", URN_REMOTE_CONTROL, KEY_PARAMS)

    assert exc_info.value.status == 500
    assert fake_tv.actions().count("X_GetEncryptSessionId") == 1


async def test_missing_credentials(fake_tv: FakeTV) -> None:
    """Test establishing without credentials."""
    manager = SessionManager(fake_tv, None)

    with pytest.raises(AuthenticationError):
        await manager.ensure_session()
    assert fake_tv.calls == []


async def test_invalid_seed(fake_tv: FakeTV) -> None:
    """Test a stored key that is not a 16-byte seed."""
    manager = SessionManager(fake_tv, Credentials(app_id=MOCK_APP_ID, key="c2hvcnQ="))

    with pytest.raises(AuthenticationError):
        await manager.ensure_session()
    assert manager.state is SessionState.NO_SESSION


async def test_non_integer_session_id(manager: SessionManager, fake_tv: FakeTV) -> None:
    """Test an abnormal session id reply."""

    async def bad_session(path, urn, action, parameters):
        return fake_tv._enc_result(action, "<X_SessionId>abc</X_SessionId>")

    fake_tv.post_soap = bad_session

    with pytest.raises(MalformedReplyError):
        await manager.ensure_session()
    assert manager.state is SessionState.NO_SESSION


async def test_missing_enc_result(manager: SessionManager, fake_tv: FakeTV) -> None:
    """Test a session reply without X_EncResult."""

    async def no_result(path, urn, action, parameters):
        return soap_reply(action, "")

    fake_tv.post_soap = no_result

    with pytest.raises(MalformedReplyError):
        await manager.ensure_session()


def test_is_session_invalidated() -> None:
    """Test detection of the session fault bodies."""
    assert is_session_invalidated(DeviceHTTPError(500, SESSION_FAULT))
    assert is_session_invalidated(DeviceHTTPError(403, "No such session"))
    assert not is_session_invalidated(DeviceHTTPError(500, "<errorCode>501</errorCode>"))
    assert not is_session_invalidated(DeviceHTTPError(500))
