"""Encrypted session handling for 2018+ Viera models."""

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config.constants import PATH_NRC_CONTROL, URN_REMOTE_CONTROL
from .crypto import decrypt_payload, derive_session_key, encrypt_payload
from .outcome import (
    AuthenticationError,
    DeviceHTTPError,
    MalformedReplyError,
    SessionInvalidatedError,
)
from .soap import extract, render_encrypted_command
from .transport import TransportClient

_LOGGER = logging.getLogger(__name__)

# UPnP fault 401 (invalid action/session) or the plain-text variant some firmwares send
INVALID_SESSION_RE = re.compile(
    r"<errorCode>\s*401\s*</errorCode>|no such session", re.IGNORECASE
)


class SessionState(Enum):
    NO_SESSION = "no_session"
    ESTABLISHING = "establishing"
    ACTIVE = "active"


@dataclass
class Session:
    """Crypto material and counters of one encrypted session."""

    iv: bytes = b""
    key: bytes = b""
    hmac_key: bytes = b""
    challenge: bytes = b""
    seq_num: int = 0
    id: Optional[int] = None
    state: SessionState = SessionState.NO_SESSION


def is_session_invalidated(error: DeviceHTTPError) -> bool:
    """True if an HTTP error reply says the TV forgot our session."""
    return bool(INVALID_SESSION_RE.search(error.body or ""))


class SessionManager:
    """Owns the session of one TV and sends encrypted commands through it.

    The session is established lazily on the first encrypted request. When
    the TV reports the session as unknown, it is re-established once and the
    request retried once; a second failure is returned to the caller.
    """

    def __init__(self, transport: TransportClient, credentials=None):
        self.transport = transport
        self.credentials = credentials
        self.session = Session()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self.session.state

    def invalidate(self) -> None:
        """Forget the current session id; the next request re-establishes."""
        self.session.id = None
        self.session.state = SessionState.NO_SESSION

    def next_sequence(self) -> int:
        self.session.seq_num += 1
        return self.session.seq_num

    async def ensure_session(self) -> None:
        if self.session.state is not SessionState.ACTIVE:
            await self.establish()

    async def establish(self) -> None:
        """Run the ``X_GetEncryptSessionId`` exchange.

        Raises:
            AuthenticationError: No credentials configured
            MalformedReplyError: Reply lacks a usable session id
            ConnectivityError: Transport failure
        """
        if self.credentials is None:
            raise AuthenticationError("TV requires encryption but no credentials were given")

        session = self.session
        session.state = SessionState.ESTABLISHING
        try:
            session.iv, session.key, session.hmac_key = derive_session_key(self.credentials.key)
            app_id = self.credentials.app_id
            enc_info = encrypt_payload(
                f"<X_ApplicationId>{app_id}</X_ApplicationId>",
                session.key,
                session.iv,
                session.hmac_key,
            )
            parameters = (
                f"<X_ApplicationId>{app_id}</X_ApplicationId> "
                f"<X_EncInfo>{enc_info}</X_EncInfo>"
            )
            body = await self.transport.post_soap(
                PATH_NRC_CONTROL, URN_REMOTE_CONTROL, "X_GetEncryptSessionId", parameters
            )
            result = self.decrypt_result(body)

            raw_id = extract("X_SessionId", result)
            try:
                session_id = int(raw_id)
            except (TypeError, ValueError):
                raise MalformedReplyError(
                    f"Abnormal result from TV, session id is not an integer: {raw_id!r}"
                ) from None
        except ValueError as exc:
            # base64/crypto size problems in the stored enc_key
            self.invalidate()
            raise AuthenticationError(f"Invalid encryption key: {exc}") from exc
        except Exception:
            self.invalidate()
            raise

        session.id = session_id
        session.seq_num = 1
        session.state = SessionState.ACTIVE
        _LOGGER.info("Encrypted session %s established with %s", session_id, self.transport.host)

    def decrypt_result(self, body: str) -> str:
        """Locate and decrypt ``X_EncResult`` in a reply."""
        enc_result = extract("X_EncResult", body)
        if enc_result is None:
            raise MalformedReplyError("Reply is missing X_EncResult")
        try:
            return decrypt_payload(enc_result, self.session.key, self.session.iv)
        except ValueError as exc:
            raise MalformedReplyError(f"Cannot decrypt X_EncResult: {exc}") from exc

    async def _send_once(self, action: str, urn: str, parameters: str) -> str:
        self.next_sequence()
        outer_action, outer_parameters = render_encrypted_command(
            self.session, self.credentials.app_id, action, urn, parameters
        )
        body = await self.transport.post_soap(
            PATH_NRC_CONTROL, URN_REMOTE_CONTROL, outer_action, outer_parameters
        )
        return self.decrypt_result(body)

    async def send_encrypted(self, action: str, urn: str, parameters: str) -> str:
        """Send an action inside the encrypted envelope and return the decrypted reply.

        Raises:
            SessionInvalidatedError: Session rejected again after recovery
            AuthenticationError, MalformedReplyError, ConnectivityError
        """
        async with self._lock:
            await self.ensure_session()
            try:
                return await self._send_once(action, urn, parameters)
            except DeviceHTTPError as exc:
                if not is_session_invalidated(exc):
                    raise
                _LOGGER.warning(
                    "Session %s rejected by %s, re-establishing",
                    self.session.id,
                    self.transport.host,
                )
                self.invalidate()

            await self.establish()
            try:
                return await self._send_once(action, urn, parameters)
            except DeviceHTTPError as exc:
                if is_session_invalidated(exc):
                    self.invalidate()
                    raise SessionInvalidatedError(
                        f"{self.transport.host} rejected a freshly established session"
                    ) from exc
                raise
