"""PIN pairing ceremony for encrypted Viera models.

The TV shows a 4-digit PIN after ``X_DisplayPinCode`` and hands out a
challenge. Encrypting the PIN with keys derived from that challenge and
sending it in ``X_RequestAuth`` yields the app id and the session seed
(``enc_key``) used for every later session.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from .config.constants import DEFAULT_DEVICE_NAME, PATH_NRC_CONTROL, URN_REMOTE_CONTROL
from .crypto import decrypt_payload, derive_challenge_keys, encrypt_payload
from .outcome import (
    ConnectivityError,
    DeviceHTTPError,
    MalformedReplyError,
    MisuseError,
    Outcome,
    StandbyError,
    VieraError,
    WrongPinError,
    failure,
    success,
)
from .soap import extract
from .transport import TransportClient

_LOGGER = logging.getLogger(__name__)

CHALLENGE_RE = re.compile(r"<X_ChallengeKey>(\S*)</X_ChallengeKey>")


@dataclass
class Credentials:
    """Pairing result: application id and base64 session seed."""

    app_id: str
    key: str


class PairingState(Enum):
    IDLE = "idle"
    CHALLENGE_REQUESTED = "challenge_requested"
    AUTHORIZING = "authorizing"
    PAIRED = "paired"
    FAILED = "failed"


class PairingFlow:
    """Two-step pairing: :meth:`request_pin_code`, then :meth:`authorize_pin_code`."""

    def __init__(
        self,
        transport: TransportClient,
        session,
        requires_encryption: bool = True,
        power_check: Optional[Callable[[], Awaitable[bool]]] = None,
        device_name: str = DEFAULT_DEVICE_NAME,
    ):
        self.transport = transport
        self.session = session
        self.requires_encryption = requires_encryption
        self.power_check = power_check
        self.device_name = device_name
        self.state = PairingState.IDLE
        self.credentials: Optional[Credentials] = None

    async def _send(self, action: str, parameters: str) -> str:
        return await self.transport.post_soap(
            PATH_NRC_CONTROL, URN_REMOTE_CONTROL, action, parameters
        )

    async def request_pin_code(self) -> Outcome[str]:
        """Ask the TV to display a PIN.

        Returns:
            Outcome with the base64 challenge
        """
        if not self.requires_encryption:
            return failure(MisuseError("This TV does not require pairing"))

        if self.power_check is not None and not await self.power_check():
            return failure(StandbyError(
                "The TV seems to be in standby; please turn it ON and try again"
            ))

        try:
            data = await self._send(
                "X_DisplayPinCode", f"<X_DeviceName>{self.device_name}</X_DeviceName>"
            )
        except VieraError as e:
            self.state = PairingState.FAILED
            return failure(e)

        match = CHALLENGE_RE.search(data)
        if match is None:
            self.state = PairingState.FAILED
            return failure(MalformedReplyError(
                "Unexpected reply from TV when requesting challenge key"
            ))

        challenge_b64 = match.group(1)
        try:
            self.session.challenge = base64.b64decode(challenge_b64)
        except binascii.Error as e:
            self.state = PairingState.FAILED
            return failure(MalformedReplyError(f"Invalid challenge key: {e}"))

        self.state = PairingState.CHALLENGE_REQUESTED
        _LOGGER.info("PIN requested from %s", self.transport.address)
        return success(challenge_b64)

    async def authorize_pin_code(
        self,
        pin: str,
        challenge: Optional[str] = None,
    ) -> Outcome[Credentials]:
        """Exchange the PIN shown on the TV for credentials.

        Args:
            pin: PIN displayed on screen
            challenge: Base64 challenge from :meth:`request_pin_code`, for
                flows where it was obtained by another instance

        Returns:
            Outcome with the new :class:`Credentials`
        """
        try:
            raw_challenge = (
                base64.b64decode(challenge) if challenge is not None else self.session.challenge
            )
            key, hmac_key = derive_challenge_keys(raw_challenge)
        except ValueError as e:
            return failure(MisuseError(f"No valid challenge, request a PIN first ({e})"))

        self.state = PairingState.AUTHORIZING
        auth_info = encrypt_payload(
            f"<X_PinCode>{pin}</X_PinCode>", key, raw_challenge, hmac_key
        )

        try:
            data = await self._send("X_RequestAuth", f"<X_AuthInfo>{auth_info}</X_AuthInfo>")
        except DeviceHTTPError as e:
            self.state = PairingState.FAILED
            return failure(WrongPinError(f"TV rejected the PIN: {e}"))
        except ConnectivityError as e:
            self.state = PairingState.FAILED
            return failure(e)

        raw = extract("X_AuthResult", data)
        if raw is None:
            self.state = PairingState.FAILED
            return failure(WrongPinError("Reply has no X_AuthResult"))

        try:
            result = decrypt_payload(raw, key, raw_challenge)
        except ValueError as e:
            self.state = PairingState.FAILED
            return failure(WrongPinError(f"Cannot decrypt X_AuthResult: {e}"))

        app_id = extract("X_ApplicationId", result)
        enc_key = extract("X_Keyword", result)
        if not app_id or not enc_key:
            self.state = PairingState.FAILED
            return failure(WrongPinError("Authorization result lacks app id or key"))

        self.credentials = Credentials(app_id=app_id, key=enc_key)
        self.state = PairingState.PAIRED
        _LOGGER.info("Paired with %s", self.transport.address)
        return success(self.credentials)
