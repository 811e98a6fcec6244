"""Fixtures for Viera TV tests."""

from __future__ import annotations

import base64
import re
from unittest.mock import patch

import pytest

from viera_tv.client import DeviceSpecs, VieraTV
from viera_tv.config import loader
from viera_tv.config.constants import ENCRYPTION_MARKER, PATH_ACTIONS, PATH_DEVICE_INFO
from viera_tv.crypto import (
    decrypt_payload,
    derive_challenge_keys,
    derive_session_key,
    encrypt_payload,
)
from viera_tv.outcome import ConnectivityError, DeviceHTTPError
from viera_tv.pairing import Credentials
from viera_tv.soap import extract

# Seed 00 01 02 ... 0f
MOCK_SEED = "AAECAwQFBgcICQoLDA0ODw=="
MOCK_APP_ID = "APP1234567890"
MOCK_HOST = "192.168.1.50"
MOCK_CHALLENGE = bytes(range(16, 32))
MOCK_PIN = "1234"

MOCK_CREDENTIALS = Credentials(app_id=MOCK_APP_ID, key=MOCK_SEED)

MOCK_DDD_XML = """<?xml version="1.0"?>
<root xmlns="urn:schemas-upnp-org:device-1-0">
  <specVersion><major>1</major><minor>0</minor></specVersion>
  <device>
    <deviceType>urn:panasonic-com:device:p00RemoteController:1</deviceType>
    <friendlyName>Living Room TV</friendlyName>
    <manufacturer>Panasonic</manufacturer>
    <modelName>Panasonic VIErA</modelName>
    <modelNumber>TX-55GZ950</modelNumber>
    <UDN>uuid:4D454930-0200-1000-8001-A81374000000</UDN>
  </device>
</root>"""

MOCK_SDD_ENCRYPTED = (
    "<scpd><actionList>"
    "<action><name>X_SendKey</name></action>"
    f"<action><name>{ENCRYPTION_MARKER}</name></action>"
    "</actionList></scpd>"
)
MOCK_SDD_PLAIN = "<scpd><actionList><action><name>X_SendKey</name></action></actionList></scpd>"

SESSION_FAULT = (
    '<s:Envelope><s:Body><s:Fault><detail><UPnPError>'
    "<errorCode>401</errorCode><errorDescription>Invalid action</errorDescription>"
    "</UPnPError></detail></s:Fault></s:Body></s:Envelope>"
)

INNER_ACTION_RE = re.compile(r"<u:(\w+) ")
SEQUENCE_RE = re.compile(r"<X_SequenceNumber>(\d+)</X_SequenceNumber>")


def mock_specs(requires_encryption: bool = True) -> DeviceSpecs:
    return DeviceSpecs(
        friendly_name="Living Room TV",
        model_name="Panasonic VIErA",
        model_number="TX-55GZ950",
        manufacturer="Panasonic",
        serial_number="4D454930-0200-1000-8001-A81374000000",
        requires_encryption=requires_encryption,
    )


def soap_reply(action: str, body: str) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/"><s:Body>'
        f'<u:{action}Response xmlns:u="urn:panasonic-com:service:p00NetworkControl:1">'
        f"{body}</u:{action}Response></s:Body></s:Envelope>"
    )


class FakeTV:
    """Stands in for TransportClient and answers like a Viera TV.

    Encrypted commands are decrypted with the session seed and recorded in
    ``commands``; plaintext replies come from ``replies`` keyed by action.
    """

    def __init__(self, seed: str = MOCK_SEED, encrypted: bool = True):
        self.address = MOCK_HOST
        self.port = 55000
        self.host = f"{MOCK_HOST}:55000"
        self.iv, self.key, self.hmac_key = derive_session_key(seed)
        self.encrypted = encrypted
        self.session_id = 41
        self.reject_commands = 0
        self.fail_commands = 0
        self.calls = []
        self.commands = []
        self.replies = {}
        self.get_replies = {
            PATH_DEVICE_INFO: MOCK_DDD_XML,
            PATH_ACTIONS: MOCK_SDD_ENCRYPTED if encrypted else MOCK_SDD_PLAIN,
        }
        self.challenge = MOCK_CHALLENGE
        self.pin = MOCK_PIN
        self.paired_app_id = "NEWAPPID"
        self.paired_key = "bmV3LWtleS0xMjM0NTY3OA=="

    def _enc_result(self, action: str, text: str) -> str:
        enc = encrypt_payload(text, self.key, self.iv, self.hmac_key)
        return soap_reply(action, f"<X_EncResult>{enc}</X_EncResult>")

    async def get(self, path: str) -> str:
        if path not in self.get_replies:
            raise ConnectivityError(f"no route to {path}")
        return self.get_replies[path]

    async def post_soap(self, path: str, urn: str, action: str, parameters: str) -> str:
        self.calls.append((path, action, parameters))

        if action == "X_GetEncryptSessionId":
            self.session_id += 1
            return self._enc_result(
                action, f"<X_ApplicationId>{MOCK_APP_ID}</X_ApplicationId>"
                f"<X_SessionId>{self.session_id}</X_SessionId>"
            )

        if action == "X_EncryptedCommand":
            inner = decrypt_payload(extract("X_EncInfo", parameters), self.key, self.iv)
            self.commands.append(inner)
            if self.reject_commands:
                self.reject_commands -= 1
                raise DeviceHTTPError(500, SESSION_FAULT)
            if self.fail_commands:
                self.fail_commands -= 1
                raise DeviceHTTPError(500, "<errorCode>501</errorCode>")
            inner_action = INNER_ACTION_RE.search(inner).group(1)
            result = self.replies.get(inner_action, "")
            return self._enc_result(action, f"<X_OriginalResult>{result}</X_OriginalResult>")

        if action == "X_DisplayPinCode":
            challenge = base64.b64encode(self.challenge).decode()
            return soap_reply(action, f"<X_ChallengeKey>{challenge}</X_ChallengeKey>")

        if action == "X_RequestAuth":
            key, hmac_key = derive_challenge_keys(self.challenge)
            pin_xml = decrypt_payload(extract("X_AuthInfo", parameters), key, self.challenge)
            if pin_xml != f"<X_PinCode>{self.pin}</X_PinCode>":
                # Encrypted with keys the client does not have
                key, hmac_key = bytes(16), bytes(32)
            result = encrypt_payload(
                f"<X_ApplicationId>{self.paired_app_id}</X_ApplicationId>"
                f"<X_Keyword>{self.paired_key}</X_Keyword>",
                key, self.challenge, hmac_key,
            )
            return soap_reply(action, f"<X_AuthResult>{result}</X_AuthResult>")

        return self.replies.get(action, soap_reply(action, ""))

    def sequence_numbers(self):
        return [int(SEQUENCE_RE.search(c).group(1)) for c in self.commands]

    def actions(self):
        return [action for _, action, _ in self.calls]


@pytest.fixture
def fake_tv() -> FakeTV:
    """Fake encrypted TV."""
    return FakeTV()


@pytest.fixture
def fake_plain_tv() -> FakeTV:
    """Fake pre-2018 TV without encryption."""
    return FakeTV(encrypted=False)


def attach(tv: VieraTV, fake: FakeTV) -> VieraTV:
    tv.transport = fake
    tv.session_manager.transport = fake
    return tv


@pytest.fixture
def encrypted_tv(fake_tv: FakeTV) -> VieraTV:
    """VieraTV wired to the fake encrypted TV."""
    tv = VieraTV(MOCK_HOST, credentials=MOCK_CREDENTIALS, specs=mock_specs(True))
    return attach(tv, fake_tv)


@pytest.fixture
def plain_tv(fake_plain_tv: FakeTV) -> VieraTV:
    """VieraTV wired to the fake plaintext TV."""
    tv = VieraTV(MOCK_HOST, specs=mock_specs(False))
    return attach(tv, fake_plain_tv)


@pytest.fixture
def mock_transport_class(fake_tv: FakeTV):
    """Make every TransportClient created by the client module the fake TV."""
    with patch("viera_tv.client.TransportClient", return_value=fake_tv) as mock_cls:
        yield mock_cls


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Config loader pointed at an empty temp directory, env cleared."""
    for env_var in loader.ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.chdir(tmp_path)
    config_path = tmp_path / "config.yaml"
    monkeypatch.setattr(loader, "CONFIG_SEARCH_PATHS", [config_path])
    monkeypatch.setattr(loader, "_cached_config", None)
    monkeypatch.setattr(loader, "_cached_path", None)
    return config_path
