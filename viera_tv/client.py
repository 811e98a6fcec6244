"""Panasonic Viera TV control client.

Talks SOAP to the TV's control port (55000). Models from 2018 on wrap
remote-control actions in an encrypted session; rendering-control actions
(volume, mute) are always plaintext.
"""

import html
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from .config.constants import (
    DEFAULT_AUDIO_CHANNEL,
    DEFAULT_PORT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SUBSCRIPTION_TIMEOUT,
    ENCRYPTION_MARKER,
    PATH_ACTIONS,
    PATH_DEVICE_INFO,
    PATH_DMR_CONTROL,
    PATH_NRC_CONTROL,
    URN_REMOTE_CONTROL,
    URN_RENDERING_CONTROL,
)
from .discovery import liveness_probe
from .keys import KEY_POWER, key_event
from .outcome import (
    AuthenticationError,
    ConnectivityError,
    MalformedReplyError,
    MisuseError,
    Outcome,
    StandbyError,
    VieraError,
    failure,
    success,
)
from .pairing import Credentials, PairingFlow
from .power import is_turned_on as _is_turned_on
from .session import SessionManager
from .soap import ALWAYS_PLAINTEXT, extract
from .transport import TransportClient

_LOGGER = logging.getLogger(__name__)

APP_RE = re.compile(r"'product_id=(?P<id>[\dA-Z]+)'(?P<name>[^']+)")
VOLUME_RE = re.compile(r"<CurrentVolume>(\d*)</CurrentVolume>")
MUTE_RE = re.compile(r"<CurrentMute>([0-1])</CurrentMute>")

# Length of store app ids; shorter ids are built-in resources
PRODUCT_ID_LENGTH = 16


@dataclass
class DeviceSpecs:
    """Device description of a TV."""

    friendly_name: str
    model_name: str
    model_number: str
    manufacturer: str
    serial_number: str
    requires_encryption: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceSpecs":
        return cls(
            friendly_name=data.get("friendly_name", ""),
            model_name=data.get("model_name", ""),
            model_number=data.get("model_number", ""),
            manufacturer=data.get("manufacturer", ""),
            serial_number=data.get("serial_number", ""),
            requires_encryption=bool(data.get("requires_encryption", False)),
        )


@dataclass
class App:
    """An application installed on the TV."""

    name: str
    id: str
    hidden: Optional[bool] = None


def _local_name(tag: str) -> str:
    return tag.split("}")[-1]


def _child_text(elem: ET.Element, name: str) -> str:
    for child in elem:
        if _local_name(child.tag) == name:
            return (child.text or "").strip()
    return ""


def parse_device_description(xml: str, requires_encryption: bool = False) -> DeviceSpecs:
    """Build :class:`DeviceSpecs` from ``/nrc/ddd.xml``.

    Raises:
        MalformedReplyError: Not XML or no ``device`` element
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        raise MalformedReplyError(f"Invalid device description: {e}") from e

    device = next((e for e in root.iter() if _local_name(e.tag) == "device"), None)
    if device is None:
        raise MalformedReplyError("Device description has no device element")

    udn = _child_text(device, "UDN")
    return DeviceSpecs(
        friendly_name=_child_text(device, "friendlyName"),
        model_name=_child_text(device, "modelName"),
        model_number=_child_text(device, "modelNumber"),
        manufacturer=_child_text(device, "manufacturer"),
        serial_number=udn[len("uuid:"):] if udn.startswith("uuid:") else udn,
        requires_encryption=requires_encryption,
    )


def parse_app_list(data: str) -> List[App]:
    """Extract apps from an ``X_GetAppList`` reply.

    Raises:
        MalformedReplyError: No ``X_AppList`` element
        StandbyError: The list is empty, which the TV does when in standby
    """
    # Some firmwares append junk after the closing tag
    clean = re.sub(r"[^>]+$", "", data)
    raw = extract("X_AppList", clean)
    if raw is None:
        _LOGGER.error("X_AppList missing, TV returned: %s", data)
        raise MalformedReplyError("Reply has no X_AppList")

    decoded = html.unescape(raw)
    apps = [App(name=m.group("name"), id=m.group("id")) for m in APP_RE.finditer(decoded)]
    if not apps:
        raise StandbyError("The TV is in standby!")
    return apps


class VieraTV:
    """Client to control a Panasonic Viera TV."""

    def __init__(
        self,
        address: str,
        port: int = DEFAULT_PORT,
        credentials: Optional[Credentials] = None,
        specs: Optional[DeviceSpecs] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        subscription_timeout: float = DEFAULT_SUBSCRIPTION_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            address: TV IP address
            port: SOAP control port (default: 55000)
            credentials: Pairing result, needed for encrypted models
            specs: Known device description
            request_timeout: Per-request timeout in seconds
            subscription_timeout: Power event wait in seconds
        """
        self.address = address
        self.port = port
        self.specs = specs
        self.subscription_timeout = subscription_timeout
        self.transport = TransportClient(address, port, request_timeout)
        self.session_manager = SessionManager(self.transport, credentials)

    def __repr__(self) -> str:
        model = self.specs.model_number if self.specs else "unknown"
        return f"VieraTV({self.address}, model={model!r})"

    @property
    def credentials(self) -> Optional[Credentials]:
        return self.session_manager.credentials

    @credentials.setter
    def credentials(self, credentials: Optional[Credentials]) -> None:
        self.session_manager.credentials = credentials
        self.session_manager.invalidate()

    @property
    def requires_encryption(self) -> bool:
        return self.specs is not None and self.specs.requires_encryption

    # Device description
    async def needs_crypto(self) -> bool:
        """Whether the action list advertises ``X_GetEncryptSessionId``."""
        try:
            actions = await self.transport.get(PATH_ACTIONS)
        except ConnectivityError as e:
            _LOGGER.debug("Cannot fetch action list from %s: %s", self.address, e)
            return False
        return ENCRYPTION_MARKER in actions

    async def fetch_specs(self) -> Outcome[DeviceSpecs]:
        """Fetch the device description and the encryption requirement."""
        try:
            xml = await self.transport.get(PATH_DEVICE_INFO)
            specs = parse_device_description(xml, await self.needs_crypto())
        except VieraError as e:
            return failure(e)

        extra = " (requires crypto for communication)" if specs.requires_encryption else ""
        _LOGGER.info(
            "Found a '%s' TV (%s) at '%s'%s",
            specs.model_name, specs.model_number, self.address, extra,
        )
        return success(specs)

    # Requests
    async def _command(self, action: str, parameters: str = "None") -> str:
        """Send a remote-control action, encrypted when the TV needs it."""
        if self.requires_encryption and action not in ALWAYS_PLAINTEXT:
            return await self.session_manager.send_encrypted(
                action, URN_REMOTE_CONTROL, parameters
            )
        return await self.transport.post_soap(
            PATH_NRC_CONTROL, URN_REMOTE_CONTROL, action, parameters
        )

    async def _render(self, action: str, parameters: str) -> str:
        """Send a rendering-control action (never encrypted)."""
        return await self.transport.post_soap(
            PATH_DMR_CONTROL, URN_RENDERING_CONTROL, action, parameters
        )

    # Remote Control
    async def send_key(self, code: str) -> Outcome[None]:
        """Send a remote key press.

        Args:
            code: Key name or code (e.g., 'power', 'VOLUP', 'NRC_MUTE-ONOFF')
        """
        if not code or not code.strip():
            return failure(MisuseError("Empty key code"))
        try:
            await self._command("X_SendKey", f"<X_KeyEvent>{key_event(code)}</X_KeyEvent>")
        except VieraError as e:
            return failure(e)
        return success()

    async def switch_to_hdmi(self, hdmi_input: int) -> Outcome[None]:
        """Switch to HDMI input ``hdmi_input`` (1-based)."""
        if not isinstance(hdmi_input, int) or isinstance(hdmi_input, bool) or hdmi_input < 1:
            return failure(MisuseError(f"Invalid HDMI input: {hdmi_input!r}"))
        try:
            await self._command("X_SendKey", f"<X_KeyEvent>NRC_HDMI{hdmi_input}-ONOFF</X_KeyEvent>")
        except VieraError as e:
            return failure(e)
        return success()

    async def power_toggle(self) -> Outcome[None]:
        return await self.send_key(KEY_POWER)

    async def launch_app(self, app_id: str) -> Outcome[None]:
        """Launch an app by its id as listed by :meth:`get_apps`."""
        app_id = str(app_id).strip()
        if not app_id:
            return failure(MisuseError("Empty app id"))

        prefix = "product_id" if len(app_id) == PRODUCT_ID_LENGTH else "resource_id"
        parameters = (
            "<X_AppType>vc_app</X_AppType>"
            f"<X_LaunchKeyword>{prefix}={app_id}</X_LaunchKeyword>"
        )
        try:
            await self._command("X_LaunchApp", parameters)
        except VieraError as e:
            return failure(e)
        return success()

    async def get_apps(self) -> Outcome[List[App]]:
        """List installed apps. Fails with StandbyError when the TV is off."""
        try:
            return success(parse_app_list(await self._command("X_GetAppList")))
        except VieraError as e:
            return failure(e)

    # Volume / Mute
    async def get_volume(self) -> Outcome[int]:
        try:
            data = await self._render("GetVolume", DEFAULT_AUDIO_CHANNEL)
        except VieraError as e:
            return failure(e)

        match = VOLUME_RE.search(data)
        if match is None or not match.group(1):
            return failure(MalformedReplyError("Reply has no CurrentVolume"))
        return success(int(match.group(1)))

    async def set_volume(self, volume: int) -> Outcome[None]:
        """Set volume (0-100)."""
        if not isinstance(volume, int) or isinstance(volume, bool) or not 0 <= volume <= 100:
            return failure(MisuseError(f"Volume must be 0-100, got {volume!r}"))
        try:
            await self._render(
                "SetVolume", f"{DEFAULT_AUDIO_CHANNEL}<DesiredVolume>{volume}</DesiredVolume>"
            )
        except VieraError as e:
            return failure(e)
        return success()

    async def get_mute(self) -> Outcome[bool]:
        try:
            data = await self._render("GetMute", DEFAULT_AUDIO_CHANNEL)
        except VieraError as e:
            return failure(e)

        match = MUTE_RE.search(data)
        if match is None:
            return failure(MalformedReplyError("Reply has no CurrentMute"))
        return success(match.group(1) == "1")

    async def set_mute(self, enable: bool) -> Outcome[None]:
        mute = "1" if enable else "0"
        try:
            await self._render("SetMute", f"{DEFAULT_AUDIO_CHANNEL}<DesiredMute>{mute}</DesiredMute>")
        except VieraError as e:
            return failure(e)
        return success()

    # Power / Pairing
    async def is_turned_on(self) -> bool:
        return await _is_turned_on(self.address, self.port, self.subscription_timeout)

    def pairing(self) -> PairingFlow:
        """Pairing ceremony bound to this TV's session."""
        return PairingFlow(
            self.transport,
            self.session_manager.session,
            requires_encryption=self.requires_encryption,
            power_check=self.is_turned_on,
        )


async def probe(
    ip: str,
    port: int = DEFAULT_PORT,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> Outcome[VieraTV]:
    """Check that ``ip`` is a reachable Viera TV and read its description."""
    if not await liveness_probe(ip, port, request_timeout):
        return failure(ConnectivityError(f"The IP you provided ({ip}) is unreachable"))

    tv = VieraTV(ip, port, request_timeout=request_timeout)
    outcome = await tv.fetch_specs()
    if not outcome.ok:
        return failure(outcome.error)
    tv.specs = outcome.value
    return success(tv)


async def connect(
    ip: str,
    credentials: Optional[Credentials] = None,
    cached_specs: Optional[DeviceSpecs] = None,
    port: int = DEFAULT_PORT,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> Outcome[VieraTV]:
    """Build a ready-to-use client.

    The live device description wins; ``cached_specs`` is used only when
    the live fetch fails. Encrypted models need ``credentials`` and get
    their session established here.
    """
    if not await liveness_probe(ip, port, request_timeout):
        return failure(ConnectivityError(f"The IP you provided ({ip}) is unreachable"))

    tv = VieraTV(ip, port, credentials=credentials, request_timeout=request_timeout)

    outcome = await tv.fetch_specs()
    if outcome.ok:
        tv.specs = outcome.value
    elif cached_specs is not None:
        _LOGGER.warning(
            "Unable to fetch specs from %s (%s), using cached ones", ip, outcome.error
        )
        tv.specs = cached_specs
    else:
        return failure(outcome.error)

    if tv.requires_encryption:
        if credentials is None:
            return failure(AuthenticationError(
                f"{ip} requires encryption; pair first to obtain app_id and enc_key"
            ))
        try:
            await tv.session_manager.ensure_session()
        except VieraError as e:
            return failure(e)

    return success(tv)
