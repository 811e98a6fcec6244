"""Panasonic Viera TV control library.

SOAP/UPnP client for the TV control port, including the session encryption
and PIN pairing used by 2018+ models.
"""

from .client import (
    App,
    DeviceSpecs,
    VieraTV,
    connect,
    probe,
)
from .discovery import discover, liveness_probe
from .keys import (
    # Power
    KEY_POWER,
    # Navigation
    KEY_UP,
    KEY_DOWN,
    KEY_LEFT,
    KEY_RIGHT,
    KEY_ENTER,
    KEY_OK,
    # Menu/Back
    KEY_MENU,
    KEY_BACK,
    KEY_RETURN,
    KEY_EXIT,
    KEY_HOME,
    KEY_APPS,
    # Volume
    KEY_VOLUME_UP,
    KEY_VOLUME_DOWN,
    KEY_MUTE,
    # Utilities
    ALL_KEYS,
    KEY_NAME_MAP,
    get_key,
)
from .outcome import (
    AuthenticationError,
    ConnectivityError,
    DeviceHTTPError,
    MalformedReplyError,
    MisuseError,
    Outcome,
    SessionInvalidatedError,
    StandbyError,
    VieraError,
    WrongPinError,
)
from .pairing import Credentials, PairingFlow, PairingState
from .power import PowerStateWatcher, is_turned_on
from .session import Session, SessionManager, SessionState
from .wol import wake_on_lan

__version__ = "1.0.0"
__all__ = [
    # Client
    "VieraTV",
    "DeviceSpecs",
    "App",
    "probe",
    "connect",
    # Discovery / power
    "discover",
    "liveness_probe",
    "is_turned_on",
    "PowerStateWatcher",
    "wake_on_lan",
    # Pairing / session
    "Credentials",
    "PairingFlow",
    "PairingState",
    "Session",
    "SessionManager",
    "SessionState",
    # Outcome / errors
    "Outcome",
    "VieraError",
    "ConnectivityError",
    "DeviceHTTPError",
    "MalformedReplyError",
    "SessionInvalidatedError",
    "AuthenticationError",
    "WrongPinError",
    "StandbyError",
    "MisuseError",
    # Keys
    "KEY_POWER",
    "KEY_UP",
    "KEY_DOWN",
    "KEY_LEFT",
    "KEY_RIGHT",
    "KEY_ENTER",
    "KEY_OK",
    "KEY_MENU",
    "KEY_BACK",
    "KEY_RETURN",
    "KEY_EXIT",
    "KEY_HOME",
    "KEY_APPS",
    "KEY_VOLUME_UP",
    "KEY_VOLUME_DOWN",
    "KEY_MUTE",
    "ALL_KEYS",
    "KEY_NAME_MAP",
    "get_key",
]
