"""All constants for Panasonic Viera TV control - single source of truth.

Consolidates the values used by:
- client.py / session.py (ports, control paths, service URNs)
- crypto.py (vendor key mask)
- discovery.py (SSDP addresses, search target)
- power.py (event subscription)
"""

# === Network Ports ===
DEFAULT_PORT = 55000          # TV SOAP/UPnP control port
SSDP_PORT = 1900              # Standard SSDP port
WOL_PORT = 9                  # Wake-on-LAN port
WEBPAIR_PORT = 8973           # Local pairing form

# === Network Addresses ===
SSDP_ADDR = "239.255.255.250"  # SSDP multicast address
BROADCAST_ADDR = "255.255.255.255"

# === Device Paths ===
PATH_NRC_CONTROL = "/nrc/control_0"   # remote control SOAP endpoint
PATH_DMR_CONTROL = "/dmr/control_0"   # rendering control SOAP endpoint
PATH_DEVICE_INFO = "/nrc/ddd.xml"     # device description
PATH_ACTIONS = "/nrc/sdd_0.xml"       # capability probe
PATH_EVENTS = "/nrc/event_0"          # GENA event sub-URL

# === Service URNs ===
URN_REMOTE_CONTROL = "panasonic-com:service:p00NetworkControl:1"
URN_RENDERING_CONTROL = "schemas-upnp-org:service:RenderingControl:1"
VIERA_URN = "urn:panasonic-com:device:p00RemoteController:1"  # SSDP ST

# Marker in the capability probe advertising encryption support
ENCRYPTION_MARKER = "X_GetEncryptSessionId"

# === Timeouts (seconds) ===
DEFAULT_REQUEST_TIMEOUT = 2.0
DEFAULT_LIVENESS_TIMEOUT = 2.0
DEFAULT_DISCOVERY_TIMEOUT = 5.0
DEFAULT_SUBSCRIPTION_TIMEOUT = 2.0

# === Client Identification ===
DEFAULT_DEVICE_NAME = "MyRemote"   # shown by the TV while pairing

# === Rendering Control ===
DEFAULT_AUDIO_CHANNEL = "<InstanceID>0</InstanceID><Channel>Master</Channel>"

# === Crypto ===
# HMAC key mask taken from libtvconnect.so
HMAC_KEY_MASK = (
    0x15, 0xC9, 0x5A, 0xC2, 0xB0, 0x8A, 0xA7, 0xEB,
    0x4E, 0x22, 0x8F, 0x81, 0x1E, 0x34, 0xD0, 0x4F,
    0xA5, 0x4B, 0xA7, 0xDC, 0xAC, 0x98, 0x79, 0xFA,
    0x8A, 0xCD, 0xA3, 0xFC, 0x24, 0x4F, 0x38, 0x54,
)
