"""Remote key codes for Panasonic Viera TVs.

Codes are sent as ``NRC_<CODE>-ONOFF`` in ``X_SendKey``; the constants below
hold the bare ``<CODE>`` part.
"""

# Power
KEY_POWER = "POWER"

# Navigation
KEY_UP = "UP"
KEY_DOWN = "DOWN"
KEY_LEFT = "LEFT"
KEY_RIGHT = "RIGHT"
KEY_ENTER = "ENTER"
KEY_OK = "ENTER"  # Alias

# Menu/Back
KEY_MENU = "MENU"
KEY_SUBMENU = "SUBMENU"
KEY_RETURN = "RETURN"
KEY_BACK = "RETURN"  # Alias
KEY_EXIT = "CANCEL"
KEY_HOME = "HOME"
KEY_APPS = "APPS"
KEY_GUIDE = "EPG"

# Volume
KEY_VOLUME_UP = "VOLUP"
KEY_VOLUME_DOWN = "VOLDOWN"
KEY_MUTE = "MUTE"

# Playback
KEY_PLAY = "PLAY"
KEY_PAUSE = "PAUSE"
KEY_STOP = "STOP"
KEY_FAST_FORWARD = "FF"
KEY_REWIND = "REW"
KEY_SKIP_NEXT = "SKIP_NEXT"
KEY_SKIP_PREV = "SKIP_PREV"
KEY_RECORD = "REC"

# Numbers
KEY_0 = "D0"
KEY_1 = "D1"
KEY_2 = "D2"
KEY_3 = "D3"
KEY_4 = "D4"
KEY_5 = "D5"
KEY_6 = "D6"
KEY_7 = "D7"
KEY_8 = "D8"
KEY_9 = "D9"

# Channel
KEY_CHANNEL_UP = "CH_UP"
KEY_CHANNEL_DOWN = "CH_DOWN"
KEY_LAST_VIEW = "R_TUNE"

# Color buttons
KEY_RED = "RED"
KEY_GREEN = "GREEN"
KEY_YELLOW = "YELLOW"
KEY_BLUE = "BLUE"

# Inputs
KEY_TV = "TV"
KEY_INPUT = "CHG_INPUT"

# Extras
KEY_INFO = "INFO"
KEY_TEXT = "TEXT"
KEY_SUBTITLE = "STTL"
KEY_ASPECT = "DISP_MODE"
KEY_NETFLIX = "NETFLIX"
KEY_INTERNET = "INTERNET"
KEY_OFF_TIMER = "OFFTIMER"


# All keys for validation
ALL_KEYS = {
    KEY_POWER,
    KEY_UP, KEY_DOWN, KEY_LEFT, KEY_RIGHT, KEY_ENTER,
    KEY_MENU, KEY_SUBMENU, KEY_RETURN, KEY_EXIT, KEY_HOME, KEY_APPS, KEY_GUIDE,
    KEY_VOLUME_UP, KEY_VOLUME_DOWN, KEY_MUTE,
    KEY_PLAY, KEY_PAUSE, KEY_STOP, KEY_FAST_FORWARD, KEY_REWIND,
    KEY_SKIP_NEXT, KEY_SKIP_PREV, KEY_RECORD,
    KEY_0, KEY_1, KEY_2, KEY_3, KEY_4, KEY_5, KEY_6, KEY_7, KEY_8, KEY_9,
    KEY_CHANNEL_UP, KEY_CHANNEL_DOWN, KEY_LAST_VIEW,
    KEY_RED, KEY_GREEN, KEY_YELLOW, KEY_BLUE,
    KEY_TV, KEY_INPUT,
    KEY_INFO, KEY_TEXT, KEY_SUBTITLE, KEY_ASPECT, KEY_NETFLIX, KEY_INTERNET,
    KEY_OFF_TIMER,
}


# Friendly name mapping for CLI
KEY_NAME_MAP = {
    "power": KEY_POWER,
    "up": KEY_UP,
    "down": KEY_DOWN,
    "left": KEY_LEFT,
    "right": KEY_RIGHT,
    "ok": KEY_OK,
    "enter": KEY_ENTER,
    "menu": KEY_MENU,
    "options": KEY_SUBMENU,
    "back": KEY_BACK,
    "return": KEY_RETURN,
    "exit": KEY_EXIT,
    "home": KEY_HOME,
    "apps": KEY_APPS,
    "guide": KEY_GUIDE,
    "volumeup": KEY_VOLUME_UP,
    "volup": KEY_VOLUME_UP,
    "vol+": KEY_VOLUME_UP,
    "volumedown": KEY_VOLUME_DOWN,
    "voldown": KEY_VOLUME_DOWN,
    "vol-": KEY_VOLUME_DOWN,
    "mute": KEY_MUTE,
    "play": KEY_PLAY,
    "pause": KEY_PAUSE,
    "stop": KEY_STOP,
    "forward": KEY_FAST_FORWARD,
    "ff": KEY_FAST_FORWARD,
    "rewind": KEY_REWIND,
    "rw": KEY_REWIND,
    "next": KEY_SKIP_NEXT,
    "prev": KEY_SKIP_PREV,
    "record": KEY_RECORD,
    "0": KEY_0,
    "1": KEY_1,
    "2": KEY_2,
    "3": KEY_3,
    "4": KEY_4,
    "5": KEY_5,
    "6": KEY_6,
    "7": KEY_7,
    "8": KEY_8,
    "9": KEY_9,
    "channelup": KEY_CHANNEL_UP,
    "chup": KEY_CHANNEL_UP,
    "ch+": KEY_CHANNEL_UP,
    "channeldown": KEY_CHANNEL_DOWN,
    "chdown": KEY_CHANNEL_DOWN,
    "ch-": KEY_CHANNEL_DOWN,
    "last": KEY_LAST_VIEW,
    "red": KEY_RED,
    "green": KEY_GREEN,
    "yellow": KEY_YELLOW,
    "blue": KEY_BLUE,
    "tv": KEY_TV,
    "input": KEY_INPUT,
    "source": KEY_INPUT,
    "info": KEY_INFO,
    "text": KEY_TEXT,
    "subtitle": KEY_SUBTITLE,
    "sub": KEY_SUBTITLE,
    "aspect": KEY_ASPECT,
    "netflix": KEY_NETFLIX,
    "internet": KEY_INTERNET,
    "sleep": KEY_OFF_TIMER,
}


def get_key(name: str) -> str:
    """Get the bare key code from a friendly name or raw code.

    Accepts friendly names (``volumeup``), bare codes (``VOLUP``) and the
    full wire form (``NRC_VOLUP-ONOFF``), case-insensitively.

    Args:
        name: Key name (e.g., 'up', 'volumeup', 'NRC_POWER-ONOFF')

    Returns:
        Key code string (e.g., 'UP')
    """
    name_upper = name.strip().upper()

    if name_upper.startswith("NRC_"):
        name_upper = name_upper[len("NRC_"):]
    if name_upper.endswith("-ONOFF"):
        name_upper = name_upper[:-len("-ONOFF")]

    # Check name map first
    name_lower = name_upper.lower()
    if name_lower in KEY_NAME_MAP:
        return KEY_NAME_MAP[name_lower]

    # Unknown codes pass through; the TV decides
    return name_upper


def key_event(name: str) -> str:
    """Wire form ``NRC_<CODE>-ONOFF`` for a key name."""
    return f"NRC_{get_key(name)}-ONOFF"
