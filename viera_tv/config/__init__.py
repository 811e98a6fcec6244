"""Unified configuration management for Panasonic Viera TV control.

Provides:
- YAML-based configuration with environment variable overrides
- Multi-TV support with device_id (serial number) as unique identifier
- Single source of truth for all constants
"""

# Constants - single source of truth
from .constants import (
    # Network
    DEFAULT_PORT,
    SSDP_ADDR,
    SSDP_PORT,
    WOL_PORT,
    WEBPAIR_PORT,
    BROADCAST_ADDR,
    # Device
    VIERA_URN,
    URN_REMOTE_CONTROL,
    URN_RENDERING_CONTROL,
    # Timeouts
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_LIVENESS_TIMEOUT,
    DEFAULT_DISCOVERY_TIMEOUT,
    DEFAULT_SUBSCRIPTION_TIMEOUT,
)

# Schema and validation
from .schema import (
    DEFAULT_CONFIG,
    DEFAULT_TV_CONFIG,
    deep_merge,
    validate_config,
    get_tv_by_id_or_alias,
    get_device_id_by_alias,
)

# Configuration loading
from .loader import (
    load_config,
    save_config,
    get_config,
    reload_config,
    get_tv_config,
    list_tvs,
    resolve_tv_id,
    add_tv,
    set_default_tv,
    CONFIG_SEARCH_PATHS,
)


__all__ = [
    # Constants
    "DEFAULT_PORT",
    "SSDP_ADDR",
    "SSDP_PORT",
    "WOL_PORT",
    "WEBPAIR_PORT",
    "BROADCAST_ADDR",
    "VIERA_URN",
    "URN_REMOTE_CONTROL",
    "URN_RENDERING_CONTROL",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_LIVENESS_TIMEOUT",
    "DEFAULT_DISCOVERY_TIMEOUT",
    "DEFAULT_SUBSCRIPTION_TIMEOUT",
    # Schema
    "DEFAULT_CONFIG",
    "DEFAULT_TV_CONFIG",
    "deep_merge",
    "validate_config",
    "get_tv_by_id_or_alias",
    "get_device_id_by_alias",
    # Loader
    "load_config",
    "save_config",
    "get_config",
    "reload_config",
    "get_tv_config",
    "list_tvs",
    "resolve_tv_id",
    "add_tv",
    "set_default_tv",
    "CONFIG_SEARCH_PATHS",
]
