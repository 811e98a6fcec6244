"""Configuration schema, defaults, and validation."""

import ipaddress
from typing import Any, Dict, List, Optional

from .constants import (
    DEFAULT_DISCOVERY_TIMEOUT,
    DEFAULT_LIVENESS_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SUBSCRIPTION_TIMEOUT,
)


# Default configuration for a single TV
DEFAULT_TV_CONFIG: Dict[str, Any] = {
    "host": None,                # Required - TV IP address
    "alias": None,               # Friendly name for CLI (--tv alias)
    "name": None,                # Display name (auto-populated from TV)
    "mac": None,                 # For Wake-on-LAN
    # Populated after pairing (encrypted models only):
    "app_id": None,
    "enc_key": None,
    # Last known device description, used when the live fetch fails
    "specs": None,
}


# Full config structure with multi-TV support
DEFAULT_CONFIG: Dict[str, Any] = {
    # Multiple TVs - keyed by device_id (serial number)
    "tvs": {},

    # Default TV for CLI when --tv not specified (device_id or alias)
    "default_tv": None,

    "options": {
        "request_timeout": DEFAULT_REQUEST_TIMEOUT,
        "liveness_timeout": DEFAULT_LIVENESS_TIMEOUT,
        "discovery_timeout": DEFAULT_DISCOVERY_TIMEOUT,
        "subscription_timeout": DEFAULT_SUBSCRIPTION_TIMEOUT,
        "log_level": "INFO",
    },
}


def deep_merge(base: Dict, override: Dict) -> Dict:
    """Deep merge two dictionaries, override takes precedence.

    Args:
        base: Base dictionary
        override: Override dictionary (values take precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        elif value is not None:  # Don't override with None
            result[key] = value
    return result


def validate_config(config: Dict) -> List[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration dictionary

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    tvs = config.get("tvs", {})

    if not tvs:
        errors.append("No TVs configured in 'tvs' section")

    for tv_id, tv_config in tvs.items():
        host = tv_config.get("host")
        if not host:
            errors.append(f"tvs.{tv_id}.host is required")
        else:
            try:
                ipaddress.IPv4Address(host)
            except ValueError:
                errors.append(f"tvs.{tv_id}.host is not a valid IPv4 address: {host}")

        # Credentials only make sense as a pair
        if bool(tv_config.get("app_id")) != bool(tv_config.get("enc_key")):
            errors.append(f"tvs.{tv_id}: app_id and enc_key must be set together")

    for key, value in config.get("options", {}).items():
        if key.endswith("_timeout") and (not isinstance(value, (int, float)) or value <= 0):
            errors.append(f"options.{key} must be a positive number")

    return errors


def get_tv_by_id_or_alias(config: Dict, id_or_alias: str) -> Optional[Dict]:
    """Get TV config by device_id or alias.

    Args:
        config: Full configuration dictionary
        id_or_alias: Device ID or alias to find

    Returns:
        TV config dict if found, None otherwise
    """
    tvs = config.get("tvs", {})

    # Direct match by device_id
    if id_or_alias in tvs:
        return tvs[id_or_alias]

    # Search by alias
    for tv_config in tvs.values():
        if tv_config.get("alias") == id_or_alias:
            return tv_config

    return None


def get_device_id_by_alias(config: Dict, alias: str) -> Optional[str]:
    """Get device_id for a given alias."""
    for device_id, tv_config in config.get("tvs", {}).items():
        if tv_config.get("alias") == alias:
            return device_id

    return None
