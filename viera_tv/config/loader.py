"""Configuration loading with YAML support and env overrides."""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .schema import (
    DEFAULT_CONFIG,
    DEFAULT_TV_CONFIG,
    deep_merge,
    get_tv_by_id_or_alias,
    get_device_id_by_alias,
)

_LOGGER = logging.getLogger(__name__)

# Config search paths (in priority order)
CONFIG_SEARCH_PATHS = [
    Path("config.yaml"),                                    # Current directory (primary)
    Path.home() / ".config" / "viera_tv" / "config.yaml",  # User home
    Path("/etc/viera_tv/config.yaml"),                     # System-wide
]

# Environment variable mappings
# Format: "ENV_VAR": ("section", "key", optional_converter)
ENV_MAPPINGS = {
    # TV settings (applied to default TV)
    "VIERA_HOST": ("_default_tv", "host"),
    "VIERA_APP_ID": ("_default_tv", "app_id"),
    "VIERA_ENC_KEY": ("_default_tv", "enc_key"),
    "VIERA_MAC": ("_default_tv", "mac"),
    # Options
    "VIERA_REQUEST_TIMEOUT": ("options", "request_timeout", float),
    "LOG_LEVEL": ("options", "log_level"),
}

# Module-level cached config
_cached_config: Optional[Dict] = None
_cached_path: Optional[Path] = None


def load_config(config_path: Optional[str] = None, use_cache: bool = True) -> Dict[str, Any]:
    """Load configuration from YAML file with environment overrides.

    Args:
        config_path: Explicit path to config file, or None to search
        use_cache: Use cached config if available

    Returns:
        Merged configuration dictionary
    """
    global _cached_config, _cached_path

    if use_cache and _cached_config is not None:
        return _cached_config

    config = copy.deepcopy(DEFAULT_CONFIG)
    loaded_path = None

    search_paths: List[Path] = []
    if config_path:
        search_paths.append(Path(config_path))
    search_paths.extend(CONFIG_SEARCH_PATHS)

    for path in search_paths:
        if path.suffix in ('.yaml', '.yml') and path.exists():
            try:
                with open(path) as f:
                    user_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                _LOGGER.warning("Failed to load %s: %s", path, e)
                continue
            config = deep_merge(config, user_config)
            loaded_path = path
            _LOGGER.info("Loaded config from %s", path)
            break

    config = _apply_env_overrides(config)

    # Store metadata
    config["_loaded_from"] = str(loaded_path) if loaded_path else None

    _cached_config = config
    _cached_path = loaded_path

    return config


def _apply_env_overrides(config: Dict) -> Dict:
    """Apply environment variable overrides to config."""
    default_tv_overrides = {}

    for env_var, mapping in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        section = mapping[0]
        key = mapping[1]
        converter = mapping[2] if len(mapping) > 2 else str

        try:
            converted_value = converter(value)
        except ValueError as e:
            _LOGGER.warning("Invalid env var %s=%s: %s", env_var, value, e)
            continue

        if section == "_default_tv":
            default_tv_overrides[key] = converted_value
        elif section in config:
            config[section][key] = converted_value
        else:
            _LOGGER.warning("Unknown config section: %s", section)

    if default_tv_overrides:
        default_tv = config.get("default_tv")
        if default_tv and default_tv in config.get("tvs", {}):
            config["tvs"][default_tv].update(default_tv_overrides)
        elif default_tv_overrides.get("host"):
            # Create a new TV entry from env vars
            host = default_tv_overrides["host"]
            config["tvs"][host] = deep_merge(
                copy.deepcopy(DEFAULT_TV_CONFIG),
                default_tv_overrides,
            )
            config["default_tv"] = host

    return config


def save_config(config: Dict, path: Optional[Path] = None) -> bool:
    """Save configuration to YAML file.

    Args:
        config: Configuration dictionary to save
        path: Destination path, or None for the loaded file / current directory

    Returns:
        True if saved successfully
    """
    if path is None:
        path = _cached_path or Path("config.yaml")

    # Remove internal metadata before saving
    save_data = {k: v for k, v in config.items() if not k.startswith("_")}

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.safe_dump(save_data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        _LOGGER.error("Failed to save config: %s", e)
        return False

    _LOGGER.info("Saved config to %s", path)
    return True


def get_config(use_cache: bool = True) -> Dict:
    """Get current configuration (cached)."""
    return load_config(use_cache=use_cache)


def reload_config(config_path: Optional[str] = None) -> Dict:
    """Force reload configuration from disk."""
    global _cached_config, _cached_path
    _cached_config = None
    _cached_path = None
    return load_config(config_path, use_cache=False)


def get_tv_config(tv_id: Optional[str] = None) -> Optional[Dict]:
    """Get configuration for a specific TV.

    Args:
        tv_id: Device ID or alias. If None, returns default TV.

    Returns:
        TV config dict if found, None otherwise
    """
    config = get_config()
    tvs = config.get("tvs", {})

    if not tvs:
        return None

    if tv_id is None:
        default = config.get("default_tv")
        if default:
            return get_tv_by_id_or_alias(config, default)
        # Fall back to first TV
        return next(iter(tvs.values()), None)

    return get_tv_by_id_or_alias(config, tv_id)


def list_tvs() -> List[Dict]:
    """List all configured TVs.

    Returns:
        List of dicts with device_id and tv config
    """
    config = get_config()
    default_tv = config.get("default_tv")

    result = []
    for device_id, tv_config in config.get("tvs", {}).items():
        result.append({
            "device_id": device_id,
            "is_default": device_id == default_tv or tv_config.get("alias") == default_tv,
            **tv_config,
        })

    return result


def resolve_tv_id(id_or_alias: str) -> Optional[str]:
    """Resolve an alias to device_id."""
    config = get_config()
    if id_or_alias in config.get("tvs", {}):
        return id_or_alias
    return get_device_id_by_alias(config, id_or_alias)


def add_tv(device_id: str, host: str, alias: Optional[str] = None, **kwargs) -> bool:
    """Add or update a TV in the configuration.

    Args:
        device_id: Device ID (serial number from the device description)
        host: TV IP address
        alias: Friendly name for CLI
        **kwargs: Additional TV config fields (app_id, enc_key, specs, ...)

    Returns:
        True if saved successfully
    """
    config = get_config()

    tv_config = config["tvs"].get(device_id) or copy.deepcopy(DEFAULT_TV_CONFIG)
    tv_config["host"] = host
    if alias:
        tv_config["alias"] = alias
    tv_config.update(kwargs)

    config["tvs"][device_id] = tv_config

    # Set as default if first TV
    if len(config["tvs"]) == 1:
        config["default_tv"] = alias or device_id

    return save_config(config)


def set_default_tv(id_or_alias: str) -> bool:
    """Set the default TV.

    Args:
        id_or_alias: Device ID or alias

    Returns:
        True if set successfully
    """
    config = get_config()

    if get_tv_by_id_or_alias(config, id_or_alias) is None:
        _LOGGER.error("TV not found: %s", id_or_alias)
        return False

    config["default_tv"] = id_or_alias
    return save_config(config)
