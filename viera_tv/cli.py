#!/usr/bin/env python3
"""Command-line interface for Panasonic Viera TV control."""

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, Optional

import yaml

from .client import DeviceSpecs, VieraTV, connect, probe
from .config import (
    WEBPAIR_PORT,
    add_tv,
    get_config,
    get_tv_config,
    list_tvs,
    set_default_tv,
    validate_config,
)
from .discovery import discover
from .keys import KEY_NAME_MAP
from .outcome import VieraError
from .pairing import Credentials
from .power import is_turned_on
from .wol import wake_on_lan
from . import webpair

_LOGGER = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Set up logging configuration."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Reduce noise from aiohttp
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def _options() -> Dict[str, Any]:
    return get_config().get("options", {})


def resolve_target(args) -> Dict[str, Any]:
    """Merge the configured TV with command line overrides.

    Returns:
        Dict with host, credentials (or None) and cached specs (or None)
    """
    tv_config = {} if args.ip else (get_tv_config(args.tv) or {})
    if args.tv and not tv_config and not args.ip:
        raise ValueError(f"TV '{args.tv}' not found. Use 'viera config list' to see available TVs.")

    host = args.ip or tv_config.get("host")
    if not host:
        raise ValueError("No TV configured. Use --ip or add one to config.yaml.")

    app_id = args.app_id or tv_config.get("app_id")
    enc_key = args.enc_key or tv_config.get("enc_key")
    credentials = Credentials(app_id=app_id, key=enc_key) if app_id and enc_key else None

    specs = tv_config.get("specs")
    return {
        "host": host,
        "mac": tv_config.get("mac"),
        "credentials": credentials,
        "specs": DeviceSpecs.from_dict(specs) if specs else None,
    }


async def create_tv_client(args) -> VieraTV:
    """Connect to the selected TV (session established when needed)."""
    target = resolve_target(args)
    outcome = await connect(
        target["host"],
        credentials=target["credentials"],
        cached_specs=target["specs"],
        request_timeout=_options().get("request_timeout", 2.0),
    )
    return outcome.unwrap()


def _fail(message: Any) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


async def cmd_discover(args):
    """Discover Viera TVs on the network."""
    timeout = args.timeout or _options().get("discovery_timeout", 5.0)
    print(f"Scanning for Panasonic Viera TVs (timeout: {timeout}s)...")
    outcome = await discover(timeout=timeout)
    if not outcome.ok:
        return _fail(outcome.error)

    if not outcome.value:
        print("No TVs found.")
        print("\nTips:")
        print("  - Make sure the TV is powered on")
        print("  - Ensure TV and computer are on the same network")
        return 1

    print(f"\nFound {len(outcome.value)} TV(s):\n")
    for ip in sorted(outcome.value):
        print(f"  {ip}")
    print("\nTo inspect a TV: viera --ip <IP> probe")
    return 0


async def cmd_probe(args):
    """Show the device description of a TV."""
    host = resolve_target(args)["host"]
    outcome = await probe(host)
    if not outcome.ok:
        return _fail(outcome.error)

    specs = outcome.value.specs
    print(f"  {host}")
    print(f"    Name:         {specs.friendly_name}")
    print(f"    Model:        {specs.model_name} ({specs.model_number})")
    print(f"    Manufacturer: {specs.manufacturer}")
    print(f"    Serial:       {specs.serial_number}")
    print(f"    Encryption:   {'required' if specs.requires_encryption else 'not required'}")
    return 0


async def cmd_state(args):
    """Report whether the screen is on."""
    host = resolve_target(args)["host"]
    on = await is_turned_on(host, timeout=_options().get("subscription_timeout", 2.0))
    print("on" if on else "off")
    return 0


async def cmd_key(args):
    """Send a key press."""
    tv = await create_tv_client(args)
    outcome = await tv.send_key(args.key)
    if not outcome.ok:
        return _fail(outcome.error)
    print(f"Sent {args.key}")
    return 0


async def cmd_keys(args):
    """List friendly key names."""
    for name, code in sorted(KEY_NAME_MAP.items()):
        print(f"  {name:<12} NRC_{code}-ONOFF")
    return 0


async def cmd_hdmi(args):
    tv = await create_tv_client(args)
    outcome = await tv.switch_to_hdmi(args.input)
    if not outcome.ok:
        return _fail(outcome.error)
    print(f"Switched to HDMI {args.input}")
    return 0


async def cmd_app(args):
    """Launch an app or list installed apps."""
    tv = await create_tv_client(args)

    if args.app == "list":
        outcome = await tv.get_apps()
        if not outcome.ok:
            return _fail(outcome.error)
        for app in outcome.value:
            print(f"  {app.id}  {app.name}")
        return 0

    outcome = await tv.launch_app(args.app)
    if not outcome.ok:
        return _fail(outcome.error)
    print(f"Launched {args.app}")
    return 0


async def cmd_volume(args):
    tv = await create_tv_client(args)

    if args.action == "get":
        outcome = await tv.get_volume()
        if not outcome.ok:
            return _fail(outcome.error)
        print(f"Volume: {outcome.value}")
        return 0

    if args.level is None:
        return _fail("Please provide a level: viera volume set 20")
    outcome = await tv.set_volume(args.level)
    if not outcome.ok:
        return _fail(outcome.error)
    print(f"Volume set to {args.level}")
    return 0


async def cmd_mute(args):
    tv = await create_tv_client(args)

    if args.action == "get":
        outcome = await tv.get_mute()
        if not outcome.ok:
            return _fail(outcome.error)
        print(f"Muted: {'yes' if outcome.value else 'no'}")
        return 0

    outcome = await tv.set_mute(args.action == "on")
    if not outcome.ok:
        return _fail(outcome.error)
    print(f"Mute {args.action}")
    return 0


async def _pairing_tv(args) -> VieraTV:
    host = resolve_target(args)["host"]
    return (await probe(host)).unwrap()


async def cmd_pin(args):
    """Ask the TV to display a PIN and print the challenge."""
    tv = await _pairing_tv(args)
    outcome = await tv.pairing().request_pin_code()
    if not outcome.ok:
        return _fail(outcome.error)

    print("Enter the PIN shown on the TV with:")
    print(f"  viera --ip {tv.address} pair --pin <PIN> --challenge {outcome.value}")
    return 0


async def cmd_pair(args):
    """Complete pairing with the PIN shown on the TV."""
    tv = await _pairing_tv(args)
    outcome = await tv.pairing().authorize_pin_code(args.pin, args.challenge)
    if not outcome.ok:
        return _fail(outcome.error)

    credentials = outcome.value
    specs = tv.specs
    entry = {
        "host": tv.address,
        "name": specs.friendly_name,
        "app_id": credentials.app_id,
        "enc_key": credentials.key,
        "specs": specs.as_dict(),
    }

    print("Paired with your TV successfully. Add this under 'tvs' in config.yaml:\n")
    print(yaml.safe_dump({specs.serial_number: entry}, default_flow_style=False, sort_keys=False))

    if args.save:
        if add_tv(specs.serial_number, alias=args.alias, **entry):
            print("Saved to configuration.")
        else:
            return _fail("Failed to save configuration")
    return 0


async def cmd_wake(args):
    """Wake TV using Wake-on-LAN."""
    target = resolve_target(args)
    mac = args.mac or target["mac"]
    if not mac:
        print("No MAC address specified.", file=sys.stderr)
        print("Use: viera wake --mac AA:BB:CC:DD:EE:FF", file=sys.stderr)
        return 1

    print(f"Sending Wake-on-LAN to {mac}...")
    try:
        await wake_on_lan(mac, target["host"])
    except (ValueError, OSError) as e:
        return _fail(e)
    print("Magic packet sent!")
    return 0


def cmd_webpair(args):
    webpair.serve(args.port)
    return 0


def cmd_config(args):
    """View or set configuration."""
    if args.action == "show":
        config = get_config()
        tvs = list_tvs()
        if not tvs:
            print("No TVs configured. Pair with 'viera --ip <IP> pair --save ...'.")
            return 0

        print(f"Config file: {config.get('_loaded_from') or '(none)'}")
        print("Configured TVs:")
        for tv in tvs:
            is_default = " (default)" if tv["is_default"] else ""
            alias = tv.get("alias")
            alias_str = f" [{alias}]" if alias else ""
            name = tv.get("name")
            name_str = f" - {name}" if name else ""

            print(f"\n  {tv['device_id']}{alias_str}{is_default}{name_str}")
            print(f"    Host:    {tv.get('host') or '(not set)'}")
            print(f"    MAC:     {tv.get('mac') or '(not set)'}")
            print(f"    Paired:  {'yes' if tv.get('app_id') and tv.get('enc_key') else 'no'}")

    elif args.action == "list":
        tvs = list_tvs()
        if not tvs:
            print("No TVs configured.")
            return 0
        for tv in tvs:
            alias = tv.get("alias")
            alias_str = f" ({alias})" if alias else ""
            print(f"  {tv['device_id']}{alias_str}")

    elif args.action == "set-default":
        if not args.value:
            return _fail("Please provide TV ID or alias: viera config set-default living_room")
        if not set_default_tv(args.value):
            return _fail(f"TV not found: {args.value}")
        print(f"Default TV set to: {args.value}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="viera",
        description="Control your Panasonic Viera TV from the command line",
    )
    parser.add_argument("--tv", help="TV ID or alias (uses default TV if not specified)")
    parser.add_argument("--ip", help="TV IP address (overrides --tv and config)")
    parser.add_argument("--app-id", help="Application id from pairing")
    parser.add_argument("--enc-key", help="Encryption key from pairing")
    parser.add_argument("--log-level", help="Logging level (default: from config)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Discovery
    p_discover = subparsers.add_parser("discover", aliases=["scan"], help="Discover TVs on the network")
    p_discover.add_argument("--timeout", "-t", type=float, help="Discovery timeout in seconds (default: from config)")
    p_discover.set_defaults(func=cmd_discover)

    p_probe = subparsers.add_parser("probe", help="Show TV model and encryption requirement")
    p_probe.set_defaults(func=cmd_probe)

    p_state = subparsers.add_parser("state", help="Show whether the TV is on")
    p_state.set_defaults(func=cmd_state)

    # Remote
    p_key = subparsers.add_parser("key", help="Send a key press")
    p_key.add_argument("key", help="Key name (e.g., power, volup, NRC_MUTE-ONOFF)")
    p_key.set_defaults(func=cmd_key)

    p_keys = subparsers.add_parser("keys", help="List key names")
    p_keys.set_defaults(func=cmd_keys)

    p_hdmi = subparsers.add_parser("hdmi", help="Switch HDMI input")
    p_hdmi.add_argument("input", type=int, help="HDMI input number")
    p_hdmi.set_defaults(func=cmd_hdmi)

    p_app = subparsers.add_parser("app", help="Launch an app")
    p_app.add_argument("app", help="App id or 'list'")
    p_app.set_defaults(func=cmd_app)

    # Audio
    p_vol = subparsers.add_parser("volume", aliases=["vol"], help="Volume control")
    p_vol.add_argument("action", choices=["get", "set"], help="Volume action")
    p_vol.add_argument("level", type=int, nargs="?", help="Level 0-100 for 'set'")
    p_vol.set_defaults(func=cmd_volume)

    p_mute = subparsers.add_parser("mute", help="Mute control")
    p_mute.add_argument("action", choices=["get", "on", "off"], help="Mute action")
    p_mute.set_defaults(func=cmd_mute)

    # Pairing
    p_pin = subparsers.add_parser("pin", help="Display a pairing PIN on the TV")
    p_pin.set_defaults(func=cmd_pin)

    p_pair = subparsers.add_parser("pair", help="Pair using the PIN shown on the TV")
    p_pair.add_argument("--pin", required=True, help="PIN displayed on the TV")
    p_pair.add_argument("--challenge", required=True, help="Challenge printed by 'viera pin'")
    p_pair.add_argument("--save", action="store_true", help="Save credentials to config.yaml")
    p_pair.add_argument("--alias", help="Alias when saving")
    p_pair.set_defaults(func=cmd_pair)

    p_web = subparsers.add_parser("webpair", help="Serve a pairing form in the browser")
    p_web.add_argument("--port", type=int, default=WEBPAIR_PORT, help=f"Port (default: {WEBPAIR_PORT})")
    p_web.set_defaults(func=cmd_webpair)

    # Wake-on-LAN
    p_wake = subparsers.add_parser("wake", help="Wake TV using Wake-on-LAN")
    p_wake.add_argument("--mac", help="TV MAC address (e.g., AA:BB:CC:DD:EE:FF)")
    p_wake.set_defaults(func=cmd_wake)

    # Config
    p_cfg = subparsers.add_parser("config", help="View or set configuration")
    p_cfg.add_argument(
        "action",
        choices=["show", "list", "set-default"],
        nargs="?",
        default="show",
        help="show: display all TVs, list: list TV IDs, set-default: set default TV",
    )
    p_cfg.add_argument("value", nargs="?", help="Value to set")
    p_cfg.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level or _options().get("log_level", "WARNING"))

    # --ip works without any configured TV
    config = get_config()
    if config.get("tvs"):
        for error in validate_config(config):
            _LOGGER.warning("Config error: %s", error)

    if not args.command:
        parser.print_help()
        return 0

    try:
        result = args.func(args)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
    except ValueError as e:
        return _fail(e)
    except KeyboardInterrupt:
        return 130
    except VieraError as e:
        _LOGGER.error("%s failed: %s", args.command, e)
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
