"""Minimal web form to pair with an encrypted Viera TV from a browser.

Step 1: ``/?ip=<address>`` checks the TV and asks it to show a PIN.
Step 2: ``/?pin=<pin>&tv=<address>&challenge=<b64>`` completes pairing and
shows the ``app_id`` / ``enc_key`` pair.
"""

import html
import ipaddress
import logging
from typing import Tuple

from aiohttp import web

from .client import VieraTV
from .config.constants import WEBPAIR_PORT
from .discovery import liveness_probe

_LOGGER = logging.getLogger(__name__)

PAGE = "<html><body>{}</body></html>"

IP_FORM = """
<form action="/">
  <label for="ip">
    Please enter your Panasonic Viera (2018 or later model) IP address:
  </label>
  <br /><input type="text" id="ip" name="ip" /><input type="submit" value="Submit" />
</form>"""

PIN_FORM = """
ip {ip} found - '{model}' and it requires encryption;
<br />
<form action="/">
  <label for="pin">Please enter the PIN just displayed in Panasonic Viera TV:</label>
  <br /><input type="text" id="pin" name="pin" />
  <input type="hidden" value="{ip}" name="tv" />
  <input type="hidden" value="{challenge}" name="challenge" />
  <input type="submit" value="Submit" />
</form>"""


def _is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


async def _request_pin(ip: str) -> Tuple[int, str]:
    ip_html = html.escape(ip)
    if not _is_ipv4(ip):
        return 500, f"the supplied TV ip address ('{ip_html}') is NOT a valid IPv4 address..."
    if not await liveness_probe(ip):
        return 200, f"the supplied TV ip address '{ip_html}' is unreachable..."

    tv = VieraTV(ip)
    specs = await tv.fetch_specs()
    if not specs.ok:
        return 500, (
            "An unexpected error occurred - Unable to fetch specs from the "
            f"TV (with ip address {ip_html})."
        )
    tv.specs = specs.value
    model = html.escape(tv.specs.model_number)

    if not tv.requires_encryption:
        return 500, (
            f"Found a <b>{model}</b> on ip address {ip_html}! "
            "It's just that this specific model does not require encryption!"
        )
    if not await tv.is_turned_on():
        return 500, (
            f"Found a <b>{model}</b>, on ip address {ip_html}, which requires "
            "encryption; Unfortunately the TV seems to be in standby. "
            "<b>Please turn it ON</b> and try again ..."
        )

    challenge = await tv.pairing().request_pin_code()
    if not challenge.ok:
        _LOGGER.warning("PIN request to %s failed: %s", ip, challenge.error)
        return 500, (
            f"Found a <b>{model}</b>, on ip address {ip_html}, which requires encryption;"
            "<br />Sadly an unexpected error occurred while attempting to request a "
            "pin code from the TV. Please make sure that the TV is powered ON "
            "(and NOT in standby)"
        )

    return 200, PIN_FORM.format(ip=ip_html, model=model, challenge=html.escape(challenge.value))


async def _authorize(ip: str, pin: str, challenge: str) -> Tuple[int, str]:
    if not _is_ipv4(ip) or not await liveness_probe(ip):
        return 500, f"the supplied TV ip address '{html.escape(ip)}' is unreachable..."

    tv = VieraTV(ip)
    specs = await tv.fetch_specs()
    if not specs.ok or not specs.value.requires_encryption or not challenge:
        return 500, "Unable to pair with this TV."
    tv.specs = specs.value

    result = await tv.pairing().authorize_pin_code(pin, challenge)
    if not result.ok:
        _LOGGER.info("Pairing with %s failed: %s", ip, result.error)
        return 500, "Wrong Pin code..."

    credentials = result.value
    return 200, (
        "Paired with your TV successfully!<br />"
        f"<b>Encryption Key</b>: {html.escape(credentials.key)}<br />"
        f"<b>AppId</b>: {html.escape(credentials.app_id)}<br />"
    )


async def pairing_page(request: web.Request) -> web.Response:
    query = request.query
    if query.get("pin"):
        if query.get("tv"):
            status, body = await _authorize(query["tv"], query["pin"], query.get("challenge", ""))
        else:
            status, body = 200, ""
    elif query.get("ip"):
        status, body = await _request_pin(query["ip"])
    else:
        status, body = 200, IP_FORM

    return web.Response(status=status, text=PAGE.format(body), content_type="text/html")


def create_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/", pairing_page)
    return app


def serve(port: int = WEBPAIR_PORT) -> None:
    """Run the pairing form until interrupted."""
    _LOGGER.info("Pairing form at http://localhost:%d/", port)
    web.run_app(create_app(), port=port, print=None)
