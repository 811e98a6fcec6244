"""HTTP transport to a single TV."""

import asyncio
import logging
from typing import Dict, Mapping, Optional, Tuple

import aiohttp

from .config.constants import DEFAULT_PORT, DEFAULT_REQUEST_TIMEOUT
from .outcome import ConnectivityError, DeviceHTTPError
from .soap import render_envelope, soap_headers

_LOGGER = logging.getLogger(__name__)


class TransportClient:
    """Plain HTTP requests against ``http://<address>:<port>``.

    A fresh :class:`aiohttp.ClientSession` is opened per request, so an
    instance holds no sockets between calls.
    """

    def __init__(
        self,
        address: str,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.address = address
        self.port = port
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def host(self) -> str:
        return f"{self.address}:{self.port}"

    @property
    def base_url(self) -> str:
        return f"http://{self.host}"

    async def request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[str] = None,
    ) -> Tuple[int, Mapping[str, str], str]:
        """Send a request and return (status, headers, body).

        Raises:
            ConnectivityError: Network failure or timeout
            DeviceHTTPError: TV answered with status >= 400
        """
        url = f"{self.base_url}{path}"
        _LOGGER.debug("%s %s", method, url)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, headers=headers, data=data) as resp:
                    body = await resp.text(errors="replace")
                    status = resp.status
                    resp_headers = resp.headers.copy()
        except asyncio.TimeoutError as exc:
            raise ConnectivityError(f"Timeout talking to {self.host}") from exc
        except aiohttp.ClientError as exc:
            raise ConnectivityError(f"Cannot reach {self.host}: {exc}") from exc

        if status >= 400:
            _LOGGER.debug("%s %s -> HTTP %s: %s", method, url, status, body)
            raise DeviceHTTPError(status, body)

        return status, resp_headers, body

    async def get(self, path: str) -> str:
        """GET ``path`` and return the body text."""
        _, _, body = await self.request("GET", path)
        return body

    async def post_soap(self, path: str, urn: str, action: str, parameters: str) -> str:
        """POST a SOAP action and return the raw reply body."""
        envelope = render_envelope(action, urn, parameters)
        headers = soap_headers(self.host, urn, action)
        _LOGGER.debug("SOAP %s -> %s", action, envelope)
        _, _, body = await self.request("POST", path, headers=headers, data=envelope)
        _LOGGER.debug("SOAP %s <- %s", action, body)
        return body
