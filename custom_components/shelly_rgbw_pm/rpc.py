"""JSON-RPC client for a single Shelly Gen2 device."""

from __future__ import annotations

import json
import logging
from typing import Any

import aiohttp
import async_timeout

from .const import DEFAULT_TIMEOUT, RPC_SOURCE
from .exceptions import ShellyRpcError

_LOGGER = logging.getLogger(__name__)


def build_rpc_url(host: str) -> str:
    """Return the RPC endpoint for a host, keeping an explicit scheme."""
    base = host if host.startswith(("http://", "https://")) else f"http://{host}"
    return f"{base.rstrip('/')}/rpc"


class ShellyRpcClient:
    """Send request/response calls to one device."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        host: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client."""
        self._session = session
        self._timeout = timeout
        self._request_id = 1
        self.host = host
        self.url = build_rpc_url(host)

    async def async_get_status(self) -> dict[str, Any]:
        """Return the Shelly.GetStatus snapshot."""
        return await self.async_call("Shelly.GetStatus")

    async def async_get_device_info(self) -> dict[str, Any]:
        """Return the Shelly.GetDeviceInfo metadata."""
        return await self.async_call("Shelly.GetDeviceInfo")

    async def async_call(
        self, method: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Call an RPC method and return its result payload."""
        payload: dict[str, Any] = {
            "id": self._request_id,
            "src": RPC_SOURCE,
            "method": method,
        }
        self._request_id += 1
        if params:
            payload["params"] = params

        _LOGGER.debug("Calling %s on %s with %s", method, self.host, params)

        try:
            async with async_timeout.timeout(self._timeout):
                async with self._session.post(self.url, json=payload) as response:
                    if not 200 <= response.status < 300:
                        raise ShellyRpcError(
                            f"HTTP {response.status} {response.reason} calling {method}"
                        )
                    try:
                        body = await response.json(content_type=None)
                    except ValueError as exc:
                        raise ShellyRpcError(
                            f"Invalid JSON received from {method}"
                        ) from exc
        except TimeoutError as exc:
            raise ShellyRpcError(f"Request timeout calling {method}") from exc
        except aiohttp.ClientError as exc:
            raise ShellyRpcError(f"Network error calling {method}: {exc}") from exc

        if not isinstance(body, dict):
            raise ShellyRpcError(f"Malformed response received from {method}")

        if error := body.get("error"):
            message = (
                error.get("message") if isinstance(error, dict) else None
            ) or json.dumps(error)
            raise ShellyRpcError(f"Shelly RPC error for {method}: {message}")

        for key in ("result", "params"):
            if key not in body:
                continue
            data = body[key]
            # Set calls may answer with a null result.
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ShellyRpcError(f"Malformed {key} received from {method}")
            return data

        return body
