"""HTTP client for the SwitchBot cloud device API."""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .const import API_BASE_URL, DEFAULT_TIMEOUT, DEVICES_PATH
from .exceptions import ProtocolError, TransportError
from .models import (
    ApiResponse,
    Command,
    CommandResponse,
    DeviceList,
    DeviceListResponse,
    StatusResponse,
)

_LOGGER = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=ApiResponse)


def create_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Return an httpx async client shared by every device engine.

    Request URLs are absolute, built from the API client's ``base_url``, so
    the same client works whether it is created here or injected.
    """

    return httpx.AsyncClient(timeout=httpx.Timeout(timeout))


class SwitchBotAPIClient:
    """Issue status and command requests against the SwitchBot cloud.

    A single instance (and its connection pool) is shared across all device
    engines; it keeps no per-device state.
    """

    def __init__(
        self,
        token: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = API_BASE_URL,
    ) -> None:
        """Bind the API token and the HTTP client used for requests."""

        self._token = token
        self._owns_client = http_client is None
        self._client = http_client or create_http_client(timeout)
        self._timeout = httpx.Timeout(timeout)
        self._base_url = base_url.rstrip("/")

    async def async_get_devices(self) -> DeviceList:
        """Return the physical devices and IR remotes bound to the account."""

        response = await self._async_request(
            "GET", DEVICES_PATH, response_type=DeviceListResponse
        )
        try:
            return DeviceList.model_validate(response.body)
        except ValidationError as err:
            raise ProtocolError(f"Malformed device list: {err}") from err

    async def async_get_status(self, device_id: str) -> StatusResponse:
        """Fetch the latest status payload for ``device_id``."""

        return await self._async_request(
            "GET",
            f"{DEVICES_PATH}/{quote(device_id, safe='')}/status",
            response_type=StatusResponse,
        )

    async def async_post_command(
        self, device_id: str, command: Command
    ) -> CommandResponse:
        """Send ``command`` to ``device_id``."""

        payload = command.as_payload()
        _LOGGER.debug("Posting command to %s: %s", device_id, payload)
        return await self._async_request(
            "POST",
            f"{DEVICES_PATH}/{quote(device_id, safe='')}/commands",
            response_type=CommandResponse,
            json=payload,
        )

    async def async_close(self) -> None:
        """Close the HTTP client when this instance created it."""

        if self._owns_client:
            await self._client.aclose()

    async def _async_request(
        self,
        method: str,
        path: str,
        *,
        response_type: type[ResponseT],
        json: dict[str, Any] | None = None,
    ) -> ResponseT:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(
                method,
                url,
                json=json,
                headers=self._headers(),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as err:
            raise TransportError(f"{method} {path} timed out") from err
        except httpx.HTTPStatusError as err:
            raise ProtocolError(
                f"{method} {path} returned HTTP {err.response.status_code}",
                status_code=err.response.status_code,
            ) from err
        except httpx.HTTPError as err:
            raise TransportError(f"{method} {path} failed: {err}") from err

        try:
            payload = response.json()
        except ValueError as err:
            raise ProtocolError(f"{method} {path} returned a non-JSON body") from err
        _LOGGER.debug("%s %s -> %s", method, path, payload)

        if not isinstance(payload, dict):
            raise ProtocolError(f"{method} {path} returned an unexpected body")
        try:
            result = response_type.model_validate(payload)
        except ValidationError as err:
            raise ProtocolError(f"{method} {path} returned a malformed body") from err

        if not result.is_success:
            raise ProtocolError(
                f"{method} {path} failed: {result.status_code} {result.message}",
                status_code=result.status_code,
                api_message=result.message,
            )
        return result

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": self._token,
            "Content-Type": "application/json; charset=utf8",
        }
