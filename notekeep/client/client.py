"""Low level HTTP client for the notekeep API."""

import asyncio
import logging
from typing import Any, TypeVar

import aiohttp
from mashumaro.exceptions import MissingField
from mashumaro.mixins.json import DataClassJSONMixin

from .exceptions import (
    ApiException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NetworkException,
    NotFoundException,
    UnauthorizedException,
)

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T", bound=DataClassJSONMixin)

DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)

_STATUS_EXCEPTIONS: dict[int, type[ApiException]] = {
    400: BadRequestException,
    401: UnauthorizedException,
    403: ForbiddenException,
    404: NotFoundException,
    409: ConflictException,
}


class Client:
    """Sends requests and decodes JSON responses into dataclasses.

    Sessions are cookie based, so the aiohttp session's cookie jar carries
    the login between calls.
    """

    def __init__(
        self,
        websession: aiohttp.ClientSession,
        host: str,
        timeout: aiohttp.ClientTimeout = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client."""
        self._websession = websession
        self._host = host.rstrip("/")
        self._timeout = timeout

    @property
    def host(self) -> str:
        return self._host

    def _url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._host}/{url.lstrip('/')}"

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> aiohttp.ClientResponse:
        """Make a request and raise an exception for error responses."""
        full_url = self._url(url)
        _LOGGER.debug("%s %s", method, full_url)
        try:
            response = await self._websession.request(
                method, full_url, params=params, json=json, timeout=self._timeout
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise NetworkException(f"Error connecting to {full_url}: {err}") from err
        await self._raise_for_status(response)
        return response

    async def get_json(
        self, url: str, data_cls: type[_T], params: dict[str, Any] | None = None
    ) -> _T:
        response = await self.request("get", url, params=params)
        return await self._decode(response, data_cls)

    async def post_json(
        self, url: str, data_cls: type[_T], json: dict[str, Any] | None = None
    ) -> _T:
        response = await self.request("post", url, json=json or {})
        return await self._decode(response, data_cls)

    async def put_json(
        self, url: str, data_cls: type[_T], json: dict[str, Any] | None = None
    ) -> _T:
        response = await self.request("put", url, json=json or {})
        return await self._decode(response, data_cls)

    async def delete_json(self, url: str, data_cls: type[_T]) -> _T:
        response = await self.request("delete", url)
        return await self._decode(response, data_cls)

    async def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if response.status < 400:
            return
        message = response.reason or f"HTTP {response.status}"
        details: list[str] = []
        try:
            body = await response.json(content_type=None)
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or message
            if isinstance(body.get("details"), list):
                details = [str(detail) for detail in body["details"]]
        exc_cls = _STATUS_EXCEPTIONS.get(response.status, ApiException)
        raise exc_cls(message, status=response.status, details=details)

    async def _decode(self, response: aiohttp.ClientResponse, data_cls: type[_T]) -> _T:
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise NetworkException(f"Error reading response: {err}") from err
        except ValueError as err:
            raise ApiException(
                f"Server return malformed response: {err}", status=response.status
            ) from err
        try:
            return data_cls.from_dict(body)
        except (MissingField, TypeError, ValueError) as err:
            raise ApiException(
                f"Server return malformed response: {err}", status=response.status
            ) from err
