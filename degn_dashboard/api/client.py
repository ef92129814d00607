"""Authenticated JSON client for the dashboard backend."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any, Mapping

import aiohttp
import certifi

from ..config import ApiConfig
from ..errors import (
    AuthenticationError,
    PermanentRequestError,
    TransientNetworkError,
    server_message,
)
from ..interfaces.session_store import SessionStore
from ..session_guard import SessionGuard

logger = logging.getLogger(__name__)


def _query_params(params: Mapping[str, Any] | None) -> dict[str, str] | None:
    """Stringify query values the way the backend expects (``true``/``false``)."""
    if not params:
        return None
    query: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        else:
            query[key] = str(value)
    return query or None


class ApiClient:
    """Issue one request, classify the outcome, report 401s to the guard.

    Every response status passes through ``guard.observe`` before anything
    else happens to it.
    """

    def __init__(
        self,
        config: ApiConfig,
        session_store: SessionStore,
        guard: SessionGuard | None = None,
    ) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout
        self.guard = guard or SessionGuard()
        self.session_store = session_store

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.session_store.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    async def _read_json(response: Any) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError as e:
            logger.debug("Response body is not JSON: %s", e)
            return None

    async def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Make one call and return the decoded JSON body.

        Raises:
            TransientNetworkError: No response, or HTTP status >= 500.
            AuthenticationError: HTTP 401.
            PermanentRequestError: Any other HTTP status >= 400.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        try:
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            async with aiohttp.ClientSession(
                connector=connector, headers=self._headers()
            ) as session:
                async with session.request(
                    method,
                    url,
                    params=_query_params(params),
                    json=json,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status = response.status
                    self.guard.observe(status)
                    payload = await self._read_json(response)
        except (
            aiohttp.ClientConnectionError,
            aiohttp.ClientPayloadError,
            asyncio.TimeoutError,
            ConnectionError,
        ) as e:
            code = "ETIMEDOUT" if isinstance(e, asyncio.TimeoutError) else "ECONNABORTED"
            logger.warning("%s %s: no response (%s)", method, path, e)
            raise TransientNetworkError(
                f"{method} {path}: no response ({e})", code=code
            ) from e

        if status < 400:
            logger.debug("%s %s -> %d", method, path, status)
            return payload

        message = server_message(payload, status)
        logger.warning("%s %s -> %d: %s", method, path, status, message)
        if status == 401:
            raise AuthenticationError(message, status=401, code="AUTH_ERROR", payload=payload)
        if status >= 500:
            raise TransientNetworkError(
                message, status=status, code="SERVER_ERROR", payload=payload
            )
        raise PermanentRequestError(
            message, status=status, code="CLIENT_ERROR", payload=payload
        )

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self, path: str, json: Any = None, params: Mapping[str, Any] | None = None
    ) -> Any:
        return await self.request("POST", path, params=params, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
