"""Endpoints about the authenticated user."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..interfaces.transport import ApiTransport
from ..models import MyBalance
from ..normalizer import normalize_my_balance, select_record


class UserApi:
    def __init__(self, client: ApiTransport) -> None:
        self._client = client

    async def get_me(self) -> dict[str, Any]:
        envelope = await self._client.request("GET", "/user/me")
        if isinstance(envelope, Mapping) and isinstance(envelope.get("user"), Mapping):
            return dict(envelope["user"])
        return dict(select_record(envelope, "user"))

    async def get_my_balance(self, is_holdings: bool | None = None) -> MyBalance:
        """Total balance and token list; ``is_holdings`` asks for holdings data."""
        params = {"isHoldings": is_holdings} if is_holdings is not None else None
        envelope = await self._client.request("GET", "/user/balance", params=params)
        return normalize_my_balance(envelope, prefer_holdings=bool(is_holdings))
