"""Category endpoints."""
from __future__ import annotations

from typing import Any

from ..interfaces.transport import ApiTransport
from ..normalizer import normalize_list


class CategoryApi:
    def __init__(self, client: ApiTransport) -> None:
        self._client = client

    async def list_all(self) -> list[dict[str, Any]]:
        envelope = await self._client.request("GET", "/category")
        return normalize_list(envelope, "categories")

    async def list_admin(self) -> list[dict[str, Any]]:
        """Admin listing; the response has come as a bare list, ``{body: [...]}``
        and ``{body: {categories: [...]}}``."""
        envelope = await self._client.request("GET", "/admin/category")
        return normalize_list(envelope, "categories")
