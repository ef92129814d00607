"""Transaction history endpoint."""
from __future__ import annotations

from typing import Any

from ..interfaces.transport import ApiTransport
from ..normalizer import normalize_list


class TransactionApi:
    def __init__(self, client: ApiTransport) -> None:
        self._client = client

    async def get_history(
        self,
        limit: int | None = None,
        page: int | None = None,
        tx_type: str | None = None,
        token_symbol: str | None = None,
        populate: str | None = None,
    ) -> list[dict[str, Any]]:
        params = {
            "type": tx_type,
            "tokenSymbol": token_symbol,
            "page": page,
            "limit": limit,
            "populate": populate,
        }
        envelope = await self._client.request(
            "GET", "/transactions/history", params=params
        )
        return normalize_list(envelope, "transactions")
