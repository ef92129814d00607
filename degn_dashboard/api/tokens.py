"""Token endpoints, including the graph data served by flaky upstreams."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from ..interfaces.transport import ApiTransport
from ..models import GraphPoint, GraphStats, TokenPrice
from ..normalizer import (
    normalize_graph_points,
    normalize_graph_stats,
    normalize_list,
    normalize_token_prices,
)
from ..resilience import ResilientRequest

logger = logging.getLogger(__name__)

GRAPH_PERIODS = ("max", "1d", "4h")


class TokenApi:
    """Token catalog, prices and graph-data administration.

    Graph reads and every admin graph control go through ResilientRequest;
    catalog and price reads do not.
    """

    def __init__(
        self, client: ApiTransport, resilient: ResilientRequest | None = None
    ) -> None:
        self._client = client
        self._resilient = resilient or ResilientRequest()

    async def _retrying(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self._resilient.execute(
            lambda: self._client.request(method, path, params=params),
            label=f"{method} {path}",
        )

    async def get_tokens(self) -> list[dict[str, Any]]:
        envelope = await self._client.request("GET", "/admin/token")
        return normalize_list(envelope, "tokens")

    async def get_token_prices(
        self, symbols: list[str] | None = None
    ) -> dict[str, TokenPrice]:
        params = {"symbols": ",".join(symbols)} if symbols else None
        envelope = await self._client.request("GET", "/tokens/prices", params=params)
        return normalize_token_prices(envelope)

    async def get_graph(self, token_id: str, period: str = "max") -> tuple[GraphPoint, ...]:
        if period not in GRAPH_PERIODS:
            raise ValueError(f"Unknown graph period '{period}', expected one of {GRAPH_PERIODS}")
        envelope = await self._retrying(
            "GET", f"/token/graph/{token_id}", params={"type": period}
        )
        points = normalize_graph_points(envelope)
        logger.debug("Graph %s (%s): %d points", token_id, period, len(points))
        return points

    # ------------------------------------------------------------------
    # Admin graph controls
    # ------------------------------------------------------------------

    async def activate_graph_cron(self, token_id: str) -> Any:
        return await self._retrying("PUT", f"/admin/token/graph/cron/active/{token_id}")

    async def fetch_latest_graph_data(self, token_id: str) -> Any:
        return await self._retrying("PUT", f"/admin/token/graph/allow/latest/{token_id}")

    async def delete_graph_data(self, token_id: str) -> Any:
        return await self._retrying("DELETE", f"/admin/token/graph/{token_id}")

    async def populate_graph_data(self, token_id: str, days: int = 7) -> Any:
        if days <= 0:
            raise ValueError("days must be positive")
        return await self._retrying(
            "POST", f"/admin/graph/populate/{token_id}", params={"days": days}
        )

    async def enable_graph_cron(self, token_id: str) -> Any:
        return await self._retrying("POST", f"/admin/graph/enable-cron/{token_id}")

    async def get_graph_stats(self) -> GraphStats:
        envelope = await self._retrying("GET", "/admin/graph/stats")
        return normalize_graph_stats(envelope)
