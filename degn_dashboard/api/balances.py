"""Balance endpoints: per-user, admin lookups and cross-user totals."""
from __future__ import annotations

import logging
from typing import Any

from ..aggregator import summarize_users
from ..interfaces.transport import ApiTransport
from ..models import (
    AggregateTotals,
    BalanceHistoryEntry,
    CanonicalBalance,
    UserBalanceRow,
)
from ..normalizer import (
    normalize_balance,
    normalize_history,
    normalize_totals,
    normalize_user_records,
)

logger = logging.getLogger(__name__)


class BalanceApi:
    """Fetch balances and hand back canonical, always-numeric records."""

    def __init__(self, client: ApiTransport) -> None:
        self._client = client

    async def get_current_user_balance(
        self, include_holdings: bool = False
    ) -> CanonicalBalance:
        params = {"isHoldings": True} if include_holdings else None
        envelope = await self._client.request("GET", "/user/balance", params=params)
        return normalize_balance(envelope)

    async def get_user_balance(self, user_id: str) -> CanonicalBalance:
        """Admin: balance of an arbitrary user."""
        envelope = await self._client.request("GET", f"/admin/user/balance/{user_id}")
        balance = normalize_balance(envelope)
        if balance.degraded:
            logger.info("Balance for user %s is degraded: %s", user_id, balance.error)
        return balance

    async def get_total_balance(self) -> AggregateTotals:
        """Admin: totals precomputed server-side."""
        envelope = await self._client.request("GET", "/admin/user/total-balance")
        return normalize_totals(envelope)

    async def get_users_with_balances(
        self,
    ) -> tuple[tuple[UserBalanceRow, ...], AggregateTotals]:
        """Admin: every user with a balance, plus a client-side rollup."""
        envelope = await self._client.request("GET", "/admin/user/all-with-balances")
        rows, totals = summarize_users(normalize_user_records(envelope))
        if totals.skipped:
            logger.warning("Skipped %d users with unusable balances", totals.skipped)
        return rows, totals

    async def get_balance_history(
        self,
        limit: int | None = None,
        offset: int | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> tuple[BalanceHistoryEntry, ...]:
        params = {
            "limit": limit,
            "offset": offset,
            "startDate": start_date,
            "endDate": end_date,
        }
        envelope = await self._client.request(
            "GET", "/user/balance/history", params=params
        )
        return normalize_history(envelope)

    async def update_user_balance(self, user_id: str, balance: float) -> Any:
        """Admin: overwrite a user's cash balance."""
        return await self._client.request(
            "PUT", f"/admin/user/balance/{user_id}", json={"balance": balance}
        )
