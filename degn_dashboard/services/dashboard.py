"""Dashboard orchestration — concurrent fetches joined into one snapshot."""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any

from ..api import ApiClient, BalanceApi, CategoryApi, TokenApi, TransactionApi
from ..config import AppConfig
from ..interfaces.session_store import SessionStore
from ..models import AggregateTotals, DashboardSnapshot, UserBalanceRow
from ..resilience import BackoffPolicy, ResilientRequest
from ..session_guard import SessionGuard

logger = logging.getLogger(__name__)


def _reconcile_totals(
    server: AggregateTotals | None, client: AggregateTotals | None
) -> AggregateTotals | None:
    """Prefer the server rollup; keep the client's skipped/degraded counts."""
    if server is None:
        return client
    if client is None:
        return server
    return dataclasses.replace(server, skipped=client.skipped, degraded=client.degraded)


class DashboardService:
    """Loads everything the admin overview needs in one concurrent round."""

    def __init__(
        self,
        balances: BalanceApi,
        tokens: TokenApi,
        transactions: TransactionApi,
        categories: CategoryApi,
    ) -> None:
        self.balances = balances
        self.tokens = tokens
        self.transactions = transactions
        self.categories = categories

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        session_store: SessionStore,
        guard: SessionGuard | None = None,
    ) -> DashboardService:
        guard = guard or SessionGuard(cooldown_ms=config.session.auth_cooldown_ms)
        client = ApiClient(config.api, session_store, guard)
        resilient = ResilientRequest(
            BackoffPolicy(
                max_retries=config.retry.max_retries,
                base_delay_ms=config.retry.base_delay_ms,
            )
        )
        return cls(
            balances=BalanceApi(client),
            tokens=TokenApi(client, resilient),
            transactions=TransactionApi(client),
            categories=CategoryApi(client),
        )

    async def load_overview(
        self, transaction_limit: int = 50, fail_fast: bool = False
    ) -> DashboardSnapshot:
        """Fetch tokens, transactions, categories, users and totals together.

        A failed resource is recorded in ``snapshot.errors`` and the rest of
        the snapshot stays usable. With ``fail_fast`` the first failure (in
        resource order) is re-raised instead.
        """
        names = ("tokens", "transactions", "categories", "users", "totals")
        results = await asyncio.gather(
            self.tokens.get_tokens(),
            self.transactions.get_history(
                limit=transaction_limit, populate="token,user"
            ),
            self.categories.list_admin(),
            self.balances.get_users_with_balances(),
            self.balances.get_total_balance(),
            return_exceptions=True,
        )

        values: dict[str, Any] = {}
        errors: dict[str, Exception] = {}
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                if fail_fast:
                    raise result
                logger.error("Dashboard: loading %s failed: %s", name, result)
                errors[name] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                values[name] = result

        rows: tuple[UserBalanceRow, ...] = ()
        client_totals: AggregateTotals | None = None
        if "users" in values:
            rows, client_totals = values["users"]

        snapshot = DashboardSnapshot(
            tokens=tuple(values.get("tokens", ())),
            transactions=tuple(values.get("transactions", ())),
            categories=tuple(values.get("categories", ())),
            users=rows,
            totals=_reconcile_totals(values.get("totals"), client_totals),
            errors=errors,
        )
        logger.info(
            "Dashboard loaded: %d tokens, %d transactions, %d categories, %d users, %d errors",
            len(snapshot.tokens),
            len(snapshot.transactions),
            len(snapshot.categories),
            len(snapshot.users),
            len(errors),
        )
        return snapshot
