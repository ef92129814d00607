"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

UNKNOWN_SYMBOL = "Unknown"


@dataclass(frozen=True)
class TokenAccount:
    """Single token position inside a balance (token account or holding)."""

    symbol: str = UNKNOWN_SYMBOL
    balance: float = 0.0
    value_in_usd: float = 0.0
    mint_address: str = ""


@dataclass(frozen=True)
class CanonicalBalance:
    """Normalized balance record; every numeric field is a finite float."""

    total_balance: float = 0.0
    cash_balance: float = 0.0
    total_holding_balance: float = 0.0
    all_time_profit: float = 0.0
    token_accounts: tuple[TokenAccount, ...] = ()
    holdings: tuple[TokenAccount, ...] = ()
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class UserSummary:
    """Per-user figures derived from a CanonicalBalance."""

    total_balance: float
    cash_balance: float
    total_holding_balance: float
    all_time_profit: float
    net_worth: float
    degraded: bool = False
    error: str | None = None


@dataclass(frozen=True)
class TokenHoldingSummary:
    """A token position merged across users."""

    symbol: str
    mint_address: str
    balance: float
    value_in_usd: float


@dataclass(frozen=True)
class AggregateTotals:
    """Cross-user rollup of balances and holdings."""

    total_cash_balance: float = 0.0
    total_holding_balance: float = 0.0
    total_in_usdc: float = 0.0
    total_users: int = 0
    token_holdings: tuple[TokenHoldingSummary, ...] = ()
    skipped: int = 0
    degraded: int = 0


@dataclass(frozen=True)
class UserBalanceRow:
    """One row of the admin users-with-balances listing."""

    user_id: str
    email: str
    user_name: str
    wallet_address: str
    summary: UserSummary


@dataclass(frozen=True)
class BalanceTokenItem:
    symbol: str
    balance: float
    value: float


@dataclass(frozen=True)
class MyBalance:
    """Compact balance shape returned for the authenticated user."""

    total_balance: float
    tokens: tuple[BalanceTokenItem, ...] = ()


@dataclass(frozen=True)
class RetryAttempt:
    """Bookkeeping for one scheduled retry; never persisted."""

    attempt_index: int
    delay_ms: int


@dataclass(frozen=True)
class GraphPoint:
    timestamp: str
    price: float


@dataclass(frozen=True)
class GraphStats:
    total_tokens: int = 0
    tokens_with_graph_data: int = 0
    cron_enabled_tokens: int = 0
    last_updated: str = ""


@dataclass(frozen=True)
class TokenPrice:
    price: float = 0.0
    change_24h: float = 0.0


@dataclass(frozen=True)
class BalanceHistoryEntry:
    date: str
    balance: float
    change: float
    type: str
    description: str = ""


@dataclass(frozen=True)
class DashboardSnapshot:
    """Joined result of the concurrent dashboard fetches.

    Resources that failed are absent from their field (empty tuple / None)
    and present in ``errors`` keyed by resource name.
    """

    tokens: tuple[dict[str, Any], ...] = ()
    transactions: tuple[dict[str, Any], ...] = ()
    categories: tuple[dict[str, Any], ...] = ()
    users: tuple[UserBalanceRow, ...] = ()
    totals: AggregateTotals | None = None
    errors: dict[str, Exception] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.errors
