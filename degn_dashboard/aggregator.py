"""Per-user and cross-user balance figures."""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Iterable, Sequence

from .errors import MalformedEnvelopeError
from .models import (
    AggregateTotals,
    CanonicalBalance,
    GraphPoint,
    TokenAccount,
    TokenHoldingSummary,
    UserBalanceRow,
    UserSummary,
)
from .normalizer import balance_from_record, rank_holdings, select_record

logger = logging.getLogger(__name__)


def aggregate_user(canonical: CanonicalBalance) -> UserSummary:
    """Pass the canonical figures through and derive ``net_worth``."""
    return UserSummary(
        total_balance=canonical.total_balance,
        cash_balance=canonical.cash_balance,
        total_holding_balance=canonical.total_holding_balance,
        all_time_profit=canonical.all_time_profit,
        net_worth=math.fsum(
            (canonical.cash_balance, canonical.total_holding_balance)
        ),
        degraded=canonical.degraded,
        error=canonical.error,
    )


def _positions(canonical: CanonicalBalance) -> tuple[TokenAccount, ...]:
    # Holdings and token accounts describe the same positions when both
    # are present; count each user's positions once.
    return canonical.holdings or canonical.token_accounts


def merge_holdings(
    balances: Iterable[CanonicalBalance],
) -> tuple[TokenHoldingSummary, ...]:
    """Merge positions by (symbol, mint address) across users."""
    merged: dict[tuple[str, str], tuple[list[float], list[float]]] = {}
    for canonical in balances:
        for account in _positions(canonical):
            key = (account.symbol, account.mint_address)
            amounts, values = merged.setdefault(key, ([], []))
            amounts.append(account.balance)
            values.append(account.value_in_usd)

    return rank_holdings(
        TokenHoldingSummary(
            symbol=symbol,
            mint_address=mint,
            balance=math.fsum(amounts),
            value_in_usd=math.fsum(values),
        )
        for (symbol, mint), (amounts, values) in merged.items()
    )


def aggregate_across_users(
    balances: Iterable[CanonicalBalance | None],
) -> AggregateTotals:
    """Sum cash and holdings over users and merge their token positions.

    ``None`` entries stand for users whose record could not be normalized at
    all; they are excluded from every figure and counted in ``skipped``.
    Degraded users (``error`` set) still contribute their best-effort
    numbers and are counted in ``degraded``.

    ``math.fsum`` keeps the sums independent of input order.
    """
    included: list[CanonicalBalance] = []
    skipped = 0
    for canonical in balances:
        if canonical is None:
            skipped += 1
        else:
            included.append(canonical)

    total_cash = math.fsum(c.cash_balance for c in included)
    total_holding = math.fsum(c.total_holding_balance for c in included)

    return AggregateTotals(
        total_cash_balance=total_cash,
        total_holding_balance=total_holding,
        total_in_usdc=math.fsum((total_cash, total_holding)),
        total_users=len(included),
        token_holdings=merge_holdings(included),
        skipped=skipped,
        degraded=sum(1 for c in included if c.degraded),
    )


def _user_field(user: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = user.get(key)
        if value:
            return str(value)
    return ""


def summarize_users(
    records: Iterable[Any],
) -> tuple[tuple[UserBalanceRow, ...], AggregateTotals]:
    """Rows plus totals for the raw users-with-balances listing.

    Each record is either ``{"user": {...}, "balance": {...}}`` or a user
    object carrying its own ``balance``. Records without a usable balance
    are skipped and logged, never dropped silently.
    """
    rows: list[UserBalanceRow] = []
    balances: list[CanonicalBalance | None] = []

    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Skipping non-record user entry: %r", record)
            balances.append(None)
            continue

        user = record.get("user")
        if not isinstance(user, Mapping):
            user = record

        raw_balance = record.get("balance")
        try:
            if isinstance(raw_balance, (int, float, str)) and not isinstance(
                raw_balance, bool
            ):
                # Legacy listing: the user carries a bare numeric balance.
                canonical = balance_from_record(record)
            else:
                canonical = balance_from_record(select_record(raw_balance))
        except MalformedEnvelopeError as e:
            logger.warning(
                "Skipping user %s: %s", _user_field(user, "_id", "id") or "?", e
            )
            balances.append(None)
            continue

        if canonical.degraded:
            logger.info(
                "User %s balance degraded: %s",
                _user_field(user, "_id", "id"), canonical.error,
            )

        balances.append(canonical)
        rows.append(
            UserBalanceRow(
                user_id=_user_field(user, "_id", "id"),
                email=_user_field(user, "email"),
                user_name=_user_field(user, "userName", "username", "name"),
                wallet_address=_user_field(user, "walletAddress"),
                summary=aggregate_user(canonical),
            )
        )

    return tuple(rows), aggregate_across_users(balances)


def price_change_percent(points: Sequence[GraphPoint]) -> float:
    """Percent change from the first to the last graph point."""
    if len(points) < 2 or points[0].price == 0:
        return 0.0
    return (points[-1].price - points[0].price) / points[0].price * 100
