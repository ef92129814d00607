"""Pure normalization of backend response envelopes — no I/O.

The backend has shipped several envelope layouts over time and more than one
may be live during a rolling deploy::

    {"body": {"data": {"balance": {...}}}}
    {"body": {"balance": {...}}}
    {"data": {"balance": {...}}}
    {"data": {...}}
    {...}

Shape selection tries the candidates most-nested first and takes the first
one of the right container type. Only that step can fail; every numeric leaf
is parsed independently afterwards and falls back to ``0.0``.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Iterable

from .errors import MalformedEnvelopeError
from .models import (
    UNKNOWN_SYMBOL,
    AggregateTotals,
    BalanceHistoryEntry,
    BalanceTokenItem,
    CanonicalBalance,
    GraphPoint,
    GraphStats,
    MyBalance,
    TokenAccount,
    TokenHoldingSummary,
    TokenPrice,
)

logger = logging.getLogger(__name__)

DEGRADED_BALANCE_MESSAGE = "Balance computation degraded upstream"


# ---------------------------------------------------------------------------
# Leaf parsing
# ---------------------------------------------------------------------------


def _parse_float(value: Any) -> float | None:
    """Parse ``value`` as a finite float, or return None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_numeric_or_zero(value: Any) -> float:
    """Parse a numeric leaf; ``None``, garbage, NaN and infinities become 0.0.

    The whole string must be a number; a numeric prefix is not enough.

    Examples:
        "12.5"    → 12.5
        "abc"     → 0.0
        "12.5abc" → 0.0
        None      → 0.0
    """
    number = _parse_float(value)
    return 0.0 if number is None else number


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


# ---------------------------------------------------------------------------
# Shape selection
# ---------------------------------------------------------------------------


def candidate_paths(field: str | None = None) -> tuple[tuple[str, ...], ...]:
    """Envelope paths to try, most-nested first."""
    if field:
        return (
            ("body", "data", field),
            ("body", field),
            ("body", "data"),
            ("body",),
            ("data", field),
            ("data",),
            (),
        )
    return (("body", "data"), ("body",), ("data",), ())


def _dig(envelope: Any, path: tuple[str, ...]) -> Any:
    node = envelope
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    return node


def select_record(envelope: Any, field: str | None = None) -> Mapping[str, Any]:
    """Return the first candidate mapping in ``envelope``.

    Raises:
        MalformedEnvelopeError: No candidate is a mapping.
    """
    for path in candidate_paths(field):
        node = _dig(envelope, path)
        if isinstance(node, Mapping):
            return node
    raise MalformedEnvelopeError(
        f"No known record shape for '{field or 'record'}'", envelope
    )


def select_list(envelope: Any, field: str) -> list[Any]:
    """Return the first candidate list in ``envelope``.

    A candidate that is a mapping holding ``field`` as a list is unwrapped
    once, which covers ``{"body": {"tokens": {"tokens": [...]}}}``.

    Raises:
        MalformedEnvelopeError: No candidate is a list.
    """
    for path in candidate_paths(field):
        node = _dig(envelope, path)
        if isinstance(node, list):
            return node
        if isinstance(node, Mapping) and isinstance(node.get(field), list):
            return node[field]
    raise MalformedEnvelopeError(f"No known list shape for '{field}'", envelope)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def normalize_token_account(raw: Mapping[str, Any]) -> TokenAccount:
    return TokenAccount(
        symbol=_text(raw.get("symbol"), UNKNOWN_SYMBOL),
        balance=parse_numeric_or_zero(_first(raw, "balance", "amount")),
        value_in_usd=parse_numeric_or_zero(
            _first(raw, "valueInUSD", "value", "usdValue")
        ),
        mint_address=_text(_first(raw, "mintAddress", "mint", "tokenAddress")),
    )


def _token_accounts(entries: Any) -> tuple[TokenAccount, ...]:
    if not isinstance(entries, list):
        return ()
    accounts: list[TokenAccount] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            logger.debug("Ignoring non-record token entry: %r", entry)
            continue
        accounts.append(normalize_token_account(entry))
    return tuple(accounts)


def _degradation(raw: Mapping[str, Any]) -> str | None:
    error = raw.get("error")
    if isinstance(error, str) and error.strip():
        return error.strip()
    if isinstance(error, Mapping):
        return _text(error.get("message"), DEGRADED_BALANCE_MESSAGE)
    if raw.get("hasError") is True:
        return DEGRADED_BALANCE_MESSAGE
    return None


def resolve_total(server_total: Any, *parts: float) -> float:
    """Server-supplied total when it parses, else the sum of ``parts``."""
    total = _parse_float(server_total)
    if total is not None:
        return total
    return math.fsum(parts)


def balance_from_record(raw: Mapping[str, Any]) -> CanonicalBalance:
    """Build a CanonicalBalance from an already-selected balance record."""
    cash = parse_numeric_or_zero(raw.get("cashBalance"))
    holding = parse_numeric_or_zero(raw.get("totalHoldingBalance"))

    server_total = raw.get("totalBalance")
    if server_total is None and not isinstance(raw.get("balance"), Mapping):
        # Oldest shape: {"balance": 12.3, "totalRewards": ...}, all cash
        server_total = raw.get("balance")
        if raw.get("cashBalance") is None:
            cash = parse_numeric_or_zero(server_total)

    return CanonicalBalance(
        total_balance=resolve_total(server_total, cash, holding),
        cash_balance=cash,
        total_holding_balance=holding,
        all_time_profit=parse_numeric_or_zero(raw.get("allTimeProfit")),
        token_accounts=_token_accounts(_first(raw, "tokenAccounts", "tokens")),
        holdings=_token_accounts(raw.get("holdings")),
        error=_degradation(raw),
    )


def normalize_balance(envelope: Any) -> CanonicalBalance:
    """Normalize any known balance envelope into a CanonicalBalance."""
    return balance_from_record(select_record(envelope, "balance"))


def normalize_my_balance(envelope: Any, prefer_holdings: bool = False) -> MyBalance:
    """Compact ``{total_balance, tokens}`` view of the caller's own balance."""
    canonical = normalize_balance(envelope)

    if prefer_holdings and canonical.holdings:
        source = canonical.holdings
    else:
        source = canonical.token_accounts or canonical.holdings

    return MyBalance(
        total_balance=canonical.total_balance,
        tokens=tuple(
            BalanceTokenItem(symbol=a.symbol, balance=a.balance, value=a.value_in_usd)
            for a in source
        ),
    )


def rank_holdings(
    holdings: Iterable[TokenHoldingSummary],
) -> tuple[TokenHoldingSummary, ...]:
    """Drop empty positions; sort by USD value desc, then symbol asc."""
    kept = [h for h in holdings if h.balance > 0]
    kept.sort(key=lambda h: (-h.value_in_usd, h.symbol, h.mint_address))
    return tuple(kept)


def normalize_totals(envelope: Any) -> AggregateTotals:
    """Normalize the server-precomputed cross-user totals."""
    raw = select_record(envelope, "totals")

    cash = parse_numeric_or_zero(raw.get("totalCashBalance"))
    holding = parse_numeric_or_zero(raw.get("totalHoldingBalance"))

    holdings = rank_holdings(
        TokenHoldingSummary(
            symbol=a.symbol,
            mint_address=a.mint_address,
            balance=a.balance,
            value_in_usd=a.value_in_usd,
        )
        for a in _token_accounts(raw.get("tokenHoldings"))
    )

    return AggregateTotals(
        total_cash_balance=cash,
        total_holding_balance=holding,
        total_in_usdc=resolve_total(
            _first(raw, "totalInUSDC", "totalBalance"), cash, holding
        ),
        total_users=int(parse_numeric_or_zero(raw.get("totalUsers"))),
        token_holdings=holdings,
    )


# ---------------------------------------------------------------------------
# Lists and auxiliary resources
# ---------------------------------------------------------------------------


def normalize_list(envelope: Any, field: str) -> list[dict[str, Any]]:
    """Select a list of records; non-record entries are dropped."""
    items = select_list(envelope, field)
    records = [dict(item) for item in items if isinstance(item, Mapping)]
    if len(records) != len(items):
        logger.warning(
            "Dropped %d non-record entries from '%s'", len(items) - len(records), field
        )
    return records


def normalize_user_records(envelope: Any) -> list[Any]:
    """Raw entries of the users-with-balances listing, unvalidated."""
    return list(select_list(envelope, "users"))


def normalize_graph_points(envelope: Any) -> tuple[GraphPoint, ...]:
    return tuple(
        GraphPoint(
            timestamp=_text(_first(item, "timestamp", "time", "date")),
            price=parse_numeric_or_zero(item.get("price")),
        )
        for item in normalize_list(envelope, "graph")
    )


def normalize_graph_stats(envelope: Any) -> GraphStats:
    raw = select_record(envelope, "stats")
    return GraphStats(
        total_tokens=int(parse_numeric_or_zero(raw.get("totalTokens"))),
        tokens_with_graph_data=int(
            parse_numeric_or_zero(raw.get("tokensWithGraphData"))
        ),
        cron_enabled_tokens=int(parse_numeric_or_zero(raw.get("cronEnabledTokens"))),
        last_updated=_text(raw.get("lastUpdated")),
    )


def normalize_token_prices(envelope: Any) -> dict[str, TokenPrice]:
    """``{SYMBOL: {price, change24h}}`` → ``{SYMBOL: TokenPrice}``."""
    raw = select_record(envelope, "prices")
    prices: dict[str, TokenPrice] = {}
    for symbol, entry in raw.items():
        if not isinstance(entry, Mapping):
            continue
        prices[str(symbol)] = TokenPrice(
            price=parse_numeric_or_zero(entry.get("price")),
            change_24h=parse_numeric_or_zero(_first(entry, "change24h", "change_24h")),
        )
    return prices


def normalize_history(envelope: Any) -> tuple[BalanceHistoryEntry, ...]:
    return tuple(
        BalanceHistoryEntry(
            date=_text(item.get("date")),
            balance=parse_numeric_or_zero(item.get("balance")),
            change=parse_numeric_or_zero(item.get("change")),
            type=_text(item.get("type")),
            description=_text(item.get("description")),
        )
        for item in normalize_list(envelope, "history")
    )
