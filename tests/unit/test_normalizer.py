"""Unit tests for envelope normalization."""
from __future__ import annotations

import math

import pytest

from degn_dashboard.errors import MalformedEnvelopeError
from degn_dashboard.models import CanonicalBalance, TokenAccount
from degn_dashboard.normalizer import (
    DEGRADED_BALANCE_MESSAGE,
    normalize_balance,
    normalize_graph_points,
    normalize_graph_stats,
    normalize_history,
    normalize_list,
    normalize_my_balance,
    normalize_token_prices,
    normalize_totals,
    parse_numeric_or_zero,
    select_list,
    select_record,
)


def _numeric_fields(b: CanonicalBalance) -> list[float]:
    values = [b.total_balance, b.cash_balance, b.total_holding_balance, b.all_time_profit]
    for account in b.token_accounts + b.holdings:
        values.extend([account.balance, account.value_in_usd])
    return values


# ---------------------------------------------------------------------------
# parse_numeric_or_zero
# ---------------------------------------------------------------------------


class TestParseNumericOrZero:
    def test_numeric_string(self) -> None:
        assert parse_numeric_or_zero("12.5") == 12.5

    def test_garbage_string(self) -> None:
        assert parse_numeric_or_zero("abc") == 0.0

    def test_numeric_prefix_is_not_enough(self) -> None:
        assert parse_numeric_or_zero("12.5abc") == 0.0
        assert parse_numeric_or_zero("12.5 USD") == 0.0

    def test_none(self) -> None:
        assert parse_numeric_or_zero(None) == 0.0

    def test_whitespace_and_negative(self) -> None:
        assert parse_numeric_or_zero("  -3.25 ") == -3.25

    def test_numbers_pass_through(self) -> None:
        assert parse_numeric_or_zero(7) == 7.0
        assert isinstance(parse_numeric_or_zero(7), float)

    def test_non_finite_becomes_zero(self) -> None:
        assert parse_numeric_or_zero(float("nan")) == 0.0
        assert parse_numeric_or_zero("inf") == 0.0

    def test_bool_and_containers_become_zero(self) -> None:
        assert parse_numeric_or_zero(True) == 0.0
        assert parse_numeric_or_zero({"x": 1}) == 0.0
        assert parse_numeric_or_zero([1]) == 0.0


# ---------------------------------------------------------------------------
# Shape selection
# ---------------------------------------------------------------------------


class TestSelectRecord:
    def test_most_nested_wins(self) -> None:
        envelope = {"body": {"data": {"balance": {"a": 1}}}, "data": {"balance": {"a": 2}}}
        assert select_record(envelope, "balance") == {"a": 1}

    def test_falls_back_to_envelope(self) -> None:
        assert select_record({"a": 1}, "balance") == {"a": 1}

    def test_non_mapping_raises_with_envelope(self) -> None:
        with pytest.raises(MalformedEnvelopeError) as exc:
            select_record("oops", "balance")
        assert exc.value.envelope == "oops"

    def test_none_raises(self) -> None:
        with pytest.raises(MalformedEnvelopeError):
            select_record(None)


class TestSelectList:
    def test_bare_list(self) -> None:
        assert select_list([{"a": 1}], "categories") == [{"a": 1}]

    def test_body_list(self) -> None:
        assert select_list({"body": [1, 2]}, "categories") == [1, 2]

    def test_double_wrapped_tokens(self) -> None:
        envelope = {"status": {}, "body": {"tokens": {"tokens": [{"symbol": "SOL"}]}}}
        assert select_list(envelope, "tokens") == [{"symbol": "SOL"}]

    def test_field_in_envelope(self) -> None:
        assert select_list({"transactions": [1], "total": 1}, "transactions") == [1]

    def test_no_list_raises(self) -> None:
        with pytest.raises(MalformedEnvelopeError, match="tokens"):
            select_list({"body": {"tokens": "none"}}, "tokens")


# ---------------------------------------------------------------------------
# normalize_balance
# ---------------------------------------------------------------------------


class TestNormalizeBalance:
    def test_every_shape_yields_same_record(self, balance_envelope: dict) -> None:
        balance = normalize_balance(balance_envelope)
        assert balance.total_balance == pytest.approx(123.45)
        assert balance.cash_balance == pytest.approx(100.0)
        assert balance.total_holding_balance == pytest.approx(23.45)
        assert balance.all_time_profit == pytest.approx(-4.5)
        assert balance.token_accounts == (
            TokenAccount(symbol="SOL", balance=2.0, value_in_usd=40.0, mint_address="So111"),
        )
        assert all(math.isfinite(v) for v in _numeric_fields(balance))

    def test_bad_leaves_default_to_zero(self) -> None:
        balance = normalize_balance(
            {
                "data": {
                    "cashBalance": "abc",
                    "totalHoldingBalance": None,
                    "allTimeProfit": float("nan"),
                    "holdings": [{"balance": "x", "valueInUSD": None}, "junk"],
                }
            }
        )
        assert _numeric_fields(balance) == [0.0] * 6
        assert balance.holdings == (TokenAccount(),)
        assert balance.holdings[0].symbol == "Unknown"

    def test_total_falls_back_to_sum(self) -> None:
        balance = normalize_balance({"cashBalance": "10", "totalHoldingBalance": "5.5"})
        assert balance.total_balance == pytest.approx(15.5)

    def test_unparseable_total_falls_back_to_sum(self) -> None:
        balance = normalize_balance(
            {"totalBalance": "n/a", "cashBalance": 1, "totalHoldingBalance": 2}
        )
        assert balance.total_balance == pytest.approx(3.0)

    def test_server_total_is_authoritative(self) -> None:
        balance = normalize_balance(
            {"totalBalance": "99", "cashBalance": 1, "totalHoldingBalance": 2}
        )
        assert balance.total_balance == 99.0

    def test_legacy_scalar_balance(self) -> None:
        balance = normalize_balance({"success": True, "data": {"balance": 42, "totalRewards": 1}})
        assert balance.total_balance == 42.0
        assert balance.cash_balance == 42.0

    def test_error_string_marks_degraded(self) -> None:
        balance = normalize_balance({"totalBalance": "5", "error": "rpc timeout"})
        assert balance.error == "rpc timeout"
        assert balance.degraded
        assert balance.total_balance == 5.0

    def test_has_error_flag_marks_degraded(self) -> None:
        balance = normalize_balance({"totalBalance": "5", "hasError": True})
        assert balance.error == DEGRADED_BALANCE_MESSAGE

    def test_healthy_balance_has_no_error(self, balance_record: dict) -> None:
        assert normalize_balance(balance_record).error is None

    def test_list_envelope_is_malformed(self) -> None:
        with pytest.raises(MalformedEnvelopeError):
            normalize_balance([1, 2, 3])


class TestNormalizeMyBalance:
    def test_nested_holdings_scenario(self) -> None:
        envelope = {
            "body": {
                "data": {
                    "balance": {
                        "totalBalance": "123.45",
                        "tokenAccounts": [
                            {"symbol": "SOL", "balance": "2", "valueInUSD": "40"}
                        ],
                    }
                }
            }
        }
        mine = normalize_my_balance(envelope, prefer_holdings=True)
        assert mine.total_balance == pytest.approx(123.45)
        assert len(mine.tokens) == 1
        assert mine.tokens[0].symbol == "SOL"
        assert mine.tokens[0].balance == 2.0
        assert mine.tokens[0].value == 40.0

    def test_prefers_holdings_when_asked(self) -> None:
        envelope = {
            "tokenAccounts": [{"symbol": "A", "balance": 1}],
            "holdings": [{"symbol": "B", "balance": 2}],
        }
        assert normalize_my_balance(envelope, prefer_holdings=True).tokens[0].symbol == "B"
        assert normalize_my_balance(envelope).tokens[0].symbol == "A"


# ---------------------------------------------------------------------------
# normalize_totals
# ---------------------------------------------------------------------------


class TestNormalizeTotals:
    def test_server_totals(self) -> None:
        totals = normalize_totals(
            {
                "body": {
                    "totalCashBalance": "1000",
                    "totalHoldingBalance": "500",
                    "totalInUSDC": "1490",
                    "totalUsers": 3,
                    "tokenHoldings": [
                        {"mintAddress": "m1", "symbol": "BONK", "balance": "10", "valueInUSD": "5"},
                        {"mintAddress": "m2", "symbol": "SOL", "balance": "3", "valueInUSD": "450"},
                        {"mintAddress": "m3", "symbol": "DUST", "balance": "0", "valueInUSD": "0"},
                    ],
                }
            }
        )
        assert totals.total_cash_balance == 1000.0
        assert totals.total_holding_balance == 500.0
        assert totals.total_in_usdc == 1490.0
        assert totals.total_users == 3
        assert [h.symbol for h in totals.token_holdings] == ["SOL", "BONK"]

    def test_missing_total_in_usdc_is_reconciled(self) -> None:
        totals = normalize_totals(
            {"data": {"totalCashBalance": "10", "totalHoldingBalance": "2.5"}}
        )
        assert totals.total_in_usdc == pytest.approx(12.5)
        assert totals.total_users == 0
        assert totals.token_holdings == ()

    def test_total_balance_used_when_total_in_usdc_missing(self) -> None:
        totals = normalize_totals(
            {"body": {"totalBalance": "500", "totalCashBalance": "100",
                      "totalHoldingBalance": "300"}}
        )
        assert totals.total_in_usdc == 500.0

    def test_total_in_usdc_preferred_over_total_balance(self) -> None:
        totals = normalize_totals(
            {"data": {"totalInUSDC": "450", "totalBalance": "500",
                      "totalCashBalance": "100", "totalHoldingBalance": "300"}}
        )
        assert totals.total_in_usdc == 450.0


# ---------------------------------------------------------------------------
# Auxiliary resources
# ---------------------------------------------------------------------------


class TestNormalizeList:
    def test_drops_non_records(self) -> None:
        assert normalize_list({"body": {"categories": [{"name": "x"}, 3]}}, "categories") == [
            {"name": "x"}
        ]


class TestGraphAndStats:
    def test_graph_points(self) -> None:
        points = normalize_graph_points(
            {"data": [{"timestamp": "2024-01-01", "price": "1.5"}, {"timestamp": "t2", "price": None}]}
        )
        assert [p.price for p in points] == [1.5, 0.0]
        assert points[0].timestamp == "2024-01-01"

    def test_graph_stats(self) -> None:
        stats = normalize_graph_stats(
            {"body": {"totalTokens": "12", "tokensWithGraphData": 8, "cronEnabledTokens": None,
                      "lastUpdated": "2024-05-01T00:00:00Z"}}
        )
        assert stats.total_tokens == 12
        assert stats.tokens_with_graph_data == 8
        assert stats.cron_enabled_tokens == 0
        assert stats.last_updated == "2024-05-01T00:00:00Z"

    def test_token_prices(self) -> None:
        prices = normalize_token_prices(
            {"SOL": {"price": "150.2", "change24h": "-1.5"}, "BAD": "x"}
        )
        assert set(prices) == {"SOL"}
        assert prices["SOL"].price == pytest.approx(150.2)
        assert prices["SOL"].change_24h == pytest.approx(-1.5)

    def test_history(self) -> None:
        history = normalize_history(
            {"data": {"history": [{"date": "d", "balance": "5", "change": "-1", "type": "fee"}],
                      "total": 1}}
        )
        assert history[0].balance == 5.0
        assert history[0].change == -1.0
        assert history[0].type == "fee"
        assert history[0].description == ""
