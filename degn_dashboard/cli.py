"""Command-line interface for the dashboard data layer."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .aggregator import price_change_percent
from .api import ApiClient, BalanceApi, CategoryApi, TokenApi, TransactionApi, UserApi
from .config import AppConfig, load_config
from .errors import ApiError, user_message
from .logging_setup import configure_logging
from .models import AggregateTotals
from .resilience import BackoffPolicy, ResilientRequest
from .services import DashboardService
from .session_guard import SessionGuard
from .session_store import MemorySessionStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="degn-dashboard",
        description="Dashboard data client: balances, totals and graph data",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    balance_parser = sub.add_parser("balance", help="Authenticated user's balance")
    balance_parser.add_argument(
        "--holdings", action="store_true", help="Include holdings data"
    )

    user_parser = sub.add_parser("user-balance", help="Balance of one user (admin)")
    user_parser.add_argument("user_id")

    sub.add_parser("totals", help="Cross-user totals (admin)")
    sub.add_parser("overview", help="Load the full admin overview")
    sub.add_parser("graph-stats", help="Graph data statistics (admin)")

    graph_parser = sub.add_parser("graph", help="Price graph of one token")
    graph_parser.add_argument("token_id")
    graph_parser.add_argument(
        "--period", default="max", choices=["max", "1d", "4h"], help="Graph period"
    )

    return parser


def _print_totals(totals: AggregateTotals) -> None:
    print(f"Users:          {totals.total_users}")
    print(f"Cash:           ${totals.total_cash_balance:,.2f}")
    print(f"Holdings:       ${totals.total_holding_balance:,.2f}")
    print(f"Total (USDC):   ${totals.total_in_usdc:,.2f}")
    if totals.skipped or totals.degraded:
        print(f"Skipped users:  {totals.skipped}  Degraded: {totals.degraded}")
    for h in totals.token_holdings:
        print(f"  {h.symbol:<10} {h.balance:>18,.4f}  ${h.value_in_usd:,.2f}")


def _build_client(config: AppConfig) -> ApiClient:
    store = MemorySessionStore(config.api.auth_token)
    guard = SessionGuard(cooldown_ms=config.session.auth_cooldown_ms)

    def on_auth_failure(status: int) -> None:
        logger.error("Session rejected by backend (HTTP %d); clearing token", status)
        store.clear()

    guard.subscribe(on_auth_failure)
    return ApiClient(config.api, store, guard)


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    client = _build_client(config)
    resilient = ResilientRequest(
        BackoffPolicy(config.retry.max_retries, config.retry.base_delay_ms)
    )

    if args.command == "balance":
        mine = await UserApi(client).get_my_balance(args.holdings or None)
        print(f"Total balance: ${mine.total_balance:,.2f}")
        for token in mine.tokens:
            print(f"  {token.symbol:<10} {token.balance:>18,.4f}  ${token.value:,.2f}")
    elif args.command == "user-balance":
        balance = await BalanceApi(client).get_user_balance(args.user_id)
        print(f"Total:    ${balance.total_balance:,.2f}")
        print(f"Cash:     ${balance.cash_balance:,.2f}")
        print(f"Holdings: ${balance.total_holding_balance:,.2f}")
        print(f"Profit:   ${balance.all_time_profit:,.2f}")
        if balance.error:
            print(f"Warning: {balance.error}")
    elif args.command == "totals":
        _print_totals(await BalanceApi(client).get_total_balance())
    elif args.command == "overview":
        service = DashboardService(
            balances=BalanceApi(client),
            tokens=TokenApi(client, resilient),
            transactions=TransactionApi(client),
            categories=CategoryApi(client),
        )
        snapshot = await service.load_overview()
        print(
            f"Tokens: {len(snapshot.tokens)}  Transactions: {len(snapshot.transactions)}"
            f"  Categories: {len(snapshot.categories)}  Users: {len(snapshot.users)}"
        )
        if snapshot.totals is not None:
            _print_totals(snapshot.totals)
        for name, error in snapshot.errors.items():
            print(f"{name}: {user_message(error)}")
    elif args.command == "graph-stats":
        stats = await TokenApi(client, resilient).get_graph_stats()
        print(f"Tokens:           {stats.total_tokens}")
        print(f"With graph data:  {stats.tokens_with_graph_data}")
        print(f"Cron enabled:     {stats.cron_enabled_tokens}")
        print(f"Last updated:     {stats.last_updated or '-'}")
    elif args.command == "graph":
        points = await TokenApi(client, resilient).get_graph(args.token_id, args.period)
        print(f"{len(points)} points, change {price_change_percent(points):+.2f}%")
        if points:
            print(f"Last price: ${points[-1].price:,.6f} at {points[-1].timestamp}")
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except ApiError as e:
        print(f"Error: {user_message(e)}", file=sys.stderr)
        sys.exit(2)
