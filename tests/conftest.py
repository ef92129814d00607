"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from degn_dashboard.config import ApiConfig, AppConfig, RetryConfig, SessionConfig
from degn_dashboard.models import CanonicalBalance, TokenAccount


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_api_config() -> ApiConfig:
    return ApiConfig(
        base_url="https://api.example.com/api/v1",
        timeout=5,
        auth_token="tok-123",
    )


@pytest.fixture()
def sample_app_config(sample_api_config: ApiConfig) -> AppConfig:
    return AppConfig(
        api=sample_api_config,
        retry=RetryConfig(max_retries=2, base_delay_ms=300),
        session=SessionConfig(auth_cooldown_ms=1000),
    )


SAMPLE_YAML = textwrap.dedent("""\
    api:
      base_url: https://api.example.com/api/v1/
      timeout: 10
      auth_token: "tok-abc"
    retry:
      max_retries: 3
      base_delay_ms: 200
    session:
      auth_cooldown_ms: 1500
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Envelope fixtures
# ---------------------------------------------------------------------------

BALANCE_RECORD = {
    "totalBalance": "123.45",
    "cashBalance": "100.00",
    "totalHoldingBalance": "23.45",
    "allTimeProfit": "-4.5",
    "tokenAccounts": [
        {"symbol": "SOL", "balance": "2", "valueInUSD": "40", "mintAddress": "So111"},
    ],
}


@pytest.fixture()
def balance_record() -> dict:
    return dict(BALANCE_RECORD)


@pytest.fixture(
    params=["body.data.balance", "body.balance", "data.balance", "data", "raw"]
)
def balance_envelope(request: pytest.FixtureRequest) -> dict:
    """One balance record wrapped in each envelope shape the backend emits."""
    record = dict(BALANCE_RECORD)
    return {
        "body.data.balance": {"body": {"data": {"balance": record}}},
        "body.balance": {"status": {"code": 200}, "body": {"balance": record}},
        "data.balance": {"success": True, "data": {"balance": record}},
        "data": {"success": True, "data": record},
        "raw": record,
    }[request.param]


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def alice() -> CanonicalBalance:
    return CanonicalBalance(
        total_balance=150.0,
        cash_balance=50.0,
        total_holding_balance=100.0,
        all_time_profit=12.0,
        holdings=(
            TokenAccount(symbol="SOL", balance=10.0, value_in_usd=100.0, mint_address="So111"),
        ),
    )


@pytest.fixture()
def bob() -> CanonicalBalance:
    return CanonicalBalance(
        total_balance=80.0,
        cash_balance=30.0,
        total_holding_balance=50.0,
        holdings=(
            TokenAccount(symbol="SOL", balance=5.0, value_in_usd=50.0, mint_address="So111"),
            TokenAccount(symbol="BONK", balance=0.0, value_in_usd=0.0, mint_address="Dez"),
        ),
        error="price feed unavailable",
    )


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
