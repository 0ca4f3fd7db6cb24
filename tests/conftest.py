"""Shared fixtures: recorded sleeps, sample specs and packages, fake ledger."""

from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest

from token_e2e.crypto import Ed25519Keypair
from token_e2e.ledger import Balance, ExecutionResult
from token_e2e.models import CoinType, CompiledPackage, TokenSpec

DEP_ONE = "0x0000000000000000000000000000000000000000000000000000000000000001"


@pytest.fixture
def no_sleep():
    """Async sleep replacement; requested delays land in ``no_sleep.delays``."""
    delays: list[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep


@pytest.fixture
def token_spec() -> TokenSpec:
    return TokenSpec(
        coin_type=CoinType.SIMPLE,
        name="Test Token",
        symbol="TTK",
        decimals=6,
        description="A test token",
        icon_url="",
        total_supply="1000000",
        max_supply=None,
    )


@pytest.fixture
def compiled_package() -> CompiledPackage:
    return CompiledPackage(
        modules=("AQID",),
        dependencies=(DEP_ONE,),
        digest=(1, 2, 3),
        package_name="test_token",
    )


@pytest.fixture
def keypair() -> Ed25519Keypair:
    return Ed25519Keypair.from_secret_key(bytes(range(32)))


def _make_ledger(
    balances: list[int | str] | None = None,
    submissions: list[ExecutionResult | BaseException] | None = None,
) -> Mock:
    """Mock ledger client whose coroutines replay the given outcomes."""
    client = Mock()
    client.get_balance = AsyncMock(
        side_effect=[Balance(total_balance=b) for b in (balances or ["1000"])],
    )
    client.sign_and_execute_transaction = AsyncMock(
        side_effect=submissions or [ExecutionResult(digest="0xdigest123")],
    )
    client.wait_for_transaction = AsyncMock(return_value=None)
    return client


@pytest.fixture
def make_ledger():
    return _make_ledger
