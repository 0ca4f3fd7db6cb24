"""Wait for faucet funds to become visible on the ledger."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from token_e2e.errors import BalanceTimeoutError
from token_e2e.ledger.client import LedgerClient
from token_e2e.observability import get_logger

logger = get_logger("balance")


async def wait_for_balance(
    client: LedgerClient,
    address: str,
    max_retries: int = 10,
    interval_ms: int = 3000,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    """Poll ``address`` until its balance is strictly positive.

    Settlement time after a faucet deposit is roughly constant, so the
    interval is fixed. At most ``max_retries`` polls are made, with no
    sleep after the last one.

    Returns:
        The first positive balance observed.

    Raises:
        BalanceTimeoutError: Every poll reported zero.
    """
    for attempt in range(1, max_retries + 1):
        balance = await client.get_balance(owner=address)
        total = int(balance.total_balance)
        logger.debug("balance_poll", address=address, attempt=attempt, total_balance=str(total))
        if total > 0:
            logger.info("balance_confirmed", address=address, total_balance=str(total), polls=attempt)
            return total
        if attempt < max_retries:
            await sleep(interval_ms / 1000)

    raise BalanceTimeoutError(address, max_retries * interval_ms / 1000, max_retries)
