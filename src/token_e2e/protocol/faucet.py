"""Faucet funding with exponential backoff and an HTTP fallback.

The faucet is shared and rate limited. The faucet protocol request is
retried with exponential backoff (2 s, 4 s, 8 s, ...); once the budget is
spent a plain ``POST /gas`` is tried as a last resort. If that fails too,
the faucet protocol's last error is what the caller sees.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from token_e2e.errors import FaucetRateLimitError, FaucetRequestError, FundingError
from token_e2e.models.funding import FundingOutcome, FundingSource
from token_e2e.observability import get_logger

logger = get_logger("faucet")

GAS_PATH = "/gas"
FALLBACK_TIMEOUT_SECONDS = 30.0
REQUEST_TIMEOUT_SECONDS = 30.0
BACKOFF_BASE_SECONDS = 2.0

Sleep = Callable[[float], Awaitable[None]]


def gas_request_body(recipient: str) -> dict[str, Any]:
    return {"FixedAmountRequest": {"recipient": recipient}}


async def request_gas(
    faucet_url: str,
    recipient: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Faucet protocol request for ``recipient``.

    Unlike the raw fallback, the response body is inspected: a populated
    ``error`` field is a failure even on a 2xx.

    Raises:
        FaucetRateLimitError: The faucet answered 429.
        FaucetRequestError: Any other failure.
    """
    url = f"{faucet_url.rstrip('/')}{GAS_PATH}"
    try:
        if http_client is None:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
                response = await client.post(url, json=gas_request_body(recipient))
        else:
            response = await http_client.post(url, json=gas_request_body(recipient))
    except httpx.HTTPError as exc:
        raise FaucetRequestError(f"Faucet request failed: {exc}") from exc

    if response.status_code == 429:
        raise FaucetRateLimitError()
    if response.is_error:
        raise FaucetRequestError(
            f"Faucet request failed with status {response.status_code}",
            status_code=response.status_code,
        )

    try:
        body = response.json()
    except ValueError as exc:
        raise FaucetRequestError("Faucet returned a non-JSON response") from exc
    if not isinstance(body, dict):
        raise FaucetRequestError("Faucet returned an unexpected response")
    if body.get("error"):
        raise FaucetRequestError(str(body["error"]), status_code=response.status_code)
    return body


async def request_gas_http(
    faucet_url: str,
    recipient: str,
    *,
    http_client: httpx.AsyncClient | None = None,
    timeout: float = FALLBACK_TIMEOUT_SECONDS,
) -> None:
    """Best-effort raw ``POST {faucet_url}/gas``; any 2xx counts as success."""
    url = f"{faucet_url.rstrip('/')}{GAS_PATH}"
    if http_client is None:
        async with httpx.AsyncClient() as client:
            response = await client.post(url, json=gas_request_body(recipient), timeout=timeout)
    else:
        response = await http_client.post(url, json=gas_request_body(recipient), timeout=timeout)
    if response.is_error:
        raise FaucetRequestError(
            f"Faucet HTTP fallback returned {response.status_code}",
            status_code=response.status_code,
        )


def _log_retry(address: str) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "faucet_attempt_failed",
            address=address,
            attempt=state.attempt_number,
            wait_seconds=state.next_action.sleep if state.next_action else None,
            error=str(exc),
        )

    return before_sleep


async def fund_from_faucet(
    faucet_url: str,
    address: str,
    max_retries: int = 3,
    *,
    http_client: httpx.AsyncClient | None = None,
    sleep: Sleep = asyncio.sleep,
) -> FundingOutcome:
    """Get test currency deposited into ``address``.

    Args:
        faucet_url: Faucet base URL.
        address: Recipient address.
        max_retries: Faucet protocol attempts before falling back (>= 1).
        http_client: Optional shared HTTP client for both paths.
        sleep: Backoff sleep; injectable so tests do not wait.

    Returns:
        FundingOutcome naming the path that succeeded.

    Raises:
        FundingError: Both paths failed. Its message and ``cause`` are the
            faucet protocol's last error, never the fallback's.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be >= 1, got {max_retries}")

    attempts = 0
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=BACKOFF_BASE_SECONDS, exp_base=2),
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_retry(address),
        sleep=sleep,
        reraise=True,
    )
    try:
        async for attempt in retrying:
            with attempt:
                attempts = attempt.retry_state.attempt_number
                await request_gas(faucet_url, address, http_client=http_client)
    except Exception as primary_error:
        logger.warning(
            "faucet_retries_exhausted",
            address=address,
            attempts=attempts,
            error=str(primary_error),
        )
        try:
            await request_gas_http(faucet_url, address, http_client=http_client)
        except Exception as fallback_error:
            logger.error(
                "faucet_fallback_failed",
                address=address,
                fallback_error=str(fallback_error),
            )
            raise FundingError(primary_error, address=address) from primary_error

        logger.info("faucet_fallback_succeeded", address=address)
        return FundingOutcome(
            address=address,
            source=FundingSource.HTTP_FALLBACK,
            attempts=attempts,
            primary_error=str(primary_error),
        )

    logger.info("faucet_funded", address=address, attempts=attempts)
    return FundingOutcome(address=address, source=FundingSource.FAUCET, attempts=attempts)
