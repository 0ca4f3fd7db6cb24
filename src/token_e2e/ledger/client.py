"""Ledger client capability and its JSON-RPC implementation.

The core operations only depend on ``LedgerClient``; any object with these
three coroutines can be injected (tests use in-memory fakes).
``IotaRpcClient`` talks to an IOTA full node over JSON-RPC 2.0.
"""

from __future__ import annotations

import asyncio
import base64
import itertools
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any, Protocol, runtime_checkable

import httpx

from token_e2e.errors import (
    LedgerRpcError,
    PublishTimeoutError,
    TransactionRejectedError,
    UnsupportedTransactionError,
)
from token_e2e.ledger.transaction import Transaction
from token_e2e.ledger.types import Balance, ExecuteOptions, ExecutionResult
from token_e2e.observability import get_logger

logger = get_logger("ledger")

DEFAULT_GAS_BUDGET = 500_000_000
DEFAULT_RPC_TIMEOUT_SECONDS = 30.0
# Submission calls outlive the publish race so the caller's timer fires first.
SUBMIT_TIMEOUT_MARGIN_SECONDS = 10.0
# Lets the node return only after the effects are applied locally.
REQUEST_TYPE = "WaitForLocalExecution"

Sleep = Callable[[float], Awaitable[None]]


@runtime_checkable
class Signer(Protocol):
    """Anything that can sign transaction bytes for an address."""

    @property
    def address(self) -> str: ...

    def sign_transaction(self, tx_bytes: bytes) -> str: ...


@runtime_checkable
class LedgerClient(Protocol):
    """The opaque ledger capability the core operations are given."""

    async def get_balance(self, *, owner: str) -> Balance: ...

    async def sign_and_execute_transaction(
        self,
        *,
        transaction: Transaction,
        signer: Signer,
        options: ExecuteOptions | None = None,
    ) -> ExecutionResult: ...

    async def wait_for_transaction(self, *, digest: str) -> None: ...


class IotaRpcClient:
    """JSON-RPC client for an IOTA full node.

    Publishes are serialized by the node (``unsafe_publish``), signed
    locally, then executed. Only the publish-and-keep-upgrade-cap shape the
    publisher builds is accepted.

    Example:
        >>> async with IotaRpcClient("https://api.testnet.iota.cafe") as client:
        ...     balance = await client.get_balance(owner="0x...")
    """

    def __init__(
        self,
        url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        gas_budget: int = DEFAULT_GAS_BUDGET,
        wait_timeout: float = 60.0,
        poll_interval: float = 2.0,
        submit_timeout: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.url = url
        self.gas_budget = gas_budget
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval
        self.submit_timeout = (
            submit_timeout if submit_timeout is not None else wait_timeout + SUBMIT_TIMEOUT_MARGIN_SECONDS
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=DEFAULT_RPC_TIMEOUT_SECONDS)
        self._sleep = sleep
        self._ids = itertools.count(1)

    async def __aenter__(self) -> IotaRpcClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def get_balance(self, *, owner: str, coin_type: str | None = None) -> Balance:
        """Total balance of ``owner`` for ``coin_type`` (IOTA by default)."""
        result = await self._call("iotax_getBalance", [owner, coin_type])
        return Balance.model_validate(result)

    async def sign_and_execute_transaction(
        self,
        *,
        transaction: Transaction,
        signer: Signer,
        options: ExecuteOptions | None = None,
    ) -> ExecutionResult:
        """Serialize, sign and execute a publish transaction.

        Raises:
            UnsupportedTransactionError: The command list is not a publish
                whose upgrade capability goes back to the signer.
            TransactionRejectedError: Effects report a failed execution.
            LedgerRpcError: The node was unreachable, answered garbage or
                returned a JSON-RPC error.
        """
        sender = signer.address
        publish = transaction.publish_command()
        if publish is None or not transaction.is_self_custodied_publish(sender):
            msg = f"Only publish transactions keeping the upgrade cap are supported, got {transaction!r}"
            raise UnsupportedTransactionError(msg)

        built = await self._call(
            "unsafe_publish",
            [sender, publish.modules, publish.dependencies, None, str(self.gas_budget)],
            timeout=self.submit_timeout,
        )
        tx_bytes_b64: str = built["txBytes"]
        signature = signer.sign_transaction(base64.b64decode(tx_bytes_b64))

        opts = options or ExecuteOptions()
        raw = await self._call(
            "iota_executeTransactionBlock",
            [tx_bytes_b64, [signature], opts.to_rpc(), REQUEST_TYPE],
            timeout=self.submit_timeout,
        )
        result = ExecutionResult.model_validate(raw)
        if result.status == "failure":
            raise TransactionRejectedError(
                result.failure_reason or "Transaction execution failed",
                digest=result.digest,
            )
        logger.debug("transaction_executed", digest=result.digest, sender=sender)
        return result

    async def wait_for_transaction(
        self,
        *,
        digest: str,
        timeout: float | None = None,
        poll_interval: float | None = None,
    ) -> None:
        """Poll until the node knows ``digest`` as executed.

        Lookup misses and transient transport failures are both retried
        until the deadline.

        Raises:
            PublishTimeoutError: Not found before ``timeout`` elapsed.
        """
        deadline_seconds = self.wait_timeout if timeout is None else timeout
        interval = self.poll_interval if poll_interval is None else poll_interval
        loop = asyncio.get_running_loop()
        deadline = loop.time() + deadline_seconds

        while True:
            try:
                await self._call("iota_getTransactionBlock", [digest, {"showEffects": True}])
                return
            except LedgerRpcError as exc:
                logger.debug("transaction_not_found_yet", digest=digest, error=exc.message)
            if loop.time() + interval > deadline:
                raise PublishTimeoutError(
                    f"Timed out waiting for transaction {digest} after {deadline_seconds:g}s",
                    digest=digest,
                )
            await self._sleep(interval)

    async def _call(self, method: str, params: list[Any], *, timeout: float | None = None) -> Any:
        """One JSON-RPC round trip; every failure becomes ``LedgerRpcError``."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        request_options: dict[str, Any] = {} if timeout is None else {"timeout": timeout}
        try:
            response = await self._http.post(self.url, json=payload, **request_options)
        except httpx.TimeoutException as exc:
            raise LedgerRpcError(method, f"Request to {self.url} timed out") from exc
        except httpx.HTTPError as exc:
            reason = str(exc) or type(exc).__name__
            raise LedgerRpcError(method, f"Request to {self.url} failed: {reason}") from exc

        if response.is_error:
            raise LedgerRpcError(method, f"HTTP {response.status_code} from {self.url}")

        try:
            body = response.json()
        except ValueError as exc:
            raise LedgerRpcError(method, f"Non-JSON response from {self.url}") from exc
        if not isinstance(body, dict):
            raise LedgerRpcError(method, f"Unexpected response from {self.url}: not a JSON object")

        error = body.get("error")
        if error:
            if not isinstance(error, dict):
                raise LedgerRpcError(method, str(error))
            raise LedgerRpcError(
                method,
                str(error.get("message", "Unknown RPC error")),
                code=error.get("code"),
            )
        return body.get("result")
