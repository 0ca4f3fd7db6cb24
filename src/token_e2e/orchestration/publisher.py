"""Publish compiled packages and wait for finality.

A publish is attempted at most twice. Only a timeout earns the second
attempt, and that attempt builds a brand-new Transaction; deterministic
failures (insufficient gas, invalid bytecode) are raised straight away.
"""

from __future__ import annotations

import asyncio

import httpx

from token_e2e.crypto.keypair import Ed25519Keypair
from token_e2e.errors import PublishError, PublishTimeoutError
from token_e2e.ledger.client import LedgerClient
from token_e2e.ledger.transaction import Transaction
from token_e2e.ledger.types import ExecuteOptions
from token_e2e.models.package import CompiledPackage
from token_e2e.observability import get_logger

logger = get_logger("publisher")

PUBLISH_TIMEOUT_SECONDS = 60.0
PUBLISH_OPTIONS = ExecuteOptions(show_effects=True, show_object_changes=True)


def get_explorer_url(explorer_base: str, digest: str) -> str:
    """Explorer link for a transaction digest."""
    return f"{explorer_base.rstrip('/')}/txblock/{digest}"


def is_timeout_error(exc: BaseException) -> bool:
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        return True
    return "timed out" in str(exc).lower()


def describe_error(exc: BaseException) -> str:
    """Message for ``exc``, never empty (httpx timeouts often stringify to "")."""
    message = str(exc)
    if message:
        return message
    if is_timeout_error(exc):
        return "Transaction timed out"
    return type(exc).__name__


def build_publish_transaction(compiled: CompiledPackage, address: str) -> Transaction:
    """Publish ``compiled`` and keep its upgrade capability at ``address``."""
    tx = Transaction()
    tx.set_sender(address)
    upgrade_cap = tx.publish(
        modules=list(compiled.modules),
        dependencies=list(compiled.dependencies),
    )
    tx.transfer_objects([upgrade_cap], address)
    return tx


async def execute_publish(
    client: LedgerClient,
    keypair: Ed25519Keypair,
    compiled: CompiledPackage,
    *,
    timeout: float = PUBLISH_TIMEOUT_SECONDS,
) -> str:
    """One publish attempt: build, sign, submit, wait for finality.

    The submission races a ``timeout`` timer. Losing the race cancels the
    submission, so a late result can never be mistaken for a later attempt.

    Raises:
        PublishTimeoutError: Submission did not complete within ``timeout``.
    """
    address = keypair.address
    tx = build_publish_transaction(compiled, address)

    try:
        result = await asyncio.wait_for(
            client.sign_and_execute_transaction(
                transaction=tx,
                signer=keypair,
                options=PUBLISH_OPTIONS,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        raise PublishTimeoutError(f"Transaction timed out after {timeout:g}s") from exc

    await client.wait_for_transaction(digest=result.digest)
    return result.digest


async def publish_package(
    client: LedgerClient,
    keypair: Ed25519Keypair,
    compiled: CompiledPackage,
    *,
    timeout: float = PUBLISH_TIMEOUT_SECONDS,
) -> str:
    """Publish ``compiled`` and return the finalized transaction digest.

    Raises:
        PublishError: The ledger rejected the publish, or the single
            timeout-triggered retry failed too. A ``PublishError`` from the
            ledger client is raised as-is; anything else is wrapped with the
            same message and chained as ``__cause__``.
    """
    log = logger.bind(package=compiled.package_name, sender=keypair.address)
    try:
        digest = await execute_publish(client, keypair, compiled, timeout=timeout)
    except Exception as exc:
        if not is_timeout_error(exc):
            log.warning("publish_failed", error=describe_error(exc))
            raise _as_publish_error(exc)
        log.warning("publish_timeout_retry", error=describe_error(exc))
        try:
            digest = await execute_publish(client, keypair, compiled, timeout=timeout)
        except Exception as retry_exc:
            log.warning("publish_retry_failed", error=describe_error(retry_exc))
            raise _as_publish_error(retry_exc)

    log.info("package_published", digest=digest)
    return digest


def _as_publish_error(exc: Exception) -> PublishError:
    if isinstance(exc, PublishError) and str(exc):
        return exc
    error = PublishError(describe_error(exc))
    error.__cause__ = exc
    return error
