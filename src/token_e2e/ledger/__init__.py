"""Ledger access — transaction builder and node client."""

from token_e2e.ledger.client import IotaRpcClient, LedgerClient, Signer
from token_e2e.ledger.transaction import (
    PublishCommand,
    Result,
    Transaction,
    TransferObjectsCommand,
)
from token_e2e.ledger.types import Balance, ExecuteOptions, ExecutionResult

__all__ = [
    "Balance",
    "ExecuteOptions",
    "ExecutionResult",
    "IotaRpcClient",
    "LedgerClient",
    "PublishCommand",
    "Result",
    "Signer",
    "Transaction",
    "TransferObjectsCommand",
]
