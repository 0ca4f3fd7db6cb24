"""Hashing helpers for IOTA addresses and transaction signing."""

from __future__ import annotations

import hashlib

# Intent scope TransactionData, version V0, app id IOTA.
TRANSACTION_INTENT = bytes([0, 0, 0])


def blake2b256(data: str | bytes) -> bytes:
    """Compute the 32-byte BLAKE2b digest used throughout the ledger."""
    if isinstance(data, str):
        data = data.encode()
    return hashlib.blake2b(data, digest_size=32).digest()


def transaction_signing_digest(tx_bytes: bytes) -> bytes:
    """Digest that is actually signed for a serialized transaction.

    Args:
        tx_bytes: BCS-encoded TransactionData as returned by the node.

    Returns:
        blake2b-256 of the intent prefix followed by the transaction bytes.
    """
    return blake2b256(TRANSACTION_INTENT + tx_bytes)
