"""Cryptographic utilities — wallet keypair, address and signing digests."""

from token_e2e.crypto.hashing import blake2b256, transaction_signing_digest
from token_e2e.crypto.keypair import Ed25519Keypair, get_or_create_keypair

__all__ = [
    "Ed25519Keypair",
    "blake2b256",
    "get_or_create_keypair",
    "transaction_signing_digest",
]
