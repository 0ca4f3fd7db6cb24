"""Wallet keypair — an in-memory Ed25519 signing capability."""

from __future__ import annotations

import base64

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from token_e2e.crypto.hashing import blake2b256, transaction_signing_digest
from token_e2e.errors import KeypairError

# Signature scheme flag for Ed25519 in addresses and serialized signatures.
ED25519_FLAG = 0x00
SECRET_KEY_LENGTH = 32


class Ed25519Keypair:
    """Holds the run's signing key and its derived IOTA address.

    The address is ``0x`` + hex(blake2b-256(flag || public key)) and never
    changes for the lifetime of the object. Nothing is written to disk.
    """

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self._public_key = private_key.public_key()
        self._public_bytes = self._public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self._address = self._compute_address()

    @classmethod
    def generate(cls) -> Ed25519Keypair:
        """Generate a new random keypair."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_secret_key(cls, secret: bytes) -> Ed25519Keypair:
        """Load a keypair from a raw 32-byte Ed25519 secret."""
        if len(secret) != SECRET_KEY_LENGTH:
            msg = f"Wrong secret key size. Expected {SECRET_KEY_LENGTH} bytes, got {len(secret)}."
            raise KeypairError(msg)
        return cls(Ed25519PrivateKey.from_private_bytes(secret))

    @classmethod
    def from_hex(cls, private_key_hex: str) -> Ed25519Keypair:
        """Load a keypair from a hex secret, with or without ``0x``."""
        hex_str = private_key_hex.strip()
        if hex_str.startswith(("0x", "0X")):
            hex_str = hex_str[2:]
        try:
            secret = bytes.fromhex(hex_str)
        except ValueError as exc:
            raise KeypairError("Private key is not valid hex") from exc
        return cls.from_secret_key(secret)

    @property
    def address(self) -> str:
        """The IOTA address owned by this keypair."""
        return self._address

    @property
    def public_key(self) -> Ed25519PublicKey:
        return self._public_key

    @property
    def public_key_bytes(self) -> bytes:
        return self._public_bytes

    def to_iota_address(self) -> str:
        return self._address

    def export_secret_hex(self) -> str:
        """Hex of the raw secret, for handing a generated wallet to an operator."""
        raw = self._private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return "0x" + raw.hex()

    def sign(self, data: bytes) -> bytes:
        """Sign raw bytes."""
        return self._private_key.sign(data)

    def verify(self, signature: bytes, data: bytes) -> bool:
        """Verify a signature against data using this keypair's public key."""
        try:
            self._public_key.verify(signature, data)
            return True
        except InvalidSignature:
            return False

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Produce the base64 serialized signature the node expects.

        Layout is ``flag || signature || public key`` over the intent digest.
        """
        signature = self.sign(transaction_signing_digest(tx_bytes))
        serialized = bytes([ED25519_FLAG]) + signature + self._public_bytes
        return base64.b64encode(serialized).decode()

    def __repr__(self) -> str:
        return f"Ed25519Keypair(address={self._address!r})"

    def _compute_address(self) -> str:
        return "0x" + blake2b256(bytes([ED25519_FLAG]) + self._public_bytes).hex()


def get_or_create_keypair(private_key_hex: str | None) -> Ed25519Keypair:
    """Load the supplied key, or generate a fresh wallet when none is given."""
    if private_key_hex:
        return Ed25519Keypair.from_hex(private_key_hex)
    return Ed25519Keypair.generate()
