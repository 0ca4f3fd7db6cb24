"""Tests for the wallet keypair and signing digests."""

import base64
import hashlib

import pytest

from token_e2e.crypto import (
    Ed25519Keypair,
    blake2b256,
    get_or_create_keypair,
    transaction_signing_digest,
)
from token_e2e.errors import KeypairError


class TestEd25519Keypair:
    def test_generate(self) -> None:
        kp = Ed25519Keypair.generate()
        assert kp.address.startswith("0x")
        assert len(kp.address) == 66
        assert len(kp.public_key_bytes) == 32

    def test_address_is_blake2b_of_flag_and_pubkey(self, keypair) -> None:
        expected = hashlib.blake2b(b"\x00" + keypair.public_key_bytes, digest_size=32).hexdigest()
        assert keypair.address == "0x" + expected
        assert keypair.to_iota_address() == keypair.address

    def test_unique_keypairs(self) -> None:
        assert Ed25519Keypair.generate().address != Ed25519Keypair.generate().address

    def test_from_hex_with_and_without_prefix(self) -> None:
        hex_key = "deadbeef" * 8
        a = Ed25519Keypair.from_hex(hex_key)
        b = Ed25519Keypair.from_hex("0x" + hex_key)
        assert a.address == b.address

    def test_export_round_trips(self, keypair) -> None:
        again = Ed25519Keypair.from_hex(keypair.export_secret_hex())
        assert again.address == keypair.address

    def test_wrong_length_rejected(self) -> None:
        with pytest.raises(KeypairError, match="Expected 32 bytes"):
            Ed25519Keypair.from_hex("deadbeef")

    def test_non_hex_rejected(self) -> None:
        with pytest.raises(KeypairError, match="not valid hex"):
            Ed25519Keypair.from_hex("zz" * 32)

    def test_sign_and_verify(self, keypair) -> None:
        sig = keypair.sign(b"payload")
        assert keypair.verify(sig, b"payload")
        assert not keypair.verify(sig, b"other")

    def test_sign_transaction_layout(self, keypair) -> None:
        tx_bytes = b"\x01\x02\x03"
        raw = base64.b64decode(keypair.sign_transaction(tx_bytes))
        assert len(raw) == 1 + 64 + 32
        assert raw[0] == 0
        assert raw[65:] == keypair.public_key_bytes
        assert keypair.verify(raw[1:65], transaction_signing_digest(tx_bytes))

    def test_repr_hides_secret(self, keypair) -> None:
        assert keypair.export_secret_hex()[2:] not in repr(keypair)


class TestGetOrCreateKeypair:
    def test_generates_when_unset(self) -> None:
        assert get_or_create_keypair(None).address.startswith("0x")

    def test_generates_when_empty(self) -> None:
        assert get_or_create_keypair("").address.startswith("0x")

    def test_loads_when_set(self) -> None:
        hex_key = "deadbeef" * 8
        assert get_or_create_keypair(hex_key).address == Ed25519Keypair.from_hex(hex_key).address


class TestHashing:
    def test_blake2b256_length(self) -> None:
        assert len(blake2b256("abc")) == 32
        assert blake2b256("abc") == blake2b256(b"abc")

    def test_signing_digest_has_intent_prefix(self) -> None:
        assert transaction_signing_digest(b"tx") == blake2b256(b"\x00\x00\x00tx")
