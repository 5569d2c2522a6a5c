#!/usr/bin/env python3
"""Tests for encrypted request parameters."""
import base64
import json
import sys
from urllib.parse import unquote

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.phpipam.api.crypto import KEY_SIZE, derive_key, encrypt_request


def decrypt(encoded: str, key: str) -> str:
    ciphertext = base64.b64decode(unquote(encoded))
    decryptor = Cipher(algorithms.AES(derive_key(key)), modes.ECB()).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")


class TestDeriveKey:
    def test_short_key_is_zero_padded(self):
        key = derive_key("abc")
        assert len(key) == KEY_SIZE
        assert key.startswith(b"abc")
        assert key[3:] == b"\0" * (KEY_SIZE - 3)

    def test_long_key_is_truncated(self):
        assert derive_key("x" * 40) == b"x" * KEY_SIZE


class TestEncryptRequest:
    """encrypt_request output properties."""

    def test_round_trips_with_same_key(self):
        params = {"controller": "sections", "id": "3"}
        encoded = encrypt_request(params, "app-code")
        assert json.loads(decrypt(encoded, "app-code")) == params

    def test_compact_json(self):
        encoded = encrypt_request({"controller": "sections"}, "app-code")
        assert decrypt(encoded, "app-code") == '{"controller":"sections"}'

    def test_deterministic(self):
        params = {"controller": "subnets", "id": "cidr", "id2": "10.0.0.0/24"}
        assert encrypt_request(params, "k") == encrypt_request(params, "k")

    def test_key_changes_ciphertext(self):
        params = {"controller": "sections"}
        assert encrypt_request(params, "key-one") != encrypt_request(params, "key-two")

    def test_url_safe(self):
        """Base64 characters that are special in query strings are escaped."""
        encoded = encrypt_request({"controller": "addresses", "hostname": "x" * 200}, "k")
        for char in "+/=":
            assert char not in encoded

    def test_accepts_pre_serialized_string(self):
        encoded = encrypt_request('{"controller":"user"}', "k")
        assert decrypt(encoded, "k") == '{"controller":"user"}'
