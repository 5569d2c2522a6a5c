"""Request encryption for phpIPAM's encrypted ("crypt") API mode.

In crypt mode every request is a GET whose single ``enc_request`` query
parameter carries the JSON request parameters, encrypted with the app code.

Compatibility gap:
    phpIPAM encrypts with mcrypt RIJNDAEL_256 in ECB mode, i.e. Rijndael
    with a 256-bit *block*. AES is Rijndael with a 128-bit block and is the
    only variant the ``cryptography`` library ships. This module uses
    AES-256-ECB with PKCS7 padding, the closest standard substitute. Its
    output is NOT bit-compatible with a server decrypting Rijndael-256,
    which is why encrypted transport is opt-in (PHPIPAM_ENCRYPT_REQUESTS).
"""
import base64
import json
from typing import Any, Union
from urllib.parse import quote

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

KEY_SIZE = 32  # AES-256
BLOCK_SIZE_BITS = 128

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


def derive_key(key: str) -> bytes:
    """Zero-pad or truncate the app code to the cipher key length."""
    return key.encode("utf-8")[:KEY_SIZE].ljust(KEY_SIZE, b"\0")


def encrypt_request(payload: Union[dict[str, Any], str], key: str) -> str:
    """Encrypt request parameters for embedding in a query string.

    Args:
        payload: Parameter object (JSON-serialized here) or a pre-serialized string
        key: The credential used as encryption key

    Returns:
        Percent-encoded base64 ciphertext. Deterministic for a given input.
    """
    if not isinstance(payload, str):
        payload = json.dumps(payload, separators=(",", ":"))

    padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
    padded = padder.update(payload.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(derive_key(key)), modes.ECB()).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return quote(base64.b64encode(ciphertext).decode("ascii"), safe=_URI_COMPONENT_SAFE)
