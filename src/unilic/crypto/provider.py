"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Crypto capability interface.

The rest of the SDK only calls ``digest`` and ``verify``; the concrete
primitive set is resolved once per process by ``default_crypto_provider``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
from functools import lru_cache
from typing import Protocol, runtime_checkable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

_PEM_HEADER = "-----BEGIN"


@runtime_checkable
class CryptoProvider(Protocol):
    """Hashing and RSA verification primitives."""

    name: str

    def digest(self, data: bytes) -> str: ...

    def verify(self, data: bytes, signature: bytes, public_key: str) -> bool: ...


def load_rsa_public_key(public_key: str) -> rsa.RSAPublicKey:
    """
    Load an RSA public key from PEM or bare base64 SubjectPublicKeyInfo.

    Raises:
        ValueError: Key material cannot be decoded or is not RSA.
    """
    text = public_key.strip()
    if not text:
        raise ValueError("Public key is empty")
    if _PEM_HEADER in text:
        key = serialization.load_pem_public_key(text.encode("ascii"))
    else:
        try:
            der = base64.b64decode("".join(text.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Public key is neither PEM nor base64 DER") from exc
        key = serialization.load_der_public_key(der)
    if not isinstance(key, rsa.RSAPublicKey):
        raise ValueError("Public key is not an RSA key")
    return key


class CryptographyProvider:
    """Provider backed by the ``cryptography`` package."""

    name = "cryptography"

    def digest(self, data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()

    def verify(self, data: bytes, signature: bytes, public_key: str) -> bool:
        """RSASSA-PKCS1-v1_5 with SHA-256; ``False`` on mismatch."""
        key = load_rsa_public_key(public_key)
        try:
            key.verify(signature, data, padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            return False
        return True


@lru_cache(maxsize=1)
def default_crypto_provider() -> CryptoProvider:
    return CryptographyProvider()
