"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: crypto/__init__.py.
"""

from .provider import (
    CryptoProvider,
    CryptographyProvider,
    default_crypto_provider,
    load_rsa_public_key,
)
from .signature import (
    KeySetVerification,
    SignatureVerifier,
    normalize_key_set,
    verify_signature,
    verify_signature_with_key_set,
)

__all__ = [
    "CryptoProvider",
    "CryptographyProvider",
    "default_crypto_provider",
    "load_rsa_public_key",
    "KeySetVerification",
    "SignatureVerifier",
    "normalize_key_set",
    "verify_signature",
    "verify_signature_with_key_set",
]
