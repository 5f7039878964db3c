"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Offline verification of server-issued signatures.

The server signs with RSA-SHA256 (PKCS#1 v1.5) and returns the signature as
base64. ``data`` must be byte-for-byte what the server signed; the verifier
does not reconstruct payloads.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..models import KeySetEntry, PublicKeySet
from .provider import CryptoProvider, default_crypto_provider

logger = logging.getLogger("unilic.crypto")

KeySetInput = PublicKeySet | Mapping[str, Any] | Iterable[KeySetEntry | Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class KeySetVerification:
    """Outcome of a rotation-aware verification."""

    valid: bool
    kid: str | None = None


def _as_bytes(data: str | bytes) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


def _decode_signature(signature: str) -> bytes | None:
    try:
        return base64.b64decode("".join(signature.split()), validate=True)
    except (binascii.Error, ValueError):
        return None


def normalize_key_set(key_set: KeySetInput) -> list[KeySetEntry]:
    """Flatten any accepted keyset shape into entries in server order."""
    if isinstance(key_set, PublicKeySet):
        return key_set.entries()
    if isinstance(key_set, Mapping):
        return PublicKeySet.model_validate(key_set).entries()
    return [
        item if isinstance(item, KeySetEntry) else KeySetEntry.model_validate(item)
        for item in key_set
    ]


class SignatureVerifier:
    """
    Verify signatures against a single key or a rotated keyset.

    Args:
        provider: Crypto primitives; defaults to the process-wide provider.
    """

    def __init__(self, provider: CryptoProvider | None = None) -> None:
        self._provider = provider or default_crypto_provider()

    @property
    def provider(self) -> CryptoProvider:
        return self._provider

    def verify(self, data: str | bytes, signature: str, public_key: str) -> bool:
        """
        Return whether ``signature`` is valid for ``data`` under ``public_key``.

        Raises:
            ValueError: ``public_key`` is malformed.
        """
        raw_signature = _decode_signature(signature)
        if raw_signature is None:
            logger.debug("Signature is not valid base64")
            return False
        return self._provider.verify(_as_bytes(data), raw_signature, public_key)

    def verify_with_key_set(
        self,
        data: str | bytes,
        signature: str,
        key_set: KeySetInput,
        kid: str | None = None,
    ) -> KeySetVerification:
        """
        Try keys in listed order until one verifies.

        With ``kid`` only the matching entry is tried. The returned ``kid``
        names the key that verified.
        """
        entries = normalize_key_set(key_set)
        if kid is not None:
            entries = [entry for entry in entries if entry.kid == kid]

        for entry in entries:
            if self.verify(data, signature, entry.public_key):
                return KeySetVerification(valid=True, kid=entry.kid)
        return KeySetVerification(valid=False)


def verify_signature(data: str | bytes, signature: str, public_key: str) -> bool:
    return SignatureVerifier().verify(data, signature, public_key)


def verify_signature_with_key_set(
    data: str | bytes,
    signature: str,
    key_set: KeySetInput,
    kid: str | None = None,
) -> KeySetVerification:
    return SignatureVerifier().verify_with_key_set(data, signature, key_set, kid)
