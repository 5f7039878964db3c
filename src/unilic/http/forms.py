"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Multipart/form-data encoding for upload endpoints.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FormFile:
    """One file part of a multipart body."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def encode_multipart(
    fields: Mapping[str, str | int | float] | None = None,
    files: Mapping[str, FormFile] | None = None,
    *,
    boundary: str | None = None,
) -> tuple[bytes, str]:
    """Return ``(body, content_type)`` for the given form fields and files."""
    boundary = boundary or f"unilic-{uuid.uuid4().hex}"
    dash = f"--{boundary}".encode("ascii")
    chunks: list[bytes] = []

    for name, value in (fields or {}).items():
        chunks.append(dash)
        chunks.append(
            f'Content-Disposition: form-data; name="{_quote(name)}"'.encode("utf-8")
        )
        chunks.append(b"")
        chunks.append(str(value).encode("utf-8"))

    for name, part in (files or {}).items():
        chunks.append(dash)
        chunks.append(
            (
                f'Content-Disposition: form-data; name="{_quote(name)}"; '
                f'filename="{_quote(part.filename)}"'
            ).encode("utf-8")
        )
        chunks.append(f"Content-Type: {part.content_type}".encode("ascii"))
        chunks.append(b"")
        chunks.append(part.content)

    chunks.append(dash + b"--")
    chunks.append(b"")
    return b"\r\n".join(chunks), f"multipart/form-data; boundary={boundary}"
