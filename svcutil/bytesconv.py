"""Lossless conversion between text and bytes."""

from __future__ import annotations

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def string_to_bytes(s: str) -> bytes:
    """Encode ``s`` as UTF-8, keeping any escaped raw bytes as they were."""
    return s.encode(_ENCODING, _ERRORS)


def bytes_to_string(b: bytes) -> str:
    """Decode ``b`` as UTF-8; bytes that are not valid UTF-8 survive a round trip."""
    return bytes(b).decode(_ENCODING, _ERRORS)