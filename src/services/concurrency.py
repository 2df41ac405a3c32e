from __future__ import annotations

import base64
import binascii
import os


ROW_VERSION_SIZE = 8


def new_row_version(current: bytes | None = None) -> bytes:
    """Version generator for the ORM: a fresh random token on every write."""

    token = os.urandom(ROW_VERSION_SIZE)
    while token == current:
        token = os.urandom(ROW_VERSION_SIZE)
    return token


def row_versions_equal(presented: bytes | None, stored: bytes | None) -> bool:
    """Byte-for-byte comparison; a missing side never matches."""

    if presented is None or stored is None:
        return False
    if len(presented) != len(stored):
        return False
    return all(a == b for a, b in zip(presented, stored))


def encode_row_version(token: bytes | None) -> str | None:
    if token is None:
        return None
    return base64.b64encode(token).decode("ascii")


def decode_row_version(value: str | None) -> bytes | None:
    """Decode the base64 wire form. Raises ``ValueError`` on malformed input."""

    if value is None:
        return None
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("row_version must be valid base64") from e
