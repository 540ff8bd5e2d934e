from __future__ import annotations

import base64
import os

RECORD_ID_BYTES = 12


def new_random_token(*, nbytes: int = 32) -> str:
    raw = os.urandom(nbytes)
    # URL-safe base64 without padding to keep headers compact.
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def new_record_id() -> str:
    return os.urandom(RECORD_ID_BYTES).hex()


def is_record_id(value: str) -> bool:
    if len(value) != RECORD_ID_BYTES * 2:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return value == value.lower()
