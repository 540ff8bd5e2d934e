"""Parsing of ``data:`` URL payloads such as ``data:image/png;base64,iVBO...``."""

from __future__ import annotations

import base64
import binascii
import re

from blobdrop.core.errors import CorruptPayload

DATA_IMAGE_PREFIX = "data:image"
BASE64_MARKER = ";base64,"
DEFAULT_CONTENT_TYPE = "image/png"

_content_type_re = re.compile(r"data:(.*?);")
_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


def validate(raw: str | None) -> bool:
    if not raw:
        return False
    return raw.startswith(DATA_IMAGE_PREFIX) and BASE64_MARKER in raw


def extract_content_type(raw: str) -> str:
    # Lenient: anything we cannot read falls back to PNG instead of failing.
    m = _content_type_re.search(raw)
    if m is None:
        return DEFAULT_CONTENT_TYPE
    content_type = m.group(1).strip()
    return content_type or DEFAULT_CONTENT_TYPE


def split_payload(raw: str) -> str:
    _, sep, data = raw.partition(",")
    if not sep:
        raise CorruptPayload("payload has no ',' separator before the base64 data")
    # Only the segment up to a second comma is data.
    return data.split(",", 1)[0]


def _normalize_base64(data: str) -> str:
    # Browsers and query strings hand us wrapped, unpadded or URL-safe base64.
    data = "".join(data.split()).translate(_URLSAFE_TO_STANDARD)
    data = data.rstrip("=")
    if len(data) % 4 == 1:
        raise CorruptPayload(f"base64 data has an impossible length ({len(data)} chars)")
    return data + "=" * (-len(data) % 4)


def decode_payload(raw: str) -> bytes:
    data = _normalize_base64(split_payload(raw))
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CorruptPayload(f"base64 decode failed: {e}") from e
