from __future__ import annotations

import pytest

from blobdrop.core.errors import CorruptPayload
from blobdrop.services import encoding


@pytest.mark.parametrize(
    "raw",
    [
        "data:image/png;base64,iVBORw0KGgo=",
        "data:image/jpeg;base64,/9j/4AAQ",
        "data:image;base64,AAAA",
    ],
)
def test_validate_accepts_data_image_payloads(raw: str) -> None:
    assert encoding.validate(raw) is True


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "notbase64",
        "data:text/plain;base64,aGVsbG8=",
        "data:image/png,iVBORw0KGgo=",
        " data:image/png;base64,iVBORw0KGgo=",
        "iVBORw0KGgo=;base64,data:image",
    ],
)
def test_validate_rejects_malformed_payloads(raw: str | None) -> None:
    assert encoding.validate(raw) is False


def test_extract_content_type_reads_declared_type() -> None:
    assert encoding.extract_content_type("data:image/webp;base64,AAAA") == "image/webp"
    assert encoding.extract_content_type("data:image/svg+xml;base64,AAAA") == "image/svg+xml"


def test_extract_content_type_falls_back_to_png() -> None:
    assert encoding.extract_content_type("notbase64") == "image/png"
    assert encoding.extract_content_type("data:;base64,AAAA") == "image/png"
    assert encoding.extract_content_type("data:image/gif") == "image/png"


def test_decode_payload_returns_bytes_after_comma() -> None:
    assert encoding.decode_payload("data:image/png;base64,iVBORw0KGgo=") == b"\x89PNG\r\n\x1a\n"


def test_decode_payload_without_separator_is_corrupt() -> None:
    with pytest.raises(CorruptPayload) as exc_info:
        encoding.decode_payload("hello")
    assert "separator" in (exc_info.value.detail or "")


def test_decode_payload_with_invalid_base64_is_corrupt() -> None:
    with pytest.raises(CorruptPayload):
        encoding.decode_payload("data:image/png;base64,@@not-base64@@")


@pytest.mark.parametrize(
    "raw",
    [
        "data:image/png;base64,iVBORw0KGgo",
        "data:image/png;base64,iVBORw0K\nGgo=",
        "data:image/png;base64, iVBO Rw0K\r\nGgo= ",
    ],
)
def test_decode_payload_tolerates_unpadded_and_wrapped_base64(raw: str) -> None:
    assert encoding.decode_payload(raw) == b"\x89PNG\r\n\x1a\n"


def test_decode_payload_accepts_urlsafe_alphabet() -> None:
    assert encoding.decode_payload("data:image/png;base64,-_8=") == b"\xfb\xff"


def test_decode_payload_rejects_impossible_length() -> None:
    with pytest.raises(CorruptPayload):
        encoding.decode_payload("data:image/png;base64,AAAAA")
