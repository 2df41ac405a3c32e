import pytest

from src.services.concurrency import (
    ROW_VERSION_SIZE,
    decode_row_version,
    encode_row_version,
    new_row_version,
    row_versions_equal,
)


def test_new_row_version_is_fixed_size_and_never_repeats_current():
    current = new_row_version()
    assert len(current) == ROW_VERSION_SIZE
    for _ in range(50):
        assert new_row_version(current) != current


def test_row_versions_compare_byte_for_byte():
    token = bytes([1, 2, 3, 4, 5, 6, 7, 8])
    assert row_versions_equal(token, bytes(token)) is True
    assert row_versions_equal(token, bytes([1, 2, 3, 4, 5, 6, 7, 9])) is False
    assert row_versions_equal(token, token[:7]) is False
    assert row_versions_equal(None, token) is False
    assert row_versions_equal(token, None) is False


def test_wire_form_is_standard_base64():
    token = b"\x00\x01\xfe\xff\x10\x20\x30\x40"
    wire = encode_row_version(token)
    assert wire == "AAH+/xAgMEA="
    assert decode_row_version(wire) == token
    assert encode_row_version(None) is None
    assert decode_row_version(None) is None


def test_malformed_base64_is_rejected():
    with pytest.raises(ValueError):
        decode_row_version("not base64!!")
