"""Tests for dictionary-driven object value decoding."""

import pytest

from pyfesto_cve import get_default_dictionary
from pyfesto_cve.encode import encode_value
from pyfesto_cve.types import (
    BitfieldValue,
    DecodeContext,
    DecodeOptions,
    Direction,
    ScalarValue,
    Severity,
    UnknownValue,
)
from pyfesto_cve.values import decode_scalar, decode_value


def _ctx(data_length: int = 8) -> DecodeContext:
    return DecodeContext(data_length=data_length, direction=Direction.RESPONSE, options=DecodeOptions())


@pytest.mark.parametrize("obj", [o for o in get_default_dictionary() if not o.is_bitfield], ids=lambda o: o.key)
def test_scalar_bounds_decode_back(obj) -> None:
    lo, hi = obj.type.bounds()
    for v in (lo, hi):
        assert decode_scalar(obj, encode_value(obj, v)) == v


@pytest.mark.parametrize(
    ("index", "raw", "expected"),
    [
        (6, b"\x18\xfc\xff\xff", -1000),
        (59, b"\xff\x7f", 32767),
        (59, b"\x00\x80", -32768),
        (191, b"\x34\x12", 0x1234),
        (217, b"\xfd", -3),
        (3, b"\x02", 2),
    ],
)
def test_scalar_values(index: int, raw: bytes, expected: int) -> None:
    value, consumed = decode_value(index, raw, 0, _ctx(), get_default_dictionary())
    assert isinstance(value, ScalarValue)
    assert value.value == expected
    assert consumed == len(raw)


def test_known_object_consumes_only_its_width() -> None:
    buf = b"\x05\xaa\xbb\xcc"
    value, consumed = decode_value(3, buf, 0, _ctx(), get_default_dictionary())
    assert consumed == 1
    assert value.raw == b"\x05"


def test_status_word_value() -> None:
    ctx = _ctx()
    value, consumed = decode_value(1, b"\x09\x00\x00\x00", 0, ctx, get_default_dictionary())
    assert isinstance(value, BitfieldValue)
    assert consumed == 4
    assert value.flag("f").value == 1
    assert value.flag("unk00") is None
    assert ctx.diagnostics == []


def test_unknown_object_uses_data_length() -> None:
    buf = bytes(range(10))
    value, consumed = decode_value(0x999, buf, 2, _ctx(data_length=9), get_default_dictionary())
    assert isinstance(value, UnknownValue)
    assert value.raw == bytes([2, 3, 4, 5, 6])
    assert consumed == 5
    assert value.offset == 2


def test_unknown_object_short_data_length() -> None:
    value, consumed = decode_value(0x999, b"\x01\x02", 0, _ctx(data_length=3), get_default_dictionary())
    assert value.raw == b""
    assert consumed == 0


def test_unknown_object_truncated() -> None:
    ctx = _ctx(data_length=12)
    value, consumed = decode_value(0x999, b"\x01\x02", 0, ctx, get_default_dictionary())
    assert value.raw == b"\x01\x02"
    assert consumed == 2
    assert [d.severity for d in ctx.diagnostics] == [Severity.ERROR]


def test_known_object_truncated() -> None:
    ctx = _ctx()
    value, consumed = decode_value(6, b"\x01\x02\x03", 0, ctx, get_default_dictionary())
    assert isinstance(value, UnknownValue)
    assert consumed == 3
    assert ctx.diagnostics[0].field == "payload.value"
    assert ctx.diagnostics[0].offset == 0
