"""Tests for header decoding, (service, direction) dispatch and diagnostics."""

import pytest

from pyfesto_cve import IncompleteMessageError, decode_header, decode_message
from pyfesto_cve.encode import (
    encode_header,
    encode_read_request,
    encode_read_response,
    encode_write_request,
    encode_write_response,
)
from pyfesto_cve.types import (
    BitfieldValue,
    DataType,
    DecodeOptions,
    Direction,
    ReadObjectRequest,
    ReadObjectResponse,
    ScalarValue,
    Severity,
    UnhandledPayload,
    UnknownValue,
    WriteObjectRequest,
    WriteObjectResponse,
)

VALIDATE = DecodeOptions(enable_validation=True)


def test_decode_header_fields() -> None:
    raw = encode_header(0x11, data_length=8, message_id=0xDEADBEEF, ack=0xA5, reserved=0)
    h = decode_header(raw)
    assert h.service_id == 0x11
    assert h.message_id == 0xDEADBEEF
    assert h.data_length == 8
    assert h.ack == 0xA5
    assert h.reserved == 0
    assert h.total_length == 22
    assert h.ack_code is not None and h.ack_code.name == "NO_WRITE"


def test_decode_header_too_short_raises() -> None:
    with pytest.raises(IncompleteMessageError) as exc_info:
        decode_header(encode_read_request(1)[:10])
    assert exc_info.value.needed == 4


def test_read_request_for_status_word_with_zero_length_header() -> None:
    raw = encode_header(0x10, data_length=0) + bytes([0x01, 0x00, 0x00, 0x00])
    msg = decode_message(raw, direction=Direction.REQUEST)
    assert isinstance(msg.payload, ReadObjectRequest)
    assert msg.payload.object_index == 1
    assert msg.payload.object_subindex == 0
    assert msg.payload.reserved == 0
    assert msg.diagnostics == ()


def test_read_response_status_word_bits() -> None:
    msg = decode_message(encode_read_response(1, 0x00000009), direction=Direction.RESPONSE)
    assert isinstance(msg.payload, ReadObjectResponse)
    assert msg.payload.data_type == DataType.UINT32
    value = msg.payload.value
    assert isinstance(value, BitfieldValue)
    assert value.value == 9
    by_name = {f.name: f.value for f in value.flags}
    assert by_name["Ready to switch on"] == 1
    assert by_name["Fault"] == 1
    assert sum(by_name.values()) == 2
    assert all(f.category.value == "defined" for f in value.flags)
    assert len(value.flags) == 13


def test_read_response_control_word() -> None:
    msg = decode_message(encode_read_response(2, 0x10F), direction=Direction.RESPONSE)
    value = msg.payload.value
    assert isinstance(value, BitfieldValue)
    assert value.obj.key == "control_word"
    set_keys = [f.key for f in value.flags if f.value]
    assert set_keys == ["so", "ev", "qs", "eo", "stp"]


def test_read_response_unknown_object() -> None:
    raw = encode_read_response(0x999, b"\x01\x02\x03\x04")
    msg = decode_message(raw, direction=Direction.RESPONSE)
    assert msg.header.data_length == 8
    assert isinstance(msg.payload.value, UnknownValue)
    assert msg.payload.value.raw == b"\x01\x02\x03\x04"
    assert msg.diagnostics == ()


def test_read_response_scalar_with_label() -> None:
    msg = decode_message(encode_read_response(120, -3), direction=Direction.RESPONSE)
    value = msg.payload.value
    assert isinstance(value, ScalarValue)
    assert value.value == -3
    assert value.label == "Jog Positive"


def test_write_request_signed_value() -> None:
    msg = decode_message(encode_write_request(6, -1000), direction=Direction.REQUEST)
    assert isinstance(msg.payload, WriteObjectRequest)
    assert msg.payload.object_index == 6
    assert msg.payload.data_type == DataType.SINT32
    assert msg.payload.value.value == -1000
    assert msg.length == 22


def test_write_response_has_no_value() -> None:
    msg = decode_message(encode_write_response(6, DataType.SINT32), direction=Direction.RESPONSE)
    assert isinstance(msg.payload, WriteObjectResponse)
    assert msg.payload.data_type == DataType.SINT32
    assert msg.value is None


def test_same_bytes_dispatch_by_direction() -> None:
    raw = encode_write_request(59, 250)
    assert isinstance(decode_message(raw, direction=Direction.REQUEST).payload, WriteObjectRequest)
    # Read as a response the value bytes are simply not part of the acknowledgement
    assert isinstance(decode_message(raw, direction=Direction.RESPONSE).payload, WriteObjectResponse)


def test_unknown_service_takes_length_minus_four() -> None:
    raw = encode_header(0x20, data_length=6) + b"\xaa\xbb\xcc\xdd\xee\xff"
    msg = decode_message(raw)
    assert isinstance(msg.payload, UnhandledPayload)
    assert msg.payload.data == b"\xaa\xbb"
    assert msg.object_index is None


def test_unknown_service_short_length_clamped() -> None:
    raw = encode_header(0x42, data_length=2) + b"\x01\x02"
    msg = decode_message(raw)
    assert msg.payload.data == b""
    assert msg.diagnostics == ()


def test_reserved_header_gated_by_validation() -> None:
    raw = encode_header(0x10, data_length=4, reserved=1) + bytes([1, 0, 0, 0])

    assert decode_message(raw).diagnostics == ()

    diags = decode_message(raw, options=VALIDATE).diagnostics
    assert len(diags) == 1
    assert diags[0].offset == 10
    assert diags[0].field == "header.reserved"
    assert diags[0].severity is Severity.WARNING
    assert diags[0].expected == 0


def test_data_length_checked_for_read_request() -> None:
    raw = encode_header(0x10, data_length=0) + bytes([1, 0, 0, 0])
    diags = decode_message(raw, options=VALIDATE).diagnostics
    assert [(d.field, d.offset, d.expected) for d in diags] == [("header.data_length", 5, 4)]


def test_data_length_not_checked_for_read_response() -> None:
    msg = decode_message(encode_read_response(6, 1), direction=Direction.RESPONSE, options=VALIDATE)
    assert msg.diagnostics == ()


def test_data_length_checked_for_write_response() -> None:
    raw = encode_header(0x11, data_length=5) + bytes([6, 0, 0, 6, 0])
    diags = decode_message(raw, direction=Direction.RESPONSE, options=VALIDATE).diagnostics
    assert [d.field for d in diags] == ["header.data_length"]


@pytest.mark.parametrize(
    ("raw", "direction"),
    [
        (encode_read_request(1, subindex=3), Direction.REQUEST),
        (encode_header(0x10, 8) + bytes([6, 0, 3, 6]) + (5).to_bytes(4, "little"), Direction.RESPONSE),
        (encode_header(0x11, 8) + bytes([6, 0, 3, 6]) + (5).to_bytes(4, "little"), Direction.REQUEST),
        (encode_header(0x11, 4) + bytes([6, 0, 3, 6]), Direction.RESPONSE),
    ],
)
def test_subindex_checked_in_all_shapes(raw: bytes, direction: Direction) -> None:
    assert decode_message(raw, direction=direction).diagnostics == ()
    diags = decode_message(raw, direction=direction, options=VALIDATE).diagnostics
    assert [(d.field, d.offset) for d in diags] == [("payload.object_subindex", 16)]


def test_read_request_reserved_byte_checked() -> None:
    raw = encode_header(0x10, 4) + bytes([1, 0, 0, 0x55])
    diags = decode_message(raw, options=VALIDATE).diagnostics
    assert [(d.field, d.offset) for d in diags] == [("payload.reserved", 17)]


def test_diagnostics_do_not_alter_values() -> None:
    raw = encode_header(0x10, 8, reserved=7) + bytes([6, 0, 1, 6]) + (-5).to_bytes(4, "little", signed=True)
    plain = decode_message(raw, direction=Direction.RESPONSE)
    checked = decode_message(raw, direction=Direction.RESPONSE, options=VALIDATE)
    assert plain.payload == checked.payload
    assert checked.header.reserved == 7
    assert checked.payload.object_subindex == 1
    assert len(checked.diagnostics) == 2


def test_truncated_value_reported_without_validation() -> None:
    full = encode_read_response(1, 0x9)
    msg = decode_message(full[:19], direction=Direction.RESPONSE)
    assert isinstance(msg.payload.value, UnknownValue)
    assert msg.payload.value.raw == b"\x09"
    assert len(msg.diagnostics) == 1
    assert msg.diagnostics[0].severity is Severity.ERROR
    assert msg.diagnostics[0].field == "payload.value"


def test_truncated_preamble_fields_are_none() -> None:
    msg = decode_message(encode_header(0x10, 4) + b"\x01", direction=Direction.REQUEST)
    assert msg.payload.object_index is None
    assert msg.payload.object_subindex is None
    assert len(msg.diagnostics) == 1
    assert msg.diagnostics[0].field == "payload.object_index"


def test_decode_at_offset() -> None:
    data = encode_read_request(1) + encode_read_request(56, message_id=9)
    msg = decode_message(data, offset=18)
    assert msg.offset == 18
    assert msg.header.message_id == 9
    assert msg.payload.object_index == 56


def test_context_is_per_message() -> None:
    # Unknown values size themselves from their own header, never a previous one
    long_unknown = encode_read_response(0x999, b"\x00" * 12)
    short_unknown = encode_read_response(0x998, b"\x00" * 2)
    first = decode_message(long_unknown, direction=Direction.RESPONSE)
    second = decode_message(short_unknown, direction=Direction.RESPONSE)
    assert len(first.payload.value.raw) == 12
    assert len(second.payload.value.raw) == 2
