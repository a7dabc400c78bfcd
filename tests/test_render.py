"""Tests for summary lines, text trees and JSON dicts."""

import json

from pyfesto_cve import DecodeOptions, decode_message
from pyfesto_cve.encode import encode_header, encode_read_request, encode_read_response, encode_write_request
from pyfesto_cve.render import format_message, message_to_dict, summarize
from pyfesto_cve.types import Direction


def test_summary_line() -> None:
    assert summarize(decode_message(encode_read_request(1))) == "req: Read CVE Object (0x10): Status word"
    rsp = decode_message(encode_read_response(0x999, b"\x00"), direction=Direction.RESPONSE)
    assert summarize(rsp) == "rsp: Read CVE Object (0x10): Unknown"


def test_summary_for_unknown_service() -> None:
    msg = decode_message(encode_header(0x20, 4) + b"\x00" * 4)
    assert summarize(msg) == "req: Unknown (0x20): Unknown"


def test_tree_for_status_word() -> None:
    msg = decode_message(encode_read_response(1, 0x9, message_id=5), direction=Direction.RESPONSE)
    lines = format_message(msg)
    assert lines[0] == "Festo CVE, Read CVE Object (0x10): Status word, Response, 22 bytes"
    assert "    Message ID: 0x00000005" in lines
    assert "    Acknowledge: Everything OK / Unused (0x00)" in lines
    assert "    Object Index: Status word (1)" in lines
    assert "    Data Type: UINT32 (0x02)" in lines
    assert "    Value: 0x00000009" in lines
    fault = [line for line in lines if line.strip().startswith("Fault ")]
    assert len(fault) == 1
    assert fault[0].endswith(": 1")


def test_tree_scalar_with_label() -> None:
    lines = format_message(decode_message(encode_write_request(120, 6)))
    assert "    Value: Homing (6)" in lines


def test_tree_places_diagnostics_under_field() -> None:
    raw = encode_header(0x10, 4, reserved=1) + bytes([1, 0, 0, 0])
    lines = format_message(decode_message(raw, options=DecodeOptions(enable_validation=True)))
    i = lines.index("    Reserved: 0x00000001")
    assert lines[i + 1] == "      [warning] Field should always be 0 (offset 10)"


def test_tree_for_unhandled_payload() -> None:
    lines = format_message(decode_message(encode_header(0x20, 6) + b"\xaa\xbb\xcc\xdd\xee\xff"))
    assert "    Unhandled, 2 bytes: aabb" in lines


def test_message_to_dict_is_json_serializable() -> None:
    msg = decode_message(encode_read_response(1, 0x9), direction=Direction.RESPONSE)
    out = json.loads(json.dumps(message_to_dict(msg)))
    assert out["direction"] == "response"
    assert out["header"]["service_id"] == 0x10
    assert out["payload"]["kind"] == "ReadObjectResponse"
    value = out["payload"]["value"]
    assert value["kind"] == "status_word"
    assert value["value"] == 9
    assert {b["key"]: b["value"] for b in value["bits"]}["f"] == 1
    assert out["diagnostics"] == []


def test_message_to_dict_unknown_value_and_label() -> None:
    unknown = message_to_dict(decode_message(encode_read_response(0x999, b"\x01\x02"), direction=Direction.RESPONSE))
    assert unknown["payload"]["value"] == {"kind": "unknown", "raw": "0102"}
    labeled = message_to_dict(decode_message(encode_write_request(194, 255)))
    assert labeled["payload"]["value"]["label"] == "No error"
