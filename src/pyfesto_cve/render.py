"""Rendering adapter: turn decoded Message records into summary lines, text trees and JSON dicts."""

from typing import Any

from .objdict import ObjectDictionary, get_default_dictionary
from .types import (
    ACK_DESCRIPTIONS,
    DATA_TYPE_NAMES,
    SERVICE_NAMES,
    BitfieldValue,
    Diagnostic,
    Direction,
    Message,
    ObjectValue,
    ReadObjectRequest,
    ScalarValue,
    UnhandledPayload,
    UnknownValue,
)

_INDENT = "  "


def _label(table: dict[int, str], value: int | None) -> str:
    if value is None:
        return "Unknown"
    return table.get(value, "Unknown")


def summarize(message: Message, dictionary: ObjectDictionary | None = None) -> str:
    """One-line summary, e.g. 'req: Read CVE Object (0x10): Status word'."""
    dictionary = dictionary or get_default_dictionary()
    prefix = "req" if message.direction is Direction.REQUEST else "rsp"
    sid = message.header.service_id
    return f"{prefix}: {_label(SERVICE_NAMES, sid)} (0x{sid:02x}): {dictionary.name_of(message.object_index)}"


class _Tree:
    def __init__(self, message: Message) -> None:
        self.lines: list[str] = []
        self._message = message

    def add(self, depth: int, text: str, field: str | None = None) -> None:
        self.lines.append(f"{_INDENT * depth}{text}")
        if field is not None:
            for d in self._message.diagnostics_for(field):
                self.note(depth + 1, d)

    def note(self, depth: int, d: Diagnostic) -> None:
        self.lines.append(f"{_INDENT * depth}[{d.severity.value}] {d.message} (offset {d.offset})")


def _fmt(value: int | None, fmt: str = "d") -> str:
    return "<missing>" if value is None else format(value, fmt)


def _value_lines(tree: _Tree, depth: int, value: ObjectValue) -> None:
    if isinstance(value, BitfieldValue):
        tree.add(depth, f"Value: 0x{value.value:08x}", "payload.value")
        width = max((len(f.name) for f in value.flags), default=0)
        for f in value.flags:
            tree.add(depth + 1, f"{f.name:<{width}} : {f.value}")
    elif isinstance(value, ScalarValue):
        label = value.label
        text = f"Value: {value.value}" if label is None else f"Value: {label} ({value.value})"
        tree.add(depth, text, "payload.value")
    else:
        tree.add(depth, f"Unknown object, {len(value.raw)} bytes: {value.raw.hex()}", "payload.value")


def format_message(message: Message, dictionary: ObjectDictionary | None = None) -> list[str]:
    """Render a message as an indented tree of lines, diagnostics under their fields."""
    dictionary = dictionary or get_default_dictionary()
    h = message.header
    tree = _Tree(message)
    direction = "Request" if message.direction is Direction.REQUEST else "Response"
    tree.add(
        0,
        f"Festo CVE, {_label(SERVICE_NAMES, h.service_id)} (0x{h.service_id:02x}): "
        f"{dictionary.name_of(message.object_index)}, {direction}, {message.length} bytes",
    )
    tree.add(1, "Header")
    tree.add(2, f"Service ID: {_label(SERVICE_NAMES, h.service_id)} (0x{h.service_id:02x})", "header.service_id")
    tree.add(2, f"Message ID: 0x{h.message_id:08x}", "header.message_id")
    tree.add(2, f"Data Length: {h.data_length}", "header.data_length")
    tree.add(2, f"Acknowledge: {_label(ACK_DESCRIPTIONS, h.ack)} (0x{h.ack:02x})", "header.ack")
    tree.add(2, f"Reserved: 0x{h.reserved:08x}", "header.reserved")

    tree.add(1, "Payload")
    p = message.payload
    if isinstance(p, UnhandledPayload):
        tree.add(2, f"Unhandled, {len(p.data)} bytes: {p.data.hex()}", "payload.data")
    else:
        index = p.object_index
        tree.add(2, f"Object Index: {dictionary.name_of(index)} ({_fmt(index)})", "payload.object_index")
        tree.add(2, f"Object Sub Index: {_fmt(p.object_subindex)}", "payload.object_subindex")
        if isinstance(p, ReadObjectRequest):
            tree.add(2, f"Reserved: {_fmt(p.reserved, '#04x')}", "payload.reserved")
        else:
            dt = p.data_type
            tree.add(2, f"Data Type: {_label(DATA_TYPE_NAMES, dt)} ({_fmt(dt, '#04x')})", "payload.data_type")
        value = getattr(p, "value", None)
        if value is not None:
            _value_lines(tree, 2, value)
    return tree.lines


def _value_to_dict(value: ObjectValue | None) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, UnknownValue):
        return {"kind": "unknown", "raw": value.raw.hex()}
    out: dict[str, Any] = {
        "kind": value.obj.decoder.value,
        "object": value.obj.key,
        "type": value.obj.type.value,
        "value": value.value,
        "raw": value.raw.hex(),
    }
    if isinstance(value, BitfieldValue):
        out["bits"] = [
            {"position": f.position, "key": f.key, "name": f.name, "category": f.category.value, "value": f.value}
            for f in value.flags
        ]
    elif value.label is not None:
        out["label"] = value.label
    return out


def message_to_dict(message: Message) -> dict[str, Any]:
    """JSON-serializable form of a message."""
    h = message.header
    p = message.payload
    payload: dict[str, Any] = {"kind": type(p).__name__}
    if isinstance(p, UnhandledPayload):
        payload["data"] = p.data.hex()
    else:
        payload["object_index"] = p.object_index
        payload["object_subindex"] = p.object_subindex
        if isinstance(p, ReadObjectRequest):
            payload["reserved"] = p.reserved
        else:
            payload["data_type"] = p.data_type
        if hasattr(p, "value"):
            payload["value"] = _value_to_dict(p.value)
    return {
        "direction": message.direction.value,
        "length": message.length,
        "header": {
            "service_id": h.service_id,
            "message_id": h.message_id,
            "data_length": h.data_length,
            "ack": h.ack,
            "reserved": h.reserved,
        },
        "payload": payload,
        "diagnostics": [
            {
                "severity": d.severity.value,
                "message": d.message,
                "offset": d.offset,
                "field": d.field,
            }
            for d in message.diagnostics
        ],
    }
