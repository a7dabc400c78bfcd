"""Build CVE messages: headers, typed object values and the four Read/Write payload shapes."""

from .errors import InvalidValueError
from .objdict import ObjectDictionary, get_default_dictionary
from .types import OBJECT_PREAMBLE_LEN, AckCode, ObjectDef, ServiceId


def encode_header(
    service_id: int,
    data_length: int,
    message_id: int = 0,
    ack: int = AckCode.OK,
    reserved: int = 0,
) -> bytes:
    return (
        int(service_id).to_bytes(1, "little")
        + message_id.to_bytes(4, "little")
        + data_length.to_bytes(4, "little")
        + int(ack).to_bytes(1, "little")
        + reserved.to_bytes(4, "little")
    )


def encode_value(obj: ObjectDef, value: int) -> bytes:
    """Encode value with the object's semantic type; raise InvalidValueError when out of range."""
    lo, hi = obj.type.bounds()
    if not lo <= value <= hi:
        raise InvalidValueError(
            value,
            f"Value {value} out of range for {obj.name} ({obj.type.value}: {lo}..{hi})",
            index=obj.index,
        )
    return value.to_bytes(obj.width, "little", signed=obj.type.signed)


def _resolve(index: int, dictionary: ObjectDictionary | None) -> ObjectDef | None:
    return (dictionary or get_default_dictionary()).get(index)


def _preamble(index: int, type_or_reserved: int, subindex: int = 0) -> bytes:
    return index.to_bytes(2, "little") + subindex.to_bytes(1, "little") + type_or_reserved.to_bytes(1, "little")


def _value_bytes(index: int, value: int | bytes, dictionary: ObjectDictionary | None) -> tuple[int, bytes]:
    """Return (data type tag, value bytes); raw bytes pass through with tag 0."""
    obj = _resolve(index, dictionary)
    if isinstance(value, (bytes, bytearray)):
        return (obj.type.data_type if obj is not None else 0), bytes(value)
    if obj is None:
        raise InvalidValueError(value, f"Object {index} is not in the dictionary; pass raw bytes", index=index)
    return obj.type.data_type, encode_value(obj, value)


def encode_read_request(index: int, message_id: int = 0, subindex: int = 0) -> bytes:
    return encode_header(ServiceId.READ_OBJECT, OBJECT_PREAMBLE_LEN, message_id) + _preamble(index, 0, subindex)


def encode_read_response(
    index: int,
    value: int | bytes,
    message_id: int = 0,
    ack: int = AckCode.OK,
    dictionary: ObjectDictionary | None = None,
) -> bytes:
    data_type, raw = _value_bytes(index, value, dictionary)
    body = _preamble(index, data_type) + raw
    return encode_header(ServiceId.READ_OBJECT, len(body), message_id, ack) + body


def encode_write_request(
    index: int,
    value: int | bytes,
    message_id: int = 0,
    dictionary: ObjectDictionary | None = None,
) -> bytes:
    data_type, raw = _value_bytes(index, value, dictionary)
    body = _preamble(index, data_type) + raw
    return encode_header(ServiceId.WRITE_OBJECT, len(body), message_id) + body


def encode_write_response(
    index: int,
    data_type: int,
    message_id: int = 0,
    ack: int = AckCode.OK,
) -> bytes:
    return encode_header(ServiceId.WRITE_OBJECT, OBJECT_PREAMBLE_LEN, message_id, ack) + _preamble(index, data_type)
