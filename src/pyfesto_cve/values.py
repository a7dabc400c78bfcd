"""Object value decoding driven by the object dictionary."""

import logging

from .bits import decompose_word
from .objdict import ObjectDictionary
from .types import (
    OBJECT_PREAMBLE_LEN,
    BitfieldValue,
    DecodeContext,
    ObjectDef,
    ObjectValue,
    ScalarValue,
    UnknownValue,
)
from .validate import truncated

logger = logging.getLogger(__name__)


def decode_scalar(obj: ObjectDef, raw: bytes) -> int:
    """Interpret raw little-endian bytes with the object's semantic type."""
    return int.from_bytes(raw, "little", signed=obj.type.signed)


def _decode_known(obj: ObjectDef, raw: bytes, offset: int, ctx: DecodeContext) -> ObjectValue:
    if obj.is_bitfield:
        word = int.from_bytes(raw, "little", signed=False)
        flags = decompose_word(word, obj.decoder, ctx.options)
        return BitfieldValue(obj=obj, value=word, flags=tuple(flags), raw=raw, offset=offset)
    return ScalarValue(obj=obj, value=decode_scalar(obj, raw), raw=raw, offset=offset)


def decode_value(
    object_index: int,
    buffer: bytes | bytearray | memoryview,
    offset: int,
    ctx: DecodeContext,
    dictionary: ObjectDictionary,
) -> tuple[ObjectValue, int]:
    """
    Decode the value of object_index starting at buffer[offset].

    Known objects consume exactly their dictionary width. Unknown objects take the
    rest of the payload, data_length minus the index/subindex/type preamble.
    Returns (value, bytes consumed).
    """
    available = max(len(buffer) - offset, 0)
    obj = dictionary.get(object_index)

    if obj is None:
        want = max(ctx.data_length - OBJECT_PREAMBLE_LEN, 0)
        take = min(want, available)
        if take < want:
            ctx.note(truncated("payload.value", offset, want, available))
        logger.debug("Unknown object %d: %d byte(s) opaque", object_index, take)
        return UnknownValue(raw=bytes(buffer[offset:offset + take]), offset=offset), take

    if available < obj.width:
        ctx.note(truncated("payload.value", offset, obj.width, available))
        return UnknownValue(raw=bytes(buffer[offset:offset + available]), offset=offset), available

    raw = bytes(buffer[offset:offset + obj.width])
    return _decode_known(obj, raw, offset, ctx), obj.width
