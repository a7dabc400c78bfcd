"""Message decoder: fixed header, then dispatch on (service id, direction) to a payload decoder."""

import logging
from typing import Callable

from .errors import IncompleteMessageError
from .objdict import ObjectDictionary, get_default_dictionary
from .types import (
    HEADER_LEN,
    OBJECT_PREAMBLE_LEN,
    DecodeContext,
    DecodeOptions,
    Direction,
    Header,
    Message,
    Payload,
    ReadObjectRequest,
    ReadObjectResponse,
    ServiceId,
    UnhandledPayload,
    WriteObjectRequest,
    WriteObjectResponse,
)
from .validate import check_equals, truncated
from .values import decode_value

logger = logging.getLogger(__name__)

# Header field offsets relative to the start of the message
_OFF_SID = 0
_OFF_MID = 1
_OFF_DLEN = 5
_OFF_ACK = 9
_OFF_RSVD = 10

# (service, direction) pairs whose payload is always exactly index/subindex/type-or-reserved
_FIXED_LENGTH_SHAPES = {
    (ServiceId.READ_OBJECT, Direction.REQUEST),
    (ServiceId.WRITE_OBJECT, Direction.RESPONSE),
}


class _Cursor:
    """Little-endian field reader over one message; reports the first short read as a diagnostic."""

    def __init__(self, buffer: bytes | bytearray | memoryview, offset: int, ctx: DecodeContext) -> None:
        self.buffer = buffer
        self.offset = offset
        self.ctx = ctx
        self.exhausted = False

    def uint(self, width: int, field: str) -> int | None:
        end = self.offset + width
        if end > len(self.buffer):
            if not self.exhausted:
                self.ctx.note(truncated(field, self.offset, width, len(self.buffer) - self.offset))
                self.exhausted = True
            return None
        value = int.from_bytes(self.buffer[self.offset:end], "little", signed=False)
        self.offset = end
        return value

    def subindex(self, field: str) -> int | None:
        pos = self.offset
        value = self.uint(1, field)
        self.ctx.note(check_equals(value, 0, self.ctx.options.enable_validation, offset=pos, field=field))
        return value


def decode_header(buffer: bytes | bytearray | memoryview, offset: int = 0) -> Header:
    """Decode the 14-byte header at buffer[offset]; raise IncompleteMessageError if it is not all there."""
    available = len(buffer) - offset
    if available < HEADER_LEN:
        raise IncompleteMessageError(HEADER_LEN - max(available, 0))

    def u(off: int, width: int) -> int:
        start = offset + off
        return int.from_bytes(buffer[start:start + width], "little", signed=False)

    return Header(
        service_id=u(_OFF_SID, 1),
        message_id=u(_OFF_MID, 4),
        data_length=u(_OFF_DLEN, 4),
        ack=u(_OFF_ACK, 1),
        reserved=u(_OFF_RSVD, 4),
        offset=offset,
    )


def _check_header(header: Header, ctx: DecodeContext) -> None:
    enabled = ctx.options.enable_validation
    if (header.service, ctx.direction) in _FIXED_LENGTH_SHAPES:
        ctx.note(
            check_equals(
                header.data_length,
                OBJECT_PREAMBLE_LEN,
                enabled,
                offset=header.offset + _OFF_DLEN,
                field="header.data_length",
            )
        )
    ctx.note(check_equals(header.reserved, 0, enabled, offset=header.offset + _OFF_RSVD, field="header.reserved"))


def _read_request(cur: _Cursor, dictionary: ObjectDictionary) -> ReadObjectRequest:
    index = cur.uint(2, "payload.object_index")
    subindex = cur.subindex("payload.object_subindex")
    pos = cur.offset
    reserved = cur.uint(1, "payload.reserved")
    cur.ctx.note(
        check_equals(reserved, 0, cur.ctx.options.enable_validation, offset=pos, field="payload.reserved")
    )
    return ReadObjectRequest(object_index=index, object_subindex=subindex, reserved=reserved)


def _read_response(cur: _Cursor, dictionary: ObjectDictionary) -> ReadObjectResponse:
    index = cur.uint(2, "payload.object_index")
    subindex = cur.subindex("payload.object_subindex")
    data_type = cur.uint(1, "payload.data_type")
    value = None
    if index is not None and data_type is not None:
        value, consumed = decode_value(index, cur.buffer, cur.offset, cur.ctx, dictionary)
        cur.offset += consumed
    return ReadObjectResponse(object_index=index, object_subindex=subindex, data_type=data_type, value=value)


def _write_request(cur: _Cursor, dictionary: ObjectDictionary) -> WriteObjectRequest:
    index = cur.uint(2, "payload.object_index")
    subindex = cur.subindex("payload.object_subindex")
    data_type = cur.uint(1, "payload.data_type")
    value = None
    if index is not None and data_type is not None:
        value, consumed = decode_value(index, cur.buffer, cur.offset, cur.ctx, dictionary)
        cur.offset += consumed
    return WriteObjectRequest(object_index=index, object_subindex=subindex, data_type=data_type, value=value)


def _write_response(cur: _Cursor, dictionary: ObjectDictionary) -> WriteObjectResponse:
    index = cur.uint(2, "payload.object_index")
    subindex = cur.subindex("payload.object_subindex")
    data_type = cur.uint(1, "payload.data_type")
    return WriteObjectResponse(object_index=index, object_subindex=subindex, data_type=data_type)


def _unhandled(cur: _Cursor, dictionary: ObjectDictionary) -> UnhandledPayload:
    # Same 4-byte allowance as the known services, although no such fields were parsed
    want = max(cur.ctx.data_length - OBJECT_PREAMBLE_LEN, 0)
    available = max(len(cur.buffer) - cur.offset, 0)
    take = min(want, available)
    if take < want:
        cur.ctx.note(truncated("payload.data", cur.offset, want, available))
    start = cur.offset
    cur.offset += take
    return UnhandledPayload(data=bytes(cur.buffer[start:start + take]), offset=start)


PayloadDecoder = Callable[[_Cursor, ObjectDictionary], Payload]

_DISPATCH: dict[tuple[ServiceId, Direction], PayloadDecoder] = {
    (ServiceId.READ_OBJECT, Direction.REQUEST): _read_request,
    (ServiceId.READ_OBJECT, Direction.RESPONSE): _read_response,
    (ServiceId.WRITE_OBJECT, Direction.REQUEST): _write_request,
    (ServiceId.WRITE_OBJECT, Direction.RESPONSE): _write_response,
}


def decode_message(
    buffer: bytes | bytearray | memoryview,
    offset: int = 0,
    direction: Direction = Direction.REQUEST,
    options: DecodeOptions | None = None,
    dictionary: ObjectDictionary | None = None,
) -> Message:
    """
    Decode one message starting at buffer[offset].

    Fields are read from the bytes actually present; anything past the end of the
    buffer is reported as None with a truncation diagnostic. Constant-field
    mismatches become warnings when options.enable_validation is set.
    """
    options = options or DecodeOptions()
    dictionary = dictionary or get_default_dictionary()

    header = decode_header(buffer, offset)
    ctx = DecodeContext(data_length=header.data_length, direction=direction, options=options)
    _check_header(header, ctx)

    cur = _Cursor(buffer, offset + HEADER_LEN, ctx)
    service = header.service
    decoder = _DISPATCH.get((service, direction), _unhandled) if service is not None else _unhandled
    payload = decoder(cur, dictionary)
    logger.debug(
        "Decoded sid=0x%02x %s at offset %d: %s, %d diagnostic(s)",
        header.service_id,
        direction.value,
        offset,
        type(payload).__name__,
        len(ctx.diagnostics),
    )
    return Message(
        header=header,
        direction=direction,
        payload=payload,
        diagnostics=tuple(ctx.diagnostics),
        offset=offset,
        length=header.total_length,
    )
