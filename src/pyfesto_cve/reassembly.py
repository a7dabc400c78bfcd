"""Stream framing: split a TCP byte stream into CVE messages using the header's data length."""

import logging
from typing import Callable, Iterable, Iterator

from .decoder import decode_message
from .direction import classify
from .objdict import ObjectDictionary, get_default_dictionary
from .types import (
    DEFAULT_CVE_PORT,
    HEADER_LEN,
    LENGTH_FIELD_OFFSET,
    LENGTH_FIELD_WIDTH,
    DecodeOptions,
    Direction,
    Message,
    NeedMoreBytes,
)

logger = logging.getLogger(__name__)

MessageSink = Callable[[Message], None]


def frame_length(buffer: bytes | bytearray | memoryview, start: int = 0) -> int | NeedMoreBytes:
    """
    Return the total length of the message starting at buffer[start], or NeedMoreBytes.

    Only the data length field (offset 5, 4 bytes) must be present; the rest of
    the header is not inspected. Nothing is consumed: on NeedMoreBytes the caller
    re-invokes with the same start once more data has arrived.
    """
    available = len(buffer) - start
    length_end = LENGTH_FIELD_OFFSET + LENGTH_FIELD_WIDTH
    if available < length_end:
        return NeedMoreBytes(needed=length_end - max(available, 0), offset=start)
    pos = start + LENGTH_FIELD_OFFSET
    data_length = int.from_bytes(buffer[pos:pos + LENGTH_FIELD_WIDTH], "little", signed=False)
    total = data_length + HEADER_LEN
    if start + total > len(buffer):
        return NeedMoreBytes(needed=start + total - len(buffer), offset=start)
    return total


def split_frames(
    buffer: bytes | bytearray | memoryview,
    start: int = 0,
) -> tuple[list[tuple[int, int]], NeedMoreBytes | None]:
    """
    Walk buffer from start and return ([(offset, length), ...], pending).

    pending is None when the last frame ends exactly at the end of the buffer.
    """
    frames: list[tuple[int, int]] = []
    offset = start
    while offset < len(buffer):
        result = frame_length(buffer, offset)
        if isinstance(result, NeedMoreBytes):
            return frames, result
        frames.append((offset, result))
        offset += result
    return frames, None


class StreamReassembler:
    """
    Partial-message buffer for one direction of one connection.

    feed() appends received bytes, decodes every complete message in arrival order,
    hands each to the optional sink and returns them. Incomplete trailing bytes are
    kept until the next feed().
    """

    def __init__(
        self,
        direction: Direction,
        options: DecodeOptions | None = None,
        dictionary: ObjectDictionary | None = None,
        sink: MessageSink | None = None,
    ) -> None:
        self.direction = direction
        self._options = options or DecodeOptions()
        self._dictionary = dictionary or get_default_dictionary()
        self._sink = sink
        self._buffer = bytearray()
        self._pending: NeedMoreBytes | None = None
        self._position = 0  # stream offset of the first buffered byte

    def feed(self, data: bytes | bytearray | memoryview) -> list[Message]:
        if not data and not self._buffer:
            return []
        self._buffer.extend(data)
        frames, self._pending = split_frames(self._buffer)

        messages: list[Message] = []
        consumed = 0
        for offset, length in frames:
            frame = bytes(self._buffer[offset:offset + length])
            msg = decode_message(frame, 0, self.direction, self._options, self._dictionary)
            logger.debug(
                "%s stream: message at stream offset %d, %d bytes",
                self.direction.value,
                self._position + offset,
                length,
            )
            messages.append(msg)
            if self._sink is not None:
                self._sink(msg)
            consumed = offset + length

        del self._buffer[:consumed]
        if self._pending is not None:
            # Report the stream offset of the incomplete message, not the buffer offset
            self._pending = NeedMoreBytes(self._pending.needed, self._position + self._pending.offset)
        self._position += consumed
        if self._pending is not None:
            logger.debug("%s stream: waiting for %d more byte(s)", self.direction.value, self._pending.needed)
        return messages

    @property
    def pending(self) -> NeedMoreBytes | None:
        """Bytes still required to complete the buffered message, if any."""
        return self._pending

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    @property
    def position(self) -> int:
        """Number of stream bytes consumed as complete messages so far."""
        return self._position

    def reset(self) -> None:
        self._buffer.clear()
        self._pending = None


def reassemble(
    chunks: Iterable[bytes],
    direction: Direction = Direction.REQUEST,
    options: DecodeOptions | None = None,
    dictionary: ObjectDictionary | None = None,
) -> Iterator[Message]:
    """Yield messages decoded from an iterable of received chunks, in order."""
    stream = StreamReassembler(direction, options, dictionary)
    for chunk in chunks:
        yield from stream.feed(chunk)


class ConnectionDecoder:
    """
    Decoding state for a single TCP connection: one reassembler per direction.

    Each delivered segment is classified by its ports, so requests and responses
    sharing the connection are framed independently.
    """

    def __init__(
        self,
        well_known_port: int = DEFAULT_CVE_PORT,
        options: DecodeOptions | None = None,
        dictionary: ObjectDictionary | None = None,
        sink: MessageSink | None = None,
    ) -> None:
        self.well_known_port = well_known_port
        self._streams = {
            direction: StreamReassembler(direction, options, dictionary, sink) for direction in Direction
        }

    def feed(self, data: bytes | bytearray | memoryview, src_port: int, dst_port: int) -> list[Message]:
        direction = classify(src_port, dst_port, self.well_known_port)
        return self._streams[direction].feed(data)

    def stream(self, direction: Direction) -> StreamReassembler:
        return self._streams[direction]

    def pending(self, direction: Direction) -> NeedMoreBytes | None:
        return self._streams[direction].pending
