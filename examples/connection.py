#!/usr/bin/env python3
"""Example: feed TCP segments of one connection in arbitrary pieces; print messages as they complete."""

from pyfesto_cve import ConnectionDecoder, Direction, Message, encode_read_request, encode_read_response, summarize

CLIENT_PORT = 51234
DEVICE_PORT = 49700


def on_message(message: Message) -> None:
    print(summarize(message))


def main() -> None:
    conn = ConnectionDecoder(well_known_port=DEVICE_PORT, sink=on_message)

    requests = encode_read_request(1, message_id=1) + encode_read_request(56, message_id=2)
    responses = encode_read_response(1, 0x00008007, message_id=1) + encode_read_response(56, 12000, message_id=2)

    # Segment boundaries need not line up with message boundaries
    conn.feed(requests[:7], CLIENT_PORT, DEVICE_PORT)
    conn.feed(requests[7:], CLIENT_PORT, DEVICE_PORT)
    conn.feed(responses[:25], DEVICE_PORT, CLIENT_PORT)
    conn.feed(responses[25:], DEVICE_PORT, CLIENT_PORT)

    for direction in Direction:
        print(f"{direction.value}: pending={conn.pending(direction)}")


if __name__ == "__main__":
    main()
