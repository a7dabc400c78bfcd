#!/usr/bin/env python3
"""Example: build a few CVE messages and decode them back with the default CMMO-ST dictionary."""

import sys

from pyfesto_cve import (
    DecodeOptions,
    Direction,
    decode_message,
    encode_read_request,
    encode_read_response,
    encode_write_request,
    format_message,
)
from pyfesto_cve.errors import InvalidValueError, UnknownObjectError


def main() -> None:
    options = DecodeOptions(enable_validation=True, add_alternate_bit_overlay=True)

    try:
        # Read the status word
        req = encode_read_request(1, message_id=1)
        print(f"request  = {req.hex()}")

        # Drive answers: ready to switch on, fault
        rsp = encode_read_response(1, 0x00000009, message_id=1)
        msg = decode_message(rsp, direction=Direction.RESPONSE, options=options)
        for line in format_message(msg):
            print(line)

        # Write a target position (signed, SINC)
        wr = encode_write_request(6, -1000, message_id=2)
        msg = decode_message(wr, direction=Direction.REQUEST, options=options)
        print(f"write target_position: {msg.value.value}")
    except UnknownObjectError as e:
        print(f"Unknown object: {e}", file=sys.stderr)
        sys.exit(1)
    except InvalidValueError as e:
        print(f"Invalid value: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
