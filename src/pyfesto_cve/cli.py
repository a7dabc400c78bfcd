#!/usr/bin/env python3
"""Command-line decoder for Festo CVE captures using Typer."""

import json
import logging
import re
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .direction import classify
from .encode import encode_read_request, encode_write_request
from .errors import InvalidHexError, InvalidValueError, UnknownObjectError
from .objdict import get_default_dictionary
from .reassembly import StreamReassembler
from .render import format_message, message_to_dict, summarize
from .types import DATA_TYPE_NAMES, DEFAULT_CVE_PORT, DecodeOptions, Direction, Message

app = typer.Typer(
    name="pyfesto-cve",
    help="Decode Festo Control Via Ethernet (CVE) messages from hex dumps and raw stream captures.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

DirectionOption = Annotated[
    Direction,
    typer.Option("--direction", "-d", help="Direction of the bytes (ignored when --src-port is given)"),
]
SrcPortOption = Annotated[
    Optional[int],
    typer.Option("--src-port", help="Source TCP port of the data; classifies request/response against --port"),
]
PortOption = Annotated[
    int,
    typer.Option("--port", "-p", help="Well-known CVE port of the device", envvar="PYFESTO_CVE_PORT"),
]
ValidateOption = Annotated[
    bool,
    typer.Option("--validate", help="Report constant-field mismatches", envvar="PYFESTO_CVE_VALIDATE"),
]
UnknownBitsOption = Annotated[
    bool,
    typer.Option("--unknown-bits", help="Include unclassified Status Word bits", envvar="PYFESTO_CVE_UNKNOWN_BITS"),
]
OverlayOption = Annotated[
    bool,
    typer.Option("--overlay", help="Overlay CiA 402 bit names on unused Status Word bits", envvar="PYFESTO_CVE_OVERLAY"),
]
ProfileOption = Annotated[
    str,
    typer.Option("--profile", help="Object dictionary profile", envvar="PYFESTO_CVE_PROFILE"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON (one object per line for messages)"),
]
MessageIdOption = Annotated[
    int,
    typer.Option("--message-id", "-m", help="Message ID to put in the header"),
]

_HEX_SEPARATORS = re.compile(r"[\s:,\-]")


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_hex(text: str) -> bytes:
    """Parse a hex dump; accepts whitespace, ':', ',' or '-' separators and 0x prefixes."""
    s = _HEX_SEPARATORS.sub("", text.replace("0x", "").replace("0X", ""))
    if not s:
        raise InvalidHexError(text, "No hex data given")
    if len(s) % 2:
        raise InvalidHexError(text, f"Odd number of hex digits ({len(s)})")
    try:
        return bytes.fromhex(s)
    except ValueError:
        raise InvalidHexError(text) from None


def parse_int(value: str) -> int:
    """Parse a decimal or 0x-prefixed hex integer (optionally negative)."""
    v = value.strip()
    negative = v.startswith("-")
    body = v[1:] if negative else v
    num = int(body, 16) if body.lower().startswith("0x") else int(body)
    return -num if negative else num


def resolve_direction(direction: Direction, src_port: Optional[int], port: int) -> Direction:
    if src_port is None:
        return direction
    # Captures only record our side of the segment; the source port alone decides
    return classify(src_port, 0, port)


def build_options(validate: bool, unknown_bits: bool, overlay: bool) -> DecodeOptions:
    return DecodeOptions(
        enable_validation=validate,
        include_unknown_bits=unknown_bits,
        add_alternate_bit_overlay=overlay,
    )


def _emit(message: Message, json_output: bool, profile: str) -> None:
    if json_output:
        typer.echo(json.dumps(message_to_dict(message)))
        return
    dictionary = get_default_dictionary(profile)
    typer.echo(summarize(message, dictionary))
    for line in format_message(message, dictionary):
        typer.echo(f"  {line}")


def _feed_all(reassembler: StreamReassembler, chunks: list[bytes], json_output: bool, profile: str) -> int:
    count = 0
    for chunk in chunks:
        for message in reassembler.feed(chunk):
            _emit(message, json_output, profile)
            count += 1
    return count


def _report_pending(reassembler: StreamReassembler) -> None:
    pending = reassembler.pending
    if pending is not None:
        typer.echo(
            f"Incomplete: {pending.needed} more byte(s) needed for the message at offset {reassembler.position}",
            err=True,
        )
        raise typer.Exit(3)


# ============================================================================
# Commands
# ============================================================================

@app.command()
def decode(
    data: Annotated[list[str], typer.Argument(help="Hex bytes of one or more back-to-back messages")],
    direction: DirectionOption = Direction.REQUEST,
    src_port: SrcPortOption = None,
    port: PortOption = DEFAULT_CVE_PORT,
    validate: ValidateOption = False,
    unknown_bits: UnknownBitsOption = False,
    overlay: OverlayOption = False,
    profile: ProfileOption = "cmmo-st",
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Decode CVE messages given as hex on the command line.

    Several messages may be concatenated; each is framed by its header data length.
    Exits with code 3 if the data ends inside a message.
    """
    setup_logging(verbose)

    try:
        raw = parse_hex(" ".join(data))
        reassembler = StreamReassembler(
            resolve_direction(direction, src_port, port),
            build_options(validate, unknown_bits, overlay),
            get_default_dictionary(profile),
        )
        _feed_all(reassembler, [raw], json_output, profile)
    except InvalidHexError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except ValueError as e:
        typer.echo(f"Error: Invalid option: {e}", err=True)
        raise typer.Exit(2)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)

    _report_pending(reassembler)


@app.command()
def stream(
    path: Annotated[Path, typer.Argument(help="File holding the raw bytes of one direction of a CVE connection")],
    direction: DirectionOption = Direction.REQUEST,
    src_port: SrcPortOption = None,
    port: PortOption = DEFAULT_CVE_PORT,
    chunk_size: Annotated[int, typer.Option("--chunk-size", "-c", help="Feed the file in chunks of this many bytes")] = 4096,
    validate: ValidateOption = False,
    unknown_bits: UnknownBitsOption = False,
    overlay: OverlayOption = False,
    profile: ProfileOption = "cmmo-st",
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Decode a raw byte-stream capture, reassembling messages across chunk boundaries.

    Use a small --chunk-size to exercise reassembly the way a TCP receiver would see it.
    """
    setup_logging(verbose)

    if chunk_size <= 0:
        typer.echo(f"Error: Chunk size must be positive, got {chunk_size}", err=True)
        raise typer.Exit(2)
    if not path.is_file():
        typer.echo(f"Error: Capture file not found: {path}", err=True)
        raise typer.Exit(2)

    try:
        data = path.read_bytes()
        reassembler = StreamReassembler(
            resolve_direction(direction, src_port, port),
            build_options(validate, unknown_bits, overlay),
            get_default_dictionary(profile),
        )
        chunks = [data[i:i + chunk_size] for i in range(0, len(data), chunk_size)]
        count = _feed_all(reassembler, chunks, json_output, profile)
        logger.debug("Decoded %d message(s) from %s", count, path)
    except ValueError as e:
        typer.echo(f"Error: Invalid option: {e}", err=True)
        raise typer.Exit(2)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)

    _report_pending(reassembler)


@app.command()
def objects(
    profile: ProfileOption = "cmmo-st",
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """List the objects of the dictionary with their types and widths."""
    setup_logging(verbose)

    try:
        dictionary = get_default_dictionary(profile)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    rows = [
        {
            "index": obj.index,
            "key": obj.key,
            "name": obj.name,
            "type": obj.type.value,
            "width": obj.width,
            "decoder": obj.decoder.value,
        }
        for obj in dictionary
    ]
    if json_output:
        typer.echo(json.dumps(rows, indent=2))
        return
    for row in rows:
        typer.echo(f"{row['index']:>5}  {row['type']:<7} {row['width']}  {row['name']}")


@app.command()
def explain(
    obj: Annotated[str, typer.Argument(help="Object index (e.g. 1, 0x3c) or key (e.g. target_position)")],
    profile: ProfileOption = "cmmo-st",
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """Show how an object's value is decoded: type, width, wire data type and value labels."""
    setup_logging(verbose)

    try:
        defn = get_default_dictionary(profile).find(obj)
    except UnknownObjectError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    info = {
        "index": defn.index,
        "key": defn.key,
        "name": defn.name,
        "type": defn.type.value,
        "width": defn.width,
        "data_type": DATA_TYPE_NAMES[defn.type.data_type],
        "decoder": defn.decoder.value,
        "description": defn.description,
        "labels": {str(k): v for k, v in (defn.labels or {}).items()},
    }

    if json_output:
        typer.echo(json.dumps(info, indent=2))
    else:
        typer.echo(f"Object:       {info['name']} ({info['index']}, 0x{defn.index:03x})")
        typer.echo(f"Key:          {info['key']}")
        typer.echo(f"Type:         {info['type']} ({info['width']} bytes, {info['data_type']})")
        typer.echo(f"Decoder:      {info['decoder']}")
        typer.echo(f"Description:  {info['description']}")
        for k, v in info["labels"].items():
            typer.echo(f"  {k:>4} = {v}")


@app.command(name="build-read")
def build_read(
    obj: Annotated[str, typer.Argument(help="Object index or key to read")],
    message_id: MessageIdOption = 0,
    profile: ProfileOption = "cmmo-st",
    verbose: VerboseOption = False,
) -> None:
    """Print the hex of a Read CVE Object request."""
    setup_logging(verbose)

    try:
        defn = get_default_dictionary(profile).find(obj)
    except (UnknownObjectError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    typer.echo(encode_read_request(defn.index, message_id=message_id).hex())


@app.command(name="build-write")
def build_write(
    obj: Annotated[str, typer.Argument(help="Object index or key to write")],
    value: Annotated[str, typer.Argument(help="Value (decimal or 0x hex; negative allowed for signed objects)")],
    message_id: MessageIdOption = 0,
    profile: ProfileOption = "cmmo-st",
    verbose: VerboseOption = False,
) -> None:
    """Print the hex of a Write CVE Object request, encoding VALUE with the object's type."""
    setup_logging(verbose)

    try:
        dictionary = get_default_dictionary(profile)
        defn = dictionary.find(obj)
        parsed = parse_int(value)
        raw = encode_write_request(defn.index, parsed, message_id=message_id, dictionary=dictionary)
    except UnknownObjectError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except InvalidValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except ValueError as e:
        typer.echo(f"Error: Invalid value: {e}", err=True)
        raise typer.Exit(2)
    typer.echo(raw.hex())


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pyfesto-cve {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """pyfesto-cve - decode Festo Control Via Ethernet messages."""
    pass


if __name__ == "__main__":
    app()
