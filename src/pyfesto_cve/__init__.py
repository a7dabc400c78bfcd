"""pyfesto-cve: decoder for the Festo Control Via Ethernet (CVE) object read/write protocol."""

__version__ = "0.1.4"

from .bits import CONTROL_WORD_BITS, STATUS_WORD_BITS, decompose
from .decoder import decode_header, decode_message
from .direction import classify
from .encode import (
    encode_header,
    encode_read_request,
    encode_read_response,
    encode_value,
    encode_write_request,
    encode_write_response,
)
from .errors import (
    IncompleteMessageError,
    InvalidHexError,
    InvalidValueError,
    PyFestoCVEError,
    UnknownObjectError,
)
from .objdict import ObjectDictionary, get_default_dictionary
from .reassembly import ConnectionDecoder, StreamReassembler, frame_length, reassemble
from .render import format_message, message_to_dict, summarize
from .types import (
    BitCategory,
    DecodeOptions,
    Diagnostic,
    Direction,
    Message,
    NeedMoreBytes,
    ObjectDef,
    SemanticType,
    ServiceId,
)
from .validate import check_equals
from .values import decode_value

__all__ = [
    "__version__",
    "CONTROL_WORD_BITS",
    "STATUS_WORD_BITS",
    "decompose",
    "decode_header",
    "decode_message",
    "classify",
    "encode_header",
    "encode_read_request",
    "encode_read_response",
    "encode_value",
    "encode_write_request",
    "encode_write_response",
    "IncompleteMessageError",
    "InvalidHexError",
    "InvalidValueError",
    "PyFestoCVEError",
    "UnknownObjectError",
    "ObjectDictionary",
    "get_default_dictionary",
    "ConnectionDecoder",
    "StreamReassembler",
    "frame_length",
    "reassemble",
    "format_message",
    "message_to_dict",
    "summarize",
    "BitCategory",
    "DecodeOptions",
    "Diagnostic",
    "Direction",
    "Message",
    "NeedMoreBytes",
    "ObjectDef",
    "SemanticType",
    "ServiceId",
    "check_equals",
    "decode_value",
]
