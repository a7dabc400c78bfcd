"""Core data model: wire enums, object/bit descriptors, decoded message records, options."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Union

HEADER_LEN = 14
LENGTH_FIELD_OFFSET = 5
LENGTH_FIELD_WIDTH = 4
# Index, subindex and data type/reserved bytes that precede any object value
OBJECT_PREAMBLE_LEN = 4
DEFAULT_CVE_PORT = 49700


class ServiceId(IntEnum):
    """Service identifiers carried in the first header byte."""

    READ_OBJECT = 0x10
    WRITE_OBJECT = 0x11


class Direction(str, Enum):
    """Transfer direction; derived from the transport endpoints, never transmitted."""

    REQUEST = "request"
    RESPONSE = "response"


class DataType(IntEnum):
    """Data type tags used in object payloads (table B.1)."""

    UINT32 = 0x02
    UINT16 = 0x03
    UINT08 = 0x04
    SINT32 = 0x06
    SINT16 = 0x07
    SINT08 = 0x08


class AckCode(IntEnum):
    """Acknowledge (result) codes in the header (table B.6)."""

    OK = 0x00
    NOT_SUPPORTED = 0x01
    INVALID_LENGTH = 0x03
    RANGE_VIOLATED = 0xA0
    INVALID_INDEX = 0xA2
    INVALID_SUBINDEX = 0xA3
    NO_READ = 0xA4
    NO_WRITE = 0xA5
    NO_WRITE_IN_OPERATION = 0xA6
    NO_HIGHER_ORDER_CONTROL = 0xA7
    VALUE_BELOW_LOWER_BOUND = 0xA9
    VALUE_ABOVE_UPPER_BOUND = 0xAA
    VALUE_NOT_IN_SET = 0xAB
    WRONG_DATA_TYPE = 0xAC
    PASSWORD_PROTECTED = 0xAD


SERVICE_NAMES: dict[int, str] = {
    ServiceId.READ_OBJECT: "Read CVE Object",
    ServiceId.WRITE_OBJECT: "Write CVE Object",
}

DATA_TYPE_NAMES: dict[int, str] = {
    DataType.UINT32: "UINT32",
    DataType.UINT16: "UINT16",
    DataType.UINT08: "UINT08",
    DataType.SINT32: "SINT32",
    DataType.SINT16: "SINT16",
    DataType.SINT08: "SINT08",
}

ACK_DESCRIPTIONS: dict[int, str] = {
    AckCode.OK: "Everything OK / Unused",
    AckCode.NOT_SUPPORTED: "Service not supported",
    AckCode.INVALID_LENGTH: "User data length invalid",
    AckCode.RANGE_VIOLATED: "Write error, range other CVE object violated",
    AckCode.INVALID_INDEX: "Invalid object index",
    AckCode.INVALID_SUBINDEX: "Invalid object sub index",
    AckCode.NO_READ: "Read error, object cannot be read",
    AckCode.NO_WRITE: "Write error, object cannot be written",
    AckCode.NO_WRITE_IN_OPERATION: "Write error, drive in 'Operation Enabled' status",
    AckCode.NO_HIGHER_ORDER_CONTROL: "Write error, no higher-order control",
    AckCode.VALUE_BELOW_LOWER_BOUND: "Write error, value < lower bound",
    AckCode.VALUE_ABOVE_UPPER_BOUND: "Write error, value > upper bound",
    AckCode.VALUE_NOT_IN_SET: "Write error, value not within valid set",
    AckCode.WRONG_DATA_TYPE: "Write error, data type incorrect",
    AckCode.PASSWORD_PROTECTED: "Write error, object password protected",
}


class SemanticType(str, Enum):
    """Integer interpretation of an object value."""

    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    SINT8 = "sint8"
    SINT16 = "sint16"
    SINT32 = "sint32"

    @property
    def width(self) -> int:
        return {"8": 1, "16": 2, "32": 4}[self.value[4:]]

    @property
    def signed(self) -> bool:
        return self.value.startswith("s")

    @property
    def data_type(self) -> DataType:
        return _SEMANTIC_TO_DATA_TYPE[self]

    def bounds(self) -> tuple[int, int]:
        bits = self.width * 8
        if self.signed:
            return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        return 0, (1 << bits) - 1


_SEMANTIC_TO_DATA_TYPE: dict[SemanticType, DataType] = {
    SemanticType.UINT8: DataType.UINT08,
    SemanticType.UINT16: DataType.UINT16,
    SemanticType.UINT32: DataType.UINT32,
    SemanticType.SINT8: DataType.SINT08,
    SemanticType.SINT16: DataType.SINT16,
    SemanticType.SINT32: DataType.SINT32,
}


class ValueDecoder(str, Enum):
    """How an object's value bytes are interpreted."""

    SCALAR = "scalar"
    STATUS_WORD = "status_word"
    CONTROL_WORD = "control_word"


@dataclass(frozen=True)
class ObjectDef:
    """Object dictionary entry: index, names, semantic type, width and optional value labels."""

    index: int
    key: str
    name: str
    type: SemanticType
    width: int
    decoder: ValueDecoder = ValueDecoder.SCALAR
    description: str = ""
    labels: dict[int, str] | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.index <= 0xFFFF:
            raise ValueError(f"index must fit in 16 bits, got {self.index}")
        if self.width != self.type.width:
            raise ValueError(
                f"width {self.width} does not match type {self.type.value} for object {self.index}"
            )
        if self.decoder is not ValueDecoder.SCALAR and self.type is not SemanticType.UINT32:
            raise ValueError(f"bit-field object {self.index} must be uint32, got {self.type.value}")

    @property
    def is_bitfield(self) -> bool:
        return self.decoder is not ValueDecoder.SCALAR


class BitCategory(str, Enum):
    DEFINED = "defined"
    OVERLAY = "overlay"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class BitDefinition:
    position: int
    key: str
    name: str
    category: BitCategory = BitCategory.DEFINED

    def __post_init__(self) -> None:
        if not 0 <= self.position <= 31:
            raise ValueError(f"bit position must be 0..31, got {self.position}")


@dataclass(frozen=True)
class BitFlag:
    """One decomposed bit: the definition it came from plus its value (0 or 1)."""

    position: int
    key: str
    name: str
    category: BitCategory
    value: int


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """Advisory note attached to a decoded field; never alters the decoded value."""

    severity: Severity
    message: str
    offset: int
    field: str | None = None
    expected: int | None = None


@dataclass(frozen=True)
class DecodeOptions:
    """The three behavioural switches consumed by the decoder (all off by default)."""

    enable_validation: bool = False
    include_unknown_bits: bool = False
    add_alternate_bit_overlay: bool = False


@dataclass
class DecodeContext:
    """Scratch state for decoding exactly one message; built fresh per message."""

    data_length: int
    direction: Direction
    options: DecodeOptions
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def note(self, diagnostic: Diagnostic | None) -> None:
        if diagnostic is not None:
            self.diagnostics.append(diagnostic)


@dataclass(frozen=True)
class NeedMoreBytes:
    """Framing result: `needed` more bytes must arrive before the message at `offset` completes."""

    needed: int
    offset: int = 0


@dataclass(frozen=True)
class Header:
    service_id: int
    message_id: int
    data_length: int
    ack: int
    reserved: int
    offset: int = 0

    @property
    def service(self) -> ServiceId | None:
        try:
            return ServiceId(self.service_id)
        except ValueError:
            return None

    @property
    def ack_code(self) -> AckCode | None:
        try:
            return AckCode(self.ack)
        except ValueError:
            return None

    @property
    def total_length(self) -> int:
        return HEADER_LEN + self.data_length


@dataclass(frozen=True)
class ScalarValue:
    obj: ObjectDef
    value: int
    raw: bytes
    offset: int

    @property
    def label(self) -> str | None:
        if self.obj.labels is None:
            return None
        return self.obj.labels.get(self.value)


@dataclass(frozen=True)
class BitfieldValue:
    obj: ObjectDef
    value: int
    flags: tuple[BitFlag, ...]
    raw: bytes
    offset: int

    def flag(self, key: str) -> BitFlag | None:
        for f in self.flags:
            if f.key == key:
                return f
        return None


@dataclass(frozen=True)
class UnknownValue:
    raw: bytes
    offset: int


ObjectValue = Union[ScalarValue, BitfieldValue, UnknownValue]


@dataclass(frozen=True)
class ReadObjectRequest:
    object_index: int | None
    object_subindex: int | None
    reserved: int | None


@dataclass(frozen=True)
class ReadObjectResponse:
    object_index: int | None
    object_subindex: int | None
    data_type: int | None
    value: ObjectValue | None


@dataclass(frozen=True)
class WriteObjectRequest:
    object_index: int | None
    object_subindex: int | None
    data_type: int | None
    value: ObjectValue | None


@dataclass(frozen=True)
class WriteObjectResponse:
    object_index: int | None
    object_subindex: int | None
    data_type: int | None


@dataclass(frozen=True)
class UnhandledPayload:
    data: bytes
    offset: int


Payload = Union[
    ReadObjectRequest,
    ReadObjectResponse,
    WriteObjectRequest,
    WriteObjectResponse,
    UnhandledPayload,
]


@dataclass(frozen=True)
class Message:
    """A fully decoded CVE message as handed to the rendering sink."""

    header: Header
    direction: Direction
    payload: Payload
    diagnostics: tuple[Diagnostic, ...] = ()
    offset: int = 0
    length: int = HEADER_LEN

    @property
    def object_index(self) -> int | None:
        return getattr(self.payload, "object_index", None)

    @property
    def value(self) -> ObjectValue | None:
        return getattr(self.payload, "value", None)

    def diagnostics_for(self, field_name: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.field == field_name]
