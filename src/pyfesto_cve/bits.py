"""Status Word / Control Word bit tables and the generic bit-field decomposition."""

from typing import Iterable

from .types import BitCategory, BitDefinition, BitFlag, DecodeOptions, ValueDecoder

_DEF = BitCategory.DEFINED
_OVL = BitCategory.OVERLAY
_UNK = BitCategory.UNKNOWN

# Status word: table B.10, with the CiA 402 meanings as overlay on otherwise-unused positions
STATUS_WORD_BITS: tuple[BitDefinition, ...] = (
    BitDefinition(0, "rtso", "Ready to switch on", _DEF),
    BitDefinition(1, "so", "Switched on", _DEF),
    BitDefinition(2, "oe", "Operation enabled", _DEF),
    BitDefinition(3, "f", "Fault", _DEF),
    BitDefinition(4, "ve", "Voltage enabled (CiA 402)", _OVL),
    BitDefinition(5, "qs", "Quick stop", _DEF),
    BitDefinition(6, "sod", "Switch on disabled", _DEF),
    BitDefinition(7, "w", "Warning", _DEF),
    BitDefinition(8, "mov", "Move", _DEF),
    BitDefinition(9, "rem", "Remote (CiA 402)", _OVL),
    BitDefinition(10, "tr", "Target reached", _DEF),
    BitDefinition(11, "ila", "Internal limit active (CiA 402)", _OVL),
    BitDefinition(12, "sack", "Setpoint acknowledge", _DEF),
    BitDefinition(13, "oms1", "Operation mode specific bit 1 (CiA 402)", _OVL),
    BitDefinition(14, "mfg1", "Manufacturer specific (CiA 402)", _OVL),
    BitDefinition(15, "ar", "Referenced", _DEF),
    *(BitDefinition(pos, f"unk{pos - 16:02d}", f"Unknown (bit {pos})", _UNK) for pos in range(16, 30)),
    BitDefinition(30, "dpb", "Direction + blocked", _DEF),
    BitDefinition(31, "dnb", "Direction - blocked", _DEF),
)

# Control word: table B.9
CONTROL_WORD_BITS: tuple[BitDefinition, ...] = (
    BitDefinition(0, "so", "Switch on", _DEF),
    BitDefinition(1, "ev", "Enable voltage", _DEF),
    BitDefinition(2, "qs", "Quick stop", _DEF),
    BitDefinition(3, "eo", "Enable operation", _DEF),
    BitDefinition(4, "st", "Start", _DEF),
    BitDefinition(6, "pson", "Power stage on after reset", _DEF),
    BitDefinition(7, "fr", "Error reset", _DEF),
    BitDefinition(8, "stp", "Stop", _DEF),
)

BIT_TABLES: dict[ValueDecoder, tuple[BitDefinition, ...]] = {
    ValueDecoder.STATUS_WORD: STATUS_WORD_BITS,
    ValueDecoder.CONTROL_WORD: CONTROL_WORD_BITS,
}


def decompose(
    raw: int,
    definitions: Iterable[BitDefinition],
    include_unknown: bool = False,
    include_overlay: bool = False,
) -> list[BitFlag]:
    """
    Split a 32-bit value into named flags, ordered by ascending bit position.

    - Defined bits are always present.
    - Overlay bits only with include_overlay, and never at a position that has a
      Defined meaning.
    - Unknown bits only with include_unknown.
    """
    defs = list(definitions)
    defined_positions = {d.position for d in defs if d.category is BitCategory.DEFINED}
    flags: list[BitFlag] = []
    for d in defs:
        if d.category is BitCategory.OVERLAY:
            if not include_overlay or d.position in defined_positions:
                continue
        elif d.category is BitCategory.UNKNOWN and not include_unknown:
            continue
        flags.append(BitFlag(d.position, d.key, d.name, d.category, (raw >> d.position) & 1))
    flags.sort(key=lambda f: (f.position, f.category is not BitCategory.DEFINED))
    return flags


def decompose_word(raw: int, decoder: ValueDecoder, options: DecodeOptions) -> list[BitFlag]:
    """Decompose a Status Word or Control Word according to the decode options."""
    return decompose(
        raw,
        BIT_TABLES[decoder],
        include_unknown=options.include_unknown_bits,
        include_overlay=options.add_alternate_bit_overlay,
    )
