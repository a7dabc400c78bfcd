"""Exceptions for pyfesto-cve: dictionary lookups, short buffers, encoding and CLI input.

Decoding itself never raises for malformed content; problems found while decoding
are reported as Diagnostic records on the decoded message instead.
"""


class PyFestoCVEError(Exception):
    """Base exception for pyfesto-cve."""

    pass


class UnknownObjectError(PyFestoCVEError):
    """Raised when an object index is not in the current profile's dictionary."""

    def __init__(self, index: int, message: str | None = None) -> None:
        self.index = index
        self._msg = message or f"Unknown object index: {index} (0x{index:03X})"
        super().__init__(self._msg)


class IncompleteMessageError(PyFestoCVEError):
    """Raised when decode_message is handed fewer bytes than a CVE header."""

    def __init__(self, needed: int, message: str | None = None) -> None:
        self.needed = needed
        self._msg = message or f"Incomplete message: {needed} more byte(s) required"
        super().__init__(self._msg)


class InvalidValueError(PyFestoCVEError):
    """Raised when a value cannot be encoded with the object's data type."""

    def __init__(
        self,
        value: int,
        message: str,
        *,
        index: int | None = None,
    ) -> None:
        self.value = value
        self.index = index
        super().__init__(message)


class InvalidHexError(PyFestoCVEError):
    """Raised when a hex dump given on the command line cannot be parsed."""

    def __init__(self, text: str, message: str | None = None) -> None:
        self.text = text
        self._msg = message or f"Invalid hex data: {text!r}"
        super().__init__(self._msg)
