"""Constant-field checks that yield advisory diagnostics instead of raising."""

from .types import Diagnostic, Severity


def check_equals(
    observed: int | None,
    expected: int,
    enabled: bool,
    *,
    offset: int = 0,
    field: str | None = None,
) -> Diagnostic | None:
    """
    Return a warning Diagnostic when validation is enabled and observed != expected.

    Returns None when validation is disabled, the values match, or the field was
    never decoded (observed is None).
    """
    if not enabled or observed is None or observed == expected:
        return None
    return Diagnostic(
        severity=Severity.WARNING,
        message=f"Field should always be {expected}",
        offset=offset,
        field=field,
        expected=expected,
    )


def truncated(field: str, offset: int, width: int, available: int) -> Diagnostic:
    """Diagnostic for a field that runs past the end of the bytes handed to the decoder."""
    return Diagnostic(
        severity=Severity.ERROR,
        message=f"Truncated: {width} byte(s) needed, {max(available, 0)} available",
        offset=offset,
        field=field,
    )
