"""Tests for port-based request/response classification."""

import pytest

from pyfesto_cve import classify
from pyfesto_cve.direction import is_request
from pyfesto_cve.types import DEFAULT_CVE_PORT, Direction


@pytest.mark.parametrize(
    ("src", "dst", "expected"),
    [
        (51234, 49700, Direction.REQUEST),
        (49700, 51234, Direction.RESPONSE),
        (49700, 49700, Direction.RESPONSE),
        (1000, 2000, Direction.REQUEST),
    ],
)
def test_classify_by_source_port(src: int, dst: int, expected: Direction) -> None:
    assert classify(src, dst) is expected


def test_custom_port() -> None:
    assert classify(5000, 49700, well_known_port=5000) is Direction.RESPONSE
    assert classify(49700, 5000, well_known_port=5000) is Direction.REQUEST


def test_is_request() -> None:
    assert DEFAULT_CVE_PORT == 49700
    assert is_request(40000, DEFAULT_CVE_PORT)
    assert not is_request(DEFAULT_CVE_PORT, 40000)
