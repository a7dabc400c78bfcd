"""Request/response classification from transport endpoint ports."""

from .types import DEFAULT_CVE_PORT, Direction


def classify(src_port: int, dst_port: int, well_known_port: int = DEFAULT_CVE_PORT) -> Direction:
    """
    Classify one message by the ports of the segment that carried it.

    Only the source port matters: the device answers from its fixed service port,
    so anything sent from that port is a response. dst_port is accepted so callers
    can pass both endpoints of the segment as they see them.
    """
    if src_port == well_known_port:
        return Direction.RESPONSE
    return Direction.REQUEST


def is_request(src_port: int, dst_port: int, well_known_port: int = DEFAULT_CVE_PORT) -> bool:
    return classify(src_port, dst_port, well_known_port) is Direction.REQUEST
