"""
OID namespace helpers.

Builds the enterprise prefix from a Private Enterprise Number and
turns relative OID fragments into absolute dotted OIDs.
"""

from typing import Tuple

from .errors import ConfigurationError


ENTERPRISES_OID = "1.3.6.1.4.1"


def enterprise_prefix(pen: int) -> str:
    """
    Derive the enterprise subtree for a Private Enterprise Number.

    Args:
        pen: IANA Private Enterprise Number (must be a positive integer)

    Returns:
        Dotted prefix, e.g. "1.3.6.1.4.1.12345"
    """
    if isinstance(pen, bool) or not isinstance(pen, int):
        raise ConfigurationError(
            f"PEN (Private Enterprise Number) must be an integer, got {pen!r}"
        )
    if pen <= 0:
        raise ConfigurationError("PEN (Private Enterprise Number) is required")
    return f"{ENTERPRISES_OID}.{pen}"


def to_absolute(prefix: str, relative: str) -> str:
    """
    Join a relative OID fragment onto a prefix.

    The fragment is used verbatim; nothing beyond emptiness is checked.
    """
    if not relative:
        raise ValueError("relative OID must not be empty")
    return f"{prefix}.{relative}"


def is_numeric_oid(oid: str) -> bool:
    """Check whether every component of a dotted OID is a decimal number."""
    parts = oid.strip(".").split(".")
    return bool(oid.strip(".")) and all(p.isdigit() for p in parts)


def oid_to_tuple(oid_string: str) -> Tuple[int, ...]:
    """Convert OID string to tuple of integers."""
    return tuple(int(x) for x in oid_string.split(".") if x)


def tuple_to_oid(oid_tuple: tuple) -> str:
    """Convert OID tuple to string."""
    return ".".join(str(x) for x in oid_tuple)
