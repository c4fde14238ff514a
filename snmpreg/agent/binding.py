"""
Registry-to-transport bindings.

The SNMP responder does not read the registry maps directly. It holds
a set of bindings, one per registered OID, each with a callback that
resolves the OID through the registry and converts the result to a
pysnmp value. The set is rebuilt whenever the registry changes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict

from pyasn1.error import PyAsn1Error
from pysnmp.proto import rfc1902

from ..core.errors import EvaluationError, UnknownOIDError
from ..core.models import ValueType
from ..core.registry import ValueRegistry


logger = logging.getLogger(__name__)


def _octet_string(value: Any):
    if isinstance(value, (bytes, bytearray)):
        return rfc1902.OctetString(bytes(value))
    return rfc1902.OctetString(str(value))


_CONVERTERS: Dict[ValueType, Callable[[Any], Any]] = {
    ValueType.OCTET_STRING: _octet_string,
    ValueType.INTEGER: lambda v: rfc1902.Integer32(int(v)),
    ValueType.COUNTER32: lambda v: rfc1902.Counter32(int(v)),
    ValueType.COUNTER64: lambda v: rfc1902.Counter64(int(v)),
    ValueType.GAUGE32: lambda v: rfc1902.Gauge32(int(v)),
    ValueType.TIMETICKS: lambda v: rfc1902.TimeTicks(int(v)),
    ValueType.UNSIGNED32: lambda v: rfc1902.Unsigned32(int(v)),
    ValueType.IP_ADDRESS: lambda v: rfc1902.IpAddress(str(v)),
    ValueType.OBJECT_IDENTIFIER: lambda v: rfc1902.ObjectIdentifier(str(v)),
}


def to_snmp_value(type_tag: Any, value: Any):
    """
    Convert a Python value to the pysnmp object for a type tag.

    Args:
        type_tag: ValueType member (or its string value, e.g. "Counter32")
        value: value returned by the registry

    Returns:
        rfc1902 value instance

    Raises:
        EvaluationError: unknown tag, or value not representable as the tag
    """
    try:
        tag = ValueType(type_tag)
    except ValueError:
        raise EvaluationError(f"Unsupported SNMP type tag: {type_tag!r}")

    if value is None:
        raise EvaluationError(f"No value to encode as {tag}")

    try:
        return _CONVERTERS[tag](value)
    except (PyAsn1Error, TypeError, ValueError) as e:
        raise EvaluationError(f"Cannot encode {value!r} as {tag}: {e}") from e


@dataclass(frozen=True)
class Binding:
    """One OID as seen by the transport."""

    oid: str
    type_tag: ValueType
    get: Callable[[], Any]


def _make_getter(registry: ValueRegistry, oid: str) -> Callable[[], Any]:
    def on_get():
        logger.debug(f"GET request oid={oid}")
        try:
            type_tag, value = registry.resolve(oid)
            snmp_value = to_snmp_value(type_tag, value)
        except UnknownOIDError:
            raise
        except Exception as e:
            logger.error(f"Handler error oid={oid}: {e}")
            raise
        logger.debug(f"GET response oid={oid} value={value!r}")
        return snmp_value

    return on_get


def build_bindings(registry: ValueRegistry) -> Dict[str, Binding]:
    """Build one binding per registered OID from a registry snapshot."""
    bindings = {
        entry.oid: Binding(
            oid=entry.oid,
            type_tag=entry.type_tag,
            get=_make_getter(registry, entry.oid),
        )
        for entry in registry.entries()
    }
    logger.debug(f"Bindings rebuilt: {len(bindings)} OIDs")
    return bindings
