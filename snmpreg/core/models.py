"""
Registry entry models.

An entry binds an absolute OID to either a stored value or a
producer that computes the value on every query.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Union


Producer = Callable[[], Any]


class ValueType(str, Enum):
    """SNMP type tag attached to an entry at registration time."""

    OCTET_STRING = "OctetString"
    INTEGER = "Integer32"
    COUNTER32 = "Counter32"
    COUNTER64 = "Counter64"
    GAUGE32 = "Gauge32"
    TIMETICKS = "TimeTicks"
    IP_ADDRESS = "IpAddress"
    OBJECT_IDENTIFIER = "ObjectIdentifier"
    UNSIGNED32 = "Unsigned32"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StaticEntry:
    """Entry holding a value fixed at registration."""

    oid: str
    type_tag: ValueType
    value: Any

    kind = "static"

    def resolve(self) -> Any:
        return self.value


@dataclass(frozen=True)
class DynamicEntry:
    """Entry whose value is produced fresh on every query."""

    oid: str
    type_tag: ValueType
    producer: Producer

    kind = "dynamic"

    def resolve(self) -> Any:
        return self.producer()


Entry = Union[StaticEntry, DynamicEntry]
