"""Tests for registry-to-transport bindings and value conversion."""

import pytest
from pysnmp.proto import rfc1902

from snmpreg.agent.binding import build_bindings, to_snmp_value
from snmpreg.core.errors import EvaluationError, UnknownOIDError
from snmpreg.core.models import ValueType
from snmpreg.core.registry import ValueRegistry

from .conftest import PREFIX


@pytest.mark.parametrize(
    "type_tag, value, expected_cls",
    [
        (ValueType.OCTET_STRING, "demo", rfc1902.OctetString),
        (ValueType.OCTET_STRING, b"\x00\x01", rfc1902.OctetString),
        (ValueType.INTEGER, 42, rfc1902.Integer32),
        (ValueType.COUNTER32, 7, rfc1902.Counter32),
        (ValueType.COUNTER64, 2 ** 40, rfc1902.Counter64),
        (ValueType.GAUGE32, 512, rfc1902.Gauge32),
        (ValueType.TIMETICKS, 100, rfc1902.TimeTicks),
        (ValueType.UNSIGNED32, 3, rfc1902.Unsigned32),
        (ValueType.IP_ADDRESS, "192.168.1.10", rfc1902.IpAddress),
        (ValueType.OBJECT_IDENTIFIER, "1.3.6.1.4.1.12345", rfc1902.ObjectIdentifier),
    ],
)
def test_to_snmp_value(type_tag, value, expected_cls) -> None:
    assert isinstance(to_snmp_value(type_tag, value), expected_cls)


def test_string_type_tag_is_accepted() -> None:
    assert int(to_snmp_value("Counter32", 5)) == 5


def test_octet_string_content() -> None:
    assert str(to_snmp_value(ValueType.OCTET_STRING, "demo")) == "demo"
    assert bytes(to_snmp_value(ValueType.OCTET_STRING, 12)) == b"12"


@pytest.mark.parametrize(
    "type_tag, value",
    [
        (ValueType.INTEGER, "not a number"),
        (ValueType.INTEGER, 2 ** 40),
        (ValueType.COUNTER32, -1),
        (ValueType.INTEGER, None),
        ("NoSuchType", 1),
    ],
)
def test_unrepresentable_values(type_tag, value) -> None:
    with pytest.raises(EvaluationError):
        to_snmp_value(type_tag, value)


def test_build_bindings_covers_every_entry(registry: ValueRegistry) -> None:
    registry.register_static(f"{PREFIX}.1.1.0", ValueType.OCTET_STRING, "demo")
    registry.register_dynamic(f"{PREFIX}.2.1.0", ValueType.GAUGE32, lambda: 64)

    bindings = build_bindings(registry)

    assert set(bindings) == {f"{PREFIX}.1.1.0", f"{PREFIX}.2.1.0"}
    assert bindings[f"{PREFIX}.2.1.0"].type_tag is ValueType.GAUGE32
    assert str(bindings[f"{PREFIX}.1.1.0"].get()) == "demo"
    assert int(bindings[f"{PREFIX}.2.1.0"].get()) == 64


def test_binding_reflects_later_registry_changes(registry: ValueRegistry) -> None:
    oid = f"{PREFIX}.1.1.0"
    registry.register_static(oid, ValueType.OCTET_STRING, "old")
    binding = build_bindings(registry)[oid]

    registry.register_static(oid, ValueType.INTEGER, 5)
    assert isinstance(binding.get(), rfc1902.Integer32)

    registry.unregister(oid)
    with pytest.raises(UnknownOIDError):
        binding.get()


def test_binding_propagates_producer_error(registry: ValueRegistry) -> None:
    oid = f"{PREFIX}.2.1.0"

    def failing():
        raise OSError("sensor offline")

    registry.register_dynamic(oid, ValueType.INTEGER, failing)
    with pytest.raises(OSError):
        build_bindings(registry)[oid].get()
