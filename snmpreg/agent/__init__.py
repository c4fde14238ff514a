"""SNMP Agent module serving registry values via SNMP."""

from .snmp_agent import SNMPAgent
from .binding import Binding, build_bindings, to_snmp_value

__all__ = ["SNMPAgent", "Binding", "build_bindings", "to_snmp_value"]
