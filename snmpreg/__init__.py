"""Embeddable SNMP agent exposing host values under an enterprise OID subtree."""

from .core import (
    AgentConfig,
    AuditSink,
    Config,
    ConfigurationError,
    DynamicEntry,
    EvaluationError,
    LoggingAuditSink,
    NotFoundError,
    SNMPRegistryError,
    StaticEntry,
    UnknownOIDError,
    ValueRegistry,
    ValueType,
    enterprise_prefix,
    to_absolute,
)
from .agent import SNMPAgent

__version__ = "0.1.0"

__all__ = [
    "AgentConfig",
    "AuditSink",
    "Config",
    "ConfigurationError",
    "DynamicEntry",
    "EvaluationError",
    "LoggingAuditSink",
    "NotFoundError",
    "SNMPAgent",
    "SNMPRegistryError",
    "StaticEntry",
    "UnknownOIDError",
    "ValueRegistry",
    "ValueType",
    "enterprise_prefix",
    "to_absolute",
]
