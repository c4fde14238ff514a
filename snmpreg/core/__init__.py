"""Core module containing the OID registry, models and configuration."""

from .errors import (
    SNMPRegistryError,
    ConfigurationError,
    NotFoundError,
    UnknownOIDError,
    EvaluationError,
)
from .models import ValueType, StaticEntry, DynamicEntry
from .oid import enterprise_prefix, to_absolute
from .registry import ValueRegistry
from .audit import AuditSink, LoggingAuditSink
from .config import Config, AgentConfig, LoggingConfig

__all__ = [
    "SNMPRegistryError",
    "ConfigurationError",
    "NotFoundError",
    "UnknownOIDError",
    "EvaluationError",
    "ValueType",
    "StaticEntry",
    "DynamicEntry",
    "enterprise_prefix",
    "to_absolute",
    "ValueRegistry",
    "AuditSink",
    "LoggingAuditSink",
    "Config",
    "AgentConfig",
    "LoggingConfig",
]
