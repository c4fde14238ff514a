"""
Error types raised by the registry and the agent.
"""


class SNMPRegistryError(Exception):
    """Base class for all registry errors."""


class ConfigurationError(SNMPRegistryError):
    """Agent configuration is unusable (missing PEN, bad listen address)."""


class NotFoundError(SNMPRegistryError):
    """Raised when unregistering an OID that has no entry."""

    def __init__(self, oid: str):
        super().__init__(f"OID not found: {oid}")
        self.oid = oid


class UnknownOIDError(SNMPRegistryError):
    """Raised by a lookup when no entry matches the requested OID."""

    def __init__(self, oid: str):
        super().__init__(f"No such object: {oid}")
        self.oid = oid


class EvaluationError(SNMPRegistryError):
    """
    Failure while producing a value for a query.

    Producers may raise this (or any other exception); the registry
    passes whatever a producer raised through unchanged.
    """
