"""
Audit events for registry changes.

Every registration, overwrite and unregistration is reported to an
audit sink as (level, message, fields). The default sink writes to
the standard logging tree.
"""

import logging
from typing import Any, Optional, Protocol


class AuditSink(Protocol):
    """Anything callable as sink(level, message, **fields)."""

    def __call__(self, level: int, message: str, **fields: Any) -> None:
        ...


class LoggingAuditSink:
    """
    Audit sink backed by a logging.Logger.

    Fields are appended to the message as key=value pairs and also
    attached to the record as ``audit_fields`` for structured handlers.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("snmpreg.audit")

    def __call__(self, level: int, message: str, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        rendered = " ".join(f"{key}={value}" for key, value in fields.items())
        text = f"{message} {rendered}" if rendered else message
        self.logger.log(level, text, extra={"audit_fields": dict(fields)})
