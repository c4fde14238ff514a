"""
OID value registry.

Maps absolute OIDs to either a static value or a producer that is
evaluated on every query. Safe to use from many query threads while
the owning process registers and unregisters entries.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from .audit import AuditSink, LoggingAuditSink
from .errors import NotFoundError, UnknownOIDError
from .models import DynamicEntry, Entry, Producer, StaticEntry, ValueType
from .oid import enterprise_prefix
from .rwlock import ReadWriteLock


logger = logging.getLogger(__name__)


class ValueRegistry:
    """
    Concurrency-safe store of static and dynamic OID entries.

    At most one entry exists per OID; registering an OID again replaces
    the previous entry whatever its variant (last registration wins).

    Both maps are guarded by one reader/writer lock. Lookups share the
    lock, so producers of different OIDs run in parallel, and a producer
    is always invoked while the shared lock is held: a producer that
    blocks holds off every registration until it returns. Producers must
    therefore be quick and must never call back into the registry.
    """

    def __init__(self, pen: int, audit: Optional[AuditSink] = None):
        self._prefix = enterprise_prefix(pen)
        self._pen = pen
        self._audit = audit or LoggingAuditSink()
        self._static: Dict[str, StaticEntry] = {}
        self._dynamic: Dict[str, DynamicEntry] = {}
        self._lock = ReadWriteLock()
        self._listeners: List[Callable[[], None]] = []
        self._listeners_lock = threading.Lock()

    @property
    def prefix(self) -> str:
        """Enterprise prefix, e.g. 1.3.6.1.4.1.<PEN>."""
        return self._prefix

    @property
    def pen(self) -> int:
        return self._pen

    # -- mutation -------------------------------------------------------

    def register_static(self, oid: str, type_tag: ValueType, value: Any):
        """Insert or replace a static entry."""
        entry = StaticEntry(oid=oid, type_tag=type_tag, value=value)
        with self._lock.write_locked():
            previous = self._replace(oid)
            self._static[oid] = entry
        self._warn_overwrite(oid, previous)
        self._audit(
            logging.INFO,
            "Registered static OID",
            oid=oid,
            type=type_tag,
            value=value,
        )
        self._notify()

    def register_dynamic(self, oid: str, type_tag: ValueType, producer: Producer):
        """Insert or replace a dynamic entry evaluated on every query."""
        if not callable(producer):
            raise TypeError(f"producer for {oid} must be callable, got {producer!r}")
        entry = DynamicEntry(oid=oid, type_tag=type_tag, producer=producer)
        with self._lock.write_locked():
            previous = self._replace(oid)
            self._dynamic[oid] = entry
        self._warn_overwrite(oid, previous)
        self._audit(logging.INFO, "Registered dynamic OID", oid=oid, type=type_tag)
        self._notify()

    def unregister(self, oid: str):
        """
        Remove the entry at an OID.

        Raises:
            NotFoundError: if neither a static nor a dynamic entry exists
        """
        with self._lock.write_locked():
            removed_static = self._static.pop(oid, None)
            removed_dynamic = self._dynamic.pop(oid, None)

        if removed_static is None and removed_dynamic is None:
            self._audit(logging.WARNING, "OID not found for unregistration", oid=oid)
            raise NotFoundError(oid)

        removed = removed_static or removed_dynamic
        self._audit(logging.INFO, "Unregistered OID", oid=oid, kind=removed.kind)
        self._notify()

    def _replace(self, oid: str) -> Optional[str]:
        """Drop any existing entry for oid and return its kind. Caller holds the write lock."""
        previous = self._static.pop(oid, None) or self._dynamic.pop(oid, None)
        return previous.kind if previous is not None else None

    def _warn_overwrite(self, oid: str, previous: Optional[str]):
        if previous is not None:
            self._audit(
                logging.WARNING,
                "OID already registered, overwriting",
                oid=oid,
                previous=previous,
            )

    # -- lookup ---------------------------------------------------------

    def get(self, oid: str) -> Any:
        """
        Resolve the current value of an OID.

        See resolve() for the evaluation rules.

        Raises:
            UnknownOIDError: if no entry is registered at oid
        """
        return self.resolve(oid)[1]

    def resolve(self, oid: str) -> Tuple[ValueType, Any]:
        """
        Resolve an OID to its (type tag, current value).

        A static entry returns its stored value. A dynamic entry has its
        producer invoked synchronously, under the shared lock, and any
        exception the producer raises propagates unchanged.

        Raises:
            UnknownOIDError: if no entry is registered at oid
        """
        with self._lock.read_locked():
            entry = self._static.get(oid)
            if entry is not None:
                return entry.type_tag, entry.value
            dynamic = self._dynamic.get(oid)
            if dynamic is None:
                raise UnknownOIDError(oid)
            return dynamic.type_tag, dynamic.resolve()

    def lookup(self, oid: str) -> Optional[Entry]:
        """Get the entry registered at oid, if any."""
        with self._lock.read_locked():
            return self._static.get(oid) or self._dynamic.get(oid)

    def list_oids(self) -> Dict[str, str]:
        """Snapshot of every registered OID and its variant ("static" or "dynamic")."""
        with self._lock.read_locked():
            result = {oid: "dynamic" for oid in self._dynamic}
            result.update({oid: "static" for oid in self._static})
            return result

    def entries(self) -> List[Entry]:
        """Consistent snapshot of all entries."""
        with self._lock.read_locked():
            return list(self._static.values()) + list(self._dynamic.values())

    # -- change notification -------------------------------------------

    def add_listener(self, callback: Callable[[], None]):
        """Call callback (with no arguments) after every successful mutation."""
        with self._listeners_lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]):
        with self._listeners_lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _notify(self):
        with self._listeners_lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback()
            except Exception as e:
                logger.error(f"Registry listener {callback!r} failed: {e}", exc_info=True)

    def __contains__(self, oid: str) -> bool:
        with self._lock.read_locked():
            return oid in self._static or oid in self._dynamic

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._static) + len(self._dynamic)
