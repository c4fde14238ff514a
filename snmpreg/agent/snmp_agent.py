"""
SNMP Agent.

Exposes the values held in a ValueRegistry to SNMP managers over UDP.
Answers SNMPv1/v2c GET, GETNEXT and GETBULK requests; every other
PDU type is ignored.
"""

import asyncio
import bisect
import functools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from pyasn1.codec.ber import decoder, encoder
from pysnmp.proto import api, rfc1902, rfc1905

from .binding import Binding, build_bindings
from ..core.audit import AuditSink
from ..core.config import AgentConfig
from ..core.errors import UnknownOIDError
from ..core.models import Producer, ValueType
from ..core.oid import is_numeric_oid, oid_to_tuple, to_absolute, tuple_to_oid
from ..core.registry import ValueRegistry


logger = logging.getLogger(__name__)

# SNMP error-status codes (RFC 3416)
NO_SUCH_NAME = 2
GEN_ERR = 5

MAX_BULK_VAR_BINDS = 1000


class _SNMPProtocol(asyncio.DatagramProtocol):
    """UDP protocol handler for SNMP requests."""

    def __init__(self, agent: "SNMPAgent"):
        self.agent = agent
        self.transport = None

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data, addr):
        self.agent._dispatch(data, addr)

    def error_received(self, exc):
        self.agent.logger.error(f"SNMP UDP error: {exc}")


class _BindingView:
    """Immutable snapshot of the bindings plus their OID ordering."""

    def __init__(self, bindings: Dict[str, Binding]):
        self.bindings = bindings
        ordered = sorted(
            (oid_to_tuple(oid), oid) for oid in bindings if is_numeric_oid(oid)
        )
        self.keys: List[Tuple[int, ...]] = [key for key, _ in ordered]
        self.oids: List[str] = [oid for _, oid in ordered]


class _RequestFailed(Exception):
    """A var-bind could not be answered; aborts the whole PDU."""

    def __init__(self, status: int, index: int):
        super().__init__(status, index)
        self.status = status
        self.index = index


class SNMPAgent:
    """
    SNMP agent serving a value registry.

    Host code registers static values and producers, relative to the
    enterprise prefix or by absolute OID, before or after start().
    Each inbound request is answered on a worker thread, so a slow
    producer only delays its own query.
    """

    def __init__(
        self,
        config: AgentConfig,
        audit: Optional[AuditSink] = None,
        max_workers: int = 8,
    ):
        config = config.with_defaults()
        config.validate()
        self.config = config
        self.registry = ValueRegistry(config.pen, audit=audit)
        self.max_workers = max_workers

        # Per-agent logger so log_level never touches the host's logging tree
        self.logger = logger.getChild(f"pen{config.pen}")
        level = logging.getLevelName(str(config.log_level).upper())
        if isinstance(level, int):
            self.logger.setLevel(level)

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._udp_transport = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._running = False
        self._start_time = time.time()
        self._view = _BindingView({})
        self._view_lock = threading.Lock()
        self.registry.add_listener(self._sync_bindings)

        self.logger.info(
            f"SNMP Agent initialized pen={config.pen} "
            f"prefix={self.registry.prefix} listen={config.listen_addr}"
        )

    # -- registration ---------------------------------------------------

    @property
    def prefix(self) -> str:
        """Enterprise OID prefix."""
        return self.registry.prefix

    def register(self, relative_oid: str, oid_type: ValueType, producer: Producer):
        """Register a producer under the enterprise prefix."""
        self.register_absolute(to_absolute(self.prefix, relative_oid), oid_type, producer)

    def register_absolute(self, oid: str, oid_type: ValueType, producer: Producer):
        """Register a producer at an absolute OID."""
        self.registry.register_dynamic(oid, oid_type, producer)

    def register_static(self, relative_oid: str, oid_type: ValueType, value: Any):
        """Register a static value under the enterprise prefix."""
        self.register_static_absolute(to_absolute(self.prefix, relative_oid), oid_type, value)

    def register_static_absolute(self, oid: str, oid_type: ValueType, value: Any):
        """Register a static value at an absolute OID."""
        self.registry.register_static(oid, oid_type, value)

    def unregister(self, relative_oid: str):
        """Remove an OID under the enterprise prefix. Raises NotFoundError."""
        self.unregister_absolute(to_absolute(self.prefix, relative_oid))

    def unregister_absolute(self, oid: str):
        """Remove an absolute OID. Raises NotFoundError."""
        self.registry.unregister(oid)

    def get(self, oid: str) -> Any:
        """Resolve an absolute OID through the registry."""
        return self.registry.get(oid)

    def list_oids(self) -> Dict[str, str]:
        """List all registered OIDs with their variant."""
        return self.registry.list_oids()

    # -- lifecycle ------------------------------------------------------

    async def start(self):
        """Bind the UDP socket and start answering requests."""
        if self._running:
            self.logger.warning("SNMP Agent already running")
            return

        host, port = self.config.listen_host_port()
        self.logger.info(f"Starting SNMP Agent on {host}:{port}")

        self._loop = asyncio.get_running_loop()
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="snmp-get"
        )
        self._sync_bindings()

        try:
            self._udp_transport, _ = await self._loop.create_datagram_endpoint(
                lambda: _SNMPProtocol(self),
                local_addr=(host, port),
            )
        except OSError as e:
            self.logger.error(f"Failed to start SNMP server: {e}")
            self._executor.shutdown(wait=False)
            self._executor = None
            raise

        self._running = True
        self._start_time = time.time()
        self.logger.info(f"SNMP Agent started successfully on {self.bound_address}")

    async def stop(self):
        """Stop the agent."""
        self.logger.info("Stopping SNMP Agent")
        self._running = False

        if self._udp_transport:
            self._udp_transport.close()
            self._udp_transport = None

        if self._executor:
            self._executor.shutdown(wait=False)
            self._executor = None

        self.logger.info("SNMP Agent stopped")

    @property
    def is_running(self) -> bool:
        """Check if the agent is running."""
        return self._running

    @property
    def uptime_seconds(self) -> float:
        """Get agent uptime in seconds."""
        return time.time() - self._start_time

    @property
    def bound_address(self) -> Optional[Tuple[str, int]]:
        """Address the UDP socket is bound to, once started."""
        if self._udp_transport is None:
            return None
        sockname = self._udp_transport.get_extra_info("sockname")
        return sockname[0], sockname[1]

    def _sync_bindings(self):
        """Rebuild the transport's binding set from the registry."""
        with self._view_lock:
            self._view = _BindingView(build_bindings(self.registry))

    # -- request dispatch -----------------------------------------------

    def _dispatch(self, data: bytes, addr):
        if not self._executor or not self._loop:
            return
        future = self._loop.run_in_executor(self._executor, self.handle_snmp_message, data)
        future.add_done_callback(functools.partial(self._send_response, addr))

    def _send_response(self, addr, future: asyncio.Future):
        if future.cancelled():
            return
        if future.exception() is not None:
            self.logger.error(f"SNMP request from {addr} failed: {future.exception()}")
            return
        response = future.result()
        if response and self._udp_transport:
            self._udp_transport.sendto(response, addr)

    # -- SNMP protocol handling -----------------------------------------

    def handle_snmp_message(self, data: bytes) -> Optional[bytes]:
        """Decode an SNMP request, resolve its OIDs, return the encoded response."""
        try:
            msg_ver = int(api.decodeMessageVersion(data))
            if msg_ver not in api.PROTOCOL_MODULES:
                self.logger.debug(f"Unsupported SNMP version: {msg_ver}")
                return None
            pMod = api.PROTOCOL_MODULES[msg_ver]

            req_msg, _ = decoder.decode(data, asn1Spec=pMod.Message())
            community = pMod.apiMessage.get_community(req_msg)
            if str(community) != self.config.community:
                self.logger.debug("Dropping request with unknown community")
                return None

            req_pdu = pMod.apiMessage.get_pdu(req_msg)
            var_binds = pMod.apiPDU.get_varbinds(req_pdu)
            is_v1 = msg_ver == api.SNMP_VERSION_1
            view = self._view

            # Build response scaffolding
            rsp_msg = pMod.Message()
            pMod.apiMessage.set_defaults(rsp_msg)
            pMod.apiMessage.set_community(rsp_msg, community)

            rsp_pdu = pMod.GetResponsePDU()
            pMod.apiPDU.set_defaults(rsp_pdu)
            pMod.apiPDU.set_request_id(rsp_pdu, pMod.apiPDU.get_request_id(req_pdu))

            try:
                if req_pdu.isSameTypeWith(pMod.GetRequestPDU()):
                    rsp_var_binds = self._handle_get(view, var_binds, is_v1)
                elif req_pdu.isSameTypeWith(pMod.GetNextRequestPDU()):
                    rsp_var_binds = self._handle_get_next(view, var_binds, is_v1)
                elif not is_v1 and req_pdu.isSameTypeWith(pMod.GetBulkRequestPDU()):
                    rsp_var_binds = self._handle_get_bulk(
                        view,
                        var_binds,
                        int(pMod.apiBulkPDU.get_non_repeaters(req_pdu)),
                        int(pMod.apiBulkPDU.get_max_repetitions(req_pdu)),
                    )
                else:
                    self.logger.debug(f"Ignoring unsupported PDU {req_pdu.__class__.__name__}")
                    return None
            except _RequestFailed as failure:
                pMod.apiPDU.set_error_status(rsp_pdu, failure.status)
                pMod.apiPDU.set_error_index(rsp_pdu, failure.index)
                rsp_var_binds = var_binds

            pMod.apiPDU.set_varbinds(rsp_pdu, rsp_var_binds)
            pMod.apiMessage.set_pdu(rsp_msg, rsp_pdu)
            return encoder.encode(rsp_msg)

        except Exception as e:
            self.logger.error(f"SNMP processing error: {e}", exc_info=True)
            return None

    def _evaluate(self, binding: Binding, index: int):
        """Run a binding's callback; None if the OID vanished since the last rebuild."""
        try:
            return binding.get()
        except UnknownOIDError:
            return None
        except Exception as e:
            raise _RequestFailed(GEN_ERR, index) from e

    def _handle_get(self, view: _BindingView, var_binds, is_v1: bool) -> list:
        rsp_var_binds = []
        for index, (oid, _) in enumerate(var_binds, start=1):
            binding = view.bindings.get(tuple_to_oid(tuple(oid)))
            if binding is None:
                value = None
                missing = rfc1905.noSuchObject
            else:
                # None here means it was unregistered after the view was built
                value = self._evaluate(binding, index)
                missing = rfc1905.noSuchInstance
            if value is None:
                if is_v1:
                    raise _RequestFailed(NO_SUCH_NAME, index)
                value = missing
            rsp_var_binds.append((oid, value))
        return rsp_var_binds

    def _next_after(self, view: _BindingView, oid_tuple: tuple, index: int):
        """Find the first answerable OID after oid_tuple, or None at the end of the view."""
        position = bisect.bisect_right(view.keys, oid_tuple)
        while position < len(view.keys):
            oid_str = view.oids[position]
            value = self._evaluate(view.bindings[oid_str], index)
            if value is not None:
                return oid_str, value
            position += 1
        return None

    def _handle_get_next(self, view: _BindingView, var_binds, is_v1: bool) -> list:
        rsp_var_binds = []
        for index, (oid, _) in enumerate(var_binds, start=1):
            found = self._next_after(view, tuple(oid), index)
            if found:
                next_oid, value = found
                rsp_var_binds.append((rfc1902.ObjectIdentifier(next_oid), value))
            elif is_v1:
                raise _RequestFailed(NO_SUCH_NAME, index)
            else:
                rsp_var_binds.append((oid, rfc1905.endOfMibView))
        return rsp_var_binds

    def _handle_get_bulk(
        self, view: _BindingView, var_binds, non_repeaters: int, max_repetitions: int
    ) -> list:
        non_repeaters = max(0, min(non_repeaters, len(var_binds)))
        max_repetitions = max(0, max_repetitions)

        # Non-repeaters (single GETNEXT each)
        rsp_var_binds = self._handle_get_next(view, var_binds[:non_repeaters], False)

        # Repeaters, one row per repetition across every repeating var-bind
        cursors = [tuple(oid) for oid, _ in var_binds[non_repeaters:]]
        exhausted = [False] * len(cursors)
        for _ in range(max_repetitions):
            if all(exhausted):
                break
            for offset, cur in enumerate(cursors):
                if len(rsp_var_binds) >= MAX_BULK_VAR_BINDS:
                    return rsp_var_binds
                found = None
                if not exhausted[offset]:
                    found = self._next_after(view, cur, non_repeaters + offset + 1)
                if not found:
                    rsp_var_binds.append((rfc1902.ObjectIdentifier(cur), rfc1905.endOfMibView))
                    exhausted[offset] = True
                    continue
                next_oid, value = found
                rsp_var_binds.append((rfc1902.ObjectIdentifier(next_oid), value))
                cursors[offset] = oid_to_tuple(next_oid)
        return rsp_var_binds
