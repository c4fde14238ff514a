"""Concurrency tests for ValueRegistry and ReadWriteLock."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from snmpreg.core.errors import NotFoundError, UnknownOIDError
from snmpreg.core.models import ValueType
from snmpreg.core.registry import ValueRegistry
from snmpreg.core.rwlock import ReadWriteLock

from .conftest import PREFIX


def test_concurrent_gets_against_static_entries(registry: ValueRegistry) -> None:
    oids = [f"{PREFIX}.1.{i}.0" for i in range(50)]
    for i, oid in enumerate(oids):
        registry.register_static(oid, ValueType.INTEGER, i)

    def read_all(_):
        return [registry.get(oid) for oid in oids]

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(read_all, range(200)))

    assert all(result == list(range(50)) for result in results)


def test_readers_evaluate_producers_in_parallel(registry: ValueRegistry) -> None:
    """Two slow producers overlap instead of running one after the other."""
    both_inside = threading.Barrier(2, timeout=5)

    def producer():
        both_inside.wait()
        return 1

    registry.register_dynamic(f"{PREFIX}.2.1.0", ValueType.INTEGER, producer)
    registry.register_dynamic(f"{PREFIX}.2.2.0", ValueType.INTEGER, producer)

    with ThreadPoolExecutor(max_workers=2) as pool:
        a = pool.submit(registry.get, f"{PREFIX}.2.1.0")
        b = pool.submit(registry.get, f"{PREFIX}.2.2.0")
        assert a.result(timeout=5) == 1
        assert b.result(timeout=5) == 1


def test_writer_waits_for_running_producer(registry: ValueRegistry) -> None:
    entered = threading.Event()
    release = threading.Event()

    def blocking_producer():
        entered.set()
        release.wait(timeout=5)
        return "done"

    oid = f"{PREFIX}.2.1.0"
    registry.register_dynamic(oid, ValueType.OCTET_STRING, blocking_producer)

    with ThreadPoolExecutor(max_workers=2) as pool:
        reader = pool.submit(registry.get, oid)
        assert entered.wait(timeout=5)
        writer = pool.submit(registry.register_static, f"{PREFIX}.1.1.0", ValueType.INTEGER, 1)

        time.sleep(0.1)
        assert not writer.done()

        release.set()
        assert reader.result(timeout=5) == "done"
        writer.result(timeout=5)

    assert registry.get(f"{PREFIX}.1.1.0") == 1


def test_registry_stays_consistent_under_churn(registry: ValueRegistry) -> None:
    """Readers never see two entries for one OID, a stray variant, or a torn value."""
    oid = f"{PREFIX}.3.1.0"
    stop = threading.Event()
    violations = []

    def churn():
        while not stop.is_set():
            registry.register_static(oid, ValueType.INTEGER, 1)
            registry.register_dynamic(oid, ValueType.INTEGER, lambda: 1)
            try:
                registry.unregister(oid)
            except NotFoundError:
                violations.append("unregister right after register failed")

    def observe():
        while not stop.is_set():
            entries = [entry.oid for entry in registry.entries()]
            if len(entries) != len(set(entries)):
                violations.append(f"duplicate entries {entries}")
            listing = registry.list_oids()
            if listing not in ({}, {oid: "static"}, {oid: "dynamic"}):
                violations.append(f"unexpected listing {listing}")
            try:
                value = registry.get(oid)
            except UnknownOIDError:
                continue
            if value != 1:
                violations.append(f"unexpected value {value!r}")

    threads = [threading.Thread(target=churn)]
    threads += [threading.Thread(target=observe) for _ in range(4)]
    for thread in threads:
        thread.start()
    time.sleep(0.5)
    stop.set()
    for thread in threads:
        thread.join(timeout=5)

    assert violations == []
    assert registry.list_oids() == {}
    with pytest.raises(UnknownOIDError):
        registry.get(oid)


def test_rwlock_allows_shared_readers() -> None:
    lock = ReadWriteLock()
    with lock.read_locked():
        with ThreadPoolExecutor(max_workers=1) as pool:
            def read_in_other_thread():
                with lock.read_locked():
                    return lock.readers
            assert pool.submit(read_in_other_thread).result(timeout=5) == 2
    assert lock.readers == 0


def test_rwlock_writer_preference_blocks_new_readers() -> None:
    lock = ReadWriteLock()
    lock.acquire_read()
    order = []

    def writer():
        with lock.write_locked():
            order.append("writer")

    def late_reader():
        with lock.read_locked():
            order.append("reader")

    writer_thread = threading.Thread(target=writer)
    writer_thread.start()
    time.sleep(0.1)  # writer is now waiting on the held read lock
    reader_thread = threading.Thread(target=late_reader)
    reader_thread.start()
    time.sleep(0.1)

    assert order == []
    lock.release_read()
    writer_thread.join(timeout=5)
    reader_thread.join(timeout=5)
    assert order == ["writer", "reader"]


def test_rwlock_release_without_acquire() -> None:
    lock = ReadWriteLock()
    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()
