# tests/test_lifecycle.py

import threading
import pytest
from certcache_core.errors import AlreadyInitializedError, StorageError
from certcache_core.storage import (
    LocalPathResolver,
    StoreLifecycle,
    get_default_lifecycle,
    reset_default_lifecycle,
)


def test_initialize_twice_raises(lifecycle):
    lifecycle.initialize()

    with pytest.raises(AlreadyInitializedError):
        lifecycle.initialize()


def test_initialize_after_close_succeeds(lifecycle):
    lifecycle.initialize()
    lifecycle.close()

    handle = lifecycle.initialize()
    assert lifecycle.get_handle() is handle


def test_open_is_idempotent(lifecycle):
    first = lifecycle.initialize()
    assert lifecycle.open() is first
    assert lifecycle.get_handle() is first


def test_get_handle_is_none_until_open(lifecycle):
    assert lifecycle.get_handle() is None
    assert not lifecycle.is_open

    lifecycle.initialize()
    assert lifecycle.is_open

    lifecycle.close()
    assert lifecycle.get_handle() is None


def test_close_twice_is_noop(lifecycle):
    handle = lifecycle.initialize()

    lifecycle.close()
    lifecycle.close()
    handle.close()

    assert handle.closed
    with pytest.raises(StorageError):
        handle.get(b"id", lambda i: b"cert")


def test_store_close_delegates_to_lifecycle(lifecycle):
    handle = lifecycle.initialize()
    handle.close()

    assert not lifecycle.is_open


def test_stale_handle_close_does_not_close_current(lifecycle):
    old = lifecycle.initialize()
    lifecycle.close()
    new = lifecycle.open()

    old.close()

    assert lifecycle.get_handle() is new
    assert not new.closed


def test_concurrent_initialize_opens_once(lifecycle):
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            results.append(lifecycle.initialize())
        except AlreadyInitializedError as e:
            results.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    handles = [r for r in results if not isinstance(r, Exception)]
    assert len(handles) == 1
    assert len(results) == 8
    assert lifecycle.get_handle() is handles[0]


def test_second_lifecycle_on_same_path_is_refused(resolver, lifecycle):
    lifecycle.initialize()
    other = StoreLifecycle(LocalPathResolver(resolver.resolve_directory()))

    with pytest.raises(AlreadyInitializedError):
        other.open()

    lifecycle.close()
    other.open()
    other.close()


def test_delete_store_refused_while_open_elsewhere(resolver, lifecycle, db_dir):
    store = lifecycle.initialize()
    other = StoreLifecycle(LocalPathResolver(resolver.resolve_directory()))

    with pytest.raises(AlreadyInitializedError):
        other.delete_store()

    assert db_dir.exists()
    assert store.get(b"id", lambda i: b"cert") == b"cert"

    lifecycle.close()
    other.delete_store()
    assert not db_dir.exists()


def test_delete_store_removes_directory(lifecycle, db_dir):
    store = lifecycle.initialize()
    store.get(b"id", lambda i: b"cert")
    assert db_dir.exists()

    lifecycle.delete_store()

    assert not db_dir.exists()
    assert not lifecycle.is_open

    # deleting a missing store is fine, and the store can be rebuilt
    lifecycle.delete_store()
    fresh = lifecycle.initialize()
    assert fresh.count() == 0


def test_default_lifecycle_is_shared(tmp_path):
    reset_default_lifecycle()
    try:
        a = get_default_lifecycle(LocalPathResolver(str(tmp_path / "default")))
        b = get_default_lifecycle()
        assert a is b

        a.initialize()
        reset_default_lifecycle()
        assert not a.is_open
        assert get_default_lifecycle() is not a
    finally:
        reset_default_lifecycle()
