"""
certcache_core.storage.lifecycle
--------------------------------
Owns the open/closed state of the certificate store.

A StoreLifecycle holds at most one open SQLiteCertStore handle. Every state
change happens under its lock, and a process-wide claim table keyed by the
absolute database path keeps two lifecycles from opening the same file.

Callers either construct a StoreLifecycle and pass it around, or use the
process default from get_default_lifecycle().
"""

from __future__ import annotations
import os, shutil, threading
from typing import Dict, Optional

from certcache_core.errors import AlreadyInitializedError, StoreIOError
from certcache_core.logger import get_logger
from certcache_core.storage.bootstrap import SchemaBootstrapper
from certcache_core.storage.paths import LocalPathResolver, PathResolver
from certcache_core.storage.providers.sqlite_provider import SQLiteCertStore

log = get_logger("CertCache.Lifecycle")

_claims_lock = threading.Lock()
_claims: Dict[str, "StoreLifecycle"] = {}


def _claim(path: str, owner: "StoreLifecycle") -> None:
    with _claims_lock:
        holder = _claims.get(path)
        if holder is not None and holder is not owner:
            raise AlreadyInitializedError(f"store [{path}] is already open in this process")
        _claims[path] = owner


def _release(path: str, owner: "StoreLifecycle") -> None:
    with _claims_lock:
        if _claims.get(path) is owner:
            del _claims[path]


class StoreLifecycle:
    def __init__(self, resolver: Optional[PathResolver] = None, bootstrapper: Optional[SchemaBootstrapper] = None):
        self.resolver = resolver or LocalPathResolver()
        self.bootstrapper = bootstrapper or SchemaBootstrapper(self.resolver)
        self._lock = threading.RLock()
        self._handle: Optional[SQLiteCertStore] = None
        self._claimed: Optional[str] = None

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._handle is not None

    def initialize(self) -> SQLiteCertStore:
        """Bootstrap the store and open it. Fails if a handle is already open."""
        with self._lock:
            if self._handle is not None:
                raise AlreadyInitializedError("store already initialized")
            self.bootstrapper.ensure_store_exists()
            return self._open_locked()

    def open(self) -> SQLiteCertStore:
        with self._lock:
            if self._handle is not None:
                return self._handle
            return self._open_locked()

    def _open_locked(self) -> SQLiteCertStore:
        path = os.path.abspath(self.resolver.resolve_file_path())
        _claim(path, self)
        try:
            handle = SQLiteCertStore(path, owner=self)
        except StoreIOError:
            log.error(f"Error opening DB [{path}]")
            _release(path, self)
            raise
        self._handle = handle
        self._claimed = path
        log.debug(f"Opened DB [{path}]")
        return handle

    def get_handle(self) -> Optional[SQLiteCertStore]:
        with self._lock:
            return self._handle

    def close(self, handle: Optional[SQLiteCertStore] = None) -> None:
        """Close the open handle. Closing twice is a no-op.

        A stale handle (one this lifecycle no longer owns) only has its own
        connection closed.
        """
        with self._lock:
            if handle is not None and handle is not self._handle:
                handle._close_connection()
                return
            current, self._handle = self._handle, None
            if current is None:
                return
            current._close_connection()
            if self._claimed:
                _release(self._claimed, self)
                self._claimed = None

    def delete_store(self) -> None:
        """Remove the whole store directory. Any open handle is closed first.

        Refused while another lifecycle in this process holds the store open.
        """
        with self._lock:
            self.close()
            db_dir = self.resolver.resolve_directory()
            path = os.path.abspath(self.resolver.resolve_file_path())
            # held across the removal so nobody can claim the path meanwhile
            with _claims_lock:
                holder = _claims.get(path)
                if holder is not None and holder is not self:
                    raise AlreadyInitializedError(f"store [{path}] is open by another owner")
                log.debug(f"Removing DB at [{db_dir}]")
                try:
                    shutil.rmtree(db_dir)
                except FileNotFoundError:
                    return
                except OSError as e:
                    raise StoreIOError(f"failed removing store [{db_dir}]: {e}") from e


_default_lock = threading.Lock()
_default: Optional[StoreLifecycle] = None


def get_default_lifecycle(resolver: Optional[PathResolver] = None) -> StoreLifecycle:
    """Return the process-wide lifecycle, creating it on first use.

    `resolver` is only honoured by the call that creates it.
    """
    global _default
    with _default_lock:
        if _default is None:
            _default = StoreLifecycle(resolver)
        return _default


def reset_default_lifecycle() -> None:
    global _default
    with _default_lock:
        if _default is not None:
            _default.close()
        _default = None
