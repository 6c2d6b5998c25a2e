from __future__ import annotations
from typing import Optional
import sqlite3, threading

from certcache_core.errors import FetchError, StorageError, StoreIOError
from certcache_core.logger import get_logger
from certcache_core.storage.models import TABLE_NAME, CertificateRecord
from certcache_core.storage.provider import CertFetcher, CertStoreProvider
from certcache_core.utils import b64e, encode_identity

log = get_logger("CertCache.Store")


class SQLiteCertStore(CertStoreProvider):
    """
    Fetch-through enrollment certificate cache over a single SQLite connection.

    The connection is shared by every caller of the handle; a lock serializes
    statements on it so that one caller's transaction never interleaves with
    another's. The remote fetch runs outside the lock.
    """

    def __init__(self, path="db/client.db", owner=None):
        self.path = path
        self._owner = owner
        self._lock = threading.RLock()
        try:
            # Transactions are managed explicitly with BEGIN/COMMIT
            self.db = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
        except sqlite3.Error as e:
            raise StoreIOError(f"failed opening store [{path}]: {e}") from e

    @property
    def closed(self) -> bool:
        return self.db is None

    def get(self, identity: bytes, fetch: CertFetcher) -> bytes:
        sid = encode_identity(identity)

        cert = self._select(sid)
        if cert is not None:
            return cert

        # 1. Fetch
        log.info(f"Fetch enrollment certificate for [{sid}]...")
        cert = fetch(identity)
        if not cert:
            raise FetchError(f"fetch returned an empty certificate for [{sid}]")
        record = CertificateRecord(id=sid, cert=bytes(cert))

        # 2. Store
        if not self._insert(record):
            log.info(f"Certificate for [{sid}] was stored concurrently, reading it back")

        # 3. Read back the stored value
        stored = self._select(sid)
        if stored is None:
            raise StorageError(f"certificate for [{sid}] missing after commit")
        log.info(f"Fetch enrollment certificate for [{sid}]...done!")
        return stored

    def has(self, identity: bytes) -> bool:
        return self._select(encode_identity(identity)) is not None

    def count(self) -> int:
        with self._lock:
            conn = self._require_open()
            try:
                return conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()[0]
            except sqlite3.Error as e:
                raise StorageError(f"count failed: {e}") from e

    def close(self) -> None:
        if self._owner is not None:
            self._owner.close(self)
        else:
            self._close_connection()

    def _close_connection(self) -> None:
        with self._lock:
            if self.db is None:
                return
            self.db.close()
            self.db = None
            log.debug(f"Closed store [{self.path}]")

    def _require_open(self) -> sqlite3.Connection:
        if self.db is None:
            raise StorageError(f"store [{self.path}] is closed")
        return self.db

    def _select(self, sid: str) -> Optional[bytes]:
        with self._lock:
            conn = self._require_open()
            try:
                row = conn.execute(
                    f"SELECT cert FROM {TABLE_NAME} WHERE id = ?", (sid,)
                ).fetchone()
            except sqlite3.Error as e:
                log.error(f"Error during select: {e}")
                raise StorageError(f"select failed for [{sid}]: {e}") from e

        if row is None:
            return None
        cert = row[0]
        if not cert:
            raise StorageError(f"stored certificate for [{sid}] is empty")
        log.debug(f"cert {b64e(cert)}")
        return bytes(cert)

    def _insert(self, record: CertificateRecord) -> bool:
        """Insert in its own transaction. Returns False if the id was already present."""
        with self._lock:
            conn = self._require_open()
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                log.error(f"Failed beginning transaction: {e}")
                raise StorageError(f"begin failed: {e}") from e

            log.debug(f"Insert id {record.id} cert {b64e(record.cert)}")
            try:
                conn.execute(
                    f"INSERT INTO {TABLE_NAME} (id, cert) VALUES (?, ?)",
                    (record.id, sqlite3.Binary(record.cert)),
                )
            except sqlite3.IntegrityError:
                self._rollback(conn)
                return False
            except sqlite3.Error as e:
                log.error(f"Failed inserting cert: {e}")
                self._rollback(conn)
                raise StorageError(f"insert failed for [{record.id}]: {e}") from e

            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                log.error(f"Failed committing transaction: {e}")
                self._rollback(conn)
                raise StorageError(f"commit failed for [{record.id}]: {e}") from e
            return True

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            log.warning(f"Rollback failed: {e}")
