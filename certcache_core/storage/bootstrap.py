"""
certcache_core.storage.bootstrap
--------------------------------
Creates the on-disk certificate store on first use.

Bootstrapping is a no-op if and only if a complete store already exists at
the resolved path: the directory is present, the database file is present
and it holds the Certificates table. Anything less is (re)built; the schema
statement is idempotent so a half-built store is completed in place.
"""

from __future__ import annotations
import os, sqlite3
from contextlib import closing

from certcache_core.errors import BootstrapFatalError, StoreAlreadyExistsError, StoreIOError
from certcache_core.logger import get_logger
from certcache_core.storage.models import CREATE_TABLE_SQL, TABLE_NAME
from certcache_core.storage.paths import PathResolver

log = get_logger("CertCache.Bootstrap")

DIR_MODE = 0o755


class SchemaBootstrapper:
    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    def store_exists(self) -> bool:
        db_dir = self.resolver.resolve_directory()
        db_name = self.resolver.resolve_file_name()
        try:
            missing = self.resolver.is_missing_or_empty(db_dir)
            log.debug(f"Db path [{db_dir}] missing [{missing}]")
            if not missing:
                missing = self.resolver.is_file_missing(db_dir, db_name)
                log.debug(f"Db file [{db_name}] missing [{missing}]")
        except OSError as e:
            raise StoreIOError(f"failed checking store at [{db_dir}]: {e}") from e

        if missing:
            return False
        return self._has_table(self.resolver.resolve_file_path())

    def ensure_store_exists(self) -> bool:
        """Build the store unless it already exists. Returns True if anything was created."""
        if self.store_exists():
            log.debug(f"Store already present at [{self.resolver.resolve_file_path()}]")
            return False
        self._create()
        return True

    def create_store(self) -> None:
        if self.store_exists():
            raise StoreAlreadyExistsError(
                f"store [{self.resolver.resolve_file_path()}] already exists"
            )
        self._create()

    def _has_table(self, file_path: str) -> bool:
        try:
            with closing(sqlite3.connect(file_path)) as conn:
                row = conn.execute(
                    "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
                    (TABLE_NAME,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreIOError(f"failed inspecting store file [{file_path}]: {e}") from e
        return row is not None

    def _ping(self, conn: sqlite3.Connection) -> None:
        conn.execute("SELECT 1").fetchone()

    def _create(self) -> None:
        db_dir = self.resolver.resolve_directory()
        file_path = self.resolver.resolve_file_path()
        log.debug(f"Creating DB at [{db_dir}]")

        try:
            if not os.path.isdir(db_dir):
                os.makedirs(db_dir, mode=DIR_MODE, exist_ok=True)
                # makedirs is subject to the umask
                os.chmod(db_dir, DIR_MODE)
        except OSError as e:
            raise StoreIOError(f"failed creating store directory [{db_dir}]: {e}") from e

        try:
            conn = sqlite3.connect(file_path)
        except sqlite3.Error as e:
            raise StoreIOError(f"failed opening store file [{file_path}]: {e}") from e

        with closing(conn):
            try:
                self._ping(conn)
            except sqlite3.Error as e:
                log.error(f"Ping DB at [{file_path}] failed: {e}")
                raise BootstrapFatalError(f"store [{file_path}] failed liveness probe: {e}") from e

            log.debug(f"Create Table [{TABLE_NAME}] at [{file_path}]")
            try:
                conn.execute(CREATE_TABLE_SQL)
                conn.commit()
            except sqlite3.Error as e:
                raise StoreIOError(f"failed creating table [{TABLE_NAME}]: {e}") from e

        log.info(f"DB created at [{file_path}]")
