# certcache_core/storage/__init__.py

from .models import CertificateRecord
from .provider import CertFetcher, CertStoreProvider
from .paths import DEFAULT_DB_NAME, LocalPathResolver, PathResolver
from .bootstrap import SchemaBootstrapper
from .lifecycle import StoreLifecycle, get_default_lifecycle, reset_default_lifecycle
from .providers.memory_provider import InMemoryCertStore
from .providers.sqlite_provider import SQLiteCertStore
from certcache_core.errors import AlreadyInitializedError
import os


def load_cert_store(config: dict | None = None, lifecycle: StoreLifecycle | None = None) -> CertStoreProvider:
    """
    Factory resolver for selecting the runtime certificate store.

    For now:
        - sqlite (default)
        - memory
    """
    config = config or {}
    provider = config.get("provider") or os.getenv("CERTCACHE_STORAGE_PROVIDER", "sqlite")

    if provider == "memory":
        return InMemoryCertStore()

    if provider == "sqlite":
        if lifecycle is None:
            db_dir = config.get("db_dir") or os.getenv("CERTCACHE_DB_DIR", "db")
            db_name = config.get("db_name") or os.getenv("CERTCACHE_DB_NAME", DEFAULT_DB_NAME)
            lifecycle = StoreLifecycle(LocalPathResolver(db_dir, db_name))
        try:
            return lifecycle.initialize()
        except AlreadyInitializedError:
            return lifecycle.open()

    raise ValueError(f"Unknown storage provider: {provider}")


__all__ = [
    "CertificateRecord",
    "CertFetcher",
    "CertStoreProvider",
    "PathResolver",
    "LocalPathResolver",
    "SchemaBootstrapper",
    "StoreLifecycle",
    "get_default_lifecycle",
    "reset_default_lifecycle",
    "InMemoryCertStore",
    "SQLiteCertStore",
    "load_cert_store",
]
