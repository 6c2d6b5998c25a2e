# certcache_core/errors.py
from __future__ import annotations


class CertCacheError(Exception):
    pass


class AlreadyInitializedError(CertCacheError):
    """initialize() was called while a store handle is already open."""


class StoreAlreadyExistsError(CertCacheError):
    pass


class StoreIOError(CertCacheError):
    """Directory creation, file open or existence checks failed."""


class BootstrapFatalError(StoreIOError):
    """The engine did not answer the liveness probe after opening the file."""


class StorageError(CertCacheError):
    """A query or transaction failed. The transaction has been rolled back."""


class FetchError(CertCacheError):
    pass
