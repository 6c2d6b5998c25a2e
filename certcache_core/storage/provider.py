# certcache_core/storage/provider.py
from __future__ import annotations
from typing import Callable

CertFetcher = Callable[[bytes], bytes]


class CertStoreProvider:
    # Interface
    def get(self, identity: bytes, fetch: CertFetcher) -> bytes: ...
    def has(self, identity: bytes) -> bool: ...
    def count(self) -> int: ...
    def close(self) -> None: ...
