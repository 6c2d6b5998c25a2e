import threading
from certcache_core.errors import FetchError
from certcache_core.storage.provider import CertStoreProvider
from certcache_core.utils import encode_identity


class InMemoryCertStore(CertStoreProvider):
    def __init__(self):
        self.certs = {}
        self._lock = threading.Lock()

    def get(self, identity: bytes, fetch):
        sid = encode_identity(identity)
        with self._lock:
            cert = self.certs.get(sid)
        if cert is not None:
            return cert

        cert = fetch(identity)
        if not cert:
            raise FetchError(f"fetch returned an empty certificate for [{sid}]")
        with self._lock:
            # first writer wins
            return self.certs.setdefault(sid, bytes(cert))

    def has(self, identity: bytes) -> bool:
        sid = encode_identity(identity)
        with self._lock:
            return sid in self.certs

    def count(self) -> int:
        with self._lock:
            return len(self.certs)

    def close(self): pass
