# certcache_core/fetchers.py
import requests
from certcache_core.errors import FetchError
from certcache_core.logger import get_logger
from certcache_core.utils import b64url

log = get_logger("CertCache.Fetch.HTTP")


class HTTPCertFetcher:
    """
    Fetch collaborator that retrieves enrollment certificates over HTTP.

    Instances are callables of shape `identity -> cert bytes` and can be
    passed straight to a store's get(). The certificate is the raw response
    body of GET {base_url}/ecert/{urlsafe-b64(identity)}.

    - Supports Bearer authentication via set_grant().
    - Any transport failure or non-2xx response raises FetchError.
    """
    def __init__(self, base_url: str, timeout: float = 10.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._grant = None

    def set_grant(self, grant: str):
        self._grant = grant

    def __call__(self, identity: bytes) -> bytes:
        url = f"{self.base_url}/ecert/{b64url(identity)}"
        headers = {"Accept": "application/octet-stream"}
        if self._grant:
            headers["Authorization"] = f"Bearer {self._grant}"

        log.debug(f"[HTTP FETCH] → {url}")
        try:
            res = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            log.error(f"[HTTP FETCH] {url} failed: {e}")
            raise FetchError(f"request to {url} failed: {e}") from e

        if not res.ok:
            log.error(f"[HTTP FETCH] {res.status_code}: {res.text}")
            raise FetchError(f"{url} returned {res.status_code} {res.reason}")

        log.info(f"[HTTP FETCH] {res.status_code} {res.reason} ({len(res.content)} bytes)")
        return res.content

    def close(self) -> None:
        self.session.close()
