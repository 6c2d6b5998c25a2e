# tests/test_fetchers.py

import pytest
import requests
from certcache_core.errors import FetchError
from certcache_core.fetchers import HTTPCertFetcher


class FakeResponse:
    def __init__(self, status_code=200, content=b"", reason="OK"):
        self.status_code = status_code
        self.content = content
        self.reason = reason
        self.text = content.decode("latin-1")

    @property
    def ok(self):
        return self.status_code < 400


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append((url, headers, timeout))
        if self.exc:
            raise self.exc
        return self.response

    def close(self):
        pass


def test_fetch_returns_body():
    session = FakeSession(FakeResponse(content=b"\xaa\xbb"))
    fetch = HTTPCertFetcher("http://eca.local/", timeout=3, session=session)
    fetch.set_grant("tok")

    assert fetch(b"\x01\x02") == b"\xaa\xbb"

    url, headers, timeout = session.requests[0]
    assert url == "http://eca.local/ecert/AQI="
    assert headers["Authorization"] == "Bearer tok"
    assert timeout == 3


def test_http_error_raises_fetch_error():
    session = FakeSession(FakeResponse(404, b"unknown identity", "Not Found"))

    with pytest.raises(FetchError):
        HTTPCertFetcher("http://eca.local", session=session)(b"x")


def test_transport_error_raises_fetch_error():
    session = FakeSession(exc=requests.ConnectionError("refused"))

    with pytest.raises(FetchError):
        HTTPCertFetcher("http://eca.local", session=session)(b"x")


def test_fetcher_plugs_into_store(store):
    session = FakeSession(FakeResponse(content=b"pem"))
    fetch = HTTPCertFetcher("http://eca.local", session=session)

    assert store.get(b"peer", fetch) == b"pem"
    assert store.get(b"peer", fetch) == b"pem"
    assert len(session.requests) == 1
