# certcache_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass

TABLE_NAME = "Certificates"

CREATE_TABLE_SQL = (
    f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
    "id TEXT PRIMARY KEY, "
    "cert BLOB"
    ")"
)


@dataclass(frozen=True)
class CertificateRecord:
    """
    Storage-level representation of a cached enrollment certificate.

    `id` is the encoded identity (see certcache_core.utils.encode_identity).
    Records are written once and never updated.
    """
    id: str
    cert: bytes

    def __post_init__(self):
        if not self.id:
            raise ValueError("record id must be non-empty")
        if not self.cert:
            raise ValueError("record cert must be non-empty")
