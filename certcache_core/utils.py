"""
certcache_core.utils
--------------------
Lightweight base64 helpers.
Identity keys are the standard base64 form of the raw identity bytes, which
keeps the encoding deterministic and collision-free.
"""

from __future__ import annotations
import base64


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def b64url(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode("ascii")

def encode_identity(identity: bytes) -> str:
    if not isinstance(identity, (bytes, bytearray)):
        raise TypeError(f"identity must be bytes, got {type(identity).__name__}")
    return b64e(bytes(identity))
