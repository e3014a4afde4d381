"""
ledgerkey_core.utils
--------------------
Lightweight helpers for account identifiers, timestamping, base64 utilities, and canonical JSON serialization.
Wire messages and signed key claims rely on these being deterministic.
"""

from __future__ import annotations
import base64, json, time, uuid
from typing import Any, Dict, Union

def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"), validate=True)

def now_ts() -> str:
    # RFC3339 / ISO 8601 in UTC, second precision
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

def parse_account_id(value: Union[str, uuid.UUID]) -> uuid.UUID:
    """Strictly parse an account identifier; raises ValueError on anything but a UUID."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise ValueError(f"account id must be a UUID string, got {type(value).__name__}")
    return uuid.UUID(value)

def canonical_json(obj: Dict[str, Any]) -> bytes:
    # Deterministic, minimal JSON for the wire and for signing
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")
