"""
LedgerKey Core Package
======================
Account key-request protocol shared by requesting and hosting participants.

Provides:
- Requester controller and host responder for minting a fresh key per account
- Ed25519 key service with host-side custody of private keys
- Pluggable local storage for account-to-key mappings (SQLite default)
- In-process session transport for running both sides locally
"""

from ledgerkey_core.models import AccountInfo, AccountSearchStatus, AnonymousIdentity, IssuedKey
from ledgerkey_core.errors import (
    KeyRequestError,
    HostRejected,
    ProtocolViolation,
    KeyExchangeFailed,
    KeyGenerationFailed,
    PersistenceFailure,
)
from ledgerkey_core.flows.request_key import request_key, respond_to_key_request
from ledgerkey_core.client import request_key_for_account, serve_key_requests

__all__ = [
    "AccountInfo",
    "AccountSearchStatus",
    "AnonymousIdentity",
    "IssuedKey",
    "KeyRequestError",
    "HostRejected",
    "ProtocolViolation",
    "KeyExchangeFailed",
    "KeyGenerationFailed",
    "PersistenceFailure",
    "request_key",
    "respond_to_key_request",
    "request_key_for_account",
    "serve_key_requests",
]
