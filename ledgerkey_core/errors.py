# ledgerkey_core/errors.py
"""
Error taxonomy for the account key-request protocol.

Every error here reaches the caller of the entry point that raised it;
none of them is retried inside the core.
"""

from __future__ import annotations
from typing import Optional
from uuid import UUID


class KeyRequestError(Exception):
    pass


class HostRejected(KeyRequestError):
    """The host does not recognize the account. Resolve out of band with the host."""

    def __init__(self, host: str, account_id: UUID, account_name: str):
        self.host = host
        self.account_id = account_id
        self.account_name = account_name
        super().__init__(
            f"Account host {host} for {account_id} ({account_name}) "
            f"responded with a not found status - contact them for assistance"
        )


class ProtocolViolation(KeyRequestError):
    """Malformed or out-of-order message; usually a peer/version mismatch."""


class KeyExchangeFailed(KeyRequestError):
    """Session closed or key transfer failed. Safe to restart the whole run."""


class KeyGenerationFailed(KeyRequestError):
    """Host-side key service error; nothing was sent after FOUND."""


class PersistenceFailure(KeyRequestError):
    """
    The key mapping could not be written.

    Raised by the requester after a key was received: ``identity`` still
    holds the valid issued key so the caller can use it and reconcile the
    mapping later.
    """

    def __init__(self, message: str, identity=None):
        super().__init__(message)
        self.identity = identity
