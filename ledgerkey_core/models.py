# ledgerkey_core/models.py

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from .crypto import compute_pubkey_fingerprint
from .utils import b64e


@dataclass(frozen=True)
class AccountInfo:
    """
    Account metadata the requester already holds before starting a run.

    ``host`` is the participant that administers the account and the only
    one able to mint keys for it.
    """
    identifier: UUID
    name: str
    host: str


class AccountSearchStatus(Enum):
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class IssuedKey:
    """Public half of a key minted by the host for ``account_id``."""
    account_id: UUID
    public_key: bytes

    @property
    def pubkey_b64(self) -> str:
        return b64e(self.public_key)

    @property
    def fingerprint(self) -> str:
        return compute_pubkey_fingerprint(self.pubkey_b64)


@dataclass(frozen=True)
class AnonymousIdentity:
    """An issued key as handed back to the caller. Carries nothing but the key."""
    public_key: bytes

    @property
    def pubkey_b64(self) -> str:
        return b64e(self.public_key)

    @property
    def fingerprint(self) -> str:
        return compute_pubkey_fingerprint(self.pubkey_b64)
