# ledgerkey_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass


@dataclass
class KeyMappingRecord:
    """
    Requester-side fact linking an issued public key to the account it was minted for.

    Append-only: one row per issued key, keyed by fingerprint. Storage-agnostic
    so any provider (SQLite, memory, ...) can hold it.
    """
    account_id: str
    pubkey_b64: str
    pub_key_fpr: str
    created_at: str = ""


@dataclass
class SigningKeyRecord:
    """Host-side custody of the private half of a key issued for an account."""
    account_id: str
    pubkey_b64: str
    privkey_b64: str
    pub_key_fpr: str
    created_at: str = ""


@dataclass
class AccountRecord:
    """Host-side account directory row."""
    account_id: str
    name: str
    host: str
