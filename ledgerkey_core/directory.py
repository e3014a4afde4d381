# ledgerkey_core/directory.py
from __future__ import annotations
from typing import Optional
from uuid import UUID

from .models import AccountInfo
from .storage.models import AccountRecord
from .utils import parse_account_id


class AccountDirectory:
    """
    Host-side account lookup backed by a storage provider.

    ``lookup`` answers whether this participant administers an account; it
    never reaches out to other participants.
    """

    def __init__(self, storage):
        self.storage = storage

    def register(self, info: AccountInfo) -> AccountInfo:
        self.storage.upsert_account(AccountRecord(
            account_id=str(info.identifier),
            name=info.name,
            host=info.host,
        ))
        return info

    def lookup(self, account_id: UUID) -> Optional[AccountInfo]:
        rec = self.storage.get_account(str(account_id))
        if rec is None:
            return None
        return AccountInfo(identifier=parse_account_id(rec.account_id), name=rec.name, host=rec.host)
