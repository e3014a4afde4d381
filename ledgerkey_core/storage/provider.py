# ledgerkey_core/storage/provider.py
from __future__ import annotations
from typing import Optional, Dict, Any, List
from ledgerkey_core.storage.models import KeyMappingRecord, SigningKeyRecord, AccountRecord


class StorageProvider:
    """
    Durable record store interface.

    Each write is atomic on its own; providers never group writes into a
    cross-record transaction. Write failures surface as PersistenceFailure.
    """

    # requester side: key mappings
    def add_key_mapping(self, rec: KeyMappingRecord) -> None: ...
    def get_key_mappings(self, account_id: str) -> List[KeyMappingRecord]: ...
    def fetch_by_fingerprint(self, fpr: str) -> Optional[KeyMappingRecord]: ...
    def fetch_by_pubkey(self, pubkey_b64: str) -> Optional[KeyMappingRecord]: ...

    # host side: key custody and account directory
    def put_signing_key(self, rec: SigningKeyRecord) -> None: ...
    def get_signing_key(self, fpr: str) -> Optional[SigningKeyRecord]: ...
    def upsert_account(self, rec: AccountRecord) -> None: ...
    def get_account(self, account_id: str) -> Optional[AccountRecord]: ...

    # audit
    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None: ...

    def close(self) -> None: ...
