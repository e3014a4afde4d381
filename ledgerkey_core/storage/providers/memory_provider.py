from typing import Optional, Dict, Any, List
import threading
from ledgerkey_core.errors import PersistenceFailure
from ledgerkey_core.storage.models import KeyMappingRecord, SigningKeyRecord, AccountRecord
from ledgerkey_core.storage.provider import StorageProvider

class InMemoryStorage(StorageProvider):
    def __init__(self):
        self.mappings: Dict[str, KeyMappingRecord] = {}
        self.signing_keys: Dict[str, SigningKeyRecord] = {}
        self.accounts: Dict[str, AccountRecord] = {}
        self.audit = []
        self._lock = threading.Lock()

    # key mappings
    def add_key_mapping(self, rec: KeyMappingRecord):
        with self._lock:
            if rec.pub_key_fpr in self.mappings:
                raise PersistenceFailure(f"key mapping {rec.pub_key_fpr} already recorded")
            self.mappings[rec.pub_key_fpr] = rec

    def get_key_mappings(self, account_id: str) -> List[KeyMappingRecord]:
        with self._lock:
            return [rec for rec in self.mappings.values() if rec.account_id == account_id]

    def fetch_by_fingerprint(self, fpr: str) -> Optional[KeyMappingRecord]:
        return self.mappings.get(fpr)

    def fetch_by_pubkey(self, pubkey_b64: str) -> Optional[KeyMappingRecord]:
        with self._lock:
            return next((rec for rec in self.mappings.values() if rec.pubkey_b64 == pubkey_b64), None)

    # custody
    def put_signing_key(self, rec: SigningKeyRecord):
        with self._lock:
            if rec.pub_key_fpr in self.signing_keys:
                raise PersistenceFailure(f"signing key {rec.pub_key_fpr} already held")
            self.signing_keys[rec.pub_key_fpr] = rec

    def get_signing_key(self, fpr: str) -> Optional[SigningKeyRecord]:
        return self.signing_keys.get(fpr)

    # directory
    def upsert_account(self, rec: AccountRecord):
        self.accounts[rec.account_id] = rec

    def get_account(self, account_id: str) -> Optional[AccountRecord]:
        return self.accounts.get(account_id)

    # audit
    def log_event(self, event_type: str, payload: Dict[str, Any]):
        self.audit.append((event_type, payload))

    def close(self):
        pass
