from __future__ import annotations
from typing import Optional, Dict, Any, List
import json, sqlite3, os, threading
from ledgerkey_core.errors import PersistenceFailure
from ledgerkey_core.logger import get_logger
from ledgerkey_core.storage.provider import StorageProvider
from ledgerkey_core.storage.models import KeyMappingRecord, SigningKeyRecord, AccountRecord

log = get_logger("LedgerKey.Storage.SQLite")


class SQLiteStorage(StorageProvider):
    def __init__(self, path="db/ledgerkey_state.db"):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.path = path
        self.db = sqlite3.connect(path, check_same_thread=False)
        # one writer at a time; each write commits on its own
        self._lock = threading.Lock()

        self._init()

    def _init(self) -> None:
        c = self.db.cursor()

        c.execute("""CREATE TABLE IF NOT EXISTS key_mapping(
            pub_key_fpr TEXT PRIMARY KEY,
            account_id TEXT NOT NULL,
            pubkey_b64 TEXT NOT NULL,
            created_at TEXT
        )""")
        c.execute("CREATE INDEX IF NOT EXISTS key_mapping_account ON key_mapping(account_id)")
        c.execute("""CREATE TABLE IF NOT EXISTS signing_key(
            pub_key_fpr TEXT PRIMARY KEY,
            account_id TEXT NOT NULL,
            pubkey_b64 TEXT NOT NULL,
            privkey_b64 TEXT NOT NULL,
            created_at TEXT
        )""")
        c.execute("""CREATE TABLE IF NOT EXISTS account(
            account_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            host TEXT NOT NULL
        )""")
        c.execute("""CREATE TABLE IF NOT EXISTS audit(
            ts TEXT,
            event_type TEXT,
            payload TEXT
        )""")

        self.db.commit()

    def _write(self, sql: str, params: tuple) -> None:
        with self._lock:
            try:
                self.db.execute(sql, params)
                self.db.commit()
            except sqlite3.Error as e:
                self.db.rollback()
                log.error(f"[SQLITE] write failed path={self.path}: {e}")
                raise PersistenceFailure(f"sqlite write failed: {e}") from e

    # --- key mappings ---

    def add_key_mapping(self, rec: KeyMappingRecord) -> None:
        self._write(
            "INSERT INTO key_mapping(pub_key_fpr,account_id,pubkey_b64,created_at) VALUES(?,?,?,?)",
            (rec.pub_key_fpr, rec.account_id, rec.pubkey_b64, rec.created_at),
        )

    def get_key_mappings(self, account_id: str) -> List[KeyMappingRecord]:
        cur = self.db.execute(
            "SELECT account_id,pubkey_b64,pub_key_fpr,created_at FROM key_mapping "
            "WHERE account_id=? ORDER BY rowid",
            (account_id,),
        )
        return [KeyMappingRecord(*row) for row in cur.fetchall()]

    def fetch_by_fingerprint(self, fpr: str) -> Optional[KeyMappingRecord]:
        cur = self.db.execute(
            "SELECT account_id,pubkey_b64,pub_key_fpr,created_at FROM key_mapping WHERE pub_key_fpr=?",
            (fpr,)
        )
        row = cur.fetchone()
        return KeyMappingRecord(*row) if row else None

    def fetch_by_pubkey(self, pubkey_b64: str) -> Optional[KeyMappingRecord]:
        cur = self.db.execute(
            "SELECT account_id,pubkey_b64,pub_key_fpr,created_at FROM key_mapping WHERE pubkey_b64=?",
            (pubkey_b64,)
        )
        row = cur.fetchone()
        return KeyMappingRecord(*row) if row else None

    # --- signing key custody ---

    def put_signing_key(self, rec: SigningKeyRecord) -> None:
        self._write(
            "INSERT INTO signing_key(pub_key_fpr,account_id,pubkey_b64,privkey_b64,created_at) VALUES(?,?,?,?,?)",
            (rec.pub_key_fpr, rec.account_id, rec.pubkey_b64, rec.privkey_b64, rec.created_at),
        )

    def get_signing_key(self, fpr: str) -> Optional[SigningKeyRecord]:
        cur = self.db.execute(
            "SELECT account_id,pubkey_b64,privkey_b64,pub_key_fpr,created_at FROM signing_key WHERE pub_key_fpr=?",
            (fpr,)
        )
        row = cur.fetchone()
        return SigningKeyRecord(*row) if row else None

    # --- account directory ---

    def upsert_account(self, rec: AccountRecord) -> None:
        self._write(
            "INSERT INTO account(account_id,name,host) VALUES(?,?,?) "
            "ON CONFLICT(account_id) DO UPDATE SET name=excluded.name, host=excluded.host",
            (rec.account_id, rec.name, rec.host),
        )

    def get_account(self, account_id: str) -> Optional[AccountRecord]:
        cur = self.db.execute("SELECT account_id,name,host FROM account WHERE account_id=?", (account_id,))
        row = cur.fetchone()
        if not row: return None
        return AccountRecord(*row)

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        from ledgerkey_core.utils import now_ts

        self._write("INSERT INTO audit(ts,event_type,payload) VALUES(?,?,?)",
                    (now_ts(), event_type, json.dumps(payload, separators=(",", ":"), sort_keys=True)))

    def close(self):
        self.db.close()
