import threading

import pytest

from ledgerkey_core.errors import PersistenceFailure
from ledgerkey_core.storage import (
    AccountRecord, InMemoryStorage, KeyMappingRecord, SigningKeyRecord, SQLiteStorage,
    load_storage_provider,
)


def _mapping(account_id="acct-1", fpr="f1", pub="cHVi"):
    return KeyMappingRecord(account_id=account_id, pubkey_b64=pub, pub_key_fpr=fpr, created_at="2026-01-01T00:00:00Z")


def test_key_mapping_roundtrip(tmp_path):
    s = SQLiteStorage(str(tmp_path / "state.db"))
    s.add_key_mapping(_mapping())
    s.add_key_mapping(_mapping(fpr="f2", pub="cHViMg=="))

    got = s.get_key_mappings("acct-1")
    assert [r.pub_key_fpr for r in got] == ["f1", "f2"]
    assert s.fetch_by_fingerprint("f2").pubkey_b64 == "cHViMg=="
    assert s.fetch_by_pubkey("cHVi").account_id == "acct-1"
    assert s.fetch_by_pubkey("nope") is None


def test_key_mapping_survives_reopen(tmp_path):
    path = str(tmp_path / "state.db")
    s = SQLiteStorage(path)
    s.add_key_mapping(_mapping())
    s.close()

    again = SQLiteStorage(path)
    assert again.fetch_by_fingerprint("f1").account_id == "acct-1"


@pytest.mark.parametrize("provider", ["memory", "sqlite"])
def test_duplicate_mapping_is_persistence_failure(tmp_path, provider):
    s = load_storage_provider({"provider": provider, "sqlite_path": str(tmp_path / "state.db")})
    s.add_key_mapping(_mapping())
    with pytest.raises(PersistenceFailure):
        s.add_key_mapping(_mapping())
    assert len(s.get_key_mappings("acct-1")) == 1


def test_signing_key_custody(tmp_path):
    s = SQLiteStorage(str(tmp_path / "state.db"))
    rec = SigningKeyRecord(account_id="acct-1", pubkey_b64="cHVi", privkey_b64="cHJpdg==", pub_key_fpr="f1")
    s.put_signing_key(rec)
    assert s.get_signing_key("f1") == rec
    assert s.get_signing_key("f2") is None


def test_account_upsert(tmp_path):
    s = SQLiteStorage(str(tmp_path / "state.db"))
    s.upsert_account(AccountRecord(account_id="acct-1", name="alice", host="P2"))
    s.upsert_account(AccountRecord(account_id="acct-1", name="alice-renamed", host="P2"))
    assert s.get_account("acct-1").name == "alice-renamed"
    assert s.get_account("acct-2") is None


def test_audit_log(tmp_path):
    s = SQLiteStorage(str(tmp_path / "state.db"))
    s.log_event("key_provisioned", {"account_id": "acct-1"})
    rows = s.db.execute("SELECT event_type, payload FROM audit").fetchall()
    assert rows == [("key_provisioned", '{"account_id":"acct-1"}')]


def test_schema_exists(tmp_path):
    s = SQLiteStorage(str(tmp_path / "state.db"))
    cur = s.db.execute("PRAGMA table_info(key_mapping)")
    cols = {row[1] for row in cur.fetchall()}
    assert {"pub_key_fpr", "account_id", "pubkey_b64", "created_at"} <= cols


def test_storage_factory_modes(monkeypatch, tmp_path):
    monkeypatch.setenv("LEDGERKEY_STORAGE_PROVIDER", "memory")
    assert isinstance(load_storage_provider(), InMemoryStorage)

    monkeypatch.setenv("LEDGERKEY_STORAGE_PROVIDER", "sqlite")
    monkeypatch.setenv("LEDGERKEY_DB_PATH", str(tmp_path / "env.db"))
    assert isinstance(load_storage_provider(), SQLiteStorage)
    assert (tmp_path / "env.db").exists()

    s = load_storage_provider({"provider": "sqlite", "sqlite_path": str(tmp_path / "cfg.db")})
    assert s.path == str(tmp_path / "cfg.db")

    with pytest.raises(ValueError):
        load_storage_provider({"provider": "postgres"})


def test_memory_storage_reads_during_writes():
    s = InMemoryStorage()
    errors = []

    def writer(n):
        for i in range(200):
            s.add_key_mapping(_mapping(account_id=f"acct-{n}", fpr=f"f{n}-{i}", pub=f"p{n}-{i}"))

    def reader():
        try:
            for _ in range(200):
                s.get_key_mappings("acct-0")
                s.fetch_by_pubkey("p1-199")
        except RuntimeError as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(2)]
    threads += [threading.Thread(target=reader) for _ in range(2)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert errors == []
    assert len(s.get_key_mappings("acct-0")) == 200
    assert s.fetch_by_pubkey("p1-199").pub_key_fpr == "f1-199"
