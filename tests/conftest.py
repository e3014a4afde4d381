import threading
import uuid

import pytest

from ledgerkey_core.client import serve_key_requests
from ledgerkey_core.crypto import LocalKeyService
from ledgerkey_core.directory import AccountDirectory
from ledgerkey_core.models import AccountInfo
from ledgerkey_core.storage import InMemoryStorage, SQLiteStorage
from ledgerkey_core.transport import LocalNetwork

HOST = "P2"


@pytest.fixture
def host_storage():
    return InMemoryStorage()


@pytest.fixture
def directory(host_storage):
    return AccountDirectory(host_storage)


@pytest.fixture
def key_service(host_storage):
    return LocalKeyService(host_storage)


@pytest.fixture
def network(directory, key_service, host_storage):
    net = LocalNetwork()
    serve_key_requests(net, HOST, directory, key_service, audit=host_storage)
    yield net
    net.join(timeout=5)


@pytest.fixture
def requester_storage(tmp_path):
    s = SQLiteStorage(str(tmp_path / "requester.db"))
    yield s
    s.close()


@pytest.fixture
def known_account(directory):
    info = AccountInfo(identifier=uuid.uuid4(), name="alice", host=HOST)
    directory.register(info)
    return info


@pytest.fixture
def unknown_account():
    return AccountInfo(identifier=uuid.uuid4(), name="bob", host=HOST)


@pytest.fixture
def run_peer():
    """Run a scripted peer on a background thread; joined at teardown."""
    threads = []

    def _start(fn, *args):
        t = threading.Thread(target=fn, args=args, daemon=True)
        t.start()
        threads.append(t)
        return t

    yield _start
    for t in threads:
        t.join(timeout=5)
