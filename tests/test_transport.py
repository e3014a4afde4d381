import threading
import time

import pytest

from ledgerkey_core.constants import session_timeout
from ledgerkey_core.transport.transport_local import MAX_RECORDED_FAILURES
from ledgerkey_core.transport import (
    LocalNetwork, LocalSession, MalformedMessage, Message, SessionClosed, SessionTimeout,
    TransportPermanentError, transport_factory,
)


def test_local_session_delivers_in_order():
    a, b = LocalSession.pair("P1", "P2")
    a.send(Message("one", 1))
    a.send(Message("two", {"x": 2}))

    assert b.receive().kind == "one"
    got = b.receive()
    assert got.kind == "two" and got.payload == {"x": 2}
    assert b.counterparty == "P1"


def test_close_unblocks_pending_receive():
    a, b = LocalSession.pair()
    errors = []

    def wait():
        try:
            a.receive()
        except SessionClosed as e:
            errors.append(e)

    t = threading.Thread(target=wait)
    t.start()
    time.sleep(0.05)
    b.close()
    t.join(timeout=2)

    assert not t.is_alive()
    assert len(errors) == 1
    assert a.closed and b.closed


def test_messages_sent_before_close_are_delivered():
    a, b = LocalSession.pair()
    a.send(Message("last"))
    a.close()

    assert b.receive().kind == "last"
    with pytest.raises(SessionClosed):
        b.receive()
    with pytest.raises(SessionClosed):
        b.receive()


def test_send_on_closed_session():
    a, b = LocalSession.pair()
    b.close()
    with pytest.raises(SessionClosed):
        a.send(Message("late"))


def test_receive_timeout(monkeypatch):
    a, _ = LocalSession.pair()
    with pytest.raises(SessionTimeout):
        a.receive(timeout=0.01)

    monkeypatch.setenv("LEDGERKEY_SESSION_TIMEOUT", "0.01")
    with pytest.raises(SessionTimeout):
        a.receive()


def test_malformed_wire_bytes():
    with pytest.raises(MalformedMessage):
        Message.from_bytes(b"\xff\xfe")
    with pytest.raises(MalformedMessage):
        Message.from_bytes(b'{"payload": 1}')


def test_network_unknown_host():
    with pytest.raises(TransportPermanentError):
        LocalNetwork().open_session("nobody")


def test_network_closes_host_end_after_responder(caplog):
    net = LocalNetwork()

    def responder(session):
        session.send(Message("hello"))
        raise RuntimeError("boom")

    net.register_host("P2", responder)
    s = net.open_session("P2")
    assert s.receive().kind == "hello"
    with pytest.raises(SessionClosed):
        s.receive()
    net.join(timeout=2)

    assert [(h, str(e)) for h, e in net.failures] == [("P2", "boom")]
    assert "responder on P2 failed" in caplog.text


def test_transport_factory(monkeypatch):
    monkeypatch.delenv("LEDGERKEY_TRANSPORT", raising=False)
    assert isinstance(transport_factory(), LocalNetwork)

    monkeypatch.setenv("LEDGERKEY_TRANSPORT", "carrier-pigeon")
    with pytest.raises(ValueError):
        transport_factory()


def test_invalid_timeout_setting_means_no_timeout(monkeypatch, caplog):
    monkeypatch.setenv("LEDGERKEY_SESSION_TIMEOUT", "soon")
    assert session_timeout() is None
    assert "ignoring LEDGERKEY_SESSION_TIMEOUT" in caplog.text

    a, b = LocalSession.pair()
    b.send(Message("ping"))
    assert a.receive().kind == "ping"


def test_network_forgets_finished_responders():
    net = LocalNetwork()
    net.register_host("P2", lambda session: None)

    for _ in range(5):
        s = net.open_session("P2")
        with pytest.raises(SessionClosed):
            s.receive(timeout=2)
    net.join(timeout=2)

    net.open_session("P2")
    assert len(net._threads) == 1
    net.join(timeout=2)
    assert net.active_responders == 0


def test_network_failure_record_is_bounded():
    net = LocalNetwork()

    def responder(session):
        raise RuntimeError("boom")

    net.register_host("P2", responder)
    for _ in range(MAX_RECORDED_FAILURES + 5):
        s = net.open_session("P2")
        with pytest.raises(SessionClosed):
            s.receive(timeout=2)
    net.join(timeout=2)

    assert len(net.failures) == MAX_RECORDED_FAILURES
