# ledgerkey_core/transport/transport_local.py
from __future__ import annotations
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Tuple
import queue
import threading

from ledgerkey_core.constants import session_timeout
from ledgerkey_core.logger import get_logger
from ledgerkey_core.transport.transport_base import (
    BaseSession,
    Message,
    SessionClosed,
    SessionTimeout,
    TransportPermanentError,
)

log = get_logger("LedgerKey.Transport.Local")

_CLOSED = object()  # end-of-session marker
MAX_RECORDED_FAILURES = 100


class LocalSession(BaseSession):
    """
    In-process session endpoint.

    Two endpoints created by ``pair()`` share a pair of queues. Messages are
    serialized to bytes on send so both sides only ever see wire copies.
    Closing either endpoint wakes any receive pending on both of them.
    """

    name = "local"

    def __init__(self, local_name: str, counterparty: str, inbox: queue.Queue,
                 outbox: queue.Queue, closed_flag: threading.Event):
        self.local_name = local_name
        self.counterparty = counterparty
        self._inbox = inbox
        self._outbox = outbox
        self._closed = closed_flag

    @classmethod
    def pair(cls, a: str = "requester", b: str = "host") -> Tuple["LocalSession", "LocalSession"]:
        a_to_b: queue.Queue = queue.Queue()
        b_to_a: queue.Queue = queue.Queue()
        flag = threading.Event()
        return cls(a, b, b_to_a, a_to_b, flag), cls(b, a, a_to_b, b_to_a, flag)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, message: Message) -> None:
        if self.closed:
            raise SessionClosed(f"session {self.local_name}->{self.counterparty} is closed")
        log.debug(f"[LOCAL SEND] {self.local_name} -> {self.counterparty} | kind={message.kind}")
        self._outbox.put(message.to_bytes())

    def receive(self, timeout: Optional[float] = None) -> Message:
        if timeout is None:
            timeout = session_timeout()
        try:
            item = self._inbox.get(timeout=timeout)
        except queue.Empty:
            raise SessionTimeout(
                f"no message from {self.counterparty} within {timeout}s"
            ) from None
        if item is _CLOSED:
            # leave the marker for any later receive
            self._inbox.put(_CLOSED)
            raise SessionClosed(f"session with {self.counterparty} closed")
        message = Message.from_bytes(item)
        log.debug(f"[LOCAL RECV] {self.local_name} <- {self.counterparty} | kind={message.kind}")
        return message

    def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        self._inbox.put(_CLOSED)
        self._outbox.put(_CLOSED)
        log.debug(f"[LOCAL CLOSE] {self.local_name} <-> {self.counterparty}")


Responder = Callable[[BaseSession], None]


class LocalNetwork:
    """
    In-process stand-in for the messaging layer between participants.

    Hosts register a responder; ``open_session`` starts that responder on its
    own thread against the far end of a fresh session and hands the near end
    to the initiator. The host end is always closed when its responder returns
    or fails, so an initiator never waits on a dead peer.
    """

    def __init__(self):
        self._hosts: Dict[str, Responder] = {}
        self._threads: List[threading.Thread] = []
        self._threads_lock = threading.Lock()
        # most recent responder failures only
        self.failures: Deque[Tuple[str, Exception]] = deque(maxlen=MAX_RECORDED_FAILURES)

    def register_host(self, name: str, responder: Responder) -> None:
        self._hosts[name] = responder
        log.info(f"[LOCAL NET] host registered: {name}")

    def open_session(self, host: str, initiator: str = "requester") -> LocalSession:
        responder = self._hosts.get(host)
        if responder is None:
            raise TransportPermanentError(f"unknown host: {host}")

        near, far = LocalSession.pair(initiator, host)
        t = threading.Thread(target=self._serve, args=(host, responder, far), daemon=True)
        t.start()
        with self._threads_lock:
            self._threads = [th for th in self._threads if th.is_alive()]
            self._threads.append(t)
        return near

    def _serve(self, host: str, responder: Responder, session: LocalSession) -> None:
        try:
            responder(session)
        except Exception as e:
            # the initiator sees the closed session; the host operator sees this
            log.exception(f"[LOCAL NET] responder on {host} failed: {e}")
            self.failures.append((host, e))
        finally:
            session.close()

    @property
    def active_responders(self) -> int:
        with self._threads_lock:
            return sum(1 for t in self._threads if t.is_alive())

    def join(self, timeout: Optional[float] = None) -> None:
        with self._threads_lock:
            threads = list(self._threads)
        for t in threads:
            t.join(timeout)
