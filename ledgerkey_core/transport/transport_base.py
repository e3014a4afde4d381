from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional
import json

from ledgerkey_core.constants import PROTOCOL_VERSION
from ledgerkey_core.utils import canonical_json


class TransportError(Exception):
    pass


class TransportTransientError(TransportError):
    pass


class TransportPermanentError(TransportError):
    pass


class SessionClosed(TransportPermanentError):
    """The session was closed or aborted while a receive was pending."""


class SessionTimeout(TransportTransientError):
    pass


class MalformedMessage(TransportPermanentError):
    pass


@dataclass
class Message:
    """One protocol message. Canonical form at the transport boundary is JSON bytes."""
    kind: str
    payload: Any = None
    version: str = PROTOCOL_VERSION

    def to_bytes(self) -> bytes:
        return canonical_json({"kind": self.kind, "payload": self.payload, "v": self.version})

    @classmethod
    def from_bytes(cls, data: bytes) -> "Message":
        try:
            obj = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise MalformedMessage(f"undecodable message: {e}") from e
        if not isinstance(obj, dict) or not isinstance(obj.get("kind"), str):
            raise MalformedMessage("message has no kind")
        return cls(kind=obj["kind"], payload=obj.get("payload"), version=obj.get("v", PROTOCOL_VERSION))


class BaseSession:
    """
    Session contract consumed by the protocol flows.

    An open, ordered, reliable point-to-point channel between two
    already-identified participants. ``receive`` blocks until a message
    arrives, and must raise SessionClosed instead of hanging once either
    side closes the session.
    """
    name: str = "base"

    # participant on the other end of the session
    counterparty: Optional[str] = None

    def send(self, message: Message) -> None:
        raise NotImplementedError

    def receive(self, timeout: Optional[float] = None) -> Message:
        raise NotImplementedError

    def close(self) -> None:
        return

    @property
    def closed(self) -> bool:
        raise NotImplementedError
